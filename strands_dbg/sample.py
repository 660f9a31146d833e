"""Sample program used when ``--program`` is not given.

Counts to three, recording each value in the scope's ``log`` list.  The
second block carries a breakpoint.
"""

from __future__ import annotations

from strands.instruction import Block, Program, Scope, chain


def _init(scope: Scope) -> None:
    scope["count"] = 0
    scope["log"] = []


def _bump(scope: Scope) -> None:
    scope["count"] += 1
    scope["log"].append(scope["count"])


def build() -> Program:
    entry = chain(
        Block(_init, name="init"),
        Block(_bump, name="bump-1", breakpoint=True),
        Block(_bump, name="bump-2"),
        Block(_bump, name="bump-3"),
    )
    return Program(entry)
