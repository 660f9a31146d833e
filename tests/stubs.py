"""Shared program builders for the strands tests."""

from __future__ import annotations

import functools
from typing import Iterable, List, Optional, Tuple

from strands.instruction import Block, Program, Scope, chain


def _append(name: str, scope: Scope) -> None:
    scope.setdefault("log", []).append(name)


def make_blocks(*names: str, breakpoints: Iterable[str] = ()) -> List[Block]:
    marked = set(breakpoints)
    return [Block(functools.partial(_append, name), name=name, breakpoint=name in marked) for name in names]


def make_chain(*names: str, breakpoints: Iterable[str] = ()) -> Optional[Block]:
    return chain(*make_blocks(*names, breakpoints=breakpoints))


def make_program(*names: str, log: Optional[list] = None, breakpoints: Iterable[str] = ()) -> Tuple[Program, list]:
    """Program whose blocks append their name to a shared ``log`` list."""
    log = [] if log is None else log
    return Program(make_chain(*names, breakpoints=breakpoints), initial_scope={"log": log}), log


class Opaque:
    """Instruction that is not a Block, to exercise the bare capability."""

    def __init__(self, name: str, following: Optional[object] = None) -> None:
        self.name = name
        self.following = following

    def execute(self, scope: Scope) -> None:
        scope.setdefault("log", []).append(self.name)

    def successor(self):
        return self.following


class NoExecute:
    """Malformed node: lacks execute()."""

    def successor(self):
        return None
