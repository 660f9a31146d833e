"""Command-line tokenising for strands-dbg.

One input line may carry several commands separated by ``;`` and a trailing
``#`` comment, e.g. ``start --paused; step 3  # warm up``.
"""

from __future__ import annotations

import shlex
from typing import List


class CommandParseError(ValueError):
    """Raised for unbalanced quotes and similar tokenising failures."""


def _tokens(line: str) -> List[str]:
    lexer = shlex.shlex(line, posix=True, punctuation_chars=";")
    lexer.whitespace_split = True
    lexer.commenters = "#"
    try:
        return list(lexer)
    except ValueError as exc:
        raise CommandParseError(str(exc)) from None


def split_commands(line: str) -> List[List[str]]:
    """Split ``line`` into one argv list per command, skipping empty ones."""
    commands: List[List[str]] = []
    current: List[str] = []
    for token in _tokens(line or ""):
        if token and set(token) == {";"}:
            if current:
                commands.append(current)
            current = []
            continue
        current.append(token)
    if current:
        commands.append(current)
    return commands


def split_command(line: str) -> List[str]:
    """Tokens of a single command; an empty line gives ``[]``."""
    commands = split_commands(line)
    if len(commands) > 1:
        raise CommandParseError(f"expected one command, got {len(commands)}")
    return commands[0] if commands else []


__all__ = ["CommandParseError", "split_command", "split_commands"]
