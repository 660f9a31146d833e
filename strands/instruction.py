"""Instruction capability consumed by the engine.

The engine never looks inside an instruction.  It only needs two things from
each node: ``execute(scope)`` to run it against a strand's scope, and
``successor()`` to find the next node in program order (``None`` at the end).
A node may also carry a truthy ``breakpoint`` attribute.

``Block``/``chain``/``Program`` are small host-side helpers for building
instruction sequences out of plain callables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, MutableMapping, Optional, Protocol, runtime_checkable

Scope = MutableMapping[str, Any]
Action = Callable[[Scope], None]


@runtime_checkable
class Instruction(Protocol):
    def execute(self, scope: Scope) -> None:
        ...

    def successor(self) -> Optional["Instruction"]:
        ...


@runtime_checkable
class ProgramSource(Protocol):
    def first_instruction(self) -> Optional[Instruction]:
        ...


def is_instruction(candidate: Any) -> bool:
    """Return True when ``candidate`` exposes callable execute/successor."""
    if candidate is None:
        return False
    return callable(getattr(candidate, "execute", None)) and callable(getattr(candidate, "successor", None))


def has_breakpoint(instruction: Any) -> bool:
    return bool(getattr(instruction, "breakpoint", False))


def describe(instruction: Any) -> Optional[str]:
    """Short printable label for logs and events."""
    if instruction is None:
        return None
    name = getattr(instruction, "name", None)
    if name:
        return str(name)
    return type(instruction).__name__


@dataclass(eq=False)
class Block:
    """Instruction node backed by a Python callable."""

    action: Action
    name: str = ""
    breakpoint: bool = False
    next: Optional[Instruction] = field(default=None, repr=False)

    def execute(self, scope: Scope) -> None:
        self.action(scope)

    def successor(self) -> Optional[Instruction]:
        return self.next


def chain(*blocks: Block) -> Optional[Block]:
    """Link ``blocks`` in order and return the first one (``None`` if empty)."""
    for current, following in zip(blocks, blocks[1:]):
        current.next = following
    if blocks:
        blocks[-1].next = None
        return blocks[0]
    return None


class Program:
    """ProgramSource over a single entry instruction."""

    def __init__(self, entry: Optional[Instruction], *, initial_scope: Optional[Dict[str, Any]] = None) -> None:
        self.entry = entry
        self.initial_scope = dict(initial_scope or {})

    def first_instruction(self) -> Optional[Instruction]:
        return self.entry

    def new_scope(self) -> Dict[str, Any]:
        return dict(self.initial_scope)


__all__ = [
    "Scope",
    "Action",
    "Instruction",
    "ProgramSource",
    "is_instruction",
    "has_breakpoint",
    "describe",
    "Block",
    "chain",
    "Program",
]
