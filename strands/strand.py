"""Strand: one instruction cursor plus its private variable scope."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .errors import MalformedProgramError, PreconditionViolation
from .instruction import Instruction, ProgramSource, Scope, describe, is_instruction

logger = logging.getLogger(__name__)


def _check_instruction(candidate: Any, *, role: str) -> Optional[Instruction]:
    if candidate is None or is_instruction(candidate):
        return candidate
    raise MalformedProgramError(f"{role} {candidate!r} does not provide callable execute()/successor()")


class Strand:
    """Execution cursor over an instruction sequence.

    A strand whose ``current_instruction`` is ``None`` has halted and must not
    be advanced again.  The scope belongs to this strand alone.
    """

    __slots__ = ("sid", "current_instruction", "scope", "steps")

    def __init__(self, instruction: Optional[Instruction], scope: Optional[Scope] = None, *, sid: int = 0) -> None:
        self.sid = sid
        self.current_instruction = _check_instruction(instruction, role="entry instruction")
        self.scope: Scope = scope if scope is not None else {}
        self.steps = 0

    @property
    def halted(self) -> bool:
        return self.current_instruction is None

    def advance(self) -> bool:
        """Run the current instruction and move the cursor to its successor.

        Returns True while the strand has more instructions to execute.
        """
        instruction = self.current_instruction
        if instruction is None:
            raise PreconditionViolation(f"strand {self.sid} has no current instruction")
        # The scope is mutated in place by the instruction.
        instruction.execute(self.scope)
        self.steps += 1
        following = instruction.successor()
        if following is not None and not is_instruction(following):
            # The instruction already ran; the strand cannot continue past a broken link.
            self.current_instruction = None
            raise MalformedProgramError(f"successor {following!r} does not provide callable execute()/successor()")
        self.current_instruction = following
        return following is not None

    @classmethod
    def create_root(cls, program: ProgramSource, *, sid: int = 0) -> "Strand":
        """Build the root strand from the program's first instruction."""
        first = program.first_instruction()
        new_scope = getattr(program, "new_scope", None)
        scope: Scope = new_scope() if callable(new_scope) else {}
        logger.debug("root strand %d entry=%s", sid, describe(first))
        return cls(first, scope, sid=sid)

    @classmethod
    def create(cls, entry: Instruction, scope: Optional[Scope] = None, *, sid: int) -> "Strand":
        """Build a derived strand starting at ``entry`` with a fresh scope."""
        if entry is None:
            raise MalformedProgramError("derived strand needs an entry instruction")
        return cls(entry, {} if scope is None else scope, sid=sid)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "sid": self.sid,
            "steps": self.steps,
            "instruction": describe(self.current_instruction),
            "halted": self.halted,
        }

    def __repr__(self) -> str:
        return f"Strand(sid={self.sid}, at={describe(self.current_instruction)!r}, steps={self.steps})"


__all__ = ["Strand"]
