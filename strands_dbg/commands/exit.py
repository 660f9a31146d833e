"""exit: tear the session down and leave."""

from __future__ import annotations

from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_result


class ExitCommand(Command):
    def __init__(self) -> None:
        super().__init__("exit", "Terminate the process and leave the debugger", aliases=("quit", "q"))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        process = ctx.process
        steps = process.total_steps if process is not None else 0
        ctx.disconnect()
        if process is not None:
            emit_result(ctx, message=f"Session closed after {steps} step(s)", data={"result": "exit", "steps": steps})
        raise SystemExit(0)
