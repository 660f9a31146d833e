"""Breakpoint enablement command."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_result


class BreakpointCommand(Command):
    def __init__(self) -> None:
        super().__init__("break", "Enable/disable breakpoints (on|off)", aliases=("bp",))

    def configure(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("mode", nargs="?", choices=("on", "off"), help="Omit to show the current setting")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        args = self.parse_args(ctx, argv)
        if args is None:
            return 1
        process = ctx.process
        if args.mode is not None:
            enabled = args.mode == "on"
            ctx.config.breakpoints = enabled
            if process is not None:
                if enabled:
                    process.enable_breakpoints()
                else:
                    process.disable_breakpoints()
        enabled = process.should_break if process is not None else ctx.config.breakpoints
        label = "on" if enabled else "off"
        emit_result(ctx, message=f"Breakpoints {label}", data={"result": "breakpoints", "enabled": enabled})
        return 0
