"""Status commands (info, strands, events)."""

from __future__ import annotations

import argparse
from typing import List

from .base import Command
from ..context import DebuggerContext
from ..output import emit_error, emit_result, render_event, render_info, render_strand_table


class InfoCommand(Command):
    def __init__(self) -> None:
        super().__init__("info", "Show process state")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if self.parse_args(ctx, argv) is None:
            return 1
        try:
            info = ctx.require_process().info()
        except RuntimeError as exc:
            emit_error(ctx, message=f"info failed: {exc}")
            return 1
        if ctx.json_output:
            emit_result(ctx, message="info", data={"info": info})
            return 0
        render_info(info)
        return 0


class StrandsCommand(Command):
    def __init__(self) -> None:
        super().__init__("strands", "List live strands", aliases=("ps",))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if self.parse_args(ctx, argv) is None:
            return 1
        try:
            info = ctx.require_process().info()
        except RuntimeError as exc:
            emit_error(ctx, message=f"strands failed: {exc}")
            return 1
        if ctx.json_output:
            emit_result(ctx, message="strands", data={"strands": info["strands"], "current": info["current_strand"]})
            return 0
        render_strand_table(info["strands"], current=info["current_strand"])
        return 0


class EventsCommand(Command):
    def __init__(self) -> None:
        super().__init__("events", "Show recent process events")

    def configure(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("limit", nargs="?", type=int, default=20, help="How many events (default 20)")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        args = self.parse_args(ctx, argv)
        if args is None:
            return 1
        try:
            events = ctx.require_process().get_events(args.limit)
        except RuntimeError as exc:
            emit_error(ctx, message=f"events failed: {exc}")
            return 1
        if ctx.json_output:
            emit_result(ctx, message="events", data={"events": events})
            return 0
        for event in events:
            print(render_event(event))
        return 0
