"""help [command]: list commands or show one command's usage."""

from __future__ import annotations

import argparse
from typing import TYPE_CHECKING, List, Optional

from .base import Command
from ..context import DebuggerContext
from ..output import emit_error, emit_result

if TYPE_CHECKING:  # pragma: no cover
    from . import CommandRegistry


class HelpCommand(Command):
    def __init__(self) -> None:
        super().__init__("help", "List commands, or show usage for one", aliases=("?",))
        self.registry: Optional["CommandRegistry"] = None

    def configure(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("topic", nargs="?", help="Command name or alias")

    def bind(self, registry: "CommandRegistry") -> None:
        self.registry = registry

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        args = self.parse_args(ctx, argv)
        if args is None or self.registry is None:
            return 1
        if args.topic is None:
            commands = list(self.registry.list_commands())
            if ctx.json_output:
                listing = [{"name": cmd.name, "aliases": list(cmd.aliases), "summary": cmd.summary} for cmd in commands]
                emit_result(ctx, message="commands", data={"commands": listing})
            else:
                for command in commands:
                    print(command.format_help())
                print("Type 'help <command>' for arguments; separate commands with ';'.")
            return 0
        command = self.registry.get(args.topic)
        if command is None:
            emit_error(ctx, message=f"unknown command: {args.topic}")
            return 1
        if ctx.json_output:
            emit_result(ctx, message=command.usage(), data={"name": command.name, "usage": command.usage()})
            return 0
        print(command.parser.format_help().rstrip())
        if command.aliases:
            print(f"aliases: {', '.join(command.aliases)}")
        return 0
