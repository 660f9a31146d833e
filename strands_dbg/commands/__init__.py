"""Command registry for strands-dbg."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..context import DebuggerContext
from ..output import emit_error
from ..parser import CommandParseError, split_commands
from .base import Command
from .breakpoints import BreakpointCommand
from .control import (
    ContinueCommand,
    PauseCommand,
    RateCommand,
    StartCommand,
    StepCommand,
    TerminateCommand,
)
from .exit import ExitCommand
from .help import HelpCommand
from .status import EventsCommand, InfoCommand, StrandsCommand


class CommandRegistry:
    """Stores the known commands, resolves aliases and runs input lines."""

    def __init__(self) -> None:
        self._commands: Dict[str, Command] = {}
        self._ordered: List[Command] = []

    def register(self, command: Command) -> None:
        for name in (command.name, *command.aliases):
            if name in self._commands:
                raise ValueError(f"command name {name!r} already registered")
        self._ordered.append(command)
        self._commands[command.name] = command
        for alias in command.aliases:
            self._commands[alias] = command

    def get(self, name: str) -> Optional[Command]:
        return self._commands.get(name)

    def names(self) -> List[str]:
        return sorted(self._commands)

    def list_commands(self) -> Iterable[Command]:
        return self._ordered

    def dispatch(self, ctx: DebuggerContext, line: str) -> int:
        """Run every command on ``line`` in order, stopping at the first failure.

        ``SystemExit`` from ``exit`` propagates to the caller.
        """
        try:
            commands = split_commands(line)
        except CommandParseError as exc:
            emit_error(ctx, message=f"parse error: {exc}")
            return 1
        rc = 0
        for name, *args in commands:
            command = self.get(name)
            if command is None:
                emit_error(ctx, message=f"unknown command: {name}")
                return 1
            rc = command.run(ctx, args)
            if rc != 0:
                return rc
        return rc


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    commands = [
        HelpCommand(),
        StartCommand(),
        PauseCommand(),
        ContinueCommand(),
        StepCommand(),
        RateCommand(),
        BreakpointCommand(),
        InfoCommand(),
        StrandsCommand(),
        EventsCommand(),
        TerminateCommand(),
        ExitCommand(),
    ]
    for command in commands:
        registry.register(command)
        bind = getattr(command, "bind", None)
        if callable(bind):
            bind(registry)
    return registry


__all__ = ["CommandRegistry", "build_registry"]
