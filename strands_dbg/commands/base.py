"""Shared plumbing for debugger commands."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..context import DebuggerContext
from ..output import emit_error


@dataclass
class Command:
    """A debugger verb.

    Subclasses declare their arguments in :meth:`configure`; the resulting
    parser drives both argument handling and ``help <command>``.
    """

    name: str
    summary: str
    aliases: Sequence[str] = field(default_factory=tuple)
    parser: argparse.ArgumentParser = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.parser = argparse.ArgumentParser(prog=self.name, description=self.summary, add_help=False)
        self.configure(self.parser)

    def configure(self, parser: argparse.ArgumentParser) -> None:
        """Add positional/optional arguments; default takes none."""

    def parse_args(self, ctx: DebuggerContext, argv: List[str]) -> Optional[argparse.Namespace]:
        """Parse ``argv``; reports usage and returns None when it does not fit."""
        try:
            return self.parser.parse_args(argv)
        except SystemExit:
            emit_error(ctx, message=f"usage: {self.usage()}")
            return None

    def usage(self) -> str:
        text = self.parser.format_usage().strip()
        return text[len("usage: "):] if text.startswith("usage: ") else text

    def format_help(self) -> str:
        label = ", ".join([self.name, *self.aliases])
        return f"{label:<24} {self.summary}"

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        raise NotImplementedError(f"{type(self).__name__} must implement run()")
