"""strands-dbg CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

from strands.config import ProcessConfig
from strands.errors import InvalidArgumentError

from .commands import CommandRegistry, build_registry
from .context import DEFAULT_PROGRAM, DebuggerContext, ProgramLoadError, load_program
from .output import attach_notices
from .repl import DebuggerREPL

LOG = logging.getLogger("strands_dbg.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="strands step debugger")
    parser.add_argument(
        "--program",
        default=os.environ.get("STRANDS_DBG_PROGRAM", DEFAULT_PROGRAM),
        help="module:attribute resolving to a program source or entry instruction",
    )
    parser.add_argument("--rate", type=float, help="Delay between instructions in ms (default unlimited)")
    parser.add_argument("--breakpoints", action="store_true", help="Start with breakpoints enabled")
    parser.add_argument("--time-slice", type=int, help="Steps per strand before rotating")
    parser.add_argument("--json", action="store_true", help="Emit JSON output when supported")
    parser.add_argument("--log-level", default=os.environ.get("STRANDS_DBG_LOG", "WARNING"), help="Logging level (default WARNING)")
    parser.add_argument(
        "-c",
        "--command",
        action="append",
        help="Execute commands non-interactively (repeatable; join several with ';')",
    )
    parser.add_argument(
        "--history",
        type=Path,
        default=Path.home() / ".strands-dbg-history",
        help="Path to command history file",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        config = ProcessConfig.from_env(
            rate_ms=args.rate,
            breakpoints=True if args.breakpoints else None,
            time_slice=args.time_slice,
        )
        load_program(args.program)
    except (InvalidArgumentError, ProgramLoadError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    ctx = DebuggerContext(program_ref=args.program, config=config, json_output=args.json)
    registry = build_registry()
    if args.command:
        notices = attach_notices(ctx)
        try:
            for command_line in args.command:
                try:
                    rc = _run_single_command(ctx, registry, command_line)
                except SystemExit as exc:
                    return int(exc.code or 0)
                finally:
                    ctx.event_bus.pump()
                if rc != 0:
                    return rc
            return 0
        finally:
            notices.close()
            ctx.disconnect()
    repl = DebuggerREPL(ctx, registry, history_path=str(args.history))
    try:
        return repl.run()
    except SystemExit as exc:
        return int(exc.code or 0)
    except KeyboardInterrupt:
        print()
        return 0


def _run_single_command(ctx: DebuggerContext, registry: CommandRegistry, command_line: str) -> int:
    try:
        return registry.dispatch(ctx, command_line)
    except Exception as exc:  # pragma: no cover
        LOG.exception("command failed")
        print(f"Command failed: {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
