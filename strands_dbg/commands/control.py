"""Execution control commands (start/pause/continue/step/rate/terminate)."""

from __future__ import annotations

import argparse
from typing import List

from strands.errors import StrandsError

from .base import Command
from ..context import DebuggerContext
from ..output import emit_error, emit_result


class StartCommand(Command):
    def __init__(self) -> None:
        super().__init__("start", "Start a fresh process on the loaded program", aliases=("run",))

    def configure(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--paused", action="store_true", help="Pause before the first instruction")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        args = self.parse_args(ctx, argv)
        if args is None:
            return 1
        try:
            process = ctx.ensure_process()
            if process.started:
                process = ctx.new_process()
            if args.paused:
                # Hold the lock so a threaded scheduler cannot fire the first step in between.
                with process.lock:
                    process.start()
                    process.pause()
            else:
                process.start()
        except RuntimeError as exc:
            emit_error(ctx, message=f"start failed: {exc}")
            return 1
        state = process.state.value
        emit_result(ctx, message=f"Started process ({state})", data={"result": "started", "state": state})
        return 0


class PauseCommand(Command):
    def __init__(self) -> None:
        super().__init__("pause", "Pause before the next instruction")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if self.parse_args(ctx, argv) is None:
            return 1
        try:
            process = ctx.require_process()
            process.pause()
        except RuntimeError as exc:
            emit_error(ctx, message=f"pause failed: {exc}")
            return 1
        current = process.current_strand
        sid = current.sid if current is not None else None
        emit_result(ctx, message=f"Paused (strand {sid})", data={"result": "paused", "strand": sid})
        return 0


class ContinueCommand(Command):
    def __init__(self) -> None:
        super().__init__("continue", "Resume execution", aliases=("cont", "resume"))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if self.parse_args(ctx, argv) is None:
            return 1
        try:
            process = ctx.require_process()
            process.resume_async()
        except RuntimeError as exc:
            emit_error(ctx, message=f"continue failed: {exc}")
            return 1
        state = process.state.value
        emit_result(ctx, message=f"Resumed ({state})", data={"result": "resumed", "state": state})
        return 0


class StepCommand(Command):
    def __init__(self) -> None:
        super().__init__("step", "Execute instructions one at a time", aliases=("next", "s"))

    def configure(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("count", nargs="?", type=int, default=1, help="Instruction count (default 1)")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        args = self.parse_args(ctx, argv)
        if args is None:
            return 1
        executed = 0
        try:
            process = ctx.require_process()
            if not process.paused and not process.halted:
                process.pause()
            for _ in range(max(1, args.count)):
                result = process.step()
                executed += result["executed"]
                if process.halted:
                    break
        except RuntimeError as exc:
            emit_error(ctx, message=f"step failed: {exc}", data={"executed": executed})
            return 1
        state = process.state.value
        message = f"Stepped {executed} instruction(s) ({state})"
        emit_result(ctx, message=message, data={"result": "stepped", "executed": executed, "state": state})
        return 0


class RateCommand(Command):
    def __init__(self) -> None:
        super().__init__("rate", "Set ms per instruction (no value = unlimited)")

    def configure(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("ms", nargs="?", help="Delay between instructions in ms")

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        args = self.parse_args(ctx, argv)
        if args is None:
            return 1
        try:
            process = ctx.ensure_process()
            process.set_rate(args.ms)
        except (StrandsError, RuntimeError) as exc:
            emit_error(ctx, message=f"rate failed: {exc}")
            return 1
        ctx.config.rate_ms = process.rate
        label = "unlimited" if process.rate == 0 else f"{process.rate:g}ms"
        emit_result(ctx, message=f"Rate set to {label}", data={"result": "rate", "rate_ms": process.rate})
        return 0


class TerminateCommand(Command):
    def __init__(self) -> None:
        super().__init__("terminate", "Stop the process for good", aliases=("kill",))

    def run(self, ctx: DebuggerContext, argv: List[str]) -> int:
        if self.parse_args(ctx, argv) is None:
            return 1
        done: List[int] = []
        try:
            process = ctx.require_process()
            process.terminate(lambda proc: done.append(proc.total_steps))
        except RuntimeError as exc:
            emit_error(ctx, message=f"terminate failed: {exc}")
            return 1
        steps = done[0] if done else process.total_steps
        emit_result(ctx, message=f"Terminated after {steps} step(s)", data={"result": "terminated", "steps": steps})
        return 0
