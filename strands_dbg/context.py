"""Debugger context and program loading helpers."""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from strands.config import ProcessConfig
from strands.events import EventBus
from strands.instruction import Program, ProgramSource, is_instruction
from strands.process import Process
from strands.scheduler import Scheduler, ThreadScheduler

LOGGER = logging.getLogger("strands_dbg.context")

DEFAULT_PROGRAM = "strands_dbg.sample:build"


class ProgramLoadError(RuntimeError):
    """Raised when ``--program`` cannot be resolved to a program source."""


def load_program(reference: str) -> ProgramSource:
    """Resolve ``module:attribute`` to a ProgramSource.

    The attribute may be a ProgramSource, an instruction, or a zero-argument
    callable returning either.
    """
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ProgramLoadError(f"expected module:attribute, got {reference!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ProgramLoadError(f"cannot import {module_name}: {exc}") from exc
    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError:
            raise ProgramLoadError(f"{module_name} has no attribute {attr!r}") from None
    if not _is_program(target) and not is_instruction(target) and callable(target):
        target = target()
    if _is_program(target):
        return target
    if is_instruction(target):
        return Program(target)
    raise ProgramLoadError(f"{reference} is neither a program source nor an instruction")


def _is_program(candidate: Any) -> bool:
    return callable(getattr(candidate, "first_instruction", None))


@dataclass
class DebuggerContext:
    """Holds shared CLI debugger state."""

    program_ref: str = DEFAULT_PROGRAM
    config: ProcessConfig = field(default_factory=ProcessConfig)
    json_output: bool = False
    scheduler: Optional[Scheduler] = None
    event_bus: EventBus = field(default_factory=EventBus)
    _process: Optional[Process] = field(default=None, init=False, repr=False)
    _program: Optional[ProgramSource] = field(default=None, init=False, repr=False)

    @property
    def process(self) -> Optional[Process]:
        return self._process

    def program(self) -> ProgramSource:
        if self._program is None:
            self._program = load_program(self.program_ref)
        return self._program

    def ensure_process(self) -> Process:
        """Return the live process, creating a fresh one when the last one is spent."""
        process = self._process
        if process is not None and not process.terminated and not process.halted:
            return process
        return self.new_process()

    def new_process(self) -> Process:
        if self._process is not None and self._process.started and not self._process.terminated:
            self._process.terminate()
        scheduler = self.scheduler if self.scheduler is not None else ThreadScheduler()
        self._process = Process(self.program(), scheduler, config=self.config, event_bus=self.event_bus)
        LOGGER.debug("created process for %s", self.program_ref)
        return self._process

    def require_process(self) -> Process:
        process = self._process
        if process is None or not process.started:
            raise RuntimeError("no process started (use 'start')")
        return process

    def disconnect(self) -> None:
        process = self._process
        if process is None:
            return
        if process.started and not process.terminated:
            process.terminate()
        shutdown = getattr(process.scheduler, "shutdown", None)
        if callable(shutdown):
            shutdown()
        self._process = None
