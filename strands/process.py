"""Process: owns the strands, the step scheduler, rate control and lifecycle.

A Process is single use.  ``start`` may be called once; after ``terminate``
every control operation raises ``TerminatedError``.  Steps are driven by a
:class:`~strands.scheduler.Scheduler`; exactly one step is pending at a time
and each step executes one instruction on the active strand.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Set, Tuple

from .config import ProcessConfig, coerce_rate
from .errors import (
    AlreadyStartedError,
    HaltedError,
    LifecycleError,
    MalformedProgramError,
    NotStartedError,
    PreconditionViolation,
    TerminatedError,
)
from .events import EventBus
from .instruction import Instruction, ProgramSource, Scope, describe, has_breakpoint
from .scheduler import ScheduledCall, Scheduler, ThreadScheduler
from .strand import Strand

logger = logging.getLogger(__name__)

BreakpointPredicate = Callable[[Instruction], bool]
DoneCallback = Callable[["Process"], None]


class ProcessState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    HALTED = "halted"
    TERMINATED = "terminated"


_ALLOWED_STATE_TRANSITIONS: Dict[ProcessState, Set[ProcessState]] = {
    ProcessState.IDLE: {ProcessState.RUNNING},
    ProcessState.RUNNING: {ProcessState.PAUSED, ProcessState.HALTED, ProcessState.TERMINATED},
    ProcessState.PAUSED: {ProcessState.RUNNING, ProcessState.HALTED, ProcessState.TERMINATED},
    ProcessState.HALTED: {ProcessState.TERMINATED},
    ProcessState.TERMINATED: set(),
}


class Process:
    """Cooperative executor for one block program."""

    def __init__(
        self,
        program: Optional[ProgramSource] = None,
        scheduler: Optional[Scheduler] = None,
        *,
        config: Optional[ProcessConfig] = None,
        event_bus: Optional[EventBus] = None,
        breakpoint_predicate: Optional[BreakpointPredicate] = None,
    ) -> None:
        self.program = program
        self.scheduler: Scheduler = scheduler if scheduler is not None else ThreadScheduler()
        self.config = config or ProcessConfig()
        self.event_bus = event_bus
        self.breakpoint_predicate = breakpoint_predicate
        self.lock = threading.RLock()

        self.strands: List[Strand] = []
        self._current_index = 0
        self._slice_used = 0
        self._next_sid = 0

        self._state = ProcessState.IDLE
        self._started = False
        self.should_break = bool(self.config.breakpoints)
        self._rate = float(self.config.rate_ms)
        self.time_slice = self.config.time_slice

        self._pending: Optional[ScheduledCall] = None
        self._pending_token = 0
        self._stepping = False
        self._break_skip: Optional[Tuple[int, Instruction]] = None

        self.total_steps = 0
        self.event_history: Deque[Dict[str, Any]] = deque(maxlen=self.config.history_size)
        self._event_seq = 1

    # ------------------------------------------------------------------
    # read-only state

    @property
    def state(self) -> ProcessState:
        return self._state

    @property
    def started(self) -> bool:
        return self._started

    @property
    def paused(self) -> bool:
        return self._state is ProcessState.PAUSED

    @property
    def halted(self) -> bool:
        return self._state is ProcessState.HALTED

    @property
    def terminated(self) -> bool:
        return self._state is ProcessState.TERMINATED

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def current_strand(self) -> Optional[Strand]:
        if not self.strands:
            return None
        return self.strands[self._current_index % len(self.strands)]

    # ------------------------------------------------------------------
    # lifecycle

    def start(self, entry: Optional[Instruction] = None) -> "Process":
        """Start asynchronous execution.  Can only be called once."""
        with self.lock:
            if self._started:
                raise AlreadyStartedError("process already started")
            sid = self._next_sid
            if entry is None:
                if self.program is None:
                    raise MalformedProgramError("no program source and no entry instruction")
                strand = Strand.create_root(self.program, sid=sid)
            else:
                strand = Strand.create(entry, sid=sid)
            # Schedule first: a scheduler that refuses the call leaves the process untouched.
            self._schedule(0)
            self._next_sid += 1
            self._started = True
            self.strands = [] if strand.halted else [strand]
            self._current_index = 0
            self._slice_used = 0
            self._transition(ProcessState.RUNNING, reason="start")
            if not strand.halted:
                self.emit_event("strand", strand=strand.sid, action="spawned", instruction=describe(strand.current_instruction))
        return self

    def resume_async(self) -> "Process":
        """Resume executing as soon as the scheduler allows.

        A pending step is replaced rather than duplicated.
        """
        with self.lock:
            self._require_live("resume")
            if self._state is ProcessState.HALTED:
                logger.debug("resume ignored: process halted")
                return self
            self._schedule(0)
            if self._state is ProcessState.PAUSED:
                self._transition(ProcessState.RUNNING, reason="resume")
        return self

    def pause(self) -> "Process":
        """Stop before the next instruction."""
        with self.lock:
            self._require_live("pause")
            self._cancel_pending()
            if self._state is ProcessState.RUNNING:
                self._transition(ProcessState.PAUSED, reason="pause")
        return self

    def set_rate(self, rate: Optional[float] = None) -> "Process":
        """Set the delay between instructions in ms; no argument means unlimited."""
        with self.lock:
            if self.terminated:
                raise TerminatedError("set_rate on a terminated process")
            self._rate = 0.0 if rate is None else coerce_rate(rate)
            logger.debug("rate set to %sms", self._rate)
        return self

    def terminate(self, on_done: Optional[DoneCallback] = None) -> "Process":
        """Stop execution for good and release every strand.

        ``on_done(process)`` runs exactly once, after cleanup.
        """
        with self.lock:
            if not self._started:
                raise NotStartedError("terminate before start")
            if self.terminated:
                raise TerminatedError("process already terminated")
            self._cancel_pending()
            released = len(self.strands)
            self.strands = []
            self._current_index = 0
            self._break_skip = None
            self._transition(ProcessState.TERMINATED, reason="terminate")
            logger.info("process terminated after %d steps (%d strand(s) released)", self.total_steps, released)
        if on_done is not None:
            on_done(self)
        return self

    def enable_breakpoints(self) -> "Process":
        self.should_break = True
        return self

    def disable_breakpoints(self) -> "Process":
        self.should_break = False
        return self

    def spawn(self, entry: Instruction, scope: Optional[Scope] = None) -> Strand:
        """Add a derived strand starting at ``entry`` to the live set."""
        with self.lock:
            self._require_live("spawn")
            if self._state is ProcessState.HALTED:
                raise HaltedError("cannot spawn on a halted process")
            strand = Strand.create(entry, scope, sid=self._next_sid)
            self._next_sid += 1
            self.strands.append(strand)
            self.emit_event("strand", strand=strand.sid, action="spawned", instruction=describe(entry))
            if self._state is ProcessState.RUNNING and self._pending is None and not self._stepping:
                self._schedule(0)
            return strand

    def step(self) -> Dict[str, Any]:
        """Execute exactly one instruction on a paused process.

        Breakpoints are not consulted; no further step is scheduled.
        """
        with self.lock:
            self._require_live("step")
            if self._state is ProcessState.RUNNING:
                raise LifecycleError("step requires a paused process")
            mark = self._event_seq
            if self._state is ProcessState.HALTED:
                return self._step_result(mark, executed=0, strand=None, has_next=False)
            return self._execute_step(manual=True)

    # ------------------------------------------------------------------
    # introspection

    def info(self) -> Dict[str, Any]:
        with self.lock:
            current = self.current_strand
            return {
                "state": self._state.value,
                "started": self._started,
                "paused": self.paused,
                "terminated": self.terminated,
                "rate_ms": self._rate,
                "breakpoints": self.should_break,
                "time_slice": self.time_slice,
                "total_steps": self.total_steps,
                "pending": self.pending,
                "current_strand": current.sid if current is not None else None,
                "strands": [strand.snapshot() for strand in self.strands],
            }

    def get_events(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if limit is None or limit <= 0 or limit >= len(self.event_history):
            return list(self.event_history)
        return list(self.event_history)[-limit:]

    def emit_event(self, event_type: str, *, strand: Optional[int] = None, **data: Any) -> Dict[str, Any]:
        event = {
            "seq": self._event_seq,
            "ts": time.time(),
            "type": event_type,
            "strand": strand,
            "data": data,
        }
        self._event_seq += 1
        self.event_history.append(event)
        if self.event_bus is not None:
            self.event_bus.publish(event)
        return event

    # ------------------------------------------------------------------
    # internals

    def _require_live(self, operation: str) -> None:
        if not self._started:
            raise NotStartedError(f"{operation} before start")
        if self.terminated:
            raise TerminatedError(f"{operation} on a terminated process")

    def _transition(self, new: ProcessState, *, reason: str) -> None:
        previous = self._state
        if new is previous:
            return
        if new not in _ALLOWED_STATE_TRANSITIONS[previous]:
            raise PreconditionViolation(f"illegal state transition {previous.value} -> {new.value}")
        self._state = new
        logger.info("process %s -> %s (%s)", previous.value, new.value, reason)
        self.emit_event("process_state", prev_state=previous.value, new_state=new.value, reason=reason)

    def _schedule(self, delay_ms: float) -> None:
        self._cancel_pending()
        token = self._pending_token
        self._pending = self.scheduler.call_later(delay_ms, functools.partial(self._run_scheduled, token))

    def _cancel_pending(self) -> None:
        # Bumping the token also disarms a callback that already left the scheduler.
        self._pending_token += 1
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _run_scheduled(self, token: int) -> None:
        with self.lock:
            if token != self._pending_token:
                logger.debug("stale step callback ignored")
                return
            self._pending = None
            self._next_step()

    def _next_step(self) -> Dict[str, Any]:
        mark = self._event_seq
        if self._state is not ProcessState.RUNNING:
            return self._step_result(mark, executed=0, strand=None, has_next=False)
        return self._execute_step(manual=False)

    def _execute_step(self, *, manual: bool) -> Dict[str, Any]:
        mark = self._event_seq
        if not self.strands:
            self._halt()
            return self._step_result(mark, executed=0, strand=None, has_next=False)

        strand = self._select_strand()
        instruction = strand.current_instruction
        if not manual and self.should_break and self._breakpoint_hit(strand, instruction):
            self._break_skip = (strand.sid, instruction)
            self._cancel_pending()
            self._transition(ProcessState.PAUSED, reason="breakpoint")
            logger.info("breakpoint hit: strand %d at %s", strand.sid, describe(instruction))
            self.emit_event("debug_break", strand=strand.sid, instruction=describe(instruction), reason="breakpoint")
            return self._step_result(mark, executed=0, strand=strand.sid, has_next=True)
        self._break_skip = None

        steps_before = strand.steps
        self._stepping = True
        try:
            has_next = strand.advance()
        except Exception as exc:
            logger.exception("strand %d failed at %s", strand.sid, describe(instruction))
            self._cancel_pending()
            if strand.steps > steps_before:
                self.total_steps += 1
            self.emit_event("error", strand=strand.sid, error=str(exc), kind=type(exc).__name__)
            if self.terminated:
                raise
            if strand.halted:
                # Broken successor: the instruction ran but the strand is dead.
                self._retire(strand)
            if not self.strands:
                self._halt()
            elif self._state is ProcessState.RUNNING:
                self._transition(ProcessState.PAUSED, reason="error")
            raise
        finally:
            self._stepping = False

        self.total_steps += 1
        self._slice_used += 1
        logger.debug("strand %d executed %s", strand.sid, describe(instruction))
        self.emit_event(
            "step",
            strand=strand.sid,
            instruction=describe(instruction),
            next=describe(strand.current_instruction),
            has_next=has_next,
            steps=strand.steps,
        )
        if self.terminated:
            # The instruction terminated its own process; strands are already released.
            return self._step_result(mark, executed=1, strand=strand.sid, has_next=has_next)
        if not has_next:
            self._retire(strand)

        if self._state in (ProcessState.RUNNING, ProcessState.PAUSED) and not self.strands:
            self._halt()
        elif self._state is ProcessState.RUNNING and not manual:
            self._schedule(self._rate)
        return self._step_result(mark, executed=1, strand=strand.sid, has_next=has_next)

    def _select_strand(self) -> Strand:
        count = len(self.strands)
        if self._current_index >= count:
            self._current_index = 0
        if self._slice_used >= self.time_slice:
            self._slice_used = 0
            if count > 1:
                previous = self.strands[self._current_index]
                self._current_index = (self._current_index + 1) % count
                upcoming = self.strands[self._current_index]
                self.emit_event(
                    "scheduler",
                    strand=upcoming.sid,
                    prev_strand=previous.sid,
                    next_strand=upcoming.sid,
                    reason="rotate",
                )
        return self.strands[self._current_index]

    def _breakpoint_hit(self, strand: Strand, instruction: Optional[Instruction]) -> bool:
        if instruction is None:
            return False
        skip = self._break_skip
        if skip is not None and skip[0] == strand.sid and skip[1] is instruction:
            return False
        predicate = self.breakpoint_predicate or has_breakpoint
        return bool(predicate(instruction))

    def _retire(self, strand: Strand) -> None:
        index = self.strands.index(strand)
        del self.strands[index]
        # The following strand slid into this index, so it runs next.
        self._slice_used = 0
        if self._current_index >= len(self.strands):
            self._current_index = 0
        logger.info("strand %d halted after %d steps", strand.sid, strand.steps)
        self.emit_event("strand", strand=strand.sid, action="halted", steps=strand.steps)

    def _halt(self) -> None:
        self._cancel_pending()
        self._transition(ProcessState.HALTED, reason="no live strands")

    def _step_result(self, mark: int, *, executed: int, strand: Optional[int], has_next: bool) -> Dict[str, Any]:
        return {
            "executed": executed,
            "strand": strand,
            "has_next": has_next,
            "paused": self.paused,
            "state": self._state.value,
            "events": [event for event in self.event_history if event["seq"] >= mark],
        }


__all__ = ["Process", "ProcessState", "BreakpointPredicate", "DoneCallback"]
