"""
strands - cooperative step engine for block-based programs.

A Process advances one or more strands (instruction cursor + private scope)
through host-supplied instruction nodes, one instruction per step, at a
controllable rate.  Each module is implemented in its own file:

    errors.py       → exception taxonomy
    instruction.py  → execute/successor capability and host-side helpers
    strand.py       → the execution cursor
    scheduler.py    → deferred-callback primitives (manual, asyncio, thread)
    process.py      → lifecycle, step loop, breakpoints, strand switching
    events.py       → typed events and the event bus
    config.py       → ProcessConfig and environment defaults
"""

from .errors import (  # noqa: F401
    AlreadyStartedError,
    HaltedError,
    InvalidArgumentError,
    LifecycleError,
    MalformedProgramError,
    NotStartedError,
    PreconditionViolation,
    StrandsError,
    TerminatedError,
)
from .instruction import Block, Instruction, Program, ProgramSource, chain, is_instruction  # noqa: F401
from .strand import Strand  # noqa: F401
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler, ThreadScheduler  # noqa: F401
from .events import (  # noqa: F401
    BaseEvent,
    DebugBreakEvent,
    ErrorEvent,
    EventBus,
    EventSubscription,
    ProcessStateEvent,
    SchedulerEvent,
    StepEvent,
    StrandEvent,
    parse_event,
)
from .config import ProcessConfig  # noqa: F401
from .process import Process, ProcessState  # noqa: F401

__all__ = [
    "StrandsError",
    "PreconditionViolation",
    "MalformedProgramError",
    "InvalidArgumentError",
    "LifecycleError",
    "AlreadyStartedError",
    "NotStartedError",
    "TerminatedError",
    "HaltedError",
    "Instruction",
    "ProgramSource",
    "Block",
    "Program",
    "chain",
    "is_instruction",
    "Strand",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "ThreadScheduler",
    "EventBus",
    "EventSubscription",
    "BaseEvent",
    "ProcessStateEvent",
    "StepEvent",
    "StrandEvent",
    "SchedulerEvent",
    "DebugBreakEvent",
    "ErrorEvent",
    "parse_event",
    "ProcessConfig",
    "Process",
    "ProcessState",
]

__version__ = "0.1.0"
