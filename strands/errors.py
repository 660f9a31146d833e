"""Exception taxonomy for the strands engine."""

from __future__ import annotations


class StrandsError(RuntimeError):
    """Base class for every error raised by the engine."""


class PreconditionViolation(StrandsError):
    """Raised when an internal invariant is broken (e.g. stepping a halted strand)."""


class MalformedProgramError(StrandsError):
    """Raised when an instruction violates the execute/successor contract."""


class InvalidArgumentError(StrandsError, ValueError):
    """Raised for out-of-range rates and configuration values."""


class LifecycleError(StrandsError):
    """Raised when a Process operation is called in the wrong lifecycle phase."""


class AlreadyStartedError(LifecycleError):
    """Raised by a second call to ``Process.start``."""


class NotStartedError(LifecycleError):
    """Raised when a control operation is used before ``Process.start``."""


class TerminatedError(LifecycleError):
    """Raised when a terminated Process is used again."""


class HaltedError(LifecycleError):
    """Raised when new work is added to a Process that already halted."""


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
]
