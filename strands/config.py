"""Process configuration."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .errors import InvalidArgumentError

ENV_RATE_MS = "STRANDS_RATE_MS"
ENV_BREAKPOINTS = "STRANDS_BREAKPOINTS"
ENV_TIME_SLICE = "STRANDS_TIME_SLICE"
ENV_HISTORY = "STRANDS_HISTORY"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def coerce_rate(value: Any) -> float:
    """Validate an explicit per-instruction delay in milliseconds.

    Accepts anything that converts to a finite float strictly above zero.
    """
    if isinstance(value, bool):
        raise InvalidArgumentError(f"rate must be a positive number, got {value!r}")
    try:
        rate = float(value)
    except (TypeError, ValueError):
        raise InvalidArgumentError(f"rate must be a positive number, got {value!r}") from None
    if not math.isfinite(rate) or rate <= 0:
        raise InvalidArgumentError(f"rate must be a positive number, got {value!r}")
    return rate


def _parse_bool(name: str, raw: str) -> bool:
    key = raw.strip().lower()
    if key in _TRUE_VALUES:
        return True
    if key in _FALSE_VALUES:
        return False
    raise InvalidArgumentError(f"{name}: expected a boolean, got {raw!r}")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise InvalidArgumentError(f"{name}: expected an integer, got {raw!r}") from None


@dataclass
class ProcessConfig:
    rate_ms: float = 0.0
    breakpoints: bool = False
    time_slice: int = 1
    history_size: int = 1024

    def __post_init__(self) -> None:
        # 0 means unlimited; anything else goes through the same check as set_rate().
        if self.rate_ms != 0:
            self.rate_ms = coerce_rate(self.rate_ms)
        else:
            self.rate_ms = 0.0
        if isinstance(self.time_slice, bool) or int(self.time_slice) < 1:
            raise InvalidArgumentError(f"time_slice must be >= 1, got {self.time_slice!r}")
        self.time_slice = int(self.time_slice)
        if int(self.history_size) < 0:
            raise InvalidArgumentError(f"history_size must be >= 0, got {self.history_size!r}")
        self.history_size = int(self.history_size)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "ProcessConfig":
        """Build a config from ``STRANDS_*`` variables; keyword overrides win."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get(ENV_RATE_MS):
            raw = env[ENV_RATE_MS]
            try:
                values["rate_ms"] = float(raw)
            except ValueError:
                raise InvalidArgumentError(f"{ENV_RATE_MS}: expected a number, got {raw!r}") from None
        if ENV_BREAKPOINTS in env:
            values["breakpoints"] = _parse_bool(ENV_BREAKPOINTS, env[ENV_BREAKPOINTS])
        if env.get(ENV_TIME_SLICE):
            values["time_slice"] = _parse_int(ENV_TIME_SLICE, env[ENV_TIME_SLICE])
        if env.get(ENV_HISTORY):
            values["history_size"] = _parse_int(ENV_HISTORY, env[ENV_HISTORY])
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


__all__ = ["ProcessConfig", "coerce_rate", "ENV_RATE_MS", "ENV_BREAKPOINTS", "ENV_TIME_SLICE", "ENV_HISTORY"]
