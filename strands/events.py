"""Event bus utilities and typed event helpers for strands."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, FrozenSet, Iterable, List, Mapping, Optional


EventHandler = Callable[["BaseEvent"], None]

EVENT_TYPES = ("process_state", "step", "strand", "scheduler", "debug_break", "error")


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _header(event: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        ts = float(event.get("ts") or 0.0)
    except (TypeError, ValueError):
        ts = 0.0
    return {
        "seq": _optional_int(event.get("seq")) or 0,
        "ts": ts,
        "type": str(event.get("type") or ""),
        "strand": _optional_int(event.get("strand")),
        "data": dict(event.get("data") or {}),
    }


def parse_event(event: Mapping[str, Any]) -> BaseEvent:
    """Convert a raw process event dictionary into a typed dataclass.

    Unknown types come back as a plain :class:`BaseEvent`.
    """
    header = _header(event)
    data = header["data"]
    kind = header["type"]
    if kind == "process_state":
        return ProcessStateEvent(
            **header, prev_state=data.get("prev_state"), new_state=data.get("new_state"), reason=data.get("reason")
        )
    if kind == "step":
        return StepEvent(
            **header,
            instruction=data.get("instruction"),
            next_instruction=data.get("next"),
            has_next=bool(data.get("has_next")),
            steps=_optional_int(data.get("steps")),
        )
    if kind == "strand":
        return StrandEvent(**header, action=data.get("action"), instruction=data.get("instruction"))
    if kind == "scheduler":
        return SchedulerEvent(
            **header,
            prev_strand=_optional_int(data.get("prev_strand")),
            next_strand=_optional_int(data.get("next_strand")),
            reason=data.get("reason"),
        )
    if kind == "debug_break":
        return DebugBreakEvent(**header, instruction=data.get("instruction"), reason=data.get("reason"))
    if kind == "error":
        return ErrorEvent(**header, error=str(data.get("error") or ""), kind=data.get("kind"))
    return BaseEvent(**header)


@dataclass
class BaseEvent:
    seq: int
    ts: float
    type: str
    strand: Optional[int]
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ProcessStateEvent(BaseEvent):
    prev_state: Optional[str] = None
    new_state: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class StepEvent(BaseEvent):
    instruction: Optional[str] = None
    next_instruction: Optional[str] = None
    has_next: bool = False
    steps: Optional[int] = None


@dataclass
class StrandEvent(BaseEvent):
    action: Optional[str] = None
    instruction: Optional[str] = None


@dataclass
class SchedulerEvent(BaseEvent):
    prev_strand: Optional[int] = None
    next_strand: Optional[int] = None
    reason: Optional[str] = None


@dataclass
class DebugBreakEvent(BaseEvent):
    instruction: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class ErrorEvent(BaseEvent):
    error: str = ""
    kind: Optional[str] = None


class EventSubscription:
    """Filtered, bounded mailbox feeding one handler.

    Events are queued by :meth:`EventBus.publish` and handed to ``handler``
    on :meth:`drain`.  When the mailbox is full the oldest undelivered event
    is discarded and counted in ``dropped``.
    """

    def __init__(
        self,
        handler: EventHandler,
        *,
        categories: Optional[Iterable[str]] = None,
        strand: Optional[int] = None,
        queue_size: int = 256,
    ) -> None:
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size!r}")
        self.handler = handler
        self.categories: Optional[FrozenSet[str]] = frozenset(categories) if categories else None
        self.strand = strand
        self.dropped = 0
        self._events: Deque[BaseEvent] = deque(maxlen=queue_size)
        self._lock = threading.Lock()
        self._bus: Optional["EventBus"] = None

    def matches(self, event: BaseEvent) -> bool:
        if self.categories is not None and event.type not in self.categories:
            return False
        return self.strand is None or event.strand == self.strand

    def offer(self, event: BaseEvent) -> None:
        with self._lock:
            if len(self._events) == self._events.maxlen:
                self.dropped += 1
            self._events.append(event)

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._events)

    def drain(self) -> int:
        """Deliver every queued event; returns how many were delivered."""
        delivered = 0
        while True:
            with self._lock:
                if not self._events:
                    return delivered
                event = self._events.popleft()
            self.handler(event)
            delivered += 1

    def close(self) -> None:
        if self._bus is not None:
            self._bus.unsubscribe(self)


class EventBus:
    """Routes process events to subscriptions.

    ``publish`` only queues; handlers run on ``pump``, either called by the
    owner (tests, one-shot CLI) or by the dispatcher thread from ``start``.
    """

    def __init__(self) -> None:
        self._subs: List[EventSubscription] = []
        self._lock = threading.Lock()
        self._worker: Optional[threading.Thread] = None
        self._stopping = threading.Event()

    def subscribe(
        self,
        handler: EventHandler,
        *,
        categories: Optional[Iterable[str]] = None,
        strand: Optional[int] = None,
        queue_size: int = 256,
    ) -> EventSubscription:
        sub = EventSubscription(handler, categories=categories, strand=strand, queue_size=queue_size)
        sub._bus = self
        with self._lock:
            self._subs.append(sub)
        return sub

    def unsubscribe(self, sub: EventSubscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)
        sub._bus = None

    def publish(self, event: Mapping[str, Any]) -> BaseEvent:
        parsed = parse_event(event)
        with self._lock:
            targets = [sub for sub in self._subs if sub.matches(parsed)]
        for sub in targets:
            sub.offer(parsed)
        return parsed

    def pump(self) -> int:
        with self._lock:
            subs = list(self._subs)
        return sum(sub.drain() for sub in subs)

    @property
    def running(self) -> bool:
        return self._worker is not None and self._worker.is_alive()

    def start(self, interval: float = 0.01) -> None:
        if self.running:
            return
        self._stopping.clear()
        self._worker = threading.Thread(target=self._run, args=(interval,), name="strands-events", daemon=True)
        self._worker.start()

    def stop(self, timeout: float = 0.5) -> None:
        self._stopping.set()
        worker, self._worker = self._worker, None
        if worker is not None and worker.is_alive():
            worker.join(timeout=timeout)

    def _run(self, interval: float) -> None:
        while not self._stopping.wait(interval):
            self.pump()
        self.pump()


__all__ = [
    "EVENT_TYPES",
    "BaseEvent",
    "ProcessStateEvent",
    "StepEvent",
    "StrandEvent",
    "SchedulerEvent",
    "DebugBreakEvent",
    "ErrorEvent",
    "EventHandler",
    "EventSubscription",
    "EventBus",
    "parse_event",
]
