"""Output helpers for strands-dbg."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from strands.events import BaseEvent, DebugBreakEvent, ErrorEvent, EventSubscription, ProcessStateEvent

from .context import DebuggerContext


def _json_dump(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)


def emit_result(ctx: DebuggerContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit a successful command result."""
    if ctx.json_output:
        payload: Dict[str, Any] = {"status": "ok"}
        if data is not None:
            payload["result"] = data
        else:
            payload["message"] = message
        print(_json_dump(payload))
    else:
        print(message)


def emit_error(ctx: DebuggerContext, *, message: str, data: Optional[Mapping[str, Any]] = None) -> None:
    """Emit an error message respecting JSON mode."""
    payload: Dict[str, Any] = {"status": "error", "error": message}
    if data:
        payload["details"] = dict(data)
    if ctx.json_output:
        print(_json_dump(payload))
    else:
        print(f"error: {message}")


def render_strand_table(strands: Sequence[Mapping[str, Any]], *, current: Optional[int] = None) -> None:
    """Print a strand table."""
    if not strands:
        print("  strands: (none)")
        return
    header = "      SID   Steps     Instruction"
    print("  strands:")
    print(header)
    print("      " + "-" * (len(header) - 6))
    for strand in strands:
        sid = strand.get("sid", "-")
        steps = strand.get("steps", "-")
        instruction = strand.get("instruction") or "-"
        marker = "*" if current is not None and sid == current else " "
        print(f"    {marker} {sid!s:4}  {steps!s:>8}  {instruction}")


def render_info(info: Mapping[str, Any]) -> None:
    print(f"  state={info.get('state')} steps={info.get('total_steps')} rate={info.get('rate_ms')}ms")
    for key in ("breakpoints", "time_slice", "pending", "current_strand"):
        if key in info:
            print(f"    {key:<16}: {info.get(key)}")


def format_notice(event: BaseEvent) -> Optional[str]:
    """One-line notice for events worth interrupting the prompt for, else None."""
    if isinstance(event, DebugBreakEvent):
        return f"[break] strand {event.strand} stopped before {event.instruction}"
    if isinstance(event, ErrorEvent):
        return f"[error] strand {event.strand}: {event.kind}: {event.error}"
    if isinstance(event, ProcessStateEvent) and event.new_state in ("paused", "halted", "terminated"):
        return f"[state] {event.prev_state} -> {event.new_state} ({event.reason})"
    return None


NOTICE_CATEGORIES = ("debug_break", "error", "process_state")


def attach_notices(ctx: DebuggerContext, printer: Callable[[str], None] = print) -> EventSubscription:
    """Print notices for the context's processes; silent in JSON mode."""

    def _handle(event: BaseEvent) -> None:
        line = format_notice(event)
        if line is not None and not ctx.json_output:
            printer(line)

    return ctx.event_bus.subscribe(_handle, categories=NOTICE_CATEGORIES)


def render_event(event: Mapping[str, Any]) -> str:
    data = event.get("data") or {}
    fields = " ".join(f"{key}={value}" for key, value in data.items())
    strand = event.get("strand")
    where = f" strand={strand}" if strand is not None else ""
    return f"#{event.get('seq')} {event.get('type')}{where} {fields}".rstrip()


__all__ = [
    "emit_result",
    "emit_error",
    "render_strand_table",
    "render_info",
    "render_event",
    "format_notice",
    "attach_notices",
    "NOTICE_CATEGORIES",
]
