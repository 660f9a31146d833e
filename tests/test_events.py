import time

import pytest

from strands.events import (
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

from tests.stubs import make_chain, make_program


def _raw(event_type, strand=None, seq=1, **data):
    return {"seq": seq, "ts": 1.5, "type": event_type, "strand": strand, "data": data}


@pytest.mark.parametrize(
    "event_type,cls",
    [
        ("process_state", ProcessStateEvent),
        ("step", StepEvent),
        ("strand", StrandEvent),
        ("scheduler", SchedulerEvent),
        ("debug_break", DebugBreakEvent),
        ("error", ErrorEvent),
        ("mystery", BaseEvent),
    ],
)
def test_parse_event_types(event_type, cls):
    event = parse_event(_raw(event_type, strand="2"))
    assert type(event) is cls
    assert event.strand == 2
    assert event.ts == 1.5


def test_parse_step_event_fields():
    event = parse_event(_raw("step", strand=0, instruction="A", next="B", has_next=True, steps="3"))
    assert event.instruction == "A"
    assert event.next_instruction == "B"
    assert event.has_next is True
    assert event.steps == 3


def test_parse_event_tolerates_missing_fields():
    event = parse_event({"type": "error"})
    assert event.seq == 0
    assert event.strand is None
    assert event.error == ""


def test_bus_filters_by_category_and_strand():
    bus = EventBus()
    steps, strand_one = [], []
    bus.subscribe(steps.append, categories=["step"])
    bus.subscribe(strand_one.append, strand=1)
    bus.publish(_raw("step", strand=0, seq=1))
    bus.publish(_raw("step", strand=1, seq=2))
    bus.publish(_raw("strand", strand=1, seq=3, action="halted"))
    assert bus.pump() == 4
    assert [event.seq for event in steps] == [1, 2]
    assert [event.seq for event in strand_one] == [2, 3]


def test_publish_returns_typed_event():
    bus = EventBus()
    event = bus.publish(_raw("debug_break", strand=0, instruction="B", reason="breakpoint"))
    assert isinstance(event, DebugBreakEvent)
    assert event.instruction == "B"


def test_full_mailbox_drops_oldest_and_counts():
    bus = EventBus()
    received = []
    sub = bus.subscribe(received.append, queue_size=2)
    for seq in range(1, 4):
        bus.publish(_raw("step", seq=seq))
    assert sub.pending == 2
    assert sub.dropped == 1
    bus.pump()
    assert [event.seq for event in received] == [2, 3]
    assert sub.pending == 0


def test_queue_size_must_be_positive():
    with pytest.raises(ValueError):
        EventSubscription(print, queue_size=0)


def test_closed_subscription_receives_nothing():
    bus = EventBus()
    received = []
    sub = bus.subscribe(received.append)
    sub.close()
    sub.close()
    bus.publish(_raw("step"))
    assert bus.pump() == 0
    assert received == []


def test_process_publishes_to_bus(make_process, scheduler):
    bus = EventBus()
    received = []
    bus.subscribe(received.append, categories=["step", "strand"])
    program, log = make_program("A")
    process = make_process(program, event_bus=bus)
    process.start()
    process.spawn(make_chain("B"), scope={"log": log})
    scheduler.run_until_idle()
    bus.pump()
    kinds = [(event.type, event.strand) for event in received]
    assert kinds.count(("step", 0)) == 1
    assert kinds.count(("step", 1)) == 1
    halted = [event.strand for event in received if isinstance(event, StrandEvent) and event.action == "halted"]
    assert sorted(halted) == [0, 1]


def test_background_dispatcher_delivers():
    bus = EventBus()
    received = []
    bus.subscribe(received.append)
    bus.start(interval=0.005)
    assert bus.running
    try:
        bus.publish(_raw("step"))
        deadline = time.monotonic() + 2.0
        while not received and time.monotonic() < deadline:
            time.sleep(0.005)
    finally:
        bus.stop()
    assert len(received) == 1
    assert not bus.running
