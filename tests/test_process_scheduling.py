import pytest

from strands.config import ProcessConfig
from strands.errors import InvalidArgumentError
from strands.instruction import Block, Program, chain
from strands.process import Process

from tests.stubs import make_chain, make_program


class LeakyScheduler:
    """Scheduler whose cancel() arrives too late: callbacks always survive."""

    def __init__(self):
        self.callbacks = []

    def call_later(self, delay_ms, callback):
        self.callbacks.append(callback)
        return self

    def cancel(self):
        pass


def test_unlimited_rate_schedules_back_to_back(make_process, scheduler):
    program, _ = make_program("A", "B", "C")
    process = make_process(program)
    process.set_rate()
    process.start()
    scheduler.run_until_idle()
    assert scheduler.delays == [0, 0, 0]
    assert scheduler.now == 0


def test_positive_rate_delays_each_following_step(make_process, scheduler):
    program, log = make_program("A", "B", "C")
    process = make_process(program)
    process.set_rate(5)
    process.start()
    scheduler.run_until_idle()
    assert log == ["A", "B", "C"]
    # first step goes out immediately, the rest wait `rate` ms each
    assert scheduler.delays == [0, 5, 5]
    assert scheduler.now == 10


def test_rate_change_applies_to_next_delay_only(make_process, scheduler):
    program, _ = make_program("A", "B", "C")
    process = make_process(program)
    process.start()
    scheduler.run_next()
    process.set_rate(7)
    scheduler.run_until_idle()
    assert scheduler.delays == [0, 0, 7]


@pytest.mark.parametrize("bad", [0, -1, -0.5, "abc", "", float("nan"), float("inf"), True, [1]])
def test_set_rate_rejects_non_positive_values(make_process, bad):
    process = make_process(make_program("A")[0])
    with pytest.raises(InvalidArgumentError):
        process.set_rate(bad)
    assert process.rate == 0


def test_set_rate_accepts_numeric_strings(make_process):
    process = make_process(make_program("A")[0])
    process.set_rate("2.5")
    assert process.rate == 2.5
    process.set_rate()
    assert process.rate == 0


def test_config_rate_is_initial_rate(make_process, scheduler):
    program, _ = make_program("A", "B")
    process = make_process(program, config=ProcessConfig(rate_ms=4))
    process.start()
    scheduler.run_until_idle()
    assert scheduler.delays == [0, 4]


def test_strands_round_robin_one_step_each(make_process, scheduler):
    program, log = make_program("A1", "A2", "A3")
    process = make_process(program)
    process.start()
    process.spawn(make_chain("B1", "B2"), scope={"log": log})
    scheduler.run_until_idle()
    assert log == ["A1", "B1", "A2", "B2", "A3"]
    assert process.halted
    rotations = [event for event in process.event_history if event["type"] == "scheduler"]
    assert rotations[0]["data"] == {"prev_strand": 0, "next_strand": 1, "reason": "rotate"}


def test_time_slice_controls_rotation(make_process, scheduler):
    program, log = make_program("A1", "A2", "A3")
    process = make_process(program, config=ProcessConfig(time_slice=2))
    process.start()
    process.spawn(make_chain("B1", "B2", "B3"), scope={"log": log})
    scheduler.run_until_idle()
    assert log == ["A1", "A2", "B1", "B2", "A3", "B3"]


def test_halted_strand_is_removed_and_sibling_continues(make_process, scheduler):
    program, log = make_program("A1")
    process = make_process(program)
    process.start()
    sibling = process.spawn(make_chain("B1", "B2", "B3"), scope={"log": log})
    scheduler.run_next()
    assert log == ["A1"]
    assert process.strands == [sibling]
    assert process.current_strand is sibling
    scheduler.run_until_idle()
    assert log == ["A1", "B1", "B2", "B3"]
    assert process.halted
    halted = [event["strand"] for event in process.event_history if event["data"].get("action") == "halted"]
    assert halted == [0, 1]


def test_spawn_from_inside_a_step(make_process, scheduler):
    log = []
    holder = {}

    def fork(scope):
        log.append("A")
        holder["process"].spawn(make_chain("Z"), scope={"log": log})

    entry = chain(Block(fork, name="A"), Block(lambda scope: log.append("B"), name="B"))
    process = make_process(Program(entry))
    holder["process"] = process
    process.start()
    scheduler.run_until_idle()
    assert log == ["A", "Z", "B"]
    assert scheduler.delays == [0, 0, 0]


def test_spawn_while_paused_waits_for_resume(make_process, scheduler):
    program, log = make_program("A")
    process = make_process(program)
    process.start()
    process.pause()
    strand = process.spawn(make_chain("B"), scope={"log": log})
    assert strand.sid == 1
    assert scheduler.pending == 0
    process.resume_async()
    scheduler.run_until_idle()
    assert sorted(log) == ["A", "B"]


def test_stale_callback_after_pause_is_ignored():
    leaky = LeakyScheduler()
    program, log = make_program("A", "B")
    process = Process(program, leaky)
    process.start()
    process.pause()
    leaky.callbacks[0]()
    assert log == []
    process.resume_async()
    leaky.callbacks[0]()
    assert log == []
    leaky.callbacks[1]()
    assert log == ["A"]


def test_events_describe_a_full_run(make_process, scheduler):
    program, _ = make_program("A", "B")
    process = make_process(program)
    process.start()
    scheduler.run_until_idle()
    types = [event["type"] for event in process.event_history]
    assert types == ["process_state", "strand", "step", "step", "strand", "process_state"]
    seqs = [event["seq"] for event in process.event_history]
    assert seqs == sorted(seqs)
    assert process.get_events(2)[-1]["data"]["new_state"] == "halted"
