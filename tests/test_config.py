import pytest

from strands.config import (
    ENV_BREAKPOINTS,
    ENV_HISTORY,
    ENV_RATE_MS,
    ENV_TIME_SLICE,
    ProcessConfig,
    coerce_rate,
)
from strands.errors import InvalidArgumentError

from tests.stubs import make_program


def test_defaults():
    config = ProcessConfig()
    assert config.rate_ms == 0.0
    assert config.breakpoints is False
    assert config.time_slice == 1
    assert config.history_size == 1024


def test_coerce_rate():
    assert coerce_rate(3) == 3.0
    assert coerce_rate("0.5") == 0.5
    with pytest.raises(InvalidArgumentError):
        coerce_rate(0)
    with pytest.raises(InvalidArgumentError):
        coerce_rate(None)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"rate_ms": -1},
        {"rate_ms": "soon"},
        {"time_slice": 0},
        {"time_slice": True},
        {"history_size": -1},
    ],
)
def test_invalid_values_rejected(kwargs):
    with pytest.raises(InvalidArgumentError):
        ProcessConfig(**kwargs)


def test_from_env_reads_variables():
    env = {
        ENV_RATE_MS: "12.5",
        ENV_BREAKPOINTS: "yes",
        ENV_TIME_SLICE: "3",
        ENV_HISTORY: "16",
    }
    config = ProcessConfig.from_env(env)
    assert config == ProcessConfig(rate_ms=12.5, breakpoints=True, time_slice=3, history_size=16)


def test_from_env_overrides_win_and_none_is_ignored():
    env = {ENV_RATE_MS: "12.5", ENV_BREAKPOINTS: "on"}
    config = ProcessConfig.from_env(env, rate_ms=2, breakpoints=None, time_slice=None)
    assert config.rate_ms == 2
    assert config.breakpoints is True
    assert config.time_slice == 1


def test_from_env_empty_values_fall_back_to_defaults():
    config = ProcessConfig.from_env({ENV_RATE_MS: "", ENV_BREAKPOINTS: "", ENV_TIME_SLICE: ""})
    assert config == ProcessConfig()


@pytest.mark.parametrize(
    "env",
    [
        {ENV_RATE_MS: "fast"},
        {ENV_RATE_MS: "-4"},
        {ENV_BREAKPOINTS: "maybe"},
        {ENV_TIME_SLICE: "two"},
        {ENV_HISTORY: "lots"},
    ],
)
def test_from_env_rejects_bad_values(env):
    with pytest.raises(InvalidArgumentError):
        ProcessConfig.from_env(env)


def test_from_env_uses_process_environment(monkeypatch):
    monkeypatch.setenv(ENV_TIME_SLICE, "4")
    monkeypatch.delenv(ENV_RATE_MS, raising=False)
    monkeypatch.delenv(ENV_BREAKPOINTS, raising=False)
    monkeypatch.delenv(ENV_HISTORY, raising=False)
    assert ProcessConfig.from_env().time_slice == 4


def test_history_size_bounds_event_history(make_process, scheduler):
    program, _ = make_program("A", "B", "C", "D")
    process = make_process(program, config=ProcessConfig(history_size=3))
    process.start()
    scheduler.run_until_idle()
    assert len(process.event_history) == 3
    assert process.get_events()[-1]["data"]["new_state"] == "halted"
    assert len(process.get_events(1)) == 1
