import pytest

from strands.config import ENV_BREAKPOINTS, ENV_HISTORY, ENV_RATE_MS, ENV_TIME_SLICE
from strands_dbg.cli import build_arg_parser, main
from strands_dbg.parser import CommandParseError, split_command, split_commands


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (ENV_RATE_MS, ENV_BREAKPOINTS, ENV_TIME_SLICE, ENV_HISTORY, "STRANDS_DBG_PROGRAM"):
        monkeypatch.delenv(name, raising=False)


def test_split_command_tokens():
    assert split_command("step 3") == ["step", "3"]
    assert split_command("") == []
    assert split_command("   # just a comment") == []
    assert split_command("events ' 10'") == ["events", " 10"]


def test_split_commands_on_semicolons():
    assert split_commands("start --paused;step 2 ; ; info") == [["start", "--paused"], ["step", "2"], ["info"]]
    with pytest.raises(CommandParseError):
        split_command("start; info")


def test_unbalanced_quotes_raise_parse_error():
    with pytest.raises(CommandParseError):
        split_commands('rate "5')


def test_arg_parser_defaults(tmp_path):
    args = build_arg_parser().parse_args(["--history", str(tmp_path / "hist")])
    assert args.program == "strands_dbg.sample:build"
    assert args.rate is None
    assert args.breakpoints is False
    assert args.command is None


def test_command_mode_runs_in_order(capsys, tmp_path):
    rc = main(["-c", "start --paused", "-c", "step 2", "-c", "info", "--history", str(tmp_path / "hist")])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Started process (paused)" in out
    assert "Stepped 2 instruction(s) (paused)" in out
    assert "state=paused steps=2" in out


def test_command_mode_stops_at_first_failure(capsys):
    rc = main(["-c", "pause", "-c", "start"])
    assert rc == 1
    out = capsys.readouterr().out
    assert "pause failed" in out
    assert "Started" not in out


def test_unknown_command(capsys):
    assert main(["-c", "warp 9"]) == 1
    assert "error: unknown command: warp" in capsys.readouterr().out


def test_exit_command_returns_zero():
    assert main(["-c", "start --paused", "-c", "exit"]) == 0


def test_bad_program_exits_with_usage_error(capsys):
    assert main(["--program", "strands_dbg_missing_module:build", "-c", "info"]) == 2
    assert "error:" in capsys.readouterr().err


def test_bad_rate_exits_with_usage_error(capsys):
    assert main(["--rate", "-1", "-c", "info"]) == 2
    assert "rate must be a positive number" in capsys.readouterr().err


def test_breakpoints_flag_reaches_process(capsys):
    rc = main(["--breakpoints", "--json", "-c", "break"])
    assert rc == 0
    assert '"enabled": true' in capsys.readouterr().out


def test_joined_commands_and_state_notices(capsys):
    rc = main(["-c", "start --paused; step 1; info"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "[state] running -> paused (pause)" in out
    assert "state=paused steps=1" in out


def test_exit_stops_remaining_commands(capsys):
    assert main(["-c", "start --paused", "-c", "exit", "-c", "warp"]) == 0
    out = capsys.readouterr().out
    assert "Session closed after 0 step(s)" in out
    assert "unknown command" not in out
