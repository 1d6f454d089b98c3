# tests/30-utils-tests/test_utils_logs.py

import re

import pytest

import crate_bundle.runtime as mod_runtime
import crate_bundle.utils_logs as mod_logs

ANSI_PATTERN = re.compile(r"\033\[[0-9;]*m")


def strip_ansi(s: str) -> str:
    """Remove ANSI escape sequences for color safety."""
    return ANSI_PATTERN.sub("", s)


def _emit(level: str, msg: str) -> None:
    logger = mod_logs.get_logger()
    getattr(logger, level)(msg)


@pytest.mark.parametrize(
    ("msg_level", "prefix"),
    [
        ("trace", "[TRACE] "),
        ("debug", "[DEBUG] "),
        ("info", ""),
        ("warning", "⚠️  "),
        ("error", "❌  "),
        ("critical", "💥  "),
    ],
)
def test_logs_go_to_stderr_with_tags(
    capsys: pytest.CaptureFixture[str], msg_level: str, prefix: str
) -> None:
    """Every level writes to stderr only; stdout is reserved for output."""
    # --- setup ---
    mod_logs.set_log_level("trace")

    # --- execute ---
    _emit(msg_level, f"msg:{msg_level}")

    # --- verify ---
    captured = capsys.readouterr()
    assert captured.out == ""
    assert strip_ansi(captured.err) == f"{prefix}msg:{msg_level}\n"


@pytest.mark.parametrize(
    ("runtime_level", "shown", "hidden"),
    [
        ("info", "info", "debug"),
        ("warning", "error", "info"),
        ("debug", "debug", "trace"),
    ],
)
def test_log_level_threshold(
    capsys: pytest.CaptureFixture[str],
    runtime_level: str,
    shown: str,
    hidden: str,
) -> None:
    # --- setup ---
    mod_logs.set_log_level(runtime_level)

    # --- execute ---
    _emit(shown, "visible")
    _emit(hidden, "invisible")

    # --- verify ---
    err = capsys.readouterr().err
    assert "visible" in err
    assert "invisible" not in err


def test_silent_suppresses_everything(capsys: pytest.CaptureFixture[str]) -> None:
    mod_logs.set_log_level("silent")
    _emit("critical", "boom")
    assert capsys.readouterr().err == ""


def test_color_tags(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setitem(mod_runtime.current_runtime, "use_color", True)
    _emit("warning", "careful")
    assert "\033[93m" in capsys.readouterr().err


def test_set_log_level_updates_runtime() -> None:
    mod_logs.set_log_level("debug")
    assert mod_runtime.current_runtime["log_level"] == "debug"
    assert mod_logs.get_log_level() == "debug"


def test_get_log_level_unknown_falls_back(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setitem(mod_runtime.current_runtime, "log_level", "loud")
    assert mod_logs.get_log_level() == "error"
