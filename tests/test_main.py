from __future__ import annotations

import pytest

from qcp_browser import __version__, config
from qcp_browser.main import build_parser


def test_defaults_come_from_config() -> None:
    args = build_parser().parse_args([])
    assert args.endpoint == config.ENDPOINT
    assert args.location == config.LOCATION
    assert args.timeout_ms == config.REQUEST_TIMEOUT_MS


def test_overrides() -> None:
    args = build_parser().parse_args(
        ["--endpoint", "ws://box:9000/session", "--hostname", "me@box", "--timeout-ms", "250"]
    )
    assert args.endpoint == "ws://box:9000/session"
    assert args.hostname == "me@box"
    assert args.timeout_ms == 250


def test_version_flag(capsys) -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--version"])
    assert __version__ in capsys.readouterr().out


def test_executable_flag() -> None:
    assert build_parser().parse_args([]).executable == config.EXECUTABLE
    assert build_parser().parse_args(["--executable", "/opt/qcp"]).executable == "/opt/qcp"
