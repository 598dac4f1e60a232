from __future__ import annotations

import runpy
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "apps" / "cli"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

import rpistats_app.__main__ as module_entry
from rpistats_app.cli import build_parser


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        ([], ["all"]),
        (["--callback"], ["--callback", "all"]),
        (["--timeout", "2.5"], ["--timeout", "2.5", "all"]),
        (["clock", "arm"], ["clock", "arm"]),
        (["--timeout", "none", "uptime"], ["--timeout", "none", "uptime"]),
    ],
)
def test_subcommand_defaults_to_all(monkeypatch, argv, expected) -> None:
    seen: list[list[str]] = []
    monkeypatch.setattr(module_entry, "_cli_main", lambda args: seen.append(args) or 1)

    assert module_entry.main(argv) == 1
    assert seen == [expected]


def test_known_commands_match_parser() -> None:
    for command in module_entry.COMMANDS:
        args = build_parser().parse_args([command, "arm"] if command == "clock" else [command])
        assert args.command == command


def test_runs_as_plain_script() -> None:
    namespace = runpy.run_path(str(ROOT / "apps" / "cli" / "rpistats_app" / "__main__.py"))
    assert callable(namespace["with_default_command"])
