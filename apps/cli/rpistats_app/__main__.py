"""``python -m rpistats_app``: the rpistats CLI, running ``all`` when no subcommand is named."""

from __future__ import annotations

import sys

try:
    from .cli import COMMANDS, main as _cli_main
except ImportError:
    # Run as a plain script (runpy.run_path, frozen builds).
    from rpistats_app.cli import COMMANDS, main as _cli_main


def with_default_command(args: list[str]) -> list[str]:
    # Global options such as --callback may come without a subcommand.
    if any(arg in COMMANDS for arg in args):
        return list(args)
    return [*args, "all"]


def main(argv: list[str] | None = None) -> int:
    return int(_cli_main(with_default_command(sys.argv[1:] if argv is None else argv)))


if __name__ == "__main__":
    raise SystemExit(main())
