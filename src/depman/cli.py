"""CLI entry point."""

import argparse
import sys
from pathlib import Path

from depman import __version__
from depman.config import apply_overrides, load_config
from depman.logging_setup import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depman",
        description="depman - manage the packages of a Python environment from the terminal",
    )
    parser.add_argument(
        "--dir",
        default=".",
        help="Project directory to manage (default: current directory)",
    )
    parser.add_argument("--mirror", help="Package index base URL (default: https://pypi.org)")
    parser.add_argument(
        "--manager",
        choices=["uv", "pip", "pip3"],
        help="Preferred package manager binary",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warn", "warning", "error"],
        help="Log level (default: info)",
    )
    parser.add_argument("--log-file", help="Log file path")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main() -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args()

    directory = Path(args.dir).expanduser()
    if not directory.is_dir():
        print(f"depman: not a directory: {directory}", file=sys.stderr)
        sys.exit(2)

    config = apply_overrides(
        load_config(),
        mirror=args.mirror,
        manager=args.manager,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    setup_logging(config.log_level, config.log_file)

    # Imported late so logging is configured before Textual loads
    from depman.app.main import DepmanApp, build_controller

    app = DepmanApp(build_controller(directory, config))
    app.run()


if __name__ == "__main__":
    main()
