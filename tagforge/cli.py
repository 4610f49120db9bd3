"""CLI entrypoints for tagforge commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .errors import describe
from .logging import configure_logging
from .orchestrator import Orchestrator


def _add_logging_options(parser: argparse.ArgumentParser, *, subcommand: bool = False) -> None:
    # subcommands must not reset flags already given before the command name
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if subcommand else False,
        help="Log debug details of discovery and generation.",
    )
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if subcommand else None,
        help="Also write log records to this file.",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_logging_options(parser, subcommand=True)
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Root of the source tree to process (defaults to current directory).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a .tagforge.yml file (defaults to the one in PATH).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tagforge",
        description="Generate Python sources from classes tagged with marker bases.",
    )
    _add_logging_options(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser(
        "run",
        help="Strip markers, run the configured handlers and write all output.",
    )
    _add_common_options(run_parser)
    run_parser.add_argument(
        "--output",
        default=None,
        help="Write the transformed sources below this directory.",
    )
    run_parser.add_argument(
        "--suffix",
        default=None,
        help="Suffix inserted before .py in the names of transformed sources.",
    )

    tags_parser = subparsers.add_parser(
        "tags",
        help="List tagged declarations without generating anything.",
    )
    _add_common_options(tags_parser)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for tagforge commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    orchestrator = Orchestrator()

    try:
        config = orchestrator.load(args.path, args.config)
        if args.command == "run":
            result = orchestrator.run(
                args.path,
                config=config,
                output=args.output,
                suffix=args.suffix,
            )
        else:
            discovered = orchestrator.discover(args.path, config=config)
    except Exception as exc:
        parser.exit(1, f"tagforge {args.command} failed:\n{describe(exc)}\n")

    if args.command == "run":
        print(f"Processed {len(result.files)} file(s) with {result.handlers} handler(s)")
        if result.output is not None:
            print(f"Transformed sources written to {_relativize(result.output)}")
    else:
        for tag in discovered:
            annotation = f" [{tag.literal_tag}]" if tag.literal_tag else ""
            print(f"{tag.path}: {tag.declaration} <- {tag.tag_type}{annotation}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
