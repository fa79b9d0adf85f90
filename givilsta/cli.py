"""Command line interface: drop whitelisted subjects from a blocklist."""

from __future__ import annotations

import argparse
import json
import logging
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from givilsta.helpers import (
    copy_file,
    fetch_url_to_file,
    is_url,
    iter_file,
    write_file_from_iter,
)
from givilsta.ruler import Flag, GivilstaRuler

PROJECT_VERSION = "dev"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
}

_DESCRIPTION = """\
Givilsta is a tool designed to implement a different approach to whitelisting \
for maintainers of blocklists.

It tries to provide a more flexible and powerful approach to maintaining
whitelist lists for blocklist maintainers."""


class _Abort(Exception):
    """Stops the run after a message has been shown."""


@dataclass(frozen=True)
class _WhitelistKind:
    attribute: str
    flag: Optional[Flag]
    stem: str
    label: str


_KINDS = (
    _WhitelistKind("whitelist", None, "whitelist", "Whitelist"),
    _WhitelistKind("whitelist_all", Flag.ALL, "whitelist-all", "Whitelist ALL"),
    _WhitelistKind("whitelist_regex", Flag.REG, "whitelist-regex", "Whitelist REG"),
    _WhitelistKind("whitelist_rzdb", Flag.RZDB, "whitelist-rzdb", "Whitelist RZDB"),
)


class _JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname),
            "msg": record.getMessage(),
        }
        return json.dumps(payload, ensure_ascii=False)


def _csv(value: str) -> List[str]:
    return [item for item in value.split(",") if item]


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser of the main command."""
    parser = argparse.ArgumentParser(
        prog="givilsta",
        description="A different whitelisting mechanism for blocklist maintainers.",
        epilog=_DESCRIPTION + "\n\nUse 'givilsta version' to print the version.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-s", "--source", default="", help="The source file to cleanup."
    )
    parser.add_argument(
        "-w", "--whitelist", type=_csv, action="extend", default=[],
        help="The whitelist file to use for the cleanup. "
        "Can be specified multiple times.",
    )
    parser.add_argument(
        "-a", "--whitelist-all", type=_csv, action="extend", default=[],
        help="The whitelist file to use for the cleanup. Any entries in this "
        "file-s will be prefixed with the 'ALL' flag. "
        "Can be specified multiple times.",
    )
    parser.add_argument(
        "-r", "--whitelist-regex", type=_csv, action="extend", default=[],
        help="The whitelist file to use for the cleanup. Any entries in this "
        "file-s will be prefixed with the 'REG' flag. "
        "Can be specified multiple times.",
    )
    parser.add_argument(
        "-z", "--whitelist-rzdb", type=_csv, action="extend", default=[],
        help="The whitelist file to use for the cleanup. Any entries in this "
        "file-s will be prefixed with the 'RZDB' flag. "
        "Can be specified multiple times.",
    )
    parser.add_argument(
        "-o", "--output", default="",
        help="The output file to write the cleaned up subjects to. "
        "If not specified, we will print to stdout.",
    )
    parser.add_argument(
        "-c", "--handle-complement", action="store_true",
        help="Whether to handle complements subjects or not. A complement "
        "subject is www.example.com when the subject is example.com - and "
        "vice-versa.",
    )
    parser.add_argument(
        "-l", "--log-level", default="error",
        help="The log level to use. Can be one of: debug, info, warn, error.",
    )
    return parser


def _make_logger(level_name: str) -> logging.Logger:
    level = _LOG_LEVELS.get(level_name.lower())
    if level is None:
        print(
            f"Warning: Unrecognized log-level '{level_name}' from config. "
            "Defaulting to 'error'.",
            file=sys.stderr,
        )
        level = logging.ERROR

    logger = logging.getLogger("givilsta.cli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def _load_whitelists(
    ruler: GivilstaRuler,
    kind: _WhitelistKind,
    locations: Sequence[str],
    workdir: Path,
) -> None:
    logger = ruler.logger
    for index, location in enumerate(locations):
        if is_url(location):
            target = workdir / f"{kind.stem}-{index}.list"
            logger.debug("Fetching %s file from URL %r.", kind.label, location)
            try:
                fetch_url_to_file(location, target)
            except (ConnectionError, OSError) as exc:
                logger.error(
                    "Error fetching %s file from URL %r: %s", kind.label, location, exc
                )
                print(
                    f"Error fetching {kind.label.lower().replace('whitelist', 'whitelist', 1)} "
                    f"file from URL '{location}': {exc}"
                )
                raise _Abort from exc
            path = target
        else:
            path = Path(location)
            if not path.exists():
                logger.error("%s file %r does not exist.", kind.label, location)
                print(f"Error: {kind.label} file '{location}' does not exist.")
                raise _Abort

        logger.debug("Processing %s file %r.", kind.label, str(path))
        for line in iter_file(path):
            if kind.flag is None:
                ruler.add_rule(line)
            else:
                ruler.add_rule_with_flag(line, kind.flag)


def _kept_lines(ruler: GivilstaRuler, source: str) -> Iterator[str]:
    for line in iter_file(source):
        if line.strip() and ruler.is_subject_blacklisted(line):
            yield line


def _process_cleanup(args: argparse.Namespace, logger: logging.Logger) -> None:
    ruler = GivilstaRuler(args.handle_complement, logger)

    with tempfile.TemporaryDirectory(prefix="givilsta") as tmp:
        workdir = Path(tmp)

        for kind in _KINDS:
            _load_whitelists(ruler, kind, getattr(args, kind.attribute), workdir)

        if args.output:
            temp_output = workdir / "output.list"
            logger.debug("Writing output to file %r.", args.output)
            write_file_from_iter(temp_output, _kept_lines(ruler, args.source))

            # The temporary and output files may live on different filesystems.
            try:
                copy_file(temp_output, args.output)
            except OSError as exc:
                logger.error(
                    "Error copying temporary file %r to output file %r: %s",
                    str(temp_output), args.output, exc,
                )
                print(
                    f"Error copying temporary file '{temp_output}' to output "
                    f"file '{args.output}': {exc}"
                )
                raise _Abort from exc
        else:
            logger.debug("No output file specified, printing to stdout.")
            for line in _kept_lines(ruler, args.source):
                print(line)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line tool and return its exit status."""
    arguments = list(sys.argv[1:] if argv is None else argv)

    if arguments[:1] == ["version"]:
        print(f"Givilsta: {PROJECT_VERSION}")
        return 0

    args = build_parser().parse_args(arguments)

    if not args.source:
        print("Error: source must be specified.", file=sys.stderr)
        return 1

    if not any(getattr(args, kind.attribute) for kind in _KINDS):
        print("Error: at least one whitelist file must be specified.", file=sys.stderr)
        return 1

    logger = _make_logger(args.log_level)

    try:
        _process_cleanup(args, logger)
    except _Abort:
        return 1
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())