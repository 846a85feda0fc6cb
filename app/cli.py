"""Convert a Standard MIDI File into a JSON document."""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import TextIO

from app.config import AppConfig, load_app_config
from app.version import get_app_version
from midi_tools.converter import ConversionOptions
from midi_tools.exporters import export_json
from midi_tools.midi_import.models import StrictnessPolicy, TimestampMode
from services.conversion_service import ConversionService
from shared.logging_config import LogVerbosity, ensure_cli_logging

_LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="json-midi", description=__doc__)
    parser.add_argument("midi_file", metavar="FILE", type=Path, help="The file to convert.")
    parser.add_argument(
        "-m",
        "--meta",
        action="store_true",
        default=None,
        help="Include meta events.",
    )
    parser.add_argument(
        "-p",
        "--pretty",
        action="store_true",
        default=None,
        help="Emit prettified JSON.",
    )
    timing = parser.add_mutually_exclusive_group()
    timing.add_argument(
        "-d",
        "--delta",
        dest="timestamp_mode",
        action="store_const",
        const=TimestampMode.DELTA,
        help="Emit timing information as a delta instead of an absolute timestamp.",
    )
    timing.add_argument(
        "-a",
        "--absolute",
        dest="timestamp_mode",
        action="store_const",
        const=TimestampMode.ABSOLUTE,
        help="Emit absolute timestamps even when the configuration selects delta.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="File to write to, otherwise stdout.",
    )
    strictness = parser.add_mutually_exclusive_group()
    strictness.add_argument(
        "--strict",
        dest="strictness",
        action="store_const",
        const=StrictnessPolicy.STRICT,
        help="Fail on any malformed event.",
    )
    strictness.add_argument(
        "--relaxed",
        dest="strictness",
        action="store_const",
        const=StrictnessPolicy.RELAXED,
        help="Skip malformed events and keep decoding.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to an alternate JSON configuration file.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more detail to stderr (repeat for debug output).",
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Only log errors.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_app_version()}")
    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, config: AppConfig) -> ConversionOptions:
    defaults = config.conversion
    timestamp_mode = args.timestamp_mode or defaults.timestamp_mode
    include_meta = defaults.include_meta if args.meta is None else bool(args.meta)
    policy = args.strictness or defaults.strictness
    return ConversionOptions(timestamp_mode=timestamp_mode, include_meta=include_meta, policy=policy)


def resolve_verbosity(args: argparse.Namespace, config: AppConfig) -> LogVerbosity:
    if args.quiet:
        return LogVerbosity.ERROR
    if args.verbose >= 2:
        return LogVerbosity.VERBOSE
    if args.verbose == 1:
        return LogVerbosity.INFO
    return config.logging.verbosity


def main(
    argv: list[str] | None = None,
    *,
    service: ConversionService | None = None,
    stdout: TextIO | None = None,
) -> int:
    args = parse_args(argv)
    config = load_app_config(args.config)
    ensure_cli_logging(resolve_verbosity(args, config))

    options = build_options(args, config)
    service = service or ConversionService()
    result = service.convert_file(args.midi_file, options)
    if result.is_err():
        return EXIT_FAILURE

    pretty = config.output.pretty if args.pretty is None else bool(args.pretty)
    conversion = result.unwrap()
    try:
        with ExitStack() as stack:
            if args.output is not None:
                handle = stack.enter_context(args.output.open("w", encoding="utf-8"))
            else:
                handle = stdout if stdout is not None else sys.stdout
            export_json(
                conversion,
                handle,
                source_file=str(args.midi_file),
                pretty=pretty,
                indent=config.output.indent,
                generator=f"json-midi {get_app_version()}",
            )
    except OSError as exc:
        _LOGGER.error("Could not write output: %s", exc)
        return EXIT_FAILURE

    _LOGGER.info(
        "Wrote %d of %d event(s) from %s",
        conversion.events_emitted,
        conversion.events_processed,
        args.midi_file,
    )
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
