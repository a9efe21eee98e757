from __future__ import annotations

import argparse
import io
import logging
import os
import sys
from typing import TextIO

from .colors import should_use_color
from .config import Config, build_config, read_config_file
from .processor import Processor

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hl",
        description="Highlight fields of each input line with markers or colors.",
        epilog="Selectors are FIELD[:RANGE][:COLOR], e.g. '1', '1:red', '0:0..3:fixed(208)', '-1:size'.",
    )
    parser.add_argument("input", type=str, nargs="?", default="-", help="Input file path or '-' for stdin")
    parser.add_argument("-o", "--output", type=str, default="-", help="Output file path or '-' for stdout")
    parser.add_argument(
        "-f", "--field", dest="fields", action="append", metavar="SELECTOR",
        help="Field to highlight; may be given several times",
    )
    parser.add_argument(
        "-s", "--split", "-d", "--delimiter", dest="delimiter", metavar="DELIM",
        help="Field delimiter string (default: runs of whitespace)",
    )
    parser.add_argument("--skip", metavar="STR", help="Count fields only after the first occurrence of STR")
    parser.add_argument(
        "--one-based", dest="one_based", action="store_true", default=None,
        help="Number fields from 1 instead of 0",
    )
    parser.add_argument("--open", metavar="STR", help="Opening marker (default '(')")
    parser.add_argument("--close", metavar="STR", help="Closing marker (default ')')")
    parser.add_argument(
        "--color", choices=("auto", "always", "never"),
        help="Use ANSI colors for colored selectors (default auto)",
    )
    parser.add_argument("--yellow-size", dest="yellow_size", metavar="SIZE", help="Threshold for yellow in the 'size' color")
    parser.add_argument("--red-size", dest="red_size", metavar="SIZE", help="Threshold for red in the 'size' color")
    parser.add_argument("-c", "--config", type=str, help="Path to a YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug messages to stderr")
    return parser


def _load(parser: argparse.ArgumentParser, args: argparse.Namespace) -> Config:
    overrides = {
        key: getattr(args, key)
        for key in ("fields", "delimiter", "skip", "one_based", "open", "close", "color", "yellow_size", "red_size")
    }
    try:
        data = read_config_file(args.config) if args.config else {}
        cfg = build_config(data, overrides)
    except (OSError, ValueError) as e:
        parser.error(str(e))
    if not cfg.fields:
        parser.error("no fields selected, use -f or a config file")
    return cfg


def _utf8(stream: TextIO) -> None:
    # Fields are written as UTF-8 whatever the locale says
    if isinstance(stream, io.TextIOWrapper) and stream.encoding.lower().replace("-", "") != "utf8":
        stream.reconfigure(encoding="utf-8")


def _stdout_closed() -> None:
    # Python flushes stdout at exit; point it at devnull so that does not fail again
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, sys.stdout.fileno())


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    cfg = _load(parser, args)

    try:
        src = sys.stdin if args.input == "-" else open(args.input, "r", encoding="utf-8", newline="")
    except OSError as e:
        logger.error("cannot read %s: %s", args.input, e.strerror)
        return 1

    try:
        dst = sys.stdout if args.output == "-" else open(args.output, "w", encoding="utf-8", newline="")
        if dst is sys.stdout:
            _utf8(dst)
    except OSError as e:
        logger.error("cannot write %s: %s", args.output, e.strerror)
        if src is not sys.stdin:
            src.close()
        return 1

    processor = Processor.from_config(cfg, use_color=should_use_color(dst, cfg.color))
    try:
        processor.process_stream(src, dst)
        dst.flush()
        return 0
    except BrokenPipeError:
        if dst is sys.stdout:
            _stdout_closed()
        return 1
    except (OSError, UnicodeError) as e:
        logger.error("error processing %s: %s", args.input, e)
        return 1
    finally:
        if src is not sys.stdin:
            src.close()
        if dst is not sys.stdout:
            dst.close()


if __name__ == "__main__":
    raise SystemExit(main())
