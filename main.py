import argparse
import logging
import sys

from bencoding import DEFAULT_MAX_DEPTH, DecodeError, decode, encode
from ui import ui
from utils import logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Decode a bencoded file and show its contents."
    )
    parser.add_argument("file", help="path to a bencoded file, e.g. a .torrent")
    parser.add_argument("--max-depth", type=int, default=DEFAULT_MAX_DEPTH,
                        help=f"maximum list/dict nesting (default {DEFAULT_MAX_DEPTH})")
    parser.add_argument("--strict", action="store_true",
                        help="fail when bytes remain after the root value")
    parser.add_argument("--check", action="store_true",
                        help="fail unless the input is already in canonical form")
    parser.add_argument("--summary-only", action="store_true",
                        help="skip the tree view")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="enable debug logging")

    args = parser.parse_args(argv)
    if args.max_depth < 1:
        parser.error("--max-depth must be at least 1")
    return args


def run(args):
    try:
        with open(args.file, 'rb') as f:
            data = f.read()
    except OSError as e:
        logger.error(f"Cannot read {args.file}: {e}")
        return 1

    try:
        value, consumed = decode(data, args.max_depth)
    except DecodeError as e:
        logger.error(f"{args.file} is not valid bencode: {e}")
        return 1

    trailing = len(data) - consumed
    if trailing:
        if args.strict:
            logger.error(f"{args.file} has {trailing} trailing bytes after the root value")
            return 1
        ui.print_log(f"Ignoring {trailing} trailing bytes", "WARNING")

    if args.check:
        if encode(value) != data[:consumed]:
            logger.error(f"{args.file} is valid bencode but not in canonical form")
            return 1
        ui.print_log("Input is in canonical form", "INFO")

    if not args.summary_only:
        ui.show_tree(value, title=args.file)
    ui.show_summary(value, consumed, len(data))
    return 0


def main(argv=None):
    args = parse_args(argv)
    if args.verbose:
        logger.setLevel(logging.DEBUG)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
