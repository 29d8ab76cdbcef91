#!/usr/bin/env python3
"""
Command-line interface for lsdups.
"""

import argparse
import logging
import sys

from .detector import find_duplicates
from .exceptions import ConfigurationError, ScanCancelled
from .formatter import format_json_output, format_output
from .models import ScanConfig, display_path


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size '{value}': expected a whole number of bytes")
    if number < 0:
        raise argparse.ArgumentTypeError(f"invalid size '{value}': must not be negative")
    return number


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="lsdups",
        description="List files with identical content under a directory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-d", "--dir",
        default=".",
        metavar="<DIRECTORY-PATH>",
        help="directory to traverse (default: current directory)",
    )
    parser.add_argument(
        "-p", "--pattern",
        metavar="<PATTERN>",
        help="only compare files whose name matches this pattern (default: all files)",
    )
    parser.add_argument(
        "--filter",
        metavar="<SKIP-PATTERN>",
        help="skip files whose name matches this pattern; wins over --pattern",
    )
    parser.add_argument(
        "--size",
        type=_non_negative_int,
        default=0,
        metavar="<BYTES>",
        help="ignore files smaller than this many bytes (default: 0)",
    )
    parser.add_argument(
        "--regex",
        action="store_true",
        help="treat --pattern and --filter as regular expressions instead of globs",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="number of hashing threads (default: twice the CPU count, at most 16)",
    )
    parser.add_argument(
        "-o", "--output",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)

    if args.verbose and args.quiet:
        print("Error: Cannot use both --verbose and --quiet flags", file=sys.stderr)
        sys.exit(1)

    # Setup logging based on verbosity
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(message)s')
    elif args.quiet or args.output == "json":
        logging.basicConfig(level=logging.ERROR, format='%(message)s')
    else:
        logging.basicConfig(level=logging.INFO, format='%(message)s')

    config = ScanConfig(
        root=args.dir,
        include_pattern=args.pattern,
        skip_pattern=args.filter,
        min_size=args.size,
        pattern_syntax="regex" if args.regex else "glob",
        max_workers=args.workers,
    )

    quiet = args.quiet or args.output == "json"
    if not quiet:
        print(f"Scanning directory: {display_path(config.root)}\n")

    try:
        report = find_duplicates(config, quiet=quiet)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ScanCancelled:
        print("\nScan interrupted. No results were produced.", file=sys.stderr)
        sys.exit(130)

    if args.output == "json":
        format_json_output(report)
    else:
        format_output(report, verbose=args.verbose, quiet=args.quiet)

    sys.exit(0)


if __name__ == "__main__":
    main()
