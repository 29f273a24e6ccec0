"""Command-line interface for fuzz-target-finder."""

import argparse
import logging
import sys
from pathlib import Path

from fuzz_target_finder.errors import FuzzTargetError
from fuzz_target_finder.extractors import EXTRACTORS
from fuzz_target_finder.generator import generate_fuzz_tests
from fuzz_target_finder.search import CoverageRule, Filter, find_targets

logger = logging.getLogger(__name__)

LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def setup_logging(verbosity: int = 0):
    """Configure logging to stderr, more detailed with each -v."""
    logging.basicConfig(
        level=LOG_LEVELS[min(verbosity, len(LOG_LEVELS) - 1)],
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="fuzz-target-finder",
        description="Find candidate fuzz targets in Rust code",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log progress to stderr (repeat for debug output)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list subcommand
    list_parser = subparsers.add_parser(
        "list",
        help="List viable fuzzing targets",
    )
    list_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to Rust code to search (default: current directory)",
    )
    list_parser.add_argument(
        "--binary-only",
        "-b",
        action="store_true",
        help="Only count byte and integer parameters as fuzzable",
    )
    list_parser.add_argument(
        "--public-only",
        "-p",
        action="store_true",
        help="Only list public functions",
    )
    list_parser.add_argument(
        "--json",
        "-j",
        action="store_true",
        help="Print targets as a JSON array",
    )
    list_parser.add_argument(
        "--coverage",
        choices=[rule.value for rule in CoverageRule],
        default=CoverageRule.ANY_PARAM.value,
        help="How many parameters must be fuzzable (default: any)",
    )
    list_parser.add_argument(
        "--extractor",
        choices=EXTRACTORS,
        default="source",
        help="Parse sources directly, or build rustdoc JSON (default: source)",
    )
    list_parser.add_argument(
        "--toolchain",
        default="nightly",
        help="Rustup toolchain for the rustdoc extractor (default: nightly)",
    )

    # generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Write fuzzing tests",
    )
    generate_parser.add_argument(
        "inpath",
        nargs="?",
        default=".",
        help="Path to Rust code to search",
    )
    generate_parser.add_argument(
        "outpath",
        nargs="?",
        help="Path to write generated fuzzing tests to",
    )

    return parser


def run_list(parsed: argparse.Namespace) -> int:
    """Run the list command."""
    policy = Filter.from_flags(
        binary_only=parsed.binary_only,
        public_only=parsed.public_only,
        coverage=CoverageRule(parsed.coverage),
    )
    result = find_targets(
        Path(parsed.path),
        policy,
        extractor=parsed.extractor,
        toolchain=parsed.toolchain,
    )

    if parsed.json:
        print(result.to_json())
    elif result.targets:
        print(result.to_text())

    if result.skipped:
        print(
            f"Skipped {len(result.skipped)} functions without a name or location",
            file=sys.stderr,
        )
    return 0


def run_generate(inpath: str, outpath: str | None) -> int:
    """Run the generate command."""
    generate_fuzz_tests(Path(inpath), Path(outpath) if outpath else None)
    return 0


def run_cli(args: list[str]) -> int:
    """Run the CLI with the given arguments.

    Args:
        args: Command-line arguments (without program name)

    Returns:
        Exit code (0 for success, non-zero for fatal errors)
    """
    try:
        parsed = create_parser().parse_args(args)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1

    setup_logging(parsed.verbose)

    if parsed.command is None:
        # No command - show help
        create_parser().print_help(sys.stderr)
        return 1

    try:
        if parsed.command == "list":
            return run_list(parsed)
        return run_generate(parsed.inpath, parsed.outpath)
    except FuzzTargetError as e:
        logger.error(f"Failed during {e.phase}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main():
    """Entry point for the CLI."""
    sys.exit(run_cli(sys.argv[1:]))


if __name__ == "__main__":
    main()
