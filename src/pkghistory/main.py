"""Main CLI entry point for the Package History tool."""

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

from .config import OUTPUT_CSV, OUTPUT_JSON, OUTPUT_STDOUT, RunConfig
from .errors import PkgHistoryError
from .logging_utils import configure_logging
from .models import ChangeKind
from .pipeline import run_history
from .sinks import create_sink
from .strategies import StrategyRegistry

logger = logging.getLogger(__name__)

DEFAULT_CHANGE_EVENTS = "added,updated,deleted"


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    registry = StrategyRegistry.default()
    parser = argparse.ArgumentParser(
        prog="pkghistory",
        description="Report dependency changes across the git history of a manifest file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pkghistory /path/to/repo package.json
  pkghistory /path/to/repo composer.json --commits 500 --no-dev
  pkghistory /path/to/repo web/package.json --change-events updated --csv out/changes.csv
  pkghistory /path/to/repo deps.json --strategy npm --json out/changes.json
        """,
    )

    # Required arguments
    parser.add_argument(
        "repository",
        help="Path to a local git repository",
    )
    parser.add_argument(
        "file",
        help="Manifest path relative to the repository root",
    )

    # Optional arguments
    parser.add_argument(
        "--commits",
        type=int,
        default=100,
        help="Number of most recent commits touching the file to process (default: 100)",
    )
    parser.add_argument(
        "--strategy",
        choices=registry.names(),
        help="Manifest format; detected from the file name when omitted",
    )
    parser.add_argument(
        "--change-events",
        default=DEFAULT_CHANGE_EVENTS,
        help=f"Comma separated change events to report (default: {DEFAULT_CHANGE_EVENTS})",
    )
    parser.add_argument(
        "--dev",
        dest="dev",
        action="store_true",
        default=True,
        help="Capture dev packages (default)",
    )
    parser.add_argument(
        "--no-dev",
        dest="dev",
        action="store_false",
        help="Ignore dev packages",
    )
    parser.add_argument(
        "--json",
        help="Write the result to a JSON file instead of stdout",
    )
    parser.add_argument(
        "--csv",
        help="Write the result to a CSV file instead of stdout (wins over --json)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: INFO, or PKGHISTORY_LOG_LEVEL)",
    )

    return parser


def parse_change_events(value: str) -> Tuple[ChangeKind, ...]:
    """Parse a comma separated list of change event names."""
    kinds: List[ChangeKind] = []
    for part in value.split(","):
        if not part.strip():
            continue
        kind = ChangeKind.parse(part)
        if kind not in kinds:
            kinds.append(kind)
    return tuple(kinds)


def resolve_output(args: argparse.Namespace) -> Tuple[str, Optional[str]]:
    """Return (output type, output path) from the output flags."""
    if args.csv:
        return OUTPUT_CSV, args.csv
    if args.json:
        return OUTPUT_JSON, args.json
    return OUTPUT_STDOUT, None


def create_config(args: argparse.Namespace) -> RunConfig:
    """Create configuration from command line arguments."""
    output_type, output_path = resolve_output(args)
    return RunConfig(
        repository_path=args.repository,
        file_path=args.file,
        commits_count=args.commits,
        strategy_name=args.strategy,
        capture_events=parse_change_events(args.change_events),
        capture_dev_packages=args.dev,
        output_type=output_type,
        output_path=output_path,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        configure_logging(args.log_level)
        config = create_config(args)
        sink = create_sink(config)
        summary = run_history(config, sink)

    except PkgHistoryError as e:
        logger.debug("Run failed", extra={"code": e.code, "details": e.details})
        print(f"error: {e.message}", file=sys.stderr)
        return 1

    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected error during history replay")
        print(f"error: internal error: {e}", file=sys.stderr)
        return 1

    if config.output_path:
        print(f"result was saved to {config.output_path}", file=sys.stderr)
    logger.debug("Run summary", extra={"events": summary.events_emitted})
    return 0


if __name__ == "__main__":
    sys.exit(main())
