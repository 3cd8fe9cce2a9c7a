"""Command-line interface for orchestrating the pipeline.

Provides subcommands: `discover`, `verify`, `merge`, `enrich`, and `all`.
Each command is implemented as a `cmd_*` function that accepts an argparse
namespace.
"""
from __future__ import annotations

import argparse
import logging
from datetime import date

from dotenv import load_dotenv

from investor_pipeline.config import get_settings
from investor_pipeline.logging_config import configure_logging
from investor_pipeline.storage import InvalidInputError, MissingInputError

# DISCOVER
from investor_pipeline.ingest.discover import (
    DEFAULT_MAX_RESULTS,
    default_date_range,
    run_discovery,
)
from investor_pipeline.ingest.sec_client import SecClient

# VERIFY / MERGE / ENRICH
from investor_pipeline.verify.verify import run_verification
from investor_pipeline.merge.merge import run_merge
from investor_pipeline.enrich.enrich import run_enrichment

log = logging.getLogger(__name__)


# --------------------------------------------------
# Helpers
# --------------------------------------------------
def _iso_date(value: str) -> str:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"not an ISO date (YYYY-MM-DD): {value!r}") from e


def _positive_int(value: str) -> int:
    n = int(value)
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return n


# --------------------------------------------------
# DISCOVER
# --------------------------------------------------
def cmd_discover(args: argparse.Namespace) -> None:
    """Search Form D filings and write `discovered.json`.

    Args:
        args: argparse namespace with `start_date`, `end_date`, `max_results`.
    """
    s = get_settings()
    user_agent = s.require_user_agent()

    default_start, default_end = default_date_range()
    start = args.start_date or default_start
    end = args.end_date or default_end

    with SecClient(
        user_agent,
        min_interval=s.request_interval,
        timeout=s.request_timeout,
    ) as client:
        run_discovery(client, start, end, args.max_results, s.discovered_path)


# --------------------------------------------------
# VERIFY
# --------------------------------------------------
def cmd_verify(_: argparse.Namespace) -> None:
    """Score discovered candidates against the directory; write `verified.json`."""
    s = get_settings()
    run_verification(s.discovered_path, s.directory_path, s.verified_path)


# --------------------------------------------------
# MERGE
# --------------------------------------------------
def cmd_merge(args: argparse.Namespace) -> None:
    """Apply high-confidence verified records to the directory.

    Args:
        args: argparse namespace with `rename_id_collisions`.
    """
    s = get_settings()
    run_merge(
        s.verified_path,
        s.directory_path,
        s.merge_report_path,
        rename_id_collisions=args.rename_id_collisions,
    )


# --------------------------------------------------
# ENRICH
# --------------------------------------------------
def cmd_enrich(_: argparse.Namespace) -> None:
    """Filter, enrich and prune pipeline-created directory records."""
    s = get_settings()
    run_enrichment(
        s.directory_path,
        s.overlay_path,
        s.enrichment_report_path,
        rules_path=s.rules_path,
    )


# --------------------------------------------------
# ALL
# --------------------------------------------------
def cmd_all(args: argparse.Namespace) -> None:
    """Convenience: run discover → verify → merge → enrich with the provided args."""
    cmd_discover(args)
    cmd_verify(args)
    cmd_merge(args)
    cmd_enrich(args)


# --------------------------------------------------
# CLI
# --------------------------------------------------
def _add_discover_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("start_date", nargs="?", type=_iso_date, default=None)
    p.add_argument("end_date", nargs="?", type=_iso_date, default=None)
    p.add_argument("max_results", nargs="?", type=_positive_int, default=DEFAULT_MAX_RESULTS)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the top-level argument parser for the CLI.

    The returned parser has subcommands `discover`, `verify`, `merge`,
    `enrich`, and `all`. Discovery takes optional positional arguments
    `start_date end_date max_results` (default: the last 30 days, 500).

    Returns:
        Configured argparse.ArgumentParser instance.
    """
    p = argparse.ArgumentParser(prog="investor-pipeline")
    p.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_discover = sub.add_parser("discover", help="find fund filers in recent Form D filings")
    _add_discover_args(p_discover)

    sub.add_parser("verify", help="score candidates against the directory")

    p_merge = sub.add_parser("merge", help="apply high-confidence records")
    p_merge.add_argument(
        "--rename-id-collisions",
        action="store_true",
        help="give colliding ids a numeric suffix instead of skipping the record",
    )

    sub.add_parser("enrich", help="filter non-VC records, enrich and prune skeletons")

    p_all = sub.add_parser("all", help="run every stage in order")
    _add_discover_args(p_all)
    p_all.add_argument("--rename-id-collisions", action="store_true")

    return p


def main(argv: list[str] | None = None) -> None:
    """CLI entry point: parse args, configure logging and dispatch commands."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    s = get_settings()
    configure_logging(s.log_path, logging.DEBUG if args.verbose else s.log_level)

    commands = {
        "discover": cmd_discover,
        "verify": cmd_verify,
        "merge": cmd_merge,
        "enrich": cmd_enrich,
        "all": cmd_all,
    }
    command = commands.get(args.cmd)
    if command is None:
        raise SystemExit(2)

    try:
        command(args)
    except (MissingInputError, InvalidInputError) as e:
        log.error("%s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
