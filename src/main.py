# src/main.py — v2
"""CLI entry point — check and normalize commands.

Usage:
    proofline check <fragments.json> [options]
    proofline normalize <text>

The check input is either a JSON list of {"id", "text"} objects or a
CheckRequest object ({"fragments": [...], "locale": ...}).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from proofline.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        _setup_logging(args.verbose)
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="proofline",
        description=f"proofline v{__version__} — deduplicating grammar checker",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- check ---
    p_check = subparsers.add_parser(
        "check", help="Check text fragments from a JSON file",
    )
    p_check.add_argument("file", type=Path, help="JSON file with fragments")
    p_check.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write JSON results to this file (default: stdout)",
    )
    p_check.add_argument(
        "--locale", default=None,
        help="Target locale (default: PROOFLINE_ANALYZER_LOCALE)",
    )
    p_check.add_argument(
        "--concurrency", type=int, default=None,
        help="Concurrent analyzer calls per batch",
    )
    p_check.add_argument(
        "--delay-ms", type=int, default=None,
        help="Pause between batches in milliseconds",
    )
    p_check.set_defaults(func=_cmd_check)

    # --- normalize ---
    p_norm = subparsers.add_parser(
        "normalize", help="Print the normalized key of a text",
    )
    p_norm.add_argument("text", help="Text to normalize")
    p_norm.set_defaults(func=_cmd_normalize)

    return parser


async def _cmd_check(args: argparse.Namespace) -> int:
    """Execute a check run over a fragment file."""
    from proofline.api.facade import check_fragments
    from proofline.api.models import ConfigOverrides

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1

    request = _load_request(file_path)
    overrides = request.config_overrides or ConfigOverrides()
    if args.concurrency is not None:
        overrides.batch_concurrency = args.concurrency
    if args.delay_ms is not None:
        overrides.batch_delay_ms = args.delay_ms

    result = await check_fragments(
        request.fragments,
        locale=args.locale or request.locale,
        overrides=overrides,
    )

    payload = result.model_dump_json(indent=2)
    if args.output is not None:
        args.output.write_text(payload, encoding="utf-8")
        logger.info("Results written to %s", args.output)
    else:
        print(payload)

    _print_run_summary(result)
    return 0


async def _cmd_normalize(args: argparse.Namespace) -> int:
    """Print the normalized key and analyzability of a text."""
    from proofline.core.normalizer import is_analyzable, normalize

    print(json.dumps({
        "normalized": normalize(args.text),
        "analyzable": is_analyzable(args.text),
    }, ensure_ascii=False))
    return 0


def _load_request(path: Path) -> object:
    """Parse a fragment file into a CheckRequest."""
    from proofline.api.models import CheckRequest

    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, list):
        data = {"fragments": data}
    return CheckRequest.model_validate(data)


def _print_run_summary(result: object) -> None:
    """Print a human-readable summary of a CheckRunResult to stderr."""
    s = result.summary
    out = sys.stderr
    print("\nCheck complete:", file=out)
    print(f"  Run ID:       {result.run_id}", file=out)
    print(f"  Fragments:    {s.total_fragments} ({s.skipped_fragments} skipped)", file=out)
    print(f"  Groups:       {s.groups} ({s.cache_hits} cached)", file=out)
    print(f"  Analyzed:     {s.analyzed_groups} ({s.failed_groups} failed)", file=out)
    print(f"  Issues:       {len(result.issues)}", file=out)
    print(f"  Duration:     {s.duration_seconds:.1f}s", file=out)


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage from the PROOFLINE_LOG_* settings."""
    from proofline.config.settings import load_settings
    from proofline.logging.logger import setup_logging

    settings = load_settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
