# src/main.py — v1
"""CLI entry point: scan, duplicates, last, cache-clear commands.

Usage:
    sweepscan scan <root>... [--ext .mp4,.mkv] [--min-size BYTES] [--older-than DAYS]
    sweepscan duplicates <root>... [--category image] [--ext .jpg] [--no-save]
    sweepscan last
    sweepscan cache-clear
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from sweepscan.version import __version__

logger = logging.getLogger(__name__)

RESULTS_DB_NAME = "results.db"


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="sweepscan",
        description=f"sweepscan v{__version__}: storage scanner and duplicate finder",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--cache-backend", choices=["memory", "json", "sqlite", "redis"], default=None,
        help="Override CACHE_BACKEND",
    )
    parser.add_argument(
        "--cache-root", type=Path, default=None,
        help="Override CACHE_ROOT",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- scan ---
    p_scan = subparsers.add_parser("scan", help="List matching files, largest first")
    p_scan.add_argument("roots", nargs="*", help="Root directories (default: SCAN_ROOT_PATHS)")
    _add_filter_arguments(p_scan)
    p_scan.add_argument(
        "--older-than", type=float, default=None, metavar="DAYS",
        help="Only files not modified for DAYS days",
    )
    p_scan.add_argument(
        "--limit", type=int, default=None,
        help="Print at most this many files",
    )
    p_scan.set_defaults(func=_cmd_scan)

    # --- duplicates ---
    p_dup = subparsers.add_parser("duplicates", help="Find duplicate files")
    p_dup.add_argument("roots", nargs="*", help="Root directories (default: SCAN_ROOT_PATHS)")
    _add_filter_arguments(p_dup)
    p_dup.add_argument(
        "--no-save", action="store_true",
        help="Do not persist the result as the latest snapshot",
    )
    p_dup.set_defaults(func=_cmd_duplicates)

    # --- last ---
    p_last = subparsers.add_parser("last", help="Show the last saved duplicate scan")
    p_last.set_defaults(func=_cmd_last)

    # --- cache-clear ---
    p_clear = subparsers.add_parser("cache-clear", help="Clear the fingerprint cache")
    p_clear.set_defaults(func=_cmd_cache_clear)

    return parser


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--ext", default=None,
        help="Comma-separated extensions to include (e.g. .jpg,.png)",
    )
    parser.add_argument(
        "--category", choices=["video", "image", "audio", "document"], default=None,
        help="Include files of a media category (combined with --ext)",
    )
    parser.add_argument(
        "--min-size", type=int, default=None, metavar="BYTES",
        help="Minimum file size in bytes",
    )


def _load_settings(args: argparse.Namespace):
    from sweepscan.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.cache_backend:
        overrides["cache_backend"] = args.cache_backend
    if args.cache_root:
        overrides["cache_root"] = args.cache_root
    return load_settings(**overrides)


def _build_filter(args: argparse.Namespace):
    from sweepscan.scanner.filters import (
        EXTENSION_CATEGORIES,
        all_of,
        extension_filter,
        min_size_filter,
        older_than_filter,
    )

    predicates = []
    extensions: set[str] = set()
    if args.category:
        extensions.update(EXTENSION_CATEGORIES[args.category])
    if args.ext:
        extensions.update(e.strip() for e in args.ext.split(",") if e.strip())
    if extensions:
        predicates.append(extension_filter(extensions))
    if args.min_size is not None:
        predicates.append(min_size_filter(args.min_size))
    if getattr(args, "older_than", None) is not None:
        predicates.append(older_than_filter(args.older_than))
    return all_of(*predicates) if predicates else None


def _resolve_roots(args: argparse.Namespace, settings) -> list[str]:
    return list(args.roots) or settings.root_paths_list


def _install_cancel_handler(token) -> None:
    """Turn Ctrl-C into cooperative cancellation while a scan runs."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers unavailable; Ctrl-C aborts immediately")


async def _cmd_scan(args: argparse.Namespace, settings) -> int:
    """List files matching the filters."""
    from sweepscan.api.facade import scan_files
    from sweepscan.core.cancellation import CancelToken

    roots = _resolve_roots(args, settings)
    if not roots:
        logger.error("No root paths given and SCAN_ROOT_PATHS is empty")
        return 1

    token = CancelToken()
    _install_cancel_handler(token)
    entries = await scan_files(
        roots, accept_entry=_build_filter(args), settings=settings, cancel_token=token,
    )

    shown = entries if args.limit is None else entries[:args.limit]
    for entry in shown:
        print(f"{format_bytes(entry.size):>10}  {entry.path}")
    total = sum(e.size for e in entries)
    print(f"\n{len(entries)} files, {format_bytes(total)}")
    if token.cancelled:
        print("Scan cancelled: listing is partial")
        return 130
    return 0


async def _cmd_duplicates(args: argparse.Namespace, settings) -> int:
    """Find duplicates and optionally persist them as the latest snapshot."""
    from sweepscan.api.facade import find_duplicate_files
    from sweepscan.cache.cache_factory import create_cache_store
    from sweepscan.core.cancellation import CancelToken

    roots = _resolve_roots(args, settings)
    if not roots:
        logger.error("No root paths given and SCAN_ROOT_PATHS is empty")
        return 1

    token = CancelToken()
    _install_cancel_handler(token)
    cache = create_cache_store(settings)
    try:
        groups = await find_duplicate_files(
            roots,
            accept_entry=_build_filter(args),
            settings=settings,
            cache_store=cache,
            cancel_token=token,
        )
    finally:
        cache.close()

    if token.cancelled:
        print("Duplicate scan cancelled: no results")
        return 130

    _print_groups(groups)

    if not args.no_save:
        from sweepscan.storage.result_store import ScanResultStore

        store = ScanResultStore(settings.cache_root.expanduser() / RESULTS_DB_NAME)
        try:
            await store.save_duplicate_groups(groups)
        finally:
            store.close()
    return 0


async def _cmd_last(args: argparse.Namespace, settings) -> int:
    """Print the last saved duplicate snapshot."""
    from sweepscan.storage.result_store import ScanResultStore

    store = ScanResultStore(settings.cache_root.expanduser() / RESULTS_DB_NAME)
    try:
        groups = await store.load_duplicate_groups()
    finally:
        store.close()
    _print_groups(groups)
    return 0


async def _cmd_cache_clear(args: argparse.Namespace, settings) -> int:
    """Remove every fingerprint cache row."""
    from sweepscan.cache.cache_factory import create_cache_store

    cache = create_cache_store(settings)
    try:
        count = await cache.count()
        await cache.clear()
    finally:
        cache.close()
    print(f"Cleared {count} cached fingerprints")
    return 0


def _print_groups(groups: list) -> None:
    """Print a human-readable summary of duplicate groups."""
    for group in groups:
        print(f"\n{group.fingerprint[:12]}  {len(group.files)} x {format_bytes(group.size)}")
        for entry in group.files:
            print(f"    {entry.path}")
    reclaimable = sum(g.reclaimable_size for g in groups)
    print(f"\n{len(groups)} duplicate groups, {format_bytes(reclaimable)} reclaimable")


def format_bytes(size: int) -> str:
    """Format a byte count with binary units, e.g. 1.5 MB."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in ("KB", "MB", "GB", "TB"):
        value /= 1024
        if value < 1024 or unit == "TB":
            return f"{value:.1f} {unit}"
    return f"{value:.1f} TB"


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from sweepscan.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
