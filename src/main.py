# src/main.py — v3
"""CLI entry point — compress, revert, lookup commands.

Usage:
    imageboost compress <url>... [options]
    imageboost revert <url> [--product-id ID] [--image-id ID]
    imageboost lookup <url>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from imageboost.core.formats import format_file_size
from imageboost.storage.persistence import close_persistence
from imageboost.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1
    finally:
        close_persistence()


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="imageboost",
        description=f"imageboost v{__version__} — Image compression, cache and revert",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- compress ---
    p_compress = subparsers.add_parser(
        "compress", help="Compress one or more images",
    )
    p_compress.add_argument("urls", nargs="+", help="Source image URLs")
    p_compress.add_argument(
        "-s", "--strategy", choices=["local", "remote"], default=None,
        help="Compression strategy (default: DEFAULT_STRATEGY setting)",
    )
    p_compress.add_argument(
        "--product-id", dest="product_ids", action="append", default=None,
        help="Origin product id, one per URL in order (repeatable)",
    )
    p_compress.add_argument(
        "--image-id", dest="image_ids", action="append", default=None,
        help="Origin image id to replace, one per URL in order (repeatable)",
    )
    _add_session_arguments(p_compress)
    p_compress.set_defaults(func=_cmd_compress)

    # --- revert ---
    p_revert = subparsers.add_parser(
        "revert", help="Restore the archived original of an image",
    )
    p_revert.add_argument("url", help="Original, compressed or swapped URL")
    p_revert.add_argument("--product-id", default=None, help="Origin product id")
    p_revert.add_argument("--image-id", default=None, help="Origin image id to replace")
    _add_session_arguments(p_revert)
    p_revert.set_defaults(func=_cmd_revert)

    # --- lookup ---
    p_lookup = subparsers.add_parser(
        "lookup", help="Look up the cached artifact for a URL",
    )
    p_lookup.add_argument("url", help="Image URL")
    p_lookup.add_argument(
        "--external-id", default=None, help="Origin image id to match first",
    )
    p_lookup.set_defaults(func=_cmd_lookup)

    return parser


def _add_session_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--shop", default=os.environ.get("SHOPIFY_SHOP"),
        help="Shop domain, e.g. example.myshopify.com (env: SHOPIFY_SHOP)",
    )
    parser.add_argument(
        "--access-token", default=os.environ.get("SHOPIFY_ACCESS_TOKEN"),
        help="Admin API access token (env: SHOPIFY_ACCESS_TOKEN)",
    )


async def _cmd_compress(args: argparse.Namespace) -> int:
    """Compress URLs, printing each result as it completes."""
    from imageboost.api.facade import compress_images
    from imageboost.api.models import CompressRequest, ErrorResponse

    request = CompressRequest(
        urls=args.urls,
        strategy=args.strategy,
        product_ids=args.product_ids,
        image_ids=args.image_ids,
    )
    result = await compress_images(
        request, session=_session_from(args), on_item=_print_item,
    )
    if isinstance(result, ErrorResponse):
        logger.error("%s", result.error)
        return 1

    print(f"\nBatch complete ({result.strategy_used.value}):")
    print(f"  Processed:    {result.total_processed}")
    print(f"  Successful:   {result.total_successful}")
    print(f"  Errors:       {result.total_errors}")
    print(f"  Original:     {format_file_size(result.total_original_size)}")
    print(f"  Compressed:   {format_file_size(result.total_compressed_size)}")
    print(f"  Savings:      {result.total_savings:.2f}%")
    return 0 if result.total_errors == 0 else 2


async def _cmd_revert(args: argparse.Namespace) -> int:
    """Restore the archived original for a URL."""
    from imageboost.api.facade import revert_image
    from imageboost.api.models import ErrorResponse, RevertRequest

    request = RevertRequest(
        url=args.url, product_id=args.product_id, image_id=args.image_id,
    )
    result = await revert_image(request, session=_session_from(args))
    if isinstance(result, ErrorResponse):
        logger.error("%s: %s", result.error, args.url)
        return 1

    print(f"\nReverted {result.requested_url}:")
    print(f"  Original:     {result.restored_url}")
    print(f"  Size:         {format_file_size(result.restored_size)}")
    print(f"  Format:       {result.format}")
    if result.origin_swap is not None:
        _print_swap(result.origin_swap)
    return 0


async def _cmd_lookup(args: argparse.Namespace) -> int:
    """Look up a URL in the artifact cache (stale records are removed)."""
    from imageboost.cache.artifact_store import ArtifactCacheStore
    from imageboost.config.settings import Settings
    from imageboost.storage.persistence import get_persistence

    store = ArtifactCacheStore(get_persistence(Settings()))
    lookup = await store.get(args.url, external_id=args.external_id)

    if lookup.healed:
        print(f"Stale record removed for {args.url} (matched by {lookup.matched_by})")
        return 1
    if not lookup.hit or lookup.artifact is None:
        print(f"No cached artifact for {args.url}")
        return 1

    artifact = lookup.artifact
    print(f"\nCached artifact for {args.url} (matched by {lookup.matched_by}):")
    print(f"  URL:          {artifact.compressed_url}")
    print(f"  Size:         {format_file_size(artifact.byte_size)}"
          f" (was {format_file_size(artifact.original_byte_size)})")
    print(f"  Savings:      {artifact.savings_fraction * 100:.2f}%")
    print(f"  Format:       {artifact.format}")
    print(f"  Strategy:     {artifact.strategy_used.value}")
    print(f"  Stored at:    {artifact.created_at.isoformat()}")
    return 0


def _session_from(args: argparse.Namespace):
    from imageboost.origin.models import OriginSession

    if not args.shop or not args.access_token:
        return None
    return OriginSession(shop=args.shop, access_token=args.access_token)


def _print_item(item) -> None:
    """Print one batch item as soon as it is processed."""
    if not item.success:
        print(f"  FAILED  {item.url}: {item.error}")
        return
    tag = "CACHED" if item.from_cache else "OK"
    print(
        f"  {tag:7s} {item.url}: {format_file_size(item.original_size)} -> "
        f"{format_file_size(item.compressed_size)} "
        f"({item.savings_fraction * 100:.1f}% saved, {item.format})"
    )
    if item.origin_swap is not None:
        _print_swap(item.origin_swap)


def _print_swap(swap) -> None:
    if swap.succeeded:
        print(f"          origin image replaced: {swap.old_image_id} -> {swap.new_image_id}")
    else:
        print(f"          origin image not replaced: {swap.error}")


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage from settings."""
    from imageboost.config.settings import Settings
    from imageboost.logging.logger import setup_logging

    settings = Settings()
    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
