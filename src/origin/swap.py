# src/origin/swap.py — v2
"""Best-effort image replacement at the origin platform.

Creates the replacement first and deletes the old image only after the
create succeeded. Failures are returned in the result, never raised.
"""

from __future__ import annotations

import logging

from imageboost.core.errors import OriginSwapError
from imageboost.core.models import OriginSwapResult
from imageboost.origin.base_origin_client import BaseOriginClient

logger = logging.getLogger(__name__)


async def replace_origin_image(
    client: BaseOriginClient,
    product_id: str,
    source_url: str,
    old_image_id: str | None = None,
) -> OriginSwapResult:
    """Point a product at ``source_url`` and drop ``old_image_id``."""
    old_image_id = str(old_image_id) if old_image_id else None
    result = OriginSwapResult(
        attempted=True, product_id=str(product_id), old_image_id=old_image_id
    )
    try:
        created = await client.create_image(str(product_id), source_url)
        result.new_image_id = created.id
        result.new_image_src = created.src
        if old_image_id:
            await client.delete_image(str(product_id), old_image_id)
    except OriginSwapError as e:
        logger.warning("Origin swap failed for product %s: %s", product_id, e)
        result.error = str(e)
        return result
    except Exception as e:
        logger.exception("Unexpected origin swap failure for product %s", product_id)
        result.error = f"{type(e).__name__}: {e}"
        return result

    result.succeeded = True
    return result
