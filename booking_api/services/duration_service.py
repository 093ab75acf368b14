"""Service duration resolution for order line items.

Each item's duration comes from ``duration_min`` in its variant metadata, or
its product metadata when the variant has none. An item with neither
contributes 0 minutes; that gap is logged rather than guessed around.
Fractional values round up to whole minutes so a booking never ends early.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from booking_api.db.models import LineItem

logger = logging.getLogger(__name__)

DURATION_KEY = "duration_min"


def _parse_minutes(raw: Any) -> float | None:
    """Read a metadata value as minutes. Numeric strings are accepted; inf and nan are not."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        try:
            value = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def _metadata_minutes(metadata: dict[str, Any] | None) -> float | None:
    if not metadata:
        return None
    return _parse_minutes(metadata.get(DURATION_KEY))


def resolve_item_minutes(item: LineItem) -> int:
    """Duration of a single line item in minutes (0 when nothing is configured)."""
    variant = item.variant
    variant_minutes = _metadata_minutes(variant.metadata_) if variant else None
    if variant_minutes is not None and variant_minutes > 0:
        return math.ceil(variant_minutes)

    product = variant.product if variant else None
    product_minutes = _metadata_minutes(product.metadata_) if product else None
    if product_minutes is not None and product_minutes > 0:
        return math.ceil(product_minutes)

    logger.warning(
        "Line item %s has no %s on variant or product; counting 0 minutes",
        item.id,
        DURATION_KEY,
    )
    return 0


def resolve_total_minutes(line_items: Iterable[LineItem]) -> int:
    """Total reserved minutes for an order's items."""
    return sum(resolve_item_minutes(item) for item in line_items)
