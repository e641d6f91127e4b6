"""Job: value a single member's collectible inventory."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from wealth_tracker.api.inventory_client import InventoryClient
from wealth_tracker.config import VALUE_FLOOR
from wealth_tracker.models import InventoryItem, Member, WealthRecord

logger = logging.getLogger(__name__)


async def value_member(
    client: InventoryClient,
    member: Member,
    *,
    value_floor: int = VALUE_FLOOR,
) -> WealthRecord | None:
    """Return the member's WealthRecord, or None if the fetch failed or the
    holdings do not clear the floor.

    Only the first page of collectibles is considered.
    """
    try:
        result = await client.fetch_collectibles(member.user_id)
    except Exception:
        logger.warning(
            "inventory_fetch_error",
            extra={"user_id": member.user_id},
            exc_info=True,
        )
        return None

    if not result.success:
        # Private inventories are common; not worth a warning each
        logger.debug(
            "inventory_unavailable",
            extra={"user_id": member.user_id, "error": result.error},
        )
        return None

    items = (InventoryClient.parse_item(raw) for raw in InventoryClient.parse_items(result.data))
    return build_wealth_record(member, (i for i in items if i is not None), value_floor=value_floor)


def build_wealth_record(
    member: Member,
    items: Iterable[InventoryItem],
    *,
    value_floor: int = VALUE_FLOOR,
) -> WealthRecord | None:
    total = 0
    valuable: list[InventoryItem] = []
    for item in items:
        if item.value > value_floor:
            total += item.value
            valuable.append(item)

    if total <= value_floor:
        return None
    return WealthRecord(
        user_id=member.user_id,
        username=member.username,
        total_value=total,
        valuable_items=tuple(valuable),
    )
