"""Client for the Roblox Inventory API (collectible holdings)."""

from __future__ import annotations

from typing import Any

from wealth_tracker.api.gateway import RequestGateway
from wealth_tracker.config import INVENTORY_API_URL, INVENTORY_LIMIT
from wealth_tracker.models import ApiResult, InventoryItem


class InventoryClient:
    """Fetch a user's collectibles through the gateway."""

    def __init__(self, gateway: RequestGateway, *, base_url: str = INVENTORY_API_URL) -> None:
        self._gateway = gateway
        self._base_url = base_url.rstrip("/")

    async def fetch_collectibles(
        self, user_id: int, *, limit: int = INVENTORY_LIMIT,
    ) -> ApiResult:
        """GET /v1/users/{userId}/assets/collectibles — first page only."""
        return await self._gateway.get(
            f"{self._base_url}/v1/users/{user_id}/assets/collectibles",
            params={"sortOrder": "Desc", "limit": limit},
        )

    @staticmethod
    def parse_items(payload: Any) -> list[dict]:
        if not isinstance(payload, dict):
            return []
        items = payload.get("data") or []
        return items if isinstance(items, list) else []

    @staticmethod
    def parse_item(raw: Any) -> InventoryItem | None:
        """Convert a collectible record into an InventoryItem.

        The market value is ``recentAveragePrice``; a plain ``value`` field is
        accepted as a fallback. Records without a usable value are dropped.
        """
        if not isinstance(raw, dict):
            return None
        value = raw.get("recentAveragePrice")
        if value is None:
            value = raw.get("value")
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            return None
        return InventoryItem(name=str(raw.get("name") or ""), value=int(value))
