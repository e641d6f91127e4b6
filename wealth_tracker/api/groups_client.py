"""Client for the Roblox Groups API (community rosters)."""

from __future__ import annotations

import logging
from typing import Any

from wealth_tracker.api.gateway import RequestGateway
from wealth_tracker.config import GROUPS_API_URL, MEMBER_PAGE_LIMIT
from wealth_tracker.models import ApiResult, Member

logger = logging.getLogger(__name__)


class GroupsClient:
    """Fetch community members page by page through the gateway."""

    def __init__(self, gateway: RequestGateway, *, base_url: str = GROUPS_API_URL) -> None:
        self._gateway = gateway
        self._base_url = base_url.rstrip("/")

    async def fetch_members_page(
        self,
        community_id: int,
        cursor: str | None = None,
        *,
        limit: int = MEMBER_PAGE_LIMIT,
    ) -> ApiResult:
        """GET /v1/groups/{id}/users — one roster page, newest members first.

        Returns the gateway result; ``data`` is ``{data: [...], nextPageCursor}``.
        """
        params: dict[str, Any] = {"sortOrder": "Desc", "limit": limit}
        if cursor:
            params["cursor"] = cursor
        return await self._gateway.get(
            f"{self._base_url}/v1/groups/{community_id}/users", params=params,
        )

    @staticmethod
    def parse_page(payload: Any) -> tuple[list[dict], str | None]:
        """Split a roster payload into raw records and the next cursor."""
        if not isinstance(payload, dict):
            return [], None
        records = payload.get("data") or []
        if not isinstance(records, list):
            records = []
        cursor = payload.get("nextPageCursor") or None
        return records, cursor

    @staticmethod
    def parse_member(raw: Any) -> Member | None:
        """Convert a roster record into a Member.

        Accepts the API's ``{user: {userId, username}, role}`` shape as well
        as a flat ``{userId, username}`` record.
        """
        if not isinstance(raw, dict):
            return None
        user = raw.get("user") if isinstance(raw.get("user"), dict) else raw

        user_id = user.get("userId")
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            return None
        return Member(user_id=user_id, username=str(user.get("username") or ""))
