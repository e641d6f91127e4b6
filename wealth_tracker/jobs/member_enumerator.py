"""Job: enumerate every member of a community through the paginated roster."""

from __future__ import annotations

import asyncio
import logging

from wealth_tracker.api.groups_client import GroupsClient
from wealth_tracker.config import MEMBER_MAX_PAGES, MEMBER_PAGE_DELAY
from wealth_tracker.errors import AuthError, EnumerationError
from wealth_tracker.models import Member
from wealth_tracker.progress import ProgressState

logger = logging.getLogger(__name__)

NO_MEMBERS_MESSAGE = "No members found in this community or community is private"


async def enumerate_members(
    client: GroupsClient,
    community_id: int,
    progress: ProgressState | None = None,
    *,
    max_pages: int = MEMBER_MAX_PAGES,
    page_delay: float = MEMBER_PAGE_DELAY,
) -> list[Member]:
    """Walk the roster cursor until it runs out or max_pages is reached.

    Members come back in listing order with duplicate user ids dropped.
    A failed first page is fatal; a failure on a later page ends the walk
    with what has been collected so far.
    """
    members: list[Member] = []
    seen: set[int] = set()
    cursor: str | None = None
    page_count = 0

    while True:
        result = await client.fetch_members_page(community_id, cursor)
        if not result.success:
            if page_count == 0:
                if result.status_code in (401, 403):
                    raise AuthError(f"Not authorized to read community members: {result.error}")
                raise EnumerationError(f"Failed to fetch community members: {result.error}")
            logger.warning(
                "member_page_error",
                extra={
                    "community_id": community_id,
                    "page": page_count + 1,
                    "error": result.error,
                },
            )
            break

        records, cursor = GroupsClient.parse_page(result.data)
        for raw in records:
            member = GroupsClient.parse_member(raw)
            if member is None or member.user_id in seen:
                continue
            seen.add(member.user_id)
            members.append(member)

        page_count += 1
        if progress is not None:
            progress.record_discovered(len(members))

        logger.debug(
            "member_page_fetched",
            extra={"community_id": community_id, "page": page_count, "members": len(members)},
        )

        if not cursor:
            break
        if page_count >= max_pages:
            logger.warning(
                "member_page_cap_reached",
                extra={"community_id": community_id, "max_pages": max_pages},
            )
            break

        # Small delay between pages to avoid server-side throttling
        await asyncio.sleep(page_delay)

    if not members:
        raise EnumerationError(NO_MEMBERS_MESSAGE)

    logger.info(
        "member_enumeration_complete",
        extra={"community_id": community_id, "pages": page_count, "members": len(members)},
    )
    return members
