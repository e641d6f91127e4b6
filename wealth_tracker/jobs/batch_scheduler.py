"""Job: run member valuations in bounded concurrent groups."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from wealth_tracker.config import BATCH_GROUP_DELAY, BATCH_SIZE, CONCURRENT_BATCHES
from wealth_tracker.models import Member, WealthRecord
from wealth_tracker.progress import ProgressState

logger = logging.getLogger(__name__)

Valuator = Callable[[Member], Awaitable[WealthRecord | None]]


async def run_batches(
    members: Sequence[Member],
    valuate: Valuator,
    progress: ProgressState | None = None,
    *,
    batch_size: int = BATCH_SIZE,
    concurrent_batches: int = CONCURRENT_BATCHES,
    group_delay: float = BATCH_GROUP_DELAY,
) -> list[WealthRecord]:
    """Value every member, at most ``batch_size * concurrent_batches`` at a time.

    Each outer iteration runs up to ``concurrent_batches`` groups side by
    side, then records the number of members submitted so far and pauses
    before the next iteration. Returned records keep discovery order.
    """
    step = batch_size * concurrent_batches
    valued: list[WealthRecord] = []

    for start in range(0, len(members), step):
        window = members[start : start + step]
        group_results = await asyncio.gather(
            *(_run_group(group, valuate) for group in _chunks(window, batch_size))
        )
        for records in group_results:
            valued.extend(records)

        submitted = min(start + step, len(members))
        if progress is not None:
            progress.record_processed(submitted)

        logger.info(
            "batch_iteration_complete",
            extra={
                "processed": submitted,
                "total": len(members),
                "valued_so_far": len(valued),
            },
        )

        if submitted < len(members):
            # Delay between iterations to stay under rate limits
            await asyncio.sleep(group_delay)

    return valued


async def _run_group(group: Sequence[Member], valuate: Valuator) -> list[WealthRecord]:
    # Every sibling settles before the group returns, failed or not
    results = await asyncio.gather(
        *(valuate(member) for member in group), return_exceptions=True,
    )
    failure = next((r for r in results if isinstance(r, BaseException)), None)
    if failure is not None:
        logger.warning(
            "batch_group_error",
            extra={"first_user_id": group[0].user_id if group else None, "size": len(group)},
            exc_info=failure,
        )
        return []
    return [r for r in results if r is not None]


def _chunks(lst: Sequence[Member], n: int):
    """Yield successive n-sized chunks from lst."""
    for i in range(0, len(lst), n):
        yield lst[i : i + n]
