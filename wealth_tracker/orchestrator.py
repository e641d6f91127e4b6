"""Top-level analysis state machine: enumerate, value, rank."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Sequence
from typing import Any

from wealth_tracker.api.gateway import RequestGateway
from wealth_tracker.api.groups_client import GroupsClient
from wealth_tracker.api.inventory_client import InventoryClient
from wealth_tracker.config import (
    BATCH_GROUP_DELAY,
    BATCH_SIZE,
    COMMUNITY_LINK_HOSTS,
    CONCURRENT_BATCHES,
    MEMBER_MAX_PAGES,
    MEMBER_PAGE_DELAY,
    VALUE_FLOOR,
)
from wealth_tracker.errors import BusyError, ValidationError, WealthTrackerError
from wealth_tracker.jobs.batch_scheduler import run_batches
from wealth_tracker.jobs.inventory_valuator import value_member
from wealth_tracker.jobs.member_enumerator import enumerate_members
from wealth_tracker.link_parser import parse_community_link
from wealth_tracker.models import AnalysisResult, RunState
from wealth_tracker.progress import ProgressState
from wealth_tracker.ranking import rank_records
from wealth_tracker.state_store import LastInputStore

logger = logging.getLogger(__name__)


class AnalysisOrchestrator:
    """Run at most one community analysis at a time.

    States go IDLE -> RUNNING -> COMPLETED | FAILED, and a new run may start
    from any state except RUNNING. A start while RUNNING is rejected with
    BusyError without touching progress. The run flag is checked and set
    with no await in between and cleared in a ``finally``.
    """

    def __init__(
        self,
        groups: GroupsClient,
        inventory: InventoryClient,
        progress: ProgressState | None = None,
        *,
        store: LastInputStore | None = None,
        link_hosts: Sequence[str] = COMMUNITY_LINK_HOSTS,
        max_pages: int = MEMBER_MAX_PAGES,
        page_delay: float = MEMBER_PAGE_DELAY,
        batch_size: int = BATCH_SIZE,
        concurrent_batches: int = CONCURRENT_BATCHES,
        group_delay: float = BATCH_GROUP_DELAY,
        value_floor: int = VALUE_FLOOR,
    ) -> None:
        self._groups = groups
        self._inventory = inventory
        self.progress = progress if progress is not None else ProgressState()
        self._store = store
        self._link_hosts = list(link_hosts)
        self._max_pages = max_pages
        self._page_delay = page_delay
        self._batch_size = batch_size
        self._concurrent_batches = concurrent_batches
        self._group_delay = group_delay
        self._value_floor = value_floor
        self._running = False
        self._state = RunState.IDLE

    @classmethod
    def from_gateway(cls, gateway: RequestGateway, **kwargs: Any) -> AnalysisOrchestrator:
        return cls(GroupsClient(gateway), InventoryClient(gateway), **kwargs)

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self, community_id: int) -> AnalysisResult:
        """Analyse one community and return its ranked members.

        Raises BusyError, EnumerationError or AuthError.
        """
        if self._running:
            logger.warning("analysis_busy", extra={"community_id": community_id})
            raise BusyError()

        self._running = True
        self._state = RunState.RUNNING
        try:
            return await self._run(community_id)
        except asyncio.CancelledError:
            self._fail(community_id, "Analysis cancelled")
            raise
        except WealthTrackerError as exc:
            self._fail(community_id, str(exc))
            raise
        except Exception as exc:
            logger.error("analysis_crashed", extra={"community_id": community_id}, exc_info=True)
            self._fail(community_id, f"Unexpected error: {exc}")
            raise
        finally:
            self._running = False

    async def _run(self, community_id: int) -> AnalysisResult:
        logger.info("analysis_starting", extra={"community_id": community_id})
        self.progress.begin_enumeration()

        members = await enumerate_members(
            self._groups,
            community_id,
            self.progress,
            max_pages=self._max_pages,
            page_delay=self._page_delay,
        )
        self.progress.begin_valuation(len(members))

        valuate = functools.partial(
            value_member, self._inventory, value_floor=self._value_floor,
        )
        valued = await run_batches(
            members,
            valuate,
            self.progress,
            batch_size=self._batch_size,
            concurrent_batches=self._concurrent_batches,
            group_delay=self._group_delay,
        )

        ranked = rank_records(valued, value_floor=self._value_floor)
        self.progress.complete(ranked)
        self._state = RunState.COMPLETED

        logger.info(
            "analysis_complete",
            extra={
                "community_id": community_id,
                "members": len(members),
                "wealthy_members": len(ranked),
            },
        )
        return AnalysisResult(
            community_id=community_id,
            members=ranked,
            total_processed=len(members),
        )

    def _fail(self, community_id: int, message: str) -> None:
        self.progress.fail(message)
        self._state = RunState.FAILED
        logger.warning(
            "analysis_failed",
            extra={"community_id": community_id, "error": message},
        )

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------

    async def start_analysis(self, community_id: int) -> dict[str, Any]:
        """Run and return ``{success, members, totalProcessed}`` or
        ``{success: False, error, errorType}``. Never raises."""
        try:
            result = await self.run(community_id)
        except Exception as exc:
            return _error_response(exc)
        return result.to_response()

    async def start_analysis_from_link(self, link: str) -> dict[str, Any]:
        """Validate a community link, remember it, then run."""
        if self._running:
            return _error_response(BusyError())
        try:
            community_id = parse_community_link(link, self._link_hosts)
        except ValidationError as exc:
            logger.info("community_link_rejected", extra={"error": str(exc)})
            return _error_response(exc)

        if self._store is not None:
            try:
                self._store.save(link.strip(), community_id)
            except OSError:
                logger.warning("last_input_save_failed", exc_info=True)
        return await self.start_analysis(community_id)

    def get_progress(self) -> dict[str, Any]:
        snapshot = self.progress.snapshot()
        snapshot["state"] = self._state.value
        return snapshot


def _error_response(exc: Exception) -> dict[str, Any]:
    return {
        "success": False,
        "error": str(exc) or type(exc).__name__,
        "errorType": type(exc).__name__,
    }
