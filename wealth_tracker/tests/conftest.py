"""Shared fixtures: an in-memory Roblox API behind httpx.MockTransport."""

import re

import httpx
import pytest

from wealth_tracker.api.gateway import RequestGateway
from wealth_tracker.orchestrator import AnalysisOrchestrator

_ROSTER_PATH = re.compile(r"/v1/groups/(\d+)/users")
_INVENTORY_PATH = re.compile(r"/v1/users/(\d+)/assets/collectibles")


class FakeRobloxApi:
    """Groups + Inventory endpoints served from plain Python data.

    Cursors are stringified offsets. Users in ``failing_users`` get a 403
    without a token; users in ``raising_users`` make the transport raise.
    """

    def __init__(self, members=(), inventories=None):
        self.members = list(members)
        self.inventories = inventories or {}
        self.failing_users: set[int] = set()
        self.raising_users: set[int] = set()
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if _ROSTER_PATH.fullmatch(path):
            cursor = request.url.params.get("cursor")
            start = int(cursor) if cursor else 0
            limit = int(request.url.params.get("limit", "100"))
            chunk = self.members[start : start + limit]
            end = start + limit
            return httpx.Response(200, json={
                "data": [
                    {"user": {"userId": uid, "username": name}, "role": {"name": "Member"}}
                    for uid, name in chunk
                ],
                "nextPageCursor": str(end) if end < len(self.members) else None,
            })

        match = _INVENTORY_PATH.fullmatch(path)
        if match:
            uid = int(match.group(1))
            if uid in self.raising_users:
                raise httpx.ConnectError("connection reset", request=request)
            if uid in self.failing_users:
                return httpx.Response(403, json={"errors": [{"message": "private"}]})
            return httpx.Response(200, json={"data": self.inventories.get(uid, [])})

        return httpx.Response(404)

    def roster_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if _ROSTER_PATH.fullmatch(r.url.path)]

    def gateway(self) -> RequestGateway:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return RequestGateway(security_cookie="", client=client, rate_limit_backoff=0)

    def orchestrator(self, **kwargs) -> AnalysisOrchestrator:
        kwargs.setdefault("page_delay", 0)
        kwargs.setdefault("group_delay", 0)
        return AnalysisOrchestrator.from_gateway(self.gateway(), **kwargs)


def rich_members(count, value=15_000, start_id=1):
    """Members with one collectible each worth ``value``."""
    members = [(uid, f"user{uid}") for uid in range(start_id, start_id + count)]
    inventories = {
        uid: [{"name": f"Item {uid}", "recentAveragePrice": value}] for uid, _ in members
    }
    return members, inventories


@pytest.fixture
def make_api():
    return FakeRobloxApi


@pytest.fixture
def make_rich_members():
    return rich_members
