"""Tests for per-member inventory valuation."""

import pytest

from wealth_tracker.api.inventory_client import InventoryClient
from wealth_tracker.jobs.inventory_valuator import build_wealth_record, value_member
from wealth_tracker.models import ApiResult, InventoryItem, Member

MEMBER = Member(user_id=7, username="seven")


class _StubInventory:
    def __init__(self, result=None, exc=None):
        self._result = result
        self._exc = exc

    async def fetch_collectibles(self, user_id):
        if self._exc is not None:
            raise self._exc
        return self._result


def test_only_items_above_floor_count():
    items = [
        InventoryItem("Dominus", 20_000),
        InventoryItem("Cheap Hat", 9_000),
        InventoryItem("Exactly Floor", 10_000),
        InventoryItem("Valk", 15_000),
    ]

    record = build_wealth_record(MEMBER, items)

    assert record.total_value == 35_000
    assert [i.name for i in record.valuable_items] == ["Dominus", "Valk"]
    assert record.user_id == 7
    assert record.username == "seven"


def test_member_without_qualifying_items_is_dropped():
    items = [InventoryItem("A", 10_000), InventoryItem("B", 5_000)]
    assert build_wealth_record(MEMBER, items) is None
    assert build_wealth_record(MEMBER, []) is None


@pytest.mark.asyncio
async def test_value_member_from_api_payload():
    payload = {"data": [
        {"name": "Sparkle Time Fedora", "recentAveragePrice": 50_000},
        {"name": "Unpriced", "recentAveragePrice": None, "value": 12_000},
        {"name": "No price"},
    ]}
    client = _StubInventory(ApiResult(success=True, data=payload))

    record = await value_member(client, MEMBER)

    assert record.total_value == 62_000
    assert [i.value for i in record.valuable_items] == [50_000, 12_000]


@pytest.mark.asyncio
async def test_fetch_failure_yields_none():
    client = _StubInventory(ApiResult(success=False, error="HTTP 403: Forbidden", status_code=403))
    assert await value_member(client, MEMBER) is None


@pytest.mark.asyncio
async def test_client_exception_yields_none():
    client = _StubInventory(exc=RuntimeError("socket closed"))
    assert await value_member(client, MEMBER) is None


@pytest.mark.asyncio
async def test_requests_first_page_of_collectibles(make_api):
    api = make_api(inventories={7: [{"name": "Hat", "recentAveragePrice": 11_000}]})

    record = await value_member(InventoryClient(api.gateway()), MEMBER)

    assert record.total_value == 11_000
    url = api.requests[0].url
    assert url.path == "/v1/users/7/assets/collectibles"
    assert url.params["limit"] == "100"
    assert url.params["sortOrder"] == "Desc"


def test_parse_item_rejects_unusable_values():
    assert InventoryClient.parse_item({"name": "x", "recentAveragePrice": -1}) is None
    assert InventoryClient.parse_item({"name": "x", "recentAveragePrice": True}) is None
    assert InventoryClient.parse_item({"name": "x", "recentAveragePrice": "100"}) is None
    assert InventoryClient.parse_item({"name": "x", "recentAveragePrice": 100}) == InventoryItem("x", 100)
