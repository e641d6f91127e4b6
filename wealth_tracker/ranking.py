from __future__ import annotations

from collections.abc import Iterable

from wealth_tracker.config import VALUE_FLOOR
from wealth_tracker.models import WealthRecord


def rank_records(
    records: Iterable[WealthRecord], *, value_floor: int = VALUE_FLOOR,
) -> list[WealthRecord]:
    # sorted() is stable, so equal totals keep discovery order
    eligible = [r for r in records if r.total_value > value_floor]
    return sorted(eligible, key=lambda r: r.total_value, reverse=True)


def format_value(value: int) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:,}"
