"""Data classes and enums for the community wealth tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class RunState(str, Enum):
    """Lifecycle of the analysis orchestrator."""
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class ProgressPhase(str, Enum):
    """What the current run is doing."""
    IDLE = "idle"
    ENUMERATING = "enumerating"
    VALUATING = "valuating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Member:
    """A community member discovered through the group roster."""
    user_id: int
    username: str


@dataclass(frozen=True)
class InventoryItem:
    """A collectible with a recorded market value (RAP)."""
    name: str
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class WealthRecord:
    """A member whose qualifying holdings clear the value floor."""
    user_id: int
    username: str
    total_value: int
    valuable_items: tuple[InventoryItem, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "totalValue": self.total_value,
            "valuableItems": [item.to_dict() for item in self.valuable_items],
        }


@dataclass
class ApiResult:
    """Outcome of one gateway call. Never raised, always returned."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class AnalysisResult:
    """Ranked output of a completed run."""
    community_id: int
    members: list[WealthRecord] = field(default_factory=list)
    total_processed: int = 0

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "members": [r.to_dict() for r in self.members],
            "totalProcessed": self.total_processed,
        }
