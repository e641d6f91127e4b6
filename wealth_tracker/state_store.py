"""JSON-file persistence for the last validated community link."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from wealth_tracker.config import STATE_PATH

logger = logging.getLogger(__name__)


class LastInputStore:
    """Key-value store holding ``communityLink`` and ``communityId``.

    Overwritten on every successful validation and read once at startup to
    prefill the command surface.
    """

    def __init__(self, path: Path = STATE_PATH) -> None:
        self._path = Path(path)

    def save(self, link: str, community_id: int) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(
            json.dumps({"communityLink": link, "communityId": community_id}),
            encoding="utf-8",
        )
        tmp.replace(self._path)

    def load(self) -> dict[str, Any] | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logger.warning("last_input_unreadable", extra={"path": str(self._path)}, exc_info=True)
            return None
        if not isinstance(data, dict) or not data.get("communityLink"):
            return None
        return {
            "communityLink": str(data["communityLink"]),
            "communityId": data.get("communityId"),
        }
