"""aiohttp command surface: start analyses and poll their progress."""

from __future__ import annotations

import logging

from aiohttp import web

from wealth_tracker.config import COMMAND_HOST, COMMAND_PORT
from wealth_tracker.errors import ValidationError
from wealth_tracker.orchestrator import AnalysisOrchestrator
from wealth_tracker.state_store import LastInputStore

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    "ValidationError": 400,
    "AuthError": 401,
    "EnumerationError": 404,
    "BusyError": 409,
}


class CommandServer:
    """Expose the orchestrator over HTTP.

    POST /analysis   {"link": ...} or {"communityId": ...}
    GET  /progress   progress snapshot
    GET  /last-input last validated link, for prefilling
    GET  /health     ready signal
    """

    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        store: LastInputStore | None = None,
        *,
        host: str = COMMAND_HOST,
        port: int = COMMAND_PORT,
    ) -> None:
        self._orchestrator = orchestrator
        self._store = store
        self._host = host
        self._port = port
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/analysis", self._analysis_handler)
        app.router.add_get("/progress", self._progress_handler)
        app.router.add_get("/last-input", self._last_input_handler)
        app.router.add_get("/health", self._health_handler)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        logger.info("command_server_started", extra={"host": self._host, "port": self._port})

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def _analysis_handler(self, request: web.Request) -> web.Response:
        try:
            body = await request.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return _error(ValidationError("Request body must be a JSON object"))

        if "link" in body:
            response = await self._orchestrator.start_analysis_from_link(body["link"])
        else:
            community_id = _coerce_community_id(body.get("communityId"))
            if community_id is None:
                return _error(ValidationError("communityId must be a positive integer"))
            response = await self._orchestrator.start_analysis(community_id)

        if response.get("success"):
            return web.json_response(response)
        status = _ERROR_STATUS.get(response.get("errorType", ""), 500)
        return web.json_response(response, status=status)

    async def _progress_handler(self, request: web.Request) -> web.Response:
        return web.json_response(self._orchestrator.get_progress())

    async def _last_input_handler(self, request: web.Request) -> web.Response:
        saved = self._store.load() if self._store is not None else None
        return web.json_response(saved or {})

    async def _health_handler(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "state": self._orchestrator.state.value,
            "running": self._orchestrator.is_running,
        })


def _coerce_community_id(raw: object) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, str) and raw.isascii() and raw.isdigit():
        raw = int(raw)
    if isinstance(raw, int) and raw > 0:
        return raw
    return None


def _error(exc: Exception) -> web.Response:
    return web.json_response(
        {"success": False, "error": str(exc), "errorType": type(exc).__name__},
        status=_ERROR_STATUS.get(type(exc).__name__, 500),
    )
