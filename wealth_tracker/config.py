"""Tracker configuration loaded from environment variables."""

import logging
import os
import sys
from pathlib import Path

from pythonjsonlogger import jsonlogger

# ---------------------------------------------------------------------------
# Roblox API base URLs
# ---------------------------------------------------------------------------
GROUPS_API_URL = os.environ.get("GROUPS_API_URL", "https://groups.roblox.com")
INVENTORY_API_URL = os.environ.get("INVENTORY_API_URL", "https://inventory.roblox.com")
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "30.0"))   # httpx timeout in seconds

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------
ROBLOX_SECURITY_COOKIE = os.environ.get("ROBLOX_SECURITY_COOKIE", "")
AUTH_COOKIE_NAME = ".ROBLOSECURITY"
CSRF_HEADER = "X-CSRF-TOKEN"

# ---------------------------------------------------------------------------
# Member enumeration
# ---------------------------------------------------------------------------
MEMBER_PAGE_LIMIT = 100          # API max per page
MEMBER_MAX_PAGES = 200           # Safety valve: at most 20,000 members
MEMBER_PAGE_DELAY = float(os.environ.get("MEMBER_PAGE_DELAY", "0.1"))

# ---------------------------------------------------------------------------
# Valuation
# ---------------------------------------------------------------------------
INVENTORY_LIMIT = 100            # Only the first page of collectibles is valued
VALUE_FLOOR = 10_000             # Items and totals must be strictly above this

# ---------------------------------------------------------------------------
# Batch scheduling
# ---------------------------------------------------------------------------
BATCH_SIZE = 50                  # Members per concurrent group
CONCURRENT_BATCHES = 5           # Groups per outer iteration
BATCH_GROUP_DELAY = float(os.environ.get("BATCH_GROUP_DELAY", "0.2"))

# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------
RATE_LIMIT_MAX_RETRIES = 3
RATE_LIMIT_BASE_BACKOFF = 1.0    # Seconds, doubles per retry

# ---------------------------------------------------------------------------
# Input validation / persisted input
# ---------------------------------------------------------------------------
COMMUNITY_LINK_HOSTS = [
    h.strip()
    for h in os.environ.get("COMMUNITY_LINK_HOSTS", "www.roblox.com").split(",")
    if h.strip()
]
STATE_PATH = Path(os.environ.get("STATE_PATH", "data/last_input.json"))

# ---------------------------------------------------------------------------
# Command server
# ---------------------------------------------------------------------------
COMMAND_HOST = os.environ.get("COMMAND_HOST", "127.0.0.1")
COMMAND_PORT = int(os.environ.get("COMMAND_PORT", "8080"))

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


def setup_logging() -> None:
    """Configure structured JSON logging."""
    handler = logging.StreamHandler(sys.stdout)
    formatter = jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(LOG_LEVEL)

    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
