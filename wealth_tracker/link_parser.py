from __future__ import annotations

import re
from collections.abc import Sequence

from wealth_tracker.config import COMMUNITY_LINK_HOSTS
from wealth_tracker.errors import ValidationError


def _link_pattern(hosts: Sequence[str]) -> re.Pattern[str]:
    host_alt = "|".join(re.escape(h) for h in hosts)
    # The id must end the path segment: 42abc is not community 42
    return re.compile(rf"https://(?:{host_alt})/communities/([0-9]+)(?:[/?#].*)?")


def parse_community_link(link: object, hosts: Sequence[str] = COMMUNITY_LINK_HOSTS) -> int:
    """Return the community id from ``https://<host>/communities/<id>[...]``.

    Raises ValidationError for anything else, before any network call.
    """
    if not isinstance(link, str) or not link.strip():
        raise ValidationError("Please enter a community link")

    text = link.strip()
    prefixes = tuple(f"https://{h}/communities/" for h in hosts)
    if not hosts or not text.startswith(prefixes):
        raise ValidationError("Invalid community link format")

    match = _link_pattern(hosts).fullmatch(text)
    if not match:
        raise ValidationError("Could not extract valid community ID from link")

    community_id = int(match.group(1))
    if community_id <= 0:
        raise ValidationError("Could not extract valid community ID from link")
    return community_id
