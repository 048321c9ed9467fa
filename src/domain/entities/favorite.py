"""Favorite token set rules."""

import re
from typing import Iterable

MAX_FAVORITES = 200
TOKEN_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{1,100}$")


def normalize_token_ids(token_ids: Iterable[str]) -> list[str]:
    """Lowercase and de-duplicate token ids, keeping first-seen order."""
    seen: dict[str, None] = {}
    for token_id in token_ids:
        seen.setdefault(str(token_id).lower(), None)
    return list(seen)
