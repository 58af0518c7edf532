"""Best-effort parsing of the recommendation block at the end of an analysis."""

import json
import logging
import re

logger = logging.getLogger(__name__)

_JSON_BLOCK_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)


def parse_recommendations(text: str | None) -> list[str]:
    """Extract the recommended items from an analysis text.

    An absent or malformed block yields an empty list, never an error.
    """
    if not text:
        return []
    match = _JSON_BLOCK_RE.search(text)
    if not match:
        return []

    try:
        data = json.loads(match.group(1))
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse recommendations JSON: %s", e)
        return []

    items = data.get("recommendations") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return []
    return [item.strip() for item in items if isinstance(item, str) and item.strip()]
