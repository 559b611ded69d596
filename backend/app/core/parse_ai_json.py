"""AI JSON Parsing — extract a JSON object from a model reply.

Fallback levels:
    1. Direct json.loads
    2. Regex: first {...} block (handles ```json fences and chatter)
    3. Raise AIResponseError: callers never persist half-parsed output
"""

import json
import logging
import re

from app.core.errors import AIResponseError

logger = logging.getLogger(__name__)

_OBJECT_BLOCK = re.compile(r"\{[\s\S]*\}")


def parse_ai_json(text: str) -> dict:
    text = text.strip()

    # Level 1: direct parse
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None

    # Level 2: extract JSON block
    if parsed is None:
        match = _OBJECT_BLOCK.search(text)
        if match:
            try:
                parsed = json.loads(match.group())
            except json.JSONDecodeError:
                parsed = None

    if not isinstance(parsed, dict):
        logger.warning("Model returned non-JSON response", extra={"error_code": "AI_RESPONSE_INVALID"})
        raise AIResponseError("Failed to parse AI JSON response")
    return parsed
