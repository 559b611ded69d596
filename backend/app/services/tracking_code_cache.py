"""Tracking Code Cache — site-wide head/body tag snippets, rebuilt at most once per TTL.

Invariants:
    - The cache holds one entry (the codes for the single site_settings row)
    - invalidate() is called whenever site settings change
    - A missing settings row yields empty codes, not an error

Design Decisions:
    - Module-level cache: deliberate exception to no-global-state rule
      (ADR: single-process uvicorn; a stale entry lives at most one TTL per worker)
"""

import logging
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.tracking_codes import TRACKING_SETTING_KEYS, build_tracking_codes
from app.models.cms import SiteSettings

logger = logging.getLogger(__name__)

_EMPTY = {"head": "", "body": ""}
_cache: dict | None = None
_cached_at: float = 0.0


def invalidate() -> None:
    global _cache
    _cache = None


async def get_tracking_codes(db: AsyncSession) -> dict[str, str]:
    global _cache, _cached_at
    ttl = get_settings().tracking_codes_cache_seconds
    now = time.monotonic()
    if _cache is not None and now - _cached_at < ttl:
        return _cache

    row = (await db.execute(select(SiteSettings).limit(1))).scalar_one_or_none()
    if row is None:
        codes = dict(_EMPTY)
    else:
        codes = build_tracking_codes({key: getattr(row, key) for key in TRACKING_SETTING_KEYS})
    _cache, _cached_at = codes, now
    logger.debug("Tracking codes rebuilt")
    return codes
