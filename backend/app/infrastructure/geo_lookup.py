"""Geo Lookup — best-effort country/city/region for a visitor IP over HTTP.

Invariants:
    - Private, loopback and empty addresses are never sent to the provider
    - Never raises: timeouts, HTTP errors and malformed bodies all yield an empty GeoInfo
    - Hard timeout from settings (default 2 s) so ingestion latency stays bounded
"""

import logging
from dataclasses import dataclass

import httpx

from app.config import get_settings
from app.core.ip_privacy import is_private_ip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoInfo:
    country: str | None = None
    city: str | None = None
    region: str | None = None


async def lookup_geo(ip: str | None) -> GeoInfo:
    if not ip or is_private_ip(ip):
        return GeoInfo()
    settings = get_settings()
    url = f"{settings.geo_lookup_url.rstrip('/')}/{ip}"
    try:
        async with httpx.AsyncClient(timeout=settings.geo_lookup_timeout_seconds) as client:
            resp = await client.get(url, params={"fields": "status,country,city,regionName"})
            resp.raise_for_status()
            data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Geo lookup failed: {e}")
        return GeoInfo()
    if data.get("status") != "success":
        return GeoInfo()
    return GeoInfo(
        country=data.get("country") or None,
        city=data.get("city") or None,
        region=data.get("regionName") or None,
    )
