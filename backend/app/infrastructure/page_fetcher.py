"""Page Fetcher — download a project's public page for tracking verification.

Invariants:
    - Local hosts (localhost, 127.0.0.1, 0.0.0.0, ::1) are rejected before any request
    - Missing scheme defaults to https://; only http and https are fetched
    - Network failures never raise: they come back as FetchedPage.error so the
      caller can report them as an unverified result
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx

from app.config import get_settings
from app.core.errors import ValidationFailedError

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "0.0.0.0", "::1")
USER_AGENT = "MyUserJourney-TrackingVerifier/1.0"


@dataclass(frozen=True)
class FetchedPage:
    url: str
    status_code: int | None = None
    html: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.status_code is not None and self.status_code < 400


def normalize_site_url(raw: str) -> str:
    url = raw.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if not host:
        raise ValidationFailedError("Invalid URL", field="url")
    if host in LOCAL_HOSTS:
        raise ValidationFailedError("Cannot verify localhost URLs", field="url")
    return url


async def fetch_page(url: str) -> FetchedPage:
    settings = get_settings()
    try:
        async with httpx.AsyncClient(
            timeout=settings.tracking_verify_timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            resp = await client.get(url)
    except httpx.TimeoutException:
        logger.warning(f"Timed out fetching {url}")
        return FetchedPage(url, error="Request timed out. Make sure the website is accessible.")
    except httpx.HTTPError as e:
        logger.warning(f"Failed to fetch {url}: {e}")
        return FetchedPage(url, error=f"Could not reach the website: {e}")
    return FetchedPage(url, status_code=resp.status_code, html=resp.text)
