"""Tracking Verifier — checks a project's live page for the tracking snippet.

Invariants:
    - verified only when the HTML contains both "snippet.js" and this project's id
    - A UUID within 500 chars of a snippet reference that is not this project's id
      is reported as foundOtherProjectId
    - Fetch failures come back as verified=false with a message, never as 5xx
    - Success stamps tracking_verified and tracking_verified_at; the caller commits
"""

import logging
import re

from app.db.base import utcnow
from app.infrastructure.page_fetcher import fetch_page, normalize_site_url
from app.models.project import Project

logger = logging.getLogger(__name__)

SNIPPET_MARKER = "snippet.js"
NEARBY_CHARS = 500
_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE,
)


def find_other_project_id(html: str, project_id: str) -> str | None:
    """First UUID near a snippet reference that differs from project_id."""
    start = html.find(SNIPPET_MARKER)
    while start != -1:
        window = html[max(0, start - NEARBY_CHARS): start + len(SNIPPET_MARKER) + NEARBY_CHARS]
        for match in _UUID_RE.finditer(window):
            if match.group(0).lower() != project_id.lower():
                return match.group(0)
        start = html.find(SNIPPET_MARKER, start + 1)
    return None


def inspect_html(html: str, project_id: str) -> dict:
    found_snippet = SNIPPET_MARKER in html
    found_project_id = project_id in html
    has_data_attribute = (
        f'data-project-id="{project_id}"' in html
        or f"data-project-id='{project_id}'" in html
    )
    other_id = None
    if found_snippet and not found_project_id:
        other_id = find_other_project_id(html, project_id)

    verified = found_snippet and found_project_id
    if verified:
        message = "Tracking code successfully detected on your website!"
    elif other_id:
        message = (
            f"Found snippet.js on your website but it's using a different project ID "
            f"({other_id}). Please update the tracking code on your website with the "
            "latest snippet from your current project."
        )
    elif found_snippet:
        message = (
            "Found snippet.js but could not find your project ID. "
            "Make sure you're using the correct tracking code."
        )
    else:
        message = (
            "Tracking code not found on the page. Make sure you've added the "
            "snippet to your website's <head> tag."
        )
    return {
        "verified": verified,
        "foundSnippet": found_snippet,
        "foundProjectId": found_project_id,
        "hasDataAttribute": has_data_attribute,
        "foundOtherProjectId": other_id,
        "message": message,
    }


def _unverified(url: str, message: str) -> dict:
    return {
        "verified": False,
        "foundSnippet": False,
        "foundProjectId": False,
        "hasDataAttribute": False,
        "foundOtherProjectId": None,
        "checkedUrl": url,
        "message": message,
    }


async def verify_tracking(project: Project, url: str | None = None) -> dict:
    """Fetch the site (explicit url, else the project domain) and inspect it."""
    target = normalize_site_url(url or project.domain)
    page = await fetch_page(target)
    if page.error:
        return _unverified(target, page.error)
    if not page.ok:
        return _unverified(target, f"Website returned status {page.status_code}")

    result = inspect_html(page.html, str(project.id))
    result["checkedUrl"] = target
    if result["verified"]:
        project.tracking_verified = True
        project.tracking_verified_at = utcnow()
        logger.info(
            "Tracking verified", extra={"project_id": str(project.id)},
        )
    return result
