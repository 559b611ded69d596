"""Traffic Classification — attributes a visit to a marketing channel from referrer and landing URL.

Invariants:
    - Rules evaluated in fixed order: direct, search, social, email referrers,
      then utm/click-id markers on the page URL, then self-referral, else referral
    - Pure function of its inputs (no I/O)
    - Always returns a TrafficSource value string

Design Decisions:
    - Substring matching over a domain allow-list: referrers arrive as full URLs
      in many shapes (ADR: cheap and good enough for channel grouping)
"""

from urllib.parse import urlparse

from app.core.domain_types import TrafficSource

_DIRECT_REFERRERS = ("", "direct", "(none)")

SEARCH_ENGINES = (
    "google.", "bing.", "yahoo.", "duckduckgo.", "baidu.", "yandex.", "ecosia.", "ask.",
)
SOCIAL_PLATFORMS = (
    "facebook.", "instagram.", "twitter.", "t.co", "linkedin.", "youtube.",
    "tiktok.", "reddit.", "pinterest.", "threads.",
)
EMAIL_PROVIDERS = ("mail.", "outlook.", "gmail.", "yahoo.com/mail", "proton.")

# (markers, channel), checked in order against the lowercased landing URL
_PAGE_MARKERS: tuple[tuple[tuple[str, ...], TrafficSource], ...] = (
    (("utm_medium=cpc", "utm_medium=paid", "gclid=", "msclkid="), TrafficSource.PAID_SEARCH),
    (("utm_medium=social", "utm_medium=paid_social"), TrafficSource.PAID_SOCIAL),
    (("utm_medium=display", "utm_medium=banner"), TrafficSource.DISPLAY),
    (("utm_medium=affiliate",), TrafficSource.AFFILIATE),
    (("utm_medium=email", "utm_medium=newsletter"), TrafficSource.EMAIL),
)


def normalize_domain(domain: str | None) -> str:
    """Lowercase host with any leading 'www.' removed."""
    host = (domain or "").strip().lower()
    return host[4:] if host.startswith("www.") else host


def referrer_host(referrer: str | None) -> str:
    """Hostname of a referrer URL (scheme optional), 'www.' stripped; '' when unparseable."""
    if not referrer:
        return ""
    ref = referrer.strip()
    if not ref.lower().startswith("http"):
        ref = f"https://{ref}"
    try:
        host = urlparse(ref).hostname or ""
    except ValueError:
        return ""
    return normalize_domain(host)


def classify_traffic_source(
    referrer: str | None, page: str | None, project_domain: str | None,
) -> str:
    """Classify one visit into a channel (TrafficSource value)."""
    if not referrer or referrer.strip().lower() in _DIRECT_REFERRERS:
        return TrafficSource.DIRECT.value

    ref = referrer.lower()
    if any(se in ref for se in SEARCH_ENGINES):
        return TrafficSource.ORGANIC_SEARCH.value
    if any(sp in ref for sp in SOCIAL_PLATFORMS):
        return TrafficSource.SOCIAL.value
    if any(ep in ref for ep in EMAIL_PROVIDERS):
        return TrafficSource.EMAIL.value

    if page:
        url = page.lower()
        for markers, channel in _PAGE_MARKERS:
            if any(m in url for m in markers):
                return channel.value

    domain = normalize_domain(project_domain)
    if domain and referrer_host(referrer) == domain:
        return TrafficSource.INTERNAL.value
    return TrafficSource.REFERRAL.value


def is_foreign_host(page_host: str | None, project_domain: str | None) -> bool:
    """True when the page host is neither the project domain nor one of its subdomains."""
    host = normalize_domain(page_host)
    domain = normalize_domain(project_domain)
    if not host or not domain:
        return False
    return host != domain and not host.endswith("." + domain)
