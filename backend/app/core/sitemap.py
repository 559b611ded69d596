"""Sitemap — sitemaps.org XML for the public marketing site."""

from datetime import date
from xml.sax.saxutils import escape

# (path, priority, changefreq)
STATIC_PAGES = (
    ("/landing", "1.0", "weekly"),
    ("/pricing", "0.9", "monthly"),
    ("/docs", "0.9", "weekly"),
    ("/use-cases", "0.8", "monthly"),
    ("/capabilities", "0.8", "monthly"),
    ("/start-guide", "0.8", "monthly"),
    ("/connectors", "0.7", "monthly"),
    ("/help-center", "0.6", "monthly"),
    ("/security", "0.5", "monthly"),
    ("/trust-center", "0.5", "monthly"),
    ("/contact", "0.6", "monthly"),
    ("/login", "0.4", "monthly"),
    ("/terms", "0.3", "yearly"),
    ("/privacy-policy", "0.3", "yearly"),
)


def _url(loc: str, lastmod: str, changefreq: str, priority: str) -> str:
    return (
        "  <url>\n"
        f"    <loc>{escape(loc)}</loc>\n"
        f"    <lastmod>{lastmod}</lastmod>\n"
        f"    <changefreq>{changefreq}</changefreq>\n"
        f"    <priority>{priority}</priority>\n"
        "  </url>\n"
    )


def build_sitemap(base_url: str, cms_slugs: list[str], today: date | None = None) -> str:
    base = base_url.rstrip("/")
    lastmod = (today or date.today()).isoformat()
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>\n',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n',
    ]
    for path, priority, changefreq in STATIC_PAGES:
        parts.append(_url(f"{base}{path}", lastmod, changefreq, priority))
    for slug in cms_slugs:
        parts.append(_url(f"{base}/page/{slug}", lastmod, "weekly", "0.5"))
    parts.append("</urlset>")
    return "".join(parts)
