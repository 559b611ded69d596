"""Tests for the public sitemap."""

from datetime import date

from app.core.sitemap import STATIC_PAGES, build_sitemap


def test_static_and_cms_pages_listed():
    xml = build_sitemap("https://example.com/", ["about-us"], today=date(2025, 3, 1))
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert xml.count("<url>") == len(STATIC_PAGES) + 1
    assert "<loc>https://example.com/landing</loc>" in xml
    assert "<loc>https://example.com/page/about-us</loc>" in xml
    assert "<lastmod>2025-03-01</lastmod>" in xml
    assert xml.endswith("</urlset>")


def test_slugs_are_xml_escaped():
    xml = build_sitemap("https://example.com", ["a&b"], today=date(2025, 3, 1))
    assert "/page/a&amp;b</loc>" in xml
