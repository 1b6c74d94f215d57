from __future__ import annotations

from typing import Iterable
from xml.sax.saxutils import escape

STATIC_PATHS = ("/", "/search", "/add", "/about", "/contact")
CHANGE_FREQUENCY = "daily"


def _url_entry(loc: str, priority: str) -> str:
    return (
        "  <url>\n"
        f"    <loc>{escape(loc)}</loc>\n"
        f"    <changefreq>{CHANGE_FREQUENCY}</changefreq>\n"
        f"    <priority>{priority}</priority>\n"
        "  </url>"
    )


def build_sitemap(site_url: str, slugs: Iterable[str]) -> str:
    """Render the ``urlset`` document for the static pages and listed businesses."""
    base = site_url.rstrip("/")
    entries = [_url_entry(f"{base}{path}", "1.0" if path == "/" else "0.7") for path in STATIC_PATHS]
    entries.extend(_url_entry(f"{base}/business/{slug}", "0.7") for slug in slugs if slug)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">\n'
        + "\n".join(entries)
        + "\n</urlset>\n"
    )
