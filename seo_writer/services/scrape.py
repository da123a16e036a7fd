import logging
import re
from typing import Any, Dict

import requests
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS = 15000
NOISE_TAGS = ["script", "style", "noscript", "iframe", "svg"]

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Cache-Control": "max-age=0",
}

_WHITESPACE_RE = re.compile(r"\s+")


def _clean(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _texts(soup: BeautifulSoup, tag: str) -> list:
    return [t for t in (_clean(el.get_text(" ")) for el in soup.find_all(tag)) if t]


def parse_page(url: str, html: str) -> Dict[str, Any]:
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup(NOISE_TAGS):
        tag.decompose()

    title = soup.title.get_text(strip=True) if soup.title else ""
    meta_desc = soup.find("meta", attrs={"name": "description"})
    description = meta_desc.get("content", "").strip() if meta_desc else ""

    container = soup.find("main") or soup.body or soup
    text = _clean(container.get_text(" "))[:MAX_TEXT_CHARS]

    return {
        "url": url,
        "title": title,
        "description": description,
        "headings": {
            "h1": _texts(soup, "h1"),
            "h2": _texts(soup, "h2"),
            "h3": _texts(soup, "h3"),
        },
        "text": text,
    }


def scrape_page(url: str) -> Dict[str, Any]:
    """Fetch a page with browser-like headers and extract its SEO-relevant parts.

    Raises requests exceptions on network errors or non-2xx responses.
    """
    try:
        resp = requests.get(url, headers=BROWSER_HEADERS, timeout=20, allow_redirects=True)
        resp.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f"[Scrape] Failed to fetch {url}: {e}")
        raise

    data = parse_page(url, resp.text)
    headings = data["headings"]
    logger.info(
        f"[Scrape] {url}: title={data['title'][:60]!r} "
        f"H1({len(headings['h1'])}) H2({len(headings['h2'])}) H3({len(headings['h3'])}) "
        f"text={len(data['text'])} chars"
    )
    return data
