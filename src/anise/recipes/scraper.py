"""
Anise - Recipe page scraping.

Fetches a recipe page and reduces it to readable text for extraction:
boilerplate (scripts, navigation, ads) is dropped, the main content block
is located, and structure survives as markdown-ish text (### headings,
bullets, paragraph breaks).
"""

import logging
import re

import httpx
from bs4 import BeautifulSoup, Tag

from anise.config import settings
from anise.errors import ScrapeError

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

REMOVED_SELECTOR = "script, style, nav, header, footer, aside, .advertisement, .ads, .social-share"

# Common main-content containers on recipe sites, most specific first
CONTENT_SELECTORS = [
    "article",
    "main",
    '[role="main"]',
    ".recipe",
    ".entry-content",
    ".post-content",
    ".content",
]

_HEADING = re.compile(r"^h[1-6]$")
_INLINE_SPACE = re.compile(r"[ \t]+")
_SPACE_AROUND_NEWLINE = re.compile(r" *\n *")
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


def _find_content(soup: BeautifulSoup) -> Tag:
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is not None and element.decode_contents().strip():
            return element
    return soup.body or soup


def clean_html(html: str) -> str:
    """Reduce a recipe page to structured plain text."""
    soup = BeautifulSoup(html, "html.parser")

    for element in soup.select(REMOVED_SELECTOR):
        element.decompose()

    content = _find_content(soup)

    for heading in content.find_all(_HEADING):
        heading.insert_before("\n### ")
        heading.insert_after("\n")
    for item in content.find_all("li"):
        item.insert_before("\n• ")
    for paragraph in content.find_all("p"):
        paragraph.insert_before("\n")
        paragraph.insert_after("\n")
    for br in content.find_all("br"):
        br.replace_with("\n")

    text = content.get_text(" ")
    text = _INLINE_SPACE.sub(" ", text)
    text = _SPACE_AROUND_NEWLINE.sub("\n", text)
    text = _EXTRA_BLANK_LINES.sub("\n\n", text)
    return text.strip()


async def fetch_page_text(url: str, *, client: httpx.AsyncClient | None = None) -> str:
    """
    Fetch `url` and return its cleaned text.

    Raises:
        ScrapeError: timeout, HTTP error status or connection failure
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(follow_redirects=True, timeout=settings.scrape_timeout_seconds)

    try:
        response = await client.get(url, headers=BROWSER_HEADERS)
        response.raise_for_status()
        html = response.text
    except httpx.TimeoutException as e:
        raise ScrapeError(url, "Request timed out. Please try again.") from e
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status == 403:
            message = "This website blocked our request"
        elif status == 404:
            message = "Recipe page not found"
        else:
            message = f"Failed to fetch page: HTTP {status}"
        raise ScrapeError(url, message, status_code=status) from e
    except httpx.HTTPError as e:
        raise ScrapeError(url, f"Failed to fetch page: {e}") from e
    finally:
        if owns_client:
            await client.aclose()

    text = clean_html(html)
    logger.info(f"Fetched {url}: {len(html)} bytes of HTML, {len(text)} chars of text")
    return text
