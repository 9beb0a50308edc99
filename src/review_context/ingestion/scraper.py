"""Web page scraping — best-effort text and title for a URL.

Static pages are fetched with ``requests`` and parsed with BeautifulSoup.
Pages that look client-side rendered, or whose static text is very short,
are handed to an optional :class:`PageRenderer` (a headless browser, for
instance). Without a renderer those attempts count as failures and the
static result is kept where one exists.

The thresholds behind "looks client-side rendered" and "very short" are
heuristics; they live in :mod:`review_context.config` so they can be tuned.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Protocol

import requests
from bs4 import BeautifulSoup

from review_context.config import settings

logger = logging.getLogger(__name__)

CONTENT_TAGS = ["p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "span", "div"]
FRAMEWORK_MARKERS = ("react", "vue", "angular", "next", "nuxt")


class ScrapeError(RuntimeError):
    """Raised when a page can be neither fetched nor rendered."""


class PageRenderer(Protocol):
    """Renders a page in a browser and returns ``(text, title)``."""

    def render(self, url: str) -> tuple[str, str]: ...


@dataclass
class ScrapedPage:
    url: str
    title: str
    text: str
    method: str


# ── HTML helpers ──────────────────────────────────────────────────────


def extract_static_content(html: str) -> tuple[str, str]:
    """Return ``(text, title)`` from server-rendered *html*."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()

    title = soup.title.get_text() if soup.title else ""
    body = soup.body or soup
    texts = (el.get_text().strip() for el in body.find_all(CONTENT_TAGS))
    return "\n".join(t for t in texts if t), title


def is_likely_client_rendered(
    html: str,
    *,
    min_paragraphs: int = settings.min_meaningful_paragraphs,
    paragraph_chars: int = settings.meaningful_paragraph_chars,
) -> bool:
    """Guess whether *html* is an SPA shell that needs a browser to render.

    True when the page carries a framework root element or a framework
    name *and* has fewer than *min_paragraphs* ``<p>`` elements longer
    than *paragraph_chars*.
    """
    soup = BeautifulSoup(html, "html.parser")
    has_framework_root = bool(soup.select("#root, #app, [ng-app]"))
    has_framework_reference = any(marker in html for marker in FRAMEWORK_MARKERS)

    for tag in soup(["script", "style"]):
        tag.decompose()
    meaningful = [p for p in soup.find_all("p") if len(p.get_text().strip()) > paragraph_chars]

    return (has_framework_root or has_framework_reference) and len(meaningful) < min_paragraphs


# ── scraper ───────────────────────────────────────────────────────────


class WebScraper:
    """Fetch a URL and pick a static or dynamic extraction strategy.

    Parameters
    ----------
    renderer:
        Optional dynamic renderer for client-side rendered pages.
    timeout:
        Per-request timeout in seconds.
    max_retries:
        Attempts for the initial HTTP fetch.
    min_content_chars:
        Static results shorter than this trigger a dynamic re-scrape.
    session:
        ``requests`` session to use; a module-level ``requests.get`` is
        used when omitted.
    """

    def __init__(
        self,
        *,
        renderer: PageRenderer | None = None,
        timeout: float = settings.scrape_timeout_seconds,
        max_retries: int = settings.scrape_max_retries,
        user_agent: str = settings.scrape_user_agent,
        min_content_chars: int = settings.min_static_content_chars,
        min_paragraphs: int = settings.min_meaningful_paragraphs,
        paragraph_chars: int = settings.meaningful_paragraph_chars,
        session: requests.Session | None = None,
    ) -> None:
        self._renderer = renderer
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._headers = {"User-Agent": user_agent}
        self._min_content_chars = min_content_chars
        self._min_paragraphs = min_paragraphs
        self._paragraph_chars = paragraph_chars
        self._session = session

    def fetch_html(self, url: str) -> str | None:
        """Download *url*; ``None`` when every attempt fails or is non-200."""
        get = self._session.get if self._session is not None else requests.get
        for attempt in range(1, self._max_retries + 1):
            try:
                resp = get(url, headers=self._headers, timeout=self._timeout)
                if resp.status_code == 200 and resp.text:
                    return resp.text
                logger.warning("Fetch of %s returned status %s", url, resp.status_code)
                return None
            except requests.RequestException as exc:
                if attempt < self._max_retries:
                    wait = 2**attempt
                    logger.warning("Retry %d/%d for %s (wait %ds): %s", attempt, self._max_retries, url, wait, exc)
                    time.sleep(wait)
                else:
                    logger.warning("Initial fetch of %s failed: %s", url, exc)
        return None

    def render(self, url: str) -> tuple[str, str]:
        """Render *url* dynamically. Raises :class:`ScrapeError`."""
        if self._renderer is None:
            raise ScrapeError("no dynamic page renderer configured")
        try:
            return self._renderer.render(url)
        except ScrapeError:
            raise
        except Exception as exc:
            raise ScrapeError(str(exc)) from exc

    def scrape(self, url: str) -> ScrapedPage:
        """Return the best-effort text and title of *url*."""
        html = self.fetch_html(url)

        if html is None:
            logger.info("Initial fetch unsuccessful for %s, using dynamic scraping", url)
            try:
                text, title = self.render(url)
            except ScrapeError as exc:
                raise ScrapeError(f"Failed to scrape content from {url}: {exc}") from exc
            return self._done(url, title, text, "dynamic")

        method = "static"
        if is_likely_client_rendered(html, min_paragraphs=self._min_paragraphs, paragraph_chars=self._paragraph_chars):
            method = "dynamic"
            try:
                text, title = self.render(url)
            except ScrapeError as exc:
                logger.warning("Dynamic scraping failed after CSR detection (%s), falling back to static", exc)
                text, title = extract_static_content(html)
                method = "static (fallback)"
        else:
            text, title = extract_static_content(html)

        if method == "static" and len(text) < self._min_content_chars:
            logger.info("Static content too small (%d chars), falling back to dynamic scraping", len(text))
            try:
                dynamic_text, dynamic_title = self.render(url)
                text, title = dynamic_text, dynamic_title or title
                method = "dynamic"
            except ScrapeError as exc:
                logger.warning("Dynamic fallback scraping failed: %s", exc)
                method = "static (dynamic fallback failed)"

        return self._done(url, title, text, method)

    @staticmethod
    def _done(url: str, title: str, text: str, method: str) -> ScrapedPage:
        logger.info("Scraped %s using %s method (%d chars)", url, method, len(text))
        if len(text) < 100:
            logger.warning("Scraped content is very short (%d chars)", len(text))
        return ScrapedPage(url=url, title=title.strip(), text=text, method=method)
