"""Headless-browser page rendering with Playwright.

Playwright is an optional dependency (``pip install review-context[browser]``
followed by ``playwright install chromium``). Without it the scraper runs
static-only and :func:`get_default_renderer` returns ``None``.
"""

from __future__ import annotations

import importlib.util
import json
import logging
from collections.abc import Callable
from typing import Any

from review_context.config import settings
from review_context.ingestion.scraper import CONTENT_TAGS

logger = logging.getLogger(__name__)

HIDDEN_SELECTOR = 'script, style, noscript, [style*="display:none"], [style*="display: none"], [hidden]'
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

_EXTRACT_SCRIPT = f"""() => {{
    document.querySelectorAll({json.dumps(HIDDEN_SELECTOR)}).forEach((el) => el.remove());
    return Array.from(document.querySelectorAll({json.dumps(", ".join(CONTENT_TAGS))}))
        .map((el) => (el.textContent || "").trim())
        .filter((text) => text.length > 0)
        .join("\\n");
}}"""


class PlaywrightRenderer:
    """Render a page in headless Chromium and return ``(text, title)``.

    Parameters
    ----------
    timeout:
        Navigation timeout in seconds.
    settle:
        Extra wait after the network goes idle, for late-loading content.
    user_agent:
        User agent sent by the browser page.
    playwright_factory:
        Callable returning a Playwright context manager. Defaults to
        :func:`playwright.sync_api.sync_playwright`.
    """

    def __init__(
        self,
        *,
        timeout: float = settings.render_timeout_seconds,
        settle: float = settings.render_settle_seconds,
        user_agent: str = settings.scrape_user_agent,
        playwright_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._timeout_ms = int(timeout * 1000)
        self._settle_ms = int(settle * 1000)
        self._user_agent = user_agent
        self._factory = playwright_factory

    def render(self, url: str) -> tuple[str, str]:
        factory = self._factory
        if factory is None:
            from playwright.sync_api import sync_playwright

            factory = sync_playwright

        logger.info("Rendering %s in headless browser", url)
        with factory() as pw:
            browser = pw.chromium.launch(headless=True, args=LAUNCH_ARGS)
            try:
                page = browser.new_page(user_agent=self._user_agent)
                page.set_default_navigation_timeout(self._timeout_ms)
                page.goto(url, wait_until="networkidle")
                if self._settle_ms:
                    page.wait_for_timeout(self._settle_ms)
                title = page.title()
                text = page.evaluate(_EXTRACT_SCRIPT)
            finally:
                browser.close()
        return text or "", title or ""


def _playwright_available() -> bool:
    return importlib.util.find_spec("playwright") is not None


def get_default_renderer() -> PlaywrightRenderer | None:
    """Playwright renderer when enabled and installed, else ``None``."""
    if not settings.dynamic_rendering_enabled:
        return None
    if not _playwright_available():
        logger.warning("playwright is not installed; dynamic page rendering is disabled")
        return None
    return PlaywrightRenderer()
