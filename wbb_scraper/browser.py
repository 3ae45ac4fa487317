"""
Playwright utilities used by the scraping job.

The functions here wrap launching a browser session and navigating to the
stats page. Selectors come from `selectors.py`; nothing here knows about the
table layout.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    sync_playwright,
)

from .selectors import PageSelectors

SYSTEM_CHROMIUM_PATHS = (
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
)


@dataclass
class BrowserConfig:
    headless: bool = True
    timeout_ms: int = 15_000


def _system_chromium() -> Optional[str]:
    for path in SYSTEM_CHROMIUM_PATHS:
        if os.path.exists(path):
            return path
    return None


@contextmanager
def browser_page(config: BrowserConfig) -> Iterator[Page]:
    """
    Context manager yielding a single Playwright page.

    Closes all resources automatically, even if an exception bubbles up.
    Each call starts its own Playwright instance, so concurrent workers must
    each open their own page.
    """
    playwright = sync_playwright().start()
    browser: Optional[Browser] = None
    context: Optional[BrowserContext] = None
    try:
        browser = playwright.chromium.launch(
            headless=config.headless,
            args=["--no-sandbox", "--disable-dev-shm-usage", "--disable-gpu"],
            executable_path=_system_chromium(),  # None falls back to the bundled build
        )
        context = browser.new_context(
            viewport={"width": 1920, "height": 1080},
            locale="en-US",
        )
        page = context.new_page()
        page.set_default_timeout(config.timeout_ms)
        yield page
    finally:
        if context is not None:
            context.close()
        if browser is not None:
            browser.close()
        playwright.stop()


def navigate_to_table(page: Page, config: PageSelectors) -> Page:
    """Open the page URL and wait until the stats table is rendered."""
    response = page.goto(config.url)
    if response is not None and not response.ok:
        raise PlaywrightError(f"HTTP {response.status} for {config.url}")
    if config.wait_for:
        page.wait_for_selector(config.wait_for)
    return page
