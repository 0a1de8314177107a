"""Page fetching for price extraction.

Two implementations of the same ``fetch(url) -> str`` capability:

- ``HttpFetcher`` issues a single GET and returns the raw document.
- ``BrowserFetcher`` loads the page in headless Chromium and returns the
  DOM after scripts have run, for sites that render prices client-side.

Both raise ``ExtractionError`` for network failures and non-2xx responses.
"""

from typing import Optional, Protocol

import httpx
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from ..exceptions import ExtractionError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> str:
        ...


class HttpFetcher:
    """Fetch static HTML with httpx."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def _get_headers(self) -> dict:
        return {
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "tr-TR,tr;q=0.9,en-US;q=0.8,en;q=0.7",
            "Cache-Control": "no-cache",
            "User-Agent": self.user_agent,
        }

    async def fetch(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self._get_headers(),
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExtractionError(url, f"HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ExtractionError(url, f"request failed: {e}") from e

        logger.debug(f"Fetched {url} ({len(response.text)} chars)")
        return response.text


class BrowserFetcher:
    """Fetch a fully rendered page with headless Chromium."""

    LAUNCH_ARGS = [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--no-sandbox",
        "--disable-setuid-sandbox",
    ]

    def __init__(
        self,
        headless: bool = True,
        timeout_ms: int = 60000,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        self.headless = headless
        self.timeout_ms = timeout_ms
        self.user_agent = user_agent

    async def fetch(self, url: str) -> str:
        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=self.headless, args=self.LAUNCH_ARGS
                )
                try:
                    context = await browser.new_context(
                        user_agent=self.user_agent,
                        locale="tr-TR",
                        java_script_enabled=True,
                    )
                    page = await context.new_page()
                    response = await page.goto(
                        url, wait_until="networkidle", timeout=self.timeout_ms
                    )
                    if response is not None and not response.ok:
                        raise ExtractionError(url, f"HTTP {response.status}")

                    html = await page.content()
                finally:
                    await browser.close()
        except PlaywrightError as e:
            raise ExtractionError(url, f"render failed: {e}") from e

        logger.debug(f"Rendered {url} ({len(html)} chars)")
        return html
