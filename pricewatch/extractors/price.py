"""Price extraction from product pages."""

import asyncio
import math
import re
from typing import Dict, FrozenSet, Optional

from bs4 import BeautifulSoup
from loguru import logger

from ..exceptions import ExtractionError
from .fetchers import BrowserFetcher, HttpFetcher, PageFetcher
from .sites import SiteFamily

# One price element per site family
PRICE_SELECTORS: Dict[SiteFamily, str] = {
    SiteFamily.GITTIGIDIYOR: "div#sp-price-lowPrice",
    SiteFamily.N11: "div.newPrice",
    SiteFamily.HEPSIBURADA: "div.extra-discount-price",
}

# Families whose price only exists after client-side rendering
RENDERED_FAMILIES: FrozenSet[SiteFamily] = frozenset({SiteFamily.HEPSIBURADA})

PRICE_TOKEN = re.compile(r"\d+(\.\d+)?")


def parse_price(text: str) -> float:
    """Parse a displayed price such as ``"1.234,50 TL"`` into a float.

    The first whitespace-separated token is used. Commas are read as
    decimal separators; if more than one period is left after that, the
    first period is taken as a thousands separator and dropped.

    Raises:
        ValueError: if no finite number can be read.
    """
    tokens = (text or "").split()
    if not tokens:
        raise ValueError("empty price text")

    token = tokens[0].replace(",", ".")
    if token.count(".") > 1:
        token = token.replace(".", "", 1)

    if not PRICE_TOKEN.fullmatch(token):
        raise ValueError(f"not a price: {token!r}")

    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"non-finite price {token!r}")
    return value


class PriceExtractor:
    """Fetches a product page and reads its current price.

    Static pages go through ``http_fetcher``; families listed in
    ``rendered_families`` go through ``browser_fetcher``. Static calls are
    bounded by ``timeout`` seconds, rendered ones by ``render_timeout``.
    """

    def __init__(
        self,
        http_fetcher: Optional[PageFetcher] = None,
        browser_fetcher: Optional[PageFetcher] = None,
        selectors: Optional[Dict[SiteFamily, str]] = None,
        rendered_families: FrozenSet[SiteFamily] = RENDERED_FAMILIES,
        timeout: float = 30.0,
        render_timeout: Optional[float] = None,
    ):
        self.http_fetcher = http_fetcher or HttpFetcher(timeout=timeout)
        self.browser_fetcher = browser_fetcher or BrowserFetcher()
        self.selectors = dict(PRICE_SELECTORS if selectors is None else selectors)
        self.rendered_families = rendered_families
        self.timeout = timeout
        self.render_timeout = timeout if render_timeout is None else render_timeout

    @classmethod
    def from_config(cls, config) -> "PriceExtractor":
        """Build an extractor from the ``scraping`` config section."""
        scraping = config.scraping
        return cls(
            http_fetcher=HttpFetcher(
                timeout=scraping.timeout, user_agent=scraping.user_agent
            ),
            browser_fetcher=BrowserFetcher(
                headless=scraping.headless,
                timeout_ms=scraping.render_timeout_ms,
                user_agent=scraping.user_agent,
            ),
            timeout=scraping.timeout,
            # Page load budget plus one request timeout for browser start-up
            render_timeout=scraping.render_timeout_ms / 1000 + scraping.timeout,
        )

    async def extract(self, link: str, family: SiteFamily) -> float:
        """Return the current price of ``link``.

        Raises:
            ExtractionError: on fetch failure, missing price element,
                unparsable price text or timeout.
        """
        timeout = self.timeout_for(family)
        try:
            return await asyncio.wait_for(self._extract(link, family), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ExtractionError(link, f"timed out after {timeout:g}s") from e

    def timeout_for(self, family: SiteFamily) -> float:
        if family in self.rendered_families:
            return self.render_timeout
        return self.timeout

    async def _extract(self, link: str, family: SiteFamily) -> float:
        selector = self.selectors.get(family)
        if selector is None:
            raise ExtractionError(link, f"no price selector for site {family.value}")

        if family in self.rendered_families:
            html = await self.browser_fetcher.fetch(link)
        else:
            html = await self.http_fetcher.fetch(link)

        element = BeautifulSoup(html, "html.parser").select_one(selector)
        if element is None:
            raise ExtractionError(link, f"no element matches {selector!r}")

        text = element.get_text(" ", strip=True)
        try:
            price = parse_price(text)
        except ValueError as e:
            raise ExtractionError(link, f"unparsable price {text!r}") from e

        logger.debug(f"Extracted price {price} from {link}")
        return price

    async def fetch_title(self, link: str) -> str:
        """Return the page title, or the link itself if it can't be fetched."""
        try:
            html = await asyncio.wait_for(
                self.http_fetcher.fetch(link), timeout=self.timeout
            )
        except (ExtractionError, asyncio.TimeoutError) as e:
            logger.warning(f"Could not fetch title for {link}: {e}")
            return link

        soup = BeautifulSoup(html, "html.parser")
        if soup.title is None:
            return link
        return soup.title.get_text(strip=True) or link
