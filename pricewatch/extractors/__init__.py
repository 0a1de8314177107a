"""Site classification and price extraction"""

from .fetchers import BrowserFetcher, HttpFetcher, PageFetcher
from .price import PRICE_SELECTORS, RENDERED_FAMILIES, PriceExtractor, parse_price
from .sites import SiteFamily, SiteResolver, resolve_site

__all__ = [
    "BrowserFetcher",
    "HttpFetcher",
    "PageFetcher",
    "PRICE_SELECTORS",
    "RENDERED_FAMILIES",
    "PriceExtractor",
    "parse_price",
    "SiteFamily",
    "SiteResolver",
    "resolve_site",
]
