"""Classification of product links into site families."""

from enum import Enum
from typing import Iterable, List, Optional, Tuple


class SiteFamily(str, Enum):
    """Known e-commerce sites, tagged as they appear in the store file."""

    N11 = "n11"
    HEPSIBURADA = "hb"
    GITTIGIDIYOR = "gg"


# Ordered (substring, family) rules; first match wins
DEFAULT_RULES: List[Tuple[str, SiteFamily]] = [
    ("urun.n11", SiteFamily.N11),
    ("hepsiburada", SiteFamily.HEPSIBURADA),
]

DEFAULT_FAMILY = SiteFamily.GITTIGIDIYOR


class SiteResolver:
    """Maps a link to a site family using substring rules.

    Resolution is total: links that match no rule (including malformed
    ones) fall back to the default family.
    """

    def __init__(
        self,
        rules: Optional[Iterable[Tuple[str, SiteFamily]]] = None,
        default: SiteFamily = DEFAULT_FAMILY,
    ):
        self.rules = list(DEFAULT_RULES if rules is None else rules)
        self.default = default

    def resolve(self, link: str) -> SiteFamily:
        for pattern, family in self.rules:
            if pattern in (link or ""):
                return family
        return self.default

    __call__ = resolve


_default_resolver = SiteResolver()


def resolve_site(link: str) -> SiteFamily:
    """Resolve a link with the default rule table."""
    return _default_resolver.resolve(link)
