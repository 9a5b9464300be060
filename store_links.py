"""
store_links.py — outbound search links for a product's search term.

The term is percent-encoded (spaces → %20) and substituted into each store's
search URL template. Links are built fresh at display time, so editing a
product's term changes every link immediately.
"""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote


@dataclass(frozen=True)
class ShoppingSite:
    name: str
    icon: str
    url_format: str         # "{}" is replaced by the encoded search term


SHOPPING_SITES: list[ShoppingSite] = [
    ShoppingSite("Amazon",  "🛒", "https://www.amazon.com/s?k={}"),
    ShoppingSite("Walmart", "🏬", "https://www.walmart.com/search?q={}"),
    ShoppingSite("Target",  "🎯", "https://www.target.com/s?searchTerm={}"),
]


def search_url(site: ShoppingSite, term: str) -> str:
    return site.url_format.format(quote(term.strip(), safe=""))


def search_links(term: str, sites: list[ShoppingSite] | None = None) -> list[tuple[ShoppingSite, str]]:
    """[(site, url), …] in display order."""
    return [(site, search_url(site, term)) for site in (sites or SHOPPING_SITES)]
