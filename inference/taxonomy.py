"""
Product keyword taxonomy — static reference data for term expansion and
category inference.

The table is built once at import time and never mutated; every pipeline
invocation shares it read-only. An alternative table can be loaded from JSON:

  [
    {"name": "Jacket", "category": "Clothing", "keywords": ["coat", "bomber"]},
    ...
  ]
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

logger = logging.getLogger(__name__)


class Category(str, Enum):
    CLOTHING    = "Clothing"
    SHOES       = "Shoes"
    BOOKS       = "Books"
    ACCESSORIES = "Accessories"
    OTHER       = "Other"


DEFAULT_CATEGORY = Category.OTHER


@dataclass(frozen=True)
class TaxonomyEntry:
    canonical_name: str
    category: Category
    keywords: tuple[str, ...]

    @property
    def all_keywords(self) -> tuple[str, ...]:
        """Canonical name first, then synonyms — the name is itself a keyword."""
        return (self.canonical_name, *self.keywords)


@dataclass(frozen=True)
class Taxonomy:
    entries: tuple[TaxonomyEntry, ...]
    default_category: Category = DEFAULT_CATEGORY

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def categories(self) -> tuple[Category, ...]:
        """Categories in declaration order (first entry that uses each)."""
        seen: dict[Category, None] = {}
        for entry in self.entries:
            seen.setdefault(entry.category, None)
        return tuple(seen)

    @classmethod
    def from_records(cls, records: Iterable[Any]) -> "Taxonomy":
        """
        Build from {"name", "category", "keywords"} dicts.
        Malformed records are skipped with a warning.
        """
        entries = []
        for i, rec in enumerate(records):
            entry = _entry_from_record(rec)
            if entry is None:
                logger.warning("Taxonomy record #%d ignored (malformed): %r", i, rec)
                continue
            entries.append(entry)
        return cls(tuple(entries))


def _entry_from_record(rec: Any) -> Optional[TaxonomyEntry]:
    if not isinstance(rec, dict):
        return None
    name = rec.get("name")
    keywords = rec.get("keywords", [])
    if not isinstance(name, str) or not name.strip():
        return None
    if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
        return None
    try:
        category = Category(rec.get("category", DEFAULT_CATEGORY.value))
    except ValueError:
        return None
    return TaxonomyEntry(
        canonical_name=name.strip(),
        category=category,
        keywords=tuple(k.strip() for k in keywords if k.strip()),
    )


EMPTY_TAXONOMY = Taxonomy(())


def load_taxonomy(path: str | Path) -> Taxonomy:
    """
    Load a taxonomy from a JSON file.
    An unreadable or malformed file yields an empty taxonomy: matching then
    degrades to raw candidate terms and every category guess is the default.
    """
    try:
        records = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Cannot load taxonomy from %s: %s", path, exc)
        return EMPTY_TAXONOMY
    if not isinstance(records, list):
        logger.error("Taxonomy file %s must contain a JSON list", path)
        return EMPTY_TAXONOMY
    taxonomy = Taxonomy.from_records(records)
    logger.info("Loaded taxonomy from %s: %d entries", path, len(taxonomy.entries))
    return taxonomy


# ── Built-in table ─────────────────────────────────────────────────────────────

_C, _S, _B, _A = Category.CLOTHING, Category.SHOES, Category.BOOKS, Category.ACCESSORIES

_TABLE: list[tuple[str, Category, list[str]]] = [
    ("T-Shirt",    _C, ["casual", "cotton", "crew neck", "v-neck"]),
    ("Jeans",      _C, ["denim", "pants", "blue jeans", "skinny", "straight leg"]),
    ("Sweater",    _C, ["pullover", "knit", "cardigan", "wool"]),
    ("Jacket",     _C, ["coat", "outerwear", "bomber", "leather", "denim jacket"]),
    ("Dress",      _C, ["gown", "sundress", "formal dress", "casual dress"]),
    ("Sneakers",   _S, ["athletic shoes", "trainers", "running shoes", "casual shoes"]),
    ("Boots",      _S, ["ankle boots", "hiking boots", "chelsea boots", "rain boots"]),
    ("Sandals",    _S, ["flip flops", "slides", "espadrilles"]),
    ("Book",       _B, ["novel", "paperback", "hardcover", "textbook", "comic"]),
    ("Watch",      _A, ["timepiece", "wristwatch", "smartwatch", "digital watch"]),
    ("Bag",        _A, ["handbag", "purse", "tote", "backpack", "shoulder bag"]),
    ("Sunglasses", _A, ["shades", "eyewear", "glasses"]),
]

DEFAULT_TAXONOMY = Taxonomy(tuple(
    TaxonomyEntry(name, category, tuple(keywords)) for name, category, keywords in _TABLE
))
