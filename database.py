"""
database.py — async SQLite persistence via aiosqlite.

Tables:
  products — one row per photographed product: the detected (or manually
             entered) search term, category guess and Telegram photo file id

The DB file is created automatically on first run.
"""
from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite

from inference.taxonomy import Category

logger = logging.getLogger(__name__)

# Store the DB in a dedicated data/ directory so Docker volume mounts work
# correctly (mount ./data:/app/data) and the file survives container restarts.
_DATA_DIR = Path(os.getenv("DATA_DIR", "data"))
_DATA_DIR.mkdir(parents=True, exist_ok=True)

DB_PATH = str(_DATA_DIR / "bot_data.db")
_lock = asyncio.Lock()          # serialise schema migrations


# ── Data models ───────────────────────────────────────────────────────────────

@dataclass
class Product:
    id: int
    user_id: int                # Telegram user who sent the photo
    image_file_id: str          # Telegram file id of the photo ("" for manual entries)
    category: Category
    search_term: str            # stored verbatim, used for outbound store links
    created_at: datetime
    updated_at: datetime


# ── Schema ────────────────────────────────────────────────────────────────────

_SCHEMA = """
CREATE TABLE IF NOT EXISTS products (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id       INTEGER NOT NULL,
    image_file_id TEXT    NOT NULL DEFAULT '',
    category      TEXT    NOT NULL DEFAULT 'Other',
    search_term   TEXT    NOT NULL,
    created_at    TEXT    NOT NULL,
    updated_at    TEXT    NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_products_user ON products (user_id);
"""


async def init_db() -> None:
    """Create tables if they don't exist. Safe to call multiple times."""
    async with _lock:
        async with aiosqlite.connect(DB_PATH) as db:
            await db.executescript(_SCHEMA)
            await db.commit()
    logger.info("Database initialised at %s", DB_PATH)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _category(raw: str) -> Category:
    try:
        return Category(raw)
    except ValueError:
        return Category.OTHER


def _row_to_product(row) -> Product:
    return Product(
        id=row[0],
        user_id=row[1],
        image_file_id=row[2],
        category=_category(row[3]),
        search_term=row[4],
        created_at=datetime.fromisoformat(row[5]),
        updated_at=datetime.fromisoformat(row[6]),
    )


_COLUMNS = "id, user_id, image_file_id, category, search_term, created_at, updated_at"


# ── Product operations ─────────────────────────────────────────────────────────

async def add_product(
    user_id: int,
    search_term: str,
    category: Optional[Category] = None,
    image_file_id: str = "",
) -> Product:
    """Save a new product record. Raises ValueError on an empty search term."""
    if not search_term.strip():
        raise ValueError("search_term must not be empty")
    cat = category or Category.OTHER
    now = _now()
    async with aiosqlite.connect(DB_PATH) as db:
        cur = await db.execute(
            "INSERT INTO products (user_id, image_file_id, category, search_term, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (user_id, image_file_id, cat.value, search_term, now, now),
        )
        await db.commit()
        product_id = cur.lastrowid
    logger.info("Saved product #%d for user %d: %r (%s)", product_id, user_id, search_term, cat.value)
    return Product(
        id=product_id,
        user_id=user_id,
        image_file_id=image_file_id,
        category=cat,
        search_term=search_term,
        created_at=datetime.fromisoformat(now),
        updated_at=datetime.fromisoformat(now),
    )


async def get_product(product_id: int) -> Optional[Product]:
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            f"SELECT {_COLUMNS} FROM products WHERE id = ?", (product_id,)
        ) as cur:
            row = await cur.fetchone()
    return _row_to_product(row) if row else None


async def list_products(user_id: int, limit: int = 50) -> list[Product]:
    """Newest first."""
    async with aiosqlite.connect(DB_PATH) as db:
        async with db.execute(
            f"SELECT {_COLUMNS} FROM products WHERE user_id = ? "
            "ORDER BY id DESC LIMIT ?",
            (user_id, limit),
        ) as cur:
            rows = await cur.fetchall()
    return [_row_to_product(r) for r in rows]


async def update_search_term(product_id: int, search_term: str) -> Product:
    """Replace a product's search term. Raises ValueError for unknown ids or empty terms."""
    if not search_term.strip():
        raise ValueError("search_term must not be empty")
    async with aiosqlite.connect(DB_PATH) as db:
        cur = await db.execute(
            "UPDATE products SET search_term = ?, updated_at = ? WHERE id = ?",
            (search_term, _now(), product_id),
        )
        await db.commit()
        if cur.rowcount == 0:
            raise ValueError(f"Product #{product_id} not found")
    product = await get_product(product_id)
    if product is None:  # deleted between the UPDATE and the re-read
        raise ValueError(f"Product #{product_id} not found")
    return product


async def delete_product(product_id: int) -> bool:
    """Returns True if a row was removed."""
    async with aiosqlite.connect(DB_PATH) as db:
        cur = await db.execute("DELETE FROM products WHERE id = ?", (product_id,))
        await db.commit()
        return cur.rowcount > 0
