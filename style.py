"""
style.py — visual style for every message the bot sends.

Design language:
  • Structured cards with consistent emoji icons
  • Unicode box-drawing dividers
  • Clear visual hierarchy: header → body → footer
  • MarkdownV2 throughout

All text that goes into Telegram messages should be formatted through this module.
"""
from __future__ import annotations

from typing import Optional

from inference.taxonomy import Category

# ── Escape ────────────────────────────────────────────────────────────────────

def esc(text: str) -> str:
    """Escape all MarkdownV2 special characters."""
    for ch in r"\_*[]()~`>#+-=|{}.!":
        text = text.replace(ch, f"\\{ch}")
    return text


# ── Visual constants ──────────────────────────────────────────────────────────

DIV   = "━━━━━━━━━━━━━━━━━━━━━━━━━━"    # thick divider
SDIV  = "┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄┄"    # subtle divider

CATEGORY_ICON = {
    Category.CLOTHING:    "👕",
    Category.SHOES:       "👟",
    Category.BOOKS:       "📚",
    Category.ACCESSORIES: "👜",
    Category.OTHER:       "📦",
}

SIGNAL_ICON = {"text": "🔤", "object": "🧩", "scene": "🏞️"}


def category_badge(category: Optional[Category]) -> str:
    if category is None:
        return "📦 Uncategorised"
    return f"{CATEGORY_ICON.get(category, '📦')} {esc(category.value)}"


# ══════════════════════════════════════════════════════════════════════════════
# START / HELP
# ══════════════════════════════════════════════════════════════════════════════

def welcome() -> str:
    return (
        f"📸 *SHOPSHOT*\n"
        f"{DIV}\n\n"
        f"Snap a product and I'll work out what to search for,\n"
        f"save it to your list and link you to the stores\\.\n\n"
        f"✨  *What I do*\n"
        f"▸ Read labels, recognise objects and the scene\n"
        f"▸ Turn them into a short search phrase\n"
        f"▸ Guess the product category\n"
        f"▸ Open Amazon, Walmart and Target searches\n\n"
        f"{DIV}\n"
        f"_📸 Just send a photo to get started_"
    )


def help_text() -> str:
    return (
        f"📖 *HOW TO USE*\n"
        f"{DIV}\n\n"
        f"*1️⃣  Send a photo*\n"
        f"_Clear, well\\-lit, label text visible_\n\n"
        f"*2️⃣  I detect a search phrase*\n"
        f"_If nothing is detected you can type one_\n\n"
        f"*3️⃣  Shop or edit*\n"
        f"_Tap a store, check prices, or fix the phrase_\n\n"
        f"{DIV}\n"
        f"💡  *Tips for best results*\n"
        f"▸ Include brand or label text in frame\n"
        f"▸ One product per photo\n"
        f"▸ Sending a new photo cancels the previous one\n\n"
        f"{DIV}\n"
        f"_Commands: /start · /help · /products · /signals · /cancel_"
    )


# ══════════════════════════════════════════════════════════════════════════════
# INFERENCE
# ══════════════════════════════════════════════════════════════════════════════

def loading_inference(n_signals: int) -> str:
    return (
        f"🔍 *Analysing your photo*\n"
        f"{SDIV}\n"
        f"Running *{n_signals} recognition signals* in parallel…\n\n"
        f"⠋ Reading labels & objects…"
    )


def identification_card(result, product_id: int, show_signals: bool = False) -> str:
    """Shown once a search phrase was detected and saved."""
    suggestions = [s for s in result.suggestions if s not in result.terms]
    more = (
        f"\n💡 _Also matched:_ {esc(', '.join(suggestions))}"
        if suggestions else ""
    )
    signal_lines = ""
    if show_signals:
        rows = [
            f"  {SIGNAL_ICON.get(r.kind.value, '▸')} {esc(r.recognizer)}: "
            f"{esc(', '.join(r.terms) or '—')}  ⚡ `{r.latency_ms}ms`"
            for r in result.signals
        ]
        signal_lines = f"\n\n✦ *Signals*\n" + "\n".join(rows)
    return (
        f"✨ *PRODUCT DETECTED*\n"
        f"{DIV}\n\n"
        f"🔎 `{esc(result.search_term)}`\n"
        f"{category_badge(result.category_guess)}{more}{signal_lines}\n\n"
        f"{SDIV}\n"
        f"_Saved as \\#{product_id} · tap a store below_"
    )


def no_term_detected() -> str:
    return (
        f"🤷 *No Search Term Detected*\n"
        f"{DIV}\n\n"
        f"I couldn't read anything useful from this photo\\.\n\n"
        f"✏️ *Type a search phrase* and I'll save it for you,\n"
        f"or send a clearer photo\\."
    )


def inference_cancelled() -> str:
    return "⏹ _Analysis cancelled\\._"


def nothing_to_cancel() -> str:
    return "_Nothing is being analysed right now\\._"


# ══════════════════════════════════════════════════════════════════════════════
# PRODUCTS
# ══════════════════════════════════════════════════════════════════════════════

def product_card(product) -> str:
    return (
        f"🏷️ *{esc(product.search_term)}*\n"
        f"{SDIV}\n"
        f"{category_badge(product.category)}   \\#{product.id}\n"
        f"_Saved {esc(product.created_at.strftime('%Y-%m-%d'))}_"
    )


def products_list(products: list) -> str:
    if not products:
        return (
            f"🗂 *YOUR PRODUCTS*\n"
            f"{DIV}\n\n"
            f"_Nothing saved yet — send a photo\\!_"
        )
    rows = [
        f"*{i}\\.*  {esc(p.search_term)}   {CATEGORY_ICON.get(p.category, '📦')}"
        for i, p in enumerate(products, 1)
    ]
    full = f"🗂 *YOUR PRODUCTS*\n{DIV}\n\n" + "\n".join(rows) + f"\n\n{SDIV}\n_Tap one to open it_"
    return full[:4050] + "\\.\\.\\." if len(full) > 4050 else full


def prices_card(term: str, prices: list[tuple[str, float]]) -> str:
    if not prices:
        return f"📈 *Prices*\n{SDIV}\n_No price data for this product\\._"
    low = min(p for _, p in prices)
    rows = [
        f"{'🟢' if price == low else '▸'} {esc(store)}: *{esc(f'${price:.2f}')}*"
        for store, price in prices
    ]
    return (
        f"📈 *PRICES — {esc(term)}*\n"
        f"{DIV}\n\n"
        + "\n".join(rows)
        + f"\n\n{SDIV}\n_Simulated 30\\-day history, latest price shown_"
    )


def ask_new_term(current: str) -> str:
    return (
        f"✏️ *Edit Search Term*\n"
        f"{SDIV}\n"
        f"Current: `{esc(current)}`\n\n"
        f"_Send the new phrase as a message\\._"
    )


def term_updated(term: str) -> str:
    return f"✅ Search term updated to `{esc(term)}`"


def product_saved_manual(product_id: int, term: str) -> str:
    return f"✅ Saved `{esc(term)}` as \\#{product_id}"


def product_deleted() -> str:
    return "🗑 _Product deleted\\._"


# ══════════════════════════════════════════════════════════════════════════════
# SIGNALS INFO
# ══════════════════════════════════════════════════════════════════════════════

def signals_info(signals: dict, cutoff: int) -> str:
    lines = [f"🧠 *RECOGNITION SIGNALS*\n{DIV}\n"]
    for kind, name in signals.items():
        lines.append(f"{SIGNAL_ICON.get(kind.value, '▸')} *{esc(kind.value)}*  {esc(name)}")
    lines += [
        f"\n{SDIV}",
        f"Search phrase length: `{cutoff}` terms",
    ]
    return "\n".join(lines)


# ══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGES
# ══════════════════════════════════════════════════════════════════════════════

def error_no_signals() -> str:
    return (
        f"⚠️ *No Recognition Signals Configured*\n"
        f"{DIV}\n\n"
        f"The bot needs at least one of:\n"
        f"▸ Tesseract OCR installed on the host\n"
        f"▸ An OpenAI or Anthropic API key in \\.env\n"
    )


def error_bad_image() -> str:
    return (
        f"❌ *Can't Read This Image*\n"
        f"{DIV}\n\n"
        f"Please send a regular photo \\(JPEG or PNG\\)\\."
    )


def error_not_found() -> str:
    return "⚠️ _That product no longer exists\\._"


def not_a_photo() -> str:
    return (
        f"📸 *Send a Photo*\n"
        f"{SDIV}\n"
        f"I need a product photo to work out what to search for\\.\n"
        f"_Or use /products to see what you've saved\\._"
    )


def error_rate_limited(max_requests: int, window_secs: int) -> str:
    return (
        f"⏱ *Slow Down\\!*\n"
        f"{SDIV}\n"
        f"You can analyse up to *{max_requests} photos* every *{window_secs} seconds*\\.\n\n"
        f"_Please wait a moment before sending another photo\\._"
    )
