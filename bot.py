"""
bot.py — Telegram bot handlers.

All visual formatting is delegated to style.py.
The inference pipeline and the price tracker are built once in setup() and
shared through application.bot_data; session state is kept in-memory per user_id.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

import config
import database as db
import preprocessing
import style
from inference.matcher import infer_category
from inference.pipeline import InferencePipeline, build_pipeline
from price_history import PriceTracker
from store_links import search_links

logger = logging.getLogger(__name__)

# ── Callback data ──────────────────────────────────────────────────────────────
CB_OPEN   = "prod:"      # + product id
CB_PRICES = "price:"
CB_EDIT   = "edit:"
CB_DELETE = "del:"


# ── Session ────────────────────────────────────────────────────────────────────

@dataclass
class UserSession:
    inference_task: Optional[asyncio.Task] = None
    # set after a "no term detected" result: the next text message is the term
    awaiting_manual_term: bool = False
    pending_image_file_id: str = ""
    # set after tapping ✏️ Edit: the next text message replaces that product's term
    editing_product_id: Optional[int] = None

    def cancel_inference(self) -> bool:
        """Cancel the in-flight analysis, if any. Never waits for it."""
        task = self.inference_task
        self.inference_task = None
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    def reset_prompts(self) -> None:
        self.awaiting_manual_term = False
        self.pending_image_file_id = ""
        self.editing_product_id = None


_sessions: dict[int, UserSession] = {}


# ── Rate limiter ───────────────────────────────────────────────────────────────
_rate_buckets: dict[int, deque] = defaultdict(deque)


def _is_rate_limited(user_id: int) -> bool:
    now    = time.monotonic()
    bucket = _rate_buckets[user_id]
    while bucket and now - bucket[0] > config.RATE_WINDOW_SECS:
        bucket.popleft()
    if len(bucket) >= config.RATE_MAX_REQUESTS:
        return True
    bucket.append(now)
    return False


def get_session(user_id: int) -> UserSession:
    if user_id not in _sessions:
        _sessions[user_id] = UserSession()
    return _sessions[user_id]


def _pipeline(context: ContextTypes.DEFAULT_TYPE) -> Optional[InferencePipeline]:
    return context.application.bot_data.get("pipeline")


def _prices(context: ContextTypes.DEFAULT_TYPE) -> PriceTracker:
    return context.application.bot_data.setdefault("prices", PriceTracker())


# ── Keyboards ──────────────────────────────────────────────────────────────────

def product_keyboard(product) -> InlineKeyboardMarkup:
    store_row = [
        InlineKeyboardButton(f"{site.icon} {site.name}", url=url)
        for site, url in search_links(product.search_term)
    ]
    action_row = [
        InlineKeyboardButton("📈 Prices", callback_data=f"{CB_PRICES}{product.id}"),
        InlineKeyboardButton("✏️ Edit",   callback_data=f"{CB_EDIT}{product.id}"),
        InlineKeyboardButton("🗑 Delete",  callback_data=f"{CB_DELETE}{product.id}"),
    ]
    return InlineKeyboardMarkup([store_row, action_row])


def products_keyboard(products: list) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton(
            f"{i}. {p.search_term[:40]}",
            callback_data=f"{CB_OPEN}{p.id}",
        )]
        for i, p in enumerate(products[:10], 1)
    ])


# ── Handlers ───────────────────────────────────────────────────────────────────

async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.welcome(), parse_mode="MarkdownV2")


async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    await update.message.reply_text(style.help_text(), parse_mode="MarkdownV2")


async def cmd_signals(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    pipeline = _pipeline(context)
    if pipeline is None:
        await update.message.reply_text(style.error_no_signals(), parse_mode="MarkdownV2")
        return
    await update.message.reply_text(
        style.signals_info(pipeline.signals, pipeline.cutoff),
        parse_mode="MarkdownV2",
    )


async def cmd_products(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    products = await db.list_products(update.effective_user.id)
    await update.message.reply_text(
        style.products_list(products),
        parse_mode="MarkdownV2",
        reply_markup=products_keyboard(products) if products else None,
    )


async def cmd_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    session = get_session(update.effective_user.id)
    session.reset_prompts()
    if session.cancel_inference():
        return  # the photo handler edits its own status message
    await update.message.reply_text(style.nothing_to_cancel(), parse_mode="MarkdownV2")


async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    user_id = update.effective_user.id

    if _is_rate_limited(user_id):
        await update.message.reply_text(
            style.error_rate_limited(config.RATE_MAX_REQUESTS, config.RATE_WINDOW_SECS),
            parse_mode="MarkdownV2",
        )
        return

    pipeline = _pipeline(context)
    if pipeline is None:
        await update.message.reply_text(style.error_no_signals(), parse_mode="MarkdownV2")
        return

    # A newer photo supersedes whatever is still being downloaded or analysed.
    # The task is registered before the first await so /cancel always sees it.
    session = get_session(user_id)
    session.cancel_inference()
    session.reset_prompts()

    task = asyncio.create_task(_analyse_photo(update, context, pipeline, session))
    session.inference_task = task
    try:
        await task
    except asyncio.CancelledError:
        if not task.cancelled():
            raise
    finally:
        if session.inference_task is task:
            session.inference_task = None


async def _analyse_photo(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    pipeline: InferencePipeline,
    session: UserSession,
) -> None:
    """Download → decode → enhance → infer → save, as one cancellable unit."""
    user_id = update.effective_user.id
    photo   = update.message.photo[-1]
    msg = None
    try:
        msg = await update.message.reply_text(
            style.loading_inference(len(pipeline.signals)),
            parse_mode="MarkdownV2",
        )

        photo_file  = await context.bot.get_file(photo.file_id)
        image_bytes = bytes(await photo_file.download_as_bytearray())

        try:
            image = preprocessing.decode_image(image_bytes)
        except ValueError as exc:
            logger.warning("User %d sent an undecodable photo: %s", user_id, exc)
            await msg.edit_text(style.error_bad_image(), parse_mode="MarkdownV2")
            return
        if config.PREPROCESS_IMAGES:
            image = await asyncio.to_thread(preprocessing.enhance, image)

        result = await pipeline.infer(image)
    except asyncio.CancelledError:
        logger.info("User %d: photo analysis cancelled", user_id)
        if msg is not None:
            await msg.edit_text(style.inference_cancelled(), parse_mode="MarkdownV2")
        raise

    if not result.detected:
        session.awaiting_manual_term = True
        session.pending_image_file_id = photo.file_id
        await msg.edit_text(style.no_term_detected(), parse_mode="MarkdownV2")
        return

    product = await db.add_product(
        user_id=user_id,
        search_term=result.search_term,
        category=result.category_guess,
        image_file_id=photo.file_id,
    )
    _prices(context).record(product.search_term)

    await msg.edit_text(
        style.identification_card(result, product.id, show_signals=config.SHOW_SIGNAL_INFO),
        parse_mode="MarkdownV2",
        reply_markup=product_keyboard(product),
    )


async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Free text is a search term when we asked for one; otherwise a nudge to send a photo."""
    user_id = update.effective_user.id
    session = get_session(user_id)
    term = (update.message.text or "").strip()

    if session.editing_product_id is not None and term:
        product_id = session.editing_product_id
        session.reset_prompts()
        try:
            product = await db.update_search_term(product_id, term)
        except ValueError:
            await update.message.reply_text(style.error_not_found(), parse_mode="MarkdownV2")
            return
        _prices(context).record(product.search_term)
        await update.message.reply_text(
            style.term_updated(product.search_term),
            parse_mode="MarkdownV2",
            reply_markup=product_keyboard(product),
        )
        return

    if session.awaiting_manual_term and term:
        pipeline = _pipeline(context)
        category = infer_category([term], pipeline.taxonomy) if pipeline else None
        product = await db.add_product(
            user_id=user_id,
            search_term=term,
            category=category,
            image_file_id=session.pending_image_file_id,
        )
        session.reset_prompts()
        _prices(context).record(product.search_term)
        await update.message.reply_text(
            style.product_saved_manual(product.id, product.search_term),
            parse_mode="MarkdownV2",
            reply_markup=product_keyboard(product),
        )
        return

    await update.message.reply_text(style.not_a_photo(), parse_mode="MarkdownV2")


async def handle_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    query = update.callback_query
    await query.answer()
    user_id = update.effective_user.id
    data    = query.data or ""

    prefix, _, raw_id = data.partition(":")
    if not raw_id.isdigit():
        return
    product = await db.get_product(int(raw_id))
    if product is None or product.user_id != user_id:
        await query.edit_message_text(style.error_not_found(), parse_mode="MarkdownV2")
        return
    prefix += ":"

    # ── Open a saved product ──────────────────────────────────────────────────
    if prefix == CB_OPEN:
        await query.edit_message_text(
            style.product_card(product),
            parse_mode="MarkdownV2",
            reply_markup=product_keyboard(product),
        )
        return

    # ── Prices ────────────────────────────────────────────────────────────────
    if prefix == CB_PRICES:
        tracker = _prices(context)
        if not tracker.history(product.search_term):
            tracker.record(product.search_term)
        await query.edit_message_text(
            style.prices_card(product.search_term, tracker.current_prices(product.search_term)),
            parse_mode="MarkdownV2",
            reply_markup=product_keyboard(product),
        )
        return

    # ── Edit term: next text message is the replacement ───────────────────────
    if prefix == CB_EDIT:
        session = get_session(user_id)
        session.reset_prompts()
        session.editing_product_id = product.id
        await query.edit_message_text(
            style.ask_new_term(product.search_term), parse_mode="MarkdownV2",
        )
        return

    if prefix == CB_DELETE:
        await db.delete_product(product.id)
        await query.edit_message_text(style.product_deleted(), parse_mode="MarkdownV2")
        return


# ── App factory ────────────────────────────────────────────────────────────────

async def setup(application: Application) -> None:
    """DB schema, pipeline and price tracker. Call once before polling starts."""
    await db.init_db()
    try:
        application.bot_data["pipeline"] = build_pipeline()
    except RuntimeError as exc:
        logger.error("Inference pipeline unavailable: %s", exc)
        application.bot_data["pipeline"] = None
    application.bot_data["prices"] = PriceTracker()


def build_application() -> Application:
    app = (
        Application.builder()
        .token(config.TELEGRAM_BOT_TOKEN)
        .concurrent_updates(True)
        .build()
    )

    app.add_handler(CommandHandler("start",    cmd_start))
    app.add_handler(CommandHandler("help",     cmd_help))
    app.add_handler(CommandHandler("signals",  cmd_signals))
    app.add_handler(CommandHandler("products", cmd_products))
    app.add_handler(CommandHandler("cancel",   cmd_cancel))
    app.add_handler(MessageHandler(filters.PHOTO,                   handle_photo))
    app.add_handler(CallbackQueryHandler(handle_callback))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))
    return app
