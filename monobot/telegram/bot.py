from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from telegram import BotCommand, Update
from telegram.ext import AIORateLimiter, Application

from ..config import get_settings
from ..dialogue.engine import DialogueEngine
from ..dialogue.events import event_from_update
from ..dialogue.state import SelectionMode
from ..dialogue.store import ConversationStore
from ..exceptions import TransportFailure
from ..monobank.client import MonobankClient
from .transport import TelegramTransport

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]
BOT_COMMANDS = [
    BotCommand("start", "Link your Monobank account"),
    BotCommand("account_info", "Show accounts and request a statement"),
    BotCommand("cancel", "Cancel the current step"),
    BotCommand("help", "List bot commands"),
]


class BotRuntime:
    """Everything a webhook delivery needs, created once per process."""

    def __init__(
        self,
        application: Application,
        engine: DialogueEngine,
        transport: TelegramTransport,
        client: MonobankClient,
    ) -> None:
        self.application = application
        self.engine = engine
        self.transport = transport
        self.client = client


_runtime: BotRuntime | None = None
_lock = asyncio.Lock()


class BotNotInitialised(RuntimeError):
    """Raised when an update arrives before ``init_bot`` succeeded."""


def _create_application(token: str) -> Application:
    return (
        Application.builder()
        .token(token)
        .rate_limiter(AIORateLimiter())
        .updater(None)
        .build()
    )


def build_engine(transport: TelegramTransport, client: MonobankClient) -> DialogueEngine:
    settings = get_settings()
    store = ConversationStore(ttl_seconds=settings.state_ttl_seconds)
    return DialogueEngine(
        store,
        client,
        transport,
        selection_mode=SelectionMode(settings.account_selection_mode),
        max_days=settings.max_statement_days,
        default_language=settings.default_language,
    )


async def init_bot() -> None:
    """Initialise the Telegram bot and register the webhook."""
    settings = get_settings()
    if not settings.telegram_bot_token or not settings.telegram_webhook_secret:
        logger.info("Telegram bot or webhook secret not configured; skipping bot initialisation.")
        return

    async with _lock:
        global _runtime
        if _runtime is not None:
            return

        client = MonobankClient(
            str(settings.monobank_api_url), timeout=settings.monobank_timeout_seconds
        )
        application = _create_application(settings.telegram_bot_token)

        try:
            await application.initialize()
            await application.start()
            try:
                await application.bot.set_my_commands(BOT_COMMANDS)
            except Exception:
                logger.exception("Failed to set Telegram command list.")
            if settings.telegram_register_webhook_on_start:
                if not settings.backend_base_url:
                    logger.warning("BACKEND_BASE_URL is missing; skipping Telegram webhook registration.")
                else:
                    webhook_url = (
                        str(settings.backend_base_url).rstrip("/")
                        + f"/api/telegram/webhook/{settings.telegram_webhook_secret}"
                    )
                    await application.bot.set_webhook(
                        url=webhook_url,
                        drop_pending_updates=False,
                        allowed_updates=ALLOWED_UPDATES,
                    )
                    logger.info("Telegram webhook configured at %s", webhook_url)
        except Exception:
            logger.exception("Failed to initialise Telegram bot; bot disabled for this run.")
            with contextlib.suppress(Exception):
                await application.stop()
            with contextlib.suppress(Exception):
                await application.shutdown()
            await client.aclose()
            return

        transport = TelegramTransport(application.bot)
        _runtime = BotRuntime(application, build_engine(transport, client), transport, client)
        logger.info("Telegram bot ready (account selection: %s).", settings.account_selection_mode)


async def dispatch_update(runtime: BotRuntime, update: Any) -> None:
    """Turn one Telegram update into a dialogue event and run it through the engine."""
    runtime.engine.store.prune()
    routed = event_from_update(update)
    if routed is None:
        logger.debug("Ignoring update %s without a usable message.", getattr(update, "update_id", "?"))
        return
    chat_id, event = routed
    query = getattr(update, "callback_query", None)
    if query is not None:
        try:
            await runtime.transport.answer_callback(query.id)
        except TransportFailure as exc:
            logger.warning("Button press in chat %s not acknowledged: %s", chat_id, exc)
    await runtime.engine.handle_event(chat_id, event)


async def handle_update(payload: dict[str, Any]) -> None:
    """Process a Telegram update forwarded by FastAPI."""
    async with _lock:
        if _runtime is None:
            raise BotNotInitialised("Telegram bot is not initialised.")
        runtime = _runtime
    update = Update.de_json(payload, runtime.application.bot)
    await dispatch_update(runtime, update)


async def shutdown_bot() -> None:
    """Tear down the Telegram bot and close the Monobank client."""
    async with _lock:
        global _runtime
        if _runtime is None:
            return
        await _runtime.application.stop()
        await _runtime.application.shutdown()
        await _runtime.client.aclose()
        _runtime = None
