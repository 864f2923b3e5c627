"""Scheduled digest: last 24 hours of every account, pushed to one fixed chat."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass

from telegram import Bot

from .config import get_settings
from .dialogue.engine import SECONDS_PER_DAY, ChatTransport, StatementClient
from .exceptions import UpstreamFailure
from .monobank.client import MonobankClient
from .rendering.messages import render_digest_summary, render_digest_transactions
from .schemas.monobank import Failure
from .telegram.transport import TelegramTransport

logger = logging.getLogger(__name__)


@dataclass
class DigestReport:
    accounts: int = 0
    messages_sent: int = 0
    failed_accounts: int = 0


async def run_digest(
    client: StatementClient,
    transport: ChatTransport,
    *,
    credential: str,
    chat_id: int,
    language: str | None = None,
    now: float | None = None,
) -> DigestReport:
    """Send the client summary, then one message per account that moved in the last day.

    Raises ``UpstreamFailure`` when the account list itself cannot be fetched;
    statement failures for single accounts are logged and skipped.
    """
    catalog = await client.fetch_account_summary(credential)
    if isinstance(catalog, Failure):
        raise UpstreamFailure(catalog)

    report = DigestReport(accounts=len(catalog.accounts))
    summary = render_digest_summary(catalog, language)
    await transport.send(chat_id, summary.text, summary.keyboard)
    report.messages_sent += 1

    to_ts = int(now if now is not None else time.time())
    from_ts = to_ts - SECONDS_PER_DAY
    for account in catalog.accounts:
        transactions = await client.fetch_statement(credential, account.id, from_ts, to_ts)
        if isinstance(transactions, Failure):
            logger.warning("Skipping account in digest: %s", transactions.detail)
            report.failed_accounts += 1
            continue
        if not transactions:
            continue
        message = render_digest_transactions(account, transactions, language)
        await transport.send(chat_id, message.text, message.keyboard)
        report.messages_sent += 1
    return report


class DigestNotConfigured(RuntimeError):
    """Raised when the digest settings are incomplete."""


async def run_configured_digest() -> DigestReport:
    """Run one digest with settings from the environment, using a standalone bot."""
    settings = get_settings()
    if not (settings.telegram_bot_token and settings.monobank_api_token and settings.digest_chat_id):
        raise DigestNotConfigured(
            "TELEGRAM_BOT_TOKEN, MONOBANK_API_TOKEN and DIGEST_CHAT_ID are required for the digest."
        )
    client = MonobankClient(str(settings.monobank_api_url), timeout=settings.monobank_timeout_seconds)
    try:
        async with Bot(settings.telegram_bot_token) as bot:
            report = await run_digest(
                client,
                TelegramTransport(bot),
                credential=settings.monobank_api_token,
                chat_id=settings.digest_chat_id,
                language=settings.digest_language or settings.default_language,
            )
    finally:
        await client.aclose()
    logger.info("Digest sent: %s", report)
    return report


async def main() -> None:  # pragma: no cover - entry point for cron runners
    await run_configured_digest()


if __name__ == "__main__":  # pragma: no cover
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
