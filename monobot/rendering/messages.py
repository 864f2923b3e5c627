"""Pure rendering of dialogue outcomes into Telegram HTML messages."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from html import escape
from typing import Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..exceptions import ValidationError
from ..schemas.monobank import AccountCatalog, AccountSummary, Failure, TransactionRecord
from .currency import currency_symbol, format_amount
from .keyboard import (
    ACCOUNT_CALLBACK_TAG,
    LANGUAGE_CALLBACK_TAG,
    Button,
    Keyboard,
    OutgoingMessage,
    account_payload,
    callback_data,
)
from .translations import LANGUAGE_NAMES, translate

try:
    DISPLAY_TIMEZONE: tzinfo = ZoneInfo("Europe/Kyiv")
except ZoneInfoNotFoundError:
    DISPLAY_TIMEZONE = timezone(timedelta(hours=2))

ACCOUNT_BUTTONS_PER_ROW = 1


def _h(value: object) -> str:
    return escape(str(value), quote=False)


def account_label(account: AccountSummary) -> str:
    kind = account.type.capitalize() if account.type else "Account"
    if account.masked_pan:
        suffix = f" *{account.masked_pan[0][-4:]}"
    elif account.iban:
        suffix = f" *{account.iban[-4:]}"
    else:
        suffix = ""
    return f"{kind}{suffix} ({currency_symbol(account.currency_code)})"


def language_keyboard() -> Keyboard:
    return (
        tuple(
            Button(label=name, payload=callback_data(LANGUAGE_CALLBACK_TAG, code))
            for code, name in LANGUAGE_NAMES.items()
        ),
    )


def render_welcome(language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("welcome", language), keyboard=language_keyboard())


def render_token_prompt(language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("token_prompt", language))


def render_token_accepted(catalog: AccountCatalog, language: str | None) -> OutgoingMessage:
    return OutgoingMessage(
        translate(
            "token_accepted",
            language,
            name=_h(catalog.client_name or "-"),
            count=len(catalog.accounts),
        )
    )


def render_token_invalid(failure: Failure, language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("token_invalid", language, detail=_h(failure.detail)))


def render_token_check_failed(failure: Failure, language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("token_check_failed", language, detail=_h(failure.detail)))


def render_not_authenticated(language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("not_authenticated", language))


def _account_block(index: int, account: AccountSummary, language: str | None) -> str:
    return translate(
        "account_line",
        language,
        index=index,
        label=_h(account_label(account)),
        balance=format_amount(account.balance, account.currency_code),
        credit_limit=format_amount(account.credit_limit, account.currency_code),
    )


def render_account_list(
    catalog: AccountCatalog,
    language: str | None,
    *,
    with_buttons: bool = False,
    catalog_version: int = 0,
) -> OutgoingMessage:
    """Numbered account overview; with ``with_buttons`` each account also gets an inline button."""
    if not catalog.accounts:
        return OutgoingMessage(translate("no_accounts", language))

    lines = [translate("account_list_header", language, name=_h(catalog.client_name or "-")), ""]
    for index, account in enumerate(catalog.accounts, start=1):
        lines.append(_account_block(index, account, language))
    lines.append("")

    keyboard: Keyboard | None = None
    if with_buttons:
        lines.append(translate("account_pick_buttons", language))
        buttons = [
            Button(
                label=f"{index + 1}. {account_label(account)}",
                payload=callback_data(ACCOUNT_CALLBACK_TAG, account_payload(catalog_version, index)),
            )
            for index, account in enumerate(catalog.accounts)
        ]
        keyboard = tuple(
            tuple(buttons[start : start + ACCOUNT_BUTTONS_PER_ROW])
            for start in range(0, len(buttons), ACCOUNT_BUTTONS_PER_ROW)
        )
    else:
        lines.append(translate("account_pick_reply", language, count=len(catalog.accounts)))
    return OutgoingMessage("\n".join(lines), keyboard=keyboard)


def render_validation_error(error: ValidationError, language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate(error.message_key, language, **error.params))


def render_days_prompt(account: AccountSummary, language: str | None, *, max_days: int) -> OutgoingMessage:
    return OutgoingMessage(
        translate("days_prompt", language, account=_h(account_label(account)), max_days=max_days)
    )


def _format_timestamp(ts: int, tz: tzinfo) -> str:
    return datetime.fromtimestamp(ts, tz).strftime("%d.%m %H:%M")


def format_transaction_line(
    record: TransactionRecord,
    account_currency: int,
    tz: tzinfo = DISPLAY_TIMEZONE,
) -> str:
    line = f"{_format_timestamp(record.time, tz)}  {format_amount(record.amount, account_currency)}"
    if record.currency_code != account_currency and record.operation_amount is not None:
        line += f" ({format_amount(record.operation_amount, record.currency_code)})"
    description = record.description.strip()
    if description:
        line += f"  {_h(description)}"
    return line


def render_statement(
    account: AccountSummary,
    days: int,
    transactions: Sequence[TransactionRecord],
    language: str | None,
    tz: tzinfo = DISPLAY_TIMEZONE,
) -> OutgoingMessage:
    label = _h(account_label(account))
    if not transactions:
        return OutgoingMessage(translate("no_transactions", language, account=label, days=days))
    lines = [translate("statement_header", language, account=label, days=days), ""]
    ordered = sorted(transactions, key=lambda record: record.time, reverse=True)
    lines.extend(format_transaction_line(record, account.currency_code, tz) for record in ordered)
    return OutgoingMessage("\n".join(lines))


def render_upstream_failure(failure: Failure, language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("upstream_failure", language, detail=_h(failure.detail)))


def render_cancelled(language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("cancelled", language))


def render_unknown(language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("unknown", language))


def render_help(language: str | None) -> OutgoingMessage:
    return OutgoingMessage(translate("help", language))


def render_digest_summary(catalog: AccountCatalog, language: str | None) -> OutgoingMessage:
    lines = [translate("digest_header", language, name=_h(catalog.client_name or "-"))]
    for account in catalog.accounts:
        lines.append(
            f"- {_h(account_label(account))}: {format_amount(account.balance, account.currency_code)}"
        )
    return OutgoingMessage("\n".join(lines))


def render_digest_transactions(
    account: AccountSummary,
    transactions: Sequence[TransactionRecord],
    language: str | None,
    tz: tzinfo = DISPLAY_TIMEZONE,
) -> OutgoingMessage:
    lines = [translate("digest_transactions_header", language, account=_h(account_label(account))), ""]
    ordered = sorted(transactions, key=lambda record: record.time, reverse=True)
    lines.extend(format_transaction_line(record, account.currency_code, tz) for record in ordered)
    return OutgoingMessage("\n".join(lines))
