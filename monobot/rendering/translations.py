from __future__ import annotations

import textwrap

FALLBACK_LANGUAGE = "en"

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "uk": "Українська",
}

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "welcome": "Hi! I can show your Monobank balances and statements.\nPick a language to continue.",
        "token_prompt": (
            "Send me your Monobank personal API token.\n"
            "You can create one at https://api.monobank.ua/."
        ),
        "token_accepted": "Token accepted, {name}! Found {count} account(s). Send /account_info to see them.",
        "token_invalid": "Monobank rejected this token ({detail}). Send /start to link your account again.",
        "token_check_failed": "Could not verify the token: {detail}. Send /start to try again.",
        "not_authenticated": "Link your Monobank account first: send /start.",
        "account_list_header": "<b>Accounts of {name}</b>",
        "account_line": "{index}. {label}\n    Balance: {balance}\n    Credit limit: {credit_limit}",
        "account_pick_reply": "Reply with the account number (1-{count}).",
        "account_pick_buttons": "Tap an account to see its statement.",
        "no_accounts": "Monobank returned no accounts for this token.",
        "selection_invalid": "Please send a number from 1 to {count}.",
        "selection_stale": "That list is out of date. Send /account_info to get a fresh one.",
        "select_account_first": "Choose an account first: send /account_info.",
        "days_prompt": "How many days of transactions should I show for {account}? Send a number from 1 to {max_days}.",
        "days_invalid": "Please send a whole number of days from 1 to {max_days}.",
        "statement_header": "<b>Transactions for {account} over the last {days} day(s)</b>",
        "no_transactions": "No transactions for {account} in the last {days} day(s).",
        "upstream_failure": "Monobank request failed: {detail}",
        "language_unknown": "Please choose one of the offered languages.",
        "cancelled": "Cancelled. Send /account_info or /start when you are ready.",
        "unknown": "Sorry, I did not understand that. Send /help to see what I can do.",
        "help": textwrap.dedent(
            """
            Commands:
            /start - link your Monobank account and pick a language
            /account_info - list your accounts and request a statement
            /cancel - stop the current step
            /help - show this message
            """
        ).strip(),
        "digest_header": "<b>Client information</b>\nName: {name}\nAccounts:",
        "digest_transactions_header": "<b>Transactions for account {account} in the last 24 hours</b>",
    },
    "uk": {
        "welcome": "Привіт! Я покажу баланси та виписки з Monobank.\nОберіть мову, щоб продовжити.",
        "token_prompt": (
            "Надішліть мені свій персональний токен API Monobank.\n"
            "Створити його можна на https://api.monobank.ua/."
        ),
        "token_accepted": "Токен прийнято, {name}! Знайдено рахунків: {count}. Надішліть /account_info, щоб їх переглянути.",
        "token_invalid": "Monobank відхилив цей токен ({detail}). Надішліть /start, щоб підключитися знову.",
        "token_check_failed": "Не вдалося перевірити токен: {detail}. Надішліть /start, щоб спробувати ще раз.",
        "not_authenticated": "Спершу підключіть Monobank: надішліть /start.",
        "account_list_header": "<b>Рахунки: {name}</b>",
        "account_line": "{index}. {label}\n    Баланс: {balance}\n    Кредитний ліміт: {credit_limit}",
        "account_pick_reply": "Надішліть номер рахунку (1-{count}).",
        "account_pick_buttons": "Натисніть на рахунок, щоб отримати виписку.",
        "no_accounts": "Monobank не повернув жодного рахунку для цього токена.",
        "selection_invalid": "Надішліть число від 1 до {count}.",
        "selection_stale": "Цей список застарів. Надішліть /account_info, щоб отримати новий.",
        "select_account_first": "Спершу оберіть рахунок: надішліть /account_info.",
        "days_prompt": "За скільки днів показати операції для {account}? Надішліть число від 1 до {max_days}.",
        "days_invalid": "Надішліть ціле число днів від 1 до {max_days}.",
        "statement_header": "<b>Операції для {account} за останні {days} дн.</b>",
        "no_transactions": "Немає операцій для {account} за останні {days} дн.",
        "upstream_failure": "Помилка запиту до Monobank: {detail}",
        "language_unknown": "Оберіть одну із запропонованих мов.",
        "cancelled": "Скасовано. Надішліть /account_info або /start, коли будете готові.",
        "unknown": "Вибачте, я не зрозумів. Надішліть /help, щоб побачити команди.",
        "help": textwrap.dedent(
            """
            Команди:
            /start - підключити Monobank та обрати мову
            /account_info - показати рахунки та отримати виписку
            /cancel - скасувати поточний крок
            /help - показати це повідомлення
            """
        ).strip(),
        "digest_header": "<b>Інформація про клієнта</b>\nІм'я: {name}\nРахунки:",
        "digest_transactions_header": "<b>Операції за рахунком {account} за останні 24 години</b>",
    },
}


def resolve_language(language: str | None) -> str:
    if language and language in MESSAGES:
        return language
    return FALLBACK_LANGUAGE


def translate(key: str, language: str | None, **params: object) -> str:
    table = MESSAGES[resolve_language(language)]
    template = table.get(key) or MESSAGES[FALLBACK_LANGUAGE].get(key, key)
    try:
        return template.format(**params)
    except (KeyError, IndexError, ValueError):
        return template
