from __future__ import annotations

from dataclasses import dataclass

LANGUAGE_CALLBACK_TAG = "lang"
ACCOUNT_CALLBACK_TAG = "acct"
CALLBACK_SEPARATOR = ":"


@dataclass(frozen=True)
class Button:
    label: str
    payload: str


Keyboard = tuple[tuple[Button, ...], ...]


@dataclass(frozen=True)
class OutgoingMessage:
    text: str
    keyboard: Keyboard | None = None


def callback_data(tag: str, payload: str) -> str:
    return f"{tag}{CALLBACK_SEPARATOR}{payload}"


def split_callback_data(data: str) -> tuple[str, str]:
    tag, _, payload = data.partition(CALLBACK_SEPARATOR)
    return tag, payload


def account_payload(catalog_version: int, index: int) -> str:
    return f"{catalog_version}{CALLBACK_SEPARATOR}{index}"


def parse_account_payload(payload: str) -> tuple[int, int]:
    """Return ``(catalog_version, zero_based_index)``; raises ``ValueError`` if malformed."""
    version_raw, sep, index_raw = payload.partition(CALLBACK_SEPARATOR)
    if not sep:
        raise ValueError(f"Malformed account payload '{payload}'.")
    return int(version_raw), int(index_raw)
