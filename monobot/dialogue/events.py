from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from ..rendering.keyboard import split_callback_data


@dataclass(frozen=True)
class TextCommand:
    name: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class TextReply:
    text: str


@dataclass(frozen=True)
class ButtonPress:
    tag: str
    payload: str = ""


Event = Union[TextCommand, TextReply, ButtonPress]


def parse_text(text: str) -> TextCommand | TextReply:
    """``/cmd@bot arg`` becomes a command, anything else a reply."""
    stripped = text.strip()
    if stripped.startswith("/") and len(stripped) > 1:
        head, *args = stripped.split()
        name = head[1:].split("@", 1)[0].lower()
        if name:
            return TextCommand(name=name, args=tuple(args))
    return TextReply(text=stripped)


def parse_callback(data: str) -> ButtonPress:
    tag, payload = split_callback_data(data)
    return ButtonPress(tag=tag, payload=payload)


def event_from_update(update: Any) -> tuple[int, Event] | None:
    """Map a Telegram ``Update`` to ``(chat_id, event)``; ``None`` when nothing applies."""
    query = getattr(update, "callback_query", None)
    if query is not None:
        message = getattr(query, "message", None)
        chat_id = getattr(getattr(message, "chat", None), "id", None)
        if chat_id is None or not query.data:
            return None
        return chat_id, parse_callback(query.data)

    message = getattr(update, "message", None)
    if message is None or not getattr(message, "text", None):
        return None
    return message.chat.id, parse_text(message.text)
