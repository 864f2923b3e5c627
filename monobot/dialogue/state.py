from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Hashable, Iterable, Optional

from ..schemas.monobank import AccountSummary

ConversationId = Hashable


class Phase(str, Enum):
    IDLE = "idle"
    SELECTING_LANGUAGE = "selecting_language"
    AWAITING_TOKEN = "awaiting_token"
    AWAITING_ACCOUNT_SELECTION = "awaiting_account_selection"
    AWAITING_DAYS = "awaiting_days"


class SelectionMode(str, Enum):
    REPLY = "reply"
    BUTTONS = "buttons"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


@dataclass
class ConversationState:
    """Mutable per-chat dialogue record, only ever changed by the dialogue engine."""

    phase: Phase = Phase.IDLE
    language: Optional[str] = None
    credential: Optional[str] = field(default=None, repr=False)
    account_catalog: tuple[AccountSummary, ...] = ()
    catalog_version: int = 0
    selected_account: Optional[AccountSummary] = None
    touched_at: float = 0.0

    def copy(self) -> "ConversationState":
        return replace(self)

    def enter(self, phase: Phase) -> None:
        self.phase = phase
        if phase is not Phase.AWAITING_DAYS:
            self.selected_account = None

    def store_catalog(self, accounts: Iterable[AccountSummary]) -> None:
        self.account_catalog = tuple(accounts)
        self.catalog_version += 1
        self.selected_account = None

    def clear_catalog(self) -> None:
        self.account_catalog = ()
        self.selected_account = None

    def discard_credential(self) -> None:
        self.credential = None
        self.clear_catalog()
