from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AccountSummary(BaseModel):
    """One account from Monobank's client-info payload; amounts are in minor units."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    balance: int
    credit_limit: int = Field(default=0, alias="creditLimit")
    currency_code: int = Field(alias="currencyCode")
    type: str = Field(default="")
    masked_pan: tuple[str, ...] = Field(default=(), alias="maskedPan")
    iban: Optional[str] = None
    cashback_type: Optional[str] = Field(default=None, alias="cashbackType")


class AccountCatalog(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    client_name: str = Field(default="", alias="name")
    accounts: tuple[AccountSummary, ...] = ()


class TransactionRecord(BaseModel):
    """Statement item. ``amount`` is in the account currency, ``currency_code`` is the operation's."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: Optional[str] = None
    time: int
    amount: int
    currency_code: int = Field(alias="currencyCode")
    operation_amount: Optional[int] = Field(default=None, alias="operationAmount")
    description: str = ""


class FailureKind(str, Enum):
    AUTHENTICATION = "authentication"
    UPSTREAM = "upstream"


@dataclass(frozen=True)
class Failure:
    """Structured failure returned by the Monobank client instead of raising."""

    detail: str
    kind: FailureKind = FailureKind.UPSTREAM
    status_code: int | None = None

    @property
    def is_authentication(self) -> bool:
        return self.kind is FailureKind.AUTHENTICATION
