from .monobank import (
    AccountCatalog,
    AccountSummary,
    Failure,
    FailureKind,
    TransactionRecord,
)

__all__ = [
    "AccountCatalog",
    "AccountSummary",
    "Failure",
    "FailureKind",
    "TransactionRecord",
]
