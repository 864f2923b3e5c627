from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter

from ..schemas.monobank import AccountCatalog, Failure, FailureKind, TransactionRecord

logger = logging.getLogger(__name__)

CLIENT_INFO_PATH = "/personal/client-info"
STATEMENT_PATH = "/personal/statement/{account}/{from_ts}/{to_ts}"
AUTH_STATUS_CODES = {401, 403}

_statement_adapter = TypeAdapter(list[TransactionRecord])


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        description = body.get("errorDescription") or body.get("error")
        if description:
            return str(description)
    text = response.text.strip()
    if text:
        return text[:200]
    return f"HTTP {response.status_code} {response.reason_phrase}".strip()


def _failure_from_response(response: httpx.Response) -> Failure:
    kind = (
        FailureKind.AUTHENTICATION
        if response.status_code in AUTH_STATUS_CODES
        else FailureKind.UPSTREAM
    )
    return Failure(detail=_error_detail(response), kind=kind, status_code=response.status_code)


class MonobankClient:
    """Read-only client for the Monobank personal API.

    Every call is attempted once. Transport errors, error statuses and
    payloads that do not match the expected shape come back as ``Failure``.
    """

    def __init__(
        self,
        api_base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=api_base_url,
            timeout=httpx.Timeout(timeout=timeout, connect=min(timeout, 10.0)),
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _get(self, endpoint: str, path: str, credential: str) -> Any | Failure:
        try:
            response = await self.client.get(path, headers={"X-Token": credential})
        except httpx.HTTPError as exc:
            logger.warning("Monobank %s request failed: %s", endpoint, exc)
            return Failure(detail=str(exc) or exc.__class__.__name__)
        if response.is_error:
            failure = _failure_from_response(response)
            logger.warning(
                "Monobank answered %s (%s): %s", response.status_code, failure.kind.value, failure.detail
            )
            return failure
        try:
            return response.json()
        except ValueError:
            logger.warning("Monobank returned a non-JSON body for %s", endpoint)
            return Failure(detail="Malformed response from Monobank", status_code=response.status_code)

    async def fetch_account_summary(self, credential: str) -> AccountCatalog | Failure:
        payload = await self._get("client-info", CLIENT_INFO_PATH, credential)
        if isinstance(payload, Failure):
            return payload
        try:
            return AccountCatalog.model_validate(payload)
        except ValueError as exc:
            logger.warning("Unexpected client-info payload: %s", exc)
            return Failure(detail="Malformed account data from Monobank")

    async def fetch_statement(
        self,
        credential: str,
        account_id: str,
        from_ts: int,
        to_ts: int,
    ) -> list[TransactionRecord] | Failure:
        path = STATEMENT_PATH.format(account=account_id, from_ts=from_ts, to_ts=to_ts)
        payload = await self._get("statement", path, credential)
        if isinstance(payload, Failure):
            return payload
        try:
            return _statement_adapter.validate_python(payload)
        except ValueError as exc:
            logger.warning("Unexpected statement payload: %s", exc)
            return Failure(detail="Malformed statement data from Monobank")
