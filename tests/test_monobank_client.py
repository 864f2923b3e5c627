from __future__ import annotations

from unittest import IsolatedAsyncioTestCase

import httpx

from monobot.monobank.client import MonobankClient
from monobot.schemas.monobank import AccountCatalog, Failure, FailureKind

CLIENT_INFO = {
    "clientId": "3MSaMMtczs",
    "name": "Мазепа Іван",
    "webHookUrl": "",
    "permissions": "psfj",
    "accounts": [
        {
            "id": "kKGVoZuHWzqVoZuH",
            "sendId": "uHWzqVoZuH",
            "balance": 10000000,
            "creditLimit": 10000000,
            "type": "black",
            "currencyCode": 980,
            "cashbackType": "UAH",
            "maskedPan": ["537541******1234"],
            "iban": "UA733220010000026201234567890",
        }
    ],
}

STATEMENT = [
    {
        "id": "ZuHWzqkKGVo=",
        "time": 1554466347,
        "description": "Покупка щастя",
        "mcc": 7997,
        "originalMcc": 7997,
        "hold": False,
        "amount": -95000,
        "operationAmount": -95000,
        "currencyCode": 980,
        "commissionRate": 0,
        "cashbackAmount": 19000,
        "balance": 10050000,
    }
]


class MonobankClientTests(IsolatedAsyncioTestCase):
    def _client(self, handler) -> MonobankClient:
        client = MonobankClient("https://api.monobank.ua", transport=httpx.MockTransport(handler))
        self.addAsyncCleanup(client.aclose)
        return client

    async def test_fetch_account_summary_parses_catalog(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=CLIENT_INFO)

        result = await self._client(handler).fetch_account_summary("tok")

        self.assertIsInstance(result, AccountCatalog)
        self.assertEqual(result.client_name, "Мазепа Іван")
        account = result.accounts[0]
        self.assertEqual(account.id, "kKGVoZuHWzqVoZuH")
        self.assertEqual(account.balance, 10000000)
        self.assertEqual(account.credit_limit, 10000000)
        self.assertEqual(account.currency_code, 980)
        self.assertEqual(account.masked_pan, ("537541******1234",))
        self.assertEqual(seen[0].url.path, "/personal/client-info")
        self.assertEqual(seen[0].headers["X-Token"], "tok")

    async def test_rejected_token_is_an_authentication_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"errorDescription": "Unknown 'X-Token'"})

        result = await self._client(handler).fetch_account_summary("bad")

        self.assertEqual(result, Failure("Unknown 'X-Token'", FailureKind.AUTHENTICATION, 403))

    async def test_rate_limit_is_an_upstream_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"errorDescription": "Too many requests"})

        result = await self._client(handler).fetch_account_summary("tok")

        self.assertIsInstance(result, Failure)
        self.assertEqual(result.kind, FailureKind.UPSTREAM)
        self.assertEqual(result.status_code, 429)
        self.assertEqual(result.detail, "Too many requests")

    async def test_error_without_body_uses_status_line(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502)

        result = await self._client(handler).fetch_account_summary("tok")

        self.assertEqual(result.detail, "HTTP 502 Bad Gateway")

    async def test_network_error_is_a_failure_not_an_exception(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await self._client(handler).fetch_account_summary("tok")

        self.assertEqual(result, Failure("connection refused"))

    async def test_malformed_payloads_are_failures(self) -> None:
        bodies = [
            httpx.Response(200, json={"name": "X", "accounts": "nope"}),
            httpx.Response(200, content=b"<html>maintenance</html>"),
        ]
        for response in bodies:
            with self.subTest(body=response.content):
                result = await self._client(lambda request, response=response: response).fetch_account_summary(
                    "tok"
                )
                self.assertIsInstance(result, Failure)
                self.assertIn("Malformed", result.detail)

    async def test_fetch_statement_builds_path_and_parses_records(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=STATEMENT)

        result = await self._client(handler).fetch_statement("tok", "acc", 100, 200)

        self.assertEqual(seen[0].url.path, "/personal/statement/acc/100/200")
        self.assertEqual(len(result), 1)
        record = result[0]
        self.assertEqual(record.time, 1554466347)
        self.assertEqual(record.amount, -95000)
        self.assertEqual(record.operation_amount, -95000)
        self.assertEqual(record.currency_code, 980)
        self.assertEqual(record.description, "Покупка щастя")

    async def test_empty_statement_is_a_valid_result(self) -> None:
        result = await self._client(lambda request: httpx.Response(200, json=[])).fetch_statement(
            "tok", "acc", 100, 200
        )

        self.assertEqual(result, [])

    async def test_statement_authentication_failure(self) -> None:
        result = await self._client(
            lambda request: httpx.Response(401, json={"errorDescription": "Unauthorized"})
        ).fetch_statement("tok", "acc", 100, 200)

        self.assertTrue(result.is_authentication)
