from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from monobot.digest import DigestNotConfigured, DigestReport
from monobot.exceptions import TransportFailure, UpstreamFailure
from monobot.main import app
from monobot.schemas.monobank import Failure
from monobot.telegram.bot import BotNotInitialised


class RoutingTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._init_bot_patch = patch("monobot.main.init_bot", new_callable=AsyncMock)
        cls._shutdown_bot_patch = patch("monobot.main.shutdown_bot", new_callable=AsyncMock)
        cls._handle_update_patch = patch("monobot.api.telegram.handle_update", new_callable=AsyncMock)
        cls._telegram_settings_patch = patch(
            "monobot.api.telegram.get_settings",
            return_value=SimpleNamespace(telegram_webhook_secret="secret123"),
        )
        cls._run_digest_patch = patch("monobot.api.digest.run_configured_digest", new_callable=AsyncMock)
        cls._digest_settings_patch = patch(
            "monobot.api.digest.get_settings",
            return_value=SimpleNamespace(digest_secret="cron456"),
        )

        cls.init_bot_mock = cls._init_bot_patch.start()
        cls.shutdown_bot_mock = cls._shutdown_bot_patch.start()
        cls.handle_update_mock = cls._handle_update_patch.start()
        cls.telegram_settings_mock = cls._telegram_settings_patch.start()
        cls.run_digest_mock = cls._run_digest_patch.start()
        cls.digest_settings_mock = cls._digest_settings_patch.start()

        cls._client_ctx = TestClient(app)
        cls.client = cls._client_ctx.__enter__()

    @classmethod
    def tearDownClass(cls) -> None:
        cls._client_ctx.__exit__(None, None, None)
        for patcher in (
            cls._init_bot_patch,
            cls._shutdown_bot_patch,
            cls._handle_update_patch,
            cls._telegram_settings_patch,
            cls._run_digest_patch,
            cls._digest_settings_patch,
        ):
            patcher.stop()

    def setUp(self) -> None:
        for mock in (self.handle_update_mock, self.run_digest_mock):
            mock.reset_mock(side_effect=True, return_value=True)

    def test_lifespan_initialises_bot(self) -> None:
        self.init_bot_mock.assert_awaited()

    def test_healthcheck(self) -> None:
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_telegram_webhook_route(self) -> None:
        payload = {"update_id": 1}
        response = self.client.post("/api/telegram/webhook/secret123", json=payload)
        self.assertEqual(response.status_code, 204)
        self.handle_update_mock.assert_awaited_once_with(payload)

    def test_telegram_webhook_bad_secret(self) -> None:
        response = self.client.post("/api/telegram/webhook/wrong", json={"update_id": 1})
        self.assertEqual(response.status_code, 404)
        self.handle_update_mock.assert_not_awaited()

    def test_telegram_webhook_reports_send_failure(self) -> None:
        self.handle_update_mock.side_effect = TransportFailure("Could not send message to chat 42")
        response = self.client.post("/api/telegram/webhook/secret123", json={"update_id": 1})
        self.assertEqual(response.status_code, 502)
        self.assertIn("chat 42", response.json()["detail"])

    def test_telegram_webhook_before_initialisation(self) -> None:
        self.handle_update_mock.side_effect = BotNotInitialised("Telegram bot is not initialised.")
        response = self.client.post("/api/telegram/webhook/secret123", json={"update_id": 1})
        self.assertEqual(response.status_code, 503)

    def test_digest_route(self) -> None:
        self.run_digest_mock.return_value = DigestReport(accounts=2, messages_sent=3, failed_accounts=0)
        response = self.client.post("/api/digest/run/cron456")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["accounts"], 2)
        self.assertEqual(body["messages_sent"], 3)

    def test_digest_route_bad_secret(self) -> None:
        response = self.client.post("/api/digest/run/nope")
        self.assertEqual(response.status_code, 404)
        self.run_digest_mock.assert_not_awaited()

    def test_digest_route_upstream_failure(self) -> None:
        self.run_digest_mock.side_effect = UpstreamFailure(Failure("Too many requests", status_code=429))
        response = self.client.post("/api/digest/run/cron456")
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"], "Too many requests")

    def test_digest_route_not_configured(self) -> None:
        self.run_digest_mock.side_effect = DigestNotConfigured("DIGEST_CHAT_ID missing")
        response = self.client.post("/api/digest/run/cron456")
        self.assertEqual(response.status_code, 503)


if __name__ == "__main__":
    unittest.main()
