from __future__ import annotations

import asyncio
from unittest import IsolatedAsyncioTestCase

from monobot.dialogue.state import ConversationState, Phase
from monobot.dialogue.store import ConversationStore
from monobot.schemas.monobank import AccountSummary


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class ConversationStoreTests(IsolatedAsyncioTestCase):
    async def test_unknown_identity_starts_idle(self) -> None:
        store = ConversationStore()

        state = store.get(42)

        self.assertEqual(state, ConversationState())
        self.assertEqual(state.phase, Phase.IDLE)
        self.assertNotIn(42, store)

    async def test_session_hands_out_copies_until_saved(self) -> None:
        store = ConversationStore()
        async with store.session(42) as state:
            state.phase = Phase.AWAITING_TOKEN
        self.assertEqual(store.get(42).phase, Phase.IDLE)

        async with store.session(42) as state:
            state.phase = Phase.AWAITING_TOKEN
            store.save(42, state)
        snapshot = store.get(42)
        snapshot.phase = Phase.AWAITING_DAYS

        self.assertEqual(store.get(42).phase, Phase.AWAITING_TOKEN)

    async def test_save_outside_session_is_refused(self) -> None:
        store = ConversationStore()

        with self.assertRaises(RuntimeError):
            store.save(42, ConversationState())

    async def test_same_identity_is_serialised(self) -> None:
        store = ConversationStore()
        order: list[str] = []

        async def bump(name: str, delay: float) -> None:
            async with store.session("chat") as state:
                order.append(f"{name}-in")
                await asyncio.sleep(delay)
                state.catalog_version += 1
                store.save("chat", state)
                order.append(f"{name}-out")

        await asyncio.gather(bump("first", 0.01), bump("second", 0))

        self.assertEqual(order, ["first-in", "first-out", "second-in", "second-out"])
        self.assertEqual(store.get("chat").catalog_version, 2)

    async def test_different_identities_do_not_block_each_other(self) -> None:
        store = ConversationStore()

        async with store.session("a") as first:
            async with asyncio.timeout(1):
                async with store.session("b") as second:
                    second.language = "uk"
                    store.save("b", second)
            store.save("a", first)

        self.assertEqual(store.get("b").language, "uk")
        self.assertIn("a", store)

    async def test_idle_state_expires_with_its_token(self) -> None:
        clock = FakeClock()
        store = ConversationStore(ttl_seconds=10, clock=clock)
        async with store.session(1) as state:
            state.credential = "tok"
            store.save(1, state)

        clock.now = 10
        self.assertEqual(store.get(1).credential, "tok")

        clock.now = 10.5
        self.assertIsNone(store.get(1).credential)
        self.assertNotIn(1, store)

    async def test_prune_drops_only_expired_states(self) -> None:
        clock = FakeClock()
        store = ConversationStore(ttl_seconds=60, clock=clock)
        for identity in ("old", "fresh"):
            async with store.session(identity) as state:
                store.save(identity, state)
            clock.now += 50

        removed = store.prune()

        self.assertEqual(removed, 1)
        self.assertNotIn("old", store)
        self.assertIn("fresh", store)
        self.assertEqual(len(store), 1)

    async def test_prune_keeps_lock_with_waiting_session(self) -> None:
        store = ConversationStore(ttl_seconds=60, clock=FakeClock())
        order: list[str] = []

        async def hold(name: str, delay: float) -> None:
            async with store.session("new"):
                order.append(f"{name}-in")
                await asyncio.sleep(delay)
                order.append(f"{name}-out")

        async with store.session("new"):
            second = asyncio.create_task(hold("second", 0.01))
            await asyncio.sleep(0)
        # Released without a save; the waiter has not resumed yet.
        store.prune()
        third = asyncio.create_task(hold("third", 0))
        await asyncio.gather(second, third)

        self.assertEqual(order, ["second-in", "second-out", "third-in", "third-out"])
        self.assertNotIn("new", store)

    async def test_prune_drops_locks_of_finished_sessions(self) -> None:
        store = ConversationStore(ttl_seconds=60, clock=FakeClock())
        async with store.session("gone"):
            pass

        store.prune()

        self.assertEqual(store._locks, {})
        self.assertEqual(store._in_flight, {})

    async def test_zero_ttl_keeps_states(self) -> None:
        clock = FakeClock()
        store = ConversationStore(ttl_seconds=0, clock=clock)
        async with store.session(1) as state:
            state.credential = "tok"
            store.save(1, state)
        clock.now = 10**9

        self.assertEqual(store.prune(), 0)
        self.assertEqual(store.get(1).credential, "tok")


class ConversationStateTests(IsolatedAsyncioTestCase):
    async def test_leaving_day_step_clears_selection(self) -> None:
        account = AccountSummary(id="A", balance=0, currency_code=980)
        state = ConversationState(phase=Phase.AWAITING_DAYS, selected_account=account)

        state.enter(Phase.IDLE)

        self.assertIsNone(state.selected_account)

    async def test_storing_catalog_bumps_version(self) -> None:
        account = AccountSummary(id="A", balance=0, currency_code=980)
        state = ConversationState()

        state.store_catalog([account])
        state.store_catalog([account])

        self.assertEqual(state.catalog_version, 2)
        self.assertEqual(state.account_catalog, (account,))

    async def test_credential_is_hidden_from_repr(self) -> None:
        state = ConversationState(credential="secret-token")

        self.assertNotIn("secret-token", repr(state))
