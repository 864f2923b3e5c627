from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol, cast

from ..exceptions import AuthenticationError, ValidationError
from ..rendering.keyboard import (
    ACCOUNT_CALLBACK_TAG,
    LANGUAGE_CALLBACK_TAG,
    Keyboard,
    OutgoingMessage,
    parse_account_payload,
)
from ..rendering.messages import (
    render_account_list,
    render_cancelled,
    render_days_prompt,
    render_help,
    render_not_authenticated,
    render_statement,
    render_token_accepted,
    render_token_check_failed,
    render_token_invalid,
    render_token_prompt,
    render_unknown,
    render_upstream_failure,
    render_validation_error,
    render_welcome,
)
from ..rendering.translations import FALLBACK_LANGUAGE, LANGUAGE_NAMES, resolve_language
from ..schemas.monobank import AccountCatalog, Failure, TransactionRecord
from .events import ButtonPress, Event, TextCommand, TextReply
from .state import ConversationId, ConversationState, Phase, SelectionMode
from .store import ConversationStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
DEFAULT_MAX_DAYS = 31


class StatementClient(Protocol):
    async def fetch_account_summary(self, credential: str) -> AccountCatalog | Failure: ...

    async def fetch_statement(
        self, credential: str, account_id: str, from_ts: int, to_ts: int
    ) -> list[TransactionRecord] | Failure: ...


class ChatTransport(Protocol):
    async def send(self, chat_id: ConversationId, text: str, keyboard: Keyboard | None = None) -> None: ...


Handler = Callable[[ConversationState, Event], Awaitable[list[OutgoingMessage]]]


def _parse_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def event_key(event: Event) -> str:
    if isinstance(event, TextCommand):
        return f"command:{event.name}"
    if isinstance(event, TextReply):
        return "reply"
    if isinstance(event, ButtonPress):
        return f"button:{event.tag}"
    raise TypeError(f"Unsupported event {event!r}")


class DialogueEngine:
    """Per-chat state machine behind the bot.

    Each event is handled under the chat's store lock: the handler picked
    from the (phase, event) table updates a copy of the state, the copy is
    committed, and only then are the rendered replies sent. A failed send
    therefore leaves the state advanced.
    """

    def __init__(
        self,
        store: ConversationStore,
        client: StatementClient,
        transport: ChatTransport,
        *,
        selection_mode: SelectionMode | str = SelectionMode.REPLY,
        max_days: int = DEFAULT_MAX_DAYS,
        default_language: str = FALLBACK_LANGUAGE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.client = client
        self.transport = transport
        self.selection_mode = SelectionMode(selection_mode)
        self.max_days = max_days
        self.default_language = resolve_language(default_language)
        self._clock = clock
        self._transitions = self._build_transitions()

    def _build_transitions(self) -> dict[tuple[Phase | None, str], Handler]:
        # A phase of None matches any phase without a more specific entry.
        table: dict[tuple[Phase | None, str], Handler] = {
            (None, "command:start"): self._start,
            (None, "command:account_info"): self._account_info,
            (None, "command:cancel"): self._cancel,
            (None, "command:help"): self._help,
            (Phase.SELECTING_LANGUAGE, f"button:{LANGUAGE_CALLBACK_TAG}"): self._choose_language,
            (Phase.AWAITING_TOKEN, "reply"): self._verify_token,
            (Phase.AWAITING_DAYS, "reply"): self._request_statement,
        }
        if self.selection_mode is SelectionMode.REPLY:
            table[(Phase.AWAITING_ACCOUNT_SELECTION, "reply")] = self._select_account_by_number
        else:
            table[(None, f"button:{ACCOUNT_CALLBACK_TAG}")] = self._select_account_by_button
        return table

    def _language(self, state: ConversationState) -> str:
        return state.language or self.default_language

    def resolve(self, phase: Phase, event: Event) -> Handler:
        key = event_key(event)
        return (
            self._transitions.get((phase, key))
            or self._transitions.get((None, key))
            or self._unknown
        )

    async def handle_event(self, identity: ConversationId, event: Event) -> None:
        async with self.store.session(identity) as state:
            previous = state.phase
            snapshot = state.copy()
            handler = self.resolve(state.phase, event)
            try:
                replies = await handler(state, event)
            except ValidationError as exc:
                state = snapshot
                replies = [render_validation_error(exc, self._language(state))]
            except AuthenticationError as exc:
                logger.info("Monobank rejected the token for chat %s; token discarded.", identity)
                state.discard_credential()
                state.enter(Phase.IDLE)
                replies = [render_token_invalid(exc.failure, self._language(state))]
            self.store.save(identity, state)
            logger.debug(
                "Chat %s: %s --%s--> %s", identity, previous.value, event_key(event), state.phase.value
            )
            for reply in replies:
                await self.transport.send(identity, reply.text, reply.keyboard)

    async def _start(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        state.clear_catalog()
        state.enter(Phase.SELECTING_LANGUAGE)
        return [render_welcome(self._language(state))]

    async def _choose_language(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        event = cast(ButtonPress, event)
        if event.payload not in LANGUAGE_NAMES:
            raise ValidationError("language_unknown")
        state.language = event.payload
        state.enter(Phase.AWAITING_TOKEN)
        return [render_token_prompt(self._language(state))]

    async def _verify_token(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        event = cast(TextReply, event)
        token = event.text.strip()
        result = await self.client.fetch_account_summary(token)
        state.enter(Phase.IDLE)
        if isinstance(result, Failure):
            state.discard_credential()
            if result.is_authentication:
                raise AuthenticationError(result)
            return [render_token_check_failed(result, self._language(state))]
        state.credential = token
        return [render_token_accepted(result, self._language(state))]

    async def _account_info(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        if not state.credential:
            return [render_not_authenticated(self._language(state))]
        result = await self.client.fetch_account_summary(state.credential)
        if isinstance(result, Failure):
            if result.is_authentication:
                raise AuthenticationError(result)
            return [render_upstream_failure(result, self._language(state))]

        state.store_catalog(result.accounts)
        if not state.account_catalog:
            state.enter(Phase.IDLE)
        elif self.selection_mode is SelectionMode.REPLY:
            state.enter(Phase.AWAITING_ACCOUNT_SELECTION)
        else:
            state.enter(Phase.AWAITING_DAYS)
        return [
            render_account_list(
                result,
                self._language(state),
                with_buttons=self.selection_mode is SelectionMode.BUTTONS,
                catalog_version=state.catalog_version,
            )
        ]

    def _choose_account(self, state: ConversationState, index: int) -> list[OutgoingMessage]:
        count = len(state.account_catalog)
        if not 0 <= index < count:
            raise ValidationError("selection_invalid", count=count)
        state.enter(Phase.AWAITING_DAYS)
        state.selected_account = state.account_catalog[index]
        return [render_days_prompt(state.selected_account, self._language(state), max_days=self.max_days)]

    async def _select_account_by_number(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        event = cast(TextReply, event)
        if not state.account_catalog:
            raise ValidationError("select_account_first")
        number = _parse_int(event.text)
        if number is None:
            raise ValidationError("selection_invalid", count=len(state.account_catalog))
        return self._choose_account(state, number - 1)

    async def _select_account_by_button(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        event = cast(ButtonPress, event)
        try:
            version, index = parse_account_payload(event.payload)
        except ValueError:
            raise ValidationError("selection_stale") from None
        if not state.account_catalog or version != state.catalog_version:
            raise ValidationError("selection_stale")
        return self._choose_account(state, index)

    async def _request_statement(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        event = cast(TextReply, event)
        account = state.selected_account
        if account is None:
            raise ValidationError("select_account_first")
        days = _parse_int(event.text)
        if days is None or not 1 <= days <= self.max_days:
            raise ValidationError("days_invalid", max_days=self.max_days)
        if not state.credential:
            state.enter(Phase.IDLE)
            return [render_not_authenticated(self._language(state))]

        to_ts = int(self._clock())
        from_ts = to_ts - days * SECONDS_PER_DAY
        result = await self.client.fetch_statement(state.credential, account.id, from_ts, to_ts)
        state.enter(Phase.IDLE)
        if isinstance(result, Failure):
            if result.is_authentication:
                raise AuthenticationError(result)
            return [render_upstream_failure(result, self._language(state))]
        return [render_statement(account, days, result, self._language(state))]

    async def _cancel(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        state.clear_catalog()
        state.enter(Phase.IDLE)
        return [render_cancelled(self._language(state))]

    async def _help(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        return [render_help(self._language(state))]

    async def _unknown(self, state: ConversationState, event: Event) -> list[OutgoingMessage]:
        return [render_unknown(self._language(state))]
