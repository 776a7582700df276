from __future__ import annotations

import asyncio
import weakref
from collections.abc import Callable
from contextlib import AsyncExitStack
from datetime import datetime

from loguru import logger

from sms_chat_relay.commands.router import CommandRouter
from sms_chat_relay.memory.models import Found, NotFound, Role, Session, utc_now
from sms_chat_relay.memory.store import SessionStore, StoreError
from sms_chat_relay.provider import CompletionProvider
from sms_chat_relay.quota import DailyQuota
from sms_chat_relay.system_prompt import DEFAULT_SYSTEM_PROMPT

FALLBACK_REPLY = "Failed to get response."
STORE_FAILURE_REPLY = "Sorry, something went wrong. Please try again later."


class SessionManager:
    """Per-sender conversation state: quota, commands, history and persistence.

    ``handle`` never raises for request-time failures. Completion errors become
    ``FALLBACK_REPLY`` and are still recorded in history; store errors become
    ``STORE_FAILURE_REPLY`` and the turn is not saved.
    """

    def __init__(
        self,
        store: SessionStore,
        provider: CompletionProvider,
        *,
        quota: DailyQuota | None = None,
        commands: CommandRouter | None = None,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        completion_timeout_seconds: float = 60.0,
        serialize_per_sender: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._store = store
        self._provider = provider
        self._quota = quota or DailyQuota()
        self._commands = commands or CommandRouter()
        self._system_prompt = system_prompt
        self._completion_timeout_seconds = completion_timeout_seconds
        self._serialize_per_sender = serialize_per_sender
        self._clock = clock
        self._sender_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    async def handle(self, sender_id: str, incoming_text: str) -> str:
        async with AsyncExitStack() as stack:
            if self._serialize_per_sender:
                await stack.enter_async_context(self._lock_for(sender_id))
            try:
                return await self._handle(sender_id, incoming_text)
            except StoreError:
                logger.exception(f"Session store failure for {sender_id}; this turn was not saved")
                return STORE_FAILURE_REPLY

    def load_session(self, sender_id: str) -> Session:
        result = self._store.get(sender_id)
        if isinstance(result, Found):
            session = result.session
        elif isinstance(result, NotFound):
            logger.info(f"New sender {sender_id}")
            session = Session(sender_id=sender_id, last_reset=self._clock())
        else:
            raise TypeError(f"Unexpected store result: {result!r}")

        if not session.history:
            session.append(Role.SYSTEM, self._system_prompt)
        return session

    async def _handle(self, sender_id: str, incoming_text: str) -> str:
        session = self.load_session(sender_id)

        if self._quota.roll_window(session, self._clock()):
            logger.info(f"Daily quota window reset for {sender_id}")
        self._quota.record_inbound(session)

        if self._quota.is_exceeded(session):
            logger.info(f"Daily limit reached for {sender_id} ({session.received_today}/{self._quota.limit})")
            session.total_sent += 1
            reply = self._quota.limit_message(session)
            self._store.upsert(session)
            return reply

        if self._commands.is_command(incoming_text):
            session.total_sent += 1
            reply = self._commands.try_handle(incoming_text, session)
            logger.info(f"Command {incoming_text.strip()} from {sender_id}")
            self._store.upsert(session)
            return reply

        session.append(Role.USER, incoming_text)
        reply = await self._complete(session)
        session.append(Role.SYSTEM, reply)
        session.total_sent += 1
        self._store.upsert(session)
        return reply

    async def _complete(self, session: Session) -> str:
        try:
            return await asyncio.wait_for(
                self._provider.complete(list(session.history)),
                timeout=self._completion_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Completion timed out after {self._completion_timeout_seconds}s for {session.sender_id}"
            )
        except Exception as ex:
            logger.warning(f"Completion failed for {session.sender_id}: {type(ex).__name__}: {ex}")
        return FALLBACK_REPLY

    def _lock_for(self, sender_id: str) -> asyncio.Lock:
        lock = self._sender_locks.get(sender_id)
        if lock is None:
            lock = asyncio.Lock()
            self._sender_locks[sender_id] = lock
        return lock
