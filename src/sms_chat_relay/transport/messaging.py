from __future__ import annotations

from typing import Protocol, runtime_checkable

from loguru import logger

from sms_chat_relay.services.session_manager import SessionManager


@runtime_checkable
class MessagingClient(Protocol):
    async def send_message(self, to: str, body: str) -> str: ...


class SmsRelay:
    """Forwards each inbound message through the session manager and texts back the reply."""

    def __init__(self, session_manager: SessionManager, messaging_client: MessagingClient):
        self._session_manager = session_manager
        self._messaging_client = messaging_client

    async def receive(self, sender_id: str, text: str) -> None:
        logger.info(f"Received SMS from {sender_id} ({len(text)} chars)")
        reply = await self._session_manager.handle(sender_id, text)
        try:
            await self._messaging_client.send_message(sender_id, reply)
        except Exception as ex:
            logger.error(f"Failed to deliver reply to {sender_id}: {type(ex).__name__}: {ex}")
