from __future__ import annotations

from collections.abc import Callable

from sms_chat_relay.memory.models import Session

HELP_TEXT = "Commands: !help, !stats"


def format_stats(session: Session) -> str:
    return (
        f"Total messages received: {session.total_received}, "
        f"Total messages sent: {session.total_sent}, "
        f"Messages received today: {session.received_today}"
    )


class CommandRouter:
    """Resolves exact-match ``!`` commands to a reply without calling the model."""

    def __init__(self) -> None:
        self._handlers: dict[str, Callable[[Session], str]] = {
            "!help": lambda _session: HELP_TEXT,
            "!stats": format_stats,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._handlers)

    def is_command(self, message: str) -> bool:
        return message.strip() in self._handlers

    def try_handle(self, message: str, session: Session) -> str | None:
        handler = self._handlers.get(message.strip())
        if handler is None:
            return None
        return handler(session)
