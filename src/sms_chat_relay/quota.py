from __future__ import annotations

from datetime import datetime, timedelta

from sms_chat_relay.memory.models import Session

DEFAULT_DAILY_LIMIT = 10
QUOTA_WINDOW = timedelta(days=1)


def format_reset_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S UTC")


class DailyQuota:
    def __init__(self, limit: int = DEFAULT_DAILY_LIMIT, window: timedelta = QUOTA_WINDOW):
        if limit < 1:
            raise ValueError(f"Daily message limit must be at least 1, got {limit}")
        self._limit = limit
        self._window = window

    @property
    def limit(self) -> int:
        return self._limit

    def next_reset(self, session: Session) -> datetime:
        return session.last_reset + self._window

    def roll_window(self, session: Session, now: datetime) -> bool:
        """Start a new window if the current one has elapsed. Returns True on reset."""
        if now >= self.next_reset(session):
            session.received_today = 0
            session.last_reset = now
            return True
        return False

    def record_inbound(self, session: Session) -> None:
        session.received_today += 1
        session.total_received += 1

    def is_exceeded(self, session: Session) -> bool:
        return session.received_today >= self._limit

    def limit_message(self, session: Session) -> str:
        return (
            f"You have reached the daily message limit of {self._limit}. "
            f"Your quota will reset at {format_reset_time(self.next_reset(session))}"
        )
