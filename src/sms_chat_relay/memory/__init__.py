from sms_chat_relay.memory.models import Found, HistoryEntry, NotFound, Role, Session
from sms_chat_relay.memory.store import SessionStore, StoreError, StoreUnavailableError

__all__ = [
    "Found",
    "HistoryEntry",
    "NotFound",
    "Role",
    "Session",
    "SessionStore",
    "StoreError",
    "StoreUnavailableError",
]
