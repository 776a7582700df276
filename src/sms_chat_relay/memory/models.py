from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


def utc_now() -> datetime:
    # Stored as epoch seconds, so keep whole seconds in memory too.
    return datetime.now(UTC).replace(microsecond=0)


class Role(str, Enum):
    USER = "user"
    SYSTEM = "system"

    @classmethod
    def parse(cls, value: str) -> Role:
        """Normalize a stored or provider role label.

        Model turns are kept as system turns, so ``assistant`` folds into
        ``SYSTEM``. Anything outside the two roles is rejected.
        """
        lowered = str(value).strip().lower()
        if lowered == "user":
            return cls.USER
        if lowered in {"system", "assistant"}:
            return cls.SYSTEM
        raise ValueError(f"Unknown history role: {value!r}")


@dataclass(frozen=True)
class HistoryEntry:
    role: Role
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict) -> HistoryEntry:
        content = data["content"]
        if not isinstance(content, str):
            raise TypeError(f"History content must be a string, got {type(content).__name__}")
        return cls(role=Role.parse(data["role"]), content=content)


@dataclass
class Session:
    sender_id: str
    total_received: int = 0
    total_sent: int = 0
    received_today: int = 0
    last_reset: datetime = field(default_factory=utc_now)
    history: list[HistoryEntry] = field(default_factory=list)

    def append(self, role: Role | str, content: str) -> None:
        if not isinstance(role, Role):
            role = Role.parse(role)
        self.history.append(HistoryEntry(role=role, content=content))


@dataclass(frozen=True)
class Found:
    session: Session


@dataclass(frozen=True)
class NotFound:
    sender_id: str


LookupResult = Found | NotFound
