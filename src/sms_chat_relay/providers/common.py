from __future__ import annotations

from sms_chat_relay.memory.models import HistoryEntry, Role


class CompletionError(Exception):
    """The provider answered, but without a usable reply."""


def split_history(history: list[HistoryEntry]) -> tuple[str, list[dict]]:
    """Split history into (instruction prompt, chat turns).

    A leading system entry is the instruction prompt. Later system entries are
    earlier model replies and become ``assistant`` turns.
    """
    system_prompt = ""
    entries = list(history)
    if entries and entries[0].role is Role.SYSTEM:
        system_prompt = entries[0].content
        entries = entries[1:]

    turns: list[dict] = []
    for entry in entries:
        role = "user" if entry.role is Role.USER else "assistant"
        turns.append({"role": role, "content": entry.content})
    return system_prompt, turns


def require_text(text: str | None, provider_name: str) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise CompletionError(f"{provider_name} returned an empty reply")
    return cleaned
