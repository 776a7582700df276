from typing import Protocol, runtime_checkable

from sms_chat_relay.memory.models import HistoryEntry


@runtime_checkable
class CompletionProvider(Protocol):
    async def complete(self, history: list[HistoryEntry]) -> str:
        """Return the model's reply to the conversation so far.

        Raises on any failure, including an empty candidate list.
        """
        ...


def create_provider(
    provider_name: str,
    api_key: str,
    *,
    model: str,
    max_tokens: int,
    temperature: float,
    timeout_seconds: float,
) -> CompletionProvider:
    """Factory: create a CompletionProvider by name."""
    name = provider_name.strip().lower()
    if name == "openai":
        from sms_chat_relay.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(
            api_key,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout_seconds=timeout_seconds,
        )
    if name == "anthropic":
        from sms_chat_relay.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(
            api_key,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout_seconds=timeout_seconds,
        )
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'openai', 'anthropic'")
