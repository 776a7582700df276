import anthropic
from loguru import logger

from sms_chat_relay.memory.models import HistoryEntry
from sms_chat_relay.providers.common import require_text, split_history


class AnthropicProvider:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = "claude-sonnet-4-5-20250929",
        max_tokens: int = 1024,
        temperature: float = 1.0,
        timeout_seconds: float = 60.0,
    ):
        self._client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def complete(self, history: list[HistoryEntry]) -> str:
        system_prompt, messages = split_history(history)
        logger.debug(f"API request: model={self._model}, messages={len(messages)}")
        kwargs: dict = dict(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=messages,
        )
        if system_prompt:
            kwargs["system"] = system_prompt
        response = await self._client.messages.create(**kwargs)

        # Only the text blocks of the first (and only) candidate are used.
        text = "".join(block.text for block in response.content if block.type == "text")
        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )
        return require_text(text, "Anthropic")
