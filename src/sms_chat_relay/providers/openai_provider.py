import openai
from loguru import logger

from sms_chat_relay.memory.models import HistoryEntry
from sms_chat_relay.providers.common import CompletionError, require_text, split_history


def _to_openai_messages(history: list[HistoryEntry]) -> list[dict]:
    """Convert session history to OpenAI chat format."""
    system_prompt, turns = split_history(history)
    out: list[dict] = []
    if system_prompt:
        out.append({"role": "system", "content": system_prompt})
    out.extend(turns)
    return out


class OpenAIProvider:
    def __init__(
        self,
        api_key: str,
        *,
        model: str = "gpt-4o",
        max_tokens: int = 1024,
        temperature: float = 1.0,
        timeout_seconds: float = 60.0,
    ):
        # A failed completion is never retried; the session manager falls back instead.
        self._client = openai.AsyncOpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature

    async def complete(self, history: list[HistoryEntry]) -> str:
        oai_messages = _to_openai_messages(history)
        logger.debug(f"API request: model={self._model}, messages={len(oai_messages)}")
        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
            messages=oai_messages,
        )
        if not response.choices:
            raise CompletionError("OpenAI returned no choices")
        text = require_text(response.choices[0].message.content, "OpenAI")
        logger.debug(f"API response: choices={len(response.choices)}, len={len(text)}")
        return text
