from __future__ import annotations

import httpx
from loguru import logger
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

_TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{account_sid}/Messages.json"
_TIMEOUT_SECONDS = 30


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def _on_retry(retry_state) -> None:
    attempt = retry_state.attempt_number
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    reason = type(exc).__name__ if exc else "Unknown"
    logger.warning(f"SMS send failed ({reason}). Retrying in {wait:.0f}s (attempt {attempt})...")


def send_retry_kwargs(max_attempts: int, wait: wait_base | None = None) -> dict:
    return {
        "retry": retry_if_exception(_is_retryable),
        "wait": wait or wait_exponential(multiplier=1, min=1, max=10),
        "stop": stop_after_attempt(max(1, max_attempts)),
        "before_sleep": _on_retry,
        "reraise": True,
    }


class TwilioSmsClient:
    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        *,
        max_attempts: int = 3,
        retry_wait: wait_base | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._max_attempts = max_attempts
        self._retry_wait = retry_wait
        self._transport = transport

    @property
    def from_number(self) -> str:
        return self._from_number

    async def send_message(self, to: str, body: str) -> str:
        """Send an SMS and return the provider's message SID."""
        logger.info(f"Sending SMS to {to} ({len(body)} chars)")
        async for attempt in AsyncRetrying(**send_retry_kwargs(self._max_attempts, self._retry_wait)):
            with attempt:
                data = await self._post_message(to, body)
        sid = str(data.get("sid", ""))
        logger.debug(f"Twilio accepted message sid={sid or '?'} status={data.get('status', '?')}")
        return sid

    async def _post_message(self, to: str, body: str) -> dict:
        url = _TWILIO_MESSAGES_URL.format(account_sid=self._account_sid)
        form = {"From": self._from_number, "To": to, "Body": body}

        async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS, transport=self._transport) as client:
            response = await client.post(url, data=form, auth=(self._account_sid, self._auth_token))

        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {response.status_code} from Twilio Messages API: {response.text[:200]}",
                request=response.request,
                response=response,
            )
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}
