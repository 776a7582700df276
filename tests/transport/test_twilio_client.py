import asyncio
import unittest
from urllib.parse import parse_qs

import httpx
from tenacity import wait_none

from sms_chat_relay.transport.twilio_client import TwilioSmsClient


class _Recorder:
    def __init__(self, responses: list):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _client(recorder: _Recorder, max_attempts: int = 3) -> TwilioSmsClient:
    return TwilioSmsClient(
        "AC123",
        "secret",
        "+15550000",
        max_attempts=max_attempts,
        retry_wait=wait_none(),
        transport=httpx.MockTransport(recorder),
    )


class TwilioSmsClientTests(unittest.TestCase):
    def test_posts_form_with_basic_auth(self) -> None:
        recorder = _Recorder([httpx.Response(201, json={"sid": "SM1", "status": "queued"})])
        sid = asyncio.run(_client(recorder).send_message("+15551111", "hi & bye"))

        self.assertEqual("SM1", sid)
        request = recorder.requests[0]
        self.assertEqual("POST", request.method)
        self.assertEqual(
            "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json",
            str(request.url),
        )
        self.assertTrue(request.headers["Authorization"].startswith("Basic "))
        form = parse_qs(request.content.decode())
        self.assertEqual(["+15550000"], form["From"])
        self.assertEqual(["+15551111"], form["To"])
        self.assertEqual(["hi & bye"], form["Body"])

    def test_retries_server_errors_then_succeeds(self) -> None:
        recorder = _Recorder([
            httpx.Response(503, text="unavailable"),
            httpx.Response(429, text="slow down"),
            httpx.Response(201, json={"sid": "SM2"}),
        ])
        self.assertEqual("SM2", asyncio.run(_client(recorder).send_message("+1", "x")))
        self.assertEqual(3, len(recorder.requests))

    def test_retries_transport_errors(self) -> None:
        recorder = _Recorder([
            httpx.ConnectError("refused"),
            httpx.Response(201, json={"sid": "SM3"}),
        ])
        self.assertEqual("SM3", asyncio.run(_client(recorder).send_message("+1", "x")))

    def test_gives_up_after_max_attempts(self) -> None:
        recorder = _Recorder([httpx.Response(500), httpx.Response(500)])
        with self.assertRaises(httpx.HTTPStatusError):
            asyncio.run(_client(recorder, max_attempts=2).send_message("+1", "x"))
        self.assertEqual(2, len(recorder.requests))

    def test_client_errors_are_not_retried(self) -> None:
        recorder = _Recorder([httpx.Response(400, json={"message": "invalid To"})])
        with self.assertRaises(httpx.HTTPStatusError):
            asyncio.run(_client(recorder).send_message("bad", "x"))
        self.assertEqual(1, len(recorder.requests))
