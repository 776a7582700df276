import asyncio
import unittest

from sms_chat_relay.transport.loop_runner import BackgroundLoop
from sms_chat_relay.transport.webhook import EMPTY_TWIML, create_app


class _FakeRelay:
    def __init__(self):
        self.received: list[tuple[str, str]] = []

    async def receive(self, sender_id: str, text: str) -> None:
        self.received.append((sender_id, text))


class _InlineRunner:
    def submit(self, coro):
        return asyncio.run(coro)


class WebhookTests(unittest.TestCase):
    def setUp(self) -> None:
        self.relay = _FakeRelay()
        self.app = create_app(self.relay, _InlineRunner())
        self.client = self.app.test_client()

    def test_inbound_sms_is_relayed(self) -> None:
        response = self.client.post("/sms", data={"From": "+15551111", "Body": "hello", "To": "+15550000"})

        self.assertEqual(200, response.status_code)
        self.assertEqual("text/xml", response.mimetype)
        self.assertEqual(EMPTY_TWIML, response.get_data(as_text=True))
        self.assertEqual([("+15551111", "hello")], self.relay.received)

    def test_missing_body_is_relayed_as_empty_text(self) -> None:
        self.client.post("/sms", data={"From": "+15551111"})
        self.assertEqual([("+15551111", "")], self.relay.received)

    def test_missing_sender_is_rejected(self) -> None:
        response = self.client.post("/sms", data={"Body": "hello"})
        self.assertEqual(400, response.status_code)
        self.assertEqual([], self.relay.received)

    def test_custom_webhook_path(self) -> None:
        client = create_app(self.relay, _InlineRunner(), webhook_path="/hooks/twilio").test_client()
        self.assertEqual(200, client.post("/hooks/twilio", data={"From": "+1", "Body": "x"}).status_code)
        self.assertEqual(404, client.post("/sms", data={"From": "+1", "Body": "x"}).status_code)

    def test_health(self) -> None:
        response = self.client.get("/health")
        self.assertEqual({"status": "ok"}, response.get_json())


class BackgroundLoopTests(unittest.TestCase):
    def test_runs_submitted_coroutines(self) -> None:
        loop = BackgroundLoop()
        loop.start()
        try:
            async def add(a: int, b: int) -> int:
                await asyncio.sleep(0)
                return a + b

            self.assertEqual(5, loop.submit(add(2, 3)).result(timeout=5))
        finally:
            loop.stop()

    def test_submit_before_start_fails(self) -> None:
        loop = BackgroundLoop()

        async def noop() -> None:
            return None

        with self.assertRaises(RuntimeError):
            loop.submit(noop())
        loop.stop()
