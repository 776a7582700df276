from __future__ import annotations

from typing import Protocol

from flask import Flask, Response, jsonify, request
from loguru import logger

from sms_chat_relay.transport.messaging import SmsRelay

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


class CoroutineRunner(Protocol):
    def submit(self, coro): ...


def create_app(relay: SmsRelay, runner: CoroutineRunner, *, webhook_path: str = "/sms") -> Flask:
    app = Flask(__name__)

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    # Twilio posts application/x-www-form-urlencoded with From and Body.
    @app.post(webhook_path)
    def inbound_sms():
        sender_id = (request.form.get("From") or "").strip()
        body = request.form.get("Body") or ""
        if not sender_id:
            logger.warning("Webhook request without a From field")
            return jsonify({"error": "missing 'From'"}), 400

        # The reply goes out through the REST API, not in the webhook response.
        runner.submit(relay.receive(sender_id, body))
        return Response(EMPTY_TWIML, status=200, mimetype="text/xml")

    return app
