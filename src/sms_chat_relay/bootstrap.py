from __future__ import annotations

from dataclasses import dataclass

from flask import Flask

from sms_chat_relay.app_config import AppConfig, RuntimeEnv
from sms_chat_relay.commands.router import CommandRouter
from sms_chat_relay.logging_config import setup_logging
from sms_chat_relay.memory import SessionStore
from sms_chat_relay.provider import create_provider
from sms_chat_relay.quota import DailyQuota
from sms_chat_relay.services.session_manager import SessionManager
from sms_chat_relay.transport.loop_runner import BackgroundLoop
from sms_chat_relay.transport.messaging import SmsRelay
from sms_chat_relay.transport.twilio_client import TwilioSmsClient
from sms_chat_relay.transport.webhook import create_app


@dataclass
class AppRuntime:
    app: Flask
    relay: SmsRelay
    session_manager: SessionManager
    store: SessionStore
    loop: BackgroundLoop
    log_descriptions: list[str]

    def close(self) -> None:
        self.loop.stop()
        self.store.close()


def bootstrap_runtime(app_config: AppConfig, env: RuntimeEnv) -> AppRuntime:
    """Wire the relay together. Raises StoreUnavailableError if the store cannot be opened."""
    log_descriptions = setup_logging(
        level=app_config.log_level,
        consumers=app_config.log_consumers,
        redact_senders=app_config.redact_senders,
    )

    store = SessionStore(app_config.database_url)

    provider = create_provider(
        app_config.provider_name,
        env.provider_api_key,
        model=app_config.model,
        max_tokens=app_config.max_tokens,
        temperature=app_config.temperature,
        timeout_seconds=app_config.completion_timeout_seconds,
    )

    session_manager = SessionManager(
        store,
        provider,
        quota=DailyQuota(app_config.daily_message_limit),
        commands=CommandRouter(),
        system_prompt=app_config.system_prompt,
        completion_timeout_seconds=app_config.completion_timeout_seconds,
        serialize_per_sender=app_config.serialize_per_sender,
    )

    messaging_client = TwilioSmsClient(
        env.twilio_account_sid,
        env.twilio_auth_token,
        env.twilio_phone_number,
        max_attempts=app_config.send_max_attempts,
    )
    relay = SmsRelay(session_manager, messaging_client)

    loop = BackgroundLoop()
    loop.start()

    app = create_app(relay, loop, webhook_path=app_config.webhook_path)

    return AppRuntime(
        app=app,
        relay=relay,
        session_manager=session_manager,
        store=store,
        loop=loop,
        log_descriptions=log_descriptions,
    )
