from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from sms_chat_relay.quota import DEFAULT_DAILY_LIMIT
from sms_chat_relay.system_prompt import get_system_prompt


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_phone_number: str

    def missing(self) -> list[str]:
        required = {
            self.provider_env_var: self.provider_api_key,
            "TWILIO_ACCOUNT_SID": self.twilio_account_sid,
            "TWILIO_AUTH_TOKEN": self.twilio_auth_token,
            "TWILIO_PHONE_NUMBER": self.twilio_phone_number,
        }
        return [name for name, value in required.items() if not value]


@dataclass
class AppConfig:
    daily_message_limit: int
    system_prompt: str
    provider_name: str
    model: str
    max_tokens: int
    temperature: float
    completion_timeout_seconds: float
    database_url: str
    host: str
    port: int
    webhook_path: str
    serialize_per_sender: bool
    send_max_attempts: int
    log_level: str
    log_consumers: list | None
    redact_senders: bool


def load_json_config() -> dict:
    config_path = Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def _default_model(provider_name: str) -> str:
    if provider_name == "anthropic":
        return "claude-sonnet-4-5-20250929"
    return "gpt-4o"


def parse_app_config(config: dict) -> AppConfig:
    provider_name = str(config.get("Provider", "openai")).strip().lower()
    webhook_path = str(config.get("WebhookPath", "/sms")).strip() or "/sms"
    if not webhook_path.startswith("/"):
        webhook_path = "/" + webhook_path
    return AppConfig(
        daily_message_limit=int(config.get("DailyMessageLimit", DEFAULT_DAILY_LIMIT)),
        system_prompt=get_system_prompt(config.get("SystemPrompt")),
        provider_name=provider_name,
        model=config.get("Model") or _default_model(provider_name),
        max_tokens=int(config.get("MaxTokens", 1024)),
        temperature=float(config.get("Temperature", 1.0)),
        completion_timeout_seconds=float(config.get("CompletionTimeoutSeconds", 60)),
        database_url=str(config.get("DatabaseUrl", "sqlite:messages.db")),
        host=str(config.get("Host", "0.0.0.0")),
        port=int(config.get("Port", 3000)),
        webhook_path=webhook_path,
        serialize_per_sender=_to_bool(config.get("SerializePerSender", False), default=False),
        send_max_attempts=int(config.get("SendMaxAttempts", 3)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
        redact_senders=_to_bool(config.get("RedactSenders", False), default=False),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    if provider_name == "anthropic":
        provider_api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        provider_env_var = "ANTHROPIC_API_KEY"
    else:
        provider_api_key = os.environ.get("OPENAI_API_KEY", "")
        provider_env_var = "OPENAI_API_KEY"

    return RuntimeEnv(
        provider_api_key=provider_api_key,
        provider_env_var=provider_env_var,
        twilio_account_sid=os.environ.get("TWILIO_ACCOUNT_SID", ""),
        twilio_auth_token=os.environ.get("TWILIO_AUTH_TOKEN", ""),
        twilio_phone_number=os.environ.get("TWILIO_PHONE_NUMBER", ""),
    )
