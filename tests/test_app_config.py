import os
import unittest
from unittest.mock import patch

from sms_chat_relay.app_config import parse_app_config, resolve_runtime_env
from sms_chat_relay.system_prompt import DEFAULT_SYSTEM_PROMPT


class ParseAppConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = parse_app_config({})
        self.assertEqual(10, config.daily_message_limit)
        self.assertEqual(DEFAULT_SYSTEM_PROMPT, config.system_prompt)
        self.assertEqual("openai", config.provider_name)
        self.assertEqual("gpt-4o", config.model)
        self.assertEqual("sqlite:messages.db", config.database_url)
        self.assertEqual(3000, config.port)
        self.assertEqual("/sms", config.webhook_path)
        self.assertFalse(config.serialize_per_sender)
        self.assertFalse(config.redact_senders)
        self.assertIsNone(config.log_consumers)

    def test_overrides(self) -> None:
        config = parse_app_config({
            "DailyMessageLimit": "25",
            "SystemPrompt": "  Talk like a pirate.  ",
            "Provider": " Anthropic ",
            "CompletionTimeoutSeconds": 15,
            "WebhookPath": "hooks/sms",
            "SerializePerSender": "yes",
            "Port": "8080",
        })
        self.assertEqual(25, config.daily_message_limit)
        self.assertEqual("Talk like a pirate.", config.system_prompt)
        self.assertEqual("anthropic", config.provider_name)
        self.assertTrue(config.model.startswith("claude"))
        self.assertEqual(15.0, config.completion_timeout_seconds)
        self.assertEqual("/hooks/sms", config.webhook_path)
        self.assertTrue(config.serialize_per_sender)
        self.assertEqual(8080, config.port)

    def test_blank_prompt_falls_back_to_default(self) -> None:
        self.assertEqual(DEFAULT_SYSTEM_PROMPT, parse_app_config({"SystemPrompt": "   "}).system_prompt)


class ResolveRuntimeEnvTests(unittest.TestCase):
    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test", "TWILIO_ACCOUNT_SID": "AC1"}, clear=True)
    def test_reports_missing_variables(self) -> None:
        env = resolve_runtime_env("openai")
        self.assertEqual("sk-test", env.provider_api_key)
        self.assertEqual(["TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER"], env.missing())

    @patch.dict(os.environ, {}, clear=True)
    def test_anthropic_key_name(self) -> None:
        env = resolve_runtime_env("anthropic")
        self.assertEqual("ANTHROPIC_API_KEY", env.provider_env_var)
        self.assertIn("ANTHROPIC_API_KEY", env.missing())
