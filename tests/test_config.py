import json
import logging
import os
import unittest
from unittest.mock import patch

from config.app_config import AppConfig
from config.logging_config import JsonFormatter, configure_logging


class AppConfigTests(unittest.TestCase):
    def test_from_env(self):
        env = {
            "SCENARIO_DATA_DIR": "/tmp/scenarios",
            "DEFAULT_SCENARIO_ID": "trending-down",
            "VITE_OPENAI_API_KEY": "sk-vite",
            "OPENAI_MODEL": "gpt-test",
            "OPENAI_MAX_TOKENS": "256",
            "CORS_ORIGINS": "http://a.test, http://b.test,",
        }
        with patch.dict(os.environ, env, clear=True):
            cfg = AppConfig.from_env()

        self.assertEqual(cfg.data_dir, "/tmp/scenarios")
        self.assertEqual(cfg.default_scenario_id, "trending-down")
        self.assertEqual(cfg.openai_api_key, "sk-vite")
        self.assertTrue(cfg.openai_configured)
        self.assertEqual(cfg.openai_model, "gpt-test")
        self.assertEqual(cfg.openai_max_tokens, 256)
        self.assertEqual(cfg.cors_origins, ["http://a.test", "http://b.test"])

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = AppConfig.from_env()

        self.assertEqual(cfg.default_scenario_id, "trending-up")
        self.assertEqual(cfg.openai_model, "gpt-4o")
        self.assertEqual(cfg.openai_max_tokens, 1000)
        self.assertFalse(cfg.openai_configured)
        self.assertTrue(cfg.data_dir.endswith("data"))


class LoggingConfigTests(unittest.TestCase):
    def tearDown(self):
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.WARNING)

    def test_json_formatter_includes_request_fields(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "chat.done n=%s", (2,), None)
        record.request_id = "abc"
        payload = json.loads(JsonFormatter().format(record))

        self.assertEqual(payload["message"], "chat.done n=2")
        self.assertEqual(payload["request_id"], "abc")
        self.assertEqual(payload["level"], "INFO")

    def test_configure_is_idempotent(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "debug", "LOG_JSON": "1"}):
            configure_logging()
            configure_logging()

        root = logging.getLogger()
        self.assertEqual(len(root.handlers), 1)
        self.assertIsInstance(root.handlers[0].formatter, JsonFormatter)
        self.assertEqual(root.level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
