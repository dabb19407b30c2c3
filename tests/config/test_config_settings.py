import os
import unittest
from unittest.mock import patch

from kamunsync.config import MIN_KEY_LENGTH, RemoteCredentials, Settings, is_https_url
from kamunsync.errors import ConfigurationError

GOOD_KEY = "k" * MIN_KEY_LENGTH


class TestRemoteCredentials(unittest.TestCase):
    def test_valid_credentials_build_rest_url(self) -> None:
        creds = RemoteCredentials(url="https://example.supabase.co/", key=GOOD_KEY)
        self.assertEqual(creds.rest_url, "https://example.supabase.co/rest/v1")

    def test_rejects_http_url(self) -> None:
        with self.assertRaises(ConfigurationError):
            RemoteCredentials(url="http://example.com", key=GOOD_KEY)

    def test_rejects_short_key(self) -> None:
        with self.assertRaises(ConfigurationError):
            RemoteCredentials(url="https://example.com", key="k" * 20)

    def test_is_https_url(self) -> None:
        self.assertTrue(is_https_url("https://a.b"))
        self.assertFalse(is_https_url("https://"))
        self.assertFalse(is_https_url("ftp://a.b"))
        self.assertFalse(is_https_url(None))


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertIsNone(settings.remote_url)
        self.assertEqual(settings.debounce_ms, 500)
        self.assertEqual(settings.tick_interval, 1.0)
        self.assertIsNone(settings.remote_credentials())

    def test_reads_prefixed_environment(self) -> None:
        env = {
            "KAMUN_REMOTE_URL": "https://example.com",
            "KAMUN_REMOTE_KEY": GOOD_KEY,
            "KAMUN_DEBOUNCE_MS": "250",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.debounce_ms, 250)
        creds = settings.remote_credentials()
        self.assertIsNotNone(creds)
        self.assertEqual(creds.url, "https://example.com")

    def test_invalid_remote_values_raise(self) -> None:
        env = {"KAMUN_REMOTE_URL": "http://example.com", "KAMUN_REMOTE_KEY": GOOD_KEY}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        with self.assertRaises(ConfigurationError):
            settings.remote_credentials()

    def test_missing_key_means_not_configured(self) -> None:
        with patch.dict(os.environ, {"KAMUN_REMOTE_URL": "https://example.com"}, clear=True):
            settings = Settings(_env_file=None)
        self.assertIsNone(settings.remote_credentials())


if __name__ == "__main__":
    unittest.main()
