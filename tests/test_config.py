"""Tests for settings: flags, environment overrides and validation."""

import os
import unittest
from unittest import mock

from sqlalchemy.engine import make_url

from core.config import Settings, load_settings
from main import parse_args

_ENV_KEYS = ("APP_HOST", "APP_PORT", "CACHE_DIR", "INVENTORY_STORE")


class LoadSettingsTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch.dict(os.environ, {}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)
        for key in _ENV_KEYS:
            os.environ.pop(key, None)

    def test_flags_are_used_without_env(self):
        s = load_settings(host="127.0.0.1", port=3000, cache_dir="/tmp/photos", store="sql")
        self.assertEqual(s.host, "127.0.0.1")
        self.assertEqual(s.port, 3000)
        self.assertEqual(s.cache_dir, "/tmp/photos")
        self.assertEqual(s.store, "sql")

    def test_env_overrides_flags(self):
        os.environ.update(APP_HOST="10.0.0.1", APP_PORT="9000", CACHE_DIR="/srv/photos", INVENTORY_STORE="memory")
        s = load_settings(host="127.0.0.1", port=3000, cache_dir="/tmp/photos", store="sql")
        self.assertEqual((s.host, s.port, s.cache_dir, s.store), ("10.0.0.1", 9000, "/srv/photos", "memory"))

    def test_defaults(self):
        s = load_settings()
        self.assertEqual(s.host, "0.0.0.0")
        self.assertEqual(s.port, 8000)
        self.assertTrue(os.path.isabs(s.cache_dir))
        self.assertEqual(s.store, "memory")

    def test_database_url_from_parts(self):
        os.environ.pop("DATABASE_URL", None)
        os.environ.pop("DB_DRIVER", None)
        os.environ.update(DB_HOST="db", DB_PORT="5433", DB_USER="inv", DB_PASSWORD="secret", DB_NAME="stock")
        url = Settings().database_url
        self.assertEqual(url.drivername, "postgresql+asyncpg")
        self.assertEqual((url.username, url.password), ("inv", "secret"))
        self.assertEqual((url.host, url.port, url.database), ("db", 5433, "stock"))

    def test_database_password_with_special_characters(self):
        os.environ.pop("DATABASE_URL", None)
        os.environ.update(DB_HOST="db", DB_USER="inv", DB_PASSWORD="p@ss:w/rd", DB_NAME="stock")
        url = make_url(Settings().database_url)
        self.assertEqual(url.password, "p@ss:w/rd")
        self.assertEqual((url.host, url.database), ("db", "stock"))
        # survives a render/parse cycle, as when handed to the engine
        rendered = make_url(url.render_as_string(hide_password=False))
        self.assertEqual(rendered.password, "p@ss:w/rd")
        self.assertEqual(rendered.host, "db")

    def test_database_url_env_wins(self):
        os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///inventory.db"
        self.assertEqual(Settings().database_url.get_backend_name(), "sqlite")

    def test_invalid_values_rejected(self):
        with self.assertRaises(ValueError):
            Settings(store="redis")
        with self.assertRaises(ValueError):
            Settings(search_photo_mode="sometimes")
        with self.assertRaises(ValueError):
            Settings(db_pool_size=0)


class ParseArgsTests(unittest.TestCase):
    def test_short_and_long_flags(self):
        args = parse_args(["-H", "localhost", "-p", "8080", "-c", "./cache", "--store", "sql"])
        self.assertEqual((args.host, args.port, args.cache, args.store), ("localhost", 8080, "./cache", "sql"))

    def test_flags_are_optional(self):
        args = parse_args([])
        self.assertIsNone(args.host)
        self.assertIsNone(args.port)
