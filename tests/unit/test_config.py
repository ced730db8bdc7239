#!/usr/bin/env python3
"""Configuration and logging setup tests"""

import io
import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[2]))

from parking_engine.config import EngineConfig, setup_logging
from parking_engine.domain.exceptions import InvalidInput


class TestEngineConfig(unittest.TestCase):

    def test_defaults(self):
        config = EngineConfig.from_env({})
        self.assertEqual(config.database_url, "sqlite:///./parking.db")
        self.assertIsNone(config.redis_url)
        self.assertEqual(config.facility_cache_ttl, 300)
        self.assertEqual(config.currency, "USD")
        self.assertEqual(config.sqlite_busy_timeout, 30.0)
        self.assertEqual(config.log_level, "INFO")
        self.assertIsNone(config.log_file)

    def test_values_from_environment(self):
        config = EngineConfig.from_env({
            "DATABASE_URL": "postgresql://parking@localhost/parking",
            "REDIS_URL": "redis://localhost:6379/0",
            "FACILITY_CACHE_TTL": "60",
            "CURRENCY": "eur",
            "SQLITE_BUSY_TIMEOUT": "5.5",
            "LOG_LEVEL": "debug",
        })
        self.assertEqual(config.database_url, "postgresql://parking@localhost/parking")
        self.assertEqual(config.redis_url, "redis://localhost:6379/0")
        self.assertEqual(config.facility_cache_ttl, 60)
        self.assertEqual(config.currency, "EUR")
        self.assertEqual(config.sqlite_busy_timeout, 5.5)
        self.assertEqual(config.log_level, "DEBUG")

    def test_empty_redis_url_disables_cache(self):
        self.assertIsNone(EngineConfig.from_env({"REDIS_URL": ""}).redis_url)

    def test_invalid_values(self):
        for environ in (
            {"FACILITY_CACHE_TTL": "soon"},
            {"FACILITY_CACHE_TTL": "0"},
            {"CURRENCY": "DOLLARS"},
            {"SQLITE_BUSY_TIMEOUT": "-1"},
            {"LOG_LEVEL": "CHATTY"},
        ):
            with self.subTest(environ=environ):
                with self.assertRaises(InvalidInput):
                    EngineConfig.from_env(environ)


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = self.root.handlers[:]
        self.saved_level = self.root.level
        self.root.handlers = []

    def tearDown(self):
        for handler in self.root.handlers:
            handler.close()
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_logs_to_stream_and_file(self):
        with tempfile.TemporaryDirectory() as directory:
            log_file = os.path.join(directory, "logs", "engine.log")
            stream = io.StringIO()

            logger = setup_logging(EngineConfig(log_file=log_file, log_level="WARNING"), stream=stream)
            logger.warning("capacity reached")
            logger.info("not shown")

            for handler in self.root.handlers:
                handler.flush()

            self.assertIn("parking_engine - WARNING - capacity reached", stream.getvalue())
            self.assertNotIn("not shown", stream.getvalue())
            with open(log_file) as f:
                self.assertIn("capacity reached", f.read())

            for handler in self.root.handlers:
                handler.close()
            self.root.handlers = []


if __name__ == '__main__':
    unittest.main()
