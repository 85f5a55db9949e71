"""
Unit Tests for Configuration and Logging Setup

Run with:
    python -m pytest tests/test_config_logging.py -v
"""

import importlib
import logging
import os
import tempfile
import unittest
from unittest import mock

import config
import logging_config
from orbit_ephem import Satellite, parse_tle
import orbit_ephem.events as events
from orbit_ephem.exceptions import InvalidSearchParameterError
from orbit_ephem.topocentric import ObserverGeometry


class TestConstants(unittest.TestCase):

    def test_derived_constants(self):
        self.assertAlmostEqual(config.CK2, 5.41308e-4, places=9)
        self.assertAlmostEqual(config.CK4, 6.2098875e-7, places=12)
        self.assertAlmostEqual(config.QOMS2T, 1.880279e-9, delta=1e-12)
        self.assertAlmostEqual(config.S_DENSITY, 1.01222928, places=8)

    def test_fallback_tle_parses(self):
        tle = config.FALLBACK_ISS_TLE
        elements = parse_tle(tle["line1"], tle["line2"], tle["name"])
        self.assertEqual(elements.satnum, tle["norad_id"])
        self.assertAlmostEqual(elements.mean_motion, tle["mean_motion"], places=8)


class TestEnvironmentOverrides(unittest.TestCase):

    def tearDown(self):
        importlib.reload(config)

    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            importlib.reload(config)
            self.assertEqual(config.config.PRECISION_MODE, "exact")
            self.assertEqual(config.config.LOG_LEVEL, "INFO")
            self.assertEqual(config.config.STALE_TLE_DAYS, 30.0)

    def test_overrides(self):
        env = {
            "ORBIT_EPHEM_PRECISION_MODE": "FAST",
            "ORBIT_EPHEM_LOG_LEVEL": "debug",
            "ORBIT_EPHEM_MAX_SEARCH_DAYS": "10",
        }
        with mock.patch.dict(os.environ, env):
            importlib.reload(config)
            self.assertEqual(config.config.PRECISION_MODE, "fast")
            self.assertEqual(config.config.LOG_LEVEL, "DEBUG")
            self.assertEqual(config.config.MAX_SEARCH_DAYS, 10.0)


class TestSearchLimit(unittest.TestCase):

    def test_horizon_above_limit_rejected(self):
        tle = config.FALLBACK_ISS_TLE
        satellite = Satellite(parse_tle(tle["line1"], tle["line2"]))
        observer = ObserverGeometry.from_degrees(40.0, -75.0)
        with mock.patch.object(events.config, "MAX_SEARCH_DAYS", 5.0):
            with self.assertRaises(InvalidSearchParameterError):
                events.next_pass(satellite, observer, satellite.elements.epoch_jd, 0.2, 6.0)


class TestLoggingConfig(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = self.root.handlers[:]
        self.saved_level = self.root.level

    def tearDown(self):
        for handler in self.root.handlers:
            if handler not in self.saved_handlers:
                handler.close()
        self.root.handlers = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_configure_with_file(self):
        self.root.handlers = []
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "orbit.log")
            logging_config.configure_logging("DEBUG", log_file=path)
            self.assertEqual(self.root.level, logging.DEBUG)
            logging_config.get_logger("orbit_ephem.test").debug("pass found")
            for handler in self.root.handlers:
                handler.flush()
            with open(path) as f:
                content = f.read()
            for handler in self.root.handlers[:]:
                handler.close()
                self.root.removeHandler(handler)
        self.assertIn("orbit_ephem.test - DEBUG - pass found", content)

    def test_unknown_level_falls_back_to_info(self):
        self.root.handlers = []
        logging_config.configure_logging("chatty")
        self.assertEqual(self.root.level, logging.INFO)

    def test_get_logger(self):
        logger = logging_config.get_logger("orbit_ephem.events")
        self.assertIs(logger, logging.getLogger("orbit_ephem.events"))


if __name__ == "__main__":
    unittest.main()
