"""
Unit Tests for the SGP8 Near-Earth Propagator

States are cross-checked against the sgp4 library. SGP8 and SGP4 differ in
their drag and short-period formulations, so the tolerances are kilometres
rather than metres.

Run with:
    python -m pytest tests/test_propagator.py -v
"""

import math
import unittest

import numpy as np
from sgp4.api import Satrec

from orbit_ephem.elements import OrbitalElements, parse_tle
from orbit_ephem.exceptions import PropagationError
from orbit_ephem.preprocessor import is_deep_space, preprocess
from orbit_ephem.propagator import (
    MIN_ECCENTRICITY, NearEarthPropagator, _check_eccentricity, create_propagator, propagate,
)
from tle_fixtures import (
    ISS_LINE1, ISS_LINE2, SSO_LINE1, SSO_LINE2, VANGUARD_LINE1, VANGUARD_LINE2,
)


def reference_state(line1, line2, tsince):
    satellite = Satrec.twoline2rv(line1, line2)
    jd = satellite.jdsatepoch
    fr = satellite.jdsatepochF + tsince / 1440.0
    error, r, v = satellite.sgp4(jd, fr)
    assert error == 0, f"sgp4 error code {error}"
    return np.array(r), np.array(v)


class TestNearEarthPropagator(unittest.TestCase):
    """Test suite for the SGP8 propagator."""

    def setUp(self):
        """Set up test fixtures."""
        self.elements = parse_tle(ISS_LINE1, ISS_LINE2, "ISS")
        self.state = preprocess(self.elements)
        self.propagator = create_propagator(self.state)

    def test_model_selection(self):
        self.assertFalse(self.state.is_deep_space)
        self.assertFalse(is_deep_space(self.elements))
        self.assertIsInstance(self.propagator, NearEarthPropagator)
        self.assertLess(self.state.period_minutes, 225.0)

    def test_iss_radius_after_90_minutes(self):
        """ISS stays between 6700 and 6900 km from the geocentre."""
        state = self.propagator.state_at(90.0)
        self.assertGreater(state.radius_km, 6700.0)
        self.assertLess(state.radius_km, 6900.0)
        self.assertTrue(state.kepler_converged)
        self.assertEqual(state.tsince, 90.0)

    def test_matches_sgp4_iss(self):
        """Position within 30 km and velocity within 50 m/s of SGP4."""
        for tsince in (0.0, 10.0, 90.0, 360.0, 1440.0):
            state = self.propagator.state_at(tsince)
            r_ref, v_ref = reference_state(ISS_LINE1, ISS_LINE2, tsince)
            self.assertLess(np.linalg.norm(state.position - r_ref), 30.0, f"t={tsince}")
            self.assertLess(np.linalg.norm(state.velocity - v_ref), 0.05, f"t={tsince}")

    def test_matches_sgp4_eccentric(self):
        """Vanguard 1 (e = 0.186) within 30 km of SGP4."""
        propagator = create_propagator(preprocess(parse_tle(VANGUARD_LINE1, VANGUARD_LINE2)))
        for tsince in (0.0, 120.0, 720.0):
            state = propagator.state_at(tsince)
            r_ref, _ = reference_state(VANGUARD_LINE1, VANGUARD_LINE2, tsince)
            self.assertLess(np.linalg.norm(state.position - r_ref), 30.0, f"t={tsince}")

    def test_matches_sgp4_sun_synchronous(self):
        propagator = create_propagator(preprocess(parse_tle(SSO_LINE1, SSO_LINE2)))
        for tsince in (0.0, 100.0, 1000.0):
            state = propagator.state_at(tsince)
            r_ref, _ = reference_state(SSO_LINE1, SSO_LINE2, tsince)
            self.assertLess(np.linalg.norm(state.position - r_ref), 30.0, f"t={tsince}")

    def test_backwards_propagation(self):
        state = self.propagator.state_at(-720.0)
        r_ref, _ = reference_state(ISS_LINE1, ISS_LINE2, -720.0)
        self.assertLess(np.linalg.norm(state.position - r_ref), 30.0)

    def test_deterministic(self):
        """Same inputs always give bit-identical states."""
        first = self.propagator.state_at(1234.5)
        self.propagator.state_at(10.0)
        second = self.propagator.state_at(1234.5)
        fresh = propagate(self.elements, 1234.5)
        np.testing.assert_array_equal(first.position, second.position)
        np.testing.assert_array_equal(first.velocity, fresh.velocity)

    def test_velocity_is_derivative_of_position(self):
        """Central difference of position agrees with the velocity."""
        dt = 0.5 / 60.0
        before = self.propagator.state_at(100.0 - dt).position
        after = self.propagator.state_at(100.0 + dt).position
        numeric = (after - before) / (2.0 * dt * 60.0)
        velocity = self.propagator.state_at(100.0).velocity
        self.assertLess(np.linalg.norm(numeric - velocity), 0.01)

    def test_orbital_speed(self):
        speed = self.propagator.state_at(45.0).speed_km_s
        self.assertGreater(speed, 7.5)
        self.assertLess(speed, 7.8)


class TestPropagationErrors(unittest.TestCase):

    def test_subsurface_perigee_raises(self):
        """An orbit dipping below the surface is reported as decayed."""
        elements = OrbitalElements(
            epoch_jd=2460204.0, mean_motion=15.5, eccentricity=0.1,
            inclination=math.radians(51.6), raan=0.0, arg_perigee=0.0,
            mean_anomaly=math.pi, satnum=99999,
        )
        propagator = create_propagator(preprocess(elements))
        with self.assertLogs("orbit_ephem.propagator", level="ERROR"):
            with self.assertRaises(PropagationError) as ctx:
                for tsince in range(0, 120):
                    propagator.state_at(float(tsince))
        self.assertIn("Physical meaning", str(ctx.exception))
        self.assertEqual(ctx.exception.physical_meaning, "Satellite has decayed")

    def test_eccentricity_bounds(self):
        self.assertEqual(_check_eccentricity(-1.0e-4, 0.0, 1), MIN_ECCENTRICITY)
        self.assertEqual(_check_eccentricity(0.5, 0.0, 1), 0.5)
        with self.assertRaises(PropagationError):
            _check_eccentricity(1.0, 10.0, 1)
        with self.assertRaises(PropagationError):
            _check_eccentricity(-0.01, 10.0, 1)

    def test_propagation_error_is_runtime_error(self):
        with self.assertRaises(RuntimeError):
            _check_eccentricity(1.5, 0.0, 1)


if __name__ == "__main__":
    unittest.main()
