"""
Unit Tests for the SDP8 Deep-Space Model

Covers model selection, resonance classification, statelessness of the
resonance integrator and a loose cross-check against SDP4 from the sgp4
library (the two models share their lunar-solar theory).

Run with:
    python -m pytest tests/test_deep_space.py -v
"""

import unittest

import numpy as np
from sgp4.api import Satrec

from orbit_ephem.deep_space import (
    RESONANCE_HALF_DAY, RESONANCE_SYNCHRONOUS, DeepSpaceCorrection, LunarSolarCorrection,
    SecularElements, actan,
)
from orbit_ephem.elements import parse_tle
from orbit_ephem.preprocessor import preprocess
from orbit_ephem.propagator import DeepSpacePropagator, create_propagator
from orbit_ephem.satellite import Satellite
from tle_fixtures import (
    GEO_LINE1, GEO_LINE2, ISS_LINE1, ISS_LINE2, MOLNIYA_LINE1, MOLNIYA_LINE2,
)


class NoCorrection(DeepSpaceCorrection):
    """Strategy that leaves the secular elements untouched."""

    def initialize(self, elements, orbit):
        return None

    def secular(self, terms, raw, tsince):
        return raw

    def periodic(self, terms, current, tsince):
        return current


def sdp4_position(line1, line2, tsince):
    satellite = Satrec.twoline2rv(line1, line2)
    error, r, _ = satellite.sgp4(satellite.jdsatepoch, satellite.jdsatepochF + tsince / 1440.0)
    assert error == 0, f"sgp4 error code {error}"
    return np.array(r)


class TestDeepSpaceSelection(unittest.TestCase):

    def test_molniya_is_half_day_resonant(self):
        state = preprocess(parse_tle(MOLNIYA_LINE1, MOLNIYA_LINE2))
        self.assertTrue(state.is_deep_space)
        self.assertIsInstance(state.deep_space_model, LunarSolarCorrection)
        self.assertEqual(state.deep_space_terms.resonance.kind, RESONANCE_HALF_DAY)

    def test_geostationary_is_synchronous(self):
        state = preprocess(parse_tle(GEO_LINE1, GEO_LINE2))
        self.assertTrue(state.is_deep_space)
        self.assertEqual(state.deep_space_terms.resonance.kind, RESONANCE_SYNCHRONOUS)

    def test_near_earth_has_no_deep_space_terms(self):
        state = preprocess(parse_tle(ISS_LINE1, ISS_LINE2))
        self.assertFalse(state.is_deep_space)
        self.assertIsNone(state.deep_space_terms)

    def test_classification_is_stable(self):
        """The model chosen at construction never changes."""
        satellite = Satellite(parse_tle(MOLNIYA_LINE1, MOLNIYA_LINE2))
        for tsince in (0.0, 5000.0, -3000.0):
            satellite.state_at(tsince)
            self.assertTrue(satellite.is_deep_space)
            self.assertIsInstance(satellite.propagator, DeepSpacePropagator)

    def test_deep_space_propagator_requires_model(self):
        state = preprocess(parse_tle(ISS_LINE1, ISS_LINE2))
        with self.assertRaises(ValueError):
            DeepSpacePropagator(state)


class TestDeepSpacePropagation(unittest.TestCase):

    def setUp(self):
        """Set up test fixtures."""
        self.molniya = create_propagator(preprocess(parse_tle(MOLNIYA_LINE1, MOLNIYA_LINE2)))
        self.geo = create_propagator(preprocess(parse_tle(GEO_LINE1, GEO_LINE2)))

    def test_geostationary_radius(self):
        for tsince in (0.0, 360.0, 1440.0, 10080.0):
            radius = self.geo.state_at(tsince).radius_km
            self.assertAlmostEqual(radius, 42164.0, delta=50.0, msg=f"t={tsince}")

    def test_molniya_radius_between_apsides(self):
        for tsince in range(0, 1440, 60):
            radius = self.molniya.state_at(float(tsince)).radius_km
            self.assertGreater(radius, 7500.0)
            self.assertLess(radius, 46500.0)

    def test_integrator_restarts_from_epoch(self):
        """Out-of-order calls give the same state as a fresh propagator."""
        self.molniya.state_at(20000.0)
        self.molniya.state_at(-5000.0)
        reused = self.molniya.state_at(1500.0)
        fresh = create_propagator(preprocess(parse_tle(MOLNIYA_LINE1, MOLNIYA_LINE2))).state_at(1500.0)
        np.testing.assert_array_equal(reused.position, fresh.position)
        np.testing.assert_array_equal(reused.velocity, fresh.velocity)

    def test_matches_sdp4_geostationary(self):
        for tsince in (0.0, 720.0, 1440.0):
            state = self.geo.state_at(tsince)
            reference = sdp4_position(GEO_LINE1, GEO_LINE2, tsince)
            self.assertLess(np.linalg.norm(state.position - reference), 50.0, f"t={tsince}")

    def test_matches_sdp4_molniya(self):
        for tsince in (0.0, 720.0, 1440.0):
            state = self.molniya.state_at(tsince)
            reference = sdp4_position(MOLNIYA_LINE1, MOLNIYA_LINE2, tsince)
            self.assertLess(np.linalg.norm(state.position - reference), 100.0, f"t={tsince}")

    def test_custom_strategy(self):
        """A different correction strategy can be injected."""
        elements = parse_tle(MOLNIYA_LINE1, MOLNIYA_LINE2)
        plain = Satellite(elements, deep_space=NoCorrection())
        corrected = Satellite(elements)
        self.assertIsInstance(plain.state.deep_space_model, NoCorrection)
        a = plain.state_at(2880.0).position
        b = corrected.state_at(2880.0).position
        self.assertGreater(np.linalg.norm(a - b), 0.0)
        self.assertLess(np.linalg.norm(a), 46500.0)


class TestLunarSolarCorrection(unittest.TestCase):

    def test_stateless_periodics(self):
        state = preprocess(parse_tle(GEO_LINE1, GEO_LINE2))
        model = state.deep_space_model
        raw = SecularElements(1.0, 2.0, 3.0, 0.001, 0.0001, 0.0043)
        first = model.correct(state.deep_space_terms, raw, 600.0)
        second = model.correct(state.deep_space_terms, raw, 600.0)
        self.assertEqual(first, second)

    def test_actan_range(self):
        self.assertAlmostEqual(actan(-1.0, 0.0), 1.5 * np.pi, places=12)
        self.assertAlmostEqual(actan(0.0, 1.0), 0.0, places=12)
        self.assertAlmostEqual(actan(0.0, -1.0), np.pi, places=12)


if __name__ == "__main__":
    unittest.main()
