"""
Orbit Ephemeris Configuration and Constants

This module contains the physical constants of the propagation models, the
default parameters of the event searches and the fallback TLE used by the
tests and examples.

Constants:
    WGS-72 style constants as used by the NORAD SGP8/SDP8 models
    (Hoots & Roehrich, Spacetrack Report #3).

Environment overrides:
    ORBIT_EPHEM_PRECISION_MODE   "exact" or "fast" (default "exact")
    ORBIT_EPHEM_LOG_LEVEL        logging level name (default "INFO")
    ORBIT_EPHEM_MAX_SEARCH_DAYS  upper bound accepted for search horizons
    ORBIT_EPHEM_STALE_TLE_DAYS   element age that triggers a warning

Fallback TLE Data:
    Hardcoded ISS TLE for tests and demonstrations. Passes and flares depend
    on the epoch, so results drift as the elements age.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3".
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import os
from typing import Dict, Any

# Propagation model constants (Spacetrack Report #3)
XKE: float = 0.0743669161  # sqrt(GM) in earth radii^1.5 / min
EARTH_RADIUS_KM: float = 6378.135  # Equatorial radius of the model (km)
J2: float = 1.082616e-3  # Second zonal harmonic coefficient
J3: float = -0.253881e-5  # Third zonal harmonic coefficient
J4: float = -1.65597e-6  # Fourth zonal harmonic coefficient
MINUTES_PER_DAY: float = 1440.0
SECONDS_PER_DAY: float = 86400.0
CK2: float = 0.5 * J2
CK4: float = -0.375 * J4
QOMS2T: float = ((120.0 - 78.0) / EARTH_RADIUS_KM) ** 4  # Density function, earth radii^4
S_DENSITY: float = 1.0 + 78.0 / EARTH_RADIUS_KM  # Density parameter, earth radii
RHO: float = 0.15696615  # Reference density of the drag model

# Geometry of the topocentric reduction
GRAVITATIONAL_PARAMETER: float = 398600.433  # Earth GM, DE405 (km³/s²)
MEAN_EARTH_RADIUS_KM: float = 6378.1366  # IERS equatorial radius (km)
WGS84_EQUATORIAL_RADIUS_KM: float = 6378.137
WGS84_INVERSE_FLATTENING: float = 298.257223563
TROPICAL_YEAR_DAYS: float = 365.242198781
DEEP_SPACE_PERIOD_MINUTES: float = 225.0

# Glint ("iridium") angle thresholds, degrees
MAXIMUM_GLINT_ANGLE_FOR_FLARES: float = 5.0
MAXIMUM_GLINT_ANGLE_FOR_LUNAR_FLARES: float = 0.25
GLINT_ANGLE_NOT_APPLICABLE: float = 100.0

# Event search defaults
DEFAULT_HORIZON_ARCMIN: float = 34.0  # Refraction at the horizon
RISE_SET_MAX_ITERATIONS: int = 5000  # One-second steps per walk
FLARE_POST_PASS_ADVANCE_MINUTES: float = 10.0
QUICK_SEARCH_MIN_STEP: int = 1
QUICK_SEARCH_MAX_STEP: int = 8
FLARE_MAX_SCAN_SECONDS: int = 6 * 3600  # Per-pass cap on glint scans


class EphemerisConfig:
    PRECISION_MODE = os.getenv('ORBIT_EPHEM_PRECISION_MODE', 'exact').lower()
    LOG_LEVEL = os.getenv('ORBIT_EPHEM_LOG_LEVEL', 'INFO').upper()
    MAX_SEARCH_DAYS = float(os.getenv('ORBIT_EPHEM_MAX_SEARCH_DAYS', '366'))
    STALE_TLE_DAYS = float(os.getenv('ORBIT_EPHEM_STALE_TLE_DAYS', '30'))


config = EphemerisConfig()

# Fallback ISS TLE for demonstrations and testing
FALLBACK_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'norad_id': 25544,
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
    'epoch': '2023-09-16T13:49:09Z',
    'mean_motion': 15.49541986,
    'inclination': 51.6416,
    'eccentricity': 0.0004263
}
