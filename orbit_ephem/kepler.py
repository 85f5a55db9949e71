"""
Kepler Equation Solver

Solves E - e·sin(E) = M with the fixed-count Newton iteration used by the
NORAD analytical models. Non-convergence is reported through the returned
solution rather than raised: the last iterate is always usable.
"""

import logging
import math
from typing import NamedTuple

from orbit_ephem.exceptions import InvalidElementsError

logger = logging.getLogger(__name__)

KEPLER_TOLERANCE = 1.0e-6
KEPLER_MAX_ITERATIONS = 10


class KeplerSolution(NamedTuple):
    anomaly: float
    sin_anomaly: float
    cos_anomaly: float
    iterations: int
    converged: bool

    def residual(self, mean_anomaly: float, eccentricity: float) -> float:
        """|E - e·sin(E) - M| of this solution."""
        return abs(self.anomaly - eccentricity * self.sin_anomaly - mean_anomaly)


def solve_kepler(mean_anomaly: float, eccentricity: float,
                 tolerance: float = KEPLER_TOLERANCE,
                 max_iterations: int = KEPLER_MAX_ITERATIONS) -> KeplerSolution:
    """
    Solve Kepler's equation for the eccentric anomaly.

    Args:
        mean_anomaly: Mean anomaly M (rad), not necessarily reduced
        eccentricity: Eccentricity, 0 <= e < 1
        tolerance: Stop when the correction is at or below this (rad)
        max_iterations: Iteration cap

    Returns:
        KeplerSolution with the anomaly and the sine and cosine of it

    Raises:
        InvalidElementsError: If the eccentricity is outside [0, 1)
    """
    if not 0.0 <= eccentricity < 1.0:
        raise InvalidElementsError(f"Eccentricity {eccentricity} outside valid range [0, 1)")

    e = eccentricity
    m = mean_anomaly

    # Second order starting value
    anomaly = m + e * math.sin(m) * (1.0 + e * math.cos(m))
    converged = False
    iterations = 0

    for iterations in range(1, max_iterations + 1):
        sin_e = math.sin(anomaly)
        cos_e = math.cos(anomaly)
        corrected = anomaly + (m + e * sin_e - anomaly) / (1.0 - e * cos_e)
        if abs(corrected - anomaly) <= tolerance:
            anomaly = corrected
            converged = True
            break
        anomaly = corrected

    if not converged:
        logger.warning(
            f"Kepler iteration did not converge in {max_iterations} steps "
            f"(M={m:.6f}, e={e:.6f}); using last iterate"
        )

    return KeplerSolution(anomaly, math.sin(anomaly), math.cos(anomaly), iterations, converged)
