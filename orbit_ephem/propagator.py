"""
SGP8/SDP8 Propagation

Near-earth (SGP8) and deep-space (SDP8) analytical propagators. Both share
the same short-period stage; the deep-space propagator delegates lunar-solar
and resonance effects to the ``DeepSpaceCorrection`` strategy held in the
propagation state.

Output is position (km) and velocity (km/s) in the true-equator, mean-equinox
inertial frame of the model.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3".
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import NamedTuple

import numpy as np

from config import CK2, XKE, EARTH_RADIUS_KM, MINUTES_PER_DAY, SECONDS_PER_DAY
from orbit_ephem.deep_space import SecularElements, actan
from orbit_ephem.elements import OrbitalElements
from orbit_ephem.exceptions import PropagationError
from orbit_ephem.kepler import solve_kepler
from orbit_ephem.preprocessor import PropagationState, preprocess
from orbit_ephem.timekeeping import normalize_radians

logger = logging.getLogger(__name__)

TOTHRD = 2.0 / 3.0
VELOCITY_SCALE = EARTH_RADIUS_KM * MINUTES_PER_DAY / SECONDS_PER_DAY  # er/min to km/s

# Perturbed eccentricity below this is clamped rather than rejected
MIN_ECCENTRICITY = 1.0e-6
ECCENTRICITY_UNDERFLOW = -1.0e-3


class StateVector(NamedTuple):
    """Inertial position (km) and velocity (km/s) at ``tsince`` minutes."""

    position: np.ndarray
    velocity: np.ndarray
    tsince: float
    kepler_converged: bool = True

    @property
    def radius_km(self) -> float:
        return float(np.linalg.norm(self.position))

    @property
    def speed_km_s(self) -> float:
        return float(np.linalg.norm(self.velocity))


def _check_eccentricity(em: float, tsince: float, satnum: int) -> float:
    if em >= 1.0 or em < ECCENTRICITY_UNDERFLOW:
        message = (
            f"Perturbed eccentricity {em:.6f} outside [0, 1) at t={tsince:.1f} min "
            f"for satellite {satnum}. Physical meaning: the propagated orbit is no "
            f"longer a bound ellipse, usually because the elements are being used "
            f"far from their epoch."
        )
        logger.error(message)
        raise PropagationError(
            message, tsince,
            physical_meaning="Orbit is unbound or the elements are too old to propagate",
        )
    return max(em, MIN_ECCENTRICITY)


def _decayed(tsince: float, satnum: int, detail: str) -> PropagationError:
    message = (
        f"Satellite {satnum} has decayed at t={tsince:.1f} min ({detail}). "
        f"Physical meaning: atmospheric drag has removed enough orbital energy "
        f"for the satellite to re-enter."
    )
    logger.error(message)
    return PropagationError(message, tsince, physical_meaning="Satellite has decayed")


def short_period_state(state: PropagationState, xn: float, em: float, omgasm: float,
                       xnodes: float, xmam: float, sin_half_inclination: float,
                       tsince: float) -> StateVector:
    """
    Apply short-period periodics to updated mean elements and build the state.

    Args:
        state: Propagation coefficients
        xn: Mean motion (rad/min)
        em: Eccentricity
        omgasm: Argument of perigee (rad)
        xnodes: Right ascension of the ascending node (rad)
        xmam: Mean anomaly (rad)
        sin_half_inclination: Sine of half the current inclination
        tsince: Minutes since epoch, for diagnostics

    Returns:
        StateVector in km and km/s
    """
    satnum = state.elements.satnum
    if xn <= 0.0:
        raise _decayed(tsince, satnum, f"mean motion {xn:.3e} rad/min")

    kepler = solve_kepler(xmam, em)
    sine = kepler.sin_anomaly
    cose = kepler.cos_anomaly
    zc5 = 1.0 / (1.0 - em * cose)

    sini = state.sin_inclination
    cosi = state.cos_inclination
    theta2 = state.theta2
    unmth2 = state.x1mth2
    unm5th = state.x1m5th
    tthmun = state.x3thm1
    a3cof = state.a3cof

    # Short period preliminary quantities
    am = (XKE / xn) ** TOTHRD
    beta2m = 1.0 - em * em
    sinos = math.sin(omgasm)
    cosos = math.cos(omgasm)
    axnm = em * cosos
    aynm = em * sinos
    pm = am * beta2m
    g1 = 1.0 / pm
    g2 = 0.5 * CK2 * g1
    g3 = g2 * g1
    beta = math.sqrt(beta2m)
    g4 = 0.25 * a3cof * sini
    g5 = 0.25 * a3cof * g1
    snf = beta * sine * zc5
    csf = (cose - em) * zc5
    fm = actan(snf, csf)
    snfg = snf * cosos + csf * sinos
    csfg = csf * cosos - snf * sinos
    sn2f2g = 2.0 * snfg * csfg
    cs2f2g = 2.0 * csfg * csfg - 1.0
    ecosf = em * csf
    g10 = fm - xmam + em * snf
    rm = pm / (1.0 + ecosf)
    aovr = am / rm
    g13 = xn * aovr
    g14 = -g13 * aovr
    dr = g2 * (unmth2 * cs2f2g - 3.0 * tthmun) - g4 * snfg
    diwc = 3.0 * g3 * sini * cs2f2g - g5 * aynm
    di = diwc * cosi

    # Short period periodics
    sinio2 = state.sin_half_inclination
    cosio2 = state.cos_half_inclination
    sni2du = (sinio2 * (g3 * (0.5 * (1.0 - 7.0 * theta2) * sn2f2g - 3.0 * unm5th * g10)
                        - g5 * sini * csfg * (2.0 + ecosf))
              - 0.5 * g5 * theta2 * axnm / cosio2)
    xlamb = (fm + omgasm + xnodes
             + g3 * (0.5 * (1.0 + 6.0 * cosi - 7.0 * theta2) * sn2f2g - 3.0 * (unm5th + 2.0 * cosi) * g10)
             + g5 * sini * (cosi * axnm / (1.0 + cosi) - (2.0 + ecosf) * csfg))
    y4 = sin_half_inclination * snfg + csfg * sni2du + 0.5 * snfg * cosio2 * di
    y5 = sin_half_inclination * csfg - snfg * sni2du + 0.5 * csfg * cosio2 * di
    r = rm + dr
    rdot = xn * am * em * snf / beta + g14 * (2.0 * g2 * unmth2 * sn2f2g + g4 * csfg)
    rvdot = xn * am * am * beta / rm + g14 * dr + am * g13 * sini * diwc

    if r < 1.0:
        raise _decayed(tsince, satnum, f"radius {r * EARTH_RADIUS_KM:.1f} km")

    # Orientation vectors
    snlamb = math.sin(xlamb)
    cslamb = math.cos(xlamb)
    temp = 2.0 * (y5 * snlamb - y4 * cslamb)
    ux = y4 * temp + cslamb
    vx = y5 * temp - snlamb
    temp = 2.0 * (y5 * cslamb + y4 * snlamb)
    uy = -y4 * temp + snlamb
    vy = -y5 * temp + cslamb
    temp = 2.0 * math.sqrt(max(0.0, 1.0 - y4 * y4 - y5 * y5))
    uz = y4 * temp
    vz = y5 * temp

    u = np.array([ux, uy, uz])
    v = np.array([vx, vy, vz])
    position = r * u * EARTH_RADIUS_KM
    velocity = (rdot * u + rvdot * v) * VELOCITY_SCALE

    return StateVector(position, velocity, tsince, kepler.converged)


class Propagator(ABC):
    """Maps minutes since epoch to an inertial state for one element set."""

    def __init__(self, state: PropagationState):
        self.state = state

    @property
    def elements(self) -> OrbitalElements:
        return self.state.elements

    @abstractmethod
    def state_at(self, tsince: float) -> StateVector:
        """
        Propagate to ``tsince`` minutes from the element epoch.

        Raises:
            PropagationError: If the propagated orbit is physically impossible
        """


class NearEarthPropagator(Propagator):
    """SGP8 model for periods below 225 minutes."""

    def state_at(self, tsince: float) -> StateVector:
        st = self.state
        el = st.elements

        # Secular gravity and atmospheric drag
        xmam = el.mean_anomaly + st.mean_anomaly_rate * tsince
        omgasm = el.arg_perigee + st.perigee_rate * tsince
        xnodes = el.raan + st.node_rate * tsince

        if not st.is_simplified_drag:
            temp = 1.0 - st.gamma * tsince
            if temp <= 0.0:
                raise _decayed(tsince, el.satnum, "drag power law collapsed")
            temp1 = temp ** st.pp
            xn = st.original_mean_motion + st.xnd * (1.0 - temp1)
            em = el.eccentricity + st.ed * (1.0 - temp ** st.qq)
            z1 = st.xnd * (tsince + st.ovgpp * (temp * temp1 - 1.0))
        else:
            xn = st.original_mean_motion + st.xndt * tsince
            em = el.eccentricity + st.edot * tsince
            z1 = 0.5 * st.xndt * tsince * tsince

        em = _check_eccentricity(em, tsince, el.satnum)

        z7 = 3.5 * TOTHRD * z1 / st.original_mean_motion
        xmam = normalize_radians(xmam + z1 + z7 * st.xmdt1)
        omgasm = omgasm + z7 * st.xgdt1
        xnodes = xnodes + z7 * st.xhdt1

        return short_period_state(st, xn, em, omgasm, xnodes, xmam,
                                  st.sin_half_inclination, tsince)


class DeepSpacePropagator(Propagator):
    """SDP8 model for periods of 225 minutes or longer."""

    def __init__(self, state: PropagationState):
        if state.deep_space_model is None:
            raise ValueError("Deep-space propagation requires deep-space terms in the state")
        super().__init__(state)

    def state_at(self, tsince: float) -> StateVector:
        st = self.state
        el = st.elements
        model = st.deep_space_model
        terms = st.deep_space_terms

        # Secular gravity and atmospheric drag
        z1 = 0.5 * st.xndt * tsince * tsince
        z7 = 3.5 * TOTHRD * z1 / st.original_mean_motion
        raw = SecularElements(
            mean_anomaly=el.mean_anomaly + st.mean_anomaly_rate * tsince,
            arg_perigee=el.arg_perigee + st.perigee_rate * tsince + z7 * st.xgdt1,
            node=el.raan + st.node_rate * tsince + z7 * st.xhdt1,
            inclination=el.inclination,
            eccentricity=el.eccentricity,
            mean_motion=st.original_mean_motion,
        )
        secular = model.secular(terms, raw, tsince)
        secular = secular._replace(
            mean_motion=secular.mean_motion + st.xndt * tsince,
            eccentricity=secular.eccentricity + st.edot * tsince,
            mean_anomaly=secular.mean_anomaly + z1 + z7 * st.xmdt1,
        )
        current = model.periodic(terms, secular, tsince)

        em = _check_eccentricity(current.eccentricity, tsince, el.satnum)

        return short_period_state(
            st, current.mean_motion, em, current.arg_perigee, current.node,
            current.mean_anomaly, math.sin(0.5 * current.inclination), tsince,
        )


def create_propagator(state: PropagationState) -> Propagator:
    """Select the propagator implementation fixed by ``state.is_deep_space``."""
    if state.is_deep_space:
        return DeepSpacePropagator(state)
    return NearEarthPropagator(state)


def propagate(elements: OrbitalElements, tsince: float) -> StateVector:
    """
    Propagate an element set to ``tsince`` minutes from its epoch.

    Args:
        elements: Mean orbital elements
        tsince: Minutes since epoch (may be negative)

    Returns:
        StateVector with position in km and velocity in km/s

    Raises:
        InvalidElementsError: If the elements are outside the model domain
        PropagationError: If the propagated orbit is physically impossible
    """
    return create_propagator(preprocess(elements)).state_at(tsince)
