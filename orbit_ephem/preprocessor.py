"""
Element Preprocessor

Recovers the original mean motion and semimajor axis from mean elements and
derives every time-independent coefficient of the SGP8/SDP8 models. The
result is an immutable ``PropagationState`` shared by all propagation calls
for one element set.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3".
"""

import logging
import math
from typing import Any, NamedTuple, Optional

from config import (
    XKE, J3, CK2, CK4, QOMS2T, S_DENSITY, MINUTES_PER_DAY, RHO,
    DEEP_SPACE_PERIOD_MINUTES,
)
from orbit_ephem.deep_space import DeepSpaceCorrection, LunarSolarCorrection, RecoveredOrbit
from orbit_ephem.elements import OrbitalElements

logger = logging.getLogger(__name__)

TOTHRD = 2.0 / 3.0
TWOPI = 2.0 * math.pi

# |XNDTN·XMNPDA| below this uses the linear drag model
SIMPLIFIED_DRAG_THRESHOLD = 2.16e-3


class PropagationState(NamedTuple):
    """
    Time-independent coefficients for one element set.

    Rates are per minute and angles radians. The power-law drag fields are
    zero when ``is_simplified_drag`` is set.
    """

    elements: OrbitalElements
    original_mean_motion: float  # XNODP, rad/min
    semimajor_axis: float  # AODP, earth radii
    is_deep_space: bool
    is_simplified_drag: bool

    # Secular rates
    mean_anomaly_rate: float
    perigee_rate: float
    node_rate: float
    xmdt1: float
    xgdt1: float
    xhdt1: float

    # Gravity terms used by the short-period stage
    cos_inclination: float
    sin_inclination: float
    theta2: float
    x3thm1: float
    x1mth2: float
    x1m5th: float
    sin_half_inclination: float
    cos_half_inclination: float
    a3cof: float

    # Drag
    xndt: float
    edot: float
    pp: float = 0.0
    gamma: float = 0.0
    xnd: float = 0.0
    qq: float = 0.0
    ed: float = 0.0
    ovgpp: float = 0.0

    deep_space_terms: Any = None
    deep_space_model: Optional[DeepSpaceCorrection] = None

    @property
    def period_minutes(self) -> float:
        return TWOPI / self.original_mean_motion


def recover_mean_motion(elements: OrbitalElements):
    """
    Recover the original (un-Kozai) mean motion and semimajor axis.

    Returns:
        Tuple of (xnodp in rad/min, aodp in earth radii)
    """
    n0 = elements.mean_motion_rad_per_min
    cosi = math.cos(elements.inclination)
    tthmun = 3.0 * cosi * cosi - 1.0
    betao2 = 1.0 - elements.eccentricity * elements.eccentricity
    betao = math.sqrt(betao2)

    a1 = (XKE / n0) ** TOTHRD
    del1 = 1.5 * CK2 * tthmun / (a1 * a1 * betao * betao2)
    ao = a1 * (1.0 - del1 * (0.5 * TOTHRD + del1 * (1.0 + 134.0 / 81.0 * del1)))
    delo = 1.5 * CK2 * tthmun / (ao * ao * betao * betao2)

    return n0 / (1.0 + delo), ao / (1.0 - delo)


def is_deep_space(elements: OrbitalElements) -> bool:
    """True if the recovered period is 225 minutes or longer."""
    xnodp, _ = recover_mean_motion(elements)
    return TWOPI / xnodp >= DEEP_SPACE_PERIOD_MINUTES


def _full_drag_terms(e0, eta, eta2, eosq, betao2, alpha2, eeta, aodp, tsi, psim2,
                     xnodp, xndt, xndtn, c0, c1, b1, b2, b3, d1, d2, d3, d4, d5,
                     c4, c5, sing, cosg, cos2g, xgdt1):
    """Power-law drag coefficients (PP, GAMMA, XND, QQ, ED, OVGPP) and EDOT."""
    s = S_DENSITY

    d6 = eta * (30.0 + 22.5 * eta2)
    d7 = eta * (5.0 + 12.5 * eta2)
    d8 = 1.0 + eta2 * (6.75 + eta2)
    c8 = d1 * d7 * b2
    c9 = d5 * d8 * b3
    edot = -c0 * (
        eta * (4.0 + eta2 + eosq * (15.5 + 7.0 * eta2)) + e0 * (5.0 + 15.0 * eta2)
        + d1 * d6 * b1 + c8 * cos2g + c9 * sing
    )
    d20 = 0.5 * TOTHRD * xndtn
    aldtal = e0 * edot / alpha2
    tsdtts = 2.0 * aodp * tsi * (d20 * betao2 + e0 * edot)
    etdt = (edot + e0 * tsdtts) * tsi * s
    psdtps = -eta * etdt * psim2
    sin2g = 2.0 * sing * cosg
    c0dtc0 = d20 + 4.0 * tsdtts - aldtal - 7.0 * psdtps
    c1dtc1 = xndtn + 4.0 * aldtal + c0dtc0
    d9 = eta * (6.0 + 68.0 * eosq) + e0 * (20.0 + 15.0 * eta2)
    d10 = 5.0 * eta * (4.0 + eta2) + e0 * (17.0 + 68.0 * eta2)
    d11 = eta * (72.0 + 18.0 * eta2)
    d12 = eta * (30.0 + 10.0 * eta2)
    d13 = 5.0 + 11.25 * eta2
    d14 = tsdtts - 2.0 * psdtps
    d15 = 2.0 * (d20 + e0 * edot / betao2)
    d1dt = d1 * (d14 + d15)
    d2dt = etdt * d11
    d3dt = etdt * d12
    d4dt = etdt * d13
    d5dt = d5 * d14
    c4dt = b2 * (d1dt * d3 + d1 * d3dt)
    c5dt = b3 * (d5dt * d4 + d5 * d4dt)
    d16 = (d9 * etdt + d10 * edot + b1 * (d1dt * d2 + d1 * d2dt)
           + c4dt * cos2g + c5dt * sing + xgdt1 * (c5 * cosg - 2.0 * c4 * sin2g))
    xnddt = c1dtc1 * xndt + c1 * d16
    eddot = c0dtc0 * edot - c0 * (
        (4.0 + 3.0 * eta2 + 30.0 * eeta + eosq * (15.5 + 21.0 * eta2)) * etdt
        + (5.0 + 15.0 * eta2 + eeta * (31.0 + 14.0 * eta2)) * edot
        + b1 * (d1dt * d6 + d1 * etdt * (30.0 + 67.5 * eta2))
        + b2 * (d1dt * d7 + d1 * etdt * (5.0 + 37.5 * eta2)) * cos2g
        + b3 * (d5dt * d8 + d5 * etdt * eta * (13.5 + 4.0 * eta2)) * sing
        + xgdt1 * (c9 * cosg - 2.0 * c8 * sin2g)
    )
    d25 = edot * edot
    d17 = xnddt / xnodp - xndtn * xndtn
    tsddts = (2.0 * tsdtts * (tsdtts - d20)
              + aodp * tsi * (TOTHRD * betao2 * d17 - 4.0 * d20 * e0 * edot
                              + 2.0 * (d25 + e0 * eddot)))
    etddt = (eddot + 2.0 * edot * tsdtts) * tsi * s + tsddts * eta
    d18 = tsddts - tsdtts * tsdtts
    # psdtps²/eta2 written out so that circular orbits stay finite
    d19 = -(etdt * psim2) ** 2 - eta * etddt * psim2 - psdtps * psdtps
    d23 = etdt * etdt
    d1ddt = d1dt * (d14 + d15) + d1 * (d18 - 2.0 * d19 + TOTHRD * d17
                                       + 2.0 * (alpha2 * d25 / betao2 + e0 * eddot) / betao2)
    xntrdt = (
        xndt * (2.0 * TOTHRD * d17 + 3.0 * (d25 + e0 * eddot) / alpha2
                - 6.0 * aldtal * aldtal + 4.0 * d18 - 7.0 * d19)
        + c1dtc1 * xnddt
        + c1 * (
            c1dtc1 * d16 + d9 * etddt + d10 * eddot
            + d23 * (6.0 + 30.0 * eeta + 68.0 * eosq)
            + etdt * edot * (40.0 + 30.0 * eta2 + 272.0 * eeta)
            + d25 * (17.0 + 68.0 * eta2)
            + b1 * (d1ddt * d2 + 2.0 * d1dt * d2dt + d1 * (etddt * d11 + d23 * (72.0 + 54.0 * eta2)))
            + b2 * (d1ddt * d3 + 2.0 * d1dt * d3dt + d1 * (etddt * d12 + d23 * (30.0 + 30.0 * eta2))) * cos2g
            + b3 * ((d5dt * d14 + d5 * (d18 - 2.0 * d19)) * d4 + 2.0 * d4dt * d5dt
                    + d5 * (etddt * d13 + 22.5 * eta * d23)) * sing
            + xgdt1 * ((7.0 * d20 + 4.0 * e0 * edot / betao2) * (c5 * cosg - 2.0 * c4 * sin2g)
                       + ((2.0 * c5dt * cosg - 4.0 * c4dt * sin2g) - xgdt1 * (c5 * sing + 4.0 * c4 * cos2g)))
        )
    )

    tmnddt = xnddt * 1.0e9
    temp = tmnddt * tmnddt - xndt * 1.0e18 * xntrdt
    pp = (temp + tmnddt * tmnddt) / temp
    gamma = -xntrdt / (xnddt * (pp - 2.0))
    xnd = xndt / (pp * gamma)
    if edot != 0.0:
        qq = 1.0 - eddot / (edot * gamma)
        ed = edot / (qq * gamma)
    else:
        qq, ed = 1.0, 0.0
    ovgpp = 1.0 / (gamma * (pp + 1.0))

    return edot, pp, gamma, xnd, qq, ed, ovgpp


def preprocess(elements: OrbitalElements,
               deep_space: Optional[DeepSpaceCorrection] = None) -> PropagationState:
    """
    Derive the propagation coefficients for an element set.

    Args:
        elements: Mean orbital elements
        deep_space: Deep-space correction strategy; defaults to
            ``LunarSolarCorrection`` for orbits of 225 minutes or longer

    Returns:
        Immutable PropagationState

    Raises:
        InvalidElementsError: If the elements are outside the model domain
    """
    elements.validate()

    e0 = elements.eccentricity
    xnodp, aodp = recover_mean_motion(elements)
    deep = TWOPI / xnodp >= DEEP_SPACE_PERIOD_MINUTES

    cosi = math.cos(elements.inclination)
    sini = math.sin(elements.inclination)
    theta2 = cosi * cosi
    tthmun = 3.0 * theta2 - 1.0
    eosq = e0 * e0
    betao2 = 1.0 - eosq
    betao = math.sqrt(betao2)
    b = 2.0 * elements.bstar / RHO

    # Secular rates
    po = aodp * betao2
    pom2 = 1.0 / (po * po)
    sing = math.sin(elements.arg_perigee)
    cosg = math.cos(elements.arg_perigee)
    sinio2 = math.sin(0.5 * elements.inclination)
    cosio2 = math.cos(0.5 * elements.inclination)
    theta4 = theta2 * theta2
    unm5th = 1.0 - 5.0 * theta2
    unmth2 = 1.0 - theta2
    a3cof = -J3 / CK2
    pardt1 = 3.0 * CK2 * pom2 * xnodp
    pardt2 = pardt1 * CK2 * pom2
    pardt4 = 1.25 * CK4 * pom2 * pom2 * xnodp
    xmdt1 = 0.5 * pardt1 * betao * tthmun
    xgdt1 = -0.5 * pardt1 * unm5th
    xhdt1 = -pardt1 * cosi
    xlldot = xnodp + xmdt1 + 0.0625 * pardt2 * betao * (13.0 - 78.0 * theta2 + 137.0 * theta4)
    omgdt = (xgdt1 + 0.0625 * pardt2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
             + pardt4 * (3.0 - 36.0 * theta2 + 49.0 * theta4))
    xnodot = xhdt1 + (0.5 * pardt2 * (4.0 - 19.0 * theta2) + 2.0 * pardt4 * (3.0 - 7.0 * theta2)) * cosi

    # Drag
    tsi = 1.0 / (po - S_DENSITY)
    eta = e0 * S_DENSITY * tsi
    eta2 = eta * eta
    psim2 = abs(1.0 / (1.0 - eta2))
    alpha2 = 1.0 + eosq
    eeta = e0 * eta
    cos2g = 2.0 * cosg * cosg - 1.0
    d5 = tsi * psim2
    d1 = d5 / po
    d2 = 12.0 + eta2 * (36.0 + 4.5 * eta2)
    d3 = eta2 * (15.0 + 2.5 * eta2)
    d4 = eta * (5.0 + 3.75 * eta2)
    b1 = CK2 * tthmun
    b2 = -CK2 * unmth2
    b3 = a3cof * sini
    c0 = (0.5 * b * RHO * QOMS2T * xnodp * aodp * tsi ** 4 * psim2 ** 3.5
          / math.sqrt(alpha2))
    c1 = 1.5 * xnodp * alpha2 * alpha2 * c0
    c4 = d1 * d3 * b2
    c5 = d5 * d4 * b3
    xndt = c1 * (
        (2.0 + eta2 * (3.0 + 34.0 * eosq) + 5.0 * eeta * (4.0 + eta2) + 8.5 * eosq)
        + d1 * d2 * b1 + c4 * cos2g + c5 * sing
    )
    xndtn = xndt / xnodp

    common = dict(
        elements=elements,
        original_mean_motion=xnodp,
        semimajor_axis=aodp,
        is_deep_space=deep,
        mean_anomaly_rate=xlldot,
        perigee_rate=omgdt,
        node_rate=xnodot,
        xmdt1=xmdt1,
        xgdt1=xgdt1,
        xhdt1=xhdt1,
        cos_inclination=cosi,
        sin_inclination=sini,
        theta2=theta2,
        x3thm1=tthmun,
        x1mth2=unmth2,
        x1m5th=unm5th,
        sin_half_inclination=sinio2,
        cos_half_inclination=cosio2,
        a3cof=a3cof,
        xndt=xndt,
    )

    if deep:
        model = deep_space if deep_space is not None else LunarSolarCorrection()
        recovered = RecoveredOrbit(
            eccentricity_sq=eosq,
            sin_inclination=sini,
            cos_inclination=cosi,
            beta0=betao,
            semimajor_axis=aodp,
            cos_inclination_sq=theta2,
            sin_perigee=sing,
            cos_perigee=cosg,
            beta0_sq=betao2,
            mean_anomaly_rate=xlldot,
            perigee_rate=omgdt,
            node_rate=xnodot,
            mean_motion=xnodp,
        )
        terms = model.initialize(elements, recovered)
        logger.debug(
            f"Satellite {elements.satnum} is deep-space "
            f"(period {TWOPI / xnodp:.1f} min)"
        )
        return PropagationState(
            is_simplified_drag=True,
            edot=-TOTHRD * xndtn * (1.0 - e0),
            deep_space_terms=terms,
            deep_space_model=model,
            **common,
        )

    if abs(xndtn * MINUTES_PER_DAY) >= SIMPLIFIED_DRAG_THRESHOLD:
        edot, pp, gamma, xnd, qq, ed, ovgpp = _full_drag_terms(
            e0, eta, eta2, eosq, betao2, alpha2, eeta, aodp, tsi, psim2,
            xnodp, xndt, xndtn, c0, c1, b1, b2, b3, d1, d2, d3, d4, d5,
            c4, c5, sing, cosg, cos2g, xgdt1,
        )
        return PropagationState(
            is_simplified_drag=False,
            edot=edot, pp=pp, gamma=gamma, xnd=xnd, qq=qq, ed=ed, ovgpp=ovgpp,
            **common,
        )

    return PropagationState(
        is_simplified_drag=True,
        edot=-TOTHRD * xndtn * (1.0 - e0),
        **common,
    )
