"""
Deep-Space Perturbations

Long-period lunar-solar perturbations and geopotential resonance effects for
orbits with periods of 225 minutes or more, as used by the SDP4/SDP8 models.

The correction is a strategy behind the ``DeepSpaceCorrection`` interface:
``initialize`` derives immutable ``DeepSpaceTerms`` once per element set, and
``secular``/``periodic`` map secular elements at a time offset to corrected
elements. The resonance integrator is restarted from epoch on every call, so
a correction is a pure function of its arguments.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3".
"""

import logging
import math
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

from orbit_ephem.timekeeping import greenwich_mean_sidereal_time, normalize_radians

logger = logging.getLogger(__name__)

TWOPI = 2.0 * math.pi

# Solar and lunar constants
ZNS = 1.19459e-5
C1SS = 2.9864797e-6
ZES = 0.01675
ZNL = 1.5835218e-4
C1L = 4.7968065e-7
ZEL = 0.05490
ZCOSIS = 0.91744867
ZSINIS = 0.39785416
ZSINGS = -0.98088458
ZCOSGS = 0.1945905

# Resonance constants
Q22 = 1.7891679e-6
Q31 = 2.1460748e-6
Q33 = 2.2123015e-7
G22 = 5.7686396
G32 = 0.95240898
G44 = 1.8014998
G52 = 1.0508330
G54 = 4.4108898
ROOT22 = 1.7891679e-6
ROOT32 = 3.7393792e-7
ROOT44 = 7.3636953e-9
ROOT52 = 1.1428639e-7
ROOT54 = 2.1765803e-9
THDT = 4.3752691e-3  # Earth rotation, rad/min

FASX2 = 0.13130908
FASX4 = 2.8843198
FASX6 = 0.37448087

STEP = 720.0  # Resonance integrator step, minutes
STEP2 = 0.5 * STEP * STEP

DS50_ORIGIN_JD = 2433281.5  # 1950 Jan 0.0
LYDDANE_INCLINATION = 0.2  # Below this the Lyddane modification applies
NO_NODE_TERMS_INCLINATION = 5.2359877e-2  # 3 degrees

RESONANCE_NONE = "none"
RESONANCE_HALF_DAY = "half_day"
RESONANCE_SYNCHRONOUS = "synchronous"


class SecularElements(NamedTuple):
    """Mean elements after secular (and optionally periodic) corrections."""

    mean_anomaly: float
    arg_perigee: float
    node: float
    inclination: float
    eccentricity: float
    mean_motion: float


class RecoveredOrbit(NamedTuple):
    """Quantities of the recovered orbit needed to set up the deep-space terms."""

    eccentricity_sq: float
    sin_inclination: float
    cos_inclination: float
    beta0: float
    semimajor_axis: float
    cos_inclination_sq: float
    sin_perigee: float
    cos_perigee: float
    beta0_sq: float
    mean_anomaly_rate: float
    perigee_rate: float
    node_rate: float
    mean_motion: float


class LunarSolarTerms(NamedTuple):
    # Secular rates
    sse: float
    ssi: float
    ssl: float
    ssg: float
    ssh: float
    # Solar periodic coefficients
    se2: float
    se3: float
    si2: float
    si3: float
    sl2: float
    sl3: float
    sl4: float
    sgh2: float
    sgh3: float
    sgh4: float
    sh2: float
    sh3: float
    # Lunar periodic coefficients
    ee2: float
    e3: float
    xi2: float
    xi3: float
    xl2: float
    xl3: float
    xl4: float
    xgh2: float
    xgh3: float
    xgh4: float
    xh2: float
    xh3: float
    # Mean anomalies of the Sun and Moon at epoch
    zmos: float
    zmol: float


class ResonanceTerms(NamedTuple):
    kind: str
    xlamo: float
    xfact: float
    d2201: float = 0.0
    d2211: float = 0.0
    d3210: float = 0.0
    d3222: float = 0.0
    d4410: float = 0.0
    d4422: float = 0.0
    d5220: float = 0.0
    d5232: float = 0.0
    d5421: float = 0.0
    d5433: float = 0.0
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0


class DeepSpaceTerms(NamedTuple):
    epoch_eccentricity: float
    epoch_inclination: float
    epoch_perigee: float
    sin_inclination: float
    cos_inclination: float
    mean_motion: float
    perigee_rate: float
    sidereal_epoch: float
    lunar_solar: LunarSolarTerms
    resonance: Optional[ResonanceTerms]


def actan(sinx: float, cosx: float) -> float:
    """Two-argument arctangent in [0, 2π)."""
    return normalize_radians(math.atan2(sinx, cosx))


class DeepSpaceCorrection(ABC):
    """
    Strategy computing deep-space corrections to secular elements.

    Implementations must be stateless: all per-satellite data lives in the
    terms object returned by ``initialize``.
    """

    @abstractmethod
    def initialize(self, elements, orbit: RecoveredOrbit):
        """Derive the per-satellite terms from elements and recovered orbit."""

    @abstractmethod
    def secular(self, terms, raw: SecularElements, tsince: float) -> SecularElements:
        """Apply secular and resonance effects to raw secular elements."""

    @abstractmethod
    def periodic(self, terms, current: SecularElements, tsince: float) -> SecularElements:
        """Apply long-period periodic effects."""

    def correct(self, terms, raw: SecularElements, tsince: float) -> SecularElements:
        """Secular then periodic correction in one call."""
        return self.periodic(terms, self.secular(terms, raw, tsince), tsince)


def _third_body_coefficients(zcosg, zsing, zcosi, zsini, zcosh, zsinh, cc, zn, ze,
                             orbit: RecoveredOrbit, eccentricity, inclination):
    """Secular rates and periodic coefficients for one perturbing body."""
    cosiq = orbit.cos_inclination
    siniq = orbit.sin_inclination
    cosomo = orbit.cos_perigee
    sinomo = orbit.sin_perigee
    eqsq = orbit.eccentricity_sq
    rteqsq = orbit.beta0
    bsq = orbit.beta0_sq
    xnoi = 1.0 / orbit.mean_motion

    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = cosiq * a7 + siniq * a8
    a4 = cosiq * a9 + siniq * a10
    a5 = -siniq * a7 + cosiq * a8
    a6 = -siniq * a9 + cosiq * a10

    x1 = a1 * cosomo + a2 * sinomo
    x2 = a3 * cosomo + a4 * sinomo
    x3 = -a1 * sinomo + a2 * cosomo
    x4 = -a3 * sinomo + a4 * cosomo
    x5 = a5 * sinomo
    x6 = a6 * sinomo
    x7 = a5 * cosomo
    x8 = a6 * cosomo

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * eqsq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * eqsq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * eqsq
    z11 = -6.0 * a1 * a5 + eqsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = -6.0 * (a1 * a6 + a3 * a5) + eqsq * (-24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5))
    z13 = -6.0 * a3 * a6 + eqsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + eqsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = 6.0 * (a4 * a5 + a2 * a6) + eqsq * (24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8))
    z23 = 6.0 * a4 * a6 + eqsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    z1 = z1 + z1 + bsq * z31
    z2 = z2 + z2 + bsq * z32
    z3 = z3 + z3 + bsq * z33

    s3 = cc * xnoi
    s2 = -0.5 * s3 / rteqsq
    s4 = s3 * rteqsq
    s1 = -15.0 * eccentricity * s4
    s5 = x1 * x3 + x2 * x4
    s6 = x2 * x3 + x1 * x4
    s7 = x2 * x4 - x1 * x3

    se = s1 * zn * s5
    si = s2 * zn * (z11 + z13)
    sl = -zn * s3 * (z1 + z3 - 14.0 - 6.0 * eqsq)
    sgh = s4 * zn * (z31 + z33 - 6.0)
    sh = -zn * s2 * (z21 + z23)
    if inclination < NO_NODE_TERMS_INCLINATION:
        sh = 0.0

    periodic = (
        2.0 * s1 * s6,  # e2
        2.0 * s1 * s7,  # e3
        2.0 * s2 * z12,  # i2
        2.0 * s2 * (z13 - z11),  # i3
        -2.0 * s3 * z2,  # l2
        -2.0 * s3 * (z3 - z1),  # l3
        -2.0 * s3 * (-21.0 - 9.0 * eqsq) * ze,  # l4
        2.0 * s4 * z32,  # gh2
        2.0 * s4 * (z33 - z31),  # gh3
        -18.0 * s4 * ze,  # gh4
        -2.0 * s2 * z22,  # h2
        -2.0 * s2 * (z23 - z21),  # h3
    )
    return (se, si, sl, sgh, sh), periodic


def _half_day_resonance(elements, orbit: RecoveredOrbit, eq, aqnv, thgr, ssl, ssh) -> ResonanceTerms:
    eqsq = orbit.eccentricity_sq
    siniq = orbit.sin_inclination
    cosiq = orbit.cos_inclination
    cosq2 = orbit.cos_inclination_sq
    xnq = orbit.mean_motion

    eoc = eq * eqsq
    g201 = -0.306 - (eq - 0.64) * 0.440
    if eq <= 0.65:
        g211 = 3.616 - 13.247 * eq + 16.290 * eqsq
        g310 = -19.302 + 117.390 * eq - 228.419 * eqsq + 156.591 * eoc
        g322 = -18.9068 + 109.7927 * eq - 214.6334 * eqsq + 146.5816 * eoc
        g410 = -41.122 + 242.694 * eq - 471.094 * eqsq + 313.953 * eoc
        g422 = -146.407 + 841.880 * eq - 1629.014 * eqsq + 1083.435 * eoc
        g520 = -532.114 + 3017.977 * eq - 5740.0 * eqsq + 3708.276 * eoc
    else:
        g211 = -72.099 + 331.819 * eq - 508.738 * eqsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * eq - 2415.925 * eqsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * eq - 2366.899 * eqsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * eq - 7193.992 * eqsq + 3651.957 * eoc
        g422 = -3581.69 + 16178.11 * eq - 24462.77 * eqsq + 12422.52 * eoc
        if eq <= 0.715:
            g520 = 1464.74 - 4664.75 * eq + 3763.64 * eqsq
        else:
            g520 = -5149.66 + 29936.92 * eq - 54087.36 * eqsq + 31324.56 * eoc

    if eq < 0.7:
        g533 = -919.2277 + 4988.61 * eq - 9064.77 * eqsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * eq - 8491.4146 * eqsq + 5337.524 * eoc
        g532 = -853.666 + 4690.25 * eq - 8624.77 * eqsq + 5341.4 * eoc
    else:
        g533 = -37995.78 + 161616.52 * eq - 229838.2 * eqsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * eq - 309468.16 * eqsq + 146349.42 * eoc
        g532 = -40023.88 + 170470.89 * eq - 242699.48 * eqsq + 115605.82 * eoc

    sini2 = siniq * siniq
    f220 = 0.75 * (1.0 + 2.0 * cosiq + cosq2)
    f221 = 1.5 * sini2
    f321 = 1.875 * siniq * (1.0 - 2.0 * cosiq - 3.0 * cosq2)
    f322 = -1.875 * siniq * (1.0 + 2.0 * cosiq - 3.0 * cosq2)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * siniq * (sini2 * (1.0 - 2.0 * cosiq - 5.0 * cosq2)
                              + 0.33333333 * (-2.0 + 4.0 * cosiq + 6.0 * cosq2))
    f523 = siniq * (4.92187512 * sini2 * (-2.0 - 4.0 * cosiq + 10.0 * cosq2)
                    + 6.56250012 * (1.0 + 2.0 * cosiq - 3.0 * cosq2))
    f542 = 29.53125 * siniq * (2.0 - 8.0 * cosiq + cosq2 * (-12.0 + 8.0 * cosiq + 10.0 * cosq2))
    f543 = 29.53125 * siniq * (-2.0 - 8.0 * cosiq + cosq2 * (12.0 + 8.0 * cosiq - 10.0 * cosq2))

    xno2 = xnq * xnq
    ainv2 = aqnv * aqnv
    temp1 = 3.0 * xno2 * ainv2
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aqnv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533

    xlamo = elements.mean_anomaly + 2.0 * elements.raan - 2.0 * thgr
    bfact = orbit.mean_anomaly_rate + 2.0 * orbit.node_rate - 2.0 * THDT + ssl + 2.0 * ssh

    return ResonanceTerms(
        kind=RESONANCE_HALF_DAY, xlamo=xlamo, xfact=bfact - xnq,
        d2201=d2201, d2211=d2211, d3210=d3210, d3222=d3222, d4410=d4410,
        d4422=d4422, d5220=d5220, d5232=d5232, d5421=d5421, d5433=d5433,
    )


def _synchronous_resonance(elements, orbit: RecoveredOrbit, aqnv, thgr, ssl, ssg, ssh) -> ResonanceTerms:
    eqsq = orbit.eccentricity_sq
    siniq = orbit.sin_inclination
    cosiq = orbit.cos_inclination
    xnq = orbit.mean_motion

    g200 = 1.0 + eqsq * (-2.5 + 0.8125 * eqsq)
    g310 = 1.0 + 2.0 * eqsq
    g300 = 1.0 + eqsq * (-6.0 + 6.60937 * eqsq)
    f220 = 0.75 * (1.0 + cosiq) * (1.0 + cosiq)
    f311 = 0.9375 * siniq * siniq * (1.0 + 3.0 * cosiq) - 0.75 * (1.0 + cosiq)
    f330 = 1.0 + cosiq
    f330 = 1.875 * f330 * f330 * f330
    del1 = 3.0 * xnq * xnq * aqnv * aqnv
    del2 = 2.0 * del1 * f220 * g200 * Q22
    del3 = 3.0 * del1 * f330 * g300 * Q33 * aqnv
    del1 = del1 * f311 * g310 * Q31 * aqnv

    xlamo = elements.mean_anomaly + elements.raan + elements.arg_perigee - thgr
    bfact = (orbit.mean_anomaly_rate + orbit.perigee_rate + orbit.node_rate - THDT
             + ssl + ssg + ssh)

    return ResonanceTerms(
        kind=RESONANCE_SYNCHRONOUS, xlamo=xlamo, xfact=bfact - xnq,
        del1=del1, del2=del2, del3=del3,
    )


class LunarSolarCorrection(DeepSpaceCorrection):
    """Lunar-solar and resonance corrections of the SDP models."""

    def initialize(self, elements, orbit: RecoveredOrbit) -> DeepSpaceTerms:
        """
        Set up lunar-solar terms and, when applicable, resonance terms.

        Args:
            elements: OrbitalElements of the satellite
            orbit: Recovered orbit quantities from the element preprocessor

        Returns:
            DeepSpaceTerms for use with ``secular`` and ``periodic``
        """
        thgr = greenwich_mean_sidereal_time(elements.epoch_jd)
        eq = elements.eccentricity
        xnq = orbit.mean_motion
        aqnv = 1.0 / orbit.semimajor_axis
        xqncl = elements.inclination
        siniq = orbit.sin_inclination
        cosiq = orbit.cos_inclination
        sinq = math.sin(elements.raan)
        cosq = math.cos(elements.raan)

        # Lunar orbit orientation at epoch
        day = elements.epoch_jd - DS50_ORIGIN_JD + 18261.5
        xnodce = 4.5236020 - 9.2422029e-4 * day
        stem = math.sin(xnodce)
        ctem = math.cos(xnodce)
        zcosil = 0.91375164 - 0.03568096 * ctem
        zsinil = math.sqrt(1.0 - zcosil * zcosil)
        zsinhl = 0.089683511 * stem / zsinil
        zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
        c = 4.7199672 + 0.22997150 * day
        gam = 5.8351514 + 0.0019443680 * day
        zmol = normalize_radians(c - gam)
        zx = 0.39785416 * stem / zsinil
        zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
        zx = gam + actan(zx, zy) - xnodce
        zcosgl = math.cos(zx)
        zsingl = math.sin(zx)
        zmos = normalize_radians(6.2565837 + 0.017201977 * day)

        # Solar terms
        solar, solar_periodic = _third_body_coefficients(
            ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cosq, sinq, C1SS, ZNS, ZES,
            orbit, eq, xqncl,
        )
        # Lunar terms
        lunar, lunar_periodic = _third_body_coefficients(
            zcosgl, zsingl, zcosil, zsinil,
            zcoshl * cosq + zsinhl * sinq,
            sinq * zcoshl - cosq * zsinhl,
            C1L, ZNL, ZEL, orbit, eq, xqncl,
        )

        se_s, si_s, sl_s, sgh_s, sh_s = solar
        se_l, si_l, sl_l, sgh_l, sh_l = lunar
        sse = se_s + se_l
        ssi = si_s + si_l
        ssl = sl_s + sl_l
        if siniq != 0.0:
            ssh = (sh_s + sh_l) / siniq
        else:
            ssh = 0.0
        ssg = sgh_s + sgh_l - cosiq * ssh

        lunar_solar = LunarSolarTerms(
            sse, ssi, ssl, ssg, ssh,
            *solar_periodic[:2], *solar_periodic[2:4], *solar_periodic[4:7],
            *solar_periodic[7:10], *solar_periodic[10:12],
            *lunar_periodic,
            zmos, zmol,
        )

        # Geopotential resonance
        resonance = None
        if 0.0034906585 < xnq < 0.0052359877:
            resonance = _synchronous_resonance(elements, orbit, aqnv, thgr, ssl, ssg, ssh)
        elif 8.26e-3 <= xnq <= 9.24e-3 and eq >= 0.5:
            resonance = _half_day_resonance(elements, orbit, eq, aqnv, thgr, ssl, ssh)

        logger.debug(
            f"Deep-space terms for {elements.satnum}: resonance="
            f"{resonance.kind if resonance else RESONANCE_NONE}"
        )

        return DeepSpaceTerms(
            epoch_eccentricity=eq,
            epoch_inclination=xqncl,
            epoch_perigee=elements.arg_perigee,
            sin_inclination=siniq,
            cos_inclination=cosiq,
            mean_motion=xnq,
            perigee_rate=orbit.perigee_rate,
            sidereal_epoch=thgr,
            lunar_solar=lunar_solar,
            resonance=resonance,
        )

    def secular(self, terms: DeepSpaceTerms, raw: SecularElements, tsince: float) -> SecularElements:
        ls = terms.lunar_solar
        xll = raw.mean_anomaly + ls.ssl * tsince
        omgasm = raw.arg_perigee + ls.ssg * tsince
        xnodes = raw.node + ls.ssh * tsince
        em = raw.eccentricity + ls.sse * tsince
        xinc = raw.inclination + ls.ssi * tsince
        if xinc < 0.0:
            xinc = -xinc
            xnodes = xnodes + math.pi
            omgasm = omgasm - math.pi

        xn = raw.mean_motion
        if terms.resonance is not None:
            xll, xn = self._integrate_resonance(terms, xnodes, omgasm, tsince)

        return SecularElements(xll, omgasm, xnodes, xinc, em, xn)

    def _integrate_resonance(self, terms: DeepSpaceTerms, xnodes: float, omgasm: float,
                             tsince: float):
        """Euler-Maclaurin integration of the resonance equations from epoch."""
        res = terms.resonance
        synchronous = res.kind == RESONANCE_SYNCHRONOUS
        delt = STEP if tsince >= 0.0 else -STEP
        atime = 0.0
        xli = res.xlamo
        xni = terms.mean_motion

        while True:
            if synchronous:
                xndot = (res.del1 * math.sin(xli - FASX2)
                         + res.del2 * math.sin(2.0 * (xli - FASX4))
                         + res.del3 * math.sin(3.0 * (xli - FASX6)))
                xnddt = (res.del1 * math.cos(xli - FASX2)
                         + 2.0 * res.del2 * math.cos(2.0 * (xli - FASX4))
                         + 3.0 * res.del3 * math.cos(3.0 * (xli - FASX6)))
            else:
                xomi = terms.epoch_perigee + terms.perigee_rate * atime
                x2omi = xomi + xomi
                x2li = xli + xli
                xndot = (res.d2201 * math.sin(x2omi + xli - G22)
                         + res.d2211 * math.sin(xli - G22)
                         + res.d3210 * math.sin(xomi + xli - G32)
                         + res.d3222 * math.sin(-xomi + xli - G32)
                         + res.d4410 * math.sin(x2omi + x2li - G44)
                         + res.d4422 * math.sin(x2li - G44)
                         + res.d5220 * math.sin(xomi + xli - G52)
                         + res.d5232 * math.sin(-xomi + xli - G52)
                         + res.d5421 * math.sin(xomi + x2li - G54)
                         + res.d5433 * math.sin(-xomi + x2li - G54))
                xnddt = (res.d2201 * math.cos(x2omi + xli - G22)
                         + res.d2211 * math.cos(xli - G22)
                         + res.d3210 * math.cos(xomi + xli - G32)
                         + res.d3222 * math.cos(-xomi + xli - G32)
                         + res.d5220 * math.cos(xomi + xli - G52)
                         + res.d5232 * math.cos(-xomi + xli - G52)
                         + 2.0 * (res.d4410 * math.cos(x2omi + x2li - G44)
                                  + res.d4422 * math.cos(x2li - G44)
                                  + res.d5421 * math.cos(xomi + x2li - G54)
                                  + res.d5433 * math.cos(-xomi + x2li - G54)))

            xldot = xni + res.xfact
            xnddt = xnddt * xldot

            if abs(tsince - atime) < STEP:
                ft = tsince - atime
                xn = xni + xndot * ft + xnddt * ft * ft * 0.5
                xl = xli + xldot * ft + xndot * ft * ft * 0.5
                temp = -xnodes + terms.sidereal_epoch + tsince * THDT
                if synchronous:
                    xll = xl - omgasm + temp
                else:
                    xll = xl + temp + temp
                return xll, xn

            xli = xli + xldot * delt + xndot * STEP2
            xni = xni + xndot * delt + xnddt * STEP2
            atime = atime + delt

    def periodic(self, terms: DeepSpaceTerms, current: SecularElements, tsince: float) -> SecularElements:
        ls = terms.lunar_solar
        xinc = current.inclination
        sinis = math.sin(xinc)
        cosis = math.cos(xinc)

        # Solar
        zm = ls.zmos + ZNS * tsince
        zf = zm + 2.0 * ZES * math.sin(zm)
        sinzf = math.sin(zf)
        f2 = 0.5 * sinzf * sinzf - 0.25
        f3 = -0.5 * sinzf * math.cos(zf)
        ses = ls.se2 * f2 + ls.se3 * f3
        sis = ls.si2 * f2 + ls.si3 * f3
        sls = ls.sl2 * f2 + ls.sl3 * f3 + ls.sl4 * sinzf
        sghs = ls.sgh2 * f2 + ls.sgh3 * f3 + ls.sgh4 * sinzf
        shs = ls.sh2 * f2 + ls.sh3 * f3

        # Lunar
        zm = ls.zmol + ZNL * tsince
        zf = zm + 2.0 * ZEL * math.sin(zm)
        sinzf = math.sin(zf)
        f2 = 0.5 * sinzf * sinzf - 0.25
        f3 = -0.5 * sinzf * math.cos(zf)
        sel = ls.ee2 * f2 + ls.e3 * f3
        sil = ls.xi2 * f2 + ls.xi3 * f3
        sll = ls.xl2 * f2 + ls.xl3 * f3 + ls.xl4 * sinzf
        sghl = ls.xgh2 * f2 + ls.xgh3 * f3 + ls.xgh4 * sinzf
        shl = ls.xh2 * f2 + ls.xh3 * f3

        pe = ses + sel
        pinc = sis + sil
        pl = sls + sll
        pgh = sghs + sghl
        ph = shs + shl

        xinc = xinc + pinc
        em = current.eccentricity + pe
        xll = current.mean_anomaly
        omgasm = current.arg_perigee
        xnodes = current.node

        if terms.epoch_inclination >= LYDDANE_INCLINATION:
            ph = ph / terms.sin_inclination
            pgh = pgh - terms.cos_inclination * ph
            omgasm = omgasm + pgh
            xnodes = xnodes + ph
            xll = xll + pl
        else:
            # Lyddane modification; the node must be reduced first so that
            # the recombined longitude stays on the same revolution
            xnodes = normalize_radians(xnodes)
            sinok = math.sin(xnodes)
            cosok = math.cos(xnodes)
            alfdp = sinis * sinok + (ph * cosok + pinc * cosis * sinok)
            betdp = sinis * cosok + (-ph * sinok + pinc * cosis * cosok)
            xls = xll + omgasm + cosis * xnodes
            dls = pl + pgh - pinc * xnodes * sinis
            xls = xls + dls
            xnodes = actan(alfdp, betdp)
            xll = xll + pl
            omgasm = xls - xll - math.cos(xinc) * xnodes

        return SecularElements(xll, omgasm, xnodes, xinc, em, current.mean_motion)
