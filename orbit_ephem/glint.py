"""
Glint Angle

Angle between an illuminating body and the reflection of the observer's line
of sight in the flat main mission antennas of an Iridium-type satellite. A
flare is seen when this angle is small: about 0 mag at 2 degrees and -3 mag at
0.5 degrees.

The satellite body frame has x along the velocity, y along r × v (orbit
normal) and z completing the triad. Each antenna is tilted 40 degrees towards
the Earth and the three of them are spaced 120 degrees apart in azimuth.
"""

import math

import numpy as np

from orbit_ephem.bodies import angular_separation

MIRROR_TILT = math.radians(-40.0)
MIRROR_AZIMUTHS = (0.0, math.radians(120.0), math.radians(240.0))

# Rear mirrors are only tried while the best angle is above this (degrees)
REAR_MIRROR_THRESHOLD = 2.0


def body_frame(position: np.ndarray, velocity: np.ndarray) -> np.ndarray:
    """Matrix whose columns are the satellite x, y, z axes in the parent frame."""
    xx = velocity / np.linalg.norm(velocity)
    yy = np.cross(position, velocity)
    yy = yy / np.linalg.norm(yy)
    zz = np.cross(xx, yy)
    zz = zz / np.linalg.norm(zz)
    return np.column_stack((xx, yy, zz))


def _mirror_rotation(tilt: float, azimuth: float) -> np.ndarray:
    """Body-to-mirror rotation; column k is the rotated unit vector k."""
    c1, s1 = math.cos(tilt), math.sin(tilt)
    c2, s2 = math.cos(azimuth), math.sin(azimuth)
    columns = []
    for x, y, z in np.eye(3):
        nx, ny, nz = x * c1 - z * s1, y, x * s1 + z * c1
        columns.append((nx * c2 + ny * s2, -nx * s2 + ny * c2, nz))
    return np.array(columns).T


def mirror_reflection_angle(position: np.ndarray, velocity: np.ndarray,
                            line_of_sight: np.ndarray, body: np.ndarray,
                            tilt: float, azimuth: float) -> float:
    """
    Reflection angle for one mirror.

    Args:
        position: Geocentric satellite position (any units)
        velocity: Satellite velocity in the same frame
        line_of_sight: Observer-to-satellite vector
        body: Direction of the illuminating body
        tilt: First mirror rotation (about body y), radians
        azimuth: Second mirror rotation (about body z), radians

    Returns:
        Angle in radians, or π when the body is behind the mirror
    """
    rr = body_frame(position, velocity) @ _mirror_rotation(tilt, azimuth)

    tt = rr.T @ line_of_sight
    tt[0] = -tt[0]
    if tt[0] < 0.0:
        return math.pi
    return angular_separation(body, rr @ tt)


def glint_angle(position, velocity, line_of_sight, body) -> float:
    """
    Smallest reflection angle over the three antennas, in degrees.

    Args:
        position: Geocentric satellite position
        velocity: Satellite velocity
        line_of_sight: Observer-to-satellite vector
        body: Direction of the Sun or Moon

    Returns:
        Angle in degrees; 180 means no antenna faces the body
    """
    position = np.asarray(position, dtype=float)
    velocity = np.asarray(velocity, dtype=float)
    line_of_sight = np.asarray(line_of_sight, dtype=float)
    body = np.asarray(body, dtype=float)

    def mirror(azimuth):
        return math.degrees(mirror_reflection_angle(
            position, velocity, line_of_sight, body, MIRROR_TILT, azimuth))

    forward_az, left_az, right_az = MIRROR_AZIMUTHS
    best = mirror(forward_az)
    left_angle = best + 3.0
    if best > REAR_MIRROR_THRESHOLD:
        left_angle = mirror(left_az)
        best = min(best, left_angle)
    if best > REAR_MIRROR_THRESHOLD and left_angle > REAR_MIRROR_THRESHOLD:
        best = min(best, mirror(right_az))
    return best
