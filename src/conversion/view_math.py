"""
View-space math for first-person visibility.

Map coordinates are transformed into a viewer-relative frame where z points
away from the viewer (negative in front) and x runs across the screen.  View
directions are 16.16 fixed point; all arithmetic is integer with division
truncating toward zero so results are stable across platforms.
"""

from __future__ import annotations
from dataclasses import dataclass

# Near plane distance; points with z > -NEAR_Z are behind the viewer.
NEAR_Z = 4
FIXED_SHIFT = 16


def viewd_unscale(value: int) -> int:
    """Drop the 16 fractional bits of a fixed-point product."""
    return value >> FIXED_SHIFT


def trunc_div(num: int, denom: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(num) // abs(denom)
    return q if (num >= 0) == (denom > 0) else -q


def to_view_space(view_dx: int, view_dy: int, px: int, py: int) -> tuple:
    """Rotate a viewer-relative map offset (px, py) into (x, z)."""
    x = -viewd_unscale(view_dy * px - view_dx * py)
    z = -viewd_unscale(view_dx * px + view_dy * py)
    return x, z


def project_x(x: int, z: int, zscale: int, view_width: int) -> int:
    """Perspective project a view-space point to a screen column."""
    return trunc_div(x * zscale, z) + view_width // 2


@dataclass
class ClipInterval:
    """Parametric interval [p1, p2] along a line being clipped."""
    p1: float = 0.0
    p2: float = 1.0


@dataclass
class RangePair:
    """Line from (x1, z1) to (x2, z2) in view space; clipped in place."""
    x1: int
    z1: int
    x2: int
    z2: int


def clipt(denom: int, num: int, interval: ClipInterval) -> bool:
    """Clip ``interval`` against one half-plane; False if nothing remains."""
    if denom > 0:
        t = num / denom
        if t > interval.p2:
            return False
        if t > interval.p1:
            interval.p1 = t
    elif denom < 0:
        t = num / denom
        if t < interval.p1:
            return False
        if t < interval.p2:
            interval.p2 = t
    elif num > 0:
        return False
    return True


def clip3d(rp: RangePair) -> bool:
    """Clip a view-space line to the 90 degree view frustum and near plane.

    Returns False when the line is fully outside; otherwise ``rp`` is
    shortened to the visible part.
    """
    x1, z1, x2, z2 = rp.x1, rp.z1, rp.x2, rp.z2

    if z1 > -NEAR_Z and z2 > -NEAR_Z:
        return False
    if x1 > -z1 and x2 > -z2:
        return False
    if -x1 > -z1 and -x2 > -z2:
        return False

    dx = x2 - x1
    dz = z2 - z1
    interval = ClipInterval(0.0, 1.0)
    if not clipt(-dx - dz, x1 + z1, interval):
        return False
    if not clipt(dx - dz, -x1 + z1, interval):
        return False
    if not clipt(-dz, z1 + NEAR_Z, interval):
        return False

    if interval.p2 < 1:
        rp.x2 = int(x1 + interval.p2 * dx)
        rp.z2 = int(z1 + interval.p2 * dz)
    if interval.p1 > 0:
        rp.x1 = int(rp.x1 + interval.p1 * dx)
        rp.z1 = int(rp.z1 + interval.p1 * dz)
    return True
