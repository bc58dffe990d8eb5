"""Observation constraint utilities.

Closed-form tests of whether a fixed star can ever cross the operative
horizon (``min_observation_alt_deg``) at a latitude, and the hour angle at
which it does.
"""
from __future__ import annotations

import math
from typing import Optional


def _clamp(val: float, lo: float, hi: float) -> float:
    """Clamp a value into the interval ``[lo, hi]``."""
    return max(lo, min(hi, val))


def is_circumpolar(dec_deg: float, lat_deg: float, threshold_deg: float) -> bool:
    """Whether the star stays above ``threshold_deg`` all sidereal day.

    Parameters
    ----------
    dec_deg : float
        Declination of the star in degrees.
    lat_deg : float
        Observer latitude in degrees.
    threshold_deg : float
        Operative horizon altitude in degrees.

    Returns
    -------
    bool
        ``True`` if the lower culmination lies above ``threshold_deg``.

    Notes
    -----
    The lower culmination altitude is ``|lat + dec| - 90`` in either
    hemisphere, mirroring the upper culmination ``90 - |lat - dec|`` used by
    :func:`never_rises`.  It holds for negative thresholds as well.
    """
    return abs(lat_deg + dec_deg) - 90.0 > threshold_deg


def never_rises(dec_deg: float, lat_deg: float, threshold_deg: float) -> bool:
    """Whether the star never reaches ``threshold_deg``.

    Parameters
    ----------
    dec_deg : float
        Declination of the star in degrees.
    lat_deg : float
        Observer latitude in degrees.
    threshold_deg : float
        Operative horizon altitude in degrees.

    Returns
    -------
    bool
        ``True`` if the upper culmination ``90 - |lat - dec|`` lies below
        ``threshold_deg``.

    Notes
    -----
    For ``lat >= 0`` and a star culminating south of the zenith this is
    ``dec < lat - 90 + threshold``; the mirrored form
    ``dec > lat + 90 - threshold`` covers a star culminating north of the
    zenith (and is the primary case for ``lat < 0``).
    """
    if dec_deg <= lat_deg:
        return dec_deg < lat_deg - 90.0 + threshold_deg
    return dec_deg > lat_deg + 90.0 - threshold_deg


def threshold_hour_angle_deg(
    dec_deg: float, lat_deg: float, threshold_deg: float
) -> Optional[float]:
    """Hour angle (degrees, ``[0, 180]``) at which the star crosses ``threshold_deg``.

    Returns ``None`` when ``|cos H| > 1`` (the star is always above or always
    below the threshold) or when the geometry is degenerate (observer at a
    pole or star at a celestial pole, where altitude does not vary).
    """
    lat, dec = math.radians(lat_deg), math.radians(dec_deg)
    denom = math.cos(lat) * math.cos(dec)
    if abs(denom) < 1e-12:
        return None
    cos_h = (math.sin(math.radians(threshold_deg)) - math.sin(lat) * math.sin(dec)) / denom
    if cos_h > 1.0 or cos_h < -1.0:
        return None
    return math.degrees(math.acos(_clamp(cos_h, -1.0, 1.0)))
