"""Time and frame utilities for the star visibility engine.

Provides instant/date coercion, the Gregorian calendar to Julian Date
conversion, Greenwich and local mean sidereal time (IAU polynomial referenced
to J2000.0), a longitude-based approximation of local solar time used to group
instants into local nights, and coordinate validation for the API boundary.
"""

from __future__ import annotations

import math
from datetime import date, datetime, timedelta, timezone
from typing import Tuple

import numpy as np
import pandas as pd
from astropy.time import Time

J2000_JD = 2451545.0
DAYS_PER_CENTURY = 36525.0


def normalize_deg(angle_deg: float) -> float:
    """Wrap an angle into ``[0, 360)``."""

    wrapped = float(angle_deg) % 360.0
    # -1e-17 % 360 == 360.0 in floating point
    return 0.0 if wrapped >= 360.0 else wrapped


def wrap_deg_180(angle_deg):
    """Wrap an angle (scalar or array) into ``[-180, 180)``."""

    return (np.asarray(angle_deg, dtype=float) + 180.0) % 360.0 - 180.0


def validate_coords(
    ra_deg: float, dec_deg: float, eps: float = 1e-6
) -> Tuple[float, float]:
    """Normalize and validate equatorial coordinates.

    Parameters
    ----------
    ra_deg, dec_deg : float
        Right ascension and declination in degrees.
    eps : float, optional
        Tolerance for floating-point jitter at the ``\\pm90`` declination bounds.

    Returns
    -------
    tuple(float, float)
        ``(ra_deg_normalized, dec_deg)`` where RA is in ``[0,360)`` and Dec is
        clamped to ``\\pm90`` only if within ``eps`` of the boundary.

    Raises
    ------
    ValueError
        If either value is not finite or ``dec_deg`` lies outside
        ``[-90-eps, +90+eps]``.
    """

    ra_deg, dec_deg = float(ra_deg), float(dec_deg)
    if not (math.isfinite(ra_deg) and math.isfinite(dec_deg)):
        raise ValueError(f"Non-finite coordinates RA={ra_deg} Dec={dec_deg}")
    if dec_deg < -90.0 - eps or dec_deg > 90.0 + eps:
        raise ValueError(f"Invalid Dec={dec_deg} deg (must be within [-90, +90])")
    return normalize_deg(ra_deg), min(90.0, max(-90.0, dec_deg))


def validate_location(
    lat_deg: float, lon_deg: float, eps: float = 1e-6
) -> Tuple[float, float]:
    """Validate an observer position.

    Latitude must lie in ``[-90, 90]`` (with ``eps`` jitter clamped); longitude
    is wrapped into ``(-180, 180]``.
    """

    lat_deg, lon_deg = float(lat_deg), float(lon_deg)
    if not (math.isfinite(lat_deg) and math.isfinite(lon_deg)):
        raise ValueError(f"Non-finite location lat={lat_deg} lon={lon_deg}")
    if lat_deg < -90.0 - eps or lat_deg > 90.0 + eps:
        raise ValueError(f"Invalid latitude={lat_deg} deg (must be within [-90, +90])")
    lon = float(wrap_deg_180(lon_deg))
    if lon == -180.0:
        lon = 180.0
    return min(90.0, max(-90.0, lat_deg)), lon


def as_utc(moment) -> datetime:
    """Coerce an instant to a timezone-aware UTC :class:`datetime`.

    Accepts :class:`datetime.datetime` (naive values are taken as UTC),
    :class:`pandas.Timestamp`, :class:`numpy.datetime64` and scalar
    :class:`astropy.time.Time`.
    """

    if isinstance(moment, Time):
        if not moment.isscalar:
            raise TypeError("Expected a scalar astropy Time, got an array")
        return moment.utc.to_datetime(timezone.utc)
    if isinstance(moment, np.datetime64):
        moment = pd.Timestamp(moment)
    if moment is pd.NaT:
        raise ValueError("Cannot use NaT as an instant")
    if isinstance(moment, pd.Timestamp):
        if moment.tzinfo is None:
            moment = moment.tz_localize("UTC")
        return moment.tz_convert("UTC").to_pydatetime()
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            return moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc)
    raise TypeError(f"Unsupported instant type: {type(moment).__name__}")


def as_date(value) -> date:
    """Normalize ``date``/``datetime``/``pandas.Timestamp`` to a calendar date."""

    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Unsupported date type: {type(value).__name__}")


def julian_date(moment) -> float:
    """Return the Julian Date of a UTC instant (Meeus, Gregorian calendar)."""

    utc = as_utc(moment)
    year, month = utc.year, utc.month
    day = utc.day + (
        utc.hour
        + utc.minute / 60.0
        + (utc.second + utc.microsecond / 1e6) / 3600.0
    ) / 24.0
    if month <= 2:
        year -= 1
        month += 12
    a = year // 100
    b = 2 - a + a // 4
    return (
        math.floor(365.25 * (year + 4716))
        + math.floor(30.6001 * (month + 1))
        + day
        + b
        - 1524.5
    )


def julian_century(jd: float) -> float:
    """Julian centuries elapsed since J2000.0."""

    return (jd - J2000_JD) / DAYS_PER_CENTURY


def greenwich_sidereal_time_deg(moment) -> float:
    """Greenwich Mean Sidereal Time in degrees, ``[0, 360)``."""

    d = julian_date(moment) - J2000_JD
    t = d / DAYS_PER_CENTURY
    gmst = (
        280.46061837
        + 360.98564736629 * d
        + 0.000387933 * t * t
        - t * t * t / 38710000.0
    )
    return normalize_deg(gmst)


def local_sidereal_time_deg(moment, lon_deg: float) -> float:
    """Local Mean Sidereal Time in degrees, ``[0, 360)``; east longitude positive."""

    return normalize_deg(greenwich_sidereal_time_deg(moment) + lon_deg)


def equatorial_to_horizontal(ra_deg, dec_deg, lat_deg: float, lon_deg: float, moment):
    """Convert equatorial coordinates to altitude/azimuth at ``moment``.

    Parameters
    ----------
    ra_deg, dec_deg : float or array-like
        Right ascension and declination in degrees. Arrays broadcast together.
    lat_deg, lon_deg : float
        Observer latitude and east longitude in degrees.
    moment : datetime-like
        UTC instant; see :func:`as_utc`.

    Returns
    -------
    tuple
        ``(alt_deg, az_deg, ha_deg)``. Azimuth is measured from north through
        east in ``[0, 360)``; hour angle is in ``[-180, 180)``. Scalars in give
        scalars out, otherwise :class:`numpy.ndarray`.

    Notes
    -----
    ``sin(alt)`` and ``cos(Az)`` are clipped to ``[-1, 1]`` before the inverse
    trig calls. Where ``cos(lat) cos(alt)`` vanishes (observer at a pole or
    object at the zenith) the azimuth is undefined and reported as ``0``.
    """

    lst = local_sidereal_time_deg(moment, lon_deg)
    ha = wrap_deg_180(lst - np.asarray(ra_deg, dtype=float))
    ha_r = np.deg2rad(ha)
    dec_r = np.deg2rad(np.asarray(dec_deg, dtype=float))
    lat_r = np.deg2rad(lat_deg)

    sin_alt = np.sin(lat_r) * np.sin(dec_r) + np.cos(lat_r) * np.cos(dec_r) * np.cos(
        ha_r
    )
    alt_r = np.arcsin(np.clip(sin_alt, -1.0, 1.0))

    denom = np.cos(lat_r) * np.cos(alt_r)
    num = np.sin(dec_r) - np.sin(lat_r) * np.sin(alt_r)
    degenerate = np.abs(denom) < 1e-12
    safe_denom = np.where(degenerate, 1.0, denom)
    cos_az = np.clip(num / safe_denom, -1.0, 1.0)
    az = np.rad2deg(np.arccos(cos_az))
    az = np.where(np.sin(ha_r) > 0.0, 360.0 - az, az)
    az = np.where(degenerate, 0.0, az) % 360.0

    alt = np.rad2deg(alt_r)
    if alt.ndim == 0:
        return float(alt), float(az), float(ha)
    return alt, az, np.broadcast_to(ha, alt.shape)


def solar_timezone(lon_deg: float) -> timezone:
    """Approximate local (solar) timezone from longitude, as a fixed UTC offset.

    Positive offsets are east of Greenwich. This avoids depending on a civil
    timezone database and is sufficient for night-bundling logic.
    """

    return timezone(timedelta(minutes=4.0 * float(lon_deg)))


def local_solar_date(moment, lon_deg: float) -> date:
    """Calendar date of ``moment`` in approximate local solar time."""

    return as_utc(moment).astimezone(solar_timezone(lon_deg)).date()


def local_midnight_utc(day, lon_deg: float) -> datetime:
    """UTC instant of local solar midnight starting ``day``."""

    d = as_date(day)
    return datetime(d.year, d.month, d.day, tzinfo=solar_timezone(lon_deg)).astimezone(
        timezone.utc
    )


def utc_midnight(day) -> datetime:
    """UTC instant of 0h UT on ``day``."""

    d = as_date(day)
    return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)


def night_date(moment, lon_deg: float) -> date:
    """Date of the *local night* containing ``moment`` (the evening's date).

    Local solar time is shifted back 12 hours, so anything between local noon
    and the following noon belongs to the same night.
    """

    return local_solar_date(as_utc(moment) - timedelta(hours=12), lon_deg)
