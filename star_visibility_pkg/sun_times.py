"""Sun position and darkness calculations.

Implements the NOAA solar-position algorithm (geometric mean longitude and
anomaly, equation of centre, apparent longitude, obliquity with the nutation
correction term, declination and equation of time) and derives the times at
which the Sun crosses a given altitude.  Twilight crossings decide whether the
sky is dark enough for stars.

Solar terms are held in :class:`SunGeometry`, an immutable value computed once
per instant and passed explicitly to the event helpers when a caller wants to
evaluate several events of the same date.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Optional

from .astro_utils import (
    as_date,
    as_utc,
    equatorial_to_horizontal,
    julian_century,
    julian_date,
    local_solar_date,
    normalize_deg,
    solar_timezone,
    utc_midnight,
)
from .config import TwilightAngle, VisibilityConfig, resolve_config
from .models import GeoLocation


@dataclass(frozen=True)
class SunGeometry:
    """Geometric and apparent solar terms for one instant (NOAA)."""

    julian_century: float
    mean_longitude_deg: float
    mean_anomaly_deg: float
    eccentricity: float
    equation_of_center_deg: float
    true_longitude_deg: float
    apparent_longitude_deg: float
    obliquity_deg: float
    declination_deg: float
    right_ascension_deg: float
    equation_of_time_min: float

    @classmethod
    def at(cls, moment) -> "SunGeometry":
        t = julian_century(julian_date(moment))
        rad = math.radians

        mean_long = (280.46646 + t * (36000.76983 + 0.0003032 * t)) % 360.0
        mean_anom = 357.52911 + t * (35999.05029 - 0.0001537 * t)
        ecc = 0.016708634 - t * (0.000042037 + 0.0000001267 * t)
        eq_ctr = (
            math.sin(rad(mean_anom)) * (1.914602 - t * (0.004817 + 0.000014 * t))
            + math.sin(rad(2.0 * mean_anom)) * (0.019993 - 0.000101 * t)
            + math.sin(rad(3.0 * mean_anom)) * 0.000289
        )
        true_long = mean_long + eq_ctr
        omega = 125.04 - 1934.136 * t
        app_long = true_long - 0.00569 - 0.00478 * math.sin(rad(omega))
        mean_obliq = 23.0 + (
            26.0 + (21.448 - t * (46.8150 + t * (0.00059 - t * 0.001813))) / 60.0
        ) / 60.0
        obliq = mean_obliq + 0.00256 * math.cos(rad(omega))

        sin_decl = math.sin(rad(obliq)) * math.sin(rad(app_long))
        decl = math.degrees(math.asin(max(-1.0, min(1.0, sin_decl))))
        ra = normalize_deg(
            math.degrees(
                math.atan2(
                    math.cos(rad(obliq)) * math.sin(rad(app_long)),
                    math.cos(rad(app_long)),
                )
            )
        )

        y = math.tan(rad(obliq / 2.0)) ** 2
        l0, m = rad(mean_long), rad(mean_anom)
        eq_time = 4.0 * math.degrees(
            y * math.sin(2.0 * l0)
            - 2.0 * ecc * math.sin(m)
            + 4.0 * ecc * y * math.sin(m) * math.cos(2.0 * l0)
            - 0.5 * y * y * math.sin(4.0 * l0)
            - 1.25 * ecc * ecc * math.sin(2.0 * m)
        )
        return cls(
            julian_century=t,
            mean_longitude_deg=mean_long,
            mean_anomaly_deg=mean_anom,
            eccentricity=ecc,
            equation_of_center_deg=eq_ctr,
            true_longitude_deg=true_long,
            apparent_longitude_deg=app_long,
            obliquity_deg=obliq,
            declination_deg=decl,
            right_ascension_deg=ra,
            equation_of_time_min=eq_time,
        )

    @classmethod
    def for_date(cls, day, lon_deg: float) -> "SunGeometry":
        """Geometry at approximate local solar noon of ``day``."""

        return cls.at(utc_midnight(day) + timedelta(minutes=720.0 - 4.0 * lon_deg))

    def solar_noon_minutes(self, lon_deg: float) -> float:
        """Solar noon in minutes after 0h UT."""

        return 720.0 - 4.0 * lon_deg - self.equation_of_time_min


def _cos_hour_angle(lat_deg: float, decl_deg: float, zenith_deg: float) -> float:
    """``cos(H)`` of the Sun reaching ``zenith_deg``; ``±inf`` at the poles."""

    lat, decl = math.radians(lat_deg), math.radians(decl_deg)
    num = math.cos(math.radians(zenith_deg)) - math.sin(lat) * math.sin(decl)
    denom = math.cos(lat) * math.cos(decl)
    if abs(denom) < 1e-12:
        return math.inf if num > 0.0 else -math.inf
    return num / denom


def sun_event_minutes(
    lat_deg: float,
    lon_deg: float,
    day,
    sun_alt_deg: float,
    rising: bool,
    geometry: SunGeometry | None = None,
) -> Optional[float]:
    """Minutes after 0h UT of ``day`` at which the Sun crosses ``sun_alt_deg``.

    Parameters
    ----------
    lat_deg, lon_deg : float
        Observer position in degrees (east positive).
    day : date-like
        Local date of the event.
    sun_alt_deg : float
        Sun altitude of the event, e.g. :attr:`TwilightAngle.ASTRONOMICAL`.
    rising : bool
        ``True`` for the morning crossing, ``False`` for the evening one.
    geometry : SunGeometry, optional
        Precomputed solar terms for ``day``; computed at local noon if omitted.

    Returns
    -------
    float or None
        Minutes relative to 0h UT (may fall outside ``[0, 1440)`` for far
        east/west longitudes), or ``None`` when the Sun never reaches the
        altitude that day (polar day or night).
    """

    geom = geometry if geometry is not None else SunGeometry.for_date(day, lon_deg)
    cos_h = _cos_hour_angle(lat_deg, geom.declination_deg, 90.0 - float(sun_alt_deg))
    if cos_h > 1.0 or cos_h < -1.0:
        return None
    hour_angle = math.degrees(math.acos(cos_h))
    noon = geom.solar_noon_minutes(lon_deg)
    return noon - 4.0 * hour_angle if rising else noon + 4.0 * hour_angle


def sun_event_time(
    location: GeoLocation,
    day,
    sun_alt_deg: float,
    rising: bool,
    geometry: SunGeometry | None = None,
) -> Optional[datetime]:
    """UTC instant of a Sun altitude crossing on ``day``, or ``None``."""

    minutes = sun_event_minutes(
        location.lat_deg, location.lon_deg, day, sun_alt_deg, rising, geometry
    )
    if minutes is None:
        return None
    return utc_midnight(day) + timedelta(minutes=minutes)


def evening_twilight_end(
    location: GeoLocation, day, cfg: VisibilityConfig | None = None
) -> Optional[datetime]:
    """Instant on ``day`` when the evening sky becomes dark enough for stars."""

    cfg = resolve_config(cfg)
    return sun_event_time(location, day, cfg.dark_sun_alt_deg, rising=False)


def morning_twilight_start(
    location: GeoLocation, day, cfg: VisibilityConfig | None = None
) -> Optional[datetime]:
    """Instant on ``day`` when the morning sky stops being dark enough."""

    cfg = resolve_config(cfg)
    return sun_event_time(location, day, cfg.dark_sun_alt_deg, rising=True)


def is_polar_night(
    lat_deg: float, geometry: SunGeometry, cfg: VisibilityConfig | None = None
) -> bool:
    """``True`` if the Sun's upper limb never rises on the geometry's date."""

    cfg = resolve_config(cfg)
    return _cos_hour_angle(lat_deg, geometry.declination_deg, cfg.polar_zenith_deg) > 1.0


def is_polar_day(
    lat_deg: float, geometry: SunGeometry, cfg: VisibilityConfig | None = None
) -> bool:
    """``True`` if the Sun's upper limb never sets on the geometry's date."""

    cfg = resolve_config(cfg)
    return (
        _cos_hour_angle(lat_deg, geometry.declination_deg, cfg.polar_zenith_deg) < -1.0
    )


def is_dark_enough(
    location: GeoLocation, moment, cfg: VisibilityConfig | None = None
) -> bool:
    """Whether the sky at ``moment`` is past astronomical twilight.

    The evening twilight end and morning twilight start are taken for the
    local solar date of ``moment``.  Night spans local midnight, so the instant
    is dark when it precedes the morning bound or follows the evening bound.
    Without both bounds the decision falls back to polar-night detection: the
    sky is dark only if the Sun does not rise at all that day.
    """

    cfg = resolve_config(cfg)
    t = as_utc(moment)
    day = local_solar_date(t, location.lon_deg)
    geom = SunGeometry.for_date(day, location.lon_deg)
    evening = sun_event_time(location, day, cfg.dark_sun_alt_deg, False, geom)
    morning = sun_event_time(location, day, cfg.dark_sun_alt_deg, True, geom)
    if evening is None or morning is None:
        return is_polar_night(location.lat_deg, geom, cfg)
    if morning < evening:
        return t < morning or t >= evening
    return evening <= t < morning


def sun_altitude_deg(location: GeoLocation, moment) -> float:
    """Geometric altitude of the Sun's centre from the NOAA solar terms."""

    geom = SunGeometry.at(moment)
    alt, _, _ = equatorial_to_horizontal(
        geom.right_ascension_deg,
        geom.declination_deg,
        location.lat_deg,
        location.lon_deg,
        moment,
    )
    return alt


@dataclass(frozen=True)
class SunTimes:
    """All solar events of one local date (UTC instants, ``None`` if absent)."""

    day: date
    lon_deg: float
    solar_noon: datetime
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    civil_start: Optional[datetime]
    civil_end: Optional[datetime]
    nautical_start: Optional[datetime]
    nautical_end: Optional[datetime]
    astronomical_start: Optional[datetime]
    astronomical_end: Optional[datetime]

    def day_fractions(self, tz: tzinfo | None = None) -> Dict[str, float]:
        """Events as fractions ``[0, 1)`` of the local day, for timeline widgets.

        Times are expressed in ``tz`` (approximate solar time by default);
        absent events are omitted.
        """

        tz = tz or solar_timezone(self.lon_deg)
        out: Dict[str, float] = {}
        for name in (
            "astronomical_start",
            "nautical_start",
            "civil_start",
            "sunrise",
            "solar_noon",
            "sunset",
            "civil_end",
            "nautical_end",
            "astronomical_end",
        ):
            value = getattr(self, name)
            if value is None:
                continue
            local = value.astimezone(tz)
            minutes = local.hour * 60 + local.minute + local.second / 60.0
            out[name] = minutes / 1440.0
        return out


def sun_times(location: GeoLocation, day) -> SunTimes:
    """Compute sunrise, sunset, twilight bounds and solar noon for ``day``."""

    d = as_date(day)
    geom = SunGeometry.for_date(d, location.lon_deg)

    def _event(angle: TwilightAngle, rising: bool) -> Optional[datetime]:
        return sun_event_time(location, d, angle.value, rising, geom)

    return SunTimes(
        day=d,
        lon_deg=location.lon_deg,
        solar_noon=utc_midnight(d)
        + timedelta(minutes=geom.solar_noon_minutes(location.lon_deg)),
        sunrise=_event(TwilightAngle.SUNRISE, True),
        sunset=_event(TwilightAngle.SUNRISE, False),
        civil_start=_event(TwilightAngle.CIVIL, True),
        civil_end=_event(TwilightAngle.CIVIL, False),
        nautical_start=_event(TwilightAngle.NAUTICAL, True),
        nautical_end=_event(TwilightAngle.NAUTICAL, False),
        astronomical_start=_event(TwilightAngle.ASTRONOMICAL, True),
        astronomical_end=_event(TwilightAngle.ASTRONOMICAL, False),
    )
