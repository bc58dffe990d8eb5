"""Horizon geometry of fixed stars.

Altitude/azimuth at an instant, meridian transit, and the rise/set crossings
of the operative horizon (``VisibilityConfig.min_observation_alt_deg``) for a
local date.  Stars are treated as fixed in RA/Dec over the calculation window.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from . import constraints
from .astro_utils import (
    equatorial_to_horizontal,
    local_midnight_utc,
    local_sidereal_time_deg,
    normalize_deg,
)
from .config import VisibilityConfig, resolve_config
from .models import GeoLocation, RiseTransitSet, StarCoordinate


def star_altaz(
    star: StarCoordinate, location: GeoLocation, moment
) -> Tuple[float, float]:
    """Return ``(altitude_deg, azimuth_deg)`` of ``star`` at ``moment``."""

    alt, az, _ = equatorial_to_horizontal(
        star.ra_deg, star.dec_deg, location.lat_deg, location.lon_deg, moment
    )
    return alt, az


def star_altitude_deg(star: StarCoordinate, location: GeoLocation, moment) -> float:
    return star_altaz(star, location, moment)[0]


def star_azimuth_deg(star: StarCoordinate, location: GeoLocation, moment) -> float:
    return star_altaz(star, location, moment)[1]


def hour_angle_deg(star: StarCoordinate, location: GeoLocation, moment) -> float:
    """Hour angle west of the local meridian, in ``[-180, 180)``."""

    return equatorial_to_horizontal(
        star.ra_deg, star.dec_deg, location.lat_deg, location.lon_deg, moment
    )[2]


def is_above_horizon(
    star: StarCoordinate,
    location: GeoLocation,
    moment,
    cfg: VisibilityConfig | None = None,
) -> bool:
    """Whether the star is higher than the operative horizon at ``moment``."""

    cfg = resolve_config(cfg)
    return star_altitude_deg(star, location, moment) > cfg.min_observation_alt_deg


def is_circumpolar(
    star: StarCoordinate, location: GeoLocation, cfg: VisibilityConfig | None = None
) -> bool:
    cfg = resolve_config(cfg)
    return constraints.is_circumpolar(
        star.dec_deg, location.lat_deg, cfg.min_observation_alt_deg
    )


def never_rises(
    star: StarCoordinate, location: GeoLocation, cfg: VisibilityConfig | None = None
) -> bool:
    cfg = resolve_config(cfg)
    return constraints.never_rises(
        star.dec_deg, location.lat_deg, cfg.min_observation_alt_deg
    )


def transit_time(
    star: StarCoordinate,
    location: GeoLocation,
    day,
    cfg: VisibilityConfig | None = None,
) -> datetime:
    """First upper meridian transit at or after local solar midnight of ``day``.

    The hour angle at the local midnight anchor comes from the IAU mean
    sidereal time polynomial; the remaining sidereal angle is converted to
    solar minutes with ``cfg.sidereal_to_solar``.
    """

    cfg = resolve_config(cfg)
    anchor = local_midnight_utc(day, location.lon_deg)
    lst = local_sidereal_time_deg(anchor, location.lon_deg)
    to_transit_deg = normalize_deg(star.ra_deg - lst)
    return anchor + timedelta(minutes=to_transit_deg * 4.0 * cfg.sidereal_to_solar)


def _half_arc(
    star: StarCoordinate, location: GeoLocation, cfg: VisibilityConfig
) -> Optional[timedelta]:
    """Solar time from rise to transit, or ``None`` if the star never crosses."""

    if never_rises(star, location, cfg) or is_circumpolar(star, location, cfg):
        return None
    h = constraints.threshold_hour_angle_deg(
        star.dec_deg, location.lat_deg, cfg.min_observation_alt_deg
    )
    if h is None:
        return None
    return timedelta(minutes=h * 4.0 * cfg.sidereal_to_solar)


def rise_transit_set(
    star: StarCoordinate,
    location: GeoLocation,
    day,
    cfg: VisibilityConfig | None = None,
) -> RiseTransitSet:
    """Transit on ``day`` with the horizon crossings around it.

    ``rise`` may fall on the previous local date; ``set`` on the next one.
    Both are ``None`` for circumpolar and never-rising stars.
    """

    cfg = resolve_config(cfg)
    transit = transit_time(star, location, day, cfg)
    half = _half_arc(star, location, cfg)
    if half is None:
        return RiseTransitSet(None, transit, None)
    return RiseTransitSet(transit - half, transit, transit + half)


def sidereal_day(cfg: VisibilityConfig | None = None) -> timedelta:
    """One sidereal day expressed in solar time (about 23 h 56 m 4 s)."""

    cfg = resolve_config(cfg)
    return timedelta(minutes=1440.0 * cfg.sidereal_to_solar)


def passes_around(
    star: StarCoordinate,
    location: GeoLocation,
    day,
    cfg: VisibilityConfig | None = None,
) -> List[RiseTransitSet]:
    """The pass transiting on ``day`` with its neighbours one sidereal day away.

    A star transits about four minutes earlier each day, so roughly once a
    year a local date holds two transits (just after midnight and just before
    the next one).  :func:`transit_time` returns only the first; the
    neighbouring passes recover the second.  Passes are chronological.
    """

    cfg = resolve_config(cfg)
    step = sidereal_day(cfg)
    centre = rise_transit_set(star, location, day, cfg)
    passes = []
    for k in (-1, 0, 1):
        shift = step * k
        passes.append(
            RiseTransitSet(
                None if centre.rise is None else centre.rise + shift,
                centre.transit + shift,
                None if centre.set is None else centre.set + shift,
            )
        )
    return passes


def rise_time(
    star: StarCoordinate,
    location: GeoLocation,
    day,
    cfg: VisibilityConfig | None = None,
) -> Optional[datetime]:
    return rise_transit_set(star, location, day, cfg).rise


def set_time(
    star: StarCoordinate,
    location: GeoLocation,
    day,
    cfg: VisibilityConfig | None = None,
) -> Optional[datetime]:
    return rise_transit_set(star, location, day, cfg).set
