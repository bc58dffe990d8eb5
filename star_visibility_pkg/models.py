"""Value types shared across the visibility engine.

Only import-light, immutable definitions live here; the calculators in
:mod:`.sun_times`, :mod:`.horizon`, :mod:`.windows` and :mod:`.scheduler`
consume and produce them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import NamedTuple, Optional

import astropy.units as u
from astropy.coordinates import EarthLocation

from .astro_utils import as_utc, validate_coords, validate_location


@dataclass(frozen=True)
class GeoLocation:
    """Observer position; east longitude positive."""

    lat_deg: float
    lon_deg: float

    def __post_init__(self) -> None:
        lat, lon = validate_location(self.lat_deg, self.lon_deg)
        object.__setattr__(self, "lat_deg", lat)
        object.__setattr__(self, "lon_deg", lon)

    @classmethod
    def from_earth_location(cls, loc: EarthLocation) -> "GeoLocation":
        return cls(
            float(loc.lat.to(u.deg).value), float(loc.lon.to(u.deg).value)
        )

    def to_earth_location(self, height_m: float = 0.0) -> EarthLocation:
        return EarthLocation(
            lat=self.lat_deg * u.deg, lon=self.lon_deg * u.deg, height=height_m * u.m
        )


@dataclass(frozen=True)
class StarCoordinate:
    """Fixed equatorial position of a star (no proper motion or precession)."""

    ra_deg: float
    dec_deg: float

    def __post_init__(self) -> None:
        ra, dec = validate_coords(self.ra_deg, self.dec_deg)
        object.__setattr__(self, "ra_deg", ra)
        object.__setattr__(self, "dec_deg", dec)


@dataclass(frozen=True)
class ViewingWindow:
    """Interval during which a star is both above the horizon and in dark sky.

    ``end`` is ``None`` only when no bound was found before the search horizon.
    """

    start: datetime
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        if self.end is not None:
            end = as_utc(self.end)
            if end < self.start:
                raise ValueError(f"Window end {end} precedes start {self.start}")
            object.__setattr__(self, "end", end)

    @property
    def duration(self) -> Optional[timedelta]:
        if self.end is None:
            return None
        return self.end - self.start

    def contains(self, moment) -> bool:
        t = as_utc(moment)
        if t < self.start:
            return False
        return self.end is None or t <= self.end


class VisibilityStatus(str, Enum):
    VISIBLE_NOW = "visible_now"
    VISIBLE_LATER = "visible_later"
    WAIT_FOR_DARK = "wait_for_dark"
    BELOW_HORIZON = "below_horizon"
    NEVER_VISIBLE = "never_visible"


class VisibilityEndReason(str, Enum):
    DAWN = "dawn"
    SETTING = "setting"


class VisibilityEnd(NamedTuple):
    end: datetime
    reason: VisibilityEndReason


class RiseTransitSet(NamedTuple):
    """Meridian passage of a star on one local date, with threshold crossings."""

    rise: Optional[datetime]
    transit: datetime
    set: Optional[datetime]


@dataclass(frozen=True)
class VisibilityInfo:
    """Presentation aggregate consumed by the UI and the alert planner."""

    is_visible_now: bool
    status: VisibilityStatus
    window: Optional[ViewingWindow]
    altitude_deg: float
    azimuth_deg: float
    direction: str
    start_time_str: Optional[str] = None
    end_time_str: Optional[str] = None
