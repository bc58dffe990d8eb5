"""Configuration definitions for the star visibility engine.

This module exposes :class:`VisibilityConfig`, a dataclass collecting the
thresholds and search limits shared by every calculation in the package, and
:class:`TwilightAngle`, the fixed set of Sun-altitude thresholds.  The values
are passed explicitly into the library instead of being re-declared by each
consumer (in-app calculator, scheduled server job, notification planner).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class TwilightAngle(float, Enum):
    """Sun-altitude thresholds (degrees) for solar events."""

    SUNRISE = -0.833  # refraction + solar semi-diameter
    CIVIL = -6.0
    NAUTICAL = -12.0
    ASTRONOMICAL = -18.0


@dataclass(frozen=True)
class VisibilityConfig:
    """Container of tunable parameters for visibility calculations.

    Only ``min_observation_alt_deg`` is typically changed by a caller; the rest
    carry defaults that reproduce the behaviour of the mobile app and the
    hourly server sweep.  Instances are immutable so a single config can be
    shared freely between threads and across many queries.
    """

    # -- Horizon -----------------------------------------------------------
    # Operative horizon for rise/set/visibility; compensates for extinction
    # and local obstructions.
    min_observation_alt_deg: float = 10.0

    # -- Darkness ----------------------------------------------------------
    dark_sun_alt_deg: float = TwilightAngle.ASTRONOMICAL.value
    # Zenith distance of the Sun's upper limb at sunrise, used to detect polar
    # day/night when twilight bounds are missing.
    polar_zenith_deg: float = 90.833

    # -- Time scales -------------------------------------------------------
    # Mean solar time per unit of sidereal time.
    sidereal_to_solar: float = 0.9972696

    # -- Scheduling --------------------------------------------------------
    search_days: int = 3
    """Number of consecutive nights scanned by ``next_visibility_start``."""

    search_step_min: float = 15.0
    search_max_hours: float = 48.0
    refine_iterations: int = 5
    """Bisection steps after a bounded-search hit (15 min / 2**5 ~ 28 s)."""

    alert_lead_min: float = 30.0
    """Minutes before visibility start at which an alert should fire."""

    def __post_init__(self) -> None:
        for name in (
            "min_observation_alt_deg",
            "dark_sun_alt_deg",
            "polar_zenith_deg",
            "sidereal_to_solar",
            "search_step_min",
            "search_max_hours",
            "alert_lead_min",
        ):
            value = getattr(self, name)
            try:
                value = float(value)
            except (TypeError, ValueError) as exc:
                raise TypeError(f"{name} must be a real number") from exc
            if not math.isfinite(value):
                raise ValueError(f"{name} must be finite, got {value}")
            object.__setattr__(self, name, value)

        if not -90.0 < self.min_observation_alt_deg < 90.0:
            raise ValueError(
                "min_observation_alt_deg must lie in (-90, 90), "
                f"got {self.min_observation_alt_deg}"
            )
        if not -90.0 < self.dark_sun_alt_deg < 0.0:
            raise ValueError(
                f"dark_sun_alt_deg must lie in (-90, 0), got {self.dark_sun_alt_deg}"
            )
        if not 0.0 < self.sidereal_to_solar <= 1.0:
            raise ValueError("sidereal_to_solar must lie in (0, 1]")
        if self.search_step_min <= 0.0:
            raise ValueError("search_step_min must be > 0")
        if self.search_max_hours < self.search_step_min / 60.0:
            raise ValueError("search_max_hours must cover at least one step")
        if self.alert_lead_min < 0.0:
            raise ValueError("alert_lead_min must be >= 0")

        object.__setattr__(self, "search_days", int(self.search_days))
        object.__setattr__(self, "refine_iterations", int(self.refine_iterations))
        if self.search_days < 1:
            raise ValueError("search_days must be >= 1")
        if self.refine_iterations < 0:
            raise ValueError("refine_iterations must be >= 0")

    @property
    def max_search_steps(self) -> int:
        """Upper bound on forward-search iterations (192 with the defaults)."""

        return int(self.search_max_hours * 60.0 // self.search_step_min)


DEFAULT_CONFIG = VisibilityConfig()


def resolve_config(cfg: VisibilityConfig | None) -> VisibilityConfig:
    """Return ``cfg`` or the shared default configuration."""

    return DEFAULT_CONFIG if cfg is None else cfg
