"""Nightly viewing windows.

Intersects a star's above-horizon pass with the astronomical darkness of a
local night.  The composition order matters: a star that sets before dark
falls and rises again before dawn must yield the second-half-of-night window
rather than nothing.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Tuple

from .astro_utils import as_date
from .config import VisibilityConfig, resolve_config
from .horizon import is_circumpolar, never_rises, passes_around
from .models import GeoLocation, StarCoordinate, ViewingWindow
from .sun_times import evening_twilight_end, morning_twilight_start


def darkness_bounds(
    location: GeoLocation, day, cfg: VisibilityConfig | None = None
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Return ``(dark_start, dark_end)`` for the night beginning on ``day``.

    ``dark_start`` is the evening twilight end of ``day``; ``dark_end`` is the
    morning twilight start of the following date.  Either is ``None`` when the
    Sun does not cross the darkness threshold (polar summer or winter).
    """

    cfg = resolve_config(cfg)
    d = as_date(day)
    return (
        evening_twilight_end(location, d, cfg),
        morning_twilight_start(location, d + timedelta(days=1), cfg),
    )


def tonight_viewing_window(
    star: StarCoordinate,
    location: GeoLocation,
    day,
    cfg: VisibilityConfig | None = None,
) -> Optional[ViewingWindow]:
    """Viewing window of ``star`` during the night that starts on ``day``.

    Parameters
    ----------
    star : StarCoordinate
        Target position.
    location : GeoLocation
        Observer position.
    day : date-like
        Local date of the evening.
    cfg : VisibilityConfig, optional
        Horizon and darkness thresholds.

    Returns
    -------
    ViewingWindow or None
        ``None`` when there is no astronomical darkness, the star never
        rises, or its pass misses the dark interval entirely.

    Notes
    -----
    Cases are evaluated in order:

    1. no darkness bounds: ``None``;
    2. star never rises: ``None``;
    3. circumpolar star: the darkness interval verbatim;
    4. otherwise the earliest of the passes around ``day`` (see
       :func:`.horizon.passes_around`) that overlaps the dark interval,
       clipped to ``[max(rise, dark_start), min(set, dark_end)]``.  A star
       that set before dark and rises again before dawn gets its second
       pass; one transiting twice on the same local date keeps the pass
       that culminates in the night.

    ``None`` when no pass overlaps the darkness.
    """

    cfg = resolve_config(cfg)
    d = as_date(day)
    dark_start, dark_end = darkness_bounds(location, d, cfg)
    if dark_start is None or dark_end is None or dark_end <= dark_start:
        return None
    if never_rises(star, location, cfg):
        return None
    if is_circumpolar(star, location, cfg):
        return ViewingWindow(dark_start, dark_end)

    for rts in passes_around(star, location, d, cfg):
        if rts.rise is None or rts.set is None:
            # culmination exactly at the threshold
            return None
        if rts.set < dark_start or rts.rise >= dark_end:
            continue
        start = max(rts.rise, dark_start)
        end = min(rts.set, dark_end)
        if end >= start:
            return ViewingWindow(start, end)
    return None
