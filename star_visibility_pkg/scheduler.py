"""Scheduling queries over the visibility engine.

Answers the questions a notification scheduler asks about a saved star:
is it visible now, when does it next become visible, and when (and why) does
the current visibility end.  The closed-form window composer in
:mod:`.windows` is canonical.  A bounded forward search over the same
``is_visible`` predicate is kept as a fallback for nights where the composer
has no twilight bounds to work with (polar night).
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Optional

from .astro_utils import as_utc, local_solar_date, night_date, solar_timezone
from .config import VisibilityConfig, resolve_config
from .formatting import direction_name, format_time_with_day_offset
from .horizon import (
    is_above_horizon,
    is_circumpolar,
    never_rises,
    passes_around,
    star_altaz,
)
from .models import (
    GeoLocation,
    StarCoordinate,
    ViewingWindow,
    VisibilityEnd,
    VisibilityEndReason,
    VisibilityInfo,
    VisibilityStatus,
)
from .sun_times import SunGeometry, is_dark_enough, is_polar_night, morning_twilight_start
from .windows import darkness_bounds, tonight_viewing_window


def is_visible(
    star: StarCoordinate,
    location: GeoLocation,
    moment,
    cfg: VisibilityConfig | None = None,
) -> bool:
    """Star above the operative horizon and the sky astronomically dark."""

    cfg = resolve_config(cfg)
    return is_above_horizon(star, location, moment, cfg) and is_dark_enough(
        location, moment, cfg
    )


# ---------------------------------------------------------------------------
# Bounded forward search
# ---------------------------------------------------------------------------


def _bisect(
    predicate: Callable[[datetime], bool],
    low: datetime,
    high: datetime,
    iterations: int,
) -> datetime:
    """Narrow ``[low, high]`` where ``predicate(low)`` is false and ``predicate(high)`` true."""

    for _ in range(iterations):
        mid = low + (high - low) / 2
        if predicate(mid):
            high = mid
        else:
            low = mid
    return high


def search_visibility_start(
    star: StarCoordinate,
    location: GeoLocation,
    moment,
    cfg: VisibilityConfig | None = None,
) -> Optional[datetime]:
    """First not-visible → visible transition after ``moment``, by stepping.

    Steps ``cfg.search_step_min`` at a time for at most
    ``cfg.search_max_hours`` and then bisects ``cfg.refine_iterations`` times.
    If the star is visible at ``moment`` the *next* visibility period is
    returned.  ``None`` if no transition occurs within the cap.
    """

    cfg = resolve_config(cfg)
    t0 = as_utc(moment)
    step = timedelta(minutes=cfg.search_step_min)

    def visible(t: datetime) -> bool:
        return is_visible(star, location, t, cfg)

    was_visible = visible(t0)
    for i in range(1, cfg.max_search_steps + 1):
        t = t0 + i * step
        now_visible = visible(t)
        if now_visible and not was_visible:
            return _bisect(visible, t - step, t, cfg.refine_iterations)
        was_visible = now_visible
    return None


def search_visibility_end(
    star: StarCoordinate,
    location: GeoLocation,
    moment,
    cfg: VisibilityConfig | None = None,
) -> Optional[datetime]:
    """First visible → not-visible transition after ``moment``, by stepping.

    ``None`` if the star is not visible at ``moment`` or stays visible for the
    whole search horizon.
    """

    cfg = resolve_config(cfg)
    t0 = as_utc(moment)
    step = timedelta(minutes=cfg.search_step_min)

    def hidden(t: datetime) -> bool:
        return not is_visible(star, location, t, cfg)

    if hidden(t0):
        return None
    for i in range(1, cfg.max_search_steps + 1):
        t = t0 + i * step
        if hidden(t):
            return _bisect(hidden, t - step, t, cfg.refine_iterations)
    return None


# ---------------------------------------------------------------------------
# Closed-form queries
# ---------------------------------------------------------------------------


def next_viewing_window(
    star: StarCoordinate,
    location: GeoLocation,
    now,
    cfg: VisibilityConfig | None = None,
) -> Optional[ViewingWindow]:
    """First window starting strictly after ``now`` within the search nights.

    The night in progress and the following nights (``cfg.search_days`` in
    total) are scanned with :func:`tonight_viewing_window`.  When one of them
    has no twilight bounds and nothing was found, the bounded search decides.
    """

    cfg = resolve_config(cfg)
    t = as_utc(now)
    if never_rises(star, location, cfg):
        return None
    first = night_date(t, location.lon_deg)
    missing_bounds = False
    for offset in range(cfg.search_days):
        day = first + timedelta(days=offset)
        window = tonight_viewing_window(star, location, day, cfg)
        if window is not None and window.start > t:
            return window
        if window is None and None in darkness_bounds(location, day, cfg):
            missing_bounds = True

    if not missing_bounds:
        return None
    start = search_visibility_start(star, location, t, cfg)
    if start is None:
        return None
    return ViewingWindow(start, search_visibility_end(star, location, start, cfg))


def next_visibility_start(
    star: StarCoordinate,
    location: GeoLocation,
    now,
    cfg: VisibilityConfig | None = None,
) -> Optional[datetime]:
    """Start of the next viewing window strictly after ``now``."""

    window = next_viewing_window(star, location, now, cfg)
    return None if window is None else window.start


def _next_set_after(
    star: StarCoordinate, location: GeoLocation, t: datetime, cfg: VisibilityConfig
) -> Optional[datetime]:
    day = local_solar_date(t, location.lon_deg)
    for rts in passes_around(star, location, day, cfg):
        if rts.set is None:
            return None
        if rts.set > t:
            return rts.set
    return None


def _next_dawn_after(
    location: GeoLocation, t: datetime, cfg: VisibilityConfig
) -> Optional[datetime]:
    day = local_solar_date(t, location.lon_deg)
    for offset in (0, 1, 2):
        dawn = morning_twilight_start(location, day + timedelta(days=offset), cfg)
        if dawn is not None and dawn > t:
            return dawn
    return None


def visibility_end(
    star: StarCoordinate,
    location: GeoLocation,
    moment,
    cfg: VisibilityConfig | None = None,
) -> Optional[VisibilityEnd]:
    """When and why the current visibility ends.

    Returns ``None`` unless the star is visible at ``moment``.  The end is the
    nearer of the star's next setting and the next astronomical dawn; a
    circumpolar star can only end by dawn.  Without either bound (polar night)
    the bounded search decides, and ``None`` means the star stays visible past
    the search horizon.
    """

    cfg = resolve_config(cfg)
    t = as_utc(moment)
    if not is_visible(star, location, t, cfg):
        return None

    candidates = []
    if not is_circumpolar(star, location, cfg):
        setting = _next_set_after(star, location, t, cfg)
        if setting is not None:
            candidates.append(VisibilityEnd(setting, VisibilityEndReason.SETTING))
    dawn = _next_dawn_after(location, t, cfg)
    if dawn is not None:
        candidates.append(VisibilityEnd(dawn, VisibilityEndReason.DAWN))

    if candidates:
        return min(candidates, key=lambda c: c.end)

    end = search_visibility_end(star, location, t, cfg)
    if end is None:
        return None
    reason = (
        VisibilityEndReason.DAWN
        if is_above_horizon(star, location, end, cfg)
        else VisibilityEndReason.SETTING
    )
    return VisibilityEnd(end, reason)


def viewing_window_from(
    star: StarCoordinate,
    location: GeoLocation,
    now,
    cfg: VisibilityConfig | None = None,
) -> Optional[ViewingWindow]:
    """The window in progress (starting at ``now``) or the next one."""

    cfg = resolve_config(cfg)
    t = as_utc(now)
    if is_visible(star, location, t, cfg):
        end = visibility_end(star, location, t, cfg)
        return ViewingWindow(t, None if end is None else end.end)
    return next_viewing_window(star, location, t, cfg)


def _has_dark_sky(location: GeoLocation, t: datetime, cfg: VisibilityConfig) -> bool:
    first = night_date(t, location.lon_deg)
    for offset in range(cfg.search_days):
        day = first + timedelta(days=offset)
        if None not in darkness_bounds(location, day, cfg):
            return True
        if is_polar_night(
            location.lat_deg, SunGeometry.for_date(day, location.lon_deg), cfg
        ):
            return True
    return False


def visibility_info(
    star: StarCoordinate,
    location: GeoLocation,
    now,
    cfg: VisibilityConfig | None = None,
    tz: tzinfo | None = None,
) -> VisibilityInfo:
    """Status, window and display strings for one star at ``now``.

    Parameters
    ----------
    star, location : StarCoordinate, GeoLocation
        Target and observer.
    now : datetime-like
        Reference instant.
    cfg : VisibilityConfig, optional
        Thresholds and search limits.
    tz : tzinfo, optional
        Zone for the display strings; approximate local solar time from the
        observer's longitude when omitted.

    Returns
    -------
    VisibilityInfo
        ``status`` is one of

        ``VISIBLE_NOW``
            above the horizon in dark sky; the window starts at ``now``.
        ``WAIT_FOR_DARK``
            above the horizon and stays up until the next window opens.
        ``VISIBLE_LATER``
            a window opens within the search nights.
        ``BELOW_HORIZON``
            the sky gets dark but the star is not up during darkness.
        ``NEVER_VISIBLE``
            the star never rises here, or the sky never gets dark.
    """

    cfg = resolve_config(cfg)
    t = as_utc(now)
    tz = tz or solar_timezone(location.lon_deg)
    reference: date = t.astimezone(tz).date()
    alt, az = star_altaz(star, location, t)
    above = alt > cfg.min_observation_alt_deg

    if never_rises(star, location, cfg):
        return VisibilityInfo(
            is_visible_now=False,
            status=VisibilityStatus.NEVER_VISIBLE,
            window=None,
            altitude_deg=alt,
            azimuth_deg=az,
            direction=direction_name(az),
        )

    if above and is_dark_enough(location, t, cfg):
        end = visibility_end(star, location, t, cfg)
        window = ViewingWindow(t, None if end is None else end.end)
        return VisibilityInfo(
            is_visible_now=True,
            status=VisibilityStatus.VISIBLE_NOW,
            window=window,
            altitude_deg=alt,
            azimuth_deg=az,
            direction=direction_name(az),
            start_time_str="Now",
            end_time_str=(
                None
                if window.end is None
                else format_time_with_day_offset(window.end, reference, tz)
            ),
        )

    window = next_viewing_window(star, location, t, cfg)
    if window is None:
        status = (
            VisibilityStatus.BELOW_HORIZON
            if _has_dark_sky(location, t, cfg)
            else VisibilityStatus.NEVER_VISIBLE
        )
        return VisibilityInfo(
            is_visible_now=False,
            status=status,
            window=None,
            altitude_deg=alt,
            azimuth_deg=az,
            direction=direction_name(az),
        )

    status = VisibilityStatus.VISIBLE_LATER
    if above:
        setting = (
            None
            if is_circumpolar(star, location, cfg)
            else _next_set_after(star, location, t, cfg)
        )
        if setting is None or window.start <= setting:
            status = VisibilityStatus.WAIT_FOR_DARK
    _, start_az = star_altaz(star, location, window.start)
    return VisibilityInfo(
        is_visible_now=False,
        status=status,
        window=window,
        altitude_deg=alt,
        azimuth_deg=az,
        direction=direction_name(start_az),
        start_time_str=format_time_with_day_offset(window.start, reference, tz),
        end_time_str=(
            None
            if window.end is None
            else format_time_with_day_offset(window.end, reference, tz)
        ),
    )
