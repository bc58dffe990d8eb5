import pathlib
import sys
from datetime import date, timedelta

import pytest

# Ensure package root is importable
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[2]))

from star_visibility_pkg.astro_utils import (
    local_midnight_utc,
    local_sidereal_time_deg,
    local_solar_date,
    normalize_deg,
)
from star_visibility_pkg.config import VisibilityConfig
from star_visibility_pkg.constraints import threshold_hour_angle_deg
from star_visibility_pkg.horizon import (
    rise_transit_set,
    sidereal_day,
    star_altitude_deg,
    transit_time,
)
from star_visibility_pkg.models import GeoLocation, StarCoordinate
from star_visibility_pkg.sun_times import is_dark_enough
from star_visibility_pkg.windows import darkness_bounds, tonight_viewing_window

PARIS = GeoLocation(48.8566, 2.3522)
POLARIS = StarCoordinate(37.95, 89.26)


def test_darkness_bounds_span_the_night():
    dark_start, dark_end = darkness_bounds(PARIS, date(2024, 12, 15))
    assert dark_start is not None and dark_end is not None
    assert dark_start.date() == date(2024, 12, 15)
    assert dark_end.date() == date(2024, 12, 16)
    assert timedelta(hours=11) < dark_end - dark_start < timedelta(hours=14)


def test_circumpolar_star_gets_whole_darkness():
    day = date(2024, 12, 15)
    window = tonight_viewing_window(POLARIS, PARIS, day)
    assert window is not None
    assert (window.start, window.end) == darkness_bounds(PARIS, day)


def test_star_that_never_rises_has_no_window():
    london = GeoLocation(51.5, -0.13)
    assert tonight_viewing_window(StarCoordinate(0.0, -60.0), london, date(2024, 12, 15)) is None


def test_no_window_without_astronomical_darkness():
    assert tonight_viewing_window(POLARIS, PARIS, date(2024, 6, 21)) is None


def test_equator_window_bounded_by_darkness():
    equator = GeoLocation(0.0, 0.0)
    day = date(2024, 3, 20)
    cfg = VisibilityConfig(min_observation_alt_deg=0.0)
    star = StarCoordinate(180.0, 0.0)
    dark_start, dark_end = darkness_bounds(equator, day, cfg)
    window = tonight_viewing_window(star, equator, day, cfg)
    assert window is not None
    assert dark_start <= window.start < window.end <= dark_end
    assert window.duration <= dark_end - dark_start
    # Opposite the Sun at the equinox: above the horizon for the whole night
    assert (window.start, window.end) == (dark_start, dark_end)


def test_window_satisfies_both_constraints_inside():
    vega = StarCoordinate(279.23, 38.78)
    cfg = VisibilityConfig()
    window = tonight_viewing_window(vega, PARIS, date(2024, 12, 15), cfg)
    assert window is not None
    mid = window.start + (window.end - window.start) / 2
    assert star_altitude_deg(vega, PARIS, mid) > cfg.min_observation_alt_deg
    assert is_dark_enough(PARIS, mid, cfg)


def test_star_rising_again_before_dawn():
    location = GeoLocation(50.0, 0.0)
    day = date(2024, 12, 15)
    cfg = VisibilityConfig()
    dark_start, dark_end = darkness_bounds(location, day, cfg)
    half_arc = timedelta(
        minutes=threshold_hour_angle_deg(30.0, 50.0, 10.0) * 4.0 * cfg.sidereal_to_solar
    )
    # Transit so early that the star sets an hour before darkness falls
    transit = dark_start - half_arc - timedelta(hours=1)
    star = StarCoordinate(local_sidereal_time_deg(transit, location.lon_deg), 30.0)

    today = rise_transit_set(star, location, day, cfg)
    tomorrow = rise_transit_set(star, location, day + timedelta(days=1), cfg)
    assert today.set < dark_start
    assert tomorrow.rise < dark_end

    window = tonight_viewing_window(star, location, day, cfg)
    assert window is not None
    assert abs(window.start - tomorrow.rise) < timedelta(seconds=1)
    assert window.start > dark_start
    assert abs(window.end - min(tomorrow.set, dark_end)) < timedelta(seconds=1)


def test_window_is_deterministic():
    day = date(2024, 12, 15)
    vega = StarCoordinate(279.23, 38.78)
    assert tonight_viewing_window(vega, PARIS, day) == tonight_viewing_window(
        vega, PARIS, day
    )


@pytest.mark.parametrize("lat", [-60.0, -30.0, 0.0, 30.0, 60.0])
def test_windows_lie_inside_darkness(lat):
    location = GeoLocation(lat, 10.0)
    day = date(2024, 9, 1)
    dark_start, dark_end = darkness_bounds(location, day)
    for ra in range(0, 360, 30):
        window = tonight_viewing_window(StarCoordinate(float(ra), 10.0), location, day)
        if window is None:
            continue
        assert dark_start <= window.start <= window.end <= dark_end


def test_star_transiting_twice_on_one_date_keeps_the_night_pass():
    day = date(2024, 12, 15)
    midnight = local_midnight_utc(day, PARIS.lon_deg)
    ra = normalize_deg(local_sidereal_time_deg(midnight, PARIS.lon_deg) + 0.5)
    star = StarCoordinate(ra, 20.0)

    # Transits about two minutes after midnight and again just before the next
    first = transit_time(star, PARIS, day)
    assert first - midnight < timedelta(minutes=3)
    late = first + sidereal_day()
    assert local_solar_date(late, PARIS.lon_deg) == day

    window = tonight_viewing_window(star, PARIS, day)
    assert window is not None
    assert window.contains(late)
    assert (window.start, window.end) == darkness_bounds(PARIS, day)


def test_negative_threshold_circumpolar_star_gets_whole_darkness():
    location = GeoLocation(5.0, 0.0)
    cfg = VisibilityConfig(min_observation_alt_deg=-10.0)
    star = StarCoordinate(0.0, -88.0)
    day = date(2024, 12, 15)
    window = tonight_viewing_window(star, location, day, cfg)
    assert window is not None
    assert (window.start, window.end) == darkness_bounds(location, day, cfg)
