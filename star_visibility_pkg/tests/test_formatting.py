import pathlib
import sys
from datetime import date, datetime, timezone

import pytest

# Ensure package root is importable
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[2]))

from star_visibility_pkg.astro_utils import solar_timezone
from star_visibility_pkg.formatting import (
    DIRECTIONS,
    direction_name,
    format_hhmm,
    format_time_with_day_offset,
    format_window,
)
from star_visibility_pkg.models import ViewingWindow


@pytest.mark.parametrize(
    "azimuth, expected",
    [
        (0.0, "north"),
        (22.4, "north"),
        (22.5, "northeast"),
        (67.5, "east"),
        (90.0, "east"),
        (112.5, "southeast"),
        (157.5, "south"),
        (180.0, "south"),
        (202.5, "southwest"),
        (247.5, "west"),
        (292.5, "northwest"),
        (337.4, "northwest"),
        (337.5, "north"),
        (359.9, "north"),
        (360.0, "north"),
        (-10.0, "north"),
        (-90.0, "west"),
        (720.0 + 45.0, "northeast"),
    ],
)
def test_direction_name_sectors(azimuth, expected):
    assert direction_name(azimuth) == expected


def test_every_direction_reachable():
    assert {direction_name(az) for az in range(0, 360, 45)} == set(DIRECTIONS)


def test_format_hhmm_truncates_seconds():
    t = datetime(2024, 12, 15, 12, 34, 59, tzinfo=timezone.utc)
    assert format_hhmm(t) == "12:34"
    assert format_hhmm(t, solar_timezone(15.0)) == "13:34"


def test_day_offset_suffix():
    ref = date(2024, 12, 15)
    assert format_time_with_day_offset(datetime(2024, 12, 15, 21, 5, tzinfo=timezone.utc), ref) == "21:05"
    assert (
        format_time_with_day_offset(datetime(2024, 12, 16, 1, 30, tzinfo=timezone.utc), ref)
        == "01:30 (+1)"
    )
    assert (
        format_time_with_day_offset(datetime(2024, 12, 17, 1, 30, tzinfo=timezone.utc), ref)
        == "01:30 (+2)"
    )
    assert (
        format_time_with_day_offset(datetime(2024, 12, 14, 23, 0, tzinfo=timezone.utc), ref)
        == "23:00 (-1)"
    )


def test_day_offset_uses_display_zone():
    tz = solar_timezone(15.0)
    moment = datetime(2024, 12, 15, 23, 30, tzinfo=timezone.utc)
    assert format_time_with_day_offset(moment, date(2024, 12, 15), tz) == "00:30 (+1)"
    reference = datetime(2024, 12, 15, 20, 0, tzinfo=timezone.utc)
    assert format_time_with_day_offset(moment, reference, tz) == "00:30 (+1)"


def test_format_window():
    ref = date(2024, 12, 15)
    window = ViewingWindow(
        datetime(2024, 12, 15, 18, 30, tzinfo=timezone.utc),
        datetime(2024, 12, 16, 5, 30, tzinfo=timezone.utc),
    )
    assert format_window(window, ref) == "18:30 - 05:30 (+1)"
    open_ended = ViewingWindow(datetime(2024, 12, 15, 18, 30, tzinfo=timezone.utc))
    assert format_window(open_ended, ref) == "18:30"
    assert format_window(None, ref) is None
