"""Presentation helpers: compass directions and clock strings.

Conversion to a viewer's wall clock happens only here; callers pass the
``tzinfo`` they want (UTC by default).
"""

from __future__ import annotations

import math
from datetime import date, datetime, timezone, tzinfo
from typing import Optional

from .astro_utils import as_utc
from .models import ViewingWindow

DIRECTIONS = (
    "north",
    "northeast",
    "east",
    "southeast",
    "south",
    "southwest",
    "west",
    "northwest",
)


def direction_name(azimuth_deg: float) -> str:
    """Map an azimuth to one of 8 compass points.

    Each sector is 45 degrees wide and centred on its point, so ``north``
    covers ``[337.5, 22.5)``.  A boundary azimuth belongs to the sector
    clockwise of it (``22.5`` is ``northeast``).
    """

    index = int(math.floor(((float(azimuth_deg) + 22.5) % 360.0) / 45.0))
    return DIRECTIONS[index % 8]


def format_hhmm(moment, tz: tzinfo | None = None) -> str:
    """``HH:MM`` of ``moment`` in ``tz`` (seconds truncated)."""

    return as_utc(moment).astimezone(tz or timezone.utc).strftime("%H:%M")


def _reference_date(reference, tz: tzinfo) -> date:
    if isinstance(reference, datetime) or not isinstance(reference, date):
        return as_utc(reference).astimezone(tz).date()
    return reference


def format_time_with_day_offset(
    moment, reference, tz: tzinfo | None = None
) -> str:
    """``HH:MM`` with a ``" (+N)"`` suffix when ``moment`` falls N days after ``reference``.

    ``reference`` is a calendar date or an instant (whose date in ``tz`` is
    used).  Earlier days get a negative suffix such as ``" (-1)"``.
    """

    tz = tz or timezone.utc
    local = as_utc(moment).astimezone(tz)
    days = (local.date() - _reference_date(reference, tz)).days
    text = local.strftime("%H:%M")
    if days == 0:
        return text
    return f"{text} ({days:+d})"


def format_window(
    window: Optional[ViewingWindow], reference, tz: tzinfo | None = None
) -> Optional[str]:
    """Render a window as ``"18:30 - 05:30 (+1)"``; ``None`` for no window."""

    if window is None:
        return None
    start = format_time_with_day_offset(window.start, reference, tz)
    if window.end is None:
        return start
    return f"{start} - {format_time_with_day_offset(window.end, reference, tz)}"
