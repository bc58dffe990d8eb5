"""Sweep saved stars and plan rising alerts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from tqdm.auto import tqdm

from . import constraints
from .astro_utils import as_utc, equatorial_to_horizontal, solar_timezone
from .config import VisibilityConfig, resolve_config
from .formatting import direction_name, format_hhmm, format_window
from .horizon import star_altaz
from .models import GeoLocation, StarCoordinate, VisibilityStatus
from .scheduler import next_viewing_window, visibility_info

SWEEP_COLUMNS = [
    "star_id",
    "name",
    "ra_deg",
    "dec_deg",
    "status",
    "is_visible_now",
    "altitude_deg",
    "azimuth_deg",
    "direction",
    "window_start",
    "window_end",
    "window_str",
    "alert_at",
    "alert_title",
    "alert_body",
]


@dataclass(frozen=True)
class AlertPlan:
    """A one-shot notification for the next time a star becomes visible."""

    fire_at: datetime
    visible_from: datetime
    visible_until: Optional[datetime]
    direction: str
    title: str
    body: str


def plan_alert(
    star: StarCoordinate,
    location: GeoLocation,
    name: str,
    now,
    cfg: VisibilityConfig | None = None,
    tz: tzinfo | None = None,
) -> Optional[AlertPlan]:
    """Plan the "rising" notification for ``star``.

    The alert fires ``cfg.alert_lead_min`` minutes before the next viewing
    window opens.  ``None`` when there is no upcoming window or the fire time
    has already passed.
    """

    cfg = resolve_config(cfg)
    t = as_utc(now)
    tz = tz or solar_timezone(location.lon_deg)
    window = next_viewing_window(star, location, t, cfg)
    if window is None:
        return None
    fire_at = window.start - timedelta(minutes=cfg.alert_lead_min)
    if fire_at <= t:
        return None
    _, az = star_altaz(star, location, window.start)
    direction = direction_name(az)
    body = f"Your star is now visible in the {direction} sky."
    if window.end is not None:
        body += f" Best viewing until {format_hhmm(window.end, tz)}."
    return AlertPlan(
        fire_at=fire_at,
        visible_from=window.start,
        visible_until=window.end,
        direction=direction,
        title=f"{name} is rising!",
        body=body,
    )


def sweep_saved_stars(
    stars: pd.DataFrame,
    location: GeoLocation,
    now,
    cfg: VisibilityConfig | None = None,
    tz: tzinfo | None = None,
    verbose: bool = False,
) -> pd.DataFrame:
    """Visibility status, window and alert for every saved star.

    Parameters
    ----------
    stars : pandas.DataFrame
        Canonical table from :func:`.io_utils.read_saved_stars`.
    location : GeoLocation
        Observer position.
    now : datetime-like
        Reference instant.
    cfg : VisibilityConfig, optional
        Thresholds and search limits.
    tz : tzinfo, optional
        Display zone for the window strings; local solar time by default.
    verbose : bool, optional
        Print a per-status summary and show a progress bar.

    Returns
    -------
    pandas.DataFrame
        One row per star with the columns in :data:`SWEEP_COLUMNS`.
    """

    cfg = resolve_config(cfg)
    t = as_utc(now)
    tz = tz or solar_timezone(location.lon_deg)
    if stars.empty:
        return pd.DataFrame(columns=SWEEP_COLUMNS)

    ra = stars["ra_deg"].to_numpy(dtype=float)
    dec = stars["dec_deg"].to_numpy(dtype=float)
    alt, az, _ = equatorial_to_horizontal(
        ra, dec, location.lat_deg, location.lon_deg, t
    )
    alt = np.atleast_1d(alt)
    az = np.atleast_1d(az)
    hopeless = np.array(
        [
            constraints.never_rises(d, location.lat_deg, cfg.min_observation_alt_deg)
            for d in dec
        ],
        dtype=bool,
    )

    rows = []
    iterator = zip(stars.itertuples(index=False), alt, az, hopeless)
    if verbose:
        iterator = tqdm(iterator, total=len(stars), desc="Stars", unit="star")
    for rec, alt_i, az_i, skip in iterator:
        row: Dict[str, Any] = {
            "star_id": rec.star_id,
            "name": rec.name,
            "ra_deg": float(rec.ra_deg),
            "dec_deg": float(rec.dec_deg),
        }
        if skip:
            row.update(
                status=VisibilityStatus.NEVER_VISIBLE.value,
                is_visible_now=False,
                altitude_deg=float(alt_i),
                azimuth_deg=float(az_i),
                direction=direction_name(az_i),
                window_start=pd.NaT,
                window_end=pd.NaT,
                window_str=None,
                alert_at=pd.NaT,
                alert_title=None,
                alert_body=None,
            )
            rows.append(row)
            continue

        star = StarCoordinate(rec.ra_deg, rec.dec_deg)
        info = visibility_info(star, location, t, cfg, tz)
        alert = None
        if not info.is_visible_now:
            alert = plan_alert(star, location, rec.name, t, cfg, tz)
        window = info.window
        row.update(
            status=info.status.value,
            is_visible_now=info.is_visible_now,
            altitude_deg=info.altitude_deg,
            azimuth_deg=info.azimuth_deg,
            direction=info.direction,
            window_start=pd.NaT if window is None else pd.Timestamp(window.start),
            window_end=(
                pd.NaT
                if window is None or window.end is None
                else pd.Timestamp(window.end)
            ),
            window_str=format_window(window, t, tz),
            alert_at=pd.NaT if alert is None else pd.Timestamp(alert.fire_at),
            alert_title=None if alert is None else alert.title,
            alert_body=None if alert is None else alert.body,
        )
        rows.append(row)

    out = pd.DataFrame(rows, columns=SWEEP_COLUMNS)
    if verbose:
        for status, count in summarize_sweep(out).items():
            print(f"{status:>14}: {count}")
    return out


def summarize_sweep(sweep: pd.DataFrame) -> Dict[str, int]:
    """Count stars per status, listing every status even when absent."""

    counts = sweep["status"].value_counts() if len(sweep) else pd.Series(dtype=int)
    return {s.value: int(counts.get(s.value, 0)) for s in VisibilityStatus}


def write_sweep(sweep: pd.DataFrame, outdir: str | Path | None = None) -> Path:
    """Write ``star_visibility.csv`` into ``outdir`` and return its path."""

    out_dir = Path(outdir or ".")
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / "star_visibility.csv"
    sweep.to_csv(out_path, index=False)
    return out_path
