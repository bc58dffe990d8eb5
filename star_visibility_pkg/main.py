"""Command-line entry point for the star visibility sweep.

Usage (example):
    python -m star_visibility_pkg.main \
        --csv saved_stars.csv \
        --out out \
        --lat 48.8566 --lon 2.3522 \
        --at 2024-12-15T21:00:00Z
"""

import argparse
from datetime import datetime, timezone

import pandas as pd

from .config import VisibilityConfig
from .io_utils import read_saved_stars
from .models import GeoLocation
from .reports import summarize_sweep, sweep_saved_stars, write_sweep


def build_parser():
    """Construct the command-line argument parser.

    Returns
    -------
    argparse.ArgumentParser
        Parser configured with all sweep options.
    """
    p = argparse.ArgumentParser(description="Saved-star visibility sweep")
    p.add_argument("--csv", required=True, help="Path to CSV of saved stars")
    p.add_argument("--out", required=True, help="Output directory for CSV results")
    # Observer
    p.add_argument("--lat", type=float, required=True, help="Latitude (deg, north +)")
    p.add_argument("--lon", type=float, required=True, help="Longitude (deg, east +)")
    # Optional knobs
    p.add_argument(
        "--at",
        default=None,
        help="Reference instant (ISO 8601; naive means UTC). Defaults to now.",
    )
    p.add_argument(
        "--min-alt",
        type=float,
        default=10.0,
        help="Minimum altitude (deg) for a star to count as observable",
    )
    p.add_argument(
        "--lead-min",
        type=float,
        default=30.0,
        help="Minutes before a window opens to fire the rising alert",
    )
    p.add_argument("--verbose", action="store_true")
    return p


def parse_instant(s: str | None) -> datetime:
    """Parse an ISO 8601 instant into an aware UTC datetime.

    ``None`` or an empty string means the current time.  Raises
    ``ValueError`` for unparseable input.
    """
    if s is None or not s.strip():
        return datetime.now(timezone.utc)
    ts = pd.Timestamp(s.strip())
    if ts is pd.NaT:
        raise ValueError(f"Cannot parse instant: {s!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert("UTC").to_pydatetime()


def main():
    """Run the command-line sweep.

    Parses arguments, builds a :class:`VisibilityConfig`, and writes
    ``star_visibility.csv`` to the output directory.
    """
    args = build_parser().parse_args()
    cfg = VisibilityConfig(
        min_observation_alt_deg=args.min_alt,
        alert_lead_min=args.lead_min,
    )
    location = GeoLocation(args.lat, args.lon)
    now = parse_instant(args.at)
    stars = read_saved_stars(args.csv)
    sweep = sweep_saved_stars(stars, location, now, cfg=cfg, verbose=args.verbose)
    out_path = write_sweep(sweep, args.out)
    if args.verbose:
        counts = summarize_sweep(sweep)
        print(f"Wrote {len(sweep)} star(s) to {out_path}: {counts}")
    return out_path


if __name__ == "__main__":
    main()
