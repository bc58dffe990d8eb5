"""Input helpers for saved-star tables.

The host application hands over the user's saved stars as rows of
``(id, display name, RA, Dec)``.  Column names vary between exports, and
coordinates arrive as degrees or as sexagesimal strings; this module resolves
both into a canonical table with ``star_id``, ``name``, ``ra_deg`` and
``dec_deg``.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import List, Optional, Tuple

import astropy.units as u
import numpy as np
import pandas as pd
from astropy.coordinates import Angle

from .models import StarCoordinate

_ID_SYNONYMS = ["star_id", "id", "uid", "starid"]
_NAME_SYNONYMS = ["name", "display_name", "star_name", "label", "star"]
_RA_SYNONYMS = ["ra_deg", "ra", "right_ascension", "raj2000", "alpha"]
_DEC_SYNONYMS = ["dec_deg", "dec", "declination", "dej2000", "decj2000", "delta"]

CANONICAL_COLUMNS = ["star_id", "name", "ra_deg", "dec_deg"]


def _normalize_col_names(names):
    """Return ``(original, key)`` pairs with keys lowercased and alphanumeric only."""
    return [(n, "".join(ch for ch in str(n).lower() if ch.isalnum())) for n in names]


def _fuzzy_pick(df: pd.DataFrame, synonyms: List[str]) -> Optional[str]:
    """Select a column whose normalized name matches any synonym.

    Parameters
    ----------
    df : pandas.DataFrame
        Input table to search.
    synonyms : list[str]
        Candidate names to match against, in order of preference.

    Returns
    -------
    str or None
        The first matching column name, or ``None`` if no match is found.
    """
    canon = dict(_normalize_col_names(df.columns))
    for syn in synonyms:
        syn_key = "".join(ch for ch in syn.lower() if ch.isalnum())
        for orig, key in canon.items():
            if key == syn_key:
                return orig
    return None


def resolve_columns(
    df: pd.DataFrame,
) -> Tuple[Optional[str], Optional[str], str, str]:
    """Determine key column names in a saved-star table.

    Returns
    -------
    tuple
        ``(id_col, name_col, ra_col, dec_col)``; the first two may be ``None``.
        Raises ``KeyError`` if RA or Dec cannot be found.
    """
    id_col = _fuzzy_pick(df, _ID_SYNONYMS)
    name_col = _fuzzy_pick(df, _NAME_SYNONYMS)
    ra_col = _fuzzy_pick(df, _RA_SYNONYMS)
    dec_col = _fuzzy_pick(df, _DEC_SYNONYMS)

    missing = []
    if ra_col is None:
        missing.append("RA")
    if dec_col is None:
        missing.append("Dec")
    if missing:
        raise KeyError(
            f"Required column(s) not found or auto-detected: {', '.join(missing)}. "
            f"Available columns: {list(df.columns)}"
        )
    return id_col, name_col, ra_col, dec_col


def _parse_ra_value(val) -> float:
    """Convert a single right ascension value to degrees.

    Numbers (and numeric strings) are degrees.  Sexagesimal strings with a
    colon or an ``h`` marker are hours (``"02:31:49"``, ``"2h31m49s"``);
    other strings are parsed as angles in degrees.  Returns ``numpy.nan`` if
    parsing fails.
    """
    if pd.isna(val):
        return np.nan
    if isinstance(val, (float, int, np.floating, np.integer)):
        return float(val)
    s = str(val).strip()
    try:
        return float(s)
    except ValueError:
        pass
    try:
        if ":" in s or "h" in s.lower():
            return float(Angle(s, unit=u.hourangle).to(u.deg).value)
        return float(Angle(s, unit=u.deg).value)
    except Exception:
        return np.nan


def _parse_dec_value(val) -> float:
    """Convert a single declination value to degrees (``numpy.nan`` on failure)."""
    if pd.isna(val):
        return np.nan
    if isinstance(val, (float, int, np.floating, np.integer)):
        return float(val)
    s = str(val).strip()
    try:
        return float(s)
    except ValueError:
        pass
    try:
        return float(Angle(s, unit=u.deg).value)
    except Exception:
        return np.nan


def standardize_saved_stars(df: pd.DataFrame) -> pd.DataFrame:
    """Return the canonical saved-star table.

    Rows whose coordinates cannot be parsed or fall outside the valid ranges
    are dropped with a :class:`UserWarning` naming them.  RA is wrapped into
    ``[0, 360)``.  Missing ids become ``star_00000``-style labels; missing
    names fall back to the id.
    """
    id_col, name_col, ra_col, dec_col = resolve_columns(df)
    out = pd.DataFrame(index=df.index)
    if id_col is not None:
        out["star_id"] = df[id_col].astype(str)
    else:
        out["star_id"] = [f"star_{i:05d}" for i in range(len(df))]
    if name_col is not None:
        names = df[name_col]
        out["name"] = names.where(names.notna(), out["star_id"]).astype(str)
    else:
        out["name"] = out["star_id"]
    out["ra_deg"] = df[ra_col].apply(_parse_ra_value).astype(float)
    out["dec_deg"] = df[dec_col].apply(_parse_dec_value).astype(float)

    valid = []
    for ra, dec in zip(out["ra_deg"], out["dec_deg"]):
        try:
            StarCoordinate(ra, dec)
        except ValueError:
            valid.append(False)
        else:
            valid.append(True)
    mask = np.asarray(valid, dtype=bool)
    if not mask.all():
        dropped = out.loc[~mask, "star_id"].tolist()
        warnings.warn(
            f"Dropping {len(dropped)} saved star(s) with invalid coordinates: "
            f"{dropped}",
            UserWarning,
            stacklevel=2,
        )
    out = out.loc[mask].copy()
    out["ra_deg"] = out["ra_deg"] % 360.0
    return out.reset_index(drop=True)[CANONICAL_COLUMNS]


def read_saved_stars(source) -> pd.DataFrame:
    """Load a saved-star table from a CSV path or an existing DataFrame."""
    if isinstance(source, pd.DataFrame):
        df = source
    else:
        df = pd.read_csv(Path(source))
    return standardize_saved_stars(df)
