# geo/regions.py
"""
Rule-based region labels from tweet coordinates.

Rules are evaluated in order and the first match wins:
  lat >= 35 and lon <= -90  -> West
  lat >= 35 and lon >  -90  -> East
  lat <  35                 -> South
  otherwise                 -> Other

The first three rules already cover every non-NaN latitude, so "Other" is
never produced for valid coordinates. It is kept as the last rule so that
the label set stays fixed.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

LAT_SPLIT = 35.0
LON_SPLIT = -90.0

REGIONS = ("West", "East", "South", "Other")
FALLBACK_REGION = "Other"

REGION_DTYPE = pd.CategoricalDtype(categories=list(REGIONS), ordered=False)


def label_region(lat: float, lon: float) -> str:
    if lat >= LAT_SPLIT and lon <= LON_SPLIT:
        return "West"
    if lat >= LAT_SPLIT and lon > LON_SPLIT:
        return "East"
    if lat < LAT_SPLIT:
        return "South"
    return FALLBACK_REGION


def label_regions(
    df: pd.DataFrame,
    lat_col: str = "latitude",
    lon_col: str = "longitude",
    out_col: str = "region",
) -> pd.DataFrame:
    """Return a copy of df with a categorical region column (same rule order as label_region)."""
    lat = df[lat_col].to_numpy(dtype=float)
    lon = df[lon_col].to_numpy(dtype=float)

    conditions = [
        (lat >= LAT_SPLIT) & (lon <= LON_SPLIT),
        (lat >= LAT_SPLIT) & (lon > LON_SPLIT),
        lat < LAT_SPLIT,
    ]
    labels = np.select(conditions, ["West", "East", "South"], default=FALLBACK_REGION)

    out = df.copy()
    out[out_col] = pd.Categorical(labels, dtype=REGION_DTYPE)
    return out
