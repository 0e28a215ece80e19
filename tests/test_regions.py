# tests/test_regions.py
import numpy as np
import pandas as pd
import pytest

from src.geo.regions import REGIONS, label_region, label_regions


@pytest.mark.parametrize(
    "lat, lon, expected",
    [
        (47.6, -122.3, "West"),
        (35.0, -90.0, "West"),     # both boundaries are inclusive for West
        (40.7, -74.0, "East"),
        (35.0, -89.999, "East"),
        (25.8, -80.2, "South"),
        (34.999, -150.0, "South"),
        (-33.9, 151.2, "South"),   # any latitude below 35, whatever the longitude
        (90.0, 180.0, "East"),
        (-90.0, -180.0, "South"),
    ],
)
def test_label_region_rules(lat, lon, expected):
    assert label_region(lat, lon) == expected


def test_other_is_never_returned_for_valid_coordinates():
    lats = np.linspace(-90, 90, 181)
    lons = np.linspace(-180, 180, 181)
    labels = {label_region(lat, lon) for lat in lats for lon in lons}
    assert "Other" not in labels
    assert labels == {"West", "East", "South"}


def test_label_regions_matches_scalar_rules():
    rng = np.random.default_rng(0)
    df = pd.DataFrame({
        "latitude": rng.uniform(-90, 90, size=500),
        "longitude": rng.uniform(-180, 180, size=500),
    })
    out = label_regions(df)

    expected = [label_region(lat, lon) for lat, lon in zip(df["latitude"], df["longitude"])]
    assert out["region"].astype(str).tolist() == expected
    assert list(out["region"].cat.categories) == list(REGIONS)
    # input is left untouched
    assert "region" not in df.columns


def test_label_regions_nan_falls_through_to_other():
    df = pd.DataFrame({"latitude": [np.nan], "longitude": [np.nan]})
    assert label_regions(df)["region"].iloc[0] == "Other"
