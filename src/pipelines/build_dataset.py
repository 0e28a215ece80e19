#!/usr/bin/env python3
"""
Build a region-labeled, class-balanced tweet sample from the raw geospatial CSV.

- Loads the delimited tweet file and remaps its first four columns to
  longitude, latitude, text_field, category_field
- Drops rows with missing or out-of-range coordinates
- Labels every tweet with a region derived from its coordinates
- Draws at most --per-class-cap tweets per region (seeded)
- Writes a tidy parquet suitable for model training

Only the sampled rows are written: vectorizing millions of tweets into TF-IDF
features does not fit in memory, so sampling happens before training.

Example:
    python -m src.pipelines.build_dataset \
        --input data/twitter.csv \
        --out data/processed/tweets_sampled.parquet \
        --per-class-cap 500 \
        --seed 42
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from src.geo.regions import label_regions
from src.modeling.errors import DataValidationError, PipelineError
from src.modeling.sampling import stratified_sample


# --------------------------------------------------------------------------------------
# Configuration
# --------------------------------------------------------------------------------------

DEFAULT_INPUT = Path("data/twitter.csv")
DEFAULT_OUT = Path("data/processed/tweets_sampled.parquet")
DEFAULT_PER_CLASS_CAP = 500
DEFAULT_SEED = 42

CANONICAL_COLUMNS = ("longitude", "latitude", "text_field", "category_field")
LON_RANGE = (-180.0, 180.0)
LAT_RANGE = (-90.0, 90.0)


# --------------------------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------------------------

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    fmt = "%(asctime)s | %(levelname)-8s | %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt)


# --------------------------------------------------------------------------------------
# Data classes
# --------------------------------------------------------------------------------------

@dataclass(frozen=True)
class BuildConfig:
    input_path: Path = DEFAULT_INPUT
    out_path: Path = DEFAULT_OUT
    per_class_cap: int = DEFAULT_PER_CLASS_CAP
    seed: int = DEFAULT_SEED
    # source column name -> canonical name; None remaps the first four columns by position
    columns: Optional[Dict[str, str]] = None


# --------------------------------------------------------------------------------------
# Utilities
# --------------------------------------------------------------------------------------

def _ensure_columns(df: pd.DataFrame, required: Sequence[str], df_name: str) -> None:
    missing = set(required) - set(df.columns)
    if missing:
        raise DataValidationError(f"{df_name} missing required columns: {sorted(missing)}")


def normalize_columns(df: pd.DataFrame, columns: Optional[Dict[str, str]] = None) -> pd.DataFrame:
    """
    Return a DataFrame with exactly the canonical columns
    ['longitude', 'latitude', 'text_field', 'category_field'].

    - With a mapping, source columns are renamed to canonical names
    - Without one, the first four columns are taken in order
    - Coordinates are coerced to float (unparseable values become NaN)
    - text_field and category_field are kept as strings
    """
    if columns:
        _ensure_columns(df, columns.keys(), "tweets")
        df = df.rename(columns=columns)
        _ensure_columns(df, CANONICAL_COLUMNS, "tweets")
    else:
        if df.shape[1] < len(CANONICAL_COLUMNS):
            raise DataValidationError(
                f"tweets need at least {len(CANONICAL_COLUMNS)} columns, got {df.shape[1]}: {list(df.columns)}"
            )
        df = df.iloc[:, : len(CANONICAL_COLUMNS)].copy()
        df.columns = list(CANONICAL_COLUMNS)

    df = df[list(CANONICAL_COLUMNS)].copy()
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
    # timestamps and other non-text fields are used as plain strings
    df["text_field"] = df["text_field"].astype("string").fillna("").astype(str)
    df["category_field"] = df["category_field"].astype("string").fillna("").astype(str)
    return df


def filter_coordinates(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows whose coordinates are missing or outside the valid lon/lat ranges."""
    keep = (
        df["longitude"].notna()
        & df["latitude"].notna()
        & df["longitude"].between(*LON_RANGE)
        & df["latitude"].between(*LAT_RANGE)
    )
    dropped = int((~keep).sum())
    if dropped:
        logger.info("Dropped %d rows with missing or out-of-range coordinates", dropped)
    return df.loc[keep]


def validate_records(df: pd.DataFrame) -> None:
    """Raise DataValidationError if any coordinate is null or out of range."""
    _ensure_columns(df, CANONICAL_COLUMNS, "tweets")
    for col, (lo, hi) in (("longitude", LON_RANGE), ("latitude", LAT_RANGE)):
        values = df[col]
        bad = values.isna() | ~values.between(lo, hi)
        if bad.any():
            first = df.index[bad.to_numpy()][0]
            raise DataValidationError(
                f"{int(bad.sum())} rows have invalid {col} (expected [{lo}, {hi}]); "
                f"first at index {first}: {values.loc[first]!r}"
            )


def region_counts(df: pd.DataFrame, col: str = "region") -> pd.Series:
    """Number of records per region, regions with zero records omitted."""
    counts = df[col].value_counts(sort=False)
    return counts[counts > 0].sort_index()


def load_records(path: Path, columns: Optional[Dict[str, str]] = None) -> pd.DataFrame:
    """Read the raw tweet file and return validated, canonical records."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Tweet data not found: {path} (run the fetch_dataset stage first)")

    logger.info("Loading tweets from %s", path)
    raw = pd.read_csv(path)
    df = filter_coordinates(normalize_columns(raw, columns))
    validate_records(df)
    logger.info("Loaded %d valid records (of %d rows)", len(df), len(raw))
    return df


# --------------------------------------------------------------------------------------
# Pipeline
# --------------------------------------------------------------------------------------

def prepare_records(df: pd.DataFrame, per_class_cap: int, seed: int) -> pd.DataFrame:
    """Label regions on canonical records and draw the per-region sample."""
    labeled = label_regions(df)
    for region, n in region_counts(labeled).items():
        logger.info("  %-6s %d records", region, n)

    sampled = stratified_sample(labeled, per_class_cap=per_class_cap, seed=seed)
    logger.info("Sampled %d records (cap %d per region, seed %d)", len(sampled), per_class_cap, seed)
    return sampled


def build_dataset(cfg: BuildConfig) -> pd.DataFrame:
    """Run the full pipeline and write the parquet."""
    records = load_records(cfg.input_path, cfg.columns)
    if records.empty:
        raise DataValidationError(f"No valid records found in {cfg.input_path}")

    sampled = prepare_records(records, cfg.per_class_cap, cfg.seed)

    out_path = Path(cfg.out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    sampled.to_parquet(out_path, index=True)
    logger.info("Wrote %d rows → %s", len(sampled), out_path)
    return sampled


# --------------------------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------------------------

def _parse_column_map(value: Optional[str]) -> Optional[Dict[str, str]]:
    """'lon,lat,ts,tz' -> {'lon': 'longitude', 'lat': 'latitude', ...}"""
    if not value:
        return None
    names = [v.strip() for v in value.split(",") if v.strip()]
    if len(names) != len(CANONICAL_COLUMNS):
        raise argparse.ArgumentTypeError(
            f"--columns needs {len(CANONICAL_COLUMNS)} names (longitude,latitude,text,category), got {names}"
        )
    return dict(zip(names, CANONICAL_COLUMNS))


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Build a region-labeled, sampled tweet dataset.")
    p.add_argument("--input", type=Path, default=DEFAULT_INPUT, help="Path to the raw tweet CSV.")
    p.add_argument("--out", type=Path, default=DEFAULT_OUT, help="Output parquet path.")
    p.add_argument("--per-class-cap", type=int, default=DEFAULT_PER_CLASS_CAP,
                   help="Maximum tweets sampled per region.")
    p.add_argument("--seed", type=int, default=DEFAULT_SEED, help="Random seed for sampling.")
    p.add_argument("--columns", type=_parse_column_map, default=None,
                   help="Source column names for longitude,latitude,text,category "
                        "(default: first four columns in order).")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))
    cfg = BuildConfig(
        input_path=args.input,
        out_path=args.out,
        per_class_cap=args.per_class_cap,
        seed=args.seed,
        columns=args.columns,
    )
    try:
        build_dataset(cfg)
    except (FileNotFoundError, PipelineError) as e:
        logger.error("build_dataset failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
