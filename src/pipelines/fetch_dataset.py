#!/usr/bin/env python3
"""
pipelines/fetch_dataset.py

Download the UCI "Twitter Geospatial Data" archive and extract the tweet CSV.
- The archive nests a zip inside a zip; layers are extracted until a CSV appears
- Idempotent: an existing archive is not downloaded again, and an existing CSV
  is returned without extracting
- Resilient: retries + linear backoff on failed downloads

Usage:
  python -m src.pipelines.fetch_dataset \
      --out-dir data \
      --url https://archive.ics.uci.edu/static/public/1050/twitter+geospatial+data.zip

Notes:
- The archive is large; the default request timeout is 10 minutes.
- The modeling stages never call this module: they only need the CSV on disk.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

import requests


# -----------------------
# Logging configuration
# -----------------------
def setup_logging(level: int = logging.INFO) -> None:
    fmt = "%(asctime)s | %(levelname)-8s | %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt)


# -----------------------
# Helpers
# -----------------------
DATASET_URL = "https://archive.ics.uci.edu/static/public/1050/twitter+geospatial+data.zip"
ARCHIVE_NAME = "twitter_geospatial_data.zip"
MAX_ZIP_LAYERS = 5
CHUNK_SIZE = 1 << 20


def find_csvs(directory: Path) -> List[Path]:
    return sorted(p for p in directory.glob("*.csv") if p.is_file())


def extract_nested(archive: Path, out_dir: Path, max_layers: int = MAX_ZIP_LAYERS) -> List[Path]:
    """
    Extract archive into out_dir, then keep extracting any zip it contained
    until CSV files are present. Returns the CSV paths found.
    """
    pending = [archive]
    seen = set()
    for layer in range(1, max_layers + 1):
        nested: List[Path] = []
        for zpath in pending:
            with zipfile.ZipFile(zpath) as zf:
                members = zf.namelist()
                zf.extractall(out_dir)
            seen.add(zpath.resolve())
            logging.info("Unzip layer %d complete: %s (%d members)", layer, zpath.name, len(members))
            nested.extend(
                out_dir / m for m in members
                if m.lower().endswith(".zip") and (out_dir / m).resolve() not in seen
            )
        csvs = find_csvs(out_dir)
        if csvs:
            return csvs
        if not nested:
            break
        pending = nested
    raise FileNotFoundError(f"No CSV found after extracting {archive} into {out_dir}")


# -----------------------
# Core fetch logic
# -----------------------
@dataclass
class FetchConfig:
    out_dir: Path
    url: str = DATASET_URL
    archive_name: str = ARCHIVE_NAME
    retries: int = 3
    backoff: float = 1.25  # seconds multiplier between retries
    timeout: float = 600.0

    @property
    def archive_path(self) -> Path:
        return self.out_dir / self.archive_name


def download_file(cfg: FetchConfig, dest: Path) -> Path:
    """Stream cfg.url to dest with basic retry/backoff. Writes via a .part file."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    tmp = dest.with_name(dest.name + ".part")
    last_error: Optional[Exception] = None

    for attempt in range(cfg.retries):
        try:
            with requests.get(cfg.url, stream=True, timeout=cfg.timeout) as r:
                r.raise_for_status()
                with open(tmp, "wb") as f:
                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            f.write(chunk)
            tmp.replace(dest)
            return dest
        except requests.RequestException as e:
            last_error = e
            wait_s = (attempt + 1) * cfg.backoff
            logging.warning("Download failed (attempt %d/%d): %s. Sleeping %.2fs…",
                            attempt + 1, cfg.retries, e, wait_s)
            time.sleep(wait_s)

    if tmp.exists():
        tmp.unlink()
    raise RuntimeError(f"Download of {cfg.url} failed after {cfg.retries} attempts: {last_error}")


def fetch_dataset(cfg: FetchConfig) -> Path:
    """Make sure the tweet CSV exists under cfg.out_dir and return its path."""
    csvs = find_csvs(cfg.out_dir) if cfg.out_dir.exists() else []
    if csvs:
        logging.info("CSV files already extracted: %s", ", ".join(p.name for p in csvs))
        return csvs[0]

    archive = cfg.archive_path
    if archive.exists():
        logging.info("Dataset already downloaded: %s", archive)
    else:
        logging.info("Downloading dataset from %s", cfg.url)
        download_file(cfg, archive)
        logging.info("Download complete: %s", archive)

    csvs = extract_nested(archive, cfg.out_dir)
    return csvs[0]


# -----------------------
# CLI / Main
# -----------------------
def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Download and extract the Twitter geospatial dataset.")
    p.add_argument("--url", default=DATASET_URL, help="Dataset archive URL.")
    p.add_argument("--out-dir", default="data", help="Directory for the archive and extracted CSV")
    p.add_argument("--retries", type=int, default=3, help="Download attempts before giving up")
    p.add_argument("--timeout", type=float, default=600.0, help="Request timeout in seconds")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(list(argv) if argv is not None else None)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))

    cfg = FetchConfig(
        out_dir=Path(args.out_dir),
        url=args.url,
        retries=args.retries,
        timeout=args.timeout,
    )

    try:
        path = fetch_dataset(cfg)
    except (RuntimeError, FileNotFoundError, zipfile.BadZipFile) as e:
        logging.error("Fetch failed: %s", e)
        return 1
    logging.info("Done. Tweet data → %s", path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
