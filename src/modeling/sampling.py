# modeling/sampling.py
"""
Stratified sampling and train/test splitting.

Both functions draw per stratum with a numpy Generator seeded by the caller,
so the result only depends on the seed and the input row order. The original
row index is kept as the record identity.
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np
import pandas as pd

from .errors import ConfigurationError, DataValidationError

logger = logging.getLogger(__name__)

DEFAULT_STRATA = "region"
DEFAULT_TRAIN_FRACTION = 0.8


def _groups(data: pd.DataFrame, strata: str):
    if strata not in data.columns:
        raise DataValidationError(f"Strata column {strata!r} not found in columns {list(data.columns)}")
    missing = data[strata].isna()
    if missing.any():
        first = data.index[missing.to_numpy()][0]
        raise DataValidationError(
            f"{int(missing.sum())} rows have no {strata!r} value; first at index {first}"
        )
    # observed=True skips unused categories (e.g. the never-produced "Other" region)
    return data.groupby(strata, sort=True, observed=True)


def stratified_sample(
    data: pd.DataFrame,
    per_class_cap: int,
    seed: int,
    strata: str = DEFAULT_STRATA,
) -> pd.DataFrame:
    """
    Draw min(per_class_cap, group size) rows without replacement from every stratum.

    Strata are visited in sorted order and each one is sampled on its own, so
    a large group never crowds out a small one.
    """
    if per_class_cap < 1:
        raise ConfigurationError(f"per_class_cap must be >= 1, got {per_class_cap}")

    rng = np.random.default_rng(seed)
    parts = []
    for key, group in _groups(data, strata):
        take = min(per_class_cap, len(group))
        parts.append(group.sample(n=take, replace=False, random_state=rng))
        logger.debug("Sampled %d/%d rows for %s=%s", take, len(group), strata, key)

    if not parts:
        return data.iloc[0:0].copy()
    return pd.concat(parts)


def stratified_split(
    data: pd.DataFrame,
    train_fraction: float = DEFAULT_TRAIN_FRACTION,
    strata: str = DEFAULT_STRATA,
    seed: int = 42,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Partition data into (train, test) keeping each stratum's share in both parts.

    Per stratum, round(n * train_fraction) rows go to train, clamped so that
    both sides get at least one row. A stratum with fewer than two rows cannot
    be split and raises ConfigurationError.
    """
    if not 0.0 < train_fraction < 1.0:
        raise ConfigurationError(f"train_fraction must be in (0, 1), got {train_fraction}")

    groups = list(_groups(data, strata))
    if not groups:
        raise ConfigurationError("Cannot split an empty dataset.")

    for key, group in groups:
        if len(group) < 2:
            raise ConfigurationError(
                f"Stratum {strata}={key!r} has {len(group)} record(s); at least 2 are needed to split."
            )

    rng = np.random.default_rng(seed)
    train_parts, test_parts = [], []
    for key, group in groups:
        n = len(group)
        n_train = int(round(n * train_fraction))
        n_train = min(max(n_train, 1), n - 1)

        order = rng.permutation(n)
        train_parts.append(group.iloc[order[:n_train]])
        test_parts.append(group.iloc[order[n_train:]])
        logger.debug("Split %s=%s: %d train / %d test", strata, key, n_train, n - n_train)

    train = pd.concat(train_parts)
    test = pd.concat(test_parts)
    logger.info("Split %d rows → %d train / %d test (train_fraction=%.3f)",
                len(data), len(train), len(test), train_fraction)
    return train, test
