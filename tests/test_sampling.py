# tests/test_sampling.py
import pandas as pd
import pytest

from src.modeling.errors import ConfigurationError, DataValidationError
from src.modeling.sampling import stratified_sample, stratified_split


# -------------------------------
# Helpers
# -------------------------------
def sample_region_df(counts) -> pd.DataFrame:
    """One row per record; counts maps region -> number of records."""
    rows = []
    for region, n in counts.items():
        for i in range(n):
            rows.append({"text_field": f"{region.lower()} tweet {i}", "region": region})
    return pd.DataFrame(rows)


# -------------------------------
# Sampler
# -------------------------------
def test_sample_takes_min_of_cap_and_group_size():
    df = sample_region_df({"West": 5, "East": 3, "South": 1})
    out = stratified_sample(df, per_class_cap=3, seed=42)

    counts = out["region"].value_counts().to_dict()
    assert counts == {"West": 3, "East": 3, "South": 1}
    assert len(out) <= 3 * 3
    assert out.index.is_unique
    # every sampled row is an original row
    assert out.index.isin(df.index).all()
    pd.testing.assert_frame_equal(out, df.loc[out.index])


def test_sample_is_deterministic_for_a_seed():
    df = sample_region_df({"West": 50, "East": 40, "South": 30})
    a = stratified_sample(df, per_class_cap=10, seed=7)
    b = stratified_sample(df, per_class_cap=10, seed=7)
    c = stratified_sample(df, per_class_cap=10, seed=8)
    assert a.index.tolist() == b.index.tolist()
    assert a.index.tolist() != c.index.tolist()


def test_sample_ignores_unused_categories():
    df = sample_region_df({"West": 4, "East": 4})
    df["region"] = pd.Categorical(df["region"], categories=["West", "East", "South", "Other"])
    out = stratified_sample(df, per_class_cap=2, seed=1)
    assert len(out) == 4


def test_sample_rejects_non_positive_cap():
    df = sample_region_df({"West": 2})
    with pytest.raises(ConfigurationError):
        stratified_sample(df, per_class_cap=0, seed=1)


# -------------------------------
# Splitter
# -------------------------------
def test_split_preserves_proportions_and_partitions():
    counts = {"West": 10, "East": 7, "South": 5}
    df = sample_region_df(counts)
    train, test = stratified_split(df, train_fraction=0.8, seed=42)

    assert set(train.index).isdisjoint(test.index)
    assert sorted(train.index.tolist() + test.index.tolist()) == sorted(df.index.tolist())
    for region, n in counts.items():
        n_train = int((train["region"] == region).sum())
        n_test = int((test["region"] == region).sum())
        assert abs(n_train - n * 0.8) <= 1
        assert n_test >= 1


def test_split_two_thirds_of_three():
    df = sample_region_df({"West": 3, "East": 3, "South": 3})
    train, test = stratified_split(df, train_fraction=2 / 3, seed=1)
    assert train["region"].value_counts().to_dict() == {"West": 2, "East": 2, "South": 2}
    assert test["region"].value_counts().to_dict() == {"West": 1, "East": 1, "South": 1}


def test_split_is_deterministic_for_a_seed():
    df = sample_region_df({"West": 20, "East": 20})
    a_train, _ = stratified_split(df, seed=3)
    b_train, _ = stratified_split(df, seed=3)
    assert a_train.index.tolist() == b_train.index.tolist()


def test_split_singleton_stratum_fails():
    df = sample_region_df({"West": 4, "East": 4, "South": 1})
    with pytest.raises(ConfigurationError, match="South"):
        stratified_split(df, train_fraction=0.8, seed=1)


@pytest.mark.parametrize("fraction", [0.0, 1.0, -0.5, 1.5])
def test_split_rejects_fraction_outside_unit_interval(fraction):
    df = sample_region_df({"West": 4, "East": 4})
    with pytest.raises(ConfigurationError):
        stratified_split(df, train_fraction=fraction)


# -------------------------------
# Missing strata values
# -------------------------------
def test_sample_rejects_missing_region():
    df = sample_region_df({"West": 1, "East": 1, "South": 1})
    df.loc[1, "region"] = None
    with pytest.raises(DataValidationError, match="first at index 1"):
        stratified_sample(df, per_class_cap=3, seed=1)


def test_split_rejects_missing_region_instead_of_dropping_rows():
    df = sample_region_df({"West": 3, "East": 2, "South": 2})
    df.loc[4, "region"] = float("nan")
    with pytest.raises(DataValidationError, match="1 rows"):
        stratified_split(df, train_fraction=0.8, seed=1)
