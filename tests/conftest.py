"""
Shared fixtures: synthetic PUMS-like extracts where SNAP = 1 iff rent < threshold.
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from data_loading import build_dataset
from preprocessing import split_dataset

RENT_THRESHOLD = 1500


def _make_pums_frame(n=1000, seed=0, threshold=RENT_THRESHOLD):
    rng = np.random.default_rng(seed)
    rent = rng.uniform(0, 3000, n).round(0)
    return pd.DataFrame({
        "SERIALNO": np.arange(n),
        "RNTP": rent,
        "VALP": rng.integers(50_000, 900_000, n),
        "RACNUM": rng.integers(1, 4, n),
        "HINS1": rng.integers(1, 3, n),
        "HINS4": rng.integers(1, 3, n),
        "ESR": rng.choice([1, 3, 6], n),
        "OCCP": rng.choice([10, 2205, 4720, 9130], n),
        "JWMNP": rng.integers(0, 90, n),
        "FS": np.where(rent < threshold, 1, 2),
    })


@pytest.fixture
def make_frame():
    return _make_pums_frame


@pytest.fixture
def raw_frame():
    return _make_pums_frame(n=400, seed=1)


@pytest.fixture
def dataset(raw_frame):
    return build_dataset(raw_frame)


@pytest.fixture
def splits(dataset):
    return split_dataset(dataset, train_fraction=0.75, seed=7)


@pytest.fixture
def csv_path(tmp_path, raw_frame):
    path = tmp_path / "pums.csv"
    raw_frame.to_csv(path, index=False)
    return path
