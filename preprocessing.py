"""
Train/eval split and feature preprocessing for the food-stamp dataset.
Split is seeded and (when possible) stratified on the label.
Numeric features: StandardScaler (linear variant) or passthrough (trees).
Coded features: one-hot.
"""

import hashlib
import numbers
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from config import RANDOM_SEED, STRATIFY, TRAIN_FRACTION
from data_loading import Dataset
from errors import ConfigError


@dataclass(frozen=True, eq=False)
class Split:
    """One side of a train/eval partition of a source Dataset."""
    role: str
    data: Dataset
    indices: Tuple[int, ...]
    source_hash: str
    train_fraction: float
    seed: int

    def __len__(self):
        return len(self.data)

    @property
    def X(self) -> pd.DataFrame:
        return self.data.X

    @property
    def y(self) -> np.ndarray:
        return self.data.y

    @property
    def identity(self) -> str:
        """Stable id of (source contents, selected rows); keys the model cache."""
        digest = hashlib.sha1(self.source_hash.encode("utf-8"))
        digest.update(np.asarray(self.indices, dtype=np.int64).tobytes())
        return digest.hexdigest()


def validate_fraction(value, name: str = "train_fraction") -> float:
    """Fractions must lie strictly inside (0, 1)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ConfigError(f"{name} must be a number in (0, 1), got {value!r}")
    if not 0.0 < float(value) < 1.0:
        raise ConfigError(f"{name} must be in (0, 1), got {value}")
    return float(value)


def split_dataset(
    dataset: Dataset,
    train_fraction: Optional[float] = None,
    seed: Optional[int] = None,
    stratify: Optional[bool] = None,
) -> Tuple[Split, Split]:
    """
    Partition a Dataset into disjoint, covering (train, eval) Splits.
    Same seed and fraction give the same partition.

    Raises:
        ConfigError: fraction outside (0, 1) or too few records for two non-empty sides
    """
    train_fraction = validate_fraction(TRAIN_FRACTION if train_fraction is None else train_fraction)
    seed = RANDOM_SEED if seed is None else seed
    stratify = STRATIFY if stratify is None else stratify

    n = len(dataset)
    if n < 2:
        raise ConfigError(f"Need at least 2 records to split, got {n}")
    n_train = int(round(train_fraction * n))
    n_train = min(max(n_train, 1), n - 1)
    n_eval = n - n_train

    y = dataset.y
    classes, counts = np.unique(y, return_counts=True)
    can_stratify = (
        len(classes) > 1 and counts.min() >= 2
        and n_train >= len(classes) and n_eval >= len(classes)
    )
    if stratify and not can_stratify:
        print("Stratified split not possible (too few records per class); using a plain random split.")

    positions = np.arange(n)
    train_idx, eval_idx = train_test_split(
        positions,
        train_size=n_train,
        test_size=n_eval,
        random_state=seed,
        stratify=y if (stratify and can_stratify) else None,
    )
    train_idx = np.sort(train_idx)
    eval_idx = np.sort(eval_idx)

    source_hash = dataset.content_hash()
    train = Split("train", dataset.take(train_idx), tuple(int(i) for i in train_idx),
                  source_hash, train_fraction, seed)
    evaluation = Split("eval", dataset.take(eval_idx), tuple(int(i) for i in eval_idx),
                       source_hash, train_fraction, seed)
    print(f"Split: {len(train)} train / {len(evaluation)} eval (fraction={train_fraction}, seed={seed}).")
    return train, evaluation


def build_preprocessor(
    numeric_columns: Sequence[str], categorical_columns: Sequence[str], scale: bool = True
) -> ColumnTransformer:
    """
    ColumnTransformer over raw feature columns.
    scale=True standardizes numerics (coefficients become comparable).
    """
    transformers = []
    if numeric_columns:
        transformers.append(("num", StandardScaler() if scale else "passthrough", list(numeric_columns)))
    if categorical_columns:
        transformers.append((
            "cat",
            OneHotEncoder(handle_unknown="ignore", sparse_output=False),
            list(categorical_columns),
        ))
    return ColumnTransformer(transformers, remainder="drop")


def source_columns(preprocessor: ColumnTransformer) -> List[str]:
    """Input feature name for every output column of a fitted preprocessor."""
    names = []
    for name, transformer, columns in preprocessor.transformers_:
        if name == "remainder":
            continue
        if name == "cat":
            for col, categories in zip(columns, transformer.categories_):
                names.extend([col] * len(categories))
        else:
            names.extend(columns)
    return names
