"""
Load the Colorado PUMS extract (food-stamp recipiency).
Declare target, rename PUMS variables, apply the missing-value policy.
"""

import hashlib
import os
from dataclasses import dataclass, replace
from typing import Any, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from config import (
    CATEGORICAL_FEATURES,
    DATA_PATH,
    DROP_COLUMNS,
    FILL_VALUE,
    MISSING_POLICIES,
    MISSING_POLICY,
    POSITIVE_LABEL,
    RENAME_COLUMNS,
    TARGET_COLUMN,
)
from errors import ConfigError, LoadError

# Markers treated as missing on read (PUMS leaves "not applicable" blank)
NA_VALUES = ["?", "NA", "N/A", "."]


@dataclass(frozen=True, eq=False)
class Dataset:
    """Records sharing one schema. The label column is categorical over [0, 1]."""
    frame: pd.DataFrame
    feature_columns: Tuple[str, ...]
    label_column: str
    categorical_columns: Tuple[str, ...] = ()
    source: Optional[str] = None
    missing_policy: str = MISSING_POLICY
    fill_value: Any = FILL_VALUE

    def __len__(self):
        return len(self.frame)

    @property
    def X(self) -> pd.DataFrame:
        return self.frame[list(self.feature_columns)]

    @property
    def y(self) -> np.ndarray:
        return self.frame[self.label_column].astype(np.int32).to_numpy()

    @property
    def numeric_columns(self) -> Tuple[str, ...]:
        return tuple(c for c in self.feature_columns if c not in self.categorical_columns)

    def take(self, positions) -> "Dataset":
        """Subset by positional row indices (index is reset)."""
        positions = np.asarray(positions, dtype=np.int64)
        frame = self.frame.iloc[positions].reset_index(drop=True)
        return replace(self, frame=frame)

    def content_hash(self) -> str:
        """SHA-1 over column names and row contents; stable across runs."""
        digest = hashlib.sha1(",".join(map(str, self.frame.columns)).encode("utf-8"))
        rows = pd.util.hash_pandas_object(self.frame, index=False).to_numpy()
        digest.update(rows.tobytes())
        return digest.hexdigest()


def read_table(path: Optional[str] = None, sep: str = ",") -> pd.DataFrame:
    """
    Read a delimited file into a DataFrame.

    Raises:
        LoadError: if the file is missing, unreadable or has no parseable header
    """
    path = path or DATA_PATH
    if not os.path.exists(path):
        raise LoadError(f"Dataset file not found: {path}")
    if not os.path.isfile(path):
        raise LoadError(f"Path is not a file: {path}")
    try:
        return pd.read_csv(path, sep=sep, na_values=NA_VALUES, low_memory=False)
    except pd.errors.EmptyDataError as e:
        raise LoadError(f"Dataset file is empty: {path}") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise LoadError(f"Could not parse dataset file {path}: {e}") from e
    except OSError as e:
        raise LoadError(f"Failed to read dataset file {path}: {e}") from e


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return True
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


def encode_label(raw: pd.Series, positive_label: Any = None) -> pd.Series:
    """Encode target: positive_label -> 1, anything else -> 0. Returns int32."""
    positive_label = POSITIVE_LABEL if positive_label is None else positive_label
    if pd.api.types.is_numeric_dtype(raw) and _is_number(positive_label):
        mask = raw.astype(float) == float(positive_label)
    else:
        mask = raw.astype(str).str.strip().str.lower() == str(positive_label).strip().lower()
    return mask.astype(np.int32)


def as_category_text(col: pd.Series) -> pd.Series:
    """
    Coded columns as strings; integral floats lose their '.0' first.
    Missing entries stay missing.
    """
    present = col.dropna()
    if pd.api.types.is_float_dtype(present) and np.all(np.mod(present.to_numpy(), 1) == 0):
        present = present.astype(np.int64)
    return present.astype(str).reindex(col.index)


def fill_missing(df: pd.DataFrame, columns: Sequence[str], fill_value: Any) -> pd.DataFrame:
    """Numeric columns get fill_value, text columns its string form. Returns a copy."""
    df = df.copy()
    for col in columns:
        if pd.api.types.is_numeric_dtype(df[col]):
            df[col] = df[col].fillna(fill_value)
        else:
            df[col] = df[col].fillna(str(fill_value))
    return df


def build_dataset(
    df: pd.DataFrame,
    label_column: Optional[str] = None,
    positive_label: Any = None,
    drop_columns: Optional[Sequence[str]] = None,
    rename: Optional[dict] = None,
    categorical_columns: Optional[Sequence[str]] = None,
    missing_policy: Optional[str] = None,
    fill_value: Any = None,
    remove_duplicates: bool = True,
    source: Optional[str] = None,
) -> Dataset:
    """
    Turn a raw DataFrame into a Dataset.

    Args:
        df: raw table (not modified)
        label_column: target name after renaming (defaults to config.TARGET_COLUMN)
        positive_label: raw label value meaning "received food stamps"
        drop_columns: columns excluded from the schema (unknown names ignored)
        rename: raw -> readable column names (defaults to config.RENAME_COLUMNS)
        categorical_columns: coded features to one-hot encode; object columns are always included
        missing_policy: "fill" or "drop" for missing feature values
        fill_value: replacement used by the "fill" policy
        remove_duplicates: drop exact duplicate rows

    Returns:
        Dataset
    """
    label_column = label_column or TARGET_COLUMN
    drop_columns = DROP_COLUMNS if drop_columns is None else drop_columns
    rename = RENAME_COLUMNS if rename is None else rename
    categorical_columns = CATEGORICAL_FEATURES if categorical_columns is None else categorical_columns
    missing_policy = missing_policy or MISSING_POLICY
    fill_value = FILL_VALUE if fill_value is None else fill_value

    if missing_policy not in MISSING_POLICIES:
        raise ConfigError(f"Unknown missing-value policy {missing_policy!r}; expected one of {MISSING_POLICIES}")

    df = df.rename(columns={k: v for k, v in rename.items() if k in df.columns})
    # JWTR and JWTRNS both map to transit_mode across survey years
    df = df.loc[:, ~df.columns.duplicated()]
    df = df.drop(columns=[c for c in drop_columns if c in df.columns and c != label_column])

    if label_column not in df.columns:
        raise LoadError(f"Label column {label_column!r} not found; columns: {list(df.columns)}")

    features = [c for c in df.columns if c != label_column]
    if not features:
        raise LoadError("No feature columns left after dropping columns")

    n_unlabeled = int(df[label_column].isna().sum())
    if n_unlabeled > 0:
        df = df.loc[df[label_column].notna()]
        print(f"Dropped {n_unlabeled} row(s) with missing {label_column}.")

    categorical = [
        c for c in features
        if c in categorical_columns or not pd.api.types.is_numeric_dtype(df[c])
    ]

    n_incomplete = int(df[features].isna().any(axis=1).sum())
    if missing_policy == "drop":
        df = df.dropna(subset=features)
        if n_incomplete > 0:
            print(f"Dropped {n_incomplete} row(s) with missing features.")
    else:
        df = fill_missing(df, features, fill_value)
        if n_incomplete > 0:
            print(f"Filled missing features with {fill_value!r} in {n_incomplete} row(s).")

    if remove_duplicates:
        initial_rows = len(df)
        df = df.drop_duplicates(keep="first")
        n_removed = initial_rows - len(df)
        if n_removed > 0:
            print(f"Removed {n_removed} duplicate row(s). Dataset: {initial_rows} -> {len(df)} rows.")

    df = df.reset_index(drop=True)
    for col in categorical:
        df[col] = as_category_text(df[col])
    df[label_column] = pd.Categorical(encode_label(df[label_column], positive_label), categories=[0, 1])

    return Dataset(
        frame=df,
        feature_columns=tuple(features),
        label_column=label_column,
        categorical_columns=tuple(categorical),
        source=source,
        missing_policy=missing_policy,
        fill_value=fill_value,
    )


def load_dataset(path: Optional[str] = None, sep: str = ",", **kwargs) -> Dataset:
    """
    Load the extract from a delimited file. Keyword arguments go to build_dataset.

    Raises:
        LoadError: unreadable file or missing label column
        ConfigError: unknown missing-value policy
    """
    path = path or DATA_PATH
    df = read_table(path, sep=sep)
    return build_dataset(df, source=str(path), **kwargs)


def prepare_records(
    frame: pd.DataFrame,
    feature_columns: Sequence[str],
    categorical_columns: Sequence[str] = (),
    missing_policy: Optional[str] = None,
    fill_value: Any = None,
) -> pd.DataFrame:
    """
    Bring raw records to the feature layout of a built Dataset, one output row per input row.
    Missing values are filled as build_dataset fills them; rows are never dropped here.

    Raises:
        LoadError: feature columns absent, or missing values under the "drop" policy
    """
    missing_policy = missing_policy or MISSING_POLICY
    fill_value = FILL_VALUE if fill_value is None else fill_value

    absent = [c for c in feature_columns if c not in frame.columns]
    if absent:
        raise LoadError(f"Records are missing feature columns: {absent}")
    X = frame[list(feature_columns)]
    incomplete = [c for c in feature_columns if X[c].isna().any()]
    if incomplete and missing_policy == "drop":
        raise LoadError(f"Records have missing values in {incomplete} and the dataset policy is 'drop'")
    X = fill_missing(X, incomplete, fill_value)
    for col in categorical_columns:
        X[col] = as_category_text(X[col])
    return X


# For reference: PUMS variables used
# RNTP rent, VALP property value, RACNUM number of races, HINS1-HINS7 coverage flags,
# ESR employment status, OCCP occupation, VPS veteran period, JWTR/JWTRNS means of
# transportation to work, JWMNP travel time to work, FS food stamps (1 yes, 2 no)
