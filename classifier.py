"""
Common interface for the two classifier variants (logistic regression, bagged trees).
fit -> FittedModel (never mutated afterwards); predict / predict_proba / feature_importance.
Threshold tie-break: a score equal to the cutoff predicts 1.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
from sklearn.inspection import permutation_importance

from config import FILL_VALUE, MISSING_POLICY
from data_loading import Dataset, prepare_records
from errors import ConfigError, FitError, LoadError
from preprocessing import Split, source_columns

_REGISTRY = {}


@dataclass(frozen=True, eq=False)
class FittedModel:
    """Opaque result of training one variant on one training split."""
    variant: str
    config: Any
    pipeline: Any
    feature_columns: Tuple[str, ...]
    categorical_columns: Tuple[str, ...]
    train_identity: str
    n_train: int
    importances: Tuple[Tuple[str, float], ...]
    fit_seconds: float
    diagnostics: Dict[str, float] = field(default_factory=dict)
    missing_policy: str = MISSING_POLICY
    fill_value: Any = FILL_VALUE


def register(adapter_class):
    """Class decorator: make a variant available through get_adapter."""
    _REGISTRY[adapter_class.name] = adapter_class
    return adapter_class


def _load_variants():
    import models_forest  # noqa: F401
    import models_logreg  # noqa: F401


def available_variants():
    _load_variants()
    return sorted(_REGISTRY, key=lambda name: (_REGISTRY[name].cost_rank, name))


def get_adapter(name):
    """Return an adapter instance for a variant name ("logistic", "forest")."""
    _load_variants()
    if name not in _REGISTRY:
        raise ConfigError(f"Unknown classifier variant {name!r}; available: {available_variants()}")
    return _REGISTRY[name]()


def rank_importances(names, scores):
    """Sum scores per input feature, sort descending (ties by name)."""
    series = pd.Series(np.asarray(scores, dtype=float), index=list(names))
    summed = series.groupby(level=0, sort=False).sum()
    ranked = sorted(summed.items(), key=lambda kv: (-kv[1], kv[0]))
    return tuple((str(name), float(score)) for name, score in ranked)


def _as_dataset(records):
    if isinstance(records, Split):
        return records.data
    if isinstance(records, Dataset):
        return records
    raise TypeError(f"Expected a Split or Dataset, got {type(records).__name__}")


class ClassifierAdapter:
    """Base class. Subclasses set name, cost_rank, config_class, importance_policies."""

    name = None
    cost_rank = 0
    config_class = None
    importance_policies = ("permutation",)

    def default_config(self):
        return self.config_class()

    # ----- variant hooks -----
    def validate_config(self, config):
        if config.importance not in self.importance_policies:
            raise ConfigError(
                f"{self.name}: importance must be one of {self.importance_policies}, got {config.importance!r}"
            )
        if config.n_repeats < 1:
            raise ConfigError(f"{self.name}: n_repeats must be >= 1, got {config.n_repeats}")

    def build_pipeline(self, data, config):
        raise NotImplementedError

    def positive_score(self, pipeline, X):
        """Score in [0, 1] for label 1, compared against the cutoff."""
        raise NotImplementedError

    def model_importance(self, pipeline):
        """Per encoded column importance for the variant's native policy."""
        raise NotImplementedError

    def cutoff(self, config):
        return 0.5

    def diagnostics(self, pipeline):
        return {}

    # ----- shared operations -----
    def fit(self, train_split, config=None):
        """
        Train on a Split (or Dataset).

        Raises:
            ConfigError: invalid config
            FitError: empty or single-class training data, or the estimator fails
        """
        config = config or self.default_config()
        self.validate_config(config)
        data = _as_dataset(train_split)
        if len(data) == 0:
            raise FitError(f"{self.name}: training split is empty")
        y = data.y
        if np.unique(y).size < 2:
            raise FitError(f"{self.name}: training split has a single class ({int(y[0])}) only")

        pipeline = self.build_pipeline(data, config)
        t0 = time.perf_counter()
        try:
            pipeline.fit(data.X, y)
        except ValueError as e:
            raise FitError(f"{self.name}: fit failed: {e}") from e
        fit_seconds = time.perf_counter() - t0

        if config.importance == "permutation":
            result = permutation_importance(
                pipeline, data.X, y,
                scoring=lambda est, X, y_true: float(np.mean(self._predict_pipeline(est, X, config) == y_true)),
                n_repeats=config.n_repeats,
                random_state=config.seed,
            )
            importances = rank_importances(data.feature_columns, result.importances_mean)
        else:
            names = source_columns(pipeline.named_steps["prep"])
            importances = rank_importances(names, self.model_importance(pipeline))

        identity = train_split.identity if isinstance(train_split, Split) else data.content_hash()
        print(f"[{self.name}] fit on {len(data)} records in {fit_seconds:.3f}s")
        return FittedModel(
            variant=self.name,
            config=config,
            pipeline=pipeline,
            feature_columns=data.feature_columns,
            categorical_columns=data.categorical_columns,
            train_identity=identity,
            n_train=len(data),
            importances=importances,
            fit_seconds=fit_seconds,
            diagnostics=self.diagnostics(pipeline),
            missing_policy=data.missing_policy,
            fill_value=data.fill_value,
        )

    def _features(self, fitted, records):
        if isinstance(records, pd.DataFrame):
            return prepare_records(
                records,
                fitted.feature_columns,
                fitted.categorical_columns,
                missing_policy=fitted.missing_policy,
                fill_value=fitted.fill_value,
            )
        data = _as_dataset(records)
        missing = [c for c in fitted.feature_columns if c not in data.frame.columns]
        if missing:
            raise LoadError(f"Records are missing feature columns: {missing}")
        return data.frame[list(fitted.feature_columns)]

    def _predict_pipeline(self, pipeline, X, config):
        return (self.positive_score(pipeline, X) >= self.cutoff(config)).astype(np.int32)

    def predict_proba(self, fitted, records):
        """
        Score for label 1 per record (Split, Dataset or DataFrame).

        Raises:
            LoadError: feature columns absent, or values the fitted pipeline cannot encode
        """
        X = self._features(fitted, records)
        try:
            return self.positive_score(fitted.pipeline, X)
        except ValueError as e:
            raise LoadError(f"{self.name}: could not score records: {e}") from e

    def predict(self, fitted, records):
        """Labels in {0, 1}; score >= cutoff predicts 1."""
        return (self.predict_proba(fitted, records) >= self.cutoff(fitted.config)).astype(np.int32)

    def feature_importance(self, fitted):
        """Ranked [(feature, score), ...], highest first."""
        return list(fitted.importances)
