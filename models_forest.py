"""
Bagged decision trees (random forest) for food-stamp recipiency.
Bootstrap samples per tree; max_features = candidate predictors tried at each split.
Prediction is a hard majority vote over trees; vote share exactly 0.5 predicts 1.
Importance: mean decrease in impurity summed per input feature ("impurity"),
or permutation accuracy drop on the training split ("permutation").
Out-of-bag accuracy is reported when oob_score is on.
"""

import numbers
from dataclasses import dataclass
from typing import Union

import numpy as np
from sklearn.ensemble import RandomForestClassifier
from sklearn.pipeline import Pipeline

from classifier import ClassifierAdapter, register
from config import (
    FOREST_IMPORTANCE,
    MAX_FEATURES,
    MIN_SAMPLES_LEAF,
    N_JOBS,
    N_TREES,
    PERMUTATION_REPEATS,
    RANDOM_SEED,
)
from errors import ConfigError
from preprocessing import build_preprocessor

MAX_FEATURES_NAMES = ("sqrt", "log2")


@dataclass(frozen=True)
class ForestConfig:
    n_trees: int = N_TREES
    max_features: Union[int, float, str] = MAX_FEATURES
    min_samples_leaf: int = MIN_SAMPLES_LEAF
    importance: str = FOREST_IMPORTANCE
    n_repeats: int = PERMUTATION_REPEATS
    oob_score: bool = True
    seed: int = RANDOM_SEED
    n_jobs: int = N_JOBS


def _encoded_width(data):
    """Number of columns the preprocessor will produce for this training data."""
    width = len(data.numeric_columns)
    for col in data.categorical_columns:
        width += int(data.frame[col].nunique())
    return width


@register
class ForestAdapter(ClassifierAdapter):
    name = "forest"
    cost_rank = 1
    config_class = ForestConfig
    importance_policies = ("impurity", "permutation")

    def validate_config(self, config):
        super().validate_config(config)
        if isinstance(config.n_trees, bool) or not isinstance(config.n_trees, numbers.Integral) or config.n_trees < 1:
            raise ConfigError(f"forest: n_trees must be an integer >= 1, got {config.n_trees!r}")
        if config.min_samples_leaf < 1:
            raise ConfigError(f"forest: min_samples_leaf must be >= 1, got {config.min_samples_leaf}")
        mf = config.max_features
        if isinstance(mf, str):
            if mf not in MAX_FEATURES_NAMES:
                raise ConfigError(f"forest: max_features must be an int, a fraction or one of {MAX_FEATURES_NAMES}")
        elif isinstance(mf, bool) or not isinstance(mf, numbers.Real):
            raise ConfigError(f"forest: invalid max_features {mf!r}")
        elif isinstance(mf, numbers.Integral):
            if mf < 1:
                raise ConfigError(f"forest: max_features must be >= 1, got {mf}")
        elif not 0.0 < mf <= 1.0:
            raise ConfigError(f"forest: fractional max_features must be in (0, 1], got {mf}")

    def build_pipeline(self, data, config):
        max_features = config.max_features
        if isinstance(max_features, numbers.Integral):
            max_features = min(int(max_features), _encoded_width(data))
        forest = RandomForestClassifier(
            n_estimators=config.n_trees,
            max_features=max_features,
            min_samples_leaf=config.min_samples_leaf,
            bootstrap=True,
            oob_score=config.oob_score,
            random_state=config.seed,
            n_jobs=config.n_jobs,
        )
        return Pipeline([
            ("prep", build_preprocessor(data.numeric_columns, data.categorical_columns, scale=False)),
            ("clf", forest),
        ])

    def positive_score(self, pipeline, X):
        """Share of trees voting for label 1."""
        forest = pipeline.named_steps["clf"]
        Xt = pipeline.named_steps["prep"].transform(X)
        pos = list(forest.classes_).index(1)
        votes = np.stack([tree.predict(Xt) == pos for tree in forest.estimators_])
        return votes.mean(axis=0)

    def model_importance(self, pipeline):
        return pipeline.named_steps["clf"].feature_importances_

    def diagnostics(self, pipeline):
        forest = pipeline.named_steps["clf"]
        if getattr(forest, "oob_score", False) and hasattr(forest, "oob_score_"):
            return {"oob_accuracy": float(forest.oob_score_)}
        return {}
