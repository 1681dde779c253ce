"""
Logistic regression (linear variant) for food-stamp recipiency.
Numerics standardized, coded columns one-hot; L2 (or L1) regularization via C.
Importance: |standardized coefficient| summed per input feature ("coefficient"),
or permutation accuracy drop on the training split ("permutation").
"""

from dataclasses import dataclass

import numpy as np
from sklearn.linear_model import LogisticRegression
from sklearn.pipeline import Pipeline

from classifier import ClassifierAdapter, register
from config import (
    CUTOFF,
    LOGREG_C,
    LOGREG_IMPORTANCE,
    LOGREG_MAX_ITER,
    LOGREG_PENALTIES,
    LOGREG_PENALTY,
    PERMUTATION_REPEATS,
    RANDOM_SEED,
)
from errors import ConfigError
from preprocessing import build_preprocessor, validate_fraction


@dataclass(frozen=True)
class LogisticConfig:
    C: float = LOGREG_C
    penalty: str = LOGREG_PENALTY
    max_iter: int = LOGREG_MAX_ITER
    cutoff: float = CUTOFF
    importance: str = LOGREG_IMPORTANCE
    n_repeats: int = PERMUTATION_REPEATS
    seed: int = RANDOM_SEED


@register
class LogisticAdapter(ClassifierAdapter):
    name = "logistic"
    cost_rank = 0
    config_class = LogisticConfig
    importance_policies = ("coefficient", "permutation")

    def validate_config(self, config):
        super().validate_config(config)
        if not config.C > 0:
            raise ConfigError(f"logistic: C must be > 0, got {config.C}")
        if config.penalty not in LOGREG_PENALTIES:
            raise ConfigError(f"logistic: penalty must be one of {LOGREG_PENALTIES}, got {config.penalty!r}")
        if config.max_iter < 1:
            raise ConfigError(f"logistic: max_iter must be >= 1, got {config.max_iter}")
        validate_fraction(config.cutoff, name="cutoff")

    def build_pipeline(self, data, config):
        if config.penalty == "l1":
            clf = LogisticRegression(
                penalty="l1", solver="liblinear", C=config.C, max_iter=config.max_iter, random_state=config.seed
            )
        else:
            clf = LogisticRegression(C=config.C, max_iter=config.max_iter, random_state=config.seed)
        return Pipeline([
            ("prep", build_preprocessor(data.numeric_columns, data.categorical_columns, scale=True)),
            ("clf", clf),
        ])

    def positive_score(self, pipeline, X):
        clf = pipeline.named_steps["clf"]
        pos = list(clf.classes_).index(1)
        return pipeline.predict_proba(X)[:, pos]

    def model_importance(self, pipeline):
        return np.abs(pipeline.named_steps["clf"].coef_[0])

    def cutoff(self, config):
        return config.cutoff

    def diagnostics(self, pipeline):
        clf = pipeline.named_steps["clf"]
        return {"n_iter": int(np.max(clf.n_iter_))}


def coefficients(fitted):
    """Signed coefficients per encoded column (standardized scale), largest magnitude first."""
    prep = fitted.pipeline.named_steps["prep"]
    clf = fitted.pipeline.named_steps["clf"]
    names = prep.get_feature_names_out()
    pairs = sorted(zip(names, clf.coef_[0]), key=lambda kv: -abs(kv[1]))
    return [(str(name), float(coef)) for name, coef in pairs]
