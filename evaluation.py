"""
Evaluation utilities for the food-stamp classifiers.
Metrics: Accuracy and 2x2 confusion matrix (required); F1 and PR-AUC alongside.
Confusion matrix layout: rows = true label, columns = predicted, labels [0, 1].
"""

import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
from sklearn.metrics import accuracy_score, average_precision_score, confusion_matrix, f1_score

from classifier import get_adapter
from errors import ConfigError


@dataclass(frozen=True)
class EvaluationResult:
    variant: str
    accuracy: float
    confusion_matrix: Tuple[Tuple[int, int], Tuple[int, int]]
    importances: Tuple[Tuple[str, float], ...]
    n_eval: int
    f1: float
    pr_auc: Optional[float]
    cost_rank: int
    fit_seconds: float
    predict_seconds: float
    eval_identity: str = ""
    diagnostics: Dict[str, float] = field(default_factory=dict)

    @property
    def tn(self):
        return self.confusion_matrix[0][0]

    @property
    def fp(self):
        return self.confusion_matrix[0][1]

    @property
    def fn(self):
        return self.confusion_matrix[1][0]

    @property
    def tp(self):
        return self.confusion_matrix[1][1]


def score_binary(y_true, y_pred, y_proba=None):
    """Return dict with accuracy, f1, pr_auc (if y_proba and both classes present)."""
    out = {
        "accuracy": float(accuracy_score(y_true, y_pred)),
        "f1": float(f1_score(y_true, y_pred, zero_division=0)),
    }
    if y_proba is not None and np.unique(y_true).size == 2:
        out["pr_auc"] = float(average_precision_score(y_true, y_proba))
    return out


def binary_confusion(y_true, y_pred):
    """((tn, fp), (fn, tp)) as plain ints; always 2x2."""
    cm = confusion_matrix(y_true, y_pred, labels=[0, 1])
    return tuple(tuple(int(v) for v in row) for row in cm)


def evaluate(fitted, eval_split):
    """
    Score one FittedModel against a held-out Split.

    Raises:
        ConfigError: empty evaluation split
    """
    if len(eval_split) == 0:
        raise ConfigError("Evaluation split is empty")
    adapter = get_adapter(fitted.variant)
    y_true = eval_split.y

    t0 = time.perf_counter()
    y_proba = adapter.predict_proba(fitted, eval_split)
    y_pred = (y_proba >= adapter.cutoff(fitted.config)).astype(np.int32)
    predict_time = time.perf_counter() - t0

    metrics = score_binary(y_true, y_pred, y_proba)
    return EvaluationResult(
        variant=fitted.variant,
        accuracy=metrics["accuracy"],
        confusion_matrix=binary_confusion(y_true, y_pred),
        importances=tuple(adapter.feature_importance(fitted)),
        n_eval=len(eval_split),
        f1=metrics["f1"],
        pr_auc=metrics.get("pr_auc"),
        cost_rank=adapter.cost_rank,
        fit_seconds=fitted.fit_seconds,
        predict_seconds=predict_time,
        eval_identity=getattr(eval_split, "identity", ""),
        diagnostics=dict(fitted.diagnostics),
    )
