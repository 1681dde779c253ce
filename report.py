"""
Comparison report across classifier variants.
Ranking: accuracy (desc), then lower computational cost, then variant name.
assemble_report has no side effects; saving and plotting are separate calls.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from config import REPORT_FILENAME, ensure_output_dir
from errors import ConfigError
from evaluation import EvaluationResult
from utils import get_hardware_note

CLASS_NAMES = ["No SNAP", "SNAP"]


@dataclass(frozen=True, eq=False)
class ComparisonReport:
    ranking: Tuple[EvaluationResult, ...]
    importance_table: pd.DataFrame
    baseline: Optional[dict] = None

    @property
    def best(self):
        return self.ranking[0]

    def importances_for(self, variant):
        for result in self.ranking:
            if result.variant == variant:
                return list(result.importances)
        raise KeyError(variant)


def _importance_table(ranking):
    """Union of per-variant rankings: score and 1-based rank per variant, sorted by mean rank."""
    columns = {}
    rank_cols = []
    for result in ranking:
        names = [name for name, _ in result.importances]
        columns[f"{result.variant}_score"] = pd.Series([s for _, s in result.importances], index=names)
        columns[f"{result.variant}_rank"] = pd.Series(np.arange(1, len(names) + 1), index=names)
        rank_cols.append(f"{result.variant}_rank")
    table = pd.DataFrame(columns)
    if table.empty:
        return pd.DataFrame(columns=["feature", *columns, "mean_rank"])
    # A feature absent from one variant ranks after all of that variant's features
    for col in rank_cols:
        table[col] = table[col].fillna(table[col].max() + 1).astype(int)
    table["mean_rank"] = table[rank_cols].mean(axis=1)
    table.index.name = "feature"
    table = table.reset_index()
    return table.sort_values(["mean_rank", "feature"]).reset_index(drop=True)


def assemble_report(results, baseline=None):
    """
    Rank EvaluationResults (one per variant) and merge their importances.

    Raises:
        ConfigError: no results, or the same variant twice
    """
    results = list(results)
    if not results:
        raise ConfigError("No evaluation results to compare")
    variants = [r.variant for r in results]
    if len(set(variants)) != len(variants):
        raise ConfigError(f"Duplicate variants in results: {variants}")
    ranking = tuple(sorted(results, key=lambda r: (-r.accuracy, r.cost_rank, r.variant)))
    return ComparisonReport(ranking=ranking, importance_table=_importance_table(ranking), baseline=baseline)


def format_report(report, title="FOOD-STAMP RECIPIENCY - MODEL COMPARISON (Colorado)", notes=None, top=10):
    """Render the report as plain text (same layout as the saved results file)."""
    lines = [
        "=" * 60,
        title,
        "=" * 60,
        "",
        "--- Ranking (accuracy desc; ties -> cheaper model) ---",
    ]
    for i, r in enumerate(report.ranking, start=1):
        pr_auc = f"{r.pr_auc:.4f}" if r.pr_auc is not None else "N/A"
        lines.append(f"{i}. {r.variant:10s} Accuracy={r.accuracy:.4f}  F1={r.f1:.4f}  PR-AUC={pr_auc}  (n_eval={r.n_eval})")
    lines.append(f"Best: {report.best.variant}")
    if report.baseline is not None:
        b = report.baseline
        lines.append(
            f"Baseline (majority class {b['majority_class']}): Accuracy={b['accuracy']:.4f}; "
            f"lift of best = {report.best.accuracy - b['accuracy']:+.4f}"
        )

    for r in report.ranking:
        lines += [
            "",
            f"--- {r.variant} ---",
            "Confusion matrix (0=No SNAP, 1=SNAP; rows=true, cols=pred):",
            f"TN={r.tn}  FP={r.fp}",
            f"FN={r.fn}  TP={r.tp}",
            f"Fit (sec): {r.fit_seconds:.4f} | Predict (sec): {r.predict_seconds:.4f}",
        ]
        for key, value in sorted(r.diagnostics.items()):
            lines.append(f"{key}: {value:.4f}" if isinstance(value, float) else f"{key}: {value}")
        lines.append(f"Top {top} features:")
        for name, score in r.importances[:top]:
            lines.append(f"  {name:24s} {score:.6f}")

    lines += ["", "--- Feature importance (union, by mean rank) ---"]
    lines.append(report.importance_table.head(top).to_string(index=False))

    if notes:
        lines += [""] + list(notes)
    lines += ["", f"Hardware: {get_hardware_note()}", "", "=" * 60]
    return "\n".join(lines)


def save_report(text, output_dir=None, filename=None):
    """Write the text report; returns the path."""
    out_dir = ensure_output_dir(output_dir)
    path = os.path.join(out_dir, filename or REPORT_FILENAME)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def plot_confusion_matrix(result, output_dir=None):
    """Confusion matrix heatmap for one variant. Save to output_dir."""
    cm = np.array(result.confusion_matrix)
    df_cm = pd.DataFrame(cm, index=[f"True: {c}" for c in CLASS_NAMES], columns=[f"Pred: {c}" for c in CLASS_NAMES])
    fig, ax = plt.subplots(figsize=(5, 4))
    sns.heatmap(df_cm, annot=True, fmt="d", cmap="Blues", cbar=True, ax=ax)
    ax.set_title(f"{result.variant} confusion matrix (accuracy {result.accuracy:.3f})")
    plt.tight_layout()
    out_path = os.path.join(ensure_output_dir(output_dir), f"{result.variant}_confusion_matrix.png")
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print("Saved:", out_path)
    return out_path


def plot_feature_importance(result, output_dir=None, top=12):
    """Horizontal bar chart of the top features for one variant."""
    imp = pd.DataFrame(list(result.importances[:top]), columns=["feature", "importance"])
    fig, ax = plt.subplots(figsize=(8, max(3, 0.4 * len(imp))))
    sns.barplot(data=imp, x="importance", y="feature", ax=ax, color="steelblue")
    ax.set_title(f"{result.variant} feature importance")
    plt.tight_layout()
    out_path = os.path.join(ensure_output_dir(output_dir), f"{result.variant}_feature_importance.png")
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    print("Saved:", out_path)
    return out_path
