"""
Exploratory Data Analysis for Colorado food-stamp recipiency.
Class distribution, missing values, numeric summaries by label, and EDA plots.
"""

import os

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from config import ensure_output_dir


def class_distribution(dataset):
    """Compute and print class distribution and imbalance ratio."""
    labels = pd.Series(dataset.y, name=dataset.label_column)
    counts = labels.value_counts().reindex([0, 1], fill_value=0)
    pct = counts / max(len(labels), 1) * 100
    minor = counts.min()
    major = counts.max()
    ratio = major / minor if minor > 0 else float("inf")
    print("Class distribution (target: food stamps, 0 = no, 1 = yes)")
    print(counts.to_string())
    print(f"\nPercentages:\n{pct.round(2).to_string()}")
    print(f"\nImbalance ratio (majority/minority): {ratio:.2f}")
    return {"counts": counts, "ratio": ratio, "pct": pct}


def missing_summary(df):
    """Report missing values per column of a raw table (before the loader's policy)."""
    missing = df.isna().sum()
    missing = missing[missing > 0].sort_values(ascending=False)
    print("Missing values:")
    if missing.empty:
        print("  None.")
    else:
        print(missing.to_string())
    return missing


def numeric_summary_by_label(dataset):
    """Mean / median of numeric features per label."""
    cols = list(dataset.numeric_columns)
    if not cols:
        print("No numeric columns.")
        return None
    frame = dataset.frame[cols].copy()
    frame["label"] = dataset.y
    summary = frame.groupby("label")[cols].agg(["mean", "median"]).T
    print("Numeric features by label:")
    print(summary.to_string())
    return summary


def plot_class_balance(dataset, output_dir=None):
    """Bar plot of label counts."""
    counts = pd.Series(dataset.y).value_counts().reindex([0, 1], fill_value=0)
    fig, ax = plt.subplots(figsize=(6, 4))
    ax.bar(["No SNAP (0)", "SNAP (1)"], counts.values, color=["#2ecc71", "#e74c3c"], edgecolor="black")
    ax.set_title("Target distribution (food stamps)")
    ax.set_ylabel("Count")
    plt.tight_layout()
    path = os.path.join(ensure_output_dir(output_dir), "eda_class_balance.png")
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


def plot_numeric_by_label(dataset, max_cols=6, output_dir=None):
    """Boxplots of numeric features split by label."""
    cols = list(dataset.numeric_columns)[:max_cols]
    if not cols:
        return None
    n = len(cols)
    ncols = 2
    nrows = (n + ncols - 1) // ncols
    fig, axes = plt.subplots(nrows, ncols, figsize=(5 * ncols, 4 * nrows))
    axes = np.atleast_2d(axes)
    labels = dataset.y
    for idx, col in enumerate(cols):
        ax = axes[idx // ncols, idx % ncols]
        sns.boxplot(x=labels, y=dataset.frame[col].to_numpy(), ax=ax)
        ax.set_title(col)
        ax.set_xlabel("food stamps")
    for idx in range(n, axes.size):
        axes[idx // ncols, idx % ncols].set_visible(False)
    plt.tight_layout()
    path = os.path.join(ensure_output_dir(output_dir), "eda_numeric_by_label.png")
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return path


def run_eda(dataset, output_dir=None, plots=True):
    """Print summaries and (optionally) save EDA plots. Returns dict of results."""
    out = {
        "class_distribution": class_distribution(dataset),
        "numeric_by_label": numeric_summary_by_label(dataset),
    }
    if plots:
        out["plots"] = [
            plot_class_balance(dataset, output_dir=output_dir),
            plot_numeric_by_label(dataset, output_dir=output_dir),
        ]
    return out
