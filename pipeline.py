"""
End-to-end run: load -> split -> fit logistic and forest -> evaluate -> compare.
Prints the report and writes it to <output_dir>/report.txt.

Usage:
    snap-report --data colorado_pums.csv --trees 500 --cutoff 0.5
"""

import argparse
import sys

from baseline import run_baseline
from cache import ModelCache, fit_or_load
from classifier import get_adapter
from config import (
    CUTOFF,
    DATA_PATH,
    FOREST_IMPORTANCE,
    LOGREG_C,
    LOGREG_IMPORTANCE,
    LOGREG_PENALTIES,
    LOGREG_PENALTY,
    MAX_FEATURES,
    MISSING_POLICIES,
    MISSING_POLICY,
    N_TREES,
    POSITIVE_LABEL,
    RANDOM_SEED,
    TARGET_COLUMN,
    TRAIN_FRACTION,
)
from data_loading import build_dataset, read_table
from eda import missing_summary, run_eda
from errors import PipelineError
from evaluation import evaluate
from models_forest import ForestConfig
from models_logreg import LogisticConfig, coefficients
from preprocessing import split_dataset
from report import assemble_report, format_report, plot_confusion_matrix, plot_feature_importance, save_report
from utils import set_seed


def run_pipeline(
    path=None,
    label_column=None,
    positive_label=None,
    drop_columns=None,
    missing_policy=None,
    train_fraction=None,
    seed=None,
    logistic_config=None,
    forest_config=None,
    cache_dir=None,
    output_dir=None,
    eda=False,
    plots=True,
):
    """
    Single entry point. Every setting is an explicit argument; None means the config default.

    Returns:
        (ComparisonReport, report text)
    """
    seed = RANDOM_SEED if seed is None else seed
    set_seed(seed)
    path = path or DATA_PATH

    raw = read_table(path)
    if eda:
        missing_summary(raw)
    dataset = build_dataset(
        raw,
        label_column=label_column,
        positive_label=positive_label,
        drop_columns=drop_columns,
        missing_policy=missing_policy,
        source=str(path),
    )
    print(f"Loaded {len(dataset)} records, {len(dataset.feature_columns)} features from {path}.")
    if eda:
        run_eda(dataset, output_dir=output_dir, plots=plots)

    train, evaluation = split_dataset(dataset, train_fraction=train_fraction, seed=seed)
    cache = ModelCache(cache_dir) if cache_dir else None

    configs = {
        "logistic": logistic_config or LogisticConfig(seed=seed),
        "forest": forest_config or ForestConfig(seed=seed),
    }
    results = []
    fitted_models = {}
    for variant, config in configs.items():
        adapter = get_adapter(variant)
        fitted = fit_or_load(adapter, train, config, cache=cache)
        fitted_models[variant] = fitted
        results.append(evaluate(fitted, evaluation))

    report = assemble_report(results, baseline=run_baseline(train, evaluation))

    notes = ["--- Logistic coefficients (standardized, top 10) ---"]
    notes += [f"  {name:32s} {coef:+.4f}" for name, coef in coefficients(fitted_models["logistic"])[:10]]
    notes += [
        "",
        "--- Settings ---",
        f"Data: {path}",
        f"Split: train_fraction={train.train_fraction}, seed={seed}, n_train={len(train)}, n_eval={len(evaluation)}",
        f"Logistic: {configs['logistic']}",
        f"Forest: {configs['forest']}",
        "Tie-break: score equal to the cutoff (or a 50/50 tree vote) predicts SNAP.",
    ]
    text = format_report(report, notes=notes)
    print(text)
    print("\nResults saved to:", save_report(text, output_dir=output_dir))

    if plots:
        for result in report.ranking:
            plot_confusion_matrix(result, output_dir=output_dir)
            plot_feature_importance(result, output_dir=output_dir)
    return report, text


def _max_features(value):
    """CLI max_features: 'sqrt'/'log2', an int count, or a fraction."""
    if value in ("sqrt", "log2"):
        return value
    try:
        return int(value)
    except ValueError:
        return float(value)


def build_parser():
    parser = argparse.ArgumentParser(description="Compare logistic regression and bagged trees for SNAP recipiency.")
    parser.add_argument("--data", default=DATA_PATH, help="Delimited input file (header required)")
    parser.add_argument("--label", default=TARGET_COLUMN, help="Label column after renaming")
    parser.add_argument("--positive-label", default=str(POSITIVE_LABEL), help="Raw label value meaning 'received'")
    parser.add_argument("--drop", nargs="*", default=None, help="Columns to exclude (default: config.DROP_COLUMNS)")
    parser.add_argument("--missing", choices=MISSING_POLICIES, default=MISSING_POLICY, help="Missing feature policy")
    parser.add_argument("--train-fraction", type=float, default=TRAIN_FRACTION)
    parser.add_argument("--seed", type=int, default=RANDOM_SEED)
    parser.add_argument("--cutoff", type=float, default=CUTOFF, help="Logistic probability cutoff")
    parser.add_argument("--C", type=float, default=LOGREG_C, help="Inverse regularization strength")
    parser.add_argument("--penalty", choices=LOGREG_PENALTIES, default=LOGREG_PENALTY, help="Logistic regularization")
    parser.add_argument("--logistic-importance", choices=("coefficient", "permutation"), default=LOGREG_IMPORTANCE)
    parser.add_argument("--trees", type=int, default=N_TREES, help="Number of bagged trees")
    parser.add_argument("--max-features", type=_max_features, default=MAX_FEATURES,
                        help="Candidate predictors per split: int, fraction, 'sqrt' or 'log2'")
    parser.add_argument("--importance", choices=("impurity", "permutation"), default=FOREST_IMPORTANCE,
                        help="Forest importance policy")
    parser.add_argument("--cache-dir", default=None, help="Cache fitted models here")
    parser.add_argument("--output-dir", default=None, help="Report and plot directory")
    parser.add_argument("--eda", action="store_true", help="Print EDA summaries and plots first")
    parser.add_argument("--no-plots", action="store_true")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        run_pipeline(
            path=args.data,
            label_column=args.label,
            positive_label=args.positive_label,
            drop_columns=args.drop,
            missing_policy=args.missing,
            train_fraction=args.train_fraction,
            seed=args.seed,
            logistic_config=LogisticConfig(
                C=args.C, penalty=args.penalty, cutoff=args.cutoff,
                importance=args.logistic_importance, seed=args.seed,
            ),
            forest_config=ForestConfig(
                n_trees=args.trees, max_features=args.max_features, importance=args.importance, seed=args.seed
            ),
            cache_dir=args.cache_dir,
            output_dir=args.output_dir,
            eda=args.eda,
            plots=not args.no_plots,
        )
    except PipelineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
