"""
Tests for the logistic and forest classifier adapters.
"""

from dataclasses import replace

import numpy as np
import pytest

from classifier import available_variants, get_adapter, rank_importances
from data_loading import build_dataset
from errors import ConfigError, FitError, LoadError
from evaluation import evaluate
from models_forest import ForestAdapter, ForestConfig
from models_logreg import LogisticAdapter, LogisticConfig, coefficients
from preprocessing import split_dataset

FAST_FOREST = ForestConfig(n_trees=40, seed=0)


class TestRegistry:
    """Test cases for the adapter registry."""

    def test_available_variants_ordered_by_cost(self):
        assert available_variants() == ["logistic", "forest"]

    def test_get_adapter(self):
        assert isinstance(get_adapter("logistic"), LogisticAdapter)
        assert isinstance(get_adapter("forest"), ForestAdapter)

    def test_unknown_variant(self):
        with pytest.raises(ConfigError, match="Unknown classifier variant"):
            get_adapter("svm")

    def test_rank_importances_sums_and_sorts(self):
        ranked = rank_importances(["a", "b", "b", "c"], [0.1, 0.2, 0.3, 0.1])
        assert ranked == (("b", 0.5), ("a", 0.1), ("c", 0.1))


class TestSeparableData:
    """Both variants recover a one-feature rule (SNAP iff rent < 1500)."""

    def test_logistic_recovers_linear_rule(self, make_frame):
        ds = build_dataset(make_frame(n=1000, seed=0))
        train, evaluation = split_dataset(ds, train_fraction=0.8, seed=42)
        adapter = LogisticAdapter()
        fitted = adapter.fit(train, LogisticConfig(C=10.0, seed=42))
        result = evaluate(fitted, evaluation)
        assert result.accuracy >= 0.99
        assert adapter.feature_importance(fitted)[0][0] == "rent"
        assert fitted.diagnostics["n_iter"] >= 1

    def test_forest_separable(self, splits):
        train, evaluation = splits
        adapter = ForestAdapter()
        fitted = adapter.fit(train, FAST_FOREST)
        result = evaluate(fitted, evaluation)
        assert result.accuracy >= 0.95
        assert adapter.feature_importance(fitted)[0][0] == "rent"
        assert 0.0 <= fitted.diagnostics["oob_accuracy"] <= 1.0

    def test_logistic_separable_default_config(self, splits):
        train, evaluation = splits
        fitted = LogisticAdapter().fit(train)
        assert evaluate(fitted, evaluation).accuracy >= 0.95

    def test_permutation_importance_policy(self, splits):
        train, _ = splits
        fitted = ForestAdapter().fit(train, replace(FAST_FOREST, importance="permutation", n_repeats=3))
        ranked = ForestAdapter().feature_importance(fitted)
        assert ranked[0][0] == "rent"
        assert {name for name, _ in ranked} == set(train.data.feature_columns)

    def test_logistic_permutation_importance(self, splits):
        train, _ = splits
        fitted = LogisticAdapter().fit(train, LogisticConfig(importance="permutation", n_repeats=3))
        assert fitted.importances[0][0] == "rent"

    def test_logistic_l1_penalty(self, splits):
        """Strong L1 keeps rent and zeroes some noise columns."""
        train, evaluation = splits
        fitted = LogisticAdapter().fit(train, LogisticConfig(penalty="l1", C=0.05))
        assert evaluate(fitted, evaluation).accuracy >= 0.9
        coefs = dict(coefficients(fitted))
        assert coefs["num__rent"] < 0
        assert any(c == 0 for c in coefs.values())


class TestPredict:
    """Test cases for predict / predict_proba."""

    def test_predict_labels_and_probabilities(self, splits):
        train, evaluation = splits
        adapter = LogisticAdapter()
        fitted = adapter.fit(train)
        proba = adapter.predict_proba(fitted, evaluation)
        labels = adapter.predict(fitted, evaluation)
        assert proba.shape == (len(evaluation),)
        assert ((proba >= 0) & (proba <= 1)).all()
        assert set(np.unique(labels)) <= {0, 1}
        np.testing.assert_array_equal(labels, (proba >= 0.5).astype(int))

    def test_score_equal_to_cutoff_predicts_positive(self, splits):
        train, evaluation = splits
        adapter = LogisticAdapter()
        fitted = adapter.fit(train)
        proba = adapter.predict_proba(fitted, evaluation)
        i = int(np.argmin(np.abs(proba - 0.5)))
        at_cutoff = replace(fitted, config=replace(fitted.config, cutoff=float(proba[i])))
        assert adapter.predict(at_cutoff, evaluation)[i] == 1

    def test_forest_vote_share(self, splits):
        train, evaluation = splits
        adapter = ForestAdapter()
        fitted = adapter.fit(train, replace(FAST_FOREST, n_trees=10))
        share = adapter.predict_proba(fitted, evaluation)
        # shares are multiples of 1/10
        np.testing.assert_allclose(share * 10, np.round(share * 10))
        np.testing.assert_array_equal(adapter.predict(fitted, evaluation), (share >= 0.5).astype(int))

    def test_predict_on_raw_frame(self, splits):
        train, evaluation = splits
        adapter = LogisticAdapter()
        fitted = adapter.fit(train)
        frame = evaluation.data.frame.copy()
        frame["occupation"] = frame["occupation"].astype(int)
        np.testing.assert_array_equal(adapter.predict(fitted, frame), adapter.predict(fitted, evaluation))

    @pytest.mark.parametrize("adapter, config", [(LogisticAdapter(), None), (ForestAdapter(), FAST_FOREST)])
    def test_float_codes_with_missing_value(self, splits, adapter, config):
        """A NaN must not turn the other codes into '2205.0'-style text."""
        train, evaluation = splits
        fitted = adapter.fit(train, config)
        frame = evaluation.data.frame.copy()
        frame["occupation"] = frame["occupation"].astype(float)
        frame.loc[0, "occupation"] = np.nan

        prepared = adapter._features(fitted, frame)["occupation"]
        assert prepared.iloc[0] == "0"
        assert list(prepared.iloc[1:]) == list(evaluation.data.frame["occupation"].iloc[1:])
        np.testing.assert_allclose(
            adapter.predict_proba(fitted, frame)[1:],
            adapter.predict_proba(fitted, evaluation)[1:],
        )

    def test_missing_numeric_value_filled(self, splits):
        train, evaluation = splits
        adapter = LogisticAdapter()
        fitted = adapter.fit(train)
        frame = evaluation.data.frame.copy()
        frame.loc[0, "rent"] = np.nan
        filled = evaluation.data.frame.copy()
        filled.loc[0, "rent"] = 0

        labels = adapter.predict(fitted, frame)
        assert labels.shape == (len(frame),)
        np.testing.assert_allclose(adapter.predict_proba(fitted, frame), adapter.predict_proba(fitted, filled))

    def test_missing_value_under_drop_policy_raises(self, raw_frame):
        dataset = build_dataset(raw_frame, missing_policy="drop")
        train, evaluation = split_dataset(dataset, train_fraction=0.75, seed=7)
        adapter = LogisticAdapter()
        fitted = adapter.fit(train)
        assert fitted.missing_policy == "drop"
        frame = evaluation.data.frame.copy()
        frame.loc[0, "rent"] = np.nan
        with pytest.raises(LoadError, match="missing values"):
            adapter.predict(fitted, frame)

    @pytest.mark.parametrize("variant", ["logistic", "forest"])
    def test_unscorable_values_raise_load_error(self, splits, variant):
        train, evaluation = splits
        adapter = get_adapter(variant)
        fitted = adapter.fit(train, FAST_FOREST if variant == "forest" else None)
        frame = evaluation.data.frame.copy()
        frame["rent"] = "unknown"
        with pytest.raises(LoadError, match="could not score"):
            adapter.predict(fitted, frame)

    def test_missing_feature_columns(self, splits):
        train, evaluation = splits
        adapter = LogisticAdapter()
        fitted = adapter.fit(train)
        with pytest.raises(LoadError, match="missing feature columns"):
            adapter.predict(fitted, evaluation.data.frame.drop(columns=["rent"]))

    def test_fitted_model_keeps_training_identity(self, splits):
        train, _ = splits
        fitted = LogisticAdapter().fit(train)
        assert fitted.train_identity == train.identity
        assert fitted.n_train == len(train)
        assert fitted.variant == "logistic"

    def test_coefficients_sorted_by_magnitude(self, splits):
        train, _ = splits
        coefs = coefficients(LogisticAdapter().fit(train))
        assert coefs[0][0] == "num__rent"
        assert coefs[0][1] < 0  # higher rent -> less likely to receive SNAP
        mags = [abs(c) for _, c in coefs]
        assert mags == sorted(mags, reverse=True)


class TestFitErrors:
    """Degenerate training data and invalid configs."""

    @pytest.mark.parametrize("variant", ["logistic", "forest"])
    def test_single_class_raises(self, dataset, variant):
        positives = dataset.take(np.flatnonzero(dataset.y == 1))
        with pytest.raises(FitError, match="single class"):
            get_adapter(variant).fit(positives)

    @pytest.mark.parametrize("variant", ["logistic", "forest"])
    def test_empty_raises(self, dataset, variant):
        with pytest.raises(FitError, match="empty"):
            get_adapter(variant).fit(dataset.take([]))

    @pytest.mark.parametrize("cutoff", [0.0, 1.0, -0.5, 2])
    def test_invalid_cutoff(self, splits, cutoff):
        with pytest.raises(ConfigError, match="cutoff"):
            LogisticAdapter().fit(splits[0], LogisticConfig(cutoff=cutoff))

    def test_invalid_regularization(self, splits):
        with pytest.raises(ConfigError, match="C must be"):
            LogisticAdapter().fit(splits[0], LogisticConfig(C=0))

    @pytest.mark.parametrize("penalty", ["elasticnet", "none", "L1"])
    def test_invalid_penalty(self, splits, penalty):
        with pytest.raises(ConfigError, match="penalty"):
            LogisticAdapter().fit(splits[0], LogisticConfig(penalty=penalty))

    @pytest.mark.parametrize("config", [
        ForestConfig(n_trees=0),
        ForestConfig(max_features="auto"),
        ForestConfig(max_features=0),
        ForestConfig(max_features=1.5),
        ForestConfig(importance="gini"),
        ForestConfig(importance="coefficient"),
        ForestConfig(n_repeats=0),
    ])
    def test_invalid_forest_config(self, splits, config):
        with pytest.raises(ConfigError):
            ForestAdapter().fit(splits[0], config)

    def test_max_features_capped_at_encoded_width(self, splits):
        fitted = ForestAdapter().fit(splits[0], replace(FAST_FOREST, max_features=500, n_trees=5))
        forest = fitted.pipeline.named_steps["clf"]
        assert forest.max_features == forest.n_features_in_
