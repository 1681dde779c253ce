"""
Tests for the fitted-model cache.
"""

import os

from cache import ModelCache, cache_key, fit_or_load
from models_forest import ForestAdapter, ForestConfig
from models_logreg import LogisticAdapter, LogisticConfig


class TestCacheKey:
    """Keys depend on variant, config and training split."""

    def test_same_inputs_same_key(self):
        assert cache_key("logistic", LogisticConfig(), "abc") == cache_key("logistic", LogisticConfig(), "abc")

    def test_config_changes_key(self):
        assert cache_key("logistic", LogisticConfig(C=1.0), "abc") != cache_key("logistic", LogisticConfig(C=2.0), "abc")

    def test_split_changes_key(self):
        assert cache_key("forest", ForestConfig(), "abc") != cache_key("forest", ForestConfig(), "abd")

    def test_variant_changes_key(self):
        assert cache_key("forest", {"a": 1}, "abc") != cache_key("logistic", {"a": 1}, "abc")


class TestModelCache:
    """Test cases for ModelCache / fit_or_load."""

    def test_miss_then_hit(self, tmp_path, splits, capsys):
        train, evaluation = splits
        cache = ModelCache(str(tmp_path / "models"))
        adapter = ForestAdapter()
        config = ForestConfig(n_trees=10, seed=0)

        first = fit_or_load(adapter, train, config, cache=cache)
        key = cache_key("forest", config, train.identity)
        assert os.path.exists(cache.path_for("forest", key))
        capsys.readouterr()

        second = fit_or_load(adapter, train, config, cache=cache)
        assert "loaded cached model" in capsys.readouterr().out
        assert second.importances == first.importances
        assert (adapter.predict(second, evaluation) == adapter.predict(first, evaluation)).all()

    def test_load_missing_returns_none(self, tmp_path):
        assert ModelCache(str(tmp_path)).load("logistic", "nope") is None

    def test_without_cache_fits(self, splits):
        fitted = fit_or_load(LogisticAdapter(), splits[0])
        assert fitted.variant == "logistic"
