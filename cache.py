"""
On-disk cache of fitted models, keyed by (variant, config, training-split identity).
Avoids retraining the forest when only the report changes.
"""

import hashlib
import json
import os
from dataclasses import asdict, is_dataclass

import joblib

from config import CACHE_DIR


def cache_key(variant, config, train_identity):
    """SHA-1 over a canonical JSON of the three key parts."""
    params = asdict(config) if is_dataclass(config) else dict(config)
    payload = json.dumps(
        {"variant": variant, "config": params, "train": train_identity},
        sort_keys=True,
        default=str,
    )
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


class ModelCache:
    """joblib files named <variant>-<key>.joblib under one directory."""

    def __init__(self, directory=None):
        self.directory = directory or CACHE_DIR
        os.makedirs(self.directory, exist_ok=True)

    def path_for(self, variant, key):
        return os.path.join(self.directory, f"{variant}-{key}.joblib")

    def load(self, variant, key):
        path = self.path_for(variant, key)
        if not os.path.exists(path):
            return None
        return joblib.load(path)

    def save(self, fitted, key):
        path = self.path_for(fitted.variant, key)
        joblib.dump(fitted, path)
        return path


def fit_or_load(adapter, train_split, config=None, cache=None):
    """Fit the adapter unless a cached model with the same key exists."""
    config = config or adapter.default_config()
    if cache is None:
        return adapter.fit(train_split, config)
    key = cache_key(adapter.name, config, train_split.identity)
    fitted = cache.load(adapter.name, key)
    if fitted is not None:
        print(f"[{adapter.name}] loaded cached model {key[:12]}")
        return fitted
    fitted = adapter.fit(train_split, config)
    path = cache.save(fitted, key)
    print(f"[{adapter.name}] cached model -> {path}")
    return fitted
