"""
Shared utilities: set seeds, hardware note.
"""

import platform
import random

import numpy as np

from config import RANDOM_SEED


def set_seed(seed=None):
    """Fix random seeds for reproducibility (NumPy and random)."""
    seed = RANDOM_SEED if seed is None else seed
    np.random.seed(seed)
    random.seed(seed)


def get_hardware_note():
    """Return a brief hardware description for reproducibility."""
    try:
        cpu = platform.processor() or platform.machine() or "unknown"
        return f"{platform.system()} {platform.release()}, CPU: {cpu}"
    except Exception:
        return "unknown"
