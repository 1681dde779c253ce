"""
Exception classes for the food-stamp classification pipeline.
All of them are terminal for a run.
"""


class PipelineError(Exception):
    """Base exception for pipeline errors."""
    pass


class LoadError(PipelineError):
    """Raised when the source file is unreadable or its schema is unusable."""
    pass


class ConfigError(PipelineError):
    """Raised when a split fraction, cutoff or model setting is invalid."""
    pass


class FitError(PipelineError):
    """Raised when training data is empty or degenerate (single class)."""
    pass
