"""FAIVOR dataset profiling and staged model validation."""

__version__ = "0.1.0"
