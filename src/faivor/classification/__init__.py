"""Rule-based bucketing of validator metrics."""

from faivor.classification.metrics import classify_metrics

__all__ = ["classify_metrics"]
