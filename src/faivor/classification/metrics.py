"""Keyword-based classification of validator metrics.

The validator returns a flat ``{metric_name: value}`` map. Each bucket is an
independent case-insensitive substring filter over the metric names, so one
metric can land in several buckets (e.g. ``fairness.bias`` is both a
fairness and a bias metric). Names are kept verbatim. No model is consulted;
this is purely rule-based.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping

from loguru import logger

from faivor.models.metrics import BiasDetection, ExplainabilityReport, MetricBuckets

# Keyword lists per bucket (matched as lowercase substrings).
FAIRNESS_KEYWORDS: list[str] = [
    "demographic_parity",
    "equalized_odds",
    "calibration",
    "bias",
    "fairness.demographic_parity",
    "fairness.equalized_odds",
    "fairness.calibration",
]
PERFORMANCE_KEYWORDS: list[str] = [
    "accuracy",
    "precision",
    "recall",
    "f1_score",
    "auc_roc",
    "mse",
    "rmse",
    "mae",
    "performance.accuracy",
    "performance.precision",
    "performance.recall",
]
EXPLAINABILITY_KEYWORDS: list[str] = [
    "feature_importance",
    "shap",
    "lime",
    "permutation",
    "explainability.feature_importance",
    "explainability.shap",
]
BIAS_KEYWORDS: list[str] = ["bias", "fairness"]

DEFAULT_BIAS_SCORE = 0.1
DEFAULT_PROTECTED_ATTRIBUTES: list[str] = ["gender", "age"]
BASE_MITIGATIONS: list[str] = ["Re-sampling", "Feature selection"]
BIAS_MITIGATIONS: list[str] = ["Bias-aware model training", "Post-processing fairness constraints"]

# (keyword, label) pairs for explanation-method detection, in report order.
EXPLANATION_METHODS: list[tuple[str, str]] = [
    ("shap", "SHAP"),
    ("lime", "LIME"),
    ("feature_importance", "Feature Importance"),
]
FALLBACK_EXPLANATION_METHOD = "Basic Feature Analysis"


def _matches(name: str, keywords: Iterable[str]) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in keywords)


def select_metrics(metrics: Mapping[str, float], keywords: Iterable[str]) -> dict[str, float]:
    """Return the metrics whose name contains any of ``keywords``."""
    keywords = [k.lower() for k in keywords]
    return {name: value for name, value in metrics.items() if _matches(name, keywords)}


def bias_score(bias_metrics: Mapping[str, float]) -> float:
    """Mean of the finite bias metric values, or 0.1 when there are none."""
    values = [float(v) for v in bias_metrics.values() if math.isfinite(v)]
    if not values:
        return DEFAULT_BIAS_SCORE
    return sum(values) / len(values)


def mitigation_suggestions(bias_metrics: Mapping[str, float]) -> list[str]:
    """Fixed suggestion list; depends only on whether any bias metric exists."""
    suggestions = list(BASE_MITIGATIONS)
    if bias_metrics:
        suggestions.extend(BIAS_MITIGATIONS)
    return suggestions


def detect_explanation_methods(metric_names: Iterable[str]) -> list[str]:
    names = [n.lower() for n in metric_names]
    methods = [label for keyword, label in EXPLANATION_METHODS if any(keyword in n for n in names)]
    return methods or [FALLBACK_EXPLANATION_METHOD]


def classify_metrics(
    metrics: Mapping[str, float],
    *,
    protected_attributes: Iterable[str] | None = None,
) -> MetricBuckets:
    """Partition validator metrics into semantic buckets.

    Args:
        metrics: Flat metric map from the validator.
        protected_attributes: Attributes the bias metrics refer to, when the
            caller knows them. Defaults to DEFAULT_PROTECTED_ATTRIBUTES.

    Returns:
        MetricBuckets. Metrics no bucket matched are kept in ``other``.
    """
    performance = select_metrics(metrics, PERFORMANCE_KEYWORDS)
    fairness = select_metrics(metrics, FAIRNESS_KEYWORDS)
    bias = select_metrics(metrics, BIAS_KEYWORDS)
    explainability = select_metrics(metrics, EXPLAINABILITY_KEYWORDS)

    classified = performance.keys() | fairness.keys() | bias.keys() | explainability.keys()
    other = {name: value for name, value in metrics.items() if name not in classified}

    logger.debug(
        "Classified {} metrics: performance={} fairness={} bias={} explainability={} other={}",
        len(metrics),
        len(performance),
        len(fairness),
        len(bias),
        len(explainability),
        len(other),
    )

    return MetricBuckets(
        performance=performance,
        fairness=fairness,
        bias=BiasDetection(
            bias_score=bias_score(bias),
            protected_attributes=list(
                DEFAULT_PROTECTED_ATTRIBUTES
                if protected_attributes is None
                else protected_attributes
            ),
            bias_mitigation_suggestions=mitigation_suggestions(bias),
            detected_metrics=bias,
        ),
        explainability=ExplainabilityReport(
            feature_importance=explainability,
            explanation_methods=detect_explanation_methods(explainability),
            computed_metrics=explainability,
        ),
        other=other,
    )
