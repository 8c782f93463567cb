"""Metric bucket models produced by the metrics classifier."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BiasDetection(BaseModel):
    """Bias-flavoured metrics with an aggregate score and mitigation hints."""

    bias_score: float = Field(..., description="Mean of detected bias metrics (0.1 when none)")
    protected_attributes: list[str] = Field(
        default_factory=list, description="Attributes the bias metrics refer to"
    )
    bias_mitigation_suggestions: list[str] = Field(default_factory=list)
    detected_metrics: dict[str, float] = Field(default_factory=dict)


class ExplainabilityReport(BaseModel):
    feature_importance: dict[str, float] = Field(default_factory=dict)
    explanation_methods: list[str] = Field(default_factory=list)
    computed_metrics: dict[str, float] = Field(default_factory=dict)


class MetricBuckets(BaseModel):
    """Flat validator metrics partitioned into semantic buckets.

    Buckets are independent keyword filters, so one metric may appear in
    several of them. ``other`` holds metrics no bucket matched.
    """

    performance: dict[str, float] = Field(default_factory=dict)
    fairness: dict[str, float] = Field(default_factory=dict)
    bias: BiasDetection
    explainability: ExplainabilityReport
    other: dict[str, float] = Field(default_factory=dict)
