"""Pydantic data models shared across all faivor components.

All models are re-exported here for convenient imports:
    from faivor.models import Dataset, DatasetProfile, ValidationOutcome
"""

from faivor.models.dataset import Dataset, ModelSchema
from faivor.models.metrics import BiasDetection, ExplainabilityReport, MetricBuckets
from faivor.models.profiling import (
    CategoricalColumnStatistic,
    ColumnStatistic,
    DatasetProfile,
    HistogramBin,
    NumericalColumnStatistic,
    Quartiles,
    ValueCount,
)
from faivor.models.validation import (
    ColumnMatchReport,
    CsvStageResult,
    CsvValidationResponse,
    MetricDefinition,
    ModelValidationResponse,
    StageResult,
    StructuralStatus,
    ValidationMode,
    ValidationOutcome,
    ValidationStage,
)

__all__ = [
    # dataset
    "Dataset",
    "ModelSchema",
    # profiling
    "ValueCount",
    "Quartiles",
    "HistogramBin",
    "NumericalColumnStatistic",
    "CategoricalColumnStatistic",
    "ColumnStatistic",
    "DatasetProfile",
    # metrics
    "BiasDetection",
    "ExplainabilityReport",
    "MetricBuckets",
    # validation
    "ValidationStage",
    "ValidationMode",
    "StructuralStatus",
    "ColumnMatchReport",
    "CsvValidationResponse",
    "ModelValidationResponse",
    "MetricDefinition",
    "StageResult",
    "CsvStageResult",
    "ValidationOutcome",
]
