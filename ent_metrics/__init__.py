"""
ent-metrics: how random is this file?

Computes Shannon entropy, chi-square against a uniform distribution,
arithmetic mean, a Monte Carlo estimate of π and the serial correlation
coefficient of a byte sequence, per byte or per bit.
"""

__version__ = "0.1.0"

from ent_metrics.engine import AnalysisConfig, MetricsEngine, MetricsResult, analyze, fold_case
from ent_metrics.sources import EntMetricsError, SourceError
from ent_metrics.stats import AnalysisMode, FrequencyTable, frequency_table

__all__ = [
    "AnalysisConfig",
    "AnalysisMode",
    "EntMetricsError",
    "FrequencyTable",
    "MetricsEngine",
    "MetricsResult",
    "SourceError",
    "analyze",
    "fold_case",
    "frequency_table",
    "__version__",
]
