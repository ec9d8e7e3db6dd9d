"""Rule-driven translation of OpenTelemetry-style metrics into vendor data points.

Flow:
    ResourceMetrics (or an OTLP/JSON payload)
            | converters.resource_metrics_to_data_points
            v
    DataPoint batch
            | translators.MetricTranslator (ordered rules, delta caches)
            v
    translated DataPoints
            | filters.FilterSet (exclude unless included)
            v
    DataPoints for the exporter transport
"""

from metric_translation.config import ExporterConfig, load_config, set_default_excludes
from metric_translation.converters import MetricsConverter, parse_resource_metrics
from metric_translation.errors import (
    ConfigError,
    DataPointTypeError,
    FilterConfigError,
    RuleConfigError,
    TranslationError,
)
from metric_translation.filters import FilterSet
from metric_translation.models.filters import MetricFilter
from metric_translation.models.metrics import DataPoint, DimensionSignature, MetricType, ValueKind
from metric_translation.models.rules import parse_translation_rules
from metric_translation.services.pipeline import create_metrics_converter
from metric_translation.translators import DeltaStateCache, MetricTranslator

__all__ = [
    # Model
    "DataPoint",
    "DimensionSignature",
    "MetricType",
    "ValueKind",
    "MetricFilter",
    # Translation
    "MetricTranslator",
    "DeltaStateCache",
    "parse_translation_rules",
    # Filtering and conversion
    "FilterSet",
    "MetricsConverter",
    "parse_resource_metrics",
    # Configuration
    "ExporterConfig",
    "load_config",
    "set_default_excludes",
    "create_metrics_converter",
    # Errors
    "TranslationError",
    "RuleConfigError",
    "FilterConfigError",
    "ConfigError",
    "DataPointTypeError",
]
