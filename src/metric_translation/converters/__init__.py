from .otel import (
    MetricsConverter,
    data_points_to_resource_metrics,
    metric_type_of,
    resource_metrics_to_data_points,
)
from .otlp_json import parse_resource_metrics

__all__ = [
    "MetricsConverter",
    "data_points_to_resource_metrics",
    "metric_type_of",
    "resource_metrics_to_data_points",
    "parse_resource_metrics",
]
