"""Conversion between resource-scoped metrics and vendor data points."""

from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from metric_translation.filters.metric_filter import FilterSet
from metric_translation.models.filters import MetricFilter
from metric_translation.models.metrics import DataPoint, MetricType
from metric_translation.models.resource import (
    AggregationTemporality,
    Metric,
    MetricDataType,
    NumberDataPoint,
    ResourceMetrics,
)
from metric_translation.translators.translator import MetricTranslator
from metric_translation.utils.formatters import (
    DEFAULT_NONALPHANUMERIC_DIMENSION_CHARS,
    DimensionKeyFormat,
    format_dimension_key,
    format_dimension_value,
)
from metric_translation.utils.time import NANOS_PER_MILLI, unix_nano_to_millis

logger = structlog.get_logger(__name__)


def metric_type_of(metric: Metric) -> Optional[MetricType]:
    """Vendor metric kind for a metric, or None when it has no numeric mapping"""
    if metric.data_type == MetricDataType.GAUGE:
        return MetricType.GAUGE
    if metric.data_type == MetricDataType.SUM:
        if not metric.is_monotonic:
            return MetricType.GAUGE
        if metric.aggregation_temporality == AggregationTemporality.DELTA:
            return MetricType.COUNTER
        return MetricType.CUMULATIVE_COUNTER
    return None


def merge_dimensions(attributes: Dict[str, Any], resource_attributes: Dict[str, Any]) -> Dict[str, str]:
    dimensions = {key: format_dimension_value(value) for key, value in attributes.items()}
    for key, value in resource_attributes.items():
        if key not in dimensions:
            dimensions[key] = format_dimension_value(value)
    return dimensions


def resource_metrics_to_data_points(resource_metrics: ResourceMetrics) -> List[DataPoint]:
    """Flatten one resource's metrics into data points, keeping each metric's kind"""
    points = []
    for metric in resource_metrics.metrics:
        metric_type = metric_type_of(metric)
        if metric_type is None:
            logger.debug(f"Skipping {metric.data_type.value} metric {metric.name}")
            continue
        for dp in metric.data_points:
            points.append(
                DataPoint(
                    metric=metric.name,
                    value=dp.value,
                    dimensions=merge_dimensions(dp.attributes, resource_metrics.resource_attributes),
                    timestamp=unix_nano_to_millis(dp.time_unix_nano),
                    metric_type=metric_type,
                )
            )
    return points


def data_points_to_resource_metrics(
    points: Iterable[DataPoint], resource_attributes: Optional[Dict[str, Any]] = None
) -> ResourceMetrics:
    """Group data points back into one ResourceMetrics, one Metric per name"""
    metrics: Dict[str, Metric] = {}
    for point in points:
        metric = metrics.get(point.metric)
        if metric is None:
            metric = Metric(name=point.metric, data_type=MetricDataType.GAUGE)
            if point.metric_type != MetricType.GAUGE:
                metric.data_type = MetricDataType.SUM
                metric.is_monotonic = True
                metric.aggregation_temporality = (
                    AggregationTemporality.CUMULATIVE
                    if point.is_cumulative
                    else AggregationTemporality.DELTA
                )
            metrics[point.metric] = metric
        metric.data_points.append(
            NumberDataPoint(
                attributes=dict(point.dimensions),
                value=point.value,
                time_unix_nano=point.timestamp * NANOS_PER_MILLI,
            )
        )
    return ResourceMetrics(
        resource_attributes=dict(resource_attributes or {}),
        metrics=list(metrics.values()),
    )


class MetricsConverter:
    """Flattens, translates and filters resource metrics into vendor data points"""

    def __init__(
        self,
        translator: Optional[MetricTranslator] = None,
        exclude_metrics: Optional[Iterable[MetricFilter]] = None,
        include_metrics: Optional[Iterable[MetricFilter]] = None,
        nonalphanumeric_dimension_chars: str = DEFAULT_NONALPHANUMERIC_DIMENSION_CHARS,
        dimension_key_format: DimensionKeyFormat = DimensionKeyFormat.SANITIZE,
    ):
        self.translator = translator
        self.filter_set = FilterSet(exclude_metrics, include_metrics)
        self.nonalphanumeric_dimension_chars = nonalphanumeric_dimension_chars
        self.dimension_key_format = dimension_key_format

    def metric_data_to_data_points(
        self, resource_metrics: Sequence[ResourceMetrics]
    ) -> List[DataPoint]:
        points = []
        for rm in resource_metrics:
            points.extend(resource_metrics_to_data_points(rm))
        if self.translator is not None:
            points = self.translator.translate_data_points(points)
        points = self.filter_set.filter_data_points(points)
        for point in points:
            point.dimensions = self._sanitize_dimensions(point.dimensions)
        return points

    def _sanitize_dimensions(self, dimensions: Dict[str, str]) -> Dict[str, str]:
        """Format keys and drop empty values; on a key collision the first dimension wins"""
        sanitized = {}
        for key, value in dimensions.items():
            if value == "":
                continue
            new_key = format_dimension_key(key, self.dimension_key_format, self.nonalphanumeric_dimension_chars)
            if new_key in sanitized:
                logger.warning(
                    f"Dimension {key} collides with an earlier dimension as {new_key}, dropping it",
                    value=value,
                )
                continue
            sanitized[new_key] = value
        return sanitized
