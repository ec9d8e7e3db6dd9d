"""Reads OTLP/JSON metric export payloads into ResourceMetrics."""

import json
from typing import Any, Dict, List, Optional

import structlog

from metric_translation.models.resource import (
    AggregationTemporality,
    Metric,
    MetricDataType,
    NumberDataPoint,
    ResourceMetrics,
)
from metric_translation.utils.json_path import find_first, find_values
from metric_translation.utils.time import parse_unix_nano

logger = structlog.get_logger(__name__)

METRIC_PATHS = (
    "scopeMetrics[*].metrics[*]",
    # pre-1.0 payloads
    "instrumentationLibraryMetrics[*].metrics[*]",
)

TEMPORALITIES = {
    1: AggregationTemporality.DELTA,
    2: AggregationTemporality.CUMULATIVE,
    "AGGREGATION_TEMPORALITY_DELTA": AggregationTemporality.DELTA,
    "AGGREGATION_TEMPORALITY_CUMULATIVE": AggregationTemporality.CUMULATIVE,
}


def any_value(value: Dict[str, Any]) -> Any:
    """Unwrap an OTLP AnyValue"""
    if "stringValue" in value:
        return value["stringValue"]
    if "boolValue" in value:
        return value["boolValue"]
    if "intValue" in value:
        return int(value["intValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "arrayValue" in value:
        return json.dumps([any_value(v) for v in value["arrayValue"].get("values", [])])
    if "kvlistValue" in value:
        return json.dumps(key_values(value["kvlistValue"].get("values", [])))
    return ""


def key_values(attributes: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {kv["key"]: any_value(kv.get("value", {})) for kv in attributes}


def _number_point(raw: Dict[str, Any]) -> Optional[NumberDataPoint]:
    if "asInt" in raw:
        value = int(raw["asInt"])
    elif "asDouble" in raw:
        value = float(raw["asDouble"])
    else:
        return None
    return NumberDataPoint(
        attributes=key_values(raw.get("attributes", [])),
        value=value,
        time_unix_nano=parse_unix_nano(raw.get("timeUnixNano")) or 0,
        start_time_unix_nano=parse_unix_nano(raw.get("startTimeUnixNano")) or 0,
    )


def parse_metric(raw: Dict[str, Any]) -> Metric:
    metric = Metric(
        name=raw["name"],
        data_type=MetricDataType.GAUGE,
        description=raw.get("description", ""),
        unit=raw.get("unit", ""),
    )
    if "sum" in raw:
        body = raw["sum"]
        metric.data_type = MetricDataType.SUM
        metric.is_monotonic = bool(body.get("isMonotonic", False))
        metric.aggregation_temporality = TEMPORALITIES.get(
            body.get("aggregationTemporality"), AggregationTemporality.UNSPECIFIED
        )
    elif "gauge" in raw:
        body = raw["gauge"]
    else:
        for data_type in (MetricDataType.HISTOGRAM, MetricDataType.SUMMARY):
            if data_type.value in raw:
                metric.data_type = data_type
                return metric
        logger.warning(f"Metric {metric.name} has no recognized data section")
        return metric

    for raw_point in body.get("dataPoints", []):
        point = _number_point(raw_point)
        if point is None:
            logger.debug(f"Skipping data point of {metric.name} without a value")
            continue
        metric.data_points.append(point)
    return metric


def parse_resource_metrics(payload: Dict[str, Any]) -> List[ResourceMetrics]:
    """Parse an OTLP/JSON ExportMetricsServiceRequest body"""
    results = []
    for rm in find_values(payload, "resourceMetrics[*]"):
        resource_metrics = ResourceMetrics(
            resource_attributes=key_values(find_first(rm, "resource.attributes", []))
        )
        for path in METRIC_PATHS:
            for raw_metric in find_values(rm, path):
                resource_metrics.metrics.append(parse_metric(raw_metric))
        results.append(resource_metrics)
    logger.debug(f"Parsed {len(results)} resource metrics from OTLP/JSON payload")
    return results
