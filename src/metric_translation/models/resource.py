from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union


class MetricDataType(Enum):
    GAUGE = "gauge"
    SUM = "sum"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"


class AggregationTemporality(Enum):
    UNSPECIFIED = "unspecified"
    DELTA = "delta"
    CUMULATIVE = "cumulative"


@dataclass
class NumberDataPoint:
    attributes: Dict[str, Any]
    value: Union[int, float]
    time_unix_nano: int = 0
    start_time_unix_nano: int = 0


@dataclass
class Metric:
    name: str
    data_type: MetricDataType
    data_points: List[NumberDataPoint] = field(default_factory=list)
    description: str = ""
    unit: str = ""
    is_monotonic: bool = False
    aggregation_temporality: AggregationTemporality = AggregationTemporality.CUMULATIVE


@dataclass
class ResourceMetrics:
    resource_attributes: Dict[str, Any] = field(default_factory=dict)
    metrics: List[Metric] = field(default_factory=list)
