from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Tuple, Union

from metric_translation.errors import DataPointTypeError

Number = Union[int, float]


class MetricType(Enum):
    GAUGE = "GAUGE"
    COUNTER = "COUNTER"
    CUMULATIVE_COUNTER = "CUMULATIVE_COUNTER"


class ValueKind(Enum):
    INT = "int"
    DOUBLE = "double"


def value_kind_of(value: Any) -> ValueKind:
    """Return the numeric kind of a value, rejecting anything that is not int or float"""
    # bool is an int subclass but never a valid measurement
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DataPointTypeError(
            f"data point value must be int or float, got {type(value).__name__}"
        )
    return ValueKind.INT if isinstance(value, int) else ValueKind.DOUBLE


@dataclass
class DataPoint:
    metric: str
    value: Number
    dimensions: Dict[str, str] = field(default_factory=dict)
    timestamp: int = 0
    metric_type: MetricType = MetricType.GAUGE

    def __post_init__(self):
        value_kind_of(self.value)

    @property
    def value_kind(self) -> ValueKind:
        return value_kind_of(self.value)

    @property
    def is_cumulative(self) -> bool:
        return self.metric_type == MetricType.CUMULATIVE_COUNTER

    def copy(self, **changes: Any) -> "DataPoint":
        """Return a copy that owns its own dimension dict"""
        values = {
            "metric": self.metric,
            "value": self.value,
            "dimensions": dict(self.dimensions),
            "timestamp": self.timestamp,
            "metric_type": self.metric_type,
        }
        values.update(changes)
        return DataPoint(**values)

    def to_dict(self) -> Dict[str, Any]:
        if self.value_kind == ValueKind.INT:
            value = {"intValue": self.value}
        else:
            value = {"doubleValue": self.value}
        return {
            "metric": self.metric,
            "value": value,
            "dimensions": [{"key": k, "value": v} for k, v in self.dimensions.items()],
            "timestamp": self.timestamp,
            "metricType": self.metric_type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataPoint":
        raw_value = data.get("value", {})
        if "intValue" in raw_value:
            value = int(raw_value["intValue"])
        elif "doubleValue" in raw_value:
            value = float(raw_value["doubleValue"])
        else:
            raise DataPointTypeError(
                f"data point {data.get('metric')!r} has no intValue or doubleValue"
            )
        return cls(
            metric=data["metric"],
            value=value,
            dimensions={d["key"]: d["value"] for d in data.get("dimensions") or []},
            timestamp=int(data.get("timestamp", 0)),
            metric_type=MetricType(data.get("metricType", MetricType.GAUGE.value)),
        )


class DimensionSignature(NamedTuple):
    """Order-independent identity of one time series"""

    metric: str
    dimensions: Tuple[Tuple[str, str], ...]

    @classmethod
    def of(cls, point: DataPoint, metric: Optional[str] = None) -> "DimensionSignature":
        return cls.from_dimensions(point.metric if metric is None else metric, point.dimensions)

    @classmethod
    def from_dimensions(cls, metric: str, dimensions: Dict[str, str]) -> "DimensionSignature":
        return cls(metric, tuple(sorted(dimensions.items())))
