"""Rules that derive new series from existing ones without consuming them."""

import operator
from typing import Callable, Dict, List, Optional, Tuple

import structlog

from metric_translation.models.metrics import DataPoint, DimensionSignature, MetricType, Number
from metric_translation.models.rules import SeriesSelector
from metric_translation.translators.base import BaseRuleHandler

logger = structlog.get_logger(__name__)


class CopyMetricsHandler(BaseRuleHandler):
    def _selected(self, point: DataPoint) -> bool:
        key = self.rule.dimension_key
        if key is None:
            return True
        value = point.dimensions.get(key)
        if value is None:
            return False
        return self.rule.dimension_values is None or value in self.rule.dimension_values

    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        copies = []
        for point in points:
            new_name = self.rule.mapping.get(point.metric)
            if new_name is not None and self._selected(point):
                copies.append(point.copy(metric=new_name))
        return points + copies


class SplitMetricHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        key = self.rule.dimension_key
        derived = []
        for point in points:
            if point.metric != self.rule.metric_name:
                continue
            new_name = self.rule.mapping.get(point.dimensions.get(key))
            if new_name is None:
                continue
            dimensions = {k: v for k, v in point.dimensions.items() if k != key}
            derived.append(point.copy(metric=new_name, dimensions=dimensions))
        return points + derived


def _divide(dividend: Number, divisor: Number) -> Optional[float]:
    if divisor == 0:
        return None
    return dividend / divisor


OPERATORS: Dict[str, Callable[[Number, Number], Optional[Number]]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _divide,
}


class CalculateNewMetricHandler(BaseRuleHandler):
    """Combines two metrics point by point where their dimension sets are equal."""

    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        rule = self.rule
        operand2: Dict[DimensionSignature, List[DataPoint]] = {}
        for point in points:
            if point.metric == rule.operand2_metric:
                operand2.setdefault(DimensionSignature.of(point, metric=""), []).append(point)

        compute = OPERATORS[rule.operator]
        derived = []
        for point in points:
            if point.metric != rule.operand1_metric:
                continue
            candidates = operand2.get(DimensionSignature.of(point, metric=""))
            if not candidates:
                logger.debug(
                    f"No {rule.operand2_metric} point matches {rule.operand1_metric}, "
                    f"skipping {rule.metric_name}",
                    dimensions=point.dimensions,
                )
                continue
            other = next(
                (c for c in candidates if c.timestamp == point.timestamp), candidates[-1]
            )
            value = compute(point.value, other.value)
            if value is None:
                logger.debug(f"Division by zero computing {rule.metric_name}")
                continue
            derived.append(
                DataPoint(
                    metric=rule.metric_name,
                    value=value,
                    dimensions=dict(point.dimensions),
                    timestamp=point.timestamp,
                    metric_type=MetricType.GAUGE,
                )
            )
        return points + derived


JoinKey = Tuple[DimensionSignature, int]


class ComputeUtilizationHandler(BaseRuleHandler):
    """Emits ``used / (used + free) * 100`` for every signature where all sources report.

    Sources are joined on their dimensions (without each selector's own
    dimension key) and timestamp. A signature that lacks any source, or whose
    total is zero, produces no point.
    """

    @staticmethod
    def _collect(
        selector: SeriesSelector, points: List[DataPoint], first_dims: Dict[JoinKey, Dict[str, str]]
    ) -> Dict[JoinKey, Number]:
        totals: Dict[JoinKey, Number] = {}
        for point in points:
            if point.metric != selector.metric_name:
                continue
            key_name = selector.dimension_key
            if key_name is not None:
                if key_name not in point.dimensions:
                    continue
                if selector.dimension_value is not None and point.dimensions[key_name] != selector.dimension_value:
                    continue
            dimensions = {k: v for k, v in point.dimensions.items() if k != key_name}
            key = (DimensionSignature.from_dimensions("", dimensions), point.timestamp)
            first_dims.setdefault(key, dimensions)
            totals[key] = totals[key] + point.value if key in totals else point.value
        return totals

    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        rule = self.rule
        first_dims: Dict[JoinKey, Dict[str, str]] = {}
        used = [self._collect(s, points, first_dims) for s in rule.used]
        free = [self._collect(s, points, first_dims) for s in rule.free]

        derived = []
        for key in used[0]:
            if not all(key in series for series in used + free):
                logger.debug(f"Incomplete sources for {rule.metric_name}, skipping signature")
                continue
            used_total = sum(series[key] for series in used)
            total = used_total + sum(series[key] for series in free)
            if total == 0:
                continue
            derived.append(
                DataPoint(
                    metric=rule.metric_name,
                    value=used_total / total * 100,
                    dimensions=dict(first_dims[key]),
                    timestamp=key[1],
                    metric_type=MetricType.GAUGE,
                )
            )
        return points + derived
