from typing import List

import structlog

from metric_translation.models.metrics import DataPoint, ValueKind
from metric_translation.translators.base import BaseRuleHandler

logger = structlog.get_logger(__name__)


def truncating_div(dividend: int, divisor: int) -> int:
    """Integer division rounding toward zero, exact for arbitrarily large ints"""
    quotient = abs(dividend) // abs(divisor)
    return quotient if (dividend < 0) == (divisor < 0) else -quotient


def _report_non_int(rule_action: str, point: DataPoint):
    logger.warning(
        f"{rule_action} only applies to int values, leaving {point.metric} unchanged",
        metric=point.metric,
        value=point.value,
    )


class MultiplyIntHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        for point in points:
            factor = self.rule.scale_factors_int.get(point.metric)
            if factor is None:
                continue
            if point.value_kind != ValueKind.INT:
                _report_non_int(self.rule.action, point)
                continue
            point.value = point.value * factor
        return points


class DivideIntHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        for point in points:
            divisor = self.rule.scale_factors_int.get(point.metric)
            if divisor is None:
                continue
            if point.value_kind != ValueKind.INT:
                _report_non_int(self.rule.action, point)
                continue
            point.value = truncating_div(point.value, divisor)
        return points


class MultiplyFloatHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        for point in points:
            factor = self.rule.scale_factors_float.get(point.metric)
            if factor is not None:
                point.value = float(point.value) * factor
        return points


class ConvertValuesHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        for point in points:
            target = self.rule.types_mapping.get(point.metric)
            if target == "int":
                try:
                    point.value = int(point.value)
                except (OverflowError, ValueError):
                    logger.warning(f"Cannot convert {point.value} of {point.metric} to int")
            elif target == "double":
                point.value = float(point.value)
        return points
