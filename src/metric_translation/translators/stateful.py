from abc import abstractmethod
from typing import List

import structlog

from metric_translation.models.metrics import DataPoint, DimensionSignature, MetricType
from metric_translation.translators.base import BaseRuleHandler

logger = structlog.get_logger(__name__)


class _CumulativeHandler(BaseRuleHandler):
    """Base for rules that emit a new series derived from consecutive cumulative observations"""

    stateful = True
    output_type = MetricType.GAUGE

    @abstractmethod
    def _derive(self, signature: DimensionSignature, point: DataPoint):
        """Return the value to emit for this observation, or None to emit nothing"""
        pass

    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        derived = []
        for point in points:
            new_name = self.rule.mapping.get(point.metric)
            if new_name is None:
                continue
            if not point.is_cumulative:
                logger.debug(
                    f"{self.rule.action} ignores non-cumulative {point.metric}",
                    metric_type=point.metric_type.value,
                )
                continue
            value = self._derive(DimensionSignature.of(point), point)
            if value is None:
                continue
            derived.append(
                DataPoint(
                    metric=new_name,
                    value=value,
                    dimensions=dict(point.dimensions),
                    timestamp=point.timestamp,
                    metric_type=self.output_type,
                )
            )
        return points + derived


class DeltaMetricHandler(_CumulativeHandler):
    output_type = MetricType.COUNTER

    def _derive(self, signature: DimensionSignature, point: DataPoint):
        return self.cache.delta(signature, point.value, point.timestamp)


class ComputeRateHandler(_CumulativeHandler):
    def _derive(self, signature: DimensionSignature, point: DataPoint):
        return self.cache.lookup_and_update(signature, point.value, point.timestamp)
