import operator
from functools import reduce
from typing import Dict, List, Tuple

import structlog

from metric_translation.models.metrics import DataPoint, DimensionSignature
from metric_translation.translators.base import BaseRuleHandler

logger = structlog.get_logger(__name__)


class AggregateMetricHandler(BaseRuleHandler):
    """Collapses the ``without_dimensions`` axis of one metric.

    Points that are identical after the dimensions are removed (same remaining
    dimensions and same timestamp) are combined into one point. The combined
    points replace their sources and are appended after all other points, in
    the order their groups were first seen.
    """

    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        without = set(self.rule.without_dimensions)
        others: List[DataPoint] = []
        groups: Dict[Tuple[DimensionSignature, int], List[DataPoint]] = {}
        missing = 0

        for point in points:
            if point.metric != self.rule.metric_name:
                others.append(point)
                continue
            if not without.issubset(point.dimensions):
                missing += 1
                continue
            remaining = {k: v for k, v in point.dimensions.items() if k not in without}
            point.dimensions = remaining
            key = (DimensionSignature.from_dimensions(point.metric, remaining), point.timestamp)
            groups.setdefault(key, []).append(point)

        if missing:
            logger.debug(
                f"aggregate_metric skipped {missing} points of {self.rule.metric_name} "
                f"missing one of {self.rule.without_dimensions}"
            )

        aggregated = []
        for members in groups.values():
            first = members[0]
            if self.rule.aggregation_method == "count":
                value = len(members)
            else:
                # plain left-to-right addition: ints stay exact, any float promotes
                value = reduce(operator.add, (m.value for m in members))
            aggregated.append(
                DataPoint(
                    metric=first.metric,
                    value=value,
                    dimensions=dict(first.dimensions),
                    timestamp=first.timestamp,
                    metric_type=first.metric_type,
                )
            )
        return others + aggregated
