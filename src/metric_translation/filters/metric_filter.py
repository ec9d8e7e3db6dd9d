from typing import Dict, Iterable, List, Optional, Sequence

import structlog

from metric_translation.models.filters import MetricFilter
from metric_translation.models.metrics import DataPoint
from .string_filter import StringFilter

logger = structlog.get_logger(__name__)


class DataPointFilter:
    """Compiled form of one MetricFilter"""

    def __init__(self, source: MetricFilter):
        self.source = source
        names = source.all_metric_names()
        self.name_filter: Optional[StringFilter] = StringFilter(names) if names else None
        self.dimension_filters: Dict[str, StringFilter] = {
            key: StringFilter(values) for key, values in source.dimension_patterns().items()
        }

    def matches(self, point: DataPoint) -> bool:
        if self.name_filter is not None and not self.name_filter.matches(point.metric):
            return False
        for key, value_filter in self.dimension_filters.items():
            value = point.dimensions.get(key)
            if value is None or not value_filter.matches(value):
                return False
        return True


class FilterSet:
    """Exclude-unless-included filtering of translated data points"""

    def __init__(
        self,
        excludes: Optional[Iterable[MetricFilter]] = None,
        includes: Optional[Iterable[MetricFilter]] = None,
    ):
        self.excludes: List[DataPointFilter] = [DataPointFilter(f) for f in excludes or []]
        self.includes: List[DataPointFilter] = [DataPointFilter(f) for f in includes or []]

    def should_exclude(self, point: DataPoint) -> bool:
        if not any(f.matches(point) for f in self.excludes):
            return False
        return not any(f.matches(point) for f in self.includes)

    def filter_data_points(self, points: Sequence[DataPoint]) -> List[DataPoint]:
        kept = [point for point in points if not self.should_exclude(point)]
        if len(kept) != len(points):
            logger.debug(f"Excluded {len(points) - len(kept)} of {len(points)} data points")
        return kept
