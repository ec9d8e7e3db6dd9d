from typing import Dict, List

import structlog

from metric_translation.models.metrics import DataPoint
from metric_translation.translators.base import BaseRuleHandler

logger = structlog.get_logger(__name__)


def rename_keys(dimensions: Dict[str, str], mapping: Dict[str, str]) -> Dict[str, str]:
    """Rename dimension keys, resolving collisions in favour of the later mapping entry.

    Keys the mapping does not mention rank below every mapped key. The
    surviving key stays at the position where the renamed key first appeared.
    """
    rank = {old: i for i, old in enumerate(mapping)}
    renamed: Dict[str, str] = {}
    winner_rank: Dict[str, int] = {}
    for key, value in dimensions.items():
        new_key = mapping.get(key, key)
        key_rank = rank.get(key, -1)
        if new_key in renamed and key_rank < winner_rank[new_key]:
            continue
        renamed[new_key] = value
        winner_rank[new_key] = key_rank
    return renamed


class RenameDimensionKeysHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        metric_names = set(self.rule.metric_names) if self.rule.metric_names else None
        for point in points:
            if metric_names is not None and point.metric not in metric_names:
                continue
            point.dimensions = rename_keys(point.dimensions, self.rule.mapping)
        return points


class RenameMetricsHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        for point in points:
            new_name = self.rule.mapping.get(point.metric)
            if new_name is not None:
                point.metric = new_name
        return points


class DropDimensionsHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        metric_names = set(self.rule.metric_names) if self.rule.metric_names else None
        dropped = set(self.rule.dimensions)
        for point in points:
            if metric_names is not None and point.metric not in metric_names:
                continue
            point.dimensions = {k: v for k, v in point.dimensions.items() if k not in dropped}
        return points


class DropMetricsHandler(BaseRuleHandler):
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        dropped = set(self.rule.metric_names)
        kept = [point for point in points if point.metric not in dropped]
        if len(kept) != len(points):
            logger.debug(f"drop_metrics removed {len(points) - len(kept)} data points")
        return kept
