from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

import structlog

from metric_translation.errors import RuleConfigError
from metric_translation.models.metrics import DataPoint
from metric_translation.models.rules import BaseRule, parse_translation_rules
from .delta_cache import DeltaStateCache
from .registry import RuleHandlerRegistry, default_registry

logger = structlog.get_logger(__name__)

DEFAULT_DELTA_TRANSLATION_TTL = 3600


class MetricTranslator:
    """Applies an ordered, immutable list of translation rules to batches of data points.

    Rules run in declaration order and each one sees the output of the rules
    before it. The rule list is shared read-only between calls; the delta
    caches owned by stateful rules are the only state carried across batches.
    """

    def __init__(
        self,
        rules: Iterable[Union[Dict[str, Any], BaseRule]],
        delta_translation_ttl: float = DEFAULT_DELTA_TRANSLATION_TTL,
        registry: Optional[RuleHandlerRegistry] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        if delta_translation_ttl <= 0:
            raise RuleConfigError(
                f"delta_translation_ttl must be positive, got {delta_translation_ttl}"
            )
        self.rules = tuple(parse_translation_rules(rules))
        self.delta_translation_ttl = delta_translation_ttl
        registry = registry or default_registry()
        self._handlers = tuple(
            registry.build(rule, lambda: DeltaStateCache(delta_translation_ttl, clock=clock))
            for rule in self.rules
        )
        logger.debug(f"Metric translator ready with {len(self.rules)} rules")

    def translate_data_points(self, points: Sequence[DataPoint]) -> List[DataPoint]:
        """Translate one batch; the input points are left untouched"""
        working = [point.copy() for point in points]
        for handler in self._handlers:
            working = handler.apply(working)
        return working
