from typing import Callable, Dict, Optional, Type

import structlog

from metric_translation.errors import RuleConfigError
from metric_translation.models.rules import BaseRule
from .aggregate import AggregateMetricHandler
from .base import BaseRuleHandler
from .delta_cache import DeltaStateCache
from .derive import (
    CalculateNewMetricHandler,
    ComputeUtilizationHandler,
    CopyMetricsHandler,
    SplitMetricHandler,
)
from .renames import (
    DropDimensionsHandler,
    DropMetricsHandler,
    RenameDimensionKeysHandler,
    RenameMetricsHandler,
)
from .stateful import ComputeRateHandler, DeltaMetricHandler
from .values import ConvertValuesHandler, DivideIntHandler, MultiplyFloatHandler, MultiplyIntHandler

logger = structlog.get_logger(__name__)


class RuleHandlerRegistry:
    def __init__(self):
        self.handlers: Dict[str, Type[BaseRuleHandler]] = {}

    def register(self, action: str, handler: Type[BaseRuleHandler]):
        self.handlers[action] = handler

    def get_handler(self, action: str) -> Optional[Type[BaseRuleHandler]]:
        return self.handlers.get(action)

    def build(
        self, rule: BaseRule, cache_factory: Callable[[], DeltaStateCache]
    ) -> BaseRuleHandler:
        """Instantiate the handler for a rule; stateful handlers get their own cache"""
        handler_cls = self.get_handler(rule.action)
        if handler_cls is None:
            raise RuleConfigError(f"no handler registered for action {rule.action!r}")
        cache = cache_factory() if handler_cls.stateful else None
        logger.debug(f"Built {handler_cls.__name__} for {rule.action}")
        return handler_cls(rule, cache)


def default_registry() -> RuleHandlerRegistry:
    registry = RuleHandlerRegistry()
    registry.register("rename_dimension_keys", RenameDimensionKeysHandler)
    registry.register("rename_metrics", RenameMetricsHandler)
    registry.register("multiply_int", MultiplyIntHandler)
    registry.register("divide_int", DivideIntHandler)
    registry.register("multiply_float", MultiplyFloatHandler)
    registry.register("convert_values", ConvertValuesHandler)
    registry.register("copy_metrics", CopyMetricsHandler)
    registry.register("split_metric", SplitMetricHandler)
    registry.register("aggregate_metric", AggregateMetricHandler)
    registry.register("delta_metric", DeltaMetricHandler)
    registry.register("compute_rate", ComputeRateHandler)
    registry.register("compute_utilization", ComputeUtilizationHandler)
    registry.register("calculate_new_metric", CalculateNewMetricHandler)
    registry.register("drop_dimensions", DropDimensionsHandler)
    registry.register("drop_metrics", DropMetricsHandler)
    return registry
