from abc import ABC, abstractmethod
from typing import ClassVar, List, Optional

from metric_translation.models.metrics import DataPoint
from metric_translation.models.rules import BaseRule
from metric_translation.translators.delta_cache import DeltaStateCache


class BaseRuleHandler(ABC):
    """Executes one translation rule against the working set of data points"""

    stateful: ClassVar[bool] = False

    def __init__(self, rule: BaseRule, cache: Optional[DeltaStateCache] = None):
        self.rule = rule
        self.cache = cache

    @abstractmethod
    def apply(self, points: List[DataPoint]) -> List[DataPoint]:
        """Return the working set after this rule; points may be mutated in place"""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule.action})"
