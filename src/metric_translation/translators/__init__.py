from .delta_cache import CacheEntry, DeltaStateCache
from .registry import RuleHandlerRegistry, default_registry
from .translator import MetricTranslator

__all__ = [
    "CacheEntry",
    "DeltaStateCache",
    "RuleHandlerRegistry",
    "default_registry",
    "MetricTranslator",
]
