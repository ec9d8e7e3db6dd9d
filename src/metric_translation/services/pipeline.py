from typing import Callable, List, Optional

import structlog

from metric_translation.config import ExporterConfig, set_default_excludes
from metric_translation.converters.otel import MetricsConverter
from metric_translation.defaults import load_default_translation_rules
from metric_translation.models.rules import BaseRule, parse_translation_rules
from metric_translation.translators.translator import MetricTranslator

logger = structlog.get_logger(__name__)


def resolve_translation_rules(cfg: ExporterConfig) -> List[BaseRule]:
    """User rules first, then the built-in rules unless they are disabled"""
    rules = parse_translation_rules(cfg.translation_rules)
    if not cfg.disable_default_translation_rules:
        rules.extend(load_default_translation_rules())
    return rules


def create_metrics_converter(
    cfg: ExporterConfig, clock: Optional[Callable[[], float]] = None
) -> MetricsConverter:
    """Build the translate-and-filter pipeline for one exporter instance.

    All rule and filter validation happens here, so a converter is never
    returned in a partially usable state. ``cfg`` itself is not modified.
    """
    resolved = set_default_excludes(cfg.model_copy(deep=True))
    rules = resolve_translation_rules(resolved)
    translator = MetricTranslator(rules, resolved.delta_translation_ttl, clock=clock) if rules else None
    converter = MetricsConverter(
        translator=translator,
        exclude_metrics=resolved.exclude_metrics,
        include_metrics=resolved.include_metrics,
        nonalphanumeric_dimension_chars=resolved.nonalphanumeric_dimension_chars,
        dimension_key_format=resolved.dimension_key_format,
    )
    logger.info(
        "Created metrics converter",
        rules=len(rules),
        excludes=len(resolved.exclude_metrics),
        includes=len(resolved.include_metrics),
    )
    return converter
