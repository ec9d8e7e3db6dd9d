import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from metric_translation.defaults import load_default_exclude_metrics
from metric_translation.models.filters import MetricFilter
from metric_translation.translators.translator import DEFAULT_DELTA_TRANSLATION_TTL
from metric_translation.utils.formatters import (
    DEFAULT_NONALPHANUMERIC_DIMENSION_CHARS,
    DimensionKeyFormat,
)
from metric_translation.utils.utils import load_json_model

logger = structlog.get_logger(__name__)

CONFIG_PATH_ENV = "METRIC_TRANSLATION_CONFIG"
DEFAULT_CONFIG_PATH = "config.json"


class ExporterConfig(BaseModel):
    """Resolved settings for one exporter instance.

    ``exclude_metrics`` keeps the difference between unset (``None``: use the
    built-in excludes) and explicitly empty (``[]``: exclude nothing) until
    ``set_default_excludes`` resolves it.
    """

    model_config = ConfigDict(extra="forbid")

    translation_rules: List[Dict[str, Any]] = []
    disable_default_translation_rules: bool = False
    delta_translation_ttl: int = Field(default=DEFAULT_DELTA_TRANSLATION_TTL, gt=0)
    exclude_metrics: Optional[List[MetricFilter]] = None
    include_metrics: List[MetricFilter] = []
    nonalphanumeric_dimension_chars: str = DEFAULT_NONALPHANUMERIC_DIMENSION_CHARS
    dimension_key_format: DimensionKeyFormat = DimensionKeyFormat.SANITIZE


def set_default_excludes(cfg: ExporterConfig) -> ExporterConfig:
    """Merge the built-in excludes into cfg.exclude_metrics in place"""
    if cfg.exclude_metrics is None:
        cfg.exclude_metrics = list(load_default_exclude_metrics())
    elif cfg.exclude_metrics:
        cfg.exclude_metrics = list(load_default_exclude_metrics()) + cfg.exclude_metrics
    else:
        logger.info("exclude_metrics explicitly empty, default excludes disabled")
    return cfg


def load_config(path: Optional[Union[str, Path]] = None) -> ExporterConfig:
    path = path or os.getenv(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)
    return load_json_model(path, model=ExporterConfig)
