from pathlib import Path
from typing import TypeVar, Union

import structlog
from pydantic import BaseModel, ValidationError

from metric_translation.errors import ConfigError

ModelT = TypeVar("ModelT", bound="BaseModel")

logger = structlog.get_logger(__name__)


def parse_json_model(s: str, *, model: type[ModelT]) -> ModelT:
    try:
        return model.model_validate_json(s)
    except ValidationError as e:
        if any(err["type"] == "json_invalid" for err in e.errors()):
            logger.error(f"Invalid JSON for {model.__name__}: {str(e)}")
            raise ConfigError(f"invalid JSON for {model.__name__}: {e}") from e
        logger.exception("Failed to validate JSON", model=model.__name__, exc_info=e)
        raise ConfigError(f"invalid {model.__name__}: {e}") from e


def load_json_model(path: Union[str, Path], *, model: type[ModelT]) -> ModelT:
    """Read a JSON file and validate it into model"""
    try:
        with open(path, "r") as f:
            text = f.read()
    except FileNotFoundError as e:
        logger.error(f"Configuration file not found: {path}")
        raise ConfigError(f"configuration file not found: {path}") from e
    logger.info(f"Loaded configuration from {path}")
    return parse_json_model(text, model=model)
