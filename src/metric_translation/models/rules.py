"""Declarative translation rule specs.

Each rule kind is a frozen pydantic model tagged by its ``action`` field, so a
list of plain dicts (embedded defaults or user config) validates straight into
the closed set of variants below.
"""

from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from metric_translation.errors import RuleConfigError


class BaseRule(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class RenameDimensionKeysRule(BaseRule):
    action: Literal["rename_dimension_keys"]
    mapping: Dict[str, str] = Field(min_length=1)
    metric_names: Optional[List[str]] = None


class RenameMetricsRule(BaseRule):
    action: Literal["rename_metrics"]
    mapping: Dict[str, str] = Field(min_length=1)


class MultiplyIntRule(BaseRule):
    action: Literal["multiply_int"]
    scale_factors_int: Dict[str, int] = Field(min_length=1)


class DivideIntRule(BaseRule):
    action: Literal["divide_int"]
    scale_factors_int: Dict[str, int] = Field(min_length=1)

    @field_validator("scale_factors_int")
    @classmethod
    def _no_zero_divisor(cls, value: Dict[str, int]) -> Dict[str, int]:
        zero = [metric for metric, divisor in value.items() if divisor == 0]
        if zero:
            raise ValueError(f"divide_int by zero for metrics {zero}")
        return value


class MultiplyFloatRule(BaseRule):
    action: Literal["multiply_float"]
    scale_factors_float: Dict[str, float] = Field(min_length=1)


class ConvertValuesRule(BaseRule):
    action: Literal["convert_values"]
    types_mapping: Dict[str, Literal["int", "double"]] = Field(min_length=1)


class CopyMetricsRule(BaseRule):
    action: Literal["copy_metrics"]
    mapping: Dict[str, str] = Field(min_length=1)
    dimension_key: Optional[str] = None
    dimension_values: Optional[List[str]] = None

    @field_validator("dimension_values")
    @classmethod
    def _values_need_key(cls, value, info):
        if value is not None and not info.data.get("dimension_key"):
            raise ValueError("dimension_values requires dimension_key")
        return value


class SplitMetricRule(BaseRule):
    action: Literal["split_metric"]
    metric_name: str
    dimension_key: str
    mapping: Dict[str, str] = Field(min_length=1)


class AggregateMetricRule(BaseRule):
    action: Literal["aggregate_metric"]
    metric_name: str
    aggregation_method: Literal["sum", "count"] = "sum"
    without_dimensions: List[str] = Field(min_length=1)


class DeltaMetricRule(BaseRule):
    action: Literal["delta_metric"]
    mapping: Dict[str, str] = Field(min_length=1)


class ComputeRateRule(BaseRule):
    action: Literal["compute_rate"]
    mapping: Dict[str, str] = Field(min_length=1)


class SeriesSelector(BaseRule):
    """Selects a source series by name and, optionally, one dimension value.

    The selector's dimension key is left out when series are joined, so
    ``state=used`` and ``state=free`` points of one metric line up.
    """

    metric_name: str
    dimension_key: Optional[str] = None
    dimension_value: Optional[str] = None

    @field_validator("dimension_value")
    @classmethod
    def _value_needs_key(cls, value, info):
        if value is not None and not info.data.get("dimension_key"):
            raise ValueError("dimension_value requires dimension_key")
        return value


class ComputeUtilizationRule(BaseRule):
    action: Literal["compute_utilization"]
    metric_name: str
    used: List[SeriesSelector] = Field(min_length=1)
    free: List[SeriesSelector] = Field(min_length=1)


class CalculateNewMetricRule(BaseRule):
    action: Literal["calculate_new_metric"]
    metric_name: str
    operand1_metric: str
    operand2_metric: str
    operator: Literal["+", "-", "*", "/"]


class DropDimensionsRule(BaseRule):
    action: Literal["drop_dimensions"]
    dimensions: List[str] = Field(min_length=1)
    metric_names: Optional[List[str]] = None


class DropMetricsRule(BaseRule):
    action: Literal["drop_metrics"]
    metric_names: List[str] = Field(min_length=1)


TranslationRule = Annotated[
    Union[
        RenameDimensionKeysRule,
        RenameMetricsRule,
        MultiplyIntRule,
        DivideIntRule,
        MultiplyFloatRule,
        ConvertValuesRule,
        CopyMetricsRule,
        SplitMetricRule,
        AggregateMetricRule,
        DeltaMetricRule,
        ComputeRateRule,
        ComputeUtilizationRule,
        CalculateNewMetricRule,
        DropDimensionsRule,
        DropMetricsRule,
    ],
    Field(discriminator="action"),
]

_rules_adapter = TypeAdapter(List[TranslationRule])


def parse_translation_rules(data: Iterable[Union[Dict[str, Any], BaseRule]]) -> List[BaseRule]:
    """Validate raw rule specs, failing fast on the first malformed rule"""
    raw = [r.model_dump() if isinstance(r, BaseRule) else r for r in data]
    try:
        return _rules_adapter.validate_python(raw)
    except ValidationError as e:
        raise RuleConfigError(f"invalid translation rules: {e}") from e
