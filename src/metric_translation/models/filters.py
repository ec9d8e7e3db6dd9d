from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator


class MetricFilter(BaseModel):
    """One exclude/include entry: metric name patterns plus dimension constraints"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    metric_name: Optional[str] = None
    metric_names: List[str] = []
    dimensions: Dict[str, Union[str, List[str]]] = {}

    @model_validator(mode="after")
    def _has_criteria(self) -> "MetricFilter":
        if not self.metric_name and not self.metric_names and not self.dimensions:
            raise ValueError("filter needs metric_name, metric_names or dimensions")
        return self

    def all_metric_names(self) -> List[str]:
        names = list(self.metric_names)
        if self.metric_name:
            names.insert(0, self.metric_name)
        return names

    def dimension_patterns(self) -> Dict[str, List[str]]:
        return {
            key: [value] if isinstance(value, str) else list(value)
            for key, value in self.dimensions.items()
        }
