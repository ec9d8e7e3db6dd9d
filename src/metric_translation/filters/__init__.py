from .metric_filter import DataPointFilter, FilterSet
from .string_filter import StringFilter

__all__ = ["DataPointFilter", "FilterSet", "StringFilter"]
