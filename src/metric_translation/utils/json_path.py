from functools import lru_cache
from typing import Any, List

import jsonpath_ng.ext as jsonpath


@lru_cache(maxsize=64)
def compile_path(expression: str):
    return jsonpath.parse(expression)


def find_values(data: Any, expression: str) -> List[Any]:
    """Return every value the JSONPath expression matches in data"""
    return [match.value for match in compile_path(expression).find(data)]


def find_first(data: Any, expression: str, default: Any = None) -> Any:
    values = find_values(data, expression)
    return values[0] if values else default
