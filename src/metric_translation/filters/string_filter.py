import fnmatch
import re
from typing import List, Pattern, Sequence

from metric_translation.errors import FilterConfigError

GLOB_CHARS = set("*?[")


def _compile(item: str) -> Pattern:
    if len(item) > 1 and item.startswith("/") and item.endswith("/"):
        try:
            return re.compile(item[1:-1])
        except re.error as e:
            raise FilterConfigError(f"invalid regex {item!r} in filter: {e}") from e
    if GLOB_CHARS.intersection(item):
        return re.compile(r"\A" + fnmatch.translate(item))
    return re.compile(r"\A" + re.escape(item) + r"\Z")


class StringFilter:
    """Matches strings against literals, globs and ``/regex/`` items.

    Literals and globs must match the whole string, regexes may match
    anywhere in it. Items prefixed with ``!`` are negated. A string matches
    when it matches some positive item (or there are none) and no negated item.
    """

    def __init__(self, items: Sequence[str]):
        if not items:
            raise FilterConfigError("string filter needs at least one item")
        self.items = list(items)
        self._positive: List[Pattern] = []
        self._negative: List[Pattern] = []
        for item in self.items:
            if item.startswith("!"):
                self._negative.append(_compile(item[1:]))
            else:
                self._positive.append(_compile(item))

    def matches(self, value: str) -> bool:
        if any(p.search(value) for p in self._negative):
            return False
        if not self._positive:
            return True
        return any(p.search(value) for p in self._positive)

    def __repr__(self) -> str:
        return f"StringFilter({self.items!r})"
