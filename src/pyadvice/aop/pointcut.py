"""Pointcut selectors — which advices apply to which operations."""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pyadvice.aop.decorators import EXCLUDE_POINTCUT_ATTR, INCLUDE_POINTCUT_ATTR
from pyadvice.aop.types import AdviceInstance, type_name
from pyadvice.kernel.exceptions import SelectorConfigurationException


def matches_pointcut(pattern: str, qualified_name: str) -> bool:
    """Check whether *qualified_name* matches a pointcut *pattern*.

    Pattern syntax
    --------------
    * ``*``  matches exactly one dot-separated segment.
    * ``**`` matches one or more segments (crosses dots).
    * Partial globs inside a segment use ``*`` and ``?``,
      e.g. ``get_*`` matches ``get_order``.

    Examples
    --------
    >>> matches_pointcut("orders.*.*", "orders.OrderService.place")
    True
    >>> matches_pointcut("**.*Service.get_*", "a.b.OrderService.get_total")
    True
    >>> matches_pointcut("*.place", "orders.OrderService.place")
    False
    """
    return _compile(pattern).fullmatch(qualified_name) is not None


def _segment_to_regex(seg: str) -> str:
    if seg == "**":
        return r"(?:[^.]+\.)*[^.]+"
    if seg == "*":
        return r"[^.]+"
    parts: list[str] = []
    for ch in seg:
        if ch == "*":
            parts.append("[^.]*")
        elif ch == "?":
            parts.append("[^.]")
        else:
            parts.append(re.escape(ch))
    return "".join(parts)


@functools.lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern[str]:
    validate_pattern(pattern)
    return re.compile(r"\.".join(_segment_to_regex(seg) for seg in pattern.split(".")))


def validate_pattern(pattern: object) -> None:
    """Reject empty patterns, empty segments and non-string rules."""
    if not isinstance(pattern, str):
        raise SelectorConfigurationException(
            f"selector pattern must be a string, got {pattern!r}",
            code="SELECTOR_001",
        )
    if not pattern or any(not seg for seg in pattern.split(".")):
        raise SelectorConfigurationException(
            f"malformed selector pattern '{pattern}'",
            code="SELECTOR_002",
            context={"pattern": pattern},
        )


@dataclass(frozen=True)
class PointcutSelector:
    """Inclusion/exclusion rule set.

    A name is selected when it matches at least one inclusion (or there are
    none) and matches no exclusion.
    """

    includes: tuple[str, ...] = ()
    excludes: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for pattern in self.includes + self.excludes:
            validate_pattern(pattern)

    def select(self, name: str) -> bool:
        if self.includes and not any(matches_pointcut(p, name) for p in self.includes):
            return False
        return not any(matches_pointcut(p, name) for p in self.excludes)

    @classmethod
    def for_advice_type(cls, advice_type: type) -> PointcutSelector:
        return cls(
            includes=tuple(getattr(advice_type, INCLUDE_POINTCUT_ATTR, ())),
            excludes=tuple(getattr(advice_type, EXCLUDE_POINTCUT_ATTR, ())),
        )


def select_advices(
    advices: Iterable[AdviceInstance],
    operation_name: str,
    exclusions: Sequence[str] = (),
) -> list[AdviceInstance]:
    """Keep advices whose own selector accepts *operation_name*, minus local exclusions."""
    local = PointcutSelector(excludes=tuple(exclusions))
    selected: list[AdviceInstance] = []
    for instance in advices:
        if not PointcutSelector.for_advice_type(instance.advice_type).select(operation_name):
            continue
        if not local.select(type_name(instance.advice_type)):
            continue
        selected.append(instance)
    return selected
