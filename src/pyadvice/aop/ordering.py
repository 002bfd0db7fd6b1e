# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""@priority decorator and the priority-descending advice sort."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from pyadvice.aop.types import AdviceInstance

T = TypeVar("T", bound=type)

DEFAULT_PRIORITY: int = 0

# Reserved for marking abstract properties; it carries no ordering meaning here.
ABSTRACT_PRIORITY: int = -(2**31)

_PRIORITY_ATTR = "__pyadvice_priority__"


def priority(level: int) -> Callable[[T], T]:
    """Set the priority of an advice class.

    Higher value = outer layer (runs first). Undecorated advices have
    priority ``DEFAULT_PRIORITY``. Subclasses inherit the level.
    """
    if not isinstance(level, int) or isinstance(level, bool):
        raise TypeError("priority level must be an int")

    def decorator(cls: T) -> T:
        setattr(cls, _PRIORITY_ATTR, level)
        return cls

    return decorator


def get_priority(advice: Any) -> int:
    """Get the priority of an advice instance or class, defaulting to 0."""
    cls = advice if isinstance(advice, type) else type(advice)
    return getattr(cls, _PRIORITY_ATTR, DEFAULT_PRIORITY)


def order_advices(advices: Iterable[AdviceInstance]) -> tuple[AdviceInstance, ...]:
    """Sort by priority, highest first; equal priorities keep discovery order."""
    return tuple(sorted(advices, key=lambda a: a.priority, reverse=True))
