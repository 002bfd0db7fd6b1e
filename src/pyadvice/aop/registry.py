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
"""AdviceRegistry — the declarative store of advice attachments.

Decorators record :class:`AdviceDeclaration` tuples directly on their owners
(modules, classes, functions, property getters). The registry harvests those
records once per owner and merges them with declarations registered
programmatically, so discovery never reads decorator metadata itself.

Usage::

    registry = AdviceRegistry()
    registry.declare(OrderService, AdviceDeclaration(Audit(), AdviceScope.TYPE))
    registry.declarations(OrderService)
"""

from __future__ import annotations

import sys
import threading
import types
from typing import Any

from pyadvice.aop.identity import unwrap_stub
from pyadvice.aop.types import AdviceDeclaration

ADVICES_ATTR = "__pyadvice_advices__"
PROPERTY_ADVICES_ATTR = "__pyadvice_property_advices__"
EXCLUSIONS_ATTR = "__pyadvice_exclusions__"


def _own(owner: Any, attr: str) -> tuple[Any, ...]:
    """Read metadata declared on *owner* itself, never inherited."""
    try:
        namespace = vars(owner)
    except TypeError:
        return ()
    return tuple(namespace.get(attr, ()))


def _key(owner: Any) -> Any:
    if isinstance(owner, types.ModuleType):
        return owner.__name__
    if isinstance(owner, property):
        return ("property", unwrap_stub(owner.fget))
    return owner


class AdviceRegistry:
    """Collects advice declarations and exclusion rules per owner."""

    def __init__(self) -> None:
        self._declared: dict[Any, list[AdviceDeclaration]] = {}
        self._exclusions: dict[Any, list[str]] = {}
        self._harvested: dict[Any, tuple[AdviceDeclaration, ...]] = {}
        self._lock = threading.Lock()

    def declare(self, owner: Any, declaration: AdviceDeclaration) -> None:
        """Register *declaration* on *owner* (module name, module, class, function or property)."""
        with self._lock:
            self._declared.setdefault(_key(owner), []).append(declaration)

    def exclude(self, owner: Any, *patterns: str) -> None:
        """Register advice exclusion patterns on *owner*."""
        with self._lock:
            self._exclusions.setdefault(_key(owner), []).extend(patterns)

    def declarations(self, owner: Any) -> tuple[AdviceDeclaration, ...]:
        """All declarations attached to *owner*, decorator-declared first."""
        key = _key(owner)
        harvested = self._harvested.get(key)
        if harvested is None:
            harvested = self._harvest(owner)
            with self._lock:
                harvested = self._harvested.setdefault(key, harvested)
        return harvested + tuple(self._declared.get(key, ()))

    def exclusions(self, owner: Any) -> tuple[str, ...]:
        source = self._module(owner) if isinstance(owner, str) else owner
        return _own(source, EXCLUSIONS_ATTR) + tuple(self._exclusions.get(_key(owner), ()))

    def _harvest(self, owner: Any) -> tuple[AdviceDeclaration, ...]:
        if isinstance(owner, str):
            return _own(self._module(owner), ADVICES_ATTR)
        if isinstance(owner, property):
            return _own(unwrap_stub(owner.fget), PROPERTY_ADVICES_ATTR) if owner.fget is not None else ()
        return _own(owner, ADVICES_ATTR)

    @staticmethod
    def _module(name: str) -> Any:
        return sys.modules.get(name)
