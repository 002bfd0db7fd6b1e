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
"""Harvests advice declarations from every scope of an operation."""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pyadvice.aop.descriptor import BoundProperty
from pyadvice.aop.identity import ParameterLayout, unwrap_stub
from pyadvice.aop.registry import AdviceRegistry
from pyadvice.aop.types import (
    RETURN_INDEX,
    AdviceDeclaration,
    AdviceInstance,
    AdviceScope,
    Capability,
)
from pyadvice.kernel.exceptions import ConfigurationException


@dataclass(frozen=True)
class Discovery:
    """Unordered discovery result, in discovery order."""

    advices: tuple[AdviceInstance, ...]
    bound_property: BoundProperty | None
    owners: tuple[Any, ...]


def enclosing_types(cls: type) -> list[type]:
    """Classes lexically enclosing *cls*, outermost first."""
    module = sys.modules.get(cls.__module__)
    parts = cls.__qualname__.split(".")[:-1]
    if module is None or "<locals>" in parts:
        return []
    found: list[type] = []
    current: Any = module
    for part in parts:
        current = getattr(current, part, None)
        if not isinstance(current, type):
            break
        found.append(current)
    return found


def type_chain(declaring_type: type | None) -> list[type]:
    """Enclosing and ancestor types, ancestors before the declaring type, deduplicated."""
    if declaring_type is None:
        return []
    chain: list[type] = []
    for t in [*enclosing_types(declaring_type), declaring_type]:
        for ancestor in reversed(t.__mro__):
            if ancestor is object or ancestor in chain:
                continue
            chain.append(ancestor)
    return chain


def find_property(declaring_type: type | None, function: Callable[..., Any]) -> BoundProperty | None:
    """The property whose getter or setter is *function*, if any."""
    if declaring_type is None:
        return None
    for name, raw in vars(declaring_type).items():
        if not isinstance(raw, property):
            continue
        if raw.fget is not None and unwrap_stub(raw.fget) is function:
            return BoundProperty(name=name, prop=raw, is_setter=False)
        if raw.fset is not None and unwrap_stub(raw.fset) is function:
            return BoundProperty(name=name, prop=raw, is_setter=True)
    return None


def _merge(declarations: Iterable[AdviceDeclaration], seen: set[int], into: list[AdviceInstance]) -> None:
    for declaration in declarations:
        if declaration.scope in (AdviceScope.PARAMETER, AdviceScope.RETURN):
            continue
        if id(declaration.advice) in seen:
            continue
        seen.add(id(declaration.advice))
        into.append(AdviceInstance.of(declaration.advice))


def discover(
    function: Callable[..., Any],
    declaring_type: type | None,
    layout: ParameterLayout,
    registry: AdviceRegistry,
) -> Discovery:
    """Collect every advice applying to *function*.

    Whole-operation advices come from modules, the type chain, the
    operation and its property, in that order. Those with the parameter
    capability are then replicated once per parameter and once for the
    return value, alongside advices attached to parameters explicitly.
    """
    types_ = type_chain(declaring_type)
    modules: list[str] = []
    for t in types_:
        if t.__module__ not in modules:
            modules.append(t.__module__)

    bound = find_property(declaring_type, function)
    owners: list[Any] = [*modules, *types_, function]
    if bound is not None:
        owners.append(bound.prop)

    seen: set[int] = set()
    whole: list[AdviceInstance] = []
    for owner in owners:
        _merge(registry.declarations(owner), seen, whole)

    per_parameter = [a for a in whole if a.has(Capability.PARAMETER)]
    advices = [a for a in whole if not a.has(Capability.PARAMETER)]

    explicit: dict[int, list[AdviceInstance]] = {}
    for declaration in registry.declarations(function):
        if declaration.scope is AdviceScope.PARAMETER:
            try:
                index = layout.index_of(declaration.parameter)  # type: ignore[arg-type]
            except (ValueError, IndexError) as exc:
                raise ConfigurationException(
                    f"{function.__qualname__} has no parameter {declaration.parameter!r}",
                    code="DECLARATION_010",
                ) from exc
        elif declaration.scope is AdviceScope.RETURN:
            index = RETURN_INDEX
        else:
            continue
        explicit.setdefault(index, []).append(AdviceInstance.of(declaration.advice, index))

    indices = list(range(len(layout)))
    if function.__name__ != "__init__":
        indices.append(RETURN_INDEX)
    for index in indices:
        advices.extend(AdviceInstance.of(a.advice, index) for a in per_parameter)
        advices.extend(explicit.get(index, ()))

    return Discovery(advices=tuple(advices), bound_property=bound, owners=tuple(owners))
