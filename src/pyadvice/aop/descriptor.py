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
"""The resolved, ordered advices of one operation."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from pyadvice.aop.identity import GenericBinding, ParameterLayout, specialize_member
from pyadvice.aop.ordering import order_advices
from pyadvice.aop.types import AdviceInstance, ReturnShape


@dataclass(frozen=True)
class BoundProperty:
    """The property an accessor operation belongs to."""

    name: str
    prop: property
    is_setter: bool

    @property
    def is_getter(self) -> bool:
        return not self.is_setter


@dataclass(frozen=True)
class AspectDescriptor:
    """Advices applied to one operation, highest priority first.

    Attributes:
        advices: Ordered advice instances; never reordered once built.
        pointcut: The function the innermost layer calls, or ``None`` when
            the operation has no implementation (advised interfaces).
        advised: The declared operation; its signature and return shape
            drive the chain.
        declaring_type: Class declaring *advised*.
        layout: Positional parameter layout of *advised*.
        return_shape: Sync, bare-future or value-future result handling.
        bound_property: Set when *advised* is a property accessor.
        generic: Generic arguments, set on specialized descriptors only.
    """

    advices: tuple[AdviceInstance, ...]
    pointcut: Callable[..., Any] | None
    advised: Callable[..., Any]
    declaring_type: type | None
    layout: ParameterLayout
    return_shape: ReturnShape
    bound_property: BoundProperty | None = None
    generic: GenericBinding | None = None

    @classmethod
    def build(
        cls,
        advices: Iterable[AdviceInstance],
        pointcut: Callable[..., Any] | None,
        advised: Callable[..., Any],
        declaring_type: type | None,
        layout: ParameterLayout,
        bound_property: BoundProperty | None = None,
    ) -> AspectDescriptor:
        return cls(
            advices=order_advices(advices),
            pointcut=pointcut,
            advised=advised,
            declaring_type=declaring_type,
            layout=layout,
            return_shape=ReturnShape.of(advised),
            bound_property=bound_property,
        )

    def add_advice(self, instance: AdviceInstance) -> AspectDescriptor:
        """Return a new descriptor with *instance* merged in priority order."""
        return dataclasses.replace(self, advices=order_advices(self.advices + (instance,)))

    def specialize(self, generic_arguments: Sequence[Any]) -> AspectDescriptor:
        """Return a descriptor bound to concrete generic arguments.

        The advice tuple is shared as is; only the member references are
        re-resolved. ``self`` is left untouched.
        """
        if not generic_arguments:
            return self
        advised, binding = specialize_member(self.advised, self.declaring_type, generic_arguments)
        pointcut = self.pointcut
        if pointcut is not None:
            pointcut = advised if pointcut is self.advised else specialize_member(
                pointcut, self.declaring_type, generic_arguments
            )[0]
        return dataclasses.replace(self, pointcut=pointcut, advised=advised, generic=binding)
