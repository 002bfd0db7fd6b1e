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
"""AOP core types — advice capabilities, declarations and return shapes.

An advice is any object deriving from one or more capability base classes.
Each capability contributes its own layer to the invocation chain::

    @priority(10)
    class Timing(MethodAdvice):
        def advise_method(self, context: MethodAdviceContext) -> None:
            started = time.perf_counter()
            context.proceed()
            context.target.last_duration = time.perf_counter() - started
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from pyadvice.aop.ordering import get_priority

if TYPE_CHECKING:
    from pyadvice.aop.context import (
        AsyncMethodAdviceContext,
        MethodAdviceContext,
        MethodInfoAdviceContext,
        ParameterAdviceContext,
        PropertyAdviceContext,
        PropertyInfoAdviceContext,
    )

RETURN_INDEX = -1


class Capability(Enum):
    """Invocation-time behaviors an advice may implement (several at once)."""

    PARAMETER = auto()
    OPERATION = auto()
    ASYNC_OPERATION = auto()
    PROPERTY = auto()


class AdviceScope(Enum):
    """Where an advice was attached."""

    MODULE = auto()
    TYPE = auto()
    OPERATION = auto()
    PROPERTY = auto()
    PARAMETER = auto()
    RETURN = auto()


class ReturnShape(Enum):
    """How the externally observable result of an operation is produced."""

    SYNC = auto()
    FUTURE = auto()
    VALUE_FUTURE = auto()

    @classmethod
    def of(cls, function: Any) -> ReturnShape:
        if function is None or not inspect.iscoroutinefunction(function):
            return cls.SYNC
        annotation = inspect.signature(function).return_annotation
        if annotation is None or annotation is type(None) or annotation == "None":
            return cls.FUTURE
        return cls.VALUE_FUTURE


# ---------------------------------------------------------------------------
# Capability base classes
# ---------------------------------------------------------------------------


class Advice:
    """Marker base for every advice."""


class MethodAdvice(Advice, ABC):
    """Wraps the whole operation; call ``context.proceed()`` to continue."""

    @abstractmethod
    def advise_method(self, context: MethodAdviceContext) -> None: ...


class AsyncMethodAdvice(Advice, ABC):
    """Coroutine-based operation advice; ``await context.proceed_async()``."""

    @abstractmethod
    async def advise_method_async(self, context: AsyncMethodAdviceContext) -> None: ...


class PropertyAdvice(Advice, ABC):
    """Wraps property getters and setters."""

    @abstractmethod
    def advise_property(self, context: PropertyAdviceContext) -> None: ...


class ParameterAdvice(Advice, ABC):
    """Wraps one parameter (or the return value) of an operation."""

    @abstractmethod
    def advise_parameter(self, context: ParameterAdviceContext) -> None: ...


class MethodInfoAdvice(Advice, ABC):
    """Runs once per operation when its class is woven."""

    @abstractmethod
    def advise_method_info(self, context: MethodInfoAdviceContext) -> None: ...


class PropertyInfoAdvice(Advice, ABC):
    """Runs once per property when its class is woven."""

    @abstractmethod
    def advise_property_info(self, context: PropertyInfoAdviceContext) -> None: ...


def capabilities_of(advice: Any) -> frozenset[Capability]:
    caps: set[Capability] = set()
    if isinstance(advice, ParameterAdvice):
        caps.add(Capability.PARAMETER)
    if isinstance(advice, MethodAdvice):
        caps.add(Capability.OPERATION)
    if isinstance(advice, AsyncMethodAdvice):
        caps.add(Capability.ASYNC_OPERATION)
    if isinstance(advice, PropertyAdvice):
        caps.add(Capability.PROPERTY)
    return frozenset(caps)


def type_name(cls: type) -> str:
    """Qualified name used by selectors: ``module.Qualname``."""
    return f"{cls.__module__}.{cls.__qualname__}"


# ---------------------------------------------------------------------------
# Declarations and resolved instances
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AdviceDeclaration:
    """One attachment record.

    Attributes:
        advice: The advice object.
        scope: Where it was attached.
        parameter: Parameter name or position for ``PARAMETER`` scope,
            ``RETURN_INDEX`` for ``RETURN`` scope, ``None`` otherwise.
    """

    advice: Advice
    scope: AdviceScope
    parameter: int | str | None = None


@dataclass(frozen=True)
class AdviceInstance:
    """A materialized advice plus its applicability metadata."""

    advice: Advice
    parameter_index: int | None = None
    capabilities: frozenset[Capability] = field(default=frozenset())
    priority: int = 0

    @classmethod
    def of(cls, advice: Advice, parameter_index: int | None = None) -> AdviceInstance:
        return cls(
            advice=advice,
            parameter_index=parameter_index,
            capabilities=capabilities_of(advice),
            priority=get_priority(advice),
        )

    def has(self, capability: Capability) -> bool:
        return capability in self.capabilities

    @property
    def advice_type(self) -> type:
        return type(self.advice)
