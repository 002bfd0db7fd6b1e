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
"""AOP decorators — advice attachment and selection declarations."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import Any, TypeVar

from pyadvice.aop.registry import ADVICES_ATTR, EXCLUSIONS_ATTR, PROPERTY_ADVICES_ATTR
from pyadvice.aop.types import RETURN_INDEX, Advice, AdviceDeclaration, AdviceScope
from pyadvice.kernel.exceptions import ConfigurationException

T = TypeVar("T")

INCLUDE_POINTCUT_ATTR = "__pyadvice_pointcut_includes__"
EXCLUDE_POINTCUT_ATTR = "__pyadvice_pointcut_excludes__"


def _check_advices(advices: tuple[Any, ...]) -> None:
    if not advices:
        raise ConfigurationException("at least one advice is required", code="DECLARATION_001")
    for advice in advices:
        if not isinstance(advice, Advice):
            raise ConfigurationException(
                f"{advice!r} is not an Advice instance",
                code="DECLARATION_002",
            )


def _function_of(target: Any) -> Any:
    if isinstance(target, (staticmethod, classmethod)):
        return target.__func__
    return target


def _prepend(owner: Any, attr: str, items: tuple[Any, ...]) -> None:
    # Decorators apply bottom-up; prepending keeps reading order.
    existing = tuple(vars(owner).get(attr, ()))
    setattr(owner, attr, items + existing)


# ---------------------------------------------------------------------------
# Advice attachment
# ---------------------------------------------------------------------------


def advise(*advices: Advice) -> Callable[[T], T]:
    """Attach advices to a class, function, static/class method or property.

    On a class the advices apply to every woven member (type scope); on a
    property they apply to both accessors (property scope)::

        @advise(Audit())
        class OrderService:
            @advise(Timing(), Retry())
            def place(self, order): ...

            @advise(Validate())
            @property
            def status(self): ...
    """
    _check_advices(advices)

    def decorator(target: T) -> T:
        if isinstance(target, property):
            if target.fget is None:
                raise ConfigurationException("cannot advise a property without a getter", code="DECLARATION_003")
            scope, owner, attr = AdviceScope.PROPERTY, target.fget, PROPERTY_ADVICES_ATTR
        elif isinstance(target, type):
            scope, owner, attr = AdviceScope.TYPE, target, ADVICES_ATTR
        elif callable(_function_of(target)):
            scope, owner, attr = AdviceScope.OPERATION, _function_of(target), ADVICES_ATTR
        else:
            raise ConfigurationException(f"cannot attach advices to {target!r}", code="DECLARATION_004")
        _prepend(owner, attr, tuple(AdviceDeclaration(a, scope) for a in advices))
        return target

    return decorator


def advise_module(module_name: str, *advices: Advice) -> None:
    """Attach advices to every woven operation of classes in *module_name*.

    Call it at module level: ``advise_module(__name__, Audit())``.
    """
    _check_advices(advices)
    module = sys.modules.get(module_name)
    if module is None:
        raise ConfigurationException(f"module '{module_name}' is not loaded", code="DECLARATION_005")
    _prepend(module, ADVICES_ATTR, tuple(AdviceDeclaration(a, AdviceScope.MODULE) for a in advices))


def advise_parameter(parameter: int | str, *advices: Advice) -> Callable[[T], T]:
    """Attach parameter advices to one parameter, by name or position.

    Positions exclude the receiver (``self`` / ``cls``).
    """
    _check_advices(advices)
    if isinstance(parameter, int) and parameter < 0:
        raise ConfigurationException("parameter positions start at 0; use advise_return", code="DECLARATION_006")

    def decorator(target: T) -> T:
        function = _function_of(target)
        declarations = tuple(AdviceDeclaration(a, AdviceScope.PARAMETER, parameter) for a in advices)
        _prepend(function, ADVICES_ATTR, declarations)
        return target

    return decorator


def advise_return(*advices: Advice) -> Callable[[T], T]:
    """Attach parameter advices to the return value of an operation."""
    _check_advices(advices)

    def decorator(target: T) -> T:
        function = _function_of(target)
        declarations = tuple(AdviceDeclaration(a, AdviceScope.RETURN, RETURN_INDEX) for a in advices)
        _prepend(function, ADVICES_ATTR, declarations)
        return target

    return decorator


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def include_pointcut(*patterns: str) -> Callable[[type[T]], type[T]]:
    """Restrict an advice class to operations matching any of *patterns*."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, INCLUDE_POINTCUT_ATTR, tuple(getattr(cls, INCLUDE_POINTCUT_ATTR, ())) + patterns)
        return cls

    return decorator


def exclude_pointcut(*patterns: str) -> Callable[[type[T]], type[T]]:
    """Keep an advice class away from operations matching any of *patterns*."""

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, EXCLUDE_POINTCUT_ATTR, tuple(getattr(cls, EXCLUDE_POINTCUT_ATTR, ())) + patterns)
        return cls

    return decorator


def exclude_advices(*patterns: str) -> Callable[[T], T]:
    """Exclude advice types (matched by ``module.Qualname``) from an operation or class.

    Exclusions declared here win over every advice's own selector.
    """

    def decorator(target: T) -> T:
        _prepend(_function_of(target), EXCLUSIONS_ATTR, patterns)
        return target

    return decorator
