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
"""Replaces class members with stubs that call the engine."""

from __future__ import annotations

import functools
import inspect
import typing
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from pyadvice.aop.context import MethodInfoAdviceContext, PropertyInfoAdviceContext
from pyadvice.aop.identity import STUB_ATTR, ParameterLayout
from pyadvice.aop.registry import AdviceRegistry
from pyadvice.aop.types import AdviceScope, MethodInfoAdvice, PropertyInfoAdvice
from pyadvice.kernel.exceptions import WeavingException
from pyadvice.logging.port import ENGINE_LOGGER

if TYPE_CHECKING:
    from pyadvice.aop.invocation import AdviceEngine

T = TypeVar("T", bound=type)

logger = structlog.get_logger(ENGINE_LOGGER)

WOVEN_ATTR = "__pyadvice_woven__"


def _generic_arguments(target: Any, cls: type) -> tuple[Any, ...]:
    if not getattr(cls, "__parameters__", ()):
        return ()
    return typing.get_args(getattr(target, "__orig_class__", None))


def make_stub(
    engine: AdviceEngine,
    function: Callable[..., Any],
    cls: type,
    receiver: str,
    bodiless: bool = False,
) -> Callable[..., Any]:
    """Build the call-site stub for *function*.

    *receiver* is ``"instance"``, ``"class"`` or ``"static"``. A *bodiless*
    stub has no implementation to call and resolves against the interface
    of *cls*.
    """
    inner = None if bodiless else function
    layout = ParameterLayout.of(function, has_receiver=receiver != "static")

    if receiver == "static":

        def call(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
            return engine.proceed(None, layout.bind(args, kwargs), function, inner, cls)

    else:

        def call(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
            target, rest = args[0], args[1:]
            generic = _generic_arguments(target, cls) if receiver == "instance" else ()
            return engine.proceed(target, layout.bind(rest, kwargs), function, inner, cls, generic_arguments=generic)

    if inspect.iscoroutinefunction(function):

        @functools.wraps(function)
        async def async_stub(*args: Any, **kwargs: Any) -> Any:
            return await call(args, kwargs)

        stub: Callable[..., Any] = async_stub
    else:

        @functools.wraps(function)
        def sync_stub(*args: Any, **kwargs: Any) -> Any:
            return call(args, kwargs)

        stub = sync_stub

    setattr(stub, STUB_ATTR, True)
    return stub


def _weave_property(engine: AdviceEngine, prop: property, cls: type) -> property:
    fget = make_stub(engine, prop.fget, cls, "instance") if prop.fget is not None else None
    fset = make_stub(engine, prop.fset, cls, "instance") if prop.fset is not None else None
    fdel = prop.fdel
    return type(prop)(fget, fset, fdel, prop.__doc__)


def _should_weave(name: str, include_private: bool) -> bool:
    if name == "__init__":
        return True
    if name.startswith("__") and name.endswith("__"):
        return False
    return include_private or not name.startswith("_")


def weave_class(cls: T, engine: AdviceEngine) -> T:
    """Route the methods, constructor and properties declared on *cls* through *engine*.

    Only members defined on *cls* itself are replaced; inherited members stay
    woven (or not) on the class that declares them. Weaving twice is a no-op.
    """
    if not isinstance(cls, type):
        raise WeavingException(f"{cls!r} is not a class", code="WEAVING_001")
    if vars(cls).get(WOVEN_ATTR, False):
        return cls

    settings = engine.settings
    if settings.process_info_advices:
        process_info_advices(cls, engine.registry)

    woven: list[str] = []
    for name, raw in list(vars(cls).items()):
        if not _should_weave(name, settings.include_private):
            continue
        if name == "__init__" and not settings.weave_constructors:
            continue
        if getattr(raw, STUB_ATTR, False):
            continue

        if isinstance(raw, property):
            if not settings.weave_properties:
                continue
            replacement: Any = _weave_property(engine, raw, cls)
        elif isinstance(raw, staticmethod):
            replacement = staticmethod(make_stub(engine, raw.__func__, cls, "static"))
        elif isinstance(raw, classmethod):
            replacement = classmethod(make_stub(engine, raw.__func__, cls, "class"))
        elif inspect.isfunction(raw):
            replacement = make_stub(engine, raw, cls, "instance")
        else:
            continue
        setattr(cls, name, replacement)
        woven.append(name)

    setattr(cls, WOVEN_ATTR, True)
    logger.debug("class_woven", cls=cls.__qualname__, members=woven)
    return cls


def process_info_advices(cls: type, registry: AdviceRegistry) -> None:
    """Run weave-time info advices declared on the members of *cls*."""
    for name, raw in vars(cls).items():
        if isinstance(raw, property):
            for declaration in registry.declarations(raw):
                if declaration.scope is AdviceScope.PROPERTY and isinstance(declaration.advice, PropertyInfoAdvice):
                    declaration.advice.advise_property_info(PropertyInfoAdviceContext(name, raw, cls))
            accessors = [f for f in (raw.fget, raw.fset) if f is not None]
        elif isinstance(raw, (staticmethod, classmethod)):
            accessors = [raw.__func__]
        elif inspect.isfunction(raw):
            accessors = [raw]
        else:
            continue

        for function in accessors:
            for declaration in registry.declarations(function):
                if declaration.scope is AdviceScope.OPERATION and isinstance(declaration.advice, MethodInfoAdvice):
                    declaration.advice.advise_method_info(MethodInfoAdviceContext(function, cls))
                    logger.debug("info_advice_processed", operation=function.__qualname__)
