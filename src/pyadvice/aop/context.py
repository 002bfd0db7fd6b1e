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
"""Advice contexts — the layers of an invocation chain.

Every layer holds a reference to the next (inner) layer. ``invoke()`` runs
the layer and returns ``None`` when everything below it completed, or an
awaitable that settles once the pending asynchronous work below completes.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, NoReturn

from pyadvice.aop.descriptor import AspectDescriptor, BoundProperty
from pyadvice.aop.identity import ParameterLayout
from pyadvice.aop.types import (
    RETURN_INDEX,
    AsyncMethodAdvice,
    MethodAdvice,
    ParameterAdvice,
    PropertyAdvice,
    ReturnShape,
)
from pyadvice.kernel.exceptions import AdviceExecutionException


def unwrap_exception(exc: BaseException) -> BaseException:
    """Strip exception groups down to their first leaf exception."""
    while isinstance(exc, BaseExceptionGroup) and exc.exceptions:
        exc = exc.exceptions[0]
    return exc


def reraise(exc: BaseException) -> NoReturn:
    """Raise the first leaf of *exc* with its own traceback."""
    cause = unwrap_exception(exc)
    if cause is exc:
        raise exc
    cause.__suppress_context__ = True
    raise cause.with_traceback(cause.__traceback__)


class AdviceValues:
    """Mutable state of one invocation, shared by every layer."""

    __slots__ = ("target", "declaring_type", "parameters", "return_value", "blocking", "driving")

    def __init__(
        self,
        target: Any,
        declaring_type: type | None,
        parameters: list[Any],
        blocking: bool = False,
    ) -> None:
        self.target = target
        self.declaring_type = declaring_type
        self.parameters = parameters
        self.return_value: Any = None
        self.blocking = blocking
        self.driving = False

    def settle(self, pending: Awaitable[Any]) -> None:
        """Block until *pending* completes, from synchronous code.

        Outside an event loop the work runs with ``asyncio.run``. Inside the
        loop the engine started for this invocation it runs on a worker
        thread. Any other running loop cannot be blocked and raises
        ``EXECUTION_001``.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            in_loop = False
        else:
            in_loop = True

        if in_loop and not self.driving:
            if inspect.iscoroutine(pending):
                pending.close()
            raise AdviceExecutionException(
                "a synchronous operation has asynchronous advices and cannot block inside a running event loop",
                code="EXECUTION_001",
            )
        try:
            if in_loop:
                with ThreadPoolExecutor(max_workers=1) as pool:
                    pool.submit(asyncio.run, self._drive(pending)).result()
            else:
                asyncio.run(self._drive(pending))
        except BaseException as exc:
            reraise(exc)

    async def _drive(self, pending: Awaitable[Any]) -> None:
        previous, self.driving = self.driving, True
        try:
            await pending
        finally:
            self.driving = previous


class AdviceContext:
    """Base of all chain layers."""

    def __init__(self, advice_values: AdviceValues, next_context: AdviceContext | None) -> None:
        self._values = advice_values
        self._next = next_context

    @property
    def advice_values(self) -> AdviceValues:
        return self._values

    @property
    def target(self) -> Any:
        return self._values.target

    def invoke(self) -> Awaitable[Any] | None:
        raise NotImplementedError

    def _invoke_next(self) -> Awaitable[Any] | None:
        if self._next is None:
            return None
        return self._next.invoke()


class InnerMethodContext(AdviceContext):
    """Innermost layer: calls the pointcut and stores its result."""

    def __init__(
        self,
        advice_values: AdviceValues,
        pointcut: Callable[..., Any] | None,
        layout: ParameterLayout,
        shape: ReturnShape,
    ) -> None:
        super().__init__(advice_values, None)
        self._pointcut = pointcut
        self._layout = layout
        self._shape = shape

    def invoke(self) -> Awaitable[Any] | None:
        if self._pointcut is None:
            return None
        result = self._layout.call(self._pointcut, self._values.target, self._values.parameters)
        if self._shape is not ReturnShape.SYNC and inspect.isawaitable(result):
            result = asyncio.ensure_future(result)
            self._values.return_value = result
            return result
        self._values.return_value = result
        return None


class _SyncAdviceContext(AdviceContext):
    """Layer whose advice runs synchronously and calls ``proceed()``."""

    def __init__(self, advice_values: AdviceValues, next_context: AdviceContext | None) -> None:
        super().__init__(advice_values, next_context)
        self._pending: Awaitable[Any] | None = None

    def proceed(self) -> None:
        """Run the inner layers.

        For synchronous operations this returns once all inner work, including
        asynchronous advices, has completed. For asynchronous operations the
        inner work stays pending and completes when the operation is awaited.
        """
        pending = self._invoke_next()
        if pending is not None and self._values.blocking:
            self._values.settle(pending)
            pending = None
        self._pending = pending

    def invoke(self) -> Awaitable[Any] | None:
        self._pending = None
        self._advise()
        return self._pending

    def _advise(self) -> None:
        raise NotImplementedError


class _OperationContextMixin:
    _descriptor: AspectDescriptor
    _values: AdviceValues

    @property
    def method(self) -> Callable[..., Any]:
        return self._descriptor.advised

    @property
    def name(self) -> str:
        return self._descriptor.advised.__name__

    @property
    def declaring_type(self) -> type | None:
        return self._descriptor.declaring_type

    @property
    def parameters(self) -> list[Any]:
        return self._values.parameters

    @property
    def arguments(self) -> dict[str, Any]:
        """Current parameter values by name."""
        return dict(zip(self._descriptor.layout.names, self._values.parameters, strict=True))

    @property
    def type_arguments(self) -> dict[Any, Any]:
        generic = self._descriptor.generic
        return generic.all_arguments if generic is not None else {}

    @property
    def has_return_value(self) -> bool:
        return self._descriptor.advised.__name__ != "__init__"


class MethodAdviceContext(_OperationContextMixin, _SyncAdviceContext):
    """Context handed to :class:`MethodAdvice`."""

    def __init__(
        self,
        advice: MethodAdvice,
        descriptor: AspectDescriptor,
        advice_values: AdviceValues,
        next_context: AdviceContext | None,
    ) -> None:
        super().__init__(advice_values, next_context)
        self._advice = advice
        self._descriptor = descriptor

    @property
    def return_value(self) -> Any:
        return self._values.return_value

    @return_value.setter
    def return_value(self, value: Any) -> None:
        self._values.return_value = value

    def _advise(self) -> None:
        self._advice.advise_method(self)


class AsyncMethodAdviceContext(_OperationContextMixin, AdviceContext):
    """Context handed to :class:`AsyncMethodAdvice`.

    ``result`` decodes the return slot: for asynchronous operations the slot
    holds a future, and ``result`` reads or replaces its value.
    """

    def __init__(
        self,
        advice: AsyncMethodAdvice,
        descriptor: AspectDescriptor,
        advice_values: AdviceValues,
        next_context: AdviceContext | None,
    ) -> None:
        super().__init__(advice_values, next_context)
        self._advice = advice
        self._descriptor = descriptor

    async def proceed_async(self) -> None:
        pending = self._invoke_next()
        if pending is not None:
            await pending

    def invoke(self) -> Awaitable[Any] | None:
        return self._advice.advise_method_async(self)

    @property
    def return_value(self) -> Any:
        return self._values.return_value

    @property
    def result(self) -> Any:
        value = self._values.return_value
        if isinstance(value, asyncio.Future):
            return value.result()
        return value

    @result.setter
    def result(self, value: Any) -> None:
        if self._descriptor.return_shape is ReturnShape.SYNC:
            self._values.return_value = value
            return
        future = asyncio.get_running_loop().create_future()
        future.set_result(value)
        self._values.return_value = future


class PropertyAdviceContext(_SyncAdviceContext):
    """Context handed to :class:`PropertyAdvice` for a getter or setter call."""

    def __init__(
        self,
        advice: PropertyAdvice,
        bound_property: BoundProperty,
        advice_values: AdviceValues,
        next_context: AdviceContext | None,
    ) -> None:
        super().__init__(advice_values, next_context)
        self._advice = advice
        self._bound = bound_property

    @property
    def property_name(self) -> str:
        return self._bound.name

    @property
    def prop(self) -> property:
        return self._bound.prop

    @property
    def is_getter(self) -> bool:
        return self._bound.is_getter

    @property
    def is_setter(self) -> bool:
        return self._bound.is_setter

    @property
    def value(self) -> Any:
        """The value being set (setter) or returned (getter)."""
        if self.is_setter:
            return self._values.parameters[0]
        return self._values.return_value

    @value.setter
    def value(self, value: Any) -> None:
        if self.is_setter:
            self._values.parameters[0] = value
        else:
            self._values.return_value = value

    def _advise(self) -> None:
        self._advice.advise_property(self)


class ParameterAdviceContext(_SyncAdviceContext):
    """Context handed to :class:`ParameterAdvice` for one parameter or the return slot."""

    def __init__(
        self,
        advice: ParameterAdvice,
        parameter: inspect.Parameter | None,
        index: int,
        advice_values: AdviceValues,
        next_context: AdviceContext | None,
    ) -> None:
        super().__init__(advice_values, next_context)
        self._advice = advice
        self._parameter = parameter
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    @property
    def parameter(self) -> inspect.Parameter | None:
        return self._parameter

    @property
    def name(self) -> str | None:
        return self._parameter.name if self._parameter is not None else None

    @property
    def is_return(self) -> bool:
        return self._index == RETURN_INDEX

    @property
    def value(self) -> Any:
        if self.is_return:
            return self._values.return_value
        return self._values.parameters[self._index]

    @value.setter
    def value(self, value: Any) -> None:
        if self.is_return:
            self._values.return_value = value
        else:
            self._values.parameters[self._index] = value

    def _advise(self) -> None:
        self._advice.advise_parameter(self)


# ---------------------------------------------------------------------------
# Weave-time contexts
# ---------------------------------------------------------------------------


class MethodInfoAdviceContext:
    """Handed to :class:`MethodInfoAdvice` once per operation at weave time."""

    def __init__(self, method: Callable[..., Any], declaring_type: type) -> None:
        self.method = method
        self.declaring_type = declaring_type

    @property
    def name(self) -> str:
        return self.method.__name__


class PropertyInfoAdviceContext:
    """Handed to :class:`PropertyInfoAdvice` once per property at weave time."""

    def __init__(self, name: str, prop: property, declaring_type: type) -> None:
        self.name = name
        self.prop = prop
        self.declaring_type = declaring_type
