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
"""AdviceEngine: the entry point every woven call goes through."""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from pyadvice.aop.chain import build_chain
from pyadvice.aop.context import AdviceContext, AdviceValues, reraise, unwrap_exception
from pyadvice.aop.descriptor import AspectDescriptor
from pyadvice.aop.identity import OperationIdentity, unwrap_member
from pyadvice.aop.interface import INTERFACE_ADVICE_ATTR, build_proxy_class
from pyadvice.aop.introduction import FieldInjector
from pyadvice.aop.registry import AdviceRegistry
from pyadvice.aop.resolver import AspectResolver
from pyadvice.aop.settings import WeaverSettings
from pyadvice.aop.types import AdviceInstance, ReturnShape
from pyadvice.aop.weaver import weave_class
from pyadvice.core.config import Config
from pyadvice.kernel.exceptions import ResolutionException

__all__ = ["AdviceEngine", "unwrap_exception"]

T = TypeVar("T", bound=type)


class AdviceEngine:
    """Resolves aspect descriptors and executes advice chains.

    Each engine owns its resolver cache, registry and field injector; nothing
    is shared between engines::

        engine = AdviceEngine()

        @engine.advised
        class OrderService:
            @advise(Audit())
            def place(self, order): ...
    """

    def __init__(
        self,
        resolver: AspectResolver | None = None,
        injector: FieldInjector | None = None,
        settings: WeaverSettings | None = None,
    ) -> None:
        self._resolver = resolver or AspectResolver()
        self._injector = injector or FieldInjector()
        self._settings = settings or WeaverSettings()
        self._proxies: dict[type, type] = {}
        self._proxy_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Config, registry: AdviceRegistry | None = None) -> AdviceEngine:
        return cls(resolver=AspectResolver(registry), settings=config.bind(WeaverSettings))

    @property
    def resolver(self) -> AspectResolver:
        return self._resolver

    @property
    def registry(self) -> AdviceRegistry:
        return self._resolver.registry

    @property
    def settings(self) -> WeaverSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Weaving
    # ------------------------------------------------------------------

    def advised(self, cls: T) -> T:
        """Class decorator routing the members of *cls* through this engine."""
        return weave_class(cls, self)

    def interface_proxy(self, interface: type) -> type:
        """The proxy class implementing *interface*, built once per engine."""
        with self._proxy_lock:
            proxy = self._proxies.get(interface)
            if proxy is None:
                proxy = self._proxies[interface] = build_proxy_class(interface, self)
        return proxy

    def describe(self, cls: type, member: str) -> AspectDescriptor:
        """Resolve the descriptor of ``cls.member`` without invoking it."""
        raw = inspect.getattr_static(cls, member, None)
        if raw is None:
            raise ResolutionException(f"{cls.__qualname__} has no member '{member}'", code="RESOLUTION_020")
        if isinstance(raw, property):
            raw = raw.fget
        function, _ = unwrap_member(raw)
        return self._resolver.resolve(OperationIdentity.of(raw, cls), inner=function)

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def proceed(
        self,
        target: Any,
        parameters: list[Any],
        method: Callable[..., Any],
        inner_method: Callable[..., Any] | None,
        declaring_type: Any,
        abstracted_target: bool = False,
        generic_arguments: Sequence[Any] = (),
    ) -> Any:
        """Run one intercepted call.

        Args:
            target: The receiver, the class for class methods, ``None`` for
                static methods.
            parameters: Positional parameter values; advices may mutate them.
            method: The declared operation.
            inner_method: The function holding the implementation, or
                ``None`` for operations without a body.
            declaring_type: Class declaring *method* (a parameterized alias
                is accepted and mapped to its definition).
            abstracted_target: Skip interface lookup when *inner_method* is
                ``None``.
            generic_arguments: Type-level then member-level type arguments.

        Returns:
            The call's result, or a coroutine for ``async def`` operations.
        """
        identity = OperationIdentity.of(method, declaring_type)
        descriptor = self._resolver.resolve(identity, inner_method, abstracted_target)
        descriptor = descriptor.specialize(generic_arguments)

        advice = getattr(target, INTERFACE_ADVICE_ATTR, None)
        if advice is not None:
            descriptor = descriptor.add_advice(AdviceInstance.of(advice))

        blocking = descriptor.return_shape is ReturnShape.SYNC
        values = AdviceValues(target, descriptor.declaring_type, parameters, blocking=blocking)
        head = build_chain(descriptor, values, self._injector)

        if descriptor.return_shape is ReturnShape.FUTURE:
            return self._run_future(head)
        if descriptor.return_shape is ReturnShape.VALUE_FUTURE:
            return self._run_value_future(head, values)
        return self._run_sync(head, values)

    @staticmethod
    def _run_sync(head: AdviceContext, values: AdviceValues) -> Any:
        pending = head.invoke()
        if pending is not None:
            values.settle(pending)
        return values.return_value

    @staticmethod
    async def _run_future(head: AdviceContext) -> None:
        try:
            pending = head.invoke()
            if pending is not None:
                await pending
        except BaseException as exc:
            reraise(exc)

    @staticmethod
    async def _run_value_future(head: AdviceContext, values: AdviceValues) -> Any:
        try:
            pending = head.invoke()
            if pending is not None:
                await pending
        except BaseException as exc:
            reraise(exc)

        returned = values.return_value
        if not inspect.isawaitable(returned):
            return returned
        try:
            return await returned
        except BaseException as exc:
            reraise(exc)
