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
"""Builds and caches one AspectDescriptor per operation."""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable
from typing import Any

import structlog

from pyadvice.aop.descriptor import AspectDescriptor
from pyadvice.aop.discovery import discover
from pyadvice.aop.identity import OperationIdentity, ParameterLayout, operation_name, unwrap_stub
from pyadvice.aop.pointcut import select_advices
from pyadvice.aop.registry import AdviceRegistry
from pyadvice.kernel.exceptions import ResolutionException
from pyadvice.logging.port import ENGINE_LOGGER

logger = structlog.get_logger(ENGINE_LOGGER)


def is_interface(cls: type) -> bool:
    return inspect.isabstract(cls) or bool(getattr(cls, "_is_protocol", False))


def find_interface_member(declaring_type: type | None, member: Callable[..., Any]) -> tuple[Callable[..., Any], type]:
    """Locate the declared counterpart of *member* on the single interface of *declaring_type*."""
    if declaring_type is None:
        raise ResolutionException(
            f"{member.__qualname__} has no implementation and no declaring type",
            code="RESOLUTION_010",
        )
    interfaces = [base for base in declaring_type.__bases__ if is_interface(base)]
    if len(interfaces) != 1:
        raise ResolutionException(
            f"{declaring_type.__qualname__} must implement exactly one interface to resolve "
            f"'{member.__name__}', found {len(interfaces)}",
            code="RESOLUTION_011",
            context={"interfaces": [i.__qualname__ for i in interfaces]},
        )
    interface = interfaces[0]
    raw = inspect.getattr_static(interface, member.__name__, None)
    if isinstance(raw, property):
        is_setter = raw.fset is not None and raw.fset is member
        raw = raw.fset if is_setter else raw.fget
    elif isinstance(raw, (staticmethod, classmethod)):
        raw = raw.__func__
    if raw is None or not callable(raw):
        raise ResolutionException(
            f"{interface.__qualname__} declares no member '{member.__name__}'",
            code="RESOLUTION_012",
        )
    return unwrap_stub(raw), interface


class AspectResolver:
    """Thread-safe cache of aspect descriptors keyed by operation identity.

    Concurrent first resolutions of the same identity may build in
    parallel, but only the first published descriptor is ever returned.
    """

    def __init__(self, registry: AdviceRegistry | None = None) -> None:
        self._registry = registry or AdviceRegistry()
        self._descriptors: dict[OperationIdentity, AspectDescriptor] = {}
        self._lock = threading.Lock()

    @property
    def registry(self) -> AdviceRegistry:
        return self._registry

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, identity: object) -> bool:
        return identity in self._descriptors

    def resolve(
        self,
        identity: OperationIdentity,
        inner: Callable[..., Any] | None = None,
        abstracted: bool = False,
    ) -> AspectDescriptor:
        """Return the descriptor for *identity*, building it on first use.

        Args:
            identity: The operation definition.
            inner: The function that actually runs. ``None`` means the
                operation has no body of its own and is resolved against
                the interface of its declaring type, unless *abstracted*.
            abstracted: The receiver stands in for an abstracted target;
                no interface lookup happens.
        """
        descriptor = self._descriptors.get(identity)
        if descriptor is not None:
            return descriptor

        built = self._build(identity, inner, abstracted)
        with self._lock:
            descriptor = self._descriptors.setdefault(identity, built)
        if descriptor is built:
            logger.debug(
                "aspect_resolved",
                operation=identity.qualified_name,
                advices=[type(a.advice).__name__ for a in built.advices],
            )
        return descriptor

    def _build(
        self,
        identity: OperationIdentity,
        inner: Callable[..., Any] | None,
        abstracted: bool,
    ) -> AspectDescriptor:
        advised, declaring_type = identity.member, identity.declaring_type
        pointcut = unwrap_stub(inner) if inner is not None else None
        if inner is None and not abstracted:
            advised, declaring_type = find_interface_member(declaring_type, advised)

        layout = ParameterLayout.of(advised, identity.has_receiver)
        found = discover(advised, declaring_type, layout, self._registry)

        exclusions: list[str] = []
        for owner in reversed(found.owners):
            exclusions.extend(self._registry.exclusions(owner))
        selected = select_advices(found.advices, operation_name(advised, declaring_type), exclusions)

        return AspectDescriptor.build(
            advices=selected,
            pointcut=pointcut,
            advised=advised,
            declaring_type=declaring_type,
            layout=layout,
            bound_property=found.bound_property,
        )
