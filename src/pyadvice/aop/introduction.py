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
"""Introduced fields — per-target state declared by advices.

An advice declares fields as class attributes; each advised target gets its
own copy, materialized the first time the advice runs on that target::

    class CallCounter(MethodAdvice):
        calls = IntroducedField(default=0)

        def advise_method(self, context):
            self.calls[context] += 1
            context.proceed()
"""

from __future__ import annotations

import copy
import functools
import threading
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from pyadvice.kernel.exceptions import IntroductionException

T = TypeVar("T")

INTRODUCED_ATTR = "__pyadvice_introduced__"


def _target_of(key: Any) -> Any:
    # Advice contexts expose the receiver as ``target``.
    from pyadvice.aop.context import AdviceContext

    return key.target if isinstance(key, AdviceContext) else key


def _storage(target: Any) -> dict[Any, Any]:
    try:
        return vars(target)
    except TypeError as exc:
        raise IntroductionException(
            f"cannot introduce fields on {type(target).__name__}: instance has no __dict__",
            code="INTRODUCTION_001",
        ) from exc


class IntroducedField(Generic[T]):
    """Declares one per-target field on an advice class."""

    def __init__(self, default: T | None = None, *, default_factory: Callable[[], T] | None = None) -> None:
        self._default = default
        self._default_factory = default_factory
        self.name = ""

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def initial(self) -> T | None:
        if self._default_factory is not None:
            return self._default_factory()
        return copy.copy(self._default)

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            return self
        return BoundIntroducedField(self, type(instance))


class BoundIntroducedField(Generic[T]):
    """An introduced field seen through one advice type; index it by target or context."""

    __slots__ = ("_field", "_advice_type")

    def __init__(self, field: IntroducedField[T], advice_type: type) -> None:
        self._field = field
        self._advice_type = advice_type

    def _values(self, key: Any) -> dict[str, Any]:
        target = _target_of(key)
        values = _storage(target).get(INTRODUCED_ATTR, {}).get(self._advice_type)
        if values is None:
            raise IntroductionException(
                f"{self._advice_type.__name__}.{self._field.name} is not introduced on {type(target).__name__}",
                code="INTRODUCTION_002",
            )
        return values

    def __getitem__(self, key: Any) -> T:
        return self._values(key)[self._field.name]

    def __setitem__(self, key: Any, value: T) -> None:
        self._values(key)[self._field.name] = value


@functools.cache
def introduced_fields(advice_type: type) -> dict[str, IntroducedField[Any]]:
    """Introduced fields declared on *advice_type* and its bases."""
    fields: dict[str, IntroducedField[Any]] = {}
    for cls in reversed(advice_type.__mro__):
        for name, value in vars(cls).items():
            if isinstance(value, IntroducedField):
                fields[name] = value
    return fields


class FieldInjector:
    """Materializes introduced fields, once per (target, advice type)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def ensure_introduced(self, advice: Any, target: Any) -> None:
        if target is None or isinstance(target, type):
            return
        fields = introduced_fields(type(advice))
        if not fields:
            return
        storage = _storage(target)
        with self._lock:
            introduced = storage.setdefault(INTRODUCED_ATTR, {})
            if type(advice) in introduced:
                return
            introduced[type(advice)] = {name: f.initial() for name, f in fields.items()}

    def is_introduced(self, advice: Any, target: Any) -> bool:
        return type(advice) in _storage(target).get(INTRODUCED_ATTR, {})
