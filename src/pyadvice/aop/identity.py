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
"""Operation identity, parameter layout and generic specialization."""

from __future__ import annotations

import inspect
import typing
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pyadvice.kernel.exceptions import ResolutionException, SpecializationException

STUB_ATTR = "__pyadvice_stub__"


def unwrap_stub(function: Any) -> Any:
    """Return the original function behind a woven stub (or *function* itself)."""
    while getattr(function, STUB_ATTR, False):
        function = function.__wrapped__
    return function


def unwrap_member(member: Any) -> tuple[Callable[..., Any], bool | None]:
    """Return ``(plain function, has_receiver)`` for a class member.

    ``has_receiver`` is ``None`` when it cannot be decided from *member*
    alone (a plain function may still be stored as a staticmethod).
    """
    if isinstance(member, staticmethod):
        return unwrap_stub(member.__func__), False
    if isinstance(member, classmethod):
        return unwrap_stub(member.__func__), True
    if inspect.ismethod(member):
        return unwrap_stub(member.__func__), True
    if callable(member):
        return unwrap_stub(member), None
    raise ResolutionException(
        f"{member!r} is not an operation",
        code="RESOLUTION_001",
    )


def _owner_of(declaring_type: Any) -> type | None:
    if declaring_type is None:
        return None
    origin = typing.get_origin(declaring_type)
    return origin if isinstance(origin, type) else declaring_type


@dataclass(frozen=True)
class OperationIdentity:
    """Identifies an operation *definition*, independent of generic arguments."""

    declaring_type: type | None
    member: Callable[..., Any]
    has_receiver: bool = field(default=True, compare=False)

    @classmethod
    def of(cls, method: Any, declaring_type: Any = None) -> OperationIdentity:
        function, has_receiver = unwrap_member(method)
        owner = _owner_of(declaring_type)
        if has_receiver is None:
            has_receiver = True
            if owner is None:
                has_receiver = False
            else:
                raw = inspect.getattr_static(owner, function.__name__, None)
                if isinstance(raw, staticmethod):
                    has_receiver = False
        return cls(declaring_type=owner, member=function, has_receiver=has_receiver)

    @property
    def name(self) -> str:
        return self.member.__name__

    @property
    def qualified_name(self) -> str:
        return operation_name(self.member, self.declaring_type)

    @property
    def is_constructor(self) -> bool:
        return self.member.__name__ == "__init__"


def operation_name(function: Callable[..., Any], declaring_type: type | None) -> str:
    """Name matched by pointcut selectors: ``module.Qualname.member``."""
    if declaring_type is None:
        return f"{function.__module__}.{function.__qualname__}"
    return f"{declaring_type.__module__}.{declaring_type.__qualname__}.{function.__name__}"


# ---------------------------------------------------------------------------
# Parameter layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParameterLayout:
    """Positional view of an operation's declared parameters (receiver excluded)."""

    signature: inspect.Signature
    has_receiver: bool

    @classmethod
    def of(cls, function: Callable[..., Any], has_receiver: bool) -> ParameterLayout:
        signature = inspect.signature(function)
        if has_receiver:
            params = list(signature.parameters.values())
            if not params:
                raise ResolutionException(
                    f"{function.__qualname__} takes no receiver parameter",
                    code="RESOLUTION_002",
                )
            signature = signature.replace(parameters=params[1:])
        return cls(signature=signature, has_receiver=has_receiver)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.signature.parameters)

    def __len__(self) -> int:
        return len(self.signature.parameters)

    def parameter(self, index: int) -> inspect.Parameter | None:
        """The declared parameter at *index*; ``None`` for the return slot."""
        if index < 0:
            return None
        return list(self.signature.parameters.values())[index]

    def index_of(self, parameter: int | str) -> int:
        if isinstance(parameter, int):
            if not 0 <= parameter < len(self):
                raise IndexError(parameter)
            return parameter
        return self.names.index(parameter)

    def bind(self, args: Sequence[Any], kwargs: Mapping[str, Any]) -> list[Any]:
        """Bind call arguments to a mutable, positional parameter list."""
        bound = self.signature.bind(*args, **kwargs)
        bound.apply_defaults()
        return [bound.arguments[name] for name in self.names]

    def call(self, function: Callable[..., Any], target: Any, parameters: Sequence[Any]) -> Any:
        """Invoke *function* with the current parameter values."""
        args: list[Any] = [target] if self.has_receiver else []
        kwargs: dict[str, Any] = {}
        for param, value in zip(self.signature.parameters.values(), parameters, strict=True):
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                args.extend(value)
            elif param.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[param.name] = value
            elif param.kind is inspect.Parameter.VAR_KEYWORD:
                kwargs.update(value)
            else:
                args.append(value)
        return function(*args, **kwargs)


# ---------------------------------------------------------------------------
# Generic specialization
# ---------------------------------------------------------------------------


def _type_parameters(obj: Any) -> tuple[Any, ...]:
    return tuple(getattr(obj, "__type_params__", ()) or getattr(obj, "__parameters__", ()) or ())


@dataclass(frozen=True)
class GenericBinding:
    """Type arguments applied to a generic operation definition."""

    owner: Any
    type_arguments: Mapping[Any, Any]
    member_arguments: Mapping[Any, Any]

    @property
    def all_arguments(self) -> dict[Any, Any]:
        return {**self.type_arguments, **self.member_arguments}


def specialize_member(
    function: Callable[..., Any],
    declaring_type: type | None,
    generic_arguments: Sequence[Any],
) -> tuple[Callable[..., Any], GenericBinding]:
    """Apply flattened generic arguments (type-level first, then member-level).

    The declaring type consumes as many arguments as it has type parameters;
    the member is then re-resolved on the instantiated type and the
    remaining arguments go to its own (PEP 695) type parameters. With no
    remaining arguments the member parameters stay unbound.
    """
    arguments = list(generic_arguments)
    owner: Any = declaring_type
    type_arguments: dict[Any, Any] = {}

    type_params = _type_parameters(declaring_type) if declaring_type is not None else ()
    if type_params:
        if len(arguments) < len(type_params):
            raise SpecializationException(
                f"{declaring_type.__qualname__} expects {len(type_params)} type arguments, got {len(arguments)}",
                code="SPECIALIZATION_001",
            )
        consumed, arguments = arguments[: len(type_params)], arguments[len(type_params) :]
        owner = declaring_type[tuple(consumed) if len(consumed) > 1 else consumed[0]]  # type: ignore[index]
        type_arguments = dict(zip(type_params, consumed, strict=True))
        raw = inspect.getattr_static(typing.get_origin(owner) or declaring_type, function.__name__, function)
        resolved, _ = unwrap_member(raw) if not isinstance(raw, property) else (function, None)
        function = resolved

    member_params = tuple(getattr(function, "__type_params__", ()) or ())
    if arguments and len(arguments) != len(member_params):
        raise SpecializationException(
            f"{function.__qualname__} expects {len(member_params)} member type arguments, got {len(arguments)}",
            code="SPECIALIZATION_002",
        )
    member_arguments = dict(zip(member_params, arguments, strict=True)) if arguments else {}
    return function, GenericBinding(owner=owner, type_arguments=type_arguments, member_arguments=member_arguments)
