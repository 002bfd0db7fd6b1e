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
"""Advised interfaces — implementations made of advices only.

An advised interface is a proxy subclass of an abstract class or protocol
whose members have no body. Every call runs the advices declared on the
interface plus the advice the proxy was created with; the advice supplies
the result::

    class Repository(Protocol):
        def find(self, key: str) -> dict: ...

    repo = advised_interface(Repository, RemoteCall(), engine)
    repo.find("42")
"""

from __future__ import annotations

import inspect
import types
from typing import TYPE_CHECKING, Any, TypeVar

import structlog

from pyadvice.aop.resolver import is_interface
from pyadvice.aop.types import Advice
from pyadvice.aop.weaver import make_stub
from pyadvice.kernel.exceptions import WeavingException
from pyadvice.logging.port import ENGINE_LOGGER

if TYPE_CHECKING:
    from pyadvice.aop.invocation import AdviceEngine

T = TypeVar("T")

logger = structlog.get_logger(ENGINE_LOGGER)

INTERFACE_ADVICE_ATTR = "__pyadvice_interface_advice__"

_IGNORED = frozenset({"_abc_impl", "_is_protocol", "_is_runtime_protocol", "__init__"})


class AdvisedInterface:
    """Base of generated proxies; carries the advice bound at creation."""

    def __init__(self, advice: Advice) -> None:
        setattr(self, INTERFACE_ADVICE_ATTR, advice)

    def __repr__(self) -> str:
        advice = getattr(self, INTERFACE_ADVICE_ATTR)
        return f"<{type(self).__name__} advised by {type(advice).__name__}>"


def interface_members(interface: type) -> list[str]:
    """Names the proxy must implement: abstract members plus protocol members."""
    names = list(getattr(interface, "__abstractmethods__", ()))
    for base in reversed(interface.__mro__):
        if not getattr(base, "_is_protocol", False) or base.__module__ == "typing":
            continue
        for name, value in vars(base).items():
            if name in _IGNORED or (name.startswith("__") and name.endswith("__")):
                continue
            if isinstance(value, (property, staticmethod, classmethod)) or inspect.isfunction(value):
                if name not in names:
                    names.append(name)
    return sorted(names)


def _bodiless(engine: AdviceEngine, raw: Any, proxy: type) -> Any:
    if isinstance(raw, property):
        fget = make_stub(engine, raw.fget, proxy, "instance", bodiless=True) if raw.fget is not None else None
        fset = make_stub(engine, raw.fset, proxy, "instance", bodiless=True) if raw.fset is not None else None
        return property(fget, fset, None, raw.__doc__)
    if isinstance(raw, staticmethod):
        return staticmethod(make_stub(engine, raw.__func__, proxy, "static", bodiless=True))
    if isinstance(raw, classmethod):
        return classmethod(make_stub(engine, raw.__func__, proxy, "class", bodiless=True))
    return make_stub(engine, raw, proxy, "instance", bodiless=True)


def build_proxy_class(interface: type, engine: AdviceEngine) -> type:
    """Create the proxy class implementing every member of *interface* through *engine*."""
    if not isinstance(interface, type) or not is_interface(interface):
        raise WeavingException(
            f"{interface!r} is not an abstract class or protocol",
            code="WEAVING_010",
        )
    proxy = types.new_class(
        f"Advised{interface.__name__}",
        (AdvisedInterface, interface),
        exec_body=lambda ns: ns.update(__module__=interface.__module__),
    )

    members = interface_members(interface)
    for name in members:
        raw = inspect.getattr_static(interface, name)
        setattr(proxy, name, _bodiless(engine, raw, proxy))

    # Stubs were added after class creation; the ABC cache still lists them as abstract.
    proxy.__abstractmethods__ = frozenset()
    logger.debug("interface_proxy_created", interface=interface.__qualname__, members=members)
    return proxy


def advised_interface(interface: type[T], advice: Advice, engine: AdviceEngine) -> T:
    """Return an object implementing *interface* whose calls are handled by *advice*."""
    if not isinstance(advice, Advice):
        raise WeavingException(f"{advice!r} is not an Advice instance", code="WEAVING_011")
    proxy = engine.interface_proxy(interface)
    return proxy(advice)  # type: ignore[no-any-return]
