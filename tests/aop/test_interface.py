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
"""Tests for advised interfaces — proxies whose calls are handled by advices."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from pyadvice.aop.context import AsyncMethodAdviceContext, MethodAdviceContext
from pyadvice.aop.decorators import advise
from pyadvice.aop.interface import AdvisedInterface, advised_interface, interface_members
from pyadvice.aop.invocation import AdviceEngine
from pyadvice.aop.ordering import priority
from pyadvice.aop.types import AsyncMethodAdvice, MethodAdvice
from pyadvice.kernel.exceptions import WeavingException


class Echo(MethodAdvice):
    def advise_method(self, context: MethodAdviceContext) -> None:
        context.proceed()
        context.return_value = f"{context.name}:{','.join(map(str, context.parameters))}"


class AsyncEcho(AsyncMethodAdvice):
    async def advise_method_async(self, context: AsyncMethodAdviceContext) -> None:
        await context.proceed_async()
        context.result = f"async {context.name}"


@priority(100)
class Logged(MethodAdvice):
    def __init__(self) -> None:
        self.names: list[str] = []

    def advise_method(self, context: MethodAdviceContext) -> None:
        self.names.append(context.name)
        context.proceed()


LOGGED = Logged()


class Greeter(Protocol):
    def greet(self, name: str) -> str: ...

    def farewell(self, name: str, mood: str) -> str: ...


class Store(ABC):
    @abstractmethod
    def get(self, key: str) -> str: ...

    @advise(LOGGED)
    @abstractmethod
    def put(self, key: str, value: str) -> str: ...

    @property
    @abstractmethod
    def size(self) -> str: ...


class Fetcher(Protocol):
    async def fetch(self, url: str) -> str: ...


class TestAdvisedInterface:
    def test_protocol_members_answered_by_advice(self):
        greeter = advised_interface(Greeter, Echo(), AdviceEngine())
        assert greeter.greet("bob") == "greet:bob"
        assert greeter.farewell("bob", "sad") == "farewell:bob,sad"

    def test_proxy_implements_interface(self):
        greeter = advised_interface(Greeter, Echo(), AdviceEngine())
        assert isinstance(greeter, AdvisedInterface)
        assert Greeter in type(greeter).__mro__

    def test_abstract_class_with_property(self):
        store = advised_interface(Store, Echo(), AdviceEngine())
        assert store.get("a") == "get:a"
        assert store.size == "size:"

    def test_interface_advices_run_with_bound_advice(self):
        store = advised_interface(Store, Echo(), AdviceEngine())
        assert store.put("k", "v") == "put:k,v"
        assert "put" in LOGGED.names

    def test_async_members(self):
        fetcher = advised_interface(Fetcher, AsyncEcho(), AdviceEngine())

        async def run() -> str:
            return await fetcher.fetch("http://example")

        assert asyncio.run(run()) == "async fetch"

    def test_proxy_class_built_once_per_engine(self):
        engine = AdviceEngine()
        first = advised_interface(Greeter, Echo(), engine)
        second = advised_interface(Greeter, Echo(), engine)
        assert type(first) is type(second)
        assert type(first).__name__ == "AdvisedGreeter"

    def test_proxies_keep_their_own_advice(self):
        engine = AdviceEngine()

        class Fixed(MethodAdvice):
            def __init__(self, value: str) -> None:
                self.value = value

            def advise_method(self, context: MethodAdviceContext) -> None:
                context.return_value = self.value

        first = advised_interface(Greeter, Fixed("one"), engine)
        second = advised_interface(Greeter, Fixed("two"), engine)
        assert first.greet("x") == "one"
        assert second.greet("x") == "two"

    def test_interface_members(self):
        assert interface_members(Greeter) == ["farewell", "greet"]
        assert interface_members(Store) == ["get", "put", "size"]

    def test_rejects_concrete_class(self):
        class Concrete:
            def run(self) -> None: ...

        with pytest.raises(WeavingException):
            advised_interface(Concrete, Echo(), AdviceEngine())

    def test_rejects_non_advice(self):
        with pytest.raises(WeavingException):
            advised_interface(Greeter, object(), AdviceEngine())  # type: ignore[arg-type]
