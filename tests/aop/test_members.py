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
"""Tests for property and parameter advices."""

from __future__ import annotations

import pytest

from pyadvice.aop.context import ParameterAdviceContext, PropertyAdviceContext
from pyadvice.aop.decorators import advise, advise_parameter, advise_return
from pyadvice.aop.invocation import AdviceEngine
from pyadvice.aop.types import ParameterAdvice, PropertyAdvice


class NonNegative(PropertyAdvice):
    def __init__(self) -> None:
        self.accesses: list[tuple[str, bool]] = []

    def advise_property(self, context: PropertyAdviceContext) -> None:
        self.accesses.append((context.property_name, context.is_setter))
        if context.is_setter:
            context.value = max(0, context.value)
        context.proceed()


class Masked(PropertyAdvice):
    def advise_property(self, context: PropertyAdviceContext) -> None:
        context.proceed()
        if context.is_getter:
            context.value = "*" * len(context.value)


class Upper(ParameterAdvice):
    def advise_parameter(self, context: ParameterAdviceContext) -> None:
        if not context.is_return:
            context.value = context.value.upper()
        context.proceed()


class Bracket(ParameterAdvice):
    def advise_parameter(self, context: ParameterAdviceContext) -> None:
        context.proceed()
        if context.is_return:
            context.value = f"[{context.value}]"


class Required(ParameterAdvice):
    def __init__(self) -> None:
        self.checked: list[str | None] = []

    def advise_parameter(self, context: ParameterAdviceContext) -> None:
        self.checked.append(context.name)
        if not context.is_return and context.value is None:
            raise ValueError(f"{context.name} is required")
        context.proceed()


# ---------------------------------------------------------------------------
# Property advices
# ---------------------------------------------------------------------------


class TestPropertyAdvice:
    def test_setter_and_getter_are_advised(self):
        engine = AdviceEngine()
        guard = NonNegative()

        @engine.advised
        class Account:
            def __init__(self) -> None:
                self._balance = 0

            @advise(guard)
            @property
            def balance(self) -> int:
                return self._balance

            @balance.setter
            def balance(self, value: int) -> None:
                self._balance = value

        account = Account()
        account.balance = -5
        assert account.balance == 0
        account.balance = 12
        assert account.balance == 12
        assert guard.accesses == [
            ("balance", True),
            ("balance", False),
            ("balance", True),
            ("balance", False),
        ]

    def test_getter_result_replaced(self):
        engine = AdviceEngine()

        @engine.advised
        class User:
            @advise(Masked())
            @property
            def password(self) -> str:
                return "secret"

        assert User().password == "******"

    def test_property_advice_on_plain_method_adds_no_layer(self):
        engine = AdviceEngine()

        @engine.advised
        class Service:
            @advise(Masked())
            def run(self) -> str:
                return "plain"

        assert Service().run() == "plain"

    def test_properties_left_alone_when_disabled(self):
        engine = AdviceEngine()
        engine.settings.weave_properties = False

        @engine.advised
        class User:
            @advise(Masked())
            @property
            def password(self) -> str:
                return "secret"

        assert User().password == "secret"


# ---------------------------------------------------------------------------
# Parameter advices
# ---------------------------------------------------------------------------


class TestParameterAdvice:
    def test_whole_operation_parameter_advice_sees_every_slot(self):
        engine = AdviceEngine()
        required = Required()

        @engine.advised
        class Greeter:
            @advise(required)
            def greet(self, first: str, last: str) -> str:
                return f"{first} {last}"

        assert Greeter().greet("ada", "lovelace") == "ada lovelace"
        assert required.checked == ["first", "last", None]

    def test_parameter_advice_rejects_value(self):
        engine = AdviceEngine()

        @engine.advised
        class Greeter:
            @advise(Required())
            def greet(self, name: str | None) -> str:
                return f"hello {name}"

        with pytest.raises(ValueError, match="name is required"):
            Greeter().greet(None)

    def test_parameter_advice_rewrites_argument(self):
        engine = AdviceEngine()

        @engine.advised
        class Greeter:
            @advise_parameter("name", Upper())
            def greet(self, greeting: str, name: str) -> str:
                return f"{greeting} {name}"

        assert Greeter().greet("hello", "bob") == "hello BOB"

    def test_parameter_by_position(self):
        engine = AdviceEngine()

        @engine.advised
        class Greeter:
            @advise_parameter(0, Upper())
            def greet(self, greeting: str, name: str) -> str:
                return f"{greeting} {name}"

        assert Greeter().greet("hello", "bob") == "HELLO bob"

    def test_return_advice(self):
        engine = AdviceEngine()

        @engine.advised
        class Greeter:
            @advise_return(Bracket())
            def greet(self, name: str) -> str:
                return f"hello {name}"

        assert Greeter().greet("bob") == "[hello bob]"

    def test_parameter_and_return_advices_combined(self):
        engine = AdviceEngine()

        @engine.advised
        class Greeter:
            @advise(Upper(), Bracket())
            def greet(self, name: str) -> str:
                return f"hello {name}"

        assert Greeter().greet("bob") == "[hello BOB]"
