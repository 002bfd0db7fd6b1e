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
"""Tests for advice discovery across modules, types, operations and parameters."""

from __future__ import annotations

import pytest

from pyadvice.aop.decorators import advise, advise_parameter, advise_return
from pyadvice.aop.discovery import discover, enclosing_types, find_property, type_chain
from pyadvice.aop.identity import ParameterLayout
from pyadvice.aop.invocation import AdviceEngine
from pyadvice.aop.registry import AdviceRegistry
from pyadvice.aop.types import RETURN_INDEX, AdviceDeclaration, AdviceScope, MethodAdvice, ParameterAdvice
from pyadvice.kernel.exceptions import ConfigurationException


class Tag(MethodAdvice):
    def __init__(self, label: str) -> None:
        self.label = label

    def advise_method(self, context) -> None:
        context.proceed()

    def __repr__(self) -> str:
        return f"Tag({self.label})"


class Check(ParameterAdvice):
    def __init__(self, label: str = "check") -> None:
        self.label = label

    def advise_parameter(self, context) -> None:
        context.proceed()


OUTER_TAG = Tag("outer")
INNER_TAG = Tag("inner")
BASE_TAG = Tag("base")


@advise(OUTER_TAG)
class Outer:
    @advise(INNER_TAG)
    class Inner:
        def run(self) -> None: ...


@advise(BASE_TAG)
class Base:
    pass


class Derived(Base):
    def run(self) -> None: ...


def _labels(descriptor) -> list[str]:
    return [a.advice.label for a in descriptor.advices]


# ---------------------------------------------------------------------------
# Type chain
# ---------------------------------------------------------------------------


class TestTypeChain:
    def test_enclosing_types_outermost_first(self):
        assert enclosing_types(Outer.Inner) == [Outer]

    def test_local_classes_have_no_enclosing_types(self):
        class Local:
            pass

        assert enclosing_types(Local) == []

    def test_ancestors_before_declaring_type(self):
        assert type_chain(Derived) == [Base, Derived]

    def test_enclosing_before_nested(self):
        assert type_chain(Outer.Inner) == [Outer, Outer.Inner]

    def test_no_declaring_type(self):
        assert type_chain(None) == []


# ---------------------------------------------------------------------------
# Scope order
# ---------------------------------------------------------------------------


class TestDiscoveryOrder:
    def test_enclosing_type_then_nested_type(self):
        descriptor = AdviceEngine().describe(Outer.Inner, "run")
        assert _labels(descriptor) == ["outer", "inner"]

    def test_base_type_advices_apply_to_derived_operations(self):
        descriptor = AdviceEngine().describe(Derived, "run")
        assert _labels(descriptor) == ["base"]

    def test_module_type_operation_property(self):
        module_tag, type_tag, op_tag, prop_tag = Tag("module"), Tag("type"), Tag("operation"), Tag("property")

        @advise(type_tag)
        class Account:
            @advise(prop_tag)
            @property
            @advise(op_tag)
            def balance(self) -> int:
                return 0

        registry = AdviceRegistry()
        registry.declare(Account.__module__, AdviceDeclaration(module_tag, AdviceScope.MODULE))
        descriptor = AdviceEngine().describe(Account, "balance")
        assert _labels(descriptor) == ["type", "operation", "property"]

        found = discover(
            Account.balance.fget,
            Account,
            ParameterLayout.of(Account.balance.fget, has_receiver=True),
            registry,
        )
        assert [a.advice.label for a in found.advices] == ["module", "type", "operation", "property"]
        assert found.bound_property is not None and found.bound_property.name == "balance"

    def test_same_advice_at_two_levels_is_merged(self):
        shared = Tag("shared")

        @advise(shared)
        class Service:
            @advise(shared)
            def run(self) -> None: ...

        assert _labels(AdviceEngine().describe(Service, "run")) == ["shared"]


# ---------------------------------------------------------------------------
# Parameter replication
# ---------------------------------------------------------------------------


class TestParameterReplication:
    def test_whole_operation_parameter_advice_replicated_per_slot(self):
        check = Check()

        class Service:
            @advise(check)
            def transfer(self, source: str, target: str) -> bool:
                return True

        descriptor = AdviceEngine().describe(Service, "transfer")
        assert [a.parameter_index for a in descriptor.advices] == [0, 1, RETURN_INDEX]
        assert all(a.advice is check for a in descriptor.advices)

    def test_explicit_parameter_advices_follow_replicas_per_slot(self):
        check, explicit, returned = Check("all"), Check("explicit"), Check("return")

        class Service:
            @advise(check)
            @advise_parameter("target", explicit)
            @advise_return(returned)
            def transfer(self, source: str, target: str) -> bool:
                return True

        descriptor = AdviceEngine().describe(Service, "transfer")
        assert [(a.advice.label, a.parameter_index) for a in descriptor.advices] == [
            ("all", 0),
            ("all", 1),
            ("explicit", 1),
            ("all", RETURN_INDEX),
            ("return", RETURN_INDEX),
        ]

    def test_explicit_and_whole_operation_are_not_deduplicated(self):
        check = Check()

        class Service:
            @advise(check)
            @advise_parameter(0, check)
            def put(self, value: int) -> None: ...

        descriptor = AdviceEngine().describe(Service, "put")
        assert [a.parameter_index for a in descriptor.advices] == [0, 0, RETURN_INDEX]

    def test_constructor_has_no_return_slot(self):
        check = Check()

        class Service:
            @advise(check)
            def __init__(self, name: str) -> None:
                self.name = name

        descriptor = AdviceEngine().describe(Service, "__init__")
        assert [a.parameter_index for a in descriptor.advices] == [0]

    def test_unknown_parameter_name(self):
        class Service:
            @advise_parameter("missing", Check())
            def run(self, value: int) -> None: ...

        with pytest.raises(ConfigurationException) as exc_info:
            AdviceEngine().describe(Service, "run")
        assert exc_info.value.code == "DECLARATION_010"


class TestFindProperty:
    def test_getter_and_setter(self):
        class Account:
            @property
            def balance(self) -> int:
                return 0

            @balance.setter
            def balance(self, value: int) -> None: ...

        getter = find_property(Account, vars(Account)["balance"].fget)
        setter = find_property(Account, vars(Account)["balance"].fset)
        assert getter is not None and getter.is_getter
        assert setter is not None and setter.is_setter

    def test_plain_method_has_no_property(self):
        class Service:
            def run(self) -> None: ...

        assert find_property(Service, Service.run) is None
