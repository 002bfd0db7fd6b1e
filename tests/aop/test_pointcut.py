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
"""Tests for pointcut selectors and advice selection."""

from __future__ import annotations

import pytest

from pyadvice.aop.decorators import advise, exclude_advices, exclude_pointcut, include_pointcut
from pyadvice.aop.invocation import AdviceEngine
from pyadvice.aop.pointcut import PointcutSelector, matches_pointcut, select_advices, validate_pattern
from pyadvice.aop.types import AdviceInstance, MethodAdvice
from pyadvice.kernel.exceptions import ConfigurationException, SelectorConfigurationException


class Audit(MethodAdvice):
    def advise_method(self, context) -> None:
        context.proceed()


@include_pointcut("**.get_*")
class ReadAudit(Audit):
    pass


@exclude_pointcut("**.*_internal")
class PublicAudit(Audit):
    pass


@include_pointcut("**.get_*")
@exclude_pointcut("**.get_secret")
class NarrowAudit(Audit):
    pass


# ---------------------------------------------------------------------------
# Pattern matching
# ---------------------------------------------------------------------------


class TestMatchesPointcut:
    def test_exact_match(self) -> None:
        assert matches_pointcut("orders.OrderService.place", "orders.OrderService.place")

    def test_star_matches_single_segment(self) -> None:
        assert matches_pointcut("orders.*.place", "orders.OrderService.place")

    def test_star_does_not_cross_dots(self) -> None:
        assert not matches_pointcut("*.place", "orders.OrderService.place")

    def test_doublestar_any_depth(self) -> None:
        assert matches_pointcut("**.*Service.get_*", "a.b.OrderService.get_total")

    def test_partial_glob(self) -> None:
        assert not matches_pointcut("orders.OrderService.get_*", "orders.OrderService.set_total")


class TestValidatePattern:
    @pytest.mark.parametrize("pattern", ["", "orders..place", ".place", "orders."])
    def test_malformed_patterns(self, pattern: str) -> None:
        with pytest.raises(SelectorConfigurationException):
            validate_pattern(pattern)

    def test_non_string_rule(self) -> None:
        with pytest.raises(SelectorConfigurationException) as exc_info:
            validate_pattern(42)
        assert exc_info.value.code == "SELECTOR_001"

    def test_is_configuration_error(self) -> None:
        assert issubclass(SelectorConfigurationException, ConfigurationException)

    def test_selector_validates_on_creation(self) -> None:
        with pytest.raises(SelectorConfigurationException):
            PointcutSelector(includes=("a..b",))


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestPointcutSelector:
    def test_no_rules_selects_everything(self) -> None:
        assert PointcutSelector().select("orders.OrderService.place")

    def test_include_restricts(self) -> None:
        selector = PointcutSelector(includes=("**.get_*",))
        assert selector.select("orders.OrderService.get_total")
        assert not selector.select("orders.OrderService.place")

    def test_exclude_wins_over_include(self) -> None:
        selector = PointcutSelector(includes=("**.get_*",), excludes=("**.get_secret",))
        assert not selector.select("orders.OrderService.get_secret")

    def test_for_advice_type(self) -> None:
        selector = PointcutSelector.for_advice_type(NarrowAudit)
        assert selector.includes == ("**.get_*",)
        assert selector.excludes == ("**.get_secret",)


class TestSelectAdvices:
    def test_advice_rules_filter(self) -> None:
        read, public = AdviceInstance.of(ReadAudit()), AdviceInstance.of(PublicAudit())
        assert select_advices([read, public], "orders.OrderService.place") == [public]
        assert select_advices([read, public], "orders.OrderService.get_total") == [read, public]
        assert select_advices([read, public], "orders.OrderService.sync_internal") == []

    def test_local_exclusion_matches_advice_type(self) -> None:
        audit = AdviceInstance.of(Audit())
        exclusions = [f"{Audit.__module__}.Audit"]
        assert select_advices([audit], "orders.OrderService.place", exclusions) == []

    def test_local_exclusion_wins_over_advice_include(self) -> None:
        read = AdviceInstance.of(ReadAudit())
        assert select_advices([read], "orders.OrderService.get_total", ["**.ReadAudit"]) == []

    def test_malformed_local_exclusion(self) -> None:
        with pytest.raises(SelectorConfigurationException):
            select_advices([AdviceInstance.of(Audit())], "orders.OrderService.place", ["**..Audit"])


class TestSelectionDuringResolution:
    def test_class_exclusion_applies_to_members(self) -> None:
        engine = AdviceEngine()

        @exclude_advices("**.ReadAudit")
        class Catalog:
            @advise(ReadAudit(), PublicAudit())
            def get_item(self) -> str:
                return "item"

        descriptor = engine.describe(Catalog, "get_item")
        assert [type(a.advice) for a in descriptor.advices] == [PublicAudit]

    def test_operation_exclusion(self) -> None:
        engine = AdviceEngine()

        @advise(Audit())
        class Catalog:
            @exclude_advices("**.Audit")
            def get_item(self) -> str:
                return "item"

            def list_items(self) -> list[str]:
                return []

        assert engine.describe(Catalog, "get_item").advices == ()
        assert len(engine.describe(Catalog, "list_items").advices) == 1
