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
"""Aspect-oriented call interception: advices, weaving and the advice engine."""

from pyadvice.aop.context import (
    AdviceContext,
    AsyncMethodAdviceContext,
    MethodAdviceContext,
    MethodInfoAdviceContext,
    ParameterAdviceContext,
    PropertyAdviceContext,
    PropertyInfoAdviceContext,
)
from pyadvice.aop.decorators import (
    advise,
    advise_module,
    advise_parameter,
    advise_return,
    exclude_advices,
    exclude_pointcut,
    include_pointcut,
)
from pyadvice.aop.descriptor import AspectDescriptor
from pyadvice.aop.interface import AdvisedInterface, advised_interface
from pyadvice.aop.introduction import IntroducedField
from pyadvice.aop.invocation import AdviceEngine
from pyadvice.aop.ordering import priority
from pyadvice.aop.pointcut import PointcutSelector, matches_pointcut
from pyadvice.aop.registry import AdviceRegistry
from pyadvice.aop.resolver import AspectResolver
from pyadvice.aop.settings import WeaverSettings
from pyadvice.aop.types import (
    RETURN_INDEX,
    Advice,
    AdviceDeclaration,
    AdviceInstance,
    AdviceScope,
    AsyncMethodAdvice,
    Capability,
    MethodAdvice,
    MethodInfoAdvice,
    ParameterAdvice,
    PropertyAdvice,
    PropertyInfoAdvice,
    ReturnShape,
)

__all__ = [
    "RETURN_INDEX",
    "Advice",
    "AdviceContext",
    "AdviceDeclaration",
    "AdviceEngine",
    "AdviceInstance",
    "AdviceRegistry",
    "AdviceScope",
    "AdvisedInterface",
    "AspectDescriptor",
    "AspectResolver",
    "AsyncMethodAdvice",
    "AsyncMethodAdviceContext",
    "Capability",
    "IntroducedField",
    "MethodAdvice",
    "MethodAdviceContext",
    "MethodInfoAdvice",
    "MethodInfoAdviceContext",
    "ParameterAdvice",
    "ParameterAdviceContext",
    "PointcutSelector",
    "PropertyAdvice",
    "PropertyAdviceContext",
    "PropertyInfoAdvice",
    "PropertyInfoAdviceContext",
    "ReturnShape",
    "WeaverSettings",
    "advise",
    "advise_module",
    "advise_parameter",
    "advise_return",
    "advised_interface",
    "exclude_advices",
    "exclude_pointcut",
    "include_pointcut",
    "matches_pointcut",
    "priority",
]
