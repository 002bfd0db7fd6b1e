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
"""Links advice layers around the pointcut call."""

from __future__ import annotations

from pyadvice.aop.context import (
    AdviceContext,
    AdviceValues,
    AsyncMethodAdviceContext,
    InnerMethodContext,
    MethodAdviceContext,
    ParameterAdviceContext,
    PropertyAdviceContext,
)
from pyadvice.aop.descriptor import AspectDescriptor
from pyadvice.aop.introduction import FieldInjector
from pyadvice.aop.types import Capability


def build_chain(descriptor: AspectDescriptor, values: AdviceValues, injector: FieldInjector) -> AdviceContext:
    """Build the layered chain for one invocation and return its head.

    Advices are wrapped lowest priority first, so the head belongs to the
    highest-priority advice. Per advice the layers stack as parameter,
    operation, async operation, then property (outermost).
    """
    context: AdviceContext = InnerMethodContext(
        values, descriptor.pointcut, descriptor.layout, descriptor.return_shape
    )
    introduced: set[int] = set()

    for instance in reversed(descriptor.advices):
        advice = instance.advice
        if id(advice) not in introduced:
            injector.ensure_introduced(advice, values.target)
            introduced.add(id(advice))

        if instance.has(Capability.PARAMETER) and instance.parameter_index is not None:
            index = instance.parameter_index
            context = ParameterAdviceContext(
                advice,  # type: ignore[arg-type]
                descriptor.layout.parameter(index),
                index,
                values,
                context,
            )
        if instance.has(Capability.OPERATION):
            context = MethodAdviceContext(advice, descriptor, values, context)  # type: ignore[arg-type]
        if instance.has(Capability.ASYNC_OPERATION):
            context = AsyncMethodAdviceContext(advice, descriptor, values, context)  # type: ignore[arg-type]
        if instance.has(Capability.PROPERTY) and descriptor.bound_property is not None:
            context = PropertyAdviceContext(advice, descriptor.bound_property, values, context)  # type: ignore[arg-type]

    return context
