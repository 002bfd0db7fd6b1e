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
"""pyadvice — aspect-oriented call interception for Python."""

__version__ = "0.1.0"

from pyadvice.aop import (  # noqa: E402
    AdviceEngine,
    AsyncMethodAdvice,
    IntroducedField,
    MethodAdvice,
    ParameterAdvice,
    PropertyAdvice,
    advise,
    advised_interface,
    priority,
)
from pyadvice.core.config import Config  # noqa: E402

__all__ = [
    "AdviceEngine",
    "AsyncMethodAdvice",
    "Config",
    "IntroducedField",
    "MethodAdvice",
    "ParameterAdvice",
    "PropertyAdvice",
    "__version__",
    "advise",
    "advised_interface",
    "priority",
]
