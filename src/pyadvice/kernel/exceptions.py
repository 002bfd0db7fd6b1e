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
"""Unified exception hierarchy for pyadvice.

All engine exceptions inherit from PyAdviceException, so callers can catch
every engine-raised failure at once. Faults raised by advices or by the
advised operations themselves are never wrapped in these types: they reach
the caller unchanged.

Categories:
- ConfigurationException: malformed declarations and selector rules
- ResolutionException: no resolvable pointcut for an operation
- SpecializationException: generic arguments do not fit the operation
- IntroductionException: introduced fields cannot be materialized
- AdviceExecutionException: the chain cannot be driven in this context
- WeavingException: a member cannot be woven
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class PyAdviceException(Exception):
    """Base exception for all pyadvice errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "RESOLUTION_001").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationException(PyAdviceException):
    """An advice declaration or engine setting is invalid."""


class SelectorConfigurationException(ConfigurationException):
    """A pointcut selector or advice exclusion rule is malformed."""


# =============================================================================
# Resolution Exceptions
# =============================================================================


class ResolutionException(PyAdviceException):
    """The pointcut counterpart of an operation cannot be determined."""


class SpecializationException(ResolutionException):
    """Generic type arguments cannot be applied to an operation."""


# =============================================================================
# Runtime Exceptions
# =============================================================================


class IntroductionException(PyAdviceException):
    """Introduced fields cannot be materialized on a target instance."""


class AdviceExecutionException(PyAdviceException):
    """The advice chain cannot be executed in the current context."""


class WeavingException(PyAdviceException):
    """A class member cannot be routed through the engine."""
