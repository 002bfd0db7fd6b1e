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
"""LoggingPort adapters — structlog (default) and plain stdlib logging.

Both adapters read the same configuration keys::

    pyadvice:
      logging:
        adapter: structlog      # or "stdlib"
        format: console         # or "json"
        level:
          root: INFO
          pyadvice.aop: DEBUG   # per-logger overrides
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from pyadvice.core.config import Config


class _LevelledAdapter:
    """Shared parsing of the ``pyadvice.logging`` section."""

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        levels = dict(config.get_section("pyadvice.logging.level"))
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = {name: str(level).upper() for name, level in levels.items()}
        self._format = str(config.get("pyadvice.logging.format", "console")).lower()

        self._install()
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _root_numeric_level(self) -> int:
        return getattr(logging, self._root_level, logging.INFO)

    def _install(self) -> None:
        raise NotImplementedError


class StructlogAdapter(_LevelledAdapter):
    """Default adapter: structlog processors rendered through stdlib handlers."""

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def _install(self) -> None:
        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(format="%(message)s", stream=sys.stdout, level=self._root_numeric_level(), force=True)


class _KeyValueLogger:
    """Accepts ``logger.info(event, **kv)`` and renders ``event | k=v`` lines."""

    __slots__ = ("_logger",)

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _emit(self, level: int, event: str, kwargs: dict[str, Any]) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if kwargs:
            event = f"{event} | " + " ".join(f"{k}={v}" for k, v in kwargs.items())
        self._logger.log(level, event)

    def debug(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, event, kwargs)

    def info(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, event, kwargs)

    def warning(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, event, kwargs)

    def error(self, event: str, **kwargs: Any) -> None:
        self._emit(logging.ERROR, event, kwargs)


class StdlibLoggingAdapter(_LevelledAdapter):
    """Adapter writing through the standard library only (``adapter: stdlib``)."""

    def get_logger(self, name: str) -> Any:
        return _KeyValueLogger(logging.getLogger(name))

    def _install(self) -> None:
        if self._format == "json":
            fmt = '{"timestamp":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}'
        else:
            fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        logging.basicConfig(format=fmt, stream=sys.stdout, level=self._root_numeric_level(), force=True)
