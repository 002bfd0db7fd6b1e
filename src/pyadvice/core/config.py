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
"""Engine configuration from YAML/TOML files and env vars, with model binding.

Values are addressed with dotted keys. Every lookup checks the environment
first: ``pyadvice.weaver.include_private`` is overridden by
``PYADVICE_WEAVER_INCLUDE_PRIVATE``.
"""

from __future__ import annotations

import dataclasses
import os
import re
import tomllib
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from pyadvice.kernel.exceptions import ConfigurationException

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")
_PREFIX_ATTR = "__pyadvice_config_prefix__"
_ENV_PREFIX = "PYADVICE_"
_MAX_PLACEHOLDER_DEPTH = 10
_MISSING = object()

_TRUTHY = frozenset({"true", "1", "yes", "on"})
_COERCE: dict[Any, Callable[[str], Any]] = {
    int: int,
    float: float,
    bool: lambda raw: raw.strip().lower() in _TRUTHY,
}


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass or pydantic model as bound to the section at *prefix*::

        @config_properties(prefix="pyadvice.weaver")
        class WeaverSettings(BaseModel):
            include_private: bool = False
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key(key: str) -> str:
    """Environment variable overriding *key* (the leading ``pyadvice.`` is dropped)."""
    return _ENV_PREFIX + key.removeprefix("pyadvice.").upper().replace(".", "_").replace("-", "_")


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as fh:
            return tomllib.load(fh)
    with path.open() as fh:
        return yaml.safe_load(fh) or {}


def _walk(data: Any, key: str) -> Any:
    for part in key.split("."):
        if not isinstance(data, dict) or part not in data or data[part] is None:
            return _MISSING
        data = data[part]
    return data


class Config:
    """Layered configuration.

    Later files override earlier ones, and environment variables override
    every file. ``${NAME}`` / ``${dotted.key}`` / ``${key:fallback}``
    placeholders in string values resolve on read.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this configuration, in merge order."""
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_sources(cls, base_dir: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Merge ``pyadvice.{yaml,toml}`` from ``base_dir/config`` and ``base_dir``.

        Profile overlays (``pyadvice-<profile>.*``) are merged afterwards, in
        the order the profiles are given.
        """
        base_dir = Path(base_dir)

        def candidates() -> Iterator[tuple[Path, str]]:
            for stem, label in [("pyadvice", "")] + [(f"pyadvice-{p}", f" (profile: {p})") for p in active_profiles or []]:
                for directory in (base_dir / "config", base_dir):
                    for suffix in (".yaml", ".toml"):
                        yield directory / f"{stem}{suffix}", label

        return cls._load(candidates())

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Load one file plus its ``<stem>-<profile><suffix>`` siblings."""
        path = Path(path)
        if not path.is_file():
            return cls()
        overlays = [
            (path.with_name(f"{path.stem}-{profile}{path.suffix}"), f" (profile: {profile})")
            for profile in active_profiles or []
        ]
        return cls._load(iter([(path, ""), *overlays]))

    @classmethod
    def _load(cls, candidates: Iterator[tuple[Path, str]]) -> Config:
        config = cls()
        for path, label in candidates:
            if path.is_file():
                config._data = _merge(config._data, _read(path))
                config._sources.append(f"{path}{label}")
        return config

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted *key*: environment first, then files, then *default*."""
        override = os.environ.get(env_key(key))
        if override is not None:
            return override
        value = _walk(self._data, key)
        if value is _MISSING:
            return default
        if isinstance(value, str) and "${" in value:
            return self._expand(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """The mapping stored under *prefix*, or an empty dict."""
        section = _walk(self._data, prefix)
        return section if isinstance(section, dict) else {}

    def _expand(self, value: str, depth: int = 0) -> str:
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ConfigurationException(
                f"Placeholder expansion of '{value}' is too deep; check for circular references",
                code="CONFIG_001",
            )

        def substitute(match: re.Match[str]) -> str:
            reference, _, fallback = match.group(1).partition(":")
            if reference in os.environ:
                return os.environ[reference]
            found = _walk(self._data, reference)
            if found is not _MISSING:
                text = str(found)
                return self._expand(text, depth + 1) if "${" in text else text
            if match.group(1) != reference:
                return fallback
            raise ConfigurationException(
                f"Cannot resolve placeholder '${{{reference}}}': not found in environment or config",
                code="CONFIG_002",
                context={"placeholder": reference},
            )

        return _PLACEHOLDER_RE.sub(substitute, value)

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    def bind(self, config_cls: type[T]) -> T:
        """Build *config_cls* (``@config_properties`` model or dataclass) from its section."""
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ConfigurationException(
                f"{config_cls.__name__} is not decorated with @config_properties",
                code="CONFIG_003",
            )
        if issubclass(config_cls, BaseModel):
            return cast(T, self._bind_model(config_cls, prefix))
        return self._bind_dataclass(config_cls, prefix)

    def _values(self, prefix: str, names: list[str]) -> dict[str, Any]:
        values = dict(self.get_section(prefix))
        for name in names:
            value = self.get(f"{prefix}.{name}")
            if value is not None:
                values[name] = value
        return values

    def _bind_model(self, model: type[BaseModel], prefix: str) -> BaseModel:
        try:
            return model.model_validate(self._values(prefix, list(model.model_fields)))
        except ValidationError as exc:
            raise ConfigurationException(
                f"Invalid '{prefix}' configuration for {model.__name__}:\n{exc}",
                code="CONFIG_004",
            ) from exc

    def _bind_dataclass(self, config_cls: type[T], prefix: str) -> T:
        fields = dataclasses.fields(config_cls)  # type: ignore[arg-type]
        values = self._values(prefix, [f.name for f in fields])
        hints = get_type_hints(config_cls)
        kwargs: dict[str, Any] = {}
        for f in fields:
            if f.name not in values:
                continue
            value = values[f.name]
            coerce = _COERCE.get(hints.get(f.name))
            kwargs[f.name] = coerce(value) if coerce is not None and isinstance(value, str) else value
        return config_cls(**kwargs)
