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
"""Tests for Config file loading, env overrides and binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel

from pyadvice.aop.settings import WeaverSettings
from pyadvice.core.config import Config, config_properties
from pyadvice.kernel.exceptions import ConfigurationException


class TestConfig:
    def test_get_nested_value(self):
        config = Config({"pyadvice": {"weaver": {"include_private": True}}})
        assert config.get("pyadvice.weaver.include_private") is True

    def test_get_with_default(self):
        assert Config({}).get("missing.key", "default") == "default"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "pyadvice.yaml"
        config_file.write_text("pyadvice:\n  logging:\n    format: json\n")
        config = Config.from_file(config_file)
        assert config.get("pyadvice.logging.format") == "json"
        assert config.loaded_sources == [str(config_file)]

    def test_from_sources_merges_toml_and_profiles(self, tmp_path: Path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "pyadvice.toml").write_text(
            "[pyadvice.weaver]\ninclude_private = true\nweave_properties = true\n"
        )
        (tmp_path / "pyadvice-dev.yaml").write_text("pyadvice:\n  weaver:\n    weave_properties: false\n")

        config = Config.from_sources(tmp_path, active_profiles=["dev"])
        assert config.get("pyadvice.weaver.include_private") is True
        assert config.get("pyadvice.weaver.weave_properties") is False
        assert len(config.loaded_sources) == 2

    def test_from_sources_without_files(self, tmp_path: Path):
        config = Config.from_sources(tmp_path)
        assert config.to_dict() == {}

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PYADVICE_LOGGING_FORMAT", "json")
        config = Config({"pyadvice": {"logging": {"format": "console"}}})
        assert config.get("pyadvice.logging.format") == "json"

    def test_placeholder_resolution(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        config = Config({"pyadvice": {"logging": {"level": {"root": "${LOG_LEVEL}"}}}})
        assert config.get("pyadvice.logging.level.root") == "DEBUG"

    def test_placeholder_default(self):
        config = Config({"app": {"mode": "${PYADVICE_TEST_UNSET_MODE:strict}"}})
        assert config.get("app.mode") == "strict"

    def test_unresolvable_placeholder(self):
        config = Config({"app": {"mode": "${PYADVICE_TEST_UNSET_MODE}"}})
        with pytest.raises(ConfigurationException) as exc_info:
            config.get("app.mode")
        assert exc_info.value.code == "CONFIG_002"


class TestBinding:
    def test_bind_weaver_settings(self):
        config = Config({"pyadvice": {"weaver": {"weave_constructors": False}}})
        settings = config.bind(WeaverSettings)
        assert settings.weave_constructors is False
        assert settings.weave_properties is True

    def test_bind_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PYADVICE_WEAVER_INCLUDE_PRIVATE", "true")
        settings = Config({}).bind(WeaverSettings)
        assert settings.include_private is True

    def test_bind_invalid_value(self):
        config = Config({"pyadvice": {"weaver": {"include_private": "maybe"}}})
        with pytest.raises(ConfigurationException) as exc_info:
            config.bind(WeaverSettings)
        assert exc_info.value.code == "CONFIG_004"

    def test_bind_dataclass(self):
        @config_properties(prefix="pyadvice.cache")
        @dataclass
        class CacheSettings:
            size: int = 16
            enabled: bool = False

        config = Config({"pyadvice": {"cache": {"size": "64", "enabled": "yes"}}})
        settings = config.bind(CacheSettings)
        assert settings.size == 64
        assert settings.enabled is True

    def test_bind_requires_decorator(self):
        class Undecorated(BaseModel):
            value: int = 0

        with pytest.raises(ConfigurationException) as exc_info:
            Config({}).bind(Undecorated)
        assert exc_info.value.code == "CONFIG_003"
