"""Weaver settings bound from the ``pyadvice.weaver`` configuration section."""

from __future__ import annotations

from pydantic import BaseModel

from pyadvice.core.config import config_properties


@config_properties(prefix="pyadvice.weaver")
class WeaverSettings(BaseModel):
    """Which class members the weaver routes through the engine."""

    include_private: bool = False
    weave_properties: bool = True
    weave_constructors: bool = True
    process_info_advices: bool = True
