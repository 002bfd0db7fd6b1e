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
"""'pyadvice describe': show the resolved advice chain of an operation."""

from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any

import click
from rich.table import Table

from pyadvice.aop.descriptor import AspectDescriptor
from pyadvice.aop.invocation import AdviceEngine
from pyadvice.aop.ordering import get_priority
from pyadvice.aop.types import RETURN_INDEX, AdviceInstance, type_name
from pyadvice.cli.console import console
from pyadvice.core.config import Config
from pyadvice.kernel.exceptions import PyAdviceException
from pyadvice.logging import configure_logging


def load_target(target: str) -> tuple[type, str]:
    """Resolve ``package.module:Class.member`` to ``(Class, "member")``."""
    module_name, sep, path = target.partition(":")
    parts = path.split(".")
    if not sep or len(parts) < 2 or not all(parts):
        raise click.BadParameter(f"expected 'module:Class.member', got '{target}'", param_hint="TARGET")
    try:
        owner: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise click.BadParameter(f"cannot import '{module_name}': {exc}", param_hint="TARGET") from exc
    for part in parts[:-1]:
        owner = getattr(owner, part, None)
        if owner is None:
            raise click.BadParameter(f"'{part}' not found in '{target}'", param_hint="TARGET")
    if not isinstance(owner, type):
        raise click.BadParameter(f"'{'.'.join(parts[:-1])}' is not a class", param_hint="TARGET")
    return owner, parts[-1]


def _slot(instance: AdviceInstance, descriptor: AspectDescriptor) -> str:
    index = instance.parameter_index
    if index is None:
        return "-"
    if index == RETURN_INDEX:
        return "return"
    return descriptor.layout.names[index]


def render_descriptor(descriptor: AspectDescriptor) -> Table:
    title = f"{descriptor.advised.__qualname__} [dim]({descriptor.return_shape.name.lower()})[/dim]"
    table = Table(title=title, border_style="dim")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Advice", style="info")
    table.add_column("Priority", justify="right")
    table.add_column("Slot")
    table.add_column("Capabilities", style="dim")
    for position, instance in enumerate(descriptor.advices, start=1):
        capabilities = ", ".join(sorted(c.name.lower() for c in instance.capabilities))
        table.add_row(
            str(position),
            type_name(instance.advice_type),
            str(get_priority(instance.advice)),
            _slot(instance, descriptor),
            capabilities,
        )
    return table


@click.command()
@click.argument("target")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory holding pyadvice.yaml / pyadvice.toml.",
)
def describe_command(target: str, config_dir: Path) -> None:
    """Show the advices applied to TARGET (module:Class.member), outermost first."""
    cls, member = load_target(target)
    config = Config.from_sources(config_dir)
    configure_logging(config)
    engine = AdviceEngine.from_config(config)
    try:
        descriptor = engine.describe(cls, member)
    except PyAdviceException as exc:
        console.print(f"[error]{exc}[/error]")
        raise SystemExit(1) from exc

    if not descriptor.advices:
        console.print(f"[warning]{descriptor.advised.__qualname__} has no advices[/warning]")
        return
    console.print(render_descriptor(descriptor))
    if descriptor.bound_property is not None:
        console.print(f"  [dim]property:[/dim] {descriptor.bound_property.name}")
