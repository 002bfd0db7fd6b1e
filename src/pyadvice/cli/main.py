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
"""pyadvice CLI — inspect advice chains."""

from __future__ import annotations

import click

from pyadvice.cli.console import print_banner
from pyadvice.cli.describe import describe_command
from pyadvice.cli.info import info_command


class PyAdviceCLI(click.Group):
    """Click group that shows the banner on help."""

    def format_help(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        print_banner()
        super().format_help(ctx, formatter)


@click.group(cls=PyAdviceCLI)
@click.version_option(package_name="pyadvice")
def cli() -> None:
    """Aspect-oriented call interception."""


cli.add_command(describe_command, name="describe")
cli.add_command(info_command, name="info")
