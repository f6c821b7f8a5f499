# sqlrestorechain - selects SQL Server backup chains for point-in-time restore.
#
# Copyright (C) 2025 sqlrestorechain contributors.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""The global rich text console."""

from __future__ import annotations

from rich.console import Console
from rich.style import Style
from rich.theme import Theme

STYLE_FULL = Style.parse("green")
STYLE_DIFFERENTIAL = Style.parse("cyan")
STYLE_LOG = Style.parse("none")
STYLE_SYNTHETIC = Style.parse("dim italic")
STYLE_LSN = Style.parse("yellow")
STYLE_TARGET = Style.parse("bold")
STYLE_FAILURE = Style.parse("bold bright_red")

THEME = Theme(
    {
        "full": STYLE_FULL,
        "differential": STYLE_DIFFERENTIAL,
        "log": STYLE_LOG,
        "synthetic": STYLE_SYNTHETIC,
        "lsn": STYLE_LSN,
        "target": STYLE_TARGET,
        "failure": STYLE_FAILURE,
    }
)

CONSOLE = Console(theme=THEME)
"""The global rich text console."""
