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

from __future__ import annotations

from datetime import timezone
from io import StringIO
from typing import Any
from typing import Protocol
from typing import TYPE_CHECKING

import arrow
import pytest
from rich.console import Console

from sqlrestorechain._internal.console import THEME
from sqlrestorechain._internal.records import BackupRecord
from sqlrestorechain._internal.times import use_tzinfo

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import IO

    from sqlrestorechain._internal.records import BackupType


class ConsoleFactory(Protocol):
    def __call__(
        self, *, force_terminal: bool, file: IO[str] | None = None
    ) -> Console: ...


@pytest.fixture
def console_factory() -> ConsoleFactory:
    def inner(*, force_terminal: bool, file: IO[str] | None = None) -> Console:
        return Console(
            file=file,
            theme=THEME,
            width=160,
            height=30,
            color_system="truecolor",
            force_terminal=force_terminal,
        )

    return inner


@pytest.fixture
def console_output() -> StringIO:
    return StringIO()


@pytest.fixture
def plain_console(console_factory: ConsoleFactory, console_output: StringIO) -> Console:
    return console_factory(force_terminal=False, file=console_output)


@pytest.fixture(autouse=True)
def _utc() -> Iterator[None]:
    with use_tzinfo(timezone.utc):
        yield


def t(value: str) -> float:
    return arrow.get(value).timestamp()


def mk_record(
    backup_type: BackupType,
    backup_set_id: str,
    first_lsn: int,
    last_lsn: int,
    *,
    end: str,
    database: str = "db1",
    **kwargs: Any,  # noqa: ANN401
) -> BackupRecord:
    """Makes a BackupRecord which took a minute, ending at the given time."""
    kwargs.setdefault("full_name", (f"/backups/{database}/{backup_set_id}.bak",))
    return BackupRecord(
        database=database,
        type=backup_type,
        backup_set_id=backup_set_id,
        first_lsn=first_lsn,
        last_lsn=last_lsn,
        start=t(end) - 60,
        end=t(end),
        **kwargs,
    )
