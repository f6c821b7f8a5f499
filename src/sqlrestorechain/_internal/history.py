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

"""Loading backup history written by a collector.

The history is a YAML (or JSON, which is YAML) document holding a sequence of
backup records, or a mapping with the sequence under "records". Each record is
a mapping as accepted by BackupRecord.from_dict().
"""

from __future__ import annotations

from collections.abc import Mapping
from collections.abc import Sequence
from typing import Any
from typing import TYPE_CHECKING

import yaml

from sqlrestorechain._internal.records import BackupRecord

if TYPE_CHECKING:
    from pathlib import Path


class InvalidHistoryError(ValueError):
    pass


def load_from_data(data: Any) -> list[BackupRecord]:  # noqa: ANN401
    if isinstance(data, Mapping) and "records" in data:
        data = data["records"]
    if data is None:
        return []
    if not isinstance(data, Sequence) or isinstance(data, str):
        msg = "backup history must be a sequence of records"
        raise InvalidHistoryError(msg)
    records = []
    for i, item in enumerate(data):
        if not isinstance(item, Mapping):
            msg = f"record {i}: not a mapping"
            raise InvalidHistoryError(msg)
        try:
            records.append(BackupRecord.from_dict(item))
        except ValueError as ex:
            msg = f"record {i}: {ex}"
            raise InvalidHistoryError(msg) from ex
    return records


def load_from_path(path: Path | str) -> list[BackupRecord]:
    """Load backup history from a file.

    Naive times in the file are interpreted in the current context's time
    zone (see use_tzinfo()).

    Raises:
        InvalidHistoryError: If the file isn't valid backup history.
    """
    with open(path) as stream:  # noqa: PTH123
        try:
            data = yaml.safe_load(stream)
        except yaml.YAMLError as ex:
            raise InvalidHistoryError(str(ex)) from ex
    return load_from_data(data)
