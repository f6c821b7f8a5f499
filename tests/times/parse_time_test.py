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

from datetime import datetime
from datetime import timezone
import math
from zoneinfo import ZoneInfo

import pytest

from sqlrestorechain._internal.times import format_time
from sqlrestorechain._internal.times import parse_time
from sqlrestorechain._internal.times import use_tzinfo

# 2024-06-01T12:00:00Z
NOON = 1717243200.0


@pytest.mark.parametrize(
    "value",
    [
        "2024-06-01T12:00:00",
        "2024-06-01 12:00:00",
        "2024-06-01T12:00:00Z",
        "2024-06-01T14:00:00+02:00",
        datetime(2024, 6, 1, 12),  # noqa: DTZ001
        datetime(2024, 6, 1, 12, tzinfo=timezone.utc),
        NOON,
        int(NOON),
    ],
)
def test_parse(value: str | datetime | float) -> None:
    assert parse_time(value) == NOON


@pytest.mark.parametrize("value", ["latest", "LATEST", " inf ", math.inf])
def test_latest(value: str | float) -> None:
    assert parse_time(value) == math.inf


def test_naive_times_use_context_tzinfo() -> None:
    with use_tzinfo(ZoneInfo("America/New_York")):
        assert parse_time("2024-06-01T08:00:00") == NOON
        assert parse_time(datetime(2024, 6, 1, 8)) == NOON  # noqa: DTZ001
        # explicit offsets win
        assert parse_time("2024-06-01T12:00:00+00:00") == NOON


@pytest.mark.parametrize("value", ["", "yesterday", "2024-13-01", True])
def test_invalid(value: str | bool) -> None:  # noqa: FBT001
    with pytest.raises(ValueError):  # noqa: PT011
        parse_time(value)


def test_format() -> None:
    assert format_time(NOON) == "2024-06-01T12:00:00"
    assert format_time(math.inf) == "latest"
    with use_tzinfo(ZoneInfo("America/New_York")):
        assert format_time(NOON) == "2024-06-01T08:00:00"
