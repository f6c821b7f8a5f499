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

"""Time zone context and timestamp conversion.

Backup history and restore targets are compared as unix timestamps. Humans
(and msdb) write local times without an offset, so any naive time is
interpreted in the time zone of the current context. We never honor the
system time zone; it defaults to UTC.
"""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from datetime import timezone
import math
from typing import TYPE_CHECKING
from typing import Union

import arrow
from arrow.parser import DateTimeParser
from arrow.parser import ParserError
from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import tzinfo

TZINFO: ContextVar[tzinfo] = ContextVar("tzinfo", default=timezone.utc)

TimeLike: TypeAlias = Union[str, float, int, datetime]
"""Anything parse_time() accepts."""

_LATEST = frozenset(("latest", "inf", "infinity", "+inf"))


@contextmanager
def use_tzinfo(tz: tzinfo) -> Iterator[None]:
    token = TZINFO.set(tz)
    try:
        yield
    finally:
        TZINFO.reset(token)


def parse_time(value: TimeLike) -> float:
    """Convert a time value to a unix timestamp.

    Numbers are taken to already be unix timestamps. Strings are parsed as
    ISO 8601, except for "latest" (and "inf"), which mean the far future.
    Naive datetimes and strings without an offset are interpreted in the
    context's time zone.

    Args:
        value: A unix timestamp, ISO 8601 string or datetime.

    Returns:
        A unix timestamp. May be math.inf.

    Raises:
        ValueError: If the value can't be interpreted as a time.
    """
    if isinstance(value, bool):
        msg = f"not a time: {value!r}"
        raise ValueError(msg)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if value.strip().lower() in _LATEST:
            return math.inf
        try:
            value = DateTimeParser().parse_iso(value.strip())
        except ParserError as ex:
            msg = f"not an ISO 8601 time: {value!r}"
            raise ValueError(msg) from ex
    if not isinstance(value, datetime):
        msg = f"not a time: {value!r}"
        raise ValueError(msg)
    if value.tzinfo is None:
        return arrow.get(value, tzinfo=TZINFO.get()).timestamp()
    return arrow.get(value).timestamp()


def format_time(timestamp: float) -> str:
    if math.isinf(timestamp):
        return "latest"
    return arrow.get(timestamp, tzinfo=TZINFO.get()).format("YYYY-MM-DDTHH:mm:ss")
