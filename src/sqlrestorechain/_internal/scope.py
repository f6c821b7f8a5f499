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

"""Normalizing and narrowing a pool of backup records."""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection
    from collections.abc import Iterable

    from sqlrestorechain._internal.records import BackupRecord

_LOG = logging.getLogger(__name__)


def normalize_restore_time(
    records: Iterable[BackupRecord], restore_time: float = math.inf
) -> list[BackupRecord]:
    """Attach a restore target to every record that doesn't have one."""
    return [
        r
        if r.restore_time is not None
        else dataclasses.replace(r, restore_time=restore_time)
        for r in records
    ]


def _folded(names: Iterable[str]) -> set[str]:
    # SQL Server identifiers are case-insensitive under the default collation
    return {n.casefold() for n in names}


def filter_by_servers(
    records: Collection[BackupRecord], servers: Collection[str]
) -> list[BackupRecord]:
    """Keep only records taken on the given servers.

    If any record belongs to an availability group, the server names are
    taken to be availability group names, since backups of an AG database
    may have been taken on any of its replicas.
    """
    if not servers:
        return list(records)
    wanted = _folded(servers)
    if any(r.availability_group_name for r in records):
        _LOG.debug("filtering by availability group: %s", sorted(wanted))
        return [
            r
            for r in records
            if r.availability_group_name
            and r.availability_group_name.casefold() in wanted
        ]
    _LOG.debug("filtering by instance: %s", sorted(wanted))
    return [
        r
        for r in records
        if r.instance_name and r.instance_name.casefold() in wanted
    ]


def filter_by_databases(
    records: Collection[BackupRecord], databases: Collection[str]
) -> list[BackupRecord]:
    if not databases:
        return list(records)
    wanted = _folded(databases)
    return [r for r in records if r.database.casefold() in wanted]
