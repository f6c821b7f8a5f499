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

"""Deciding which databases are restored fresh and which are resumed.

A restore can be resumed when the target database was left in the RESTORING
state. The caller describes each such database with a ContinuationPoint, and
optionally with the type of the last restore applied to it.

When resuming, the full backup was already restored, so it's skipped. If a
log or a differential was already restored on top of it, differentials are
skipped too.

Continuation points are keyed by the name of the database being restored,
which may differ from the name in the backup history. We can pair up one
renamed database by elimination, but no more than that.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from sqlrestorechain._internal.errors import AmbiguousContinuationError
from sqlrestorechain._internal.records import BackupType

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlrestorechain._internal.records import ContinuationPoint
    from sqlrestorechain._internal.records import LastRestoreType

_LOG = logging.getLogger(__name__)

# A differential can't be restored after either of these
_BLOCKS_DIFFERENTIALS = frozenset((BackupType.Log, BackupType.Differential))


@dataclasses.dataclass(frozen=True)
class DatabaseState:
    """How one database's plan should be built."""

    database: str
    ignore_full: bool = False
    ignore_diffs: bool = False
    continuation_point: ContinuationPoint | None = None
    target_database: str | None = None


def _pair_renamed(
    *,
    databases: Collection[str],
    points: dict[str, ContinuationPoint],
) -> dict[str, ContinuationPoint]:
    sources = sorted(db for db in databases if db.casefold() not in points)
    present = {db.casefold() for db in databases}
    targets = sorted(
        cp.database for key, cp in points.items() if key not in present
    )
    if not sources or not targets:
        for target in targets:
            _LOG.debug("no backup history for continuation point %s", target)
        return {}
    if len(sources) > 1 or len(targets) > 1:
        msg = (
            "cannot continue restores of multiple databases with renames: "
            f"backups of {', '.join(sources)} vs continuation points for "
            f"{', '.join(targets)}"
        )
        raise AmbiguousContinuationError(msg)
    _LOG.info("continuing restore of %s as %s", sources[0], targets[0])
    return {sources[0]: points[targets[0].casefold()]}


def resolve_continuation(
    *,
    databases: Collection[str],
    continuation_points: Collection[ContinuationPoint] = (),
    last_restore_types: Collection[LastRestoreType] = (),
    ignore_diffs: bool = False,
    explicit_databases: bool = False,
) -> dict[str, DatabaseState]:
    """Decide how to plan each database.

    Args:
        databases: The names of the databases in the (filtered) backup
            history.
        continuation_points: Where to resume partially-restored databases.
            If empty, every database is restored from scratch.
        last_restore_types: The last restore applied to each resumed
            database.
        ignore_diffs: The caller's preference to skip differentials.
        explicit_databases: Whether the caller asked for specific databases.
            If so, those without a continuation point are restored from
            scratch, and renames are never inferred. Otherwise only the
            databases with continuation points are planned.

    Returns:
        A DatabaseState for each database to plan, keyed by name.

    Raises:
        AmbiguousContinuationError: If explicit_databases is false and more
            than one database would need to be resumed under a different
            name.
    """
    if not continuation_points:
        return {
            db: DatabaseState(database=db, ignore_diffs=ignore_diffs)
            for db in sorted(databases)
        }

    points = {cp.database.casefold(): cp for cp in continuation_points}
    restore_types = {
        lrt.database.casefold(): lrt.restore_type for lrt in last_restore_types
    }
    if explicit_databases:
        # The caller named the databases, so a database without a
        # continuation point is a fresh restore, never a renamed one
        present = {db.casefold() for db in databases}
        for key, cp in sorted(points.items()):
            if key not in present:
                _LOG.debug(
                    "no backup history for continuation point %s", cp.database
                )
        renamed: dict[str, ContinuationPoint] = {}
    else:
        renamed = _pair_renamed(databases=databases, points=points)

    states: dict[str, DatabaseState] = {}
    for db in sorted(databases):
        point = points.get(db.casefold()) or renamed.get(db)
        if point is None:
            if explicit_databases:
                _LOG.warning(
                    "%s has no continuation point, planning a fresh restore", db
                )
                states[db] = DatabaseState(database=db, ignore_diffs=ignore_diffs)
            else:
                _LOG.debug("%s has no continuation point, skipping", db)
            continue
        last_restore_type = restore_types.get(point.database.casefold())
        states[db] = DatabaseState(
            database=db,
            ignore_full=True,
            ignore_diffs=ignore_diffs or last_restore_type in _BLOCKS_DIFFERENTIALS,
            continuation_point=point,
            target_database=(
                point.database
                if point.database.casefold() != db.casefold()
                else None
            ),
        )
    return states
