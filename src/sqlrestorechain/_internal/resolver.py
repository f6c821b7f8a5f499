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

"""Selecting the backups needed to restore databases to a point in time.

A restore plan for one database is a full backup, optionally the newest
differential backup taken on top of it, then an unbroken chain of log
backups reaching the target time.

Everything here is pure: we read backup records, and produce new records
(with all files of their backup set attached) in plans. Each database is
planned independently, so one database's missing full backup doesn't stop
the others from being planned.
"""

from __future__ import annotations

import collections
from concurrent.futures import ThreadPoolExecutor
import dataclasses
from dataclasses import field
import logging
import math
from typing import TYPE_CHECKING
import warnings

from sqlrestorechain._internal.continuation import resolve_continuation
from sqlrestorechain._internal.errors import ContinuationLookupError
from sqlrestorechain._internal.errors import DatabaseError
from sqlrestorechain._internal.errors import NoFullBackupError
from sqlrestorechain._internal.errors import UnresolvableFullNameError
from sqlrestorechain._internal.records import BackupRecord
from sqlrestorechain._internal.records import BackupType
from sqlrestorechain._internal.records import Plan
from sqlrestorechain._internal.records import SyntheticFull
from sqlrestorechain._internal.scope import filter_by_databases
from sqlrestorechain._internal.scope import filter_by_servers
from sqlrestorechain._internal.scope import normalize_restore_time
from sqlrestorechain._internal.times import format_time

if TYPE_CHECKING:
    from collections.abc import Collection
    from collections.abc import Iterator
    from collections.abc import Sequence

    from sqlrestorechain._internal.continuation import DatabaseState
    from sqlrestorechain._internal.records import ContinuationPoint
    from sqlrestorechain._internal.records import LastRestoreType

_LOG = logging.getLogger(__name__)


def _restore_time(record: BackupRecord) -> float:
    return math.inf if record.restore_time is None else record.restore_time


def _newest_first(record: BackupRecord) -> tuple[int, str, tuple[str, ...]]:
    return (-record.last_lsn, record.backup_set_id, record.full_name)


def _log_order(record: BackupRecord) -> tuple[int, int, str, tuple[str, ...]]:
    return (record.last_lsn, record.first_lsn, record.backup_set_id, record.full_name)


class _Index:
    def __init__(self, *, records: Collection[BackupRecord]) -> None:
        self._records_by_type: dict[BackupType, list[BackupRecord]] = (
            collections.defaultdict(list)
        )
        self._files_by_backup_set: dict[str, set[str]] = collections.defaultdict(set)

        for record in records:
            self._records_by_type[record.type].append(record)
            self._files_by_backup_set[record.backup_set_id].update(record.full_name)

    def get_by_type(self, backup_type: BackupType) -> Sequence[BackupRecord]:
        return self._records_by_type.get(backup_type, ())

    def get_files(self, backup_set_id: str) -> tuple[str, ...]:
        return tuple(sorted(self._files_by_backup_set.get(backup_set_id, ())))


def _same_fork(fork_id: str | None, record: BackupRecord) -> bool:
    if fork_id is None or record.first_recovery_fork_id is None:
        return True
    return fork_id == record.first_recovery_fork_id


class _DatabaseResolver:
    def __init__(
        self,
        *,
        state: DatabaseState,
        records: Collection[BackupRecord],
        ignore_logs: bool = False,
    ) -> None:
        self._state = state
        self._index = _Index(records=records)
        self._ignore_logs = ignore_logs

    @property
    def database(self) -> str:
        return self._state.database

    def _with_files(self, record: BackupRecord) -> BackupRecord:
        files = self._index.get_files(record.backup_set_id)
        if not files:
            msg = (
                f"no files found for {record.type.value.lower()} backup set "
                f"{record.backup_set_id}"
            )
            raise UnresolvableFullNameError(self.database, msg)
        return dataclasses.replace(record, full_name=files)

    def select_full(self) -> BackupRecord | SyntheticFull:
        if self._state.ignore_full:
            point = self._state.continuation_point
            _LOG.debug("%s: continuing, so not restoring a full backup", self.database)
            return SyntheticFull(
                database=self.database,
                checkpoint_lsn=None if point is None else point.differential_base_lsn,
                first_recovery_fork_id=(
                    None if point is None else point.first_recovery_fork_id
                ),
            )
        candidates = [
            r
            for r in self._index.get_by_type(BackupType.Full)
            if r.end <= _restore_time(r)
        ]
        if not candidates:
            msg = "no full backup found before the restore time"
            raise NoFullBackupError(self.database, msg)
        full = min(candidates, key=_newest_first)
        _LOG.debug(
            "%s: selected full backup %s (LSN %d, finished %s)",
            self.database,
            full.backup_set_id,
            full.last_lsn,
            format_time(full.end),
        )
        return self._with_files(full)

    def select_differential(
        self, full: BackupRecord | SyntheticFull
    ) -> BackupRecord | None:
        if self._state.ignore_diffs:
            return None
        if full.checkpoint_lsn is None:
            _LOG.debug(
                "%s: no checkpoint LSN to chain a differential to", self.database
            )
            return None
        candidates = [
            r
            for r in self._index.get_by_type(BackupType.Differential)
            if r.database_backup_lsn == full.checkpoint_lsn
            and r.end <= _restore_time(r)
        ]
        if not candidates:
            return None
        differential = min(candidates, key=_newest_first)
        _LOG.debug(
            "%s: selected differential backup %s (LSN %d, finished %s)",
            self.database,
            differential.backup_set_id,
            differential.last_lsn,
            format_time(differential.end),
        )
        return self._with_files(differential)

    def get_log_baseline(
        self, full: BackupRecord | SyntheticFull, differential: BackupRecord | None
    ) -> tuple[int, str | None]:
        """The LSN and recovery fork the log chain must continue from."""
        if differential is not None:
            return differential.last_lsn, differential.first_recovery_fork_id
        if isinstance(full, BackupRecord):
            return full.last_lsn, full.first_recovery_fork_id
        point = self._state.continuation_point
        if point is None or point.redo_start_lsn is None:
            msg = "no redo start LSN to continue the log chain from"
            raise ContinuationLookupError(self.database, msg)
        return point.redo_start_lsn, point.first_recovery_fork_id

    def select_logs(
        self,
        full: BackupRecord | SyntheticFull,
        *,
        baseline_lsn: int,
        fork_id: str | None,
    ) -> tuple[BackupRecord, ...]:
        candidates = [
            r
            for r in self._index.get_by_type(BackupType.Log)
            # A log that carries no transactions doesn't need restoring, and
            # doesn't break the chain either
            if not r.is_no_op
            and r.last_lsn >= baseline_lsn
            and _same_fork(fork_id, r)
        ]

        selected: dict[str, BackupRecord] = {}
        for record in sorted(candidates, key=_log_order):
            if record.start < _restore_time(record):
                selected.setdefault(record.backup_set_id, record)

        # The log which spans the restore time
        checkpoint_lsn = full.checkpoint_lsn
        tail_candidates = [
            r
            for r in candidates
            if r.end >= _restore_time(r)
            and (
                checkpoint_lsn is None
                or r.database_backup_lsn is None
                or r.database_backup_lsn >= checkpoint_lsn
            )
        ]
        if tail_candidates:
            tail = min(tail_candidates, key=_log_order)
            _LOG.debug(
                "%s: log backup %s covers the restore time",
                self.database,
                tail.backup_set_id,
            )
            selected.setdefault(tail.backup_set_id, tail)

        return tuple(
            self._with_files(r) for r in sorted(selected.values(), key=_log_order)
        )

    def _check_chain(self, logs: Sequence[BackupRecord], baseline_lsn: int) -> None:
        last_lsn = baseline_lsn
        for log in logs:
            if log.first_lsn > last_lsn:
                warnings.warn(
                    f"Backup chain of {self.database} is broken: log backup "
                    f"{log.backup_set_id} starts at LSN {log.first_lsn}, but "
                    f"the previous backup ends at LSN {last_lsn}",
                    stacklevel=1,
                )
            last_lsn = max(last_lsn, log.last_lsn)

    def get_plan(self) -> Plan:
        full = self.select_full()
        differential = self.select_differential(full)
        logs: tuple[BackupRecord, ...] = ()
        if not self._ignore_logs:
            baseline_lsn, fork_id = self.get_log_baseline(full, differential)
            logs = self.select_logs(full, baseline_lsn=baseline_lsn, fork_id=fork_id)
            self._check_chain(logs, baseline_lsn)
        return Plan(
            database=self.database,
            full=full,
            differential=differential,
            logs=logs,
            target_database=self._state.target_database,
        )


def _try_get_plan(resolver: _DatabaseResolver) -> Plan | DatabaseError:
    try:
        return resolver.get_plan()
    except DatabaseError as ex:
        _LOG.error("can't plan a restore of %s: %s", resolver.database, ex)  # noqa: TRY400
        return ex


@dataclasses.dataclass(frozen=True)
class Result:
    """The outcome of resolve().

    Attributes:
        plans: The restore plan of each database that could be planned.
        failures: Why each other database couldn't be planned.
    """

    plans: dict[str, Plan] = field(default_factory=dict)
    failures: dict[str, DatabaseError] = field(default_factory=dict)

    def iter_records(self) -> Iterator[BackupRecord]:
        """Yields every backup to restore, database by database."""
        for plan in self.plans.values():
            yield from plan.iter_records()


def resolve(
    *,
    records: Collection[BackupRecord],
    restore_time: float = math.inf,
    ignore_logs: bool = False,
    ignore_diffs: bool = False,
    databases: Collection[str] = (),
    servers: Collection[str] = (),
    continuation_points: Collection[ContinuationPoint] = (),
    last_restore_types: Collection[LastRestoreType] = (),
    max_workers: int = 1,
) -> Result:
    """Select the backups to restore each database to a point in time.

    Args:
        records: The backup history. May cover several databases and
            instances, and be in any order.
        restore_time: The point in time to restore to, for records which
            don't carry their own restore time. Defaults to the latest
            possible.
        ignore_logs: Don't restore log backups.
        ignore_diffs: Don't restore differential backups.
        databases: Only plan these databases.
        servers: Only consider backups taken on these instances (or
            availability groups).
        continuation_points: Resume these partially-restored databases
            rather than restoring them from scratch.
        last_restore_types: The last restore applied to each resumed
            database.
        max_workers: How many databases to plan concurrently.

    Returns:
        A Result with a plan or failure for each database.

    Raises:
        AmbiguousContinuationError: If the continuation points can't be
            matched to the databases in the history. No database is planned.
        ValueError: If max_workers is less than 1.
    """
    if max_workers < 1:
        msg = "max_workers must be at least 1"
        raise ValueError(msg)

    pool = normalize_restore_time(records, restore_time)
    pool = filter_by_servers(pool, servers)
    pool = filter_by_databases(pool, databases)

    records_by_database: dict[str, list[BackupRecord]] = collections.defaultdict(
        list
    )
    for record in pool:
        records_by_database[record.database].append(record)

    states = resolve_continuation(
        databases=records_by_database.keys(),
        continuation_points=continuation_points,
        last_restore_types=last_restore_types,
        ignore_diffs=ignore_diffs,
        explicit_databases=bool(databases),
    )
    resolvers = [
        _DatabaseResolver(
            state=state, records=records_by_database[db], ignore_logs=ignore_logs
        )
        for db, state in states.items()
    ]

    if max_workers > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            outcomes = list(executor.map(_try_get_plan, resolvers))
    else:
        outcomes = [_try_get_plan(resolver) for resolver in resolvers]

    plans: dict[str, Plan] = {}
    failures: dict[str, DatabaseError] = {}
    for resolver, outcome in zip(resolvers, outcomes):
        if isinstance(outcome, DatabaseError):
            failures[resolver.database] = outcome
        else:
            plans[resolver.database] = outcome
    return Result(plans=plans, failures=failures)
