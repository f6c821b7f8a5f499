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

import dataclasses

import pytest

from sqlrestorechain._internal.continuation import DatabaseState
from sqlrestorechain._internal.errors import ContinuationLookupError
from sqlrestorechain._internal.errors import UnresolvableFullNameError
from sqlrestorechain._internal.records import BackupRecord
from sqlrestorechain._internal.records import BackupType
from sqlrestorechain._internal.records import ContinuationPoint
from sqlrestorechain._internal.records import SyntheticFull
from sqlrestorechain._internal.resolver import _DatabaseResolver
from tests.conftest import mk_record
from tests.conftest import t

Full = BackupType.Full
Diff = BackupType.Differential
Log = BackupType.Log

FULL = mk_record(
    Full,
    "f1",
    100,
    150,
    end="2024-01-01T00:00",
    checkpoint_lsn=100,
    first_recovery_fork_id="fork-a",
)


def _log(
    backup_set_id: str,
    first_lsn: int,
    last_lsn: int,
    end: str,
    *,
    restore_time: str = "2024-01-01T12:00",
    **kwargs: object,
) -> BackupRecord:
    kwargs.setdefault("database_backup_lsn", 100)
    return mk_record(
        Log,
        backup_set_id,
        first_lsn,
        last_lsn,
        end=end,
        restore_time=t(restore_time),
        **kwargs,
    )


def _resolver(
    *records: BackupRecord, continuation_point: ContinuationPoint | None = None
) -> _DatabaseResolver:
    return _DatabaseResolver(
        state=DatabaseState(
            database="db1",
            ignore_full=continuation_point is not None,
            continuation_point=continuation_point,
        ),
        records=records,
    )


def _ids(records: tuple[BackupRecord, ...]) -> list[str]:
    return [r.backup_set_id for r in records]


def test_baseline_from_full() -> None:
    got = _resolver(FULL).get_log_baseline(FULL, None)

    assert got == (150, "fork-a")


def test_baseline_from_differential() -> None:
    diff = mk_record(
        Diff,
        "d1",
        150,
        180,
        end="2024-01-01T01:00",
        database_backup_lsn=100,
        first_recovery_fork_id="fork-a",
    )

    got = _resolver(FULL, diff).get_log_baseline(FULL, diff)

    assert got == (180, "fork-a")


def test_baseline_from_continuation_point() -> None:
    point = ContinuationPoint(
        database="db1", redo_start_lsn=180, first_recovery_fork_id="fork-b"
    )
    full = SyntheticFull(database="db1")

    got = _resolver(continuation_point=point).get_log_baseline(full, None)

    assert got == (180, "fork-b")


def test_baseline_missing_from_continuation_point() -> None:
    point = ContinuationPoint(database="db1", differential_base_lsn=100)
    full = SyntheticFull(database="db1", checkpoint_lsn=100)

    with pytest.raises(ContinuationLookupError) as excinfo:
        _resolver(continuation_point=point).get_log_baseline(full, None)
    assert excinfo.value.database == "db1"


def test_logs_in_lsn_order() -> None:
    l1 = _log("l1", 150, 200, "2024-01-01T01:00")
    l2 = _log("l2", 200, 260, "2024-01-01T02:00")
    l3 = _log("l3", 260, 300, "2024-01-01T03:00")

    got = _resolver(FULL, l3, l1, l2).select_logs(
        FULL, baseline_lsn=150, fork_id="fork-a"
    )

    assert got == (l1, l2, l3)


def test_logs_before_baseline_excluded() -> None:
    l0 = _log("l0", 120, 140, "2024-01-01T00:30")
    l1 = _log("l1", 140, 200, "2024-01-01T01:00")

    got = _resolver(FULL, l0, l1).select_logs(FULL, baseline_lsn=150, fork_id=None)

    assert _ids(got) == ["l1"]


def test_log_ending_at_baseline_included() -> None:
    l0 = _log("l0", 120, 150, "2024-01-01T00:30")

    got = _resolver(FULL, l0).select_logs(FULL, baseline_lsn=150, fork_id=None)

    assert _ids(got) == ["l0"]


def test_no_op_logs_excluded() -> None:
    l1 = _log("l1", 150, 200, "2024-01-01T01:00")
    noop = _log("noop", 200, 200, "2024-01-01T01:30")
    l2 = _log("l2", 200, 260, "2024-01-01T02:00")

    got = _resolver(FULL, l1, noop, l2).select_logs(
        FULL, baseline_lsn=150, fork_id=None
    )

    assert _ids(got) == ["l1", "l2"]
    assert not any(r.first_lsn == r.last_lsn for r in got)


def test_other_recovery_fork_excluded() -> None:
    l1 = _log("l1", 150, 200, "2024-01-01T01:00", first_recovery_fork_id="fork-a")
    other = _log("x1", 150, 210, "2024-01-01T01:10", first_recovery_fork_id="fork-b")
    unknown = _log("l2", 200, 260, "2024-01-01T02:00")

    got = _resolver(FULL, l1, other, unknown).select_logs(
        FULL, baseline_lsn=150, fork_id="fork-a"
    )

    assert _ids(got) == ["l1", "l2"]


def test_stops_at_covering_log() -> None:
    restore_time = "2024-01-01T01:30"
    l1 = _log("l1", 150, 200, "2024-01-01T01:00", restore_time=restore_time)
    l2 = _log("l2", 200, 260, "2024-01-01T02:00", restore_time=restore_time)
    l3 = _log("l3", 260, 300, "2024-01-01T03:00", restore_time=restore_time)

    got = _resolver(FULL, l1, l2, l3).select_logs(
        FULL, baseline_lsn=150, fork_id=None
    )

    # l2 started after the restore time, but it's the one which covers it
    assert _ids(got) == ["l1", "l2"]


def test_covering_log_already_in_chain() -> None:
    restore_time = "2024-01-01T01:59:30"
    l1 = _log("l1", 150, 200, "2024-01-01T01:00", restore_time=restore_time)
    l2 = _log("l2", 200, 260, "2024-01-01T02:00", restore_time=restore_time)
    l3 = _log("l3", 260, 300, "2024-01-01T03:00", restore_time=restore_time)

    got = _resolver(FULL, l1, l2, l3).select_logs(
        FULL, baseline_lsn=150, fork_id=None
    )

    assert _ids(got) == ["l1", "l2"]


def test_covering_log_of_older_full_excluded() -> None:
    restore_time = "2024-01-01T01:30"
    l1 = _log("l1", 150, 200, "2024-01-01T01:00", restore_time=restore_time)
    stale = _log(
        "l2",
        200,
        260,
        "2024-01-01T02:00",
        restore_time=restore_time,
        database_backup_lsn=50,
    )

    got = _resolver(FULL, l1, stale).select_logs(
        FULL, baseline_lsn=150, fork_id=None
    )

    assert _ids(got) == ["l1"]


def test_striped_log_appears_once_with_all_files() -> None:
    l1a = _log("l1", 150, 200, "2024-01-01T01:00", full_name="/b/l1_a.trn")
    l1b = dataclasses.replace(l1a, full_name=("/b/l1_b.trn",))
    l2 = _log("l2", 200, 260, "2024-01-01T02:00")

    got = _resolver(FULL, l1b, l2, l1a).select_logs(
        FULL, baseline_lsn=150, fork_id=None
    )

    assert _ids(got) == ["l1", "l2"]
    assert got[0].full_name == ("/b/l1_a.trn", "/b/l1_b.trn")


def test_log_without_files() -> None:
    l1 = _log("l1", 150, 200, "2024-01-01T01:00", full_name=())

    with pytest.raises(UnresolvableFullNameError):
        _resolver(FULL, l1).select_logs(FULL, baseline_lsn=150, fork_id=None)
