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

"""Types relating to backup history.

A backup record describes one physical backup file, as reported by msdb's
backupset and backupmediafamily tables or by reading a backup file header.
One backup operation (a "backup set") may be striped across several files,
in which case there's one record per file and they share a backup set id.

Records are produced by an external collector. The dict layout accepted by
BackupRecord.from_dict() is the one produced by dbatools'
Get-DbaBackupInformation, so its output can be fed to us directly.
"""

from __future__ import annotations

import dataclasses
import enum
import math
from typing import Any
from typing import TYPE_CHECKING

from typing_extensions import Self

from sqlrestorechain._internal.times import parse_time

if TYPE_CHECKING:
    from collections.abc import Iterator
    from collections.abc import Mapping


class BackupType(enum.Enum):
    """The kind of backup."""

    Full = "Full"
    Differential = "Differential"
    Log = "Log"

    @classmethod
    def parse(cls, value: str | BackupType) -> BackupType:
        """Parse a backup type, accepting synonyms.

        msdb and older tools use "Database", "Database Differential" and
        "Transaction Log", and the restorehistory and backupset tables use
        single-letter codes.

        Raises:
            ValueError: If the value isn't a known backup type.
        """
        if isinstance(value, BackupType):
            return value
        try:
            return _TYPE_SYNONYMS[value.strip().lower()]
        except (KeyError, AttributeError):
            msg = f"unknown backup type: {value!r}"
            raise ValueError(msg) from None


_TYPE_SYNONYMS = {
    "full": BackupType.Full,
    "database": BackupType.Full,
    "d": BackupType.Full,
    "differential": BackupType.Differential,
    "database differential": BackupType.Differential,
    "diff": BackupType.Differential,
    "i": BackupType.Differential,
    "log": BackupType.Log,
    "transaction log": BackupType.Log,
    "l": BackupType.Log,
}


class _Fields:
    """Case-insensitive access to a collector's mapping."""

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = {str(k).lower(): v for k, v in data.items()}

    def get(self, *names: str) -> Any:  # noqa: ANN401
        for name in names:
            value = self._data.get(name.lower())
            if value is not None and value != "":
                return value
        return None

    def require(self, *names: str) -> Any:  # noqa: ANN401
        value = self.get(*names)
        if value is None:
            msg = f"missing field {names[0]}"
            raise ValueError(msg)
        return value


def _lsn(value: Any) -> int:  # noqa: ANN401
    # msdb stores LSNs as numeric(25,0), which collectors tend to serialize
    # as strings or floats
    if isinstance(value, bool):
        msg = f"not an LSN: {value!r}"
        raise ValueError(msg)
    if isinstance(value, float):
        if not value.is_integer():
            msg = f"not an LSN: {value!r}"
            raise ValueError(msg)
        return int(value)
    return int(value)


def _optional_lsn(value: Any) -> int | None:  # noqa: ANN401
    return None if value is None else _lsn(value)


def _optional_str(value: Any) -> str | None:  # noqa: ANN401
    return None if value is None else str(value)


def _fork_id(value: str | None) -> str | None:
    # GUIDs are compared case-insensitively
    return value.strip().lower() if value else None


@dataclasses.dataclass(frozen=True)
class BackupRecord:
    """One physical backup file.

    Attributes:
        database: The name of the database that was backed up.
        type: The kind of backup.
        backup_set_id: Identifies the backup operation. All files of one
            backup set have the same type and LSNs.
        first_lsn: The first LSN covered by the backup.
        last_lsn: The LSN following the last one covered by the backup.
        checkpoint_lsn: The checkpoint LSN of the backup. For full backups,
            differentials chain onto this.
        database_backup_lsn: The checkpoint LSN of the full backup which a
            differential or log backup chains to.
        start: When the backup started, as a unix timestamp.
        end: When the backup finished, as a unix timestamp.
        full_name: Paths of the physical file(s).
        instance_name: The instance the backup was taken on.
        availability_group_name: The availability group the database belonged
            to when backed up, if any.
        first_recovery_fork_id: The recovery fork the backup starts in.
        restore_time: The point in time to restore to, if attached to the
            record. Filled in with the global target by the normalizer.
    """

    database: str
    type: BackupType
    backup_set_id: str
    first_lsn: int
    last_lsn: int
    checkpoint_lsn: int | None = None
    database_backup_lsn: int | None = None
    start: float = 0.0
    end: float = 0.0
    full_name: tuple[str, ...] = ()
    instance_name: str | None = None
    availability_group_name: str | None = None
    first_recovery_fork_id: str | None = None
    restore_time: float | None = None

    def __post_init__(self) -> None:
        """Post-initialization fixups."""
        # We need to use object.__setattr__ to fix up attributes of a frozen
        # instance
        object.__setattr__(self, "type", BackupType.parse(self.type))
        if isinstance(self.full_name, str):
            object.__setattr__(self, "full_name", (self.full_name,))
        else:
            object.__setattr__(self, "full_name", tuple(self.full_name))
        object.__setattr__(
            self, "first_recovery_fork_id", _fork_id(self.first_recovery_fork_id)
        )

    @property
    def is_no_op(self) -> bool:
        """Whether this is a log backup that carries no transactions."""
        return self.first_lsn == self.last_lsn

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Creates a BackupRecord from a collector's output.

        Field names follow dbatools' Get-DbaBackupInformation and are matched
        case-insensitively. Times may be ISO 8601 strings, datetimes or unix
        timestamps.

        Args:
            data: A mapping describing one backup file.

        Returns:
            A BackupRecord.

        Raises:
            ValueError: If a required field is missing or malformed.
        """
        fields = _Fields(data)
        full_name = fields.get("FullName", "Path")
        if full_name is None:
            full_name = ()
        elif isinstance(full_name, str):
            full_name = (full_name,)
        else:
            full_name = tuple(str(f) for f in full_name)
        restore_time = fields.get("RestoreTime")
        return cls(
            database=str(fields.require("Database")),
            type=BackupType.parse(fields.require("Type")),
            backup_set_id=str(fields.require("BackupSetID", "BackupSetGUID")),
            first_lsn=_lsn(fields.require("FirstLsn")),
            last_lsn=_lsn(fields.require("LastLsn")),
            checkpoint_lsn=_optional_lsn(fields.get("CheckpointLsn")),
            database_backup_lsn=_optional_lsn(fields.get("DatabaseBackupLsn")),
            start=parse_time(fields.require("Start")),
            end=parse_time(fields.require("End")),
            full_name=full_name,
            instance_name=_optional_str(fields.get("InstanceName", "SqlInstance")),
            availability_group_name=_optional_str(
                fields.get("AvailabilityGroupName")
            ),
            first_recovery_fork_id=_optional_str(
                fields.get("FirstRecoveryForkID", "FirstRecoveryForkGUID")
            ),
            restore_time=None if restore_time is None else parse_time(restore_time),
        )

    def to_dict(self) -> dict[str, Any]:
        """The inverse of from_dict(), for handing a plan to an executor.

        A restore time of "latest" is written as None, since JSON has no
        infinity. from_dict() reads None the same way.
        """
        return {
            "Database": self.database,
            "Type": self.type.value,
            "BackupSetID": self.backup_set_id,
            "FirstLsn": self.first_lsn,
            "LastLsn": self.last_lsn,
            "CheckpointLsn": self.checkpoint_lsn,
            "DatabaseBackupLsn": self.database_backup_lsn,
            "Start": self.start,
            "End": self.end,
            "FullName": list(self.full_name),
            "InstanceName": self.instance_name,
            "AvailabilityGroupName": self.availability_group_name,
            "FirstRecoveryForkID": self.first_recovery_fork_id,
            "RestoreTime": (
                None
                if self.restore_time is None or math.isinf(self.restore_time)
                else self.restore_time
            ),
        }


@dataclasses.dataclass(frozen=True)
class ContinuationPoint:
    """Where a partially-restored database can be resumed from.

    This is what sys.master_files reports for a database left in the
    RESTORING state.

    Attributes:
        database: The name of the database being restored.
        redo_start_lsn: The LSN the next log restore must cover.
        first_recovery_fork_id: The recovery fork of the restored data.
        differential_base_lsn: The checkpoint LSN of the full backup which
            was restored. A differential must chain to this.
    """

    database: str
    redo_start_lsn: int | None = None
    first_recovery_fork_id: str | None = None
    differential_base_lsn: int | None = None

    def __post_init__(self) -> None:
        """Post-initialization fixups."""
        object.__setattr__(
            self, "first_recovery_fork_id", _fork_id(self.first_recovery_fork_id)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        fields = _Fields(data)
        return cls(
            database=str(fields.require("database", "Database")),
            redo_start_lsn=_optional_lsn(fields.get("redo_start_lsn", "RedoStartLsn")),
            first_recovery_fork_id=_optional_str(
                fields.get(
                    "first_recovery_fork_id",
                    "FirstRecoveryForkID",
                    "redo_start_fork_guid",
                )
            ),
            differential_base_lsn=_optional_lsn(
                fields.get("differential_base_lsn", "DifferentialBaseLsn")
            ),
        )


@dataclasses.dataclass(frozen=True)
class LastRestoreType:
    """What the most recent restore of a database applied."""

    database: str
    restore_type: BackupType

    def __post_init__(self) -> None:
        """Post-initialization fixups."""
        object.__setattr__(
            self, "restore_type", BackupType.parse(self.restore_type)
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        fields = _Fields(data)
        return cls(
            database=str(fields.require("database", "Database")),
            restore_type=BackupType.parse(
                fields.require("restore_type", "RestoreType")
            ),
        )


@dataclasses.dataclass(frozen=True)
class SyntheticFull:
    """Stands in for the full backup when continuing a restore.

    When resuming, the full backup has already been restored, so there's
    nothing to restore. This carries just enough of the restored full backup
    to chain differentials and logs onto it. It is never restorable.
    """

    database: str
    checkpoint_lsn: int | None = None
    first_recovery_fork_id: str | None = None


@dataclasses.dataclass(frozen=True)
class Plan:
    """The ordered backups to restore one database.

    Attributes:
        database: The name of the database in the backup history.
        full: The full backup to restore, or a marker when continuing a
            restore whose full backup was already applied.
        differential: The differential backup to restore, if any.
        logs: The log backups to restore, in order.
        target_database: When continuing a restore onto a database with a
            different name, the name of that database.
    """

    database: str
    full: BackupRecord | SyntheticFull
    differential: BackupRecord | None = None
    logs: tuple[BackupRecord, ...] = ()
    target_database: str | None = None

    def iter_records(self) -> Iterator[BackupRecord]:
        """Yields the restorable backups in restore order."""
        if isinstance(self.full, BackupRecord):
            yield self.full
        if self.differential is not None:
            yield self.differential
        yield from self.logs
