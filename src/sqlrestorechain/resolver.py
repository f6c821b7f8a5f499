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

"""Public API for selecting backups to restore."""

from __future__ import annotations

from sqlrestorechain._internal.errors import (
    AmbiguousContinuationError as AmbiguousContinuationError,  # noqa: PLC0414
)
from sqlrestorechain._internal.errors import (
    ContinuationLookupError as ContinuationLookupError,  # noqa: PLC0414
)
from sqlrestorechain._internal.errors import DatabaseError as DatabaseError  # noqa: PLC0414
from sqlrestorechain._internal.errors import Error as Error  # noqa: PLC0414
from sqlrestorechain._internal.errors import (
    NoFullBackupError as NoFullBackupError,  # noqa: PLC0414
)
from sqlrestorechain._internal.errors import (
    UnresolvableFullNameError as UnresolvableFullNameError,  # noqa: PLC0414
)
from sqlrestorechain._internal.history import (
    load_from_path as load_history,  # noqa: F401
)
from sqlrestorechain._internal.records import BackupRecord as BackupRecord  # noqa: PLC0414
from sqlrestorechain._internal.records import BackupType as BackupType  # noqa: PLC0414
from sqlrestorechain._internal.records import (
    ContinuationPoint as ContinuationPoint,  # noqa: PLC0414
)
from sqlrestorechain._internal.records import (
    LastRestoreType as LastRestoreType,  # noqa: PLC0414
)
from sqlrestorechain._internal.records import Plan as Plan  # noqa: PLC0414
from sqlrestorechain._internal.records import SyntheticFull as SyntheticFull  # noqa: PLC0414
from sqlrestorechain._internal.resolver import resolve as resolve  # noqa: PLC0414
from sqlrestorechain._internal.resolver import Result as Result  # noqa: PLC0414
from sqlrestorechain._internal.times import use_tzinfo as use_tzinfo  # noqa: PLC0414
