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

"""Errors raised while resolving restore plans."""

from __future__ import annotations


class Error(Exception):
    pass


class AmbiguousContinuationError(Error):
    """Continuation points can't be unambiguously matched to databases.

    This happens when more than one database would need to be continued
    under a different name. It aborts the whole call.
    """


class DatabaseError(Error):
    """A failure which only affects the plan of one database."""

    def __init__(self, database: str, msg: str) -> None:
        super().__init__(f"{database}: {msg}")
        self.database = database


class NoFullBackupError(DatabaseError):
    pass


class UnresolvableFullNameError(DatabaseError):
    pass


class ContinuationLookupError(DatabaseError):
    pass
