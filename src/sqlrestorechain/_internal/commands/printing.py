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

"""Code for printing to console."""

from __future__ import annotations

from typing import Any
from typing import TYPE_CHECKING

from rich.box import HORIZONTALS
from rich.highlighter import ISO8601Highlighter
from rich.markup import escape
from rich.table import Column
from rich.table import Table
from rich.text import Text

from sqlrestorechain._internal.records import BackupRecord
from sqlrestorechain._internal.records import BackupType
from sqlrestorechain._internal.times import format_time

if TYPE_CHECKING:
    from rich.console import Console

    from sqlrestorechain._internal.records import Plan
    from sqlrestorechain._internal.records import SyntheticFull
    from sqlrestorechain._internal.resolver import Result


_iso8601_highlight = ISO8601Highlighter()

_TYPE_STYLES = {
    BackupType.Full: "full",
    BackupType.Differential: "differential",
    BackupType.Log: "log",
}


def _describe_time(time: float) -> Text:
    return _iso8601_highlight(format_time(time))


def _describe_title(plan: Plan) -> Text:
    title = Text(plan.database, style="target")
    if plan.target_database:
        title.append(" as ").append(plan.target_database, style="target")
    return title


def _add_synthetic_row(table: Table, full: SyntheticFull) -> None:
    checkpoint = "" if full.checkpoint_lsn is None else str(full.checkpoint_lsn)
    table.add_row(
        Text("Full", style="synthetic"),
        Text("<already restored>", style="synthetic"),
        "",
        Text(checkpoint, style="lsn"),
        "",
        "",
    )


def _add_record_row(table: Table, record: BackupRecord) -> None:
    table.add_row(
        Text(record.type.value, style=_TYPE_STYLES[record.type]),
        escape(record.backup_set_id),
        Text(str(record.first_lsn), style="lsn"),
        Text(str(record.last_lsn), style="lsn"),
        _describe_time(record.end),
        escape("\n".join(record.full_name)),
    )


def _make_plan_table(plan: Plan) -> Table:
    table = Table(
        Column("type"),
        Column("backup set"),
        Column("first lsn", justify="right"),
        Column("last lsn", justify="right"),
        Column("finished"),
        Column("files"),
        title=_describe_title(plan),
        title_justify="left",
        row_styles=["none", "dim"],
        box=HORIZONTALS,
    )
    if isinstance(plan.full, BackupRecord):
        _add_record_row(table, plan.full)
    else:
        _add_synthetic_row(table, plan.full)
    if plan.differential is not None:
        _add_record_row(table, plan.differential)
    for log in plan.logs:
        _add_record_row(table, log)
    return table


def _make_failures_table(result: Result) -> Table | None:
    if not result.failures:
        return None
    table = Table(
        Column("database"),
        Column("error", style="failure"),
        title="failed",
        title_justify="left",
        box=HORIZONTALS,
    )
    for database, error in result.failures.items():
        table.add_row(escape(database), escape(str(error)))
    return table


def print_result(*, console: Console, result: Result) -> None:
    if not result.plans and not result.failures:
        console.print("no backups matched")
        return
    for plan in result.plans.values():
        console.print(_make_plan_table(plan))
        console.print()
    failures = _make_failures_table(result)
    if failures is not None:
        console.print(failures)


def result_to_data(result: Result) -> dict[str, Any]:
    """A JSON-friendly form of a Result, for restore executors."""
    return {
        "plans": [
            {
                "database": plan.database,
                "target_database": plan.target_database,
                "records": [r.to_dict() for r in plan.iter_records()],
            }
            for plan in result.plans.values()
        ],
        "failures": [
            {"database": database, "error": str(error)}
            for database, error in result.failures.items()
        ],
    }


def print_json(*, console: Console, result: Result) -> None:
    console.print_json(data=result_to_data(result), highlight=False)
