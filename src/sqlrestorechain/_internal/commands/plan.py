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

"""Code for "sqlrestorechain plan"."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlrestorechain._internal.commands.printing import print_json
from sqlrestorechain._internal.commands.printing import print_result
from sqlrestorechain._internal.config import Config
from sqlrestorechain._internal.config import get_tzinfo
from sqlrestorechain._internal.config import InvalidConfigError
from sqlrestorechain._internal.config import load_from_path as load_config
from sqlrestorechain._internal.config import to_resolve_args
from sqlrestorechain._internal.errors import AmbiguousContinuationError
from sqlrestorechain._internal.history import InvalidHistoryError
from sqlrestorechain._internal.history import load_from_path as load_history
from sqlrestorechain._internal.resolver import resolve
from sqlrestorechain._internal.times import parse_time
from sqlrestorechain._internal.times import use_tzinfo

if TYPE_CHECKING:
    import argparse
    from typing import TypedDict

    from rich.console import Console

    from sqlrestorechain._internal.config import ResolveArgs

_LOG = logging.getLogger(__name__)

NAME = "plan"


if TYPE_CHECKING:

    class _Args(TypedDict, total=False):
        help: str
        description: str
        epilog: str


ARGS: _Args = {
    # shown in top-level help
    "help": "select the backups to restore databases to a point in time",
    # shown in subcommand help
    "description": (
        "Select the full, differential and log backups needed to restore "
        "each database in a backup history to a point in time."
    ),
    "epilog": (
        "Options given on the command line override those in the config file."
    ),
}


def add_args(parser: argparse.ArgumentParser) -> None:
    """Add args for "sqlrestorechain plan" to an ArgumentParser."""
    parser.add_argument(
        "history", help="backup history, as YAML or JSON written by a collector"
    )
    parser.add_argument("--config", help="config file (YAML)")
    parser.add_argument(
        "--restore-time",
        help="point in time to restore to (ISO 8601, or 'latest')",
    )
    parser.add_argument(
        "--ignore-logs",
        action="store_true",
        default=None,
        help="don't restore log backups",
    )
    parser.add_argument(
        "--ignore-diffs",
        action="store_true",
        default=None,
        help="don't restore differential backups",
    )
    parser.add_argument(
        "--database",
        action="append",
        dest="databases",
        metavar="NAME",
        help="only plan this database (may be repeated)",
    )
    parser.add_argument(
        "--server",
        action="append",
        dest="servers",
        metavar="NAME",
        help="only use backups taken on this instance or availability group "
        "(may be repeated)",
    )
    parser.add_argument(
        "--max-workers", type=int, help="how many databases to plan concurrently"
    )
    parser.add_argument(
        "--json", action="store_true", help="print the plan as JSON for an executor"
    )


def _get_resolve_args(config: Config, args: argparse.Namespace) -> ResolveArgs:
    resolve_args = to_resolve_args(config)
    if args.restore_time is not None:
        resolve_args["restore_time"] = parse_time(args.restore_time)
    if args.ignore_logs is not None:
        resolve_args["ignore_logs"] = args.ignore_logs
    if args.ignore_diffs is not None:
        resolve_args["ignore_diffs"] = args.ignore_diffs
    if args.databases:
        resolve_args["databases"] = args.databases
    if args.servers:
        resolve_args["servers"] = args.servers
    if args.max_workers is not None:
        resolve_args["max_workers"] = args.max_workers
    return resolve_args


def command(*, console: Console, args: argparse.Namespace) -> int:
    """Implements "sqlrestorechain plan"."""
    try:
        config = load_config(args.config) if args.config else Config()
    except InvalidConfigError as ex:
        _LOG.error("invalid config: %s", ex)  # noqa: TRY400
        return 1

    with use_tzinfo(get_tzinfo(config)):
        try:
            records = load_history(args.history)
            resolve_args = _get_resolve_args(config, args)
        except (OSError, InvalidHistoryError) as ex:
            _LOG.error("invalid backup history: %s", ex)  # noqa: TRY400
            return 1
        except ValueError as ex:
            _LOG.error("invalid restore time: %s", ex)  # noqa: TRY400
            return 1

        try:
            result = resolve(records=records, **resolve_args)
        except (AmbiguousContinuationError, ValueError) as ex:
            _LOG.error("%s", ex)  # noqa: TRY400
            return 1

        if args.json:
            print_json(console=console, result=result)
        else:
            print_result(console=console, result=result)

    return 1 if result.failures else 0
