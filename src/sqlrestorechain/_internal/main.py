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

"""Main code for the sqlrestorechain cli."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from rich.logging import RichHandler

from sqlrestorechain._internal.commands import plan
from sqlrestorechain._internal.console import CONSOLE

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Callable

    from rich.console import Console

    _Command = Callable[..., int]


_DESCRIPTION = """
sqlrestorechain selects the SQL Server backups needed to restore databases to
a point in time. It reads backup history and writes a plan; it never connects
to SQL Server.
"""

_EPILOG = """
Exit status is 0 when every database was planned, 1 when any database
couldn't be planned or the input was invalid, and 2 for usage errors.
"""

_COMMANDS: dict[str, _Command] = {plan.NAME: plan.command}


def _get_log_level(args: argparse.Namespace) -> int | str:
    if args.verbose:
        return "NOTSET"
    if args.quiet:
        return logging.ERROR
    return logging.INFO


def main(*, console: Console | None = None, argv: Sequence[str] | None = None) -> int:
    """Main function for sqlrestorechain."""
    console = console if console else CONSOLE
    argv = argv if argv is not None else sys.argv[1:]
    parser = argparse.ArgumentParser(description=_DESCRIPTION, epilog=_EPILOG)

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logs"
    )
    verbosity.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="only log errors, not skipped databases or broken chains",
    )

    subparsers = parser.add_subparsers(
        dest="command", required=True, help="subcommand (required)"
    )

    plan.add_args(subparsers.add_parser(plan.NAME, **plan.ARGS))

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=_get_log_level(args),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console)],
    )
    # Broken backup chains are reported with warnings.warn(); show them
    # alongside the other logs rather than on bare stderr
    logging.captureWarnings(True)

    return _COMMANDS[args.command](console=console, args=args)


if __name__ == "__main__":
    raise SystemExit(main())
