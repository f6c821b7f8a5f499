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

"""Configuration for planning restores.

The config file is YAML. All keys are optional:

    timezone: America/New_York   # for naive times; defaults to UTC
    restore_time: 2024-06-01T12:00:00
    ignore_logs: false
    ignore_diffs: false
    databases: [sales, hr]
    servers: [sql01]
    max_workers: 4
    continuation_points:
    - database: sales
      redo_start_lsn: 34000000012300001
      first_recovery_fork_id: 9c3c1b0e-5e0a-4a4c-8f7e-2a3b4c5d6e7f
      differential_base_lsn: 34000000010000037
    last_restore_types:
    - database: sales
      restore_type: Log
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from typing import cast
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo
from zoneinfo import ZoneInfoNotFoundError

from typing_extensions import NotRequired
from typing_extensions import TypedDict
import yaml

from sqlrestorechain._internal.records import ContinuationPoint
from sqlrestorechain._internal.records import LastRestoreType
from sqlrestorechain._internal.times import parse_time
from sqlrestorechain._internal.times import use_tzinfo

if TYPE_CHECKING:
    from pathlib import Path


class InvalidConfigError(ValueError):
    pass


class ContinuationPointConfig(TypedDict):
    database: str
    redo_start_lsn: NotRequired[int]
    first_recovery_fork_id: NotRequired[str]
    differential_base_lsn: NotRequired[int]


class LastRestoreTypeConfig(TypedDict):
    database: str
    restore_type: str


class Config(TypedDict):
    timezone: NotRequired[str]
    restore_time: NotRequired[str]
    ignore_logs: NotRequired[bool]
    ignore_diffs: NotRequired[bool]
    databases: NotRequired[list[str]]
    servers: NotRequired[list[str]]
    max_workers: NotRequired[int]
    continuation_points: NotRequired[list[ContinuationPointConfig]]
    last_restore_types: NotRequired[list[LastRestoreTypeConfig]]


class ResolveArgs(TypedDict, total=False):
    """Keyword arguments for resolve(), as derived from a Config."""

    restore_time: float
    ignore_logs: bool
    ignore_diffs: bool
    databases: list[str]
    servers: list[str]
    max_workers: int
    continuation_points: list[ContinuationPoint]
    last_restore_types: list[LastRestoreType]


_BOOL_KEYS = ("ignore_logs", "ignore_diffs")
_STR_LIST_KEYS = ("databases", "servers")
_LSN_KEYS = ("redo_start_lsn", "differential_base_lsn")


def _check_str_list(value: object, where: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"{where}: expected a list of strings"
        raise InvalidConfigError(msg)
    return value


def _check_mapping_list(value: object, where: str) -> list[Mapping[str, Any]]:
    if not isinstance(value, list) or not all(isinstance(v, Mapping) for v in value):
        msg = f"{where}: expected a list of mappings"
        raise InvalidConfigError(msg)
    return value


def _check_continuation_point(
    item: Mapping[str, Any], where: str
) -> ContinuationPointConfig:
    unknown = set(item) - set(ContinuationPointConfig.__annotations__)
    if unknown:
        msg = f"{where}: unknown keys {sorted(unknown)}"
        raise InvalidConfigError(msg)
    if not isinstance(item.get("database"), str):
        msg = f"{where}: database is required"
        raise InvalidConfigError(msg)
    for key in _LSN_KEYS:
        if key in item and (
            isinstance(item[key], bool)
            or not isinstance(item[key], int)
            or item[key] < 0
        ):
            msg = f"{where}: {key} must be a non-negative integer"
            raise InvalidConfigError(msg)
    fork_id = item.get("first_recovery_fork_id")
    if fork_id is not None and not isinstance(fork_id, str):
        msg = f"{where}: first_recovery_fork_id must be a string"
        raise InvalidConfigError(msg)
    return cast("ContinuationPointConfig", dict(item))


def _check_last_restore_type(
    item: Mapping[str, Any], where: str
) -> LastRestoreTypeConfig:
    if set(item) != {"database", "restore_type"}:
        msg = f"{where}: expected exactly database and restore_type"
        raise InvalidConfigError(msg)
    try:
        LastRestoreType.from_dict(item)
    except ValueError as ex:
        msg = f"{where}: {ex}"
        raise InvalidConfigError(msg) from ex
    return cast("LastRestoreTypeConfig", dict(item))


def _check_config(data: object) -> Config:  # noqa: C901
    if data is None:
        return Config()
    if not isinstance(data, Mapping):
        msg = "config must be a mapping"
        raise InvalidConfigError(msg)
    unknown = set(data) - set(Config.__annotations__)
    if unknown:
        msg = f"unknown keys {sorted(unknown)}"
        raise InvalidConfigError(msg)
    config = cast("Config", dict(data))

    if "timezone" in config:
        try:
            ZoneInfo(config["timezone"])
        except (ZoneInfoNotFoundError, ValueError, TypeError) as ex:
            msg = f"invalid timezone: {config['timezone']!r}"
            raise InvalidConfigError(msg) from ex
    if "restore_time" in config:
        # yaml parses unquoted times itself
        config["restore_time"] = str(config["restore_time"])
        with use_tzinfo(ZoneInfo(config.get("timezone", "UTC"))):
            try:
                parse_time(config["restore_time"])
            except ValueError as ex:
                raise InvalidConfigError(str(ex)) from ex
    for key in _BOOL_KEYS:
        if key in config and not isinstance(config[key], bool):  # type: ignore[literal-required]
            msg = f"{key} must be true or false"
            raise InvalidConfigError(msg)
    for key in _STR_LIST_KEYS:
        if key in config:
            _check_str_list(config[key], key)  # type: ignore[literal-required]
    if "max_workers" in config and (
        isinstance(config["max_workers"], bool)
        or not isinstance(config["max_workers"], int)
        or config["max_workers"] < 1
    ):
        msg = "max_workers must be a positive integer"
        raise InvalidConfigError(msg)
    if "continuation_points" in config:
        items = _check_mapping_list(
            config["continuation_points"], "continuation_points"
        )
        config["continuation_points"] = [
            _check_continuation_point(item, f"continuation_points[{i}]")
            for i, item in enumerate(items)
        ]
    if "last_restore_types" in config:
        items = _check_mapping_list(config["last_restore_types"], "last_restore_types")
        config["last_restore_types"] = [
            _check_last_restore_type(item, f"last_restore_types[{i}]")
            for i, item in enumerate(items)
        ]
    return config


def load_from_path(path: Path | str) -> Config:
    """Load and validate a config file.

    Raises:
        InvalidConfigError: If the file isn't valid YAML or isn't a valid
            config.
    """
    try:
        with open(path) as stream:  # noqa: PTH123
            data = yaml.safe_load(stream)
    except (OSError, yaml.YAMLError) as ex:
        raise InvalidConfigError(str(ex)) from ex
    return _check_config(data)


def get_tzinfo(config: Config) -> ZoneInfo:
    return ZoneInfo(config.get("timezone", "UTC"))


def to_resolve_args(config: Config) -> ResolveArgs:
    """Convert a Config to keyword arguments for resolve().

    Times are interpreted in the config's time zone.
    """
    args = ResolveArgs()
    if "restore_time" in config:
        with use_tzinfo(get_tzinfo(config)):
            args["restore_time"] = parse_time(config["restore_time"])
    for key in (*_BOOL_KEYS, *_STR_LIST_KEYS, "max_workers"):
        if key in config:
            args[key] = config[key]  # type: ignore[literal-required]
    if "continuation_points" in config:
        args["continuation_points"] = [
            ContinuationPoint.from_dict(item) for item in config["continuation_points"]
        ]
    if "last_restore_types" in config:
        args["last_restore_types"] = [
            LastRestoreType.from_dict(item) for item in config["last_restore_types"]
        ]
    return args
