"""
Conversion of column values between their Python form and the form stored in
Postgres, keyed by the column's semantic type.

| Type         | Persisted as                  | Hydrated as         |
|--------------|-------------------------------|---------------------|
| boolean      | 1 / 0                         | bool                |
| date         | "YYYY-MM-DD"                  | datetime.date       |
| time         | "HH:MM:SS"                    | datetime.time       |
| datetime     | "YYYY-MM-DD HH:MM:SS"         | datetime.datetime   |
| json         | JSON text                     | decoded structure   |
| simple-array | comma-joined strings          | list of strings     |

Any other type passes through unchanged. `None` is never converted.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from typing import Any, Callable, Dict

from pgdriver.domain.models import ColumnMetadata, ColumnType
from pgdriver.errors import MarshallingError

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _coerce_datetime(value: Any) -> datetime | date | time:
    if isinstance(value, (datetime, date, time)):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return time.fromisoformat(value)
    raise TypeError(f"expected a date, time, datetime or ISO-8601 string, got {type(value).__name__}")


def _persist_date(value: Any) -> str:
    coerced = _coerce_datetime(value)
    if isinstance(coerced, time):
        raise TypeError("a time value has no date part")
    return coerced.strftime(DATE_FORMAT)


def _persist_time(value: Any) -> str:
    coerced = _coerce_datetime(value)
    if isinstance(coerced, date) and not isinstance(coerced, datetime):
        raise TypeError("a date value has no time part")
    return coerced.strftime(TIME_FORMAT)


def _persist_datetime(value: Any) -> str:
    coerced = _coerce_datetime(value)
    if isinstance(coerced, time):
        raise TypeError("a time value has no date part")
    if not isinstance(coerced, datetime):
        coerced = datetime.combine(coerced, time())
    return coerced.strftime(DATETIME_FORMAT)


def _persist_simple_array(value: Any) -> str:
    return ",".join(str(item) for item in value)


_PERSISTERS: Dict[str, Callable[[Any], Any]] = {
    ColumnType.BOOLEAN.value: lambda value: 1 if value is True else 0,
    ColumnType.DATE.value: _persist_date,
    ColumnType.TIME.value: _persist_time,
    ColumnType.DATETIME.value: _persist_datetime,
    ColumnType.JSON.value: json.dumps,
    ColumnType.SIMPLE_ARRAY.value: _persist_simple_array,
}


def _hydrate_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return datetime.strptime(value, DATE_FORMAT).date()


def _hydrate_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, datetime):
        return value.time()
    return datetime.strptime(value, TIME_FORMAT).time()


def _hydrate_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    return datetime.strptime(value, DATETIME_FORMAT)


def _hydrate_json(value: Any) -> Any:
    # the transport may already hand back decoded json/jsonb values
    if isinstance(value, (str, bytes, bytearray)):
        return json.loads(value)
    return value


def _hydrate_simple_array(value: Any) -> list[str]:
    if value == "":
        return []
    return value.split(",")


_HYDRATORS: Dict[str, Callable[[Any], Any]] = {
    ColumnType.BOOLEAN.value: bool,
    ColumnType.DATE.value: _hydrate_date,
    ColumnType.TIME.value: _hydrate_time,
    ColumnType.DATETIME.value: _hydrate_datetime,
    ColumnType.JSON.value: _hydrate_json,
    ColumnType.SIMPLE_ARRAY.value: _hydrate_simple_array,
}


def _type_key(column: ColumnMetadata) -> str:
    column_type = column.type
    return column_type.value if isinstance(column_type, ColumnType) else str(column_type)


def _convert(converters: Dict[str, Callable[[Any], Any]], value: Any, column: ColumnMetadata, direction: str) -> Any:
    if value is None:
        return None
    key = _type_key(column)
    converter = converters.get(key)
    if converter is None:
        return value
    try:
        return converter(value)
    except (TypeError, ValueError, AttributeError) as exc:
        raise MarshallingError(
            f"Cannot convert {value!r} {direction} for column "
            f"'{column.name or '?'}' of type '{key}': {exc}"
        ) from exc


def prepare_persistent_value(value: Any, column: ColumnMetadata) -> Any:
    """Prepares given value to a value to be persisted, based on its column type."""
    return _convert(_PERSISTERS, value, column, "to storage")


def prepare_hydrated_value(value: Any, column: ColumnMetadata) -> Any:
    """Prepares given value loaded from the database to its Python form, based on its column type."""
    return _convert(_HYDRATORS, value, column, "from storage")


__all__ = [
    "DATETIME_FORMAT",
    "DATE_FORMAT",
    "TIME_FORMAT",
    "prepare_hydrated_value",
    "prepare_persistent_value",
]
