"""Parse raw, string-typed time records into ``TimeEntry`` values."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from timesheet_analytics.core.config import get_settings
from timesheet_analytics.models.entities import EntryWarning, LoadResult, TimeEntry, WorkType

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _field(record: Mapping[str, Any] | object, name: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def parse_hours(value: object) -> Decimal | None:
    """Parse an hours value; ``None`` when it is not a finite number."""

    if value is None or isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def _hours_in_range(hours: Decimal, max_hours: Decimal) -> bool:
    return ZERO < hours <= max_hours


def _warn(result: LoadResult, *, entry_id: str, field: str, value: object, message: str) -> None:
    warning = EntryWarning(entry_id=entry_id, field=field, value=str(value), message=message)
    result.warnings.append(warning)
    logger.warning("Excluding time entry %s: %s (%s=%r)", entry_id, message, field, value)


def load_entries(raw_records: Iterable[Mapping[str, Any] | object], *, max_hours: Decimal | None = None) -> LoadResult:
    """Build entries from raw records, skipping and reporting malformed ones.

    A bad record never aborts the batch: it is left out of ``entries`` and an
    ``EntryWarning`` describing the problem is appended to ``warnings``.
    """

    limit = max_hours if max_hours is not None else get_settings().max_entry_hours
    result = LoadResult()

    for index, record in enumerate(raw_records):
        entry_id = str(_field(record, "id") or f"#{index}")

        raw_hours = _field(record, "hours")
        hours = parse_hours(raw_hours)
        if hours is None:
            _warn(result, entry_id=entry_id, field="hours", value=raw_hours, message="hours is not a number")
            continue
        if not _hours_in_range(hours, limit):
            _warn(
                result,
                entry_id=entry_id,
                field="hours",
                value=raw_hours,
                message=f"hours must be greater than 0 and at most {limit}",
            )
            continue

        raw_date = _field(record, "date")
        try:
            if isinstance(raw_date, datetime):
                entry_date = raw_date.date()
            elif isinstance(raw_date, date):
                entry_date = raw_date
            else:
                entry_date = date.fromisoformat(str(raw_date))
        except ValueError:
            _warn(result, entry_id=entry_id, field="date", value=raw_date, message="date is not an ISO date")
            continue

        raw_type = _field(record, "work_type")
        if raw_type is None or raw_type == "":
            raw_type = WorkType.OTHER
        try:
            work_type = WorkType(str(getattr(raw_type, "value", raw_type)).upper())
        except ValueError:
            _warn(result, entry_id=entry_id, field="work_type", value=raw_type, message="unknown work type")
            continue

        description = _field(record, "description")
        result.entries.append(
            TimeEntry(
                id=entry_id,
                date=entry_date,
                hours=hours,
                task_name=str(_field(record, "task_name", "") or ""),
                work_type=work_type,
                project_id=str(_field(record, "project_id", "") or ""),
                project_name=str(_field(record, "project_name", "") or ""),
                client_name=str(_field(record, "client_name", "") or ""),
                user_id=str(_field(record, "user_id", "") or ""),
                user_name=str(_field(record, "user_name", "") or ""),
                description=str(description) if description else None,
            )
        )

    if result.warnings:
        logger.info("Loaded %d time entries, excluded %d", len(result.entries), len(result.warnings))
    return result


def screen_entries(entries: Iterable[TimeEntry], *, max_hours: Decimal | None = None) -> LoadResult:
    """Apply the hours-range rule to already-typed entries."""

    limit = max_hours if max_hours is not None else get_settings().max_entry_hours
    result = LoadResult()
    for entry in entries:
        if _hours_in_range(entry.hours, limit):
            result.entries.append(entry)
        else:
            _warn(
                result,
                entry_id=entry.id,
                field="hours",
                value=entry.hours,
                message=f"hours must be greater than 0 and at most {limit}",
            )
    return result
