from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

FULL_DAY = "Full Day Block"
OFF_DAY = "Off Day Block"
VACATION = "Vacation Block"

BlockType = Literal["Full Day Block", "Off Day Block", "Vacation Block"]
BLOCK_TYPES: tuple[str, ...] = (FULL_DAY, OFF_DAY, VACATION)
TIMED_BLOCK_TYPES = frozenset({FULL_DAY, OFF_DAY})


def parse_month(value: str) -> date:
    """Parse a ``YYYY-MM`` month identifier into the first day of that month."""
    year_text, _, month_text = value.strip().partition("-")
    if len(year_text) != 4 or len(month_text) != 2:
        raise ValueError(f"Month must look like YYYY-MM, got {value!r}")
    return date(int(year_text), int(month_text), 1)


def format_month(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


@dataclass(frozen=True)
class MonthBounds:
    first: date
    last: date

    @classmethod
    def for_month(cls, day: date) -> MonthBounds:
        _, days_in_month = calendar.monthrange(day.year, day.month)
        return cls(first=day.replace(day=1), last=day.replace(day=days_in_month))

    def clamp(self, day: date) -> date:
        return min(max(day, self.first), self.last)


@dataclass(frozen=True)
class Scope:
    job_title: str
    month: str

    @classmethod
    def of(cls, job_title: str, day: date) -> Scope:
        return cls(job_title=job_title, month=format_month(day))


@dataclass
class BlockCandidate:
    """Raw form input for a block that has not been admitted yet."""

    block_type: str
    start_date: str | None = None
    end_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    employee_id: str | None = None


def _legacy_timestamp_to_date(value):
    # Older payloads carry local midnight serialized as UTC, e.g. 2025-03-04T23:00:00.000Z
    # for 2025-03-05 east of Greenwich. Round to the nearest calendar day.
    if not (isinstance(value, str) and len(value) > 10 and value[10] == "T"):
        return value
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    if moment.hour >= 12:
        return moment.date() + timedelta(days=1)
    return moment.date()


class EmployeeSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    photo_url: str | None = Field(default=None, alias="photoURL")


class ScheduleBlock(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: BlockType
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    employee: EmployeeSnapshot
    row: int = Field(default=0, ge=0)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def accept_legacy_dates(cls, value):
        return _legacy_timestamp_to_date(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def blank_time_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value
