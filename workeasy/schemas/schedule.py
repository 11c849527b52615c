"""
Schedule configuration and assignment request schemas.

Minutes are counted from midnight (0..1440). Cross-field failures raise
``ValueError`` with a catalog key so the validation handler can localize it.
"""

import re
from datetime import date
from typing import Annotated, Literal
from uuid import UUID

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator
from typing_extensions import Self

from .common import CamelModel

MinuteOfDay = Annotated[int, Field(ge=0, le=1440)]
HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

AssignmentStatus = Literal["ASSIGNED", "CONFIRMED", "CANCELLED"]


def parse_iso_date(value: str) -> str:
    try:
        return date.fromisoformat(value).isoformat()
    except (TypeError, ValueError):
        raise ValueError("validation.invalidDate")


def check_hhmm(value: str) -> str:
    if not HHMM.match(value):
        raise ValueError("validation.invalidTime")
    return value


IsoDate = Annotated[str, AfterValidator(parse_iso_date)]
ClockTime = Annotated[str, AfterValidator(check_hhmm)]


def hhmm_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


class BreakRuleCreate(CamelModel):
    store_id: UUID
    threshold_hours: float = Field(ge=0, le=24)
    break_min: int = Field(ge=0, le=240)
    paid: bool = False


class BreakRuleUpdate(CamelModel):
    threshold_hours: float | None = Field(default=None, ge=0, le=24)
    break_min: int | None = Field(default=None, ge=0, le=240)
    paid: bool | None = None


class BusinessHour(CamelModel):
    store_id: UUID
    weekday: int = Field(ge=0, le=6)
    open_min: MinuteOfDay
    close_min: MinuteOfDay

    @model_validator(mode="after")
    def _close_differs_from_open(self) -> Self:
        # close < open is an overnight day
        if self.close_min == self.open_min:
            raise ValueError("validation.closeEqualsOpen")
        return self


class HolidayCreate(CamelModel):
    store_id: UUID
    date: IsoDate


class StoreJobRoleCreate(CamelModel):
    store_id: UUID
    name: str = Field(min_length=1, max_length=48)
    code: str | None = Field(default=None, max_length=32)
    description: str | None = Field(default=None, max_length=160)
    active: bool = True


class StoreJobRoleUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=48)
    code: str | None = Field(default=None, max_length=32)
    description: str | None = Field(default=None, max_length=160)
    active: bool | None = None


class UserStoreJobRoles(CamelModel):
    store_id: UUID
    user_id: UUID
    job_role_ids: list[UUID]

    @field_validator("job_role_ids")
    @classmethod
    def _at_least_one(cls, value: list[UUID]) -> list[UUID]:
        if not value:
            raise ValueError("validation.jobRoleRequired")
        return value


class RequiredRole(CamelModel):
    job_role_id: UUID
    min_count: int = Field(ge=0, le=99)


class WorkItemRequiredRoles(CamelModel):
    work_item_id: UUID
    roles: list[RequiredRole]


class StaffingTargetCreate(CamelModel):
    store_id: UUID
    weekday: int = Field(ge=0, le=6)
    start_min: MinuteOfDay
    end_min: MinuteOfDay
    role_hint: str | None = Field(default=None, max_length=32)
    min_headcount: int = Field(default=0, ge=0, le=99)
    max_headcount: int = Field(default=0, ge=0, le=99)

    @model_validator(mode="after")
    def _check_ranges(self) -> Self:
        if self.end_min <= self.start_min:
            raise ValueError("errors.endAfterStart")
        if self.min_headcount > self.max_headcount:
            raise ValueError("errors.minExceedsMax")
        return self


class StaffingTargetUpdate(CamelModel):
    weekday: int | None = Field(default=None, ge=0, le=6)
    start_min: int | None = Field(default=None, ge=0, le=1440)
    end_min: int | None = Field(default=None, ge=0, le=1440)
    role_hint: str | None = Field(default=None, max_length=32)
    min_headcount: int | None = Field(default=None, ge=0, le=99)
    max_headcount: int | None = Field(default=None, ge=0, le=99)

    @model_validator(mode="after")
    def _check_ranges(self) -> Self:
        if (
            self.start_min is not None
            and self.end_min is not None
            and self.end_min <= self.start_min
        ):
            raise ValueError("errors.endAfterStart")
        if (
            self.min_headcount is not None
            and self.max_headcount is not None
            and self.min_headcount > self.max_headcount
        ):
            raise ValueError("errors.minExceedsMax")
        return self


class WorkItemCreate(CamelModel):
    store_id: UUID
    name: str = Field(min_length=1, max_length=64)
    start_min: MinuteOfDay
    end_min: MinuteOfDay
    unpaid_break_min: int = Field(default=0, ge=0)
    max_headcount: int = Field(default=1, ge=1, le=99)
    role_hint: str | None = Field(default=None, max_length=32)

    @model_validator(mode="after")
    def _check_span(self) -> Self:
        if self.end_min <= self.start_min:
            raise ValueError("errors.endAfterStart")
        if self.unpaid_break_min > self.end_min - self.start_min:
            raise ValueError("errors.breakTooLong")
        return self


class WorkItemUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=64)
    start_min: int | None = Field(default=None, ge=0, le=1440)
    end_min: int | None = Field(default=None, ge=0, le=1440)
    unpaid_break_min: int | None = Field(default=None, ge=0)
    max_headcount: int | None = Field(default=None, ge=1, le=99)
    role_hint: str | None = Field(default=None, max_length=32)

    @model_validator(mode="after")
    def _check_span(self) -> Self:
        if self.start_min is None or self.end_min is None:
            return self
        if self.end_min <= self.start_min:
            raise ValueError("errors.endAfterStart")
        if (
            self.unpaid_break_min is not None
            and self.unpaid_break_min > self.end_min - self.start_min
        ):
            raise ValueError("errors.breakTooLong")
        return self


# Assignment payloads keep the snake_case keys the schedule screens send.


class AssignmentCreate(BaseModel):
    store_id: UUID
    user_id: UUID
    work_item_id: UUID
    date: IsoDate
    start_time: ClockTime
    end_time: ClockTime
    notes: str | None = None


class AssignmentUpdate(BaseModel):
    user_id: UUID | None = None
    work_item_id: UUID | None = None
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None
    status: AssignmentStatus | None = None
    notes: str | None = None


class CopyWeek(BaseModel):
    store_id: UUID
    source_week_start: IsoDate
    target_week_start: IsoDate


class AvailabilityCreate(BaseModel):
    store_id: UUID
    user_id: str = Field(min_length=1)
    date: IsoDate
    reason: str | None = None
    has_time_restriction: bool = False
    start_time: ClockTime | None = None
    end_time: ClockTime | None = None


class ScheduleValidation(CamelModel):
    store_id: UUID
    date: str
    start_min: MinuteOfDay
    end_min: MinuteOfDay
    role_hint: str | None = None
    locale: str | None = None
    work_item_ids: list[UUID] | None = None
    assigned_users: list[UUID] | None = None
