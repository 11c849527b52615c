from typing import Literal
from uuid import UUID

from pydantic import EmailStr, Field, field_validator, model_validator
from typing_extensions import Self

from .common import CamelModel
from .schedule import IsoDate

StoreStatus = Literal["ACTIVE", "ARCHIVED"]
GrantableRole = Literal["SUB_MANAGER", "PART_TIMER"]


class StoreCreate(CamelModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    timezone: str = "Asia/Seoul"


class StoreUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    address: str | None = None
    phone: str | None = None
    timezone: str | None = None
    status: StoreStatus | None = None


class GrantRoleRequest(CamelModel):
    user_id: UUID
    role: GrantableRole


class StoreUserRequest(CamelModel):
    """Body for revoke / deactivate / reactivate / demote / delete."""

    user_id: UUID


class InvitationCreate(CamelModel):
    email: EmailStr | None = None
    name: str | None = Field(default=None, max_length=100)
    store_id: UUID | None = None
    role_hint: GrantableRole | None = None
    expires_in_days: int = Field(default=7, ge=1, le=30)
    is_guest: bool = False


class InvitationAccept(CamelModel):
    token_hash: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    password: str

    @field_validator("password")
    @classmethod
    def _min_length(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("validation.passwordMin8")
        return value


class StoreUserProfileUpdate(CamelModel):
    """Fields a manager may edit on a store member; unset fields are kept."""

    job_role_ids: list[UUID] | None = None
    resignation_date: IsoDate | None = None
    desired_weekly_hours: int | None = Field(default=None, ge=0, le=168)


class TemporaryAssignment(CamelModel):
    user_id: UUID
    start_date: IsoDate
    end_date: IsoDate
    reason: str | None = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def _start_before_end(self) -> Self:
        if self.start_date >= self.end_date:
            raise ValueError("errors.startBeforeEnd")
        return self
