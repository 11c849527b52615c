import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing_extensions import Self

from workeasy.core.rbac import UserRole

from .common import CamelModel

HAS_LETTER = re.compile(r"[A-Za-z]")
HAS_DIGIT = re.compile(r"[0-9]")


class UserProfile(BaseModel):
    """The authenticated caller, as derived from the auth provider's user."""

    id: str
    email: str | None = None
    name: str
    role: UserRole = UserRole.PART_TIMER
    email_confirmed: bool = False
    created_at: datetime | str | None = None


class SignInRequest(CamelModel):
    email: EmailStr
    password: str
    locale: str | None = None

    @field_validator("password")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value:
            raise ValueError("validation.passwordRequired")
        return value


class SignUpRequest(CamelModel):
    email: EmailStr
    password: str
    confirm_password: str
    locale: str | None = None

    @field_validator("password")
    @classmethod
    def _strong_enough(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("validation.passwordMin8")
        if not HAS_LETTER.search(value) or not HAS_DIGIT.search(value):
            raise ValueError("validation.passwordLetterDigit")
        return value

    @model_validator(mode="after")
    def _passwords_match(self) -> Self:
        if self.password != self.confirm_password:
            raise ValueError("validation.passwordMismatch")
        return self


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str
    confirm_password: str

    @field_validator("current_password")
    @classmethod
    def _required(cls, value: str) -> str:
        if not value:
            raise ValueError("validation.passwordRequired")
        return value

    @field_validator("new_password")
    @classmethod
    def _min_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("validation.passwordMin6")
        return value

    @model_validator(mode="after")
    def _passwords_match(self) -> Self:
        if self.new_password != self.confirm_password:
            raise ValueError("validation.passwordMismatch")
        return self


class RefreshRequest(CamelModel):
    refresh_token: str | None = None


class UpdateRoleRequest(CamelModel):
    user_id: str = Field(min_length=1)
    role: UserRole
