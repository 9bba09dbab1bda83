"""Request bodies accepted by the HTTP layer."""

from __future__ import annotations

import re
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

from folio.domain.kinds import Role

HANDLE_PATTERN = r"^[A-Za-z0-9_]+$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_CREDENTIAL_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def _check_credential(value: Optional[str]) -> Optional[str]:
    if value is not None and not _CREDENTIAL_RULE.match(value):
        raise ValueError("credential needs a lowercase letter, an uppercase letter and a digit")
    return value


class AccountCreate(BaseModel):
    handle: str = Field(min_length=3, max_length=20, pattern=HANDLE_PATTERN)
    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    credential: Annotated[str, AfterValidator(_check_credential)] = Field(min_length=6, max_length=50)
    role: Optional[Role] = None


class AccountUpdate(BaseModel):
    handle: Optional[str] = Field(default=None, min_length=3, max_length=20, pattern=HANDLE_PATTERN)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    credential: Optional[Annotated[str, AfterValidator(_check_credential)]] = Field(
        default=None, min_length=6, max_length=50
    )
    role: Optional[Role] = None


class RoleUpdate(BaseModel):
    role: Role


class Login(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    credential: str = Field(min_length=1)


class BatchDelete(BaseModel):
    ids: list[int] = Field(min_length=1)
    actor_id: Optional[int] = Field(default=None, ge=1)

    @field_validator("ids")
    @classmethod
    def _positive(cls, value: list[int]) -> list[int]:
        if any(i < 1 for i in value):
            raise ValueError("ids must be positive integers")
        return value


class DocumentCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    body: str = Field(default="", max_length=10_000_000)
    owner_id: int = Field(ge=1)


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    body: Optional[str] = Field(default=None, max_length=10_000_000)
    actor_id: Optional[int] = Field(default=None, ge=1)
