from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from assethub.models.security import Role, SystemModule
from assethub.schemas.base import CamelModel


class UserOut(CamelModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: str
    department: str | None
    is_active: bool


class UserCreate(CamelModel):
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=8, max_length=255)
    first_name: str = ""
    last_name: str = ""
    role: Role = Role.USER
    department: str | None = None


class LoginIn(BaseModel):
    email: str
    password: str = Field(max_length=255)


class LoginOut(CamelModel):
    token: str
    user: UserOut


class ClaimsOut(CamelModel):
    id: int
    email: str
    role: str
    department: str | None
    issued_at: datetime | None
    expires_at: datetime | None


class PermissionFlagsOut(CamelModel):
    can_read: bool
    can_write: bool
    can_delete: bool


class PermissionsEnvelope(CamelModel):
    permissions: PermissionFlagsOut


class PermissionGrantIn(CamelModel):
    department: str = Field(min_length=1, max_length=100)
    module: SystemModule
    can_read: bool = True
    can_write: bool = False
    can_delete: bool = False


class PermissionGrantOut(CamelModel):
    id: int
    department: str
    module: str
    can_read: bool
    can_write: bool
    can_delete: bool
    updated_at: datetime


class PermissionGrantListOut(CamelModel):
    permissions: list[PermissionGrantOut]
