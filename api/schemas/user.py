# api/schemas/user.py
from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import Field

from .common import CamelModel


class UserSchema(CamelModel):
    id: str
    email: str
    name: str
    profile_picture_url: Optional[str] = None
    preferences: Dict[str, Any]
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    id_token: str = Field(min_length=1)


class LoginResponse(CamelModel):
    user: UserSchema
    token: str


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    profile_picture_url: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


class ContextUser(CamelModel):
    id: str
    email: str
    name: str


class ValidateResponse(CamelModel):
    authenticated: bool
    user: Optional[ContextUser] = None
