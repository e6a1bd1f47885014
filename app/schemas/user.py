import re
from pydantic import EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime
from app.schemas.base import ApiModel

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """Trim and strip angle brackets from free-text user input"""
    if not value:
        return None
    return value.strip().replace("<", "").replace(">", "") or None


class UserRegister(ApiModel):
    email: EmailStr
    username: str
    password: str = Field(min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @field_validator("username")
    @classmethod
    def username_format(cls, v):
        errors = []
        if not v or not v.strip():
            raise ValueError("Username is required")
        if len(v) < 3:
            errors.append("Username must be at least 3 characters long")
        if len(v) > 30:
            errors.append("Username must not exceed 30 characters")
        if not USERNAME_PATTERN.match(v):
            errors.append("Username can only contain letters, numbers, dots, hyphens, and underscores")
        if re.match(r"^[._-]", v) or re.search(r"[._-]$", v):
            errors.append("Username cannot start or end with dots, hyphens, or underscores")
        if re.search(r"[._-]{2,}", v):
            errors.append("Username cannot contain consecutive dots, hyphens, or underscores")
        if errors:
            raise ValueError(", ".join(errors))
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def clean_names(cls, v):
        return sanitize_string(v)


class UserLogin(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(ApiModel):
    id: int
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserSummary(ApiModel):
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class MemberUser(UserSummary):
    email: str
