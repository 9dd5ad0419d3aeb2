import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class UserRole(str, Enum):
    admin = "admin"
    manager = "manager"
    staff = "staff"
    contractor = "contractor"


class UserCreate(BaseModel):
    email: str
    full_name: str
    role: UserRole = UserRole.staff
    department: Optional[str] = None
    position: Optional[str] = None
    mobile_number: Optional[str] = None
    nationality: Optional[str] = None
    joining_date: Optional[date] = None
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email address")
        return v

    class Config:
        use_enum_values = True


class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    full_name: str
    role: str
    department: Optional[str] = None
    position: Optional[str] = None
    mobile_number: Optional[str] = None
    nationality: Optional[str] = None
    joining_date: Optional[date] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
