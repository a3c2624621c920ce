from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from dabil.models.restaurant import StaffRole


class StaffLogin(BaseModel):
    email: EmailStr
    password: str


class StaffCreate(BaseModel):
    """Manager creates staff for their own restaurant"""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    role: StaffRole
    password: str = Field(..., min_length=6)


class AdminStaffCreate(StaffCreate):
    restaurant_id: str


class StaffResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    restaurant_id: str
    restaurant_name: Optional[str] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_staff(cls, staff) -> "StaffResponse":
        return cls(
            id=staff.id,
            email=staff.email,
            name=staff.name,
            role=staff.role.value,
            restaurant_id=staff.restaurant_id,
            restaurant_name=staff.restaurant.name if staff.restaurant else None,
            is_active=staff.is_active,
            last_login_at=staff.last_login_at,
            created_at=staff.created_at,
        )
