"""User schemas used for registration and responses."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None
    organization_name: Optional[str] = None


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None
    organization_id: int
    role: str

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    """Payload for login attempts."""

    email: EmailStr
    password: str
