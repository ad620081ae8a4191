"""Auth Schemas — registration, login and user views.

Invariants:
    - username 3-50 chars, stripped; password >= 6 chars
    - email validated by pydantic's EmailStr
    - UserResponse never exposes password_hash
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from notehub.core.domain_types import UserRole


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: UserRole
    phone: str | None = Field(None, max_length=15)
    location: str | None = Field(None, max_length=100)

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("username must be at least 3 non-blank characters")
        return v


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserResponse(BaseModel):
    """Own account view (includes contact fields)."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: UserRole
    phone: str | None = None
    location: str | None = None
    rating: Decimal
    total_orders: int


class PublicProfile(BaseModel):
    """Reputation view of any user."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: UserRole
    location: str | None = None
    rating: Decimal
    total_orders: int


class AuthResponse(BaseModel):
    token: str
    user: UserResponse
