import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from shop.core.security import MAX_BYTE_LENGTH


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Registration Request
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=MAX_BYTE_LENGTH)

    @field_validator("password")
    @classmethod
    def fits_bcrypt(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_BYTE_LENGTH:
            raise ValueError(f"Password must be at most {MAX_BYTE_LENGTH} bytes")
        return v


# Login Request
class LoginRequest(BaseModel):
    """Schema for user login credentials."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# USER RESPONSE (API OUTPUT)
class UserRead(BaseSchema):
    id: uuid.UUID
    name: str
    email: EmailStr
    created_at: datetime
    updated_at: datetime
