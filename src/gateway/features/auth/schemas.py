"""Pydantic schemas for authentication, defining the structure for request and response data."""

from pydantic import BaseModel, Field
from typing import Literal, Optional

from ...common.schemas import APIModel

Role = Literal["admin", "user", "api"]


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, description="Username")
    password: str = Field(..., min_length=6, max_length=100, description="User password")


class User(BaseModel):
    username: str = Field(..., description="Username")
    role: Role = Field(..., description="User role (admin, user or api)")


class AuthResponse(APIModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: User


class ValidateResponse(APIModel):
    success: bool = True
    user: User


class TokenData(BaseModel):
    sub: Optional[str] = None
    role: Optional[str] = None
