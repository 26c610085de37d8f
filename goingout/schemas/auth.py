"""Pydantic schemas for authentication endpoints."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")
    password: str = Field(..., min_length=6, max_length=72)
    email: EmailStr | None = None
    name: str | None = Field(default=None, max_length=150)


class LoginRequest(BaseModel):
    username: str
    password: str


class AuthResponse(BaseModel):
    access_token: str
    user_id: UUID
    username: str
    token_type: str = "bearer"


__all__ = ["RegisterRequest", "LoginRequest", "AuthResponse"]
