from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from .base import CamelModel


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class User(CamelModel):
    """Public projection of an identity."""
    id: str
    email: str


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str


class AuthResponse(TokenPairResponse):
    user: User


class MessageResponse(BaseModel):
    message: str
