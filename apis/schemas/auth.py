from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from models.auth import UserRole


class LoginRequest(BaseModel):
    """Schema for user login."""
    username: str = Field(..., description="Username for authentication")
    password: str = Field(..., description="Plain text password")


class SignupRequest(BaseModel):
    """Schema for the initial admin signup."""
    username: str = Field(..., min_length=1, description="Admin username")
    password: str = Field(..., min_length=1, description="Admin password")
    email: Optional[str] = Field(default=None, description="Admin email address")


class UserResponse(BaseModel):
    """Schema for user responses."""
    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    email: Optional[str] = Field(default=None, description="Email address")
    role: UserRole = Field(..., description="User role (ADMIN or EDITOR)")
    is_active: bool = Field(..., description="Whether the user can log in")

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    """Schema for login response."""
    access_token: str = Field(..., description="Bearer access token")
    refresh_token: Optional[str] = Field(default=None, description="Refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_at: datetime = Field(..., description="When the access token expires")
    user: UserResponse = Field(..., description="Authenticated user information")


class MessageResponse(BaseModel):
    """Generic acknowledgment."""
    message: str = Field(..., description="Human readable result")
