"""Pydantic request/response schemas for the Identity API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from shared.messaging.user_validation import Role

# --- Request Schemas ---


class RegisterUserRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "email": "jane.doe@example.com",
                    "name": "Jane Doe",
                }
            ]
        }
    }

    email: str = Field(..., max_length=254)
    name: str = Field(..., min_length=2, max_length=100)


# --- Response Schemas ---


class UserIdResponse(BaseModel):
    user_id: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None
