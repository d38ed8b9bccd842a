from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    token: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {"token": "<opaque bearer token>"}
        }
    }


class SessionState(BaseModel):
    is_logged_in: bool = Field(..., alias="isLoggedIn")
    is_admin: bool = Field(default=False, alias="isAdmin")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {"isLoggedIn": True, "isAdmin": False}
        },
    }
