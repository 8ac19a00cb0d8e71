from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email_id: str = Field(..., alias="emailId", min_length=1)
    password: str = Field(..., min_length=1)

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {"emailId": "clerk@court.example", "password": "secret"}
        },
    }


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    role: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "access_token": "<jwt>",
                "refresh_token": "<jwt>",
                "token_type": "bearer",
                "expires_in": 43200,
                "role": "user",
            }
        }
    }


class RefreshRequest(BaseModel):
    refresh_token: str

    model_config = {
        "json_schema_extra": {
            "example": {"refresh_token": "<jwt>"}
        }
    }
