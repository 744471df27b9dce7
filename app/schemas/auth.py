"""Pydantic schemas for signup/login."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Credentials(BaseModel):
    """Username/password pair accepted by signup and login."""

    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)


class SignupRequest(Credentials):
    pass


class LoginRequest(Credentials):
    pass


class AuthUser(BaseModel):
    """User reference returned by the document service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Signed token handed to the client after signup/login."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    token: str = Field(..., description="HS256 bearer token valid for two hours.")
    user_id: str = Field(..., description="Identity carried in the token subject.")
