"""Pydantic schemas for API response bodies."""

from __future__ import annotations

from typing import Any
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageSchema(CamelModel):
    """Acknowledgement of a completed identity-provider operation."""

    ok: bool = True
    message: str


class TokenSchema(CamelModel):
    """Tokens handed to the client after login or refresh.

    The refresh token is never part of the body; it travels in the
    ``rt`` cookie.
    """

    access_token: str
    expires_in: Optional[int] = None
    id_token: Optional[str] = None


class IdentitySchema(CamelModel):
    """Caller identity taken from authorizer claims."""

    sub: Optional[str] = None
    username: Optional[str] = None
    email: Optional[str] = None
    scope: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "IdentitySchema":
        return cls(
            sub=claims.get("sub"),
            username=claims.get("cognito:username"),
            email=claims.get("email"),
            scope=claims.get("scope"),
        )
