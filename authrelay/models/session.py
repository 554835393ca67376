"""
Session models.

Value objects passed between the state store, the OAuth client, the session
store and the session issuer. All of them are frozen; the session store
replaces records instead of mutating them.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StateToken(BaseModel):
    """An anti-CSRF state value issued at login start."""

    model_config = ConfigDict(frozen=True)

    value: str
    issued_at: float


class TokenSet(BaseModel):
    """Tokens returned by the provider's token endpoint."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None
    scope: Optional[str] = None
    id_token: Optional[str] = None

    def __repr__(self):
        return f"<TokenSet(token_type={self.token_type}, expires_in={self.expires_in}, scope={self.scope})>"


class ProviderIdentity(BaseModel):
    """Profile data returned by the provider's user-info endpoint."""

    model_config = ConfigDict(frozen=True)

    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None


class SessionSummary(BaseModel):
    """Token-free view of a session record, safe for diagnostics."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SessionRecord(BaseModel):
    """
    An authenticated user in this application's own terms.

    ``user_id`` is the provider subject. One record exists per subject;
    a repeated login replaces the token fields and keeps ``created_at``.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    email: Optional[str] = None
    name: Optional[str] = None
    picture: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    access_token: str
    refresh_token: Optional[str] = None
    token_expires_in: Optional[int] = None
    expires_at: float

    def summary(self) -> SessionSummary:
        return SessionSummary(
            user_id=self.user_id,
            email=self.email,
            name=self.name,
            picture=self.picture,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<SessionRecord(user_id={self.user_id}, email={self.email}, created_at={self.created_at})>"


class CookieSessionHandle(BaseModel):
    """What the browser receives after a successful login."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    session_token: str
    session_max_age: int
    access_token_max_age: int
