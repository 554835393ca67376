"""
Cookie issuance for authenticated sessions.

Two cookies are set, both HTTP-only:

* the identifying session cookie, a signed token naming the user, long lived;
* the access-token cookie, carrying the provider token, living only as long
  as the token itself.

Cookie attributes depend on the deployment mode, see ``CookiePolicy``.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Request, Response

from authrelay.config import Settings
from authrelay.logging_config import get_logger
from authrelay.models.session import CookieSessionHandle, SessionRecord
from authrelay.services.jwt_service import JWTService

logger = get_logger(component="session_issuer")


@dataclass(frozen=True)
class CookiePolicy:
    """Attributes shared by every cookie the issuer sets or clears."""

    secure: bool
    samesite: str
    domain: Optional[str]
    path: str = "/"

    @classmethod
    def from_settings(cls, settings: Settings) -> "CookiePolicy":
        """
        Derive cookie attributes from the deployment mode.

        Secure whenever the backend is served over HTTPS or runs in
        production. COOKIE_SECURE can force it on for plain HTTP, but
        turning it off for HTTPS or production raises. SameSite=None is only
        used together with Secure and only when the frontend lives on another
        origin; Lax otherwise.
        """
        https = settings.BACKEND_URL.lower().startswith("https://")
        secure = settings.COOKIE_SECURE
        if secure is None:
            secure = https or settings.is_production

        if settings.is_production and not secure:
            raise ValueError("Insecure cookies are not allowed in production")
        if https and not secure:
            raise ValueError("Insecure cookies are not allowed when BACKEND_URL is https")

        samesite = "none" if secure and settings.cross_origin else "lax"
        return cls(secure=secure, samesite=samesite, domain=settings.COOKIE_DOMAIN or None)


class SessionIssuer:
    """Turns a session record into browser cookies, and clears them again."""

    def __init__(self, settings: Settings, jwt_service: JWTService | None = None):
        self.policy = CookiePolicy.from_settings(settings)
        self.jwt_service = jwt_service or JWTService(settings)
        self.session_cookie = settings.SESSION_COOKIE_NAME
        self.access_token_cookie = settings.ACCESS_TOKEN_COOKIE_NAME
        self.session_max_age = settings.SESSION_TTL_SECONDS
        self.default_token_max_age = settings.ACCESS_TOKEN_COOKIE_MAX_AGE

    def issue(self, record: SessionRecord, response: Response) -> CookieSessionHandle:
        """
        Set the session cookies for ``record`` on ``response``.

        Returns:
            The handle delivered to the browser
        """
        session_token = self.jwt_service.create_token(record.user_id)
        token_max_age = record.token_expires_in
        if token_max_age is None:
            token_max_age = self.default_token_max_age
        token_max_age = max(0, min(token_max_age, self.session_max_age))

        self._set(response, self.session_cookie, session_token, self.session_max_age)
        self._set(response, self.access_token_cookie, record.access_token, token_max_age)

        logger.info(
            "session_cookies_issued",
            user_id=record.user_id,
            secure=self.policy.secure,
            samesite=self.policy.samesite,
            access_token_max_age=token_max_age,
        )
        return CookieSessionHandle(
            user_id=record.user_id,
            session_token=session_token,
            session_max_age=self.session_max_age,
            access_token_max_age=token_max_age,
        )

    def revoke(self, response: Response):
        """Clear every cookie ``issue`` sets."""
        for key in (self.session_cookie, self.access_token_cookie):
            response.delete_cookie(
                key=key,
                path=self.policy.path,
                domain=self.policy.domain,
                secure=self.policy.secure,
                httponly=True,
                samesite=self.policy.samesite,
            )

    def read_user_id(self, request: Request) -> str | None:
        """Return the user named by the request's session cookie, if it verifies."""
        token = request.cookies.get(self.session_cookie)
        if not token:
            return None
        return self.jwt_service.verify_token(token)

    def _set(self, response: Response, key: str, value: str, max_age: int):
        response.set_cookie(
            key=key,
            value=value,
            max_age=max_age,
            path=self.policy.path,
            domain=self.policy.domain,
            secure=self.policy.secure,
            httponly=True,
            samesite=self.policy.samesite,
        )
