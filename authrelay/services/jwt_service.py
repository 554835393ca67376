"""
JWT signing for the identifying session cookie.

The cookie only names a subject; it is signed so a browser cannot swap in
another user's identifier.
"""
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from authrelay.config import Settings

SESSION_TOKEN_TYPE = "session"


class JWTService:
    """Service for creating and verifying session tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.ttl_seconds = settings.SESSION_TTL_SECONDS

    def create_token(self, user_id: str) -> str:
        """
        Create a session token for a user.

        Args:
            user_id: Provider subject of the session record

        Returns:
            Encoded JWT token string
        """
        issued = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "typ": SESSION_TOKEN_TYPE,
            "iat": issued,
            "exp": issued + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str | None:
        """
        Verify a session token.

        Returns:
            The user id it names, or None if invalid or expired
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        if payload.get("typ") != SESSION_TOKEN_TYPE:
            return None
        subject = payload.get("sub")
        return subject if isinstance(subject, str) and subject else None
