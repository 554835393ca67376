"""
Google OAuth 2.0 authorization-code client.

SECURITY: This module handles the client secret and raw provider tokens.
Neither may be logged or returned to the browser.
"""
import asyncio

import httpx
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from pydantic import ValidationError

from authrelay.config import Settings
from authrelay.errors import ExchangeError, ProfileFetchError
from authrelay.logging_config import get_logger
from authrelay.models.session import ProviderIdentity, TokenSet

logger = get_logger(component="oauth_client")

# Provider bodies are logged for diagnosis, cut to this many characters.
MAX_LOGGED_BODY = 300


def _excerpt(response: httpx.Response) -> str:
    return response.text[:MAX_LOGGED_BODY]


def _error_fields(error: ValidationError) -> list[str]:
    """Names of the offending fields, without their values."""
    return [".".join(str(part) for part in err["loc"]) for err in error.errors()]


class GoogleOAuthClient:
    """Performs the code-for-token and token-for-profile calls against Google."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self.client_id = settings.GOOGLE_CLIENT_ID
        self.client_secret = settings.GOOGLE_CLIENT_SECRET
        self.redirect_uri = settings.GOOGLE_REDIRECT_URI
        self.scopes = settings.scopes
        self.auth_url = settings.GOOGLE_AUTH_URL
        self.token_url = settings.GOOGLE_TOKEN_URL
        self.userinfo_url = settings.GOOGLE_USERINFO_URL
        self.access_type = settings.GOOGLE_ACCESS_TYPE
        self.prompt = settings.GOOGLE_PROMPT
        self.profile_retries = settings.PROFILE_FETCH_RETRIES
        self.retry_delay = settings.PROFILE_RETRY_DELAY_SECONDS
        self._http = http_client or httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)

    def build_authorization_url(self, state: str) -> str:
        """
        Compose the provider authorization URL for a state value.

        Pure function of configuration and ``state``.
        """
        return prepare_grant_uri(
            self.auth_url,
            client_id=self.client_id,
            response_type="code",
            redirect_uri=self.redirect_uri,
            scope=self.scopes,
            state=state,
            access_type=self.access_type,
            prompt=self.prompt,
        )

    async def exchange_code_for_token(self, code: str) -> TokenSet:
        """
        Trade an authorization code for tokens.

        Authorization codes are single-use, so this is never retried.

        Raises:
            ExchangeError: on transport failure, non-2xx or malformed body
        """
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }

        try:
            response = await self._http.post(
                self.token_url,
                data=data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning("token_exchange_transport_error", error_type=type(e).__name__, error=str(e))
            raise ExchangeError(f"transport error: {type(e).__name__}") from e

        if not response.is_success:
            logger.warning(
                "token_exchange_rejected",
                status_code=response.status_code,
                body=_excerpt(response),
            )
            raise ExchangeError(f"token endpoint returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("token_exchange_malformed", body=_excerpt(response))
            raise ExchangeError("token endpoint returned non-JSON body") from e

        if not isinstance(payload, dict) or not payload.get("access_token"):
            logger.warning("token_exchange_malformed", reason="missing access_token")
            raise ExchangeError("token response missing access_token")

        expires_in = payload.get("expires_in")
        try:
            expires_in = int(expires_in) if expires_in is not None else None
        except (TypeError, ValueError):
            expires_in = None

        try:
            tokens = TokenSet(
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token"),
                expires_in=expires_in,
                token_type=payload.get("token_type"),
                scope=payload.get("scope"),
                id_token=payload.get("id_token"),
            )
        except ValidationError as e:
            logger.warning("token_exchange_malformed", reason="invalid field types", fields=_error_fields(e))
            raise ExchangeError("token response has invalid field types") from e
        logger.info("token_exchanged", expires_in=tokens.expires_in, has_refresh=tokens.refresh_token is not None)
        return tokens

    async def fetch_profile(self, access_token: str) -> ProviderIdentity:
        """
        Fetch the user's profile with an access token.

        Transport failures are retried a bounded number of times; HTTP
        error responses are not.

        Raises:
            ProfileFetchError: on repeated transport failure, non-2xx or
                malformed body
        """
        headers = {"Authorization": f"Bearer {access_token}"}
        attempts = self.profile_retries + 1

        for attempt in range(attempts):
            try:
                response = await self._http.get(self.userinfo_url, headers=headers)
                break
            except httpx.TransportError as e:
                logger.warning(
                    "profile_fetch_transport_error",
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error_type=type(e).__name__,
                )
                if attempt == attempts - 1:
                    raise ProfileFetchError(f"transport error after {attempts} attempts") from e
                await asyncio.sleep(self.retry_delay * (attempt + 1))
            except httpx.HTTPError as e:
                raise ProfileFetchError(f"request error: {type(e).__name__}") from e

        if not response.is_success:
            logger.warning("profile_fetch_rejected", status_code=response.status_code, body=_excerpt(response))
            raise ProfileFetchError(f"userinfo endpoint returned HTTP {response.status_code}")

        try:
            user_info = response.json()
        except ValueError as e:
            raise ProfileFetchError("userinfo endpoint returned non-JSON body") from e

        if not isinstance(user_info, dict):
            raise ProfileFetchError("userinfo response is not an object")

        # OpenID userinfo says "sub", Google's v2 endpoint says "id".
        subject = user_info.get("sub") or user_info.get("id")
        if not subject:
            raise ProfileFetchError("userinfo response missing subject")

        try:
            return ProviderIdentity(
                sub=str(subject),
                email=user_info.get("email"),
                name=user_info.get("name"),
                picture=user_info.get("picture"),
            )
        except ValidationError as e:
            logger.warning("profile_fetch_malformed", reason="invalid field types", fields=_error_fields(e))
            raise ProfileFetchError("userinfo response has invalid field types") from e

    async def aclose(self):
        await self._http.aclose()
