"""
Login flow for the authorization-code grant.

Login start issues a state value. The callback request then moves one
attempt through these stages:

    STATE_ISSUED -> CODE_RECEIVED -> TOKEN_EXCHANGED
        -> PROFILE_FETCHED -> SESSION_ISSUED

Any failure ends the attempt in AUTH_FAILED with one ``AuthError``. The
gateway never touches HTTP responses; the routes turn a finished attempt
into a redirect and cookies.
"""
import enum
from dataclasses import dataclass, field
from typing import Optional

from authrelay.errors import (
    AuthError,
    InvalidOrExpiredState,
    MissingCode,
    MissingState,
    ProviderDenied,
)
from authrelay.logging_config import get_logger
from authrelay.models.session import SessionRecord
from authrelay.services.oauth_client import GoogleOAuthClient
from authrelay.services.session_store import SessionStore
from authrelay.services.state_store import StateStore

logger = get_logger(component="auth_gateway")


class LoginStage(str, enum.Enum):
    """Stages of a single login attempt."""
    STATE_ISSUED = "state_issued"
    CODE_RECEIVED = "code_received"
    TOKEN_EXCHANGED = "token_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    SESSION_ISSUED = "session_issued"
    AUTH_FAILED = "auth_failed"


TERMINAL_STAGES = frozenset({LoginStage.SESSION_ISSUED, LoginStage.AUTH_FAILED})


@dataclass
class LoginAttempt:
    """Progress of one callback through the login stages."""

    stage: LoginStage = LoginStage.STATE_ISSUED
    history: list[LoginStage] = field(default_factory=lambda: [LoginStage.STATE_ISSUED])
    error: Optional[AuthError] = None
    session: Optional[SessionRecord] = None

    @property
    def succeeded(self) -> bool:
        return self.stage is LoginStage.SESSION_ISSUED

    def advance(self, stage: LoginStage):
        if self.stage in TERMINAL_STAGES:
            raise RuntimeError(f"login attempt already finished in {self.stage.value}")
        self.stage = stage
        self.history.append(stage)

    def fail(self, error: AuthError):
        self.advance(LoginStage.AUTH_FAILED)
        self.error = error


class AuthGateway:
    """Drives login attempts against the injected stores and OAuth client."""

    def __init__(
        self,
        state_store: StateStore,
        session_store: SessionStore,
        oauth_client: GoogleOAuthClient,
    ):
        self.state_store = state_store
        self.session_store = session_store
        self.oauth_client = oauth_client

    def start_login(self) -> str:
        """
        Issue a state value and return the provider authorization URL.

        The caller redirects the browser; the gateway never does.
        """
        state = self.state_store.issue()
        return self.oauth_client.build_authorization_url(state.value)

    async def complete_login(
        self,
        code: Optional[str],
        state: Optional[str],
        provider_error: Optional[str] = None,
    ) -> LoginAttempt:
        """
        Run the callback half of the flow.

        Args:
            code: Authorization code from the callback query
            state: State value from the callback query
            provider_error: ``error`` query parameter, set when the user
                declined at the provider

        Returns:
            The finished attempt, either SESSION_ISSUED with a session
            record or AUTH_FAILED with the error.
        """
        attempt = LoginAttempt()
        try:
            await self._run(attempt, code, state, provider_error)
        except AuthError as e:
            logger.warning(
                "login_failed",
                reason=e.code,
                detail=e.detail,
                failed_after=attempt.stage.value,
            )
            attempt.fail(e)
        return attempt

    async def _run(self, attempt: LoginAttempt, code, state, provider_error):
        if provider_error:
            # Burn the state so the same value cannot be replayed later.
            if state:
                self.state_store.validate_and_consume(state)
            raise ProviderDenied(f"provider returned error={provider_error}")
        if not code:
            raise MissingCode()
        if not state:
            raise MissingState()
        if not self.state_store.validate_and_consume(state):
            raise InvalidOrExpiredState()
        attempt.advance(LoginStage.CODE_RECEIVED)

        tokens = await self.oauth_client.exchange_code_for_token(code)
        attempt.advance(LoginStage.TOKEN_EXCHANGED)

        identity = await self.oauth_client.fetch_profile(tokens.access_token)
        attempt.advance(LoginStage.PROFILE_FETCHED)

        attempt.session = self.session_store.upsert(identity, tokens)
        attempt.advance(LoginStage.SESSION_ISSUED)
        logger.info("login_succeeded", user_id=identity.sub)
