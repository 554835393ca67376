"""
Test doubles: a controllable clock and a stubbed Google.
"""
from urllib.parse import parse_qs, urlsplit

import httpx

from authrelay.config import Settings

TOKEN_URL = "https://oauth2.test/token"
USERINFO_URL = "https://oauth2.test/userinfo"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGoogle:
    """
    httpx transport handler standing in for Google's token and userinfo endpoints.

    Records every request so tests can assert what reached the provider.
    """

    def __init__(self):
        self.token_payload = {"access_token": "T", "expires_in": 3599, "token_type": "Bearer"}
        self.token_status = 200
        self.profile_payload = {
            "sub": "u1",
            "email": "a@b.com",
            "name": "Ada",
            "picture": "https://example.com/ada.png",
        }
        self.profile_status = 200
        self.profile_transport_failures = 0
        self.token_requests: list[httpx.Request] = []
        self.profile_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == TOKEN_URL:
            self.token_requests.append(request)
            return httpx.Response(self.token_status, json=self.token_payload)
        if url == USERINFO_URL:
            self.profile_requests.append(request)
            if self.profile_transport_failures > 0:
                self.profile_transport_failures -= 1
                raise httpx.ConnectError("connection reset", request=request)
            return httpx.Response(self.profile_status, json=self.profile_payload)
        return httpx.Response(404)

    def token_form(self, index: int = 0) -> dict:
        body = self.token_requests[index].content.decode()
        return {key: values[0] for key, values in parse_qs(body).items()}


def make_settings(**overrides) -> Settings:
    values = {
        "GOOGLE_CLIENT_ID": "client-123",
        "GOOGLE_CLIENT_SECRET": "secret-456",
        "GOOGLE_TOKEN_URL": TOKEN_URL,
        "GOOGLE_USERINFO_URL": USERINFO_URL,
        "FRONTEND_URL": "http://localhost:3000",
        "BACKEND_URL": "http://testserver",
        "ENVIRONMENT": "development",
        "PROFILE_RETRY_DELAY_SECONDS": 0.0,
        "SENTRY_DSN": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def query_params(url: str) -> dict:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


def state_from(auth_url: str) -> str:
    return query_params(auth_url)["state"]
