"""
Google OAuth client tests against a stubbed transport.
"""
import httpx
import pytest

from authrelay.errors import ExchangeError, ProfileFetchError
from authrelay.services.oauth_client import GoogleOAuthClient
from tests.support import FakeGoogle, make_settings, query_params


def test_authorization_url_carries_client_redirect_scope_and_state(oauth_client):
    url = oauth_client.build_authorization_url("S")

    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    params = query_params(url)
    assert params["client_id"] == "client-123"
    assert params["redirect_uri"] == "http://testserver/auth/google/callback"
    assert params["response_type"] == "code"
    assert params["scope"] == "openid email profile"
    assert params["state"] == "S"
    assert params["access_type"] == "offline"
    assert params["prompt"] == "consent"
    assert "client_secret" not in params


def test_authorization_url_is_deterministic(oauth_client):
    assert oauth_client.build_authorization_url("S") == oauth_client.build_authorization_url("S")


def test_authorization_url_omits_unset_extras(google):
    settings = make_settings(GOOGLE_ACCESS_TYPE=None, GOOGLE_PROMPT=None)
    client = GoogleOAuthClient(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(google)))

    params = query_params(client.build_authorization_url("S"))

    assert "access_type" not in params
    assert "prompt" not in params


async def test_exchange_posts_code_credentials_and_redirect_uri(oauth_client, google):
    tokens = await oauth_client.exchange_code_for_token("abc123")

    assert tokens.access_token == "T"
    assert tokens.expires_in == 3599
    assert len(google.token_requests) == 1
    assert google.token_form() == {
        "code": "abc123",
        "client_id": "client-123",
        "client_secret": "secret-456",
        "redirect_uri": "http://testserver/auth/google/callback",
        "grant_type": "authorization_code",
    }


async def test_exchange_keeps_refresh_token(oauth_client, google):
    google.token_payload = {"access_token": "T", "refresh_token": "R", "expires_in": "120"}

    tokens = await oauth_client.exchange_code_for_token("abc123")

    assert tokens.refresh_token == "R"
    assert tokens.expires_in == 120


async def test_exchange_rejected_raises_and_is_not_retried(oauth_client, google):
    google.token_status = 400
    google.token_payload = {"error": "invalid_grant", "error_description": "Bad Request"}

    with pytest.raises(ExchangeError):
        await oauth_client.exchange_code_for_token("abc123")

    assert len(google.token_requests) == 1


async def test_exchange_without_access_token_raises(oauth_client, google):
    google.token_payload = {"token_type": "Bearer"}

    with pytest.raises(ExchangeError):
        await oauth_client.exchange_code_for_token("abc123")


async def test_exchange_with_mistyped_fields_raises(oauth_client, google):
    google.token_payload = {"access_token": 12345}

    with pytest.raises(ExchangeError):
        await oauth_client.exchange_code_for_token("abc123")


async def test_exchange_non_json_body_raises(settings):
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    client = GoogleOAuthClient(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(ExchangeError):
        await client.exchange_code_for_token("abc123")


async def test_exchange_transport_failure_raises_once(settings):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectTimeout("timed out", request=request)

    client = GoogleOAuthClient(settings, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    with pytest.raises(ExchangeError):
        await client.exchange_code_for_token("abc123")
    assert len(calls) == 1


async def test_fetch_profile_sends_bearer_token(oauth_client, google):
    identity = await oauth_client.fetch_profile("T")

    assert identity.sub == "u1"
    assert identity.email == "a@b.com"
    assert identity.name == "Ada"
    assert identity.picture == "https://example.com/ada.png"
    assert google.profile_requests[0].headers["Authorization"] == "Bearer T"


async def test_fetch_profile_accepts_v2_id_field(oauth_client, google):
    google.profile_payload = {"id": "1098", "email": "a@b.com"}

    identity = await oauth_client.fetch_profile("T")

    assert identity.sub == "1098"


async def test_fetch_profile_missing_subject_raises(oauth_client, google):
    google.profile_payload = {"email": "a@b.com"}

    with pytest.raises(ProfileFetchError):
        await oauth_client.fetch_profile("T")


async def test_fetch_profile_with_mistyped_fields_raises(oauth_client, google):
    google.profile_payload = {"sub": "u1", "email": ["x"]}

    with pytest.raises(ProfileFetchError):
        await oauth_client.fetch_profile("T")


async def test_fetch_profile_http_error_is_not_retried(oauth_client, google):
    google.profile_status = 401

    with pytest.raises(ProfileFetchError):
        await oauth_client.fetch_profile("T")
    assert len(google.profile_requests) == 1


async def test_fetch_profile_retries_transient_failures(oauth_client, google):
    google.profile_transport_failures = 2

    identity = await oauth_client.fetch_profile("T")

    assert identity.sub == "u1"
    assert len(google.profile_requests) == 3


async def test_fetch_profile_gives_up_after_bounded_retries(oauth_client, google):
    google.profile_transport_failures = 10

    with pytest.raises(ProfileFetchError):
        await oauth_client.fetch_profile("T")
    # one attempt plus PROFILE_FETCH_RETRIES
    assert len(google.profile_requests) == 3


async def test_aclose_closes_http_client(settings):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(FakeGoogle()))
    client = GoogleOAuthClient(settings, http_client=http_client)

    await client.aclose()

    assert http_client.is_closed
