"""
Settings tests.
"""
import pytest
from pydantic import ValidationError

from tests.support import make_settings


def test_redirect_uri_is_backend_plus_callback_path():
    settings = make_settings(BACKEND_URL="https://api.example.com/")

    assert settings.GOOGLE_REDIRECT_URI == "https://api.example.com/auth/google/callback"


def test_scopes_accept_spaces_or_commas():
    assert make_settings(GOOGLE_SCOPES="openid,email profile").scopes == ["openid", "email", "profile"]


def test_frontend_locations():
    settings = make_settings(FRONTEND_URL="https://app.example.com/")

    assert settings.login_success_url == "https://app.example.com/dashboard.html"
    assert settings.login_failure_url == "https://app.example.com/"


def test_cross_origin_detection():
    assert make_settings(FRONTEND_URL="http://localhost:3000", BACKEND_URL="http://localhost:5000").cross_origin
    assert not make_settings(FRONTEND_URL="https://a.com", BACKEND_URL="https://a.com").cross_origin


def test_production_requires_real_jwt_secret():
    with pytest.raises(ValidationError):
        make_settings(ENVIRONMENT="production")


def test_state_ttl_must_be_positive():
    with pytest.raises(ValidationError):
        make_settings(STATE_TTL_SECONDS=0)


def test_settings_are_immutable():
    settings = make_settings()

    with pytest.raises(ValidationError):
        settings.GOOGLE_CLIENT_ID = "other"
