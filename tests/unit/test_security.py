"""Unit tests for credential helpers."""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest
from passlib.hash import pbkdf2_sha256
from pydantic import SecretStr
from starlette.requests import Request

from hotelops.config.settings import Settings
from hotelops.core.exceptions import InvalidCredentialError
from hotelops.core.security import (
    create_access_token,
    decode_access_token,
    extract_token,
    get_client_ip,
    hash_password,
    validate_password_strength,
)


@pytest.fixture
def settings() -> Settings:
    return Settings(JWT_SECRET=SecretStr("unit-test-secret-with-enough-length-0123456789"))


def make_request(headers: dict[str, str] | None = None, client=("10.0.0.9", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestPasswords:
    def test_hash_is_salted_pbkdf2(self):
        hashed = hash_password("Str0ng#Pass")
        assert hashed != "Str0ng#Pass"
        assert hashed.startswith("$pbkdf2-sha256$")
        assert pbkdf2_sha256.verify("Str0ng#Pass", hashed) is True
        assert pbkdf2_sha256.verify("wrong", hashed) is False
        assert hash_password("Str0ng#Pass") != hashed

    def test_strong_password_passes(self):
        assert validate_password_strength("Str0ng#Pass") == []

    @pytest.mark.parametrize(
        ("password", "fragment"),
        [
            ("Sh0#t", "at least"),
            ("nouppercase1#", "uppercase"),
            ("NOLOWERCASE1#", "lowercase"),
            ("NoDigitsHere#", "digit"),
            ("NoSpecial123", "special"),
        ],
    )
    def test_weak_passwords(self, password, fragment):
        errors = validate_password_strength(password)
        assert any(fragment in error for error in errors)


class TestAccessTokens:
    def test_round_trip_claims(self, settings):
        user_id, hotel_id = uuid4(), uuid4()
        token = create_access_token(user_id, "manager", hotel_id, ["room:read"], settings=settings)

        claims = decode_access_token(token, settings)

        assert claims["sub"] == user_id
        assert claims["role"] == "manager"
        assert claims["hotel_id"] == str(hotel_id)
        assert claims["permissions"] == ["room:read"]

    def test_expired_token(self, settings):
        token = create_access_token(
            uuid4(), "admin", settings=settings, expires_delta=timedelta(seconds=-5)
        )
        with pytest.raises(InvalidCredentialError, match="expired"):
            decode_access_token(token, settings)

    def test_wrong_signature(self, settings):
        other = Settings(JWT_SECRET=SecretStr("a-completely-different-secret-0123456789"))
        token = create_access_token(uuid4(), "admin", settings=other)
        with pytest.raises(InvalidCredentialError):
            decode_access_token(token, settings)

    def test_garbage_token(self, settings):
        with pytest.raises(InvalidCredentialError):
            decode_access_token("not.a.token", settings)

    def test_non_access_token_type(self, settings):
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "refresh", "exp": 4_102_444_800},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(InvalidCredentialError, match="not an access token"):
            decode_access_token(token, settings)

    def test_malformed_subject(self, settings):
        token = jwt.encode(
            {"sub": "user-1", "type": "access", "exp": 4_102_444_800},
            settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(InvalidCredentialError, match="malformed"):
            decode_access_token(token, settings)


class TestRequestHelpers:
    def test_bearer_header(self):
        assert extract_token(make_request({"Authorization": "Bearer abc.def"})) == "abc.def"

    def test_other_scheme_falls_back_to_cookie(self):
        request = make_request(
            {"Authorization": "Basic dXNlcjpwYXNz", "Cookie": "access_token=from-cookie"}
        )
        assert extract_token(request) == "from-cookie"

    def test_no_credentials(self):
        assert extract_token(make_request()) is None

    def test_client_ip_prefers_forwarded_for(self):
        request = make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert get_client_ip(request) == "203.0.113.5"

    def test_client_ip_real_ip_then_peer(self):
        assert get_client_ip(make_request({"X-Real-IP": "198.51.100.7"})) == "198.51.100.7"
        assert get_client_ip(make_request()) == "10.0.0.9"
        assert get_client_ip(make_request(client=None)) is None
