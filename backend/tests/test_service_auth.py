from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from scribe.services.auth import AuthGateway

SECRET = "unit-test-secret"


@pytest.fixture
def gateway() -> AuthGateway:
    return AuthGateway(SECRET)


def test_issued_token_resolves_to_same_user(gateway):
    token = gateway.issue_token("user-123")
    assert gateway.resolve_caller(token) == "user-123"


def test_token_expires_after_seven_days(gateway):
    token = gateway.issue_token("user-123")
    claims = jwt.get_unverified_claims(token)

    expires = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
    assert timedelta(days=6, hours=23) < expires - datetime.now(timezone.utc) <= timedelta(days=7)


@pytest.mark.parametrize(
    "token",
    [
        None,
        "",
        "not-a-jwt",
        jwt.encode({"userId": "user-123"}, "some-other-secret", algorithm="HS256"),
        jwt.encode({"sub": "user-123"}, SECRET, algorithm="HS256"),
        jwt.encode(
            {"userId": "user-123", "exp": datetime.now(timezone.utc) - timedelta(seconds=5)},
            SECRET,
            algorithm="HS256",
        ),
    ],
    ids=["none", "empty", "garbage", "wrong-key", "no-user-claim", "expired"],
)
def test_bad_tokens_resolve_to_nobody(gateway, token):
    assert gateway.resolve_caller(token) is None


def test_password_hash_round_trip():
    hashed = AuthGateway.hash_secret("secret1")

    assert hashed != "secret1"
    assert AuthGateway.verify_secret("secret1", hashed) is True
    assert AuthGateway.verify_secret("secret2", hashed) is False


def test_same_password_hashes_differently():
    assert AuthGateway.hash_secret("secret1") != AuthGateway.hash_secret("secret1")


def test_malformed_hash_does_not_raise():
    assert AuthGateway.verify_secret("secret1", "not-a-bcrypt-hash") is False


def test_gateway_requires_secret():
    with pytest.raises(ValueError):
        AuthGateway("")
