from datetime import timedelta

import jwt
import pytest

from tenantgate.core.config import settings
from tenantgate.core.security import (
    ALGORITHM,
    TokenError,
    create_access_token,
    create_admin_token,
    decode_admin_token,
    generate_api_secret,
    generate_otp,
    get_password_hash,
    otp_matches,
    verify_password,
)


def test_admin_token_round_trip_claims() -> None:
    token = create_admin_token("ops@example.com", "Ops", "ADMIN")
    claims = decode_admin_token(token)
    assert claims["sub"] == "ops@example.com"
    assert claims["email"] == "ops@example.com"
    assert claims["role"] == "ADMIN"
    assert claims["type"] == "admin"


def test_decode_rejects_other_token_type() -> None:
    token = create_access_token("x", timedelta(minutes=5), token_type="refresh")
    with pytest.raises(TokenError):
        decode_admin_token(token)


def test_decode_rejects_expired() -> None:
    token = create_access_token("x", timedelta(seconds=-30))
    with pytest.raises(TokenError):
        decode_admin_token(token)


def test_decode_rejects_foreign_signature() -> None:
    token = jwt.encode({"sub": "x", "type": "admin"}, "another-key", algorithm=ALGORITHM)
    with pytest.raises(TokenError):
        decode_admin_token(token)


def test_token_signed_with_settings_key() -> None:
    token = create_admin_token("a@b.com", None, "MSME")
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    assert payload["name"] is None


def test_secret_hashing() -> None:
    secret = generate_api_secret()
    hashed = get_password_hash(secret)
    assert hashed != secret
    assert verify_password(secret, hashed)
    assert not verify_password(secret + "x", hashed)


def test_generate_otp_is_six_digits() -> None:
    for _ in range(50):
        otp = generate_otp()
        assert len(otp) == 6
        assert otp.isdigit()


def test_otp_matches() -> None:
    assert otp_matches("012345", "012345")
    assert not otp_matches("012345", "012346")
