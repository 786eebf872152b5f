import pytest

from feeledger.app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


def test_password_hashing_not_plain():
    plain = "password123"
    hashed = get_password_hash(plain)
    assert hashed and hashed != plain


def test_verify_password():
    hashed = get_password_hash("secret")
    assert verify_password("secret", hashed)
    assert not verify_password("wrong", hashed)


def test_token_carries_subject_and_organization():
    token = create_access_token(user_id=123, organization_id=9)
    payload = decode_access_token(token)
    assert payload.get("sub") == "123"
    assert payload.get("org") == "9"
    assert "exp" in payload


def test_token_without_organization_has_no_org_claim():
    payload = decode_access_token(create_access_token(user_id=5))
    assert "org" not in payload


def test_expired_token_raises_value_error():
    expired_token = create_access_token(user_id=1, expires_minutes=-1)
    with pytest.raises(ValueError):
        decode_access_token(expired_token)


def test_invalid_token_raises_value_error():
    with pytest.raises(ValueError):
        decode_access_token("invalid.token.value")
