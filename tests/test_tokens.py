"""Unit tests for auth/tokens.py -- password hashing and JWT issue/verify.

Covers:
- hash_password() salts (two hashes of one password differ) and rejects empty / >72-byte input
- verify_password() never raises on mismatch or garbage hashes
- create_access_token() carries userId/email and a one-hour exp
- decode_access_token() tells malformed, badly signed and expired tokens apart
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import InvalidSignature, MalformedToken, TokenError, TokenExpired
from auth.tokens import create_access_token, decode_access_token, hash_password, verify_password
from core.config import get_settings

_OTHER_SECRET = "x" * 48


class TestPasswordHashing:
    def test_hash_verifies(self) -> None:
        hashed = hash_password("password123")
        assert verify_password("password123", hashed)

    def test_hash_is_salted(self) -> None:
        assert hash_password("password123") != hash_password("password123")

    def test_hash_does_not_contain_plaintext(self) -> None:
        assert "password123" not in hash_password("password123")

    def test_wrong_password_is_false(self) -> None:
        assert verify_password("wrongpass1", hash_password("password123")) is False

    def test_garbage_hash_is_false_not_error(self) -> None:
        assert verify_password("password123", "not-a-bcrypt-hash") is False

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValueError):
            hash_password("")

    def test_over_long_password_rejected(self) -> None:
        with pytest.raises(ValueError):
            hash_password("a" * 73)

    def test_multibyte_length_counts_bytes(self) -> None:
        """25 three-byte characters are 75 bytes -- over bcrypt's limit."""
        with pytest.raises(ValueError):
            hash_password("€" * 25)


class TestAccessToken:
    def test_claims_round_trip(self) -> None:
        token = create_access_token(7, "a@b.com")
        claims = decode_access_token(token)
        assert claims.user_id == 7
        assert claims.email == "a@b.com"

    def test_decodable_with_process_secret(self) -> None:
        token = create_access_token(7, "a@b.com")
        payload = jwt.decode(token, get_settings().secret_key, algorithms=["HS256"])
        assert payload["email"] == "a@b.com"
        assert payload["userId"] == 7

    def test_expires_one_hour_after_issue(self) -> None:
        issued = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = create_access_token(7, "a@b.com", now=issued)
        claims = decode_access_token(token, now=issued)
        assert claims.expires_at == issued + timedelta(hours=1)

    def test_expired_at_exact_exp(self) -> None:
        issued = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = create_access_token(7, "a@b.com", now=issued)
        with pytest.raises(TokenExpired):
            decode_access_token(token, now=issued + timedelta(hours=1))

    def test_valid_one_second_before_exp(self) -> None:
        issued = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = create_access_token(7, "a@b.com", now=issued)
        claims = decode_access_token(token, now=issued + timedelta(seconds=3599))
        assert claims.user_id == 7

    def test_other_secret_is_invalid_signature(self) -> None:
        token = jwt.encode(
            {"userId": 7, "email": "a@b.com", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            _OTHER_SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidSignature):
            decode_access_token(token)

    def test_secret_override(self) -> None:
        token = create_access_token(7, "a@b.com")
        with pytest.raises(InvalidSignature):
            decode_access_token(token, secret_key=_OTHER_SECRET)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "a.b"])
    def test_unparseable_is_malformed(self, token: str) -> None:
        with pytest.raises(MalformedToken):
            decode_access_token(token)

    def test_missing_identity_claims_is_malformed(self) -> None:
        token = jwt.encode(
            {"sub": "someone", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            get_settings().secret_key,
            algorithm="HS256",
        )
        with pytest.raises(MalformedToken):
            decode_access_token(token)

    def test_all_failures_share_base_class(self) -> None:
        for cls in (MalformedToken, InvalidSignature, TokenExpired):
            assert issubclass(cls, TokenError)
