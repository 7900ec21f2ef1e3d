"""
Name: Token Codec Tests

Responsibilities:
  - Validate structural checks (three segments)
  - Validate fail-closed decoding of malformed payloads
  - Validate expiry with the safety buffer
"""

import base64
import json
import time

import pytest
from pydantic import ValidationError

from utility_portal.crosscutting.config import Settings
from utility_portal.identity import token_codec

pytestmark = pytest.mark.unit


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


_HEADER = _b64(json.dumps({"alg": "HS256", "typ": "JWT"}).encode())


class TestFormat:
    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d", None])
    def test_rejects_wrong_segment_count(self, token):
        assert token_codec.is_valid_format(token) is False

    def test_accepts_three_segments(self, make_token):
        assert token_codec.is_valid_format(make_token()) is True


class TestDecode:
    @pytest.mark.parametrize("token", ["", "onlyone", "two.parts"])
    def test_returns_none_for_fewer_than_three_segments(self, token):
        assert token_codec.decode(token) is None

    def test_returns_none_for_non_json_payload(self):
        token = f"{_HEADER}.{_b64(b'not json at all')}.sig"
        assert token_codec.decode(token) is None

    def test_returns_none_for_json_array_payload(self):
        token = f"{_HEADER}.{_b64(b'[1, 2, 3]')}.sig"
        assert token_codec.decode(token) is None

    def test_returns_none_for_unreadable_header(self, make_token):
        token = make_token()
        broken = _b64(b"not a header") + "." + token.split(".", 1)[1]

        assert token_codec.decode(broken) is None
        assert token_codec.is_expired(broken) is True

    def test_returns_claims_without_verifying_signature(self, make_token):
        token = make_token(role="CASHIER")
        tampered = token.rsplit(".", 1)[0] + "." + _b64(b"forged-signature")

        claims = token_codec.decode(tampered)

        assert claims is not None
        assert claims["role"] == "CASHIER"


class TestIsExpired:
    def test_expired_one_second_ago(self, make_token):
        assert token_codec.is_expired(make_token(expires_in=-1)) is True

    def test_expiring_inside_buffer_counts_as_expired(self, make_token):
        assert token_codec.is_expired(make_token(expires_in=200)) is True

    def test_expiring_outside_buffer_is_valid(self, make_token):
        assert token_codec.is_expired(make_token(expires_in=400)) is False

    def test_explicit_buffer_and_clock(self, make_token):
        now = time.time()
        token = make_token(expires_in=1000)

        assert token_codec.is_expired(token, now=now, buffer_seconds=600) is False
        assert token_codec.is_expired(token, now=now + 500, buffer_seconds=600) is True

    def test_buffer_below_minimum_is_floored(self, make_token):
        token = make_token(expires_in=200)

        assert token_codec.is_expired(token, buffer_seconds=0) is True

    def test_settings_reject_buffer_below_minimum(self):
        with pytest.raises(ValidationError):
            Settings(token_expiry_buffer_seconds=0)

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_exp_is_expired(self, literal):
        payload = ('{"sub": "1", "exp": %s}' % literal).encode()
        token = f"{_HEADER}.{_b64(payload)}.sig"

        assert token_codec.is_expired(token) is True

    def test_missing_exp_is_expired(self):
        token = f"{_HEADER}.{_b64(json.dumps({'sub': '1'}).encode())}.sig"
        assert token_codec.is_expired(token) is True

    def test_non_numeric_exp_is_expired(self):
        payload = json.dumps({"exp": "tomorrow"}).encode()
        assert token_codec.is_expired(f"{_HEADER}.{_b64(payload)}.sig") is True

    def test_malformed_token_is_expired(self):
        assert token_codec.is_expired("garbage") is True
