"""Tests for bearer token handling."""

from datetime import timedelta

import pytest
from jose import jwt

from storefront.common.auth import create_access_token, decode_user_id
from storefront.common.errors import UnauthorizedError


class TestDecodeUserId:
    def test_round_trip(self, test_settings):
        token = create_access_token("user-7", test_settings)

        assert decode_user_id(f"Bearer {token}", test_settings) == "user-7"

    def test_scheme_is_case_insensitive(self, test_settings):
        token = create_access_token("user-7", test_settings)

        assert decode_user_id(f"bearer {token}", test_settings) == "user-7"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Basic abc", "Token xyz"])
    def test_malformed_header(self, test_settings, header):
        with pytest.raises(UnauthorizedError):
            decode_user_id(header, test_settings)

    def test_expired(self, test_settings):
        token = create_access_token("user-7", test_settings, expires_delta=timedelta(seconds=-5))

        with pytest.raises(UnauthorizedError):
            decode_user_id(f"Bearer {token}", test_settings)

    def test_wrong_secret(self, test_settings):
        token = jwt.encode({"sub": "user-7"}, "some-other-secret", algorithm=test_settings.JWT_ALGORITHM)

        with pytest.raises(UnauthorizedError):
            decode_user_id(f"Bearer {token}", test_settings)

    def test_missing_subject(self, test_settings):
        token = jwt.encode({"role": "admin"}, test_settings.JWT_SECRET, algorithm=test_settings.JWT_ALGORITHM)

        with pytest.raises(UnauthorizedError) as exc_info:
            decode_user_id(f"Bearer {token}", test_settings)
        assert exc_info.value.status_code == 401
