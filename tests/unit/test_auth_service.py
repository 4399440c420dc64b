"""Unit tests for token handling and role resolution."""

import pytest
from fastapi import HTTPException

from arena.models.profile import Profile, UserType
from arena.services.auth import (
    SELECT_TYPE_PATH,
    create_tokens,
    redirect_path,
    require_user_type,
    verify_token,
)


class TestTokens:
    def test_access_and_refresh_tokens_carry_user_and_type(self):
        tokens = create_tokens(7)
        access = verify_token(tokens["access_token"])
        refresh = verify_token(tokens["refresh_token"])
        assert access["sub"] == "7" and access["type"] == "access"
        assert refresh["sub"] == "7" and refresh["type"] == "refresh"

    def test_garbage_token_is_unauthorized(self):
        with pytest.raises(HTTPException) as exc:
            verify_token("not-a-jwt")
        assert exc.value.status_code == 401


class TestRedirects:
    def test_missing_profile_goes_to_type_selection(self):
        assert redirect_path(None) == SELECT_TYPE_PATH

    def test_profile_without_type_goes_to_type_selection(self):
        assert redirect_path(Profile(user_id=1)) == "/app/select-type"

    def test_company_dashboard(self):
        assert redirect_path(Profile(user_id=1, user_type=UserType.COMPANY)) == "/app/company"

    def test_participant_dashboard(self):
        assert redirect_path(Profile(user_id=1, user_type=UserType.PARTICIPANT)) == "/app"


class TestRoleGate:
    def test_matching_role_passes(self):
        gate = require_user_type(UserType.COMPANY)
        profile = Profile(user_id=1, user_type=UserType.COMPANY)
        assert gate(profile) is profile

    def test_wrong_role_points_to_own_dashboard(self):
        gate = require_user_type(UserType.COMPANY)
        with pytest.raises(HTTPException) as exc:
            gate(Profile(user_id=1, user_type=UserType.PARTICIPANT))
        assert exc.value.status_code == 403
        assert exc.value.headers == {"Location": "/app"}

    def test_missing_role_points_to_type_selection(self):
        gate = require_user_type(UserType.PARTICIPANT)
        with pytest.raises(HTTPException) as exc:
            gate(Profile(user_id=1))
        assert exc.value.status_code == 403
        assert exc.value.headers == {"Location": SELECT_TYPE_PATH}
