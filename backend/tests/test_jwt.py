"""
Tests for token signing, claim checks and bearer parsing.
"""

import pytest

from shared.config.constants import ErrorMessages, Roles
from shared.security.auth import (
    Principal,
    access_token_ttl,
    get_bearer_token,
    sign_jwt,
    sign_user_token,
    verify_jwt,
)
from shared.utils.exceptions import AuthenticationError


def test_round_trip_to_principal():
    claims = verify_jwt(sign_user_token(12, 3, Roles.VENDOR, "v@test.co"))
    assert claims["exp"] - claims["iat"] == access_token_ttl()
    assert Principal.from_claims(claims) == Principal(user_id=12, role=Roles.VENDOR, company_id=3, email="v@test.co")


def test_super_admin_without_company():
    principal = Principal.from_claims(verify_jwt(sign_user_token(1, None, Roles.SUPER_ADMIN)))
    assert principal.is_super_admin
    assert principal.company_id is None


def test_expired_token():
    token = sign_jwt({"sub": "1", "role": Roles.ADMIN, "company_id": 1}, ttl_seconds=-10)
    with pytest.raises(AuthenticationError) as exc:
        verify_jwt(token)
    assert exc.value.detail == ErrorMessages.TOKEN_EXPIRED


@pytest.mark.parametrize(
    "claims",
    [
        {"role": Roles.ADMIN, "company_id": 1},
        {"sub": "abc", "role": Roles.ADMIN, "company_id": 1},
        {"sub": "²", "role": Roles.ADMIN, "company_id": 1},
        {"sub": "١٢", "role": Roles.ADMIN, "company_id": 1},
        {"sub": "1", "role": "CHOFER", "company_id": 1},
        {"sub": "1", "role": Roles.ADMIN, "company_id": "1"},
        {"sub": "1", "role": Roles.VENDOR, "company_id": None},
    ],
)
def test_untrusted_claims_rejected(claims):
    with pytest.raises(AuthenticationError) as exc:
        verify_jwt(sign_jwt(claims))
    assert exc.value.status_code == 401
    assert exc.value.detail == ErrorMessages.INVALID_TOKEN


def test_tenant_id_requires_company():
    principal = Principal(user_id=1, role=Roles.SUPER_ADMIN, company_id=None)
    with pytest.raises(Exception) as exc:
        principal.tenant_id()
    assert exc.value.status_code == 403


class TestBearer:
    def test_absent(self):
        assert get_bearer_token(None) is None

    def test_valid(self):
        assert get_bearer_token("Bearer abc.def ") == "abc.def"

    @pytest.mark.parametrize("header", ["Basic abc", "Bearer", "Bearer   ", "token"])
    def test_malformed(self, header):
        with pytest.raises(AuthenticationError):
            get_bearer_token(header)


def test_superscript_subject_is_401_not_500(client):
    token = sign_jwt({"sub": "²", "role": Roles.ADMIN, "company_id": 1})
    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == ErrorMessages.INVALID_TOKEN
