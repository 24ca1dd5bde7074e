# tests/v1/test_jwt_validation.py
"""Tests for JWT token validation edge cases and security."""

import time
from datetime import timedelta
from unittest.mock import patch

from fastapi import status
from jose import jwt
from sqlalchemy.orm import Session

from veltis.core.settings import settings
from veltis.models import User
from veltis.services import user_service
from veltis.services.session import create_access_token

PROTECTED_URL = "/api/v1/auth/user"
PROFILE_URL = "/api/v1/users/me/profile"


def _token(claims: dict, secret: str | None = None, algorithm: str | None = None) -> str:
    return jwt.encode(
        claims,
        secret or settings.secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


class TestJWTValidationEdgeCases:
    """Test JWT validation edge cases and security scenarios."""

    def test_missing_authorization_header(self, client):
        response = client.get(PROTECTED_URL)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"

    def test_jwt_without_bearer_prefix(self, client, test_user):
        token = create_access_token(test_user.id, test_user.wallet_address)
        response = client.get(PROTECTED_URL, headers={"Authorization": token})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_with_empty_token(self, client):
        response = client.get(PROTECTED_URL, headers={"Authorization": "Bearer "})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_garbage_token_never_reaches_handler(self, client, db_session: Session, test_user):
        """`Bearer garbage` is rejected before the profile update runs."""
        with patch.object(user_service, "update_user") as update_user:
            response = client.patch(
                PROFILE_URL,
                json={"name": "Mallory"},
                headers={"Authorization": "Bearer garbage"},
            )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid token"
        update_user.assert_not_called()
        db_session.expire_all()
        assert db_session.get(User, test_user.id).name == "Test User"

    def test_jwt_with_wrong_secret(self, client, test_user):
        now = int(time.time())
        token = _token(
            {"sub": test_user.id, "wallet": test_user.wallet_address, "iat": now, "exp": now + 3600},
            secret="wrong_secret_key",
        )
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_with_wrong_algorithm(self, client, test_user):
        now = int(time.time())
        token = _token(
            {"sub": test_user.id, "iat": now, "exp": now + 3600},
            algorithm="HS512",
        )
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_with_expired_token(self, client, test_user):
        token = create_access_token(
            test_user.id,
            test_user.wallet_address,
            expires_delta=timedelta(seconds=-10),
        )
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Token expired"

    def test_jwt_with_missing_subject(self, client):
        now = int(time.time())
        token = _token({"wallet": "0x" + "1" * 40, "iat": now, "exp": now + 3600})
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["detail"] == "Invalid token payload"

    def test_jwt_with_empty_subject(self, client):
        now = int(time.time())
        token = _token({"sub": "", "iat": now, "exp": now + 3600})
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_jwt_for_unknown_user(self, client):
        token = create_access_token("a1b2c3d4-0000-0000-0000-000000000000", "0x" + "2" * 40)
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_jwt_with_extra_claims(self, client, test_user):
        now = int(time.time())
        token = _token(
            {
                "sub": test_user.id,
                "wallet": test_user.wallet_address,
                "iat": now,
                "exp": now + 3600,
                "admin": True,
            }
        )
        response = client.get(PROTECTED_URL, headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == status.HTTP_200_OK
