# Overview: Pytest coverage for signed credential encoding/decoding and bearer auth.

"""
Identity Token Tests

Covers:
- access/refresh round trips and the claims they carry
- rejection of expired, tampered, wrongly-signed and wrong-kind tokens
- require_auth answering 401 for every bad credential shape
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from shopdesk.services import token_service
from shopdesk.services.token_service import InvalidTokenError

from conftest import auth_headers


def _raw_token(app, secret_key: str, **claims) -> str:
    return jwt.encode(claims, app.config[secret_key], algorithm=app.config["JWT_ALGORITHM"])


class TestTokenCodec:

    def test_access_token_carries_user_role_and_shop(self, db_session, staff_a):
        token = token_service.issue_access_token(staff_a)
        claims = token_service.decode_access_token(token)

        assert claims.user_id == staff_a.id
        assert claims.role == "STAFF"
        assert claims.shop_id == staff_a.shop_id
        assert claims.token_type == "access"

    def test_super_admin_token_has_no_shop(self, db_session, super_admin):
        claims = token_service.decode_access_token(token_service.issue_access_token(super_admin))
        assert claims.role == "SUPER_ADMIN"
        assert claims.shop_id is None

    def test_refresh_token_round_trip(self, db_session, staff_a):
        claims = token_service.decode_refresh_token(token_service.issue_refresh_token(staff_a))
        assert claims.user_id == staff_a.id
        assert claims.token_type == "refresh"

    def test_refresh_token_is_not_an_access_token(self, db_session, staff_a):
        refresh = token_service.issue_refresh_token(staff_a)
        with pytest.raises(InvalidTokenError):
            token_service.decode_access_token(refresh)

    def test_access_token_is_not_a_refresh_token(self, db_session, staff_a):
        access = token_service.issue_access_token(staff_a)
        with pytest.raises(InvalidTokenError):
            token_service.decode_refresh_token(access)

    def test_wrong_type_claim_rejected_even_with_right_secret(self, app, db_session, staff_a):
        now = datetime.now(timezone.utc)
        token = _raw_token(
            app, "JWT_SECRET_KEY",
            sub=str(staff_a.id), type="refresh", iat=now, exp=now + timedelta(minutes=5),
        )
        with pytest.raises(InvalidTokenError, match="Wrong token type"):
            token_service.decode_access_token(token)

    def test_expired_token_rejected(self, app, db_session, staff_a):
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = _raw_token(
            app, "JWT_SECRET_KEY",
            sub=str(staff_a.id), type="access", iat=past - timedelta(minutes=15), exp=past,
        )
        with pytest.raises(InvalidTokenError, match="expired"):
            token_service.decode_access_token(token)

    def test_tampered_token_rejected(self, db_session, staff_a):
        token = token_service.issue_access_token(staff_a)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])
        with pytest.raises(InvalidTokenError):
            token_service.decode_access_token(tampered)

    def test_missing_subject_rejected(self, app, db_session):
        now = datetime.now(timezone.utc)
        token = _raw_token(app, "JWT_SECRET_KEY", type="access", exp=now + timedelta(minutes=5))
        with pytest.raises(InvalidTokenError):
            token_service.decode_access_token(token)

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt"])
    def test_garbage_rejected(self, db_session, token):
        with pytest.raises(InvalidTokenError):
            token_service.decode_access_token(token)


class TestBearerAuthentication:

    def test_missing_header_is_401(self, client, db_session):
        response = client.get('/api/v1/invoices')
        assert response.status_code == 401
        assert response.json == {"success": False, "error": "Authentication required"}

    def test_non_bearer_header_is_401(self, client, db_session, staff_a):
        response = client.get('/api/v1/invoices', headers={'Authorization': 'Basic abc'})
        assert response.status_code == 401

    def test_invalid_token_is_401(self, client, db_session):
        response = client.get('/api/v1/invoices', headers={'Authorization': 'Bearer nope'})
        assert response.status_code == 401
        assert response.json["error"] == "Invalid or expired token"

    def test_refresh_token_as_bearer_is_401(self, client, db_session, staff_a):
        refresh = token_service.issue_refresh_token(staff_a)
        response = client.get('/api/v1/invoices', headers={'Authorization': f'Bearer {refresh}'})
        assert response.status_code == 401

    def test_deactivated_user_is_401(self, client, db_session, staff_a):
        headers = auth_headers(staff_a)
        staff_a.is_active = False
        db_session.commit()

        response = client.get('/api/v1/invoices', headers=headers)
        assert response.status_code == 401

    def test_deleted_user_is_401(self, client, db_session, staff_a):
        headers = auth_headers(staff_a)
        db_session.delete(staff_a)
        db_session.commit()

        response = client.get('/api/v1/invoices', headers=headers)
        assert response.status_code == 401

    def test_role_change_applies_without_new_token(self, client, db_session, staff_a):
        """Role comes from the user row, not the token claim."""
        headers = auth_headers(staff_a)
        assert client.get('/api/v1/shop-admin/users', headers=headers).status_code == 403

        staff_a.role = "ADMIN"
        db_session.commit()

        assert client.get('/api/v1/shop-admin/users', headers=headers).status_code == 200
