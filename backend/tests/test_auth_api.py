# Overview: Pytest coverage for login, refresh, logout, registration and /me.

"""
Authentication API Tests

- /login issues an access token and an HttpOnly refresh cookie
- /refresh rotates both credentials using only the cookie
- /logout clears the cookie
- /register creates STAFF accounts in an existing shop
"""

from shopdesk.models import SecurityEvent, User

from conftest import PASSWORD, auth_headers, login


class TestLogin:

    def test_login_success(self, app, client, db_session, staff_a):
        response = login(client, "STAFF@alpha.test")

        assert response.status_code == 200
        data = response.json["data"]
        assert data["user"]["id"] == staff_a.id
        assert data["user"]["role"] == "STAFF"
        assert data["user"]["shop"]["slug"] == "alpha-mobile"
        assert "password_hash" not in data["user"]
        assert data["access_token"]

        cookie_header = response.headers.get("Set-Cookie")
        assert cookie_header.startswith(f'{app.config["REFRESH_COOKIE_NAME"]}=')
        assert "HttpOnly" in cookie_header
        assert staff_a.last_login_at is not None

    def test_wrong_password(self, client, db_session, staff_a):
        response = login(client, "staff@alpha.test", "Wrong123!")
        assert response.status_code == 401
        assert response.json["error"] == "Invalid credentials"

        event = db_session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").first()
        assert event is not None
        assert event.success is False

    def test_unknown_email_same_message(self, client, db_session):
        response = login(client, "ghost@nowhere.test")
        assert response.status_code == 401
        assert response.json["error"] == "Invalid credentials"

    def test_inactive_user(self, client, db_session, staff_a):
        staff_a.is_active = False
        db_session.commit()
        assert login(client, "staff@alpha.test").status_code == 401

    def test_inactive_shop(self, client, db_session, shop_a, staff_a):
        shop_a.is_active = False
        db_session.commit()
        assert login(client, "staff@alpha.test").status_code == 401

    def test_missing_fields(self, client, db_session):
        response = client.post('/api/v1/auth/login', json={"email": "a@b.test"})
        assert response.status_code == 400


class TestRefreshAndLogout:

    def test_refresh_uses_cookie(self, app, client, db_session, staff_a):
        login(client, "staff@alpha.test")

        response = client.post('/api/v1/auth/refresh')

        assert response.status_code == 200
        token = response.json["data"]["access_token"]
        assert response.json["data"]["user"]["id"] == staff_a.id
        assert client.get('/api/v1/auth/me', headers={'Authorization': f'Bearer {token}'}).status_code == 200
        assert client.get_cookie(app.config["REFRESH_COOKIE_NAME"]) is not None

    def test_refresh_without_cookie(self, client, db_session):
        response = client.post('/api/v1/auth/refresh')
        assert response.status_code == 401

    def test_refresh_rejects_access_token_cookie(self, app, client, db_session, staff_a):
        access = auth_headers(staff_a)["Authorization"].split(" ", 1)[1]
        client.set_cookie(app.config["REFRESH_COOKIE_NAME"], access)
        assert client.post('/api/v1/auth/refresh').status_code == 401

    def test_refresh_for_deactivated_user(self, client, db_session, staff_a):
        login(client, "staff@alpha.test")
        staff_a.is_active = False
        db_session.commit()
        assert client.post('/api/v1/auth/refresh').status_code == 401

    def test_refresh_after_shop_deactivated(self, client, db_session, super_admin, shop_a, staff_a):
        login(client, "staff@alpha.test")
        staff_headers = auth_headers(staff_a)
        assert client.get('/api/v1/invoices', headers=staff_headers).status_code == 200

        response = client.delete(f'/api/v1/admin/shops/{shop_a.id}', headers=auth_headers(super_admin))
        assert response.status_code == 200

        assert client.post('/api/v1/auth/refresh').status_code == 401
        assert client.get('/api/v1/invoices', headers=staff_headers).status_code == 401
        assert client.get('/api/v1/auth/me', headers=staff_headers).status_code == 401

    def test_logout_clears_cookie(self, app, client, db_session, staff_a):
        login(client, "staff@alpha.test")

        response = client.post('/api/v1/auth/logout')

        assert response.status_code == 200
        assert client.get_cookie(app.config["REFRESH_COOKIE_NAME"]) is None
        assert client.post('/api/v1/auth/refresh').status_code == 401


class TestRegister:

    def _register(self, client, **overrides):
        payload = {
            "email": "new.hire@alpha.test",
            "name": "New Hire",
            "password": PASSWORD,
            "shop_slug": "alpha-mobile",
        }
        payload.update(overrides)
        return client.post('/api/v1/auth/register', json=payload)

    def test_register_creates_staff(self, client, db_session, shop_a):
        response = self._register(client)

        assert response.status_code == 201
        user = response.json["data"]["user"]
        assert user["role"] == "STAFF"
        assert user["shop_id"] == shop_a.id
        assert response.json["data"]["access_token"]

    def test_register_ignores_requested_role(self, client, db_session, shop_a):
        response = self._register(client, role="ADMIN")
        assert response.status_code == 201
        assert db_session.query(User).filter_by(email="new.hire@alpha.test").one().role == "STAFF"

    def test_duplicate_email(self, client, db_session, staff_a):
        response = self._register(client, email="staff@alpha.test")
        assert response.status_code == 409

    def test_unknown_shop(self, client, db_session, shop_a):
        assert self._register(client, shop_slug="nope").status_code == 404

    def test_weak_password(self, client, db_session, shop_a):
        response = self._register(client, password="short")
        assert response.status_code == 400

    def test_missing_slug(self, client, db_session, shop_a):
        assert self._register(client, shop_slug=None).status_code == 400


class TestMe:

    def test_me(self, client, db_session, admin_a):
        response = client.get('/api/v1/auth/me', headers=auth_headers(admin_a))
        assert response.status_code == 200
        assert response.json["data"]["email"] == "admin@alpha.test"
        assert response.json["data"]["shop"]["name"] == "Alpha Mobile"

    def test_me_super_admin(self, client, db_session, super_admin):
        response = client.get('/api/v1/auth/me', headers=auth_headers(super_admin))
        assert response.status_code == 200
        assert response.json["data"]["shop"] is None


class TestLoginThrottle:

    def test_lockout_after_max_failures(self, app, client, db_session, staff_a):
        max_attempts = app.config["LOGIN_MAX_FAILED_ATTEMPTS"]
        for _ in range(max_attempts - 1):
            assert login(client, "staff@alpha.test", "Wrong123!").status_code == 401

        response = login(client, "staff@alpha.test", "Wrong123!")
        assert response.status_code == 429
        assert response.json["retry_after_seconds"] == app.config["LOGIN_LOCKOUT_MINUTES"] * 60
        assert response.headers["Retry-After"] == str(app.config["LOGIN_LOCKOUT_MINUTES"] * 60)

        # Correct password is refused while locked
        response = login(client, "Staff@Alpha.test")
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert "access_token" not in (response.json.get("data") or {})

        failures = db_session.query(SecurityEvent).filter_by(
            event_type="LOGIN_FAILED", identifier="staff@alpha.test"
        ).count()
        assert failures == max_attempts

    def test_success_resets_failure_count(self, app, client, db_session, staff_a):
        max_attempts = app.config["LOGIN_MAX_FAILED_ATTEMPTS"]
        for _ in range(max_attempts - 1):
            login(client, "staff@alpha.test", "Wrong123!")
        assert login(client, "staff@alpha.test").status_code == 200

        for _ in range(max_attempts - 1):
            assert login(client, "staff@alpha.test", "Wrong123!").status_code == 401
        assert login(client, "staff@alpha.test").status_code == 200

    def test_lockout_is_per_email(self, app, client, db_session, staff_a, admin_a):
        for _ in range(app.config["LOGIN_MAX_FAILED_ATTEMPTS"]):
            login(client, "staff@alpha.test", "Wrong123!")

        assert login(client, "staff@alpha.test").status_code == 429
        assert login(client, "admin@alpha.test").status_code == 200

    def test_unknown_email_is_throttled_too(self, app, client, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "LOGIN_MAX_FAILED_ATTEMPTS", 2)
        assert login(client, "ghost@nowhere.test").status_code == 401
        assert login(client, "ghost@nowhere.test").status_code == 429
        assert login(client, "ghost@nowhere.test").status_code == 429

    def test_registration_limited_per_ip(self, app, client, db_session, shop_a, monkeypatch):
        monkeypatch.setitem(app.config, "REGISTER_MAX_ATTEMPTS", 2)

        def register(n):
            return client.post('/api/v1/auth/register', json={
                "email": f"hire{n}@alpha.test",
                "name": f"Hire {n}",
                "password": PASSWORD,
                "shop_slug": "alpha-mobile",
            })

        assert register(1).status_code == 201
        assert register(2).status_code == 201

        response = register(3)
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert db_session.query(User).filter_by(email="hire3@alpha.test").first() is None
