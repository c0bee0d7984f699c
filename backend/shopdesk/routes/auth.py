# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/shopdesk/routes/auth.py
"""
Authentication API routes

- /login issues an access token (JSON body) and a refresh token (HttpOnly cookie)
- /login and /register are throttled through security_events (429)
- /refresh exchanges the refresh cookie for a new pair (both rotate)
- /logout clears the refresh cookie
- /register creates a STAFF account inside an existing, active shop
"""

from flask import Blueprint, request, current_app, g

from ..errors import ApiError, AuthenticationError, RateLimitError
from ..responses import ok, error_response, internal_error
from ..services import auth_service, login_throttle_service, token_service
from ..services.token_service import InvalidTokenError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


def _session_response(user, message: str, status: int = 200):
    access_token, refresh_token = token_service.issue_token_pair(user)
    response, status = ok(
        {"user": user.to_dict(), "access_token": access_token},
        status,
        message=message,
    )
    token_service.set_refresh_cookie(response, refresh_token)
    return response, status


@auth_bp.post("/register")
def register_route():
    """
    Self-registration into an existing shop.

    Body: email, name, password, shop_slug. The new user is STAFF.
    Limited to REGISTER_MAX_ATTEMPTS per client IP per window (429).
    """
    try:
        data = request.get_json(silent=True) or {}

        retry_after = login_throttle_service.registration_retry_after(request.remote_addr)
        if retry_after is not None:
            raise RateLimitError("Too many registration attempts, please try again later", retry_after)
        login_throttle_service.record_registration_attempt(data.get("email"))

        user = auth_service.register_user(
            email=data.get("email"),
            name=data.get("name"),
            password=data.get("password"),
            shop_slug=data.get("shop_slug"),
        )
        return _session_response(user, "Registration successful", 201)

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to register user")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and issue credentials.

    SECURITY:
    - One generic message for unknown email, wrong password or inactive account
    - Failed attempts are recorded as LOGIN_FAILED security events
    - LOGIN_MAX_FAILED_ATTEMPTS failures lock the email for
      LOGIN_LOCKOUT_MINUTES (429 with Retry-After)
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")
        identifier = email.strip().lower()[:255] if isinstance(email, str) else None

        if identifier:
            locked, seconds_remaining = login_throttle_service.is_account_locked(identifier)
            if locked:
                raise RateLimitError(
                    "Account temporarily locked due to too many failed login attempts",
                    seconds_remaining,
                )

        try:
            user = auth_service.authenticate(email, password)
        except AuthenticationError as e:
            failed_count = login_throttle_service.record_failed_attempt(
                identifier,
                reason=f"Failed login for {(identifier or '')[:200]}",
            )
            max_attempts = current_app.config["LOGIN_MAX_FAILED_ATTEMPTS"]
            if failed_count >= max_attempts:
                current_app.logger.warning("Login locked for %s after %s failures", identifier, failed_count)
                raise RateLimitError(
                    "Account locked due to too many failed login attempts",
                    current_app.config["LOGIN_LOCKOUT_MINUTES"] * 60,
                )
            return error_response(e)

        login_throttle_service.record_successful_login(user, identifier)
        return _session_response(user, "Login successful")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to login user")


@auth_bp.post("/refresh")
def refresh_route():
    """Exchange the refresh cookie for a new access + refresh pair."""
    try:
        cookie = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
        try:
            claims = token_service.decode_refresh_token(cookie)
        except InvalidTokenError:
            raise AuthenticationError("Invalid or expired refresh token")

        user = auth_service.load_active_user(claims.user_id)
        return _session_response(user, "Token refreshed")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to refresh token")


@auth_bp.post("/logout")
def logout_route():
    response, status = ok(message="Logged out")
    token_service.clear_refresh_cookie(response)
    return response, status


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    data = user.to_dict()
    if user.shop is not None:
        data["shop"] = user.shop.to_dict()
    return ok(data)
