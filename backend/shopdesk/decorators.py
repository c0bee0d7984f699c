# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .errors import AuthenticationError
from .permissions import Action, is_allowed
from .services import auth_service, token_service
from .services.security_service import log_security_event
from .services.token_service import InvalidTokenError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def _deny_role(required: str):
    user = g.current_user
    current_app.logger.warning(
        "Role check %s denied for user %s (%s) on %s", required, user.id, user.role, request.path
    )
    log_security_event(
        user_id=user.id,
        event_type="ROLE_DENIED",
        success=False,
        reason=f"Requires {required}, caller is {user.role}",
        shop_id=user.shop_id,
    )


def require_auth(f):
    """
    Require a valid access credential and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: The user's role (from the database row, not the token)
    - g.shop_id: The credential shop id (None only for SUPER_ADMIN)
    - g.token_claims: The decoded TokenClaims

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or refresh-kind token
    - User account deleted or deactivated
    - User's shop deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"success": False, "error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()

        try:
            claims = token_service.decode_access_token(token)
            user = auth_service.load_active_user(claims.user_id)
        except (InvalidTokenError, AuthenticationError):
            return jsonify({"success": False, "error": "Invalid or expired token"}), 401

        # Store user and tenant context in Flask g for access in routes
        g.current_user = user
        g.role = user.role
        g.shop_id = user.shop_id
        g.token_claims = claims

        return f(*args, **kwargs)

    return decorated_function


def require_super_admin(f):
    """Require the platform SUPER_ADMIN role (use after @require_auth)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"success": False, "error": "Authentication required"}), 401
        if not is_allowed(g.role, Action.PLATFORM_ADMIN):
            _deny_role("SUPER_ADMIN")
            return jsonify({"success": False, "error": "Super admin access required"}), 403
        return f(*args, **kwargs)
    return decorated_function


def require_shop_admin(f):
    """Require an ADMIN bound to a shop (use after @require_auth)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"success": False, "error": "Authentication required"}), 401
        if not is_allowed(g.role, Action.SHOP_ADMIN, g.shop_id, g.shop_id):
            _deny_role("ADMIN")
            return jsonify({"success": False, "error": "Shop admin access required"}), 403
        return f(*args, **kwargs)
    return decorated_function
