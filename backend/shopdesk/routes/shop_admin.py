# Overview: Flask API routes for shop-level administration (ADMIN of own shop).

from flask import Blueprint, request, g

from ..errors import ApiError
from ..responses import ok, error_response, internal_error
from ..services import shop_service, user_service
from ..decorators import require_auth, require_shop_admin


shop_admin_bp = Blueprint("shop_admin", __name__, url_prefix="/api/v1/shop-admin")


@shop_admin_bp.get("/stats")
@require_auth
@require_shop_admin
def shop_stats_route():
    try:
        return ok(shop_service.shop_admin_stats(g.shop_id))

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load shop stats")


@shop_admin_bp.get("/users")
@require_auth
@require_shop_admin
def list_users_route():
    try:
        users = user_service.list_users(shop_id=g.shop_id)
        return ok([u.to_dict() for u in users])

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list users")


@shop_admin_bp.post("/users")
@require_auth
@require_shop_admin
def create_user_route():
    """Create a MANAGER or STAFF user in the caller's shop."""
    try:
        user = user_service.shop_create_user(request.get_json(silent=True), g.current_user)
        return ok(user.to_dict(), 201, message="User created successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to create user")


@shop_admin_bp.get("/users/<int:user_id>")
@require_auth
@require_shop_admin
def get_user_route(user_id: int):
    try:
        return ok(user_service.get_shop_user(user_id, g.shop_id).to_dict())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load user")


@shop_admin_bp.route("/users/<int:user_id>", methods=["PUT", "PATCH"])
@require_auth
@require_shop_admin
def update_user_route(user_id: int):
    try:
        user = user_service.shop_update_user(user_id, request.get_json(silent=True), g.current_user)
        return ok(user.to_dict(), message="User updated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update user")


@shop_admin_bp.put("/users/<int:user_id>/reset-password")
@require_auth
@require_shop_admin
def reset_password_route(user_id: int):
    try:
        data = request.get_json(silent=True) or {}
        user_service.shop_reset_password(user_id, data.get("new_password"), g.current_user)
        return ok(message="Password reset successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to reset password")


@shop_admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_shop_admin
def delete_user_route(user_id: int):
    try:
        user_service.shop_delete_user(user_id, g.current_user)
        return ok(message="User deleted successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to delete user")
