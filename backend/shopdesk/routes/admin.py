# Overview: Flask API routes for platform administration (SUPER_ADMIN only).

from flask import Blueprint, request, g

from ..errors import ApiError
from ..responses import ok, error_response, internal_error
from ..services import shop_service, user_service
from ..services.security_service import list_security_events
from ..decorators import require_auth, require_super_admin


admin_bp = Blueprint("admin", __name__, url_prefix="/api/v1/admin")


@admin_bp.get("/stats")
@require_auth
@require_super_admin
def platform_stats_route():
    try:
        return ok(shop_service.platform_stats())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load platform stats")


# ===================================
# Shop Management
# ===================================

@admin_bp.get("/shops")
@require_auth
@require_super_admin
def list_shops_route():
    try:
        return ok(shop_service.list_shops_with_counts())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list shops")


@admin_bp.post("/shops")
@require_auth
@require_super_admin
def register_shop_route():
    """
    Register a shop together with its first ADMIN user.

    Body: shop_name, admin_name, admin_email, admin_password (required),
    plus optional shop settings.
    """
    try:
        shop, user = shop_service.register_shop(request.get_json(silent=True))
        return ok({"shop": shop.to_dict(), "admin": user.to_dict()}, 201, message="Shop registered successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to register shop")


@admin_bp.get("/shops/<int:shop_id>")
@require_auth
@require_super_admin
def get_shop_route(shop_id: int):
    try:
        shop = shop_service.get_shop(shop_id)
        data = dict(shop.to_dict(), **shop_service.shop_counts(shop.id))
        data["users"] = [u.to_dict() for u in user_service.list_users(shop_id=shop.id)]
        return ok(data)

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load shop")


@admin_bp.route("/shops/<int:shop_id>", methods=["PUT", "PATCH"])
@require_auth
@require_super_admin
def update_shop_route(shop_id: int):
    try:
        shop = shop_service.get_shop(shop_id)
        shop = shop_service.update_shop(shop, request.get_json(silent=True), allow_status=True)
        return ok(shop.to_dict(), message="Shop updated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update shop")


@admin_bp.delete("/shops/<int:shop_id>")
@require_auth
@require_super_admin
def deactivate_shop_route(shop_id: int):
    """Soft delete: the shop is deactivated, never removed."""
    try:
        shop = shop_service.deactivate_shop(shop_service.get_shop(shop_id))
        return ok(shop.to_dict(), message="Shop deactivated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to deactivate shop")


# ===================================
# User Management
# ===================================

@admin_bp.get("/users")
@require_auth
@require_super_admin
def list_users_route():
    try:
        shop_id = request.args.get("shop_id")
        users = user_service.list_users(
            shop_id=user_service.parse_shop_id(shop_id),
            role=request.args.get("role"),
        )
        return ok([u.to_dict() for u in users])

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list users")


@admin_bp.post("/users")
@require_auth
@require_super_admin
def create_user_route():
    try:
        user = user_service.admin_create_user(request.get_json(silent=True), g.current_user)
        return ok(user.to_dict(), 201, message="User created successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to create user")


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_super_admin
def get_user_route(user_id: int):
    try:
        return ok(user_service.get_user(user_id).to_dict())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load user")


@admin_bp.route("/users/<int:user_id>", methods=["PUT", "PATCH"])
@require_auth
@require_super_admin
def update_user_route(user_id: int):
    try:
        user = user_service.admin_update_user(user_id, request.get_json(silent=True), g.current_user)
        return ok(user.to_dict(), message="User updated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update user")


@admin_bp.put("/users/<int:user_id>/reset-password")
@require_auth
@require_super_admin
def reset_password_route(user_id: int):
    try:
        data = request.get_json(silent=True) or {}
        user_service.admin_reset_password(user_id, data.get("new_password"))
        return ok(message="Password reset successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to reset password")


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_super_admin
def delete_user_route(user_id: int):
    try:
        user_service.admin_delete_user(user_id, g.current_user)
        return ok(message="User deleted successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to delete user")


@admin_bp.get("/security-events")
@require_auth
@require_super_admin
def list_security_events_route():
    try:
        shop_id = user_service.parse_shop_id(request.args.get("shop_id"))
        events = list_security_events(shop_id=shop_id, event_type=request.args.get("event_type"))
        return ok([e.to_dict() for e in events])

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list security events")
