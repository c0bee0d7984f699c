# Overview: Flask API routes for shop branding and settings.

from flask import Blueprint, request, g, current_app

from ..errors import ApiError, AuthorizationError
from ..permissions import Action, is_allowed
from ..responses import ok, error_response, internal_error
from ..services import shop_service
from ..services.security_service import log_security_event
from ..decorators import require_auth


shops_bp = Blueprint("shops", __name__, url_prefix="/api/v1/shops")


@shops_bp.get("/<int:shop_id>")
def get_shop_route(shop_id: int):
    """Public branding view (printable invoices, login screen)."""
    try:
        return ok(shop_service.get_shop(shop_id).to_branding_dict())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load shop")


@shops_bp.get("/slug/<slug>")
def get_shop_by_slug_route(slug: str):
    """Public branding view by slug. Inactive shops answer 403."""
    try:
        shop = shop_service.get_shop_by_slug(slug)
        if not shop.is_active:
            raise AuthorizationError("This shop is currently inactive")
        return ok(shop.to_branding_dict())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load shop")


@shops_bp.route("/<int:shop_id>", methods=["PUT", "PATCH"])
@require_auth
def update_shop_route(shop_id: int):
    """Update shop settings. ADMIN of this shop or SUPER_ADMIN."""
    try:
        shop = shop_service.get_shop(shop_id)
        if not is_allowed(g.role, Action.MANAGE_SHOP, shop.id, g.shop_id):
            current_app.logger.warning(
                "Shop settings update denied: user=%s shop=%s target=%s", g.current_user.id, g.shop_id, shop.id
            )
            log_security_event(
                user_id=g.current_user.id,
                event_type="CROSS_TENANT_ACCESS_DENIED" if shop.id != g.shop_id else "ROLE_DENIED",
                success=False,
                reason=f"Shop settings update on shop {shop.id} denied",
                shop_id=g.shop_id,
            )
            raise AuthorizationError("Not allowed to manage this shop")

        shop = shop_service.update_shop(shop, request.get_json(silent=True))
        return ok(shop.to_dict(), message="Shop updated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update shop")
