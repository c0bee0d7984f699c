# Overview: Flask API routes for products and catalog reference data.

from flask import Blueprint, request

from ..errors import ApiError, ValidationError
from ..responses import ok, error_response, internal_error
from ..services import product_service
from ..services.tenant_service import get_effective_shop_id, require_credential_shop_id
from ..decorators import require_auth


products_bp = Blueprint("products", __name__, url_prefix="/api/v1/products")
catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/v1")


@products_bp.get("")
@require_auth
def list_products_route():
    try:
        shop_id = get_effective_shop_id()
        category_id = request.args.get("category_id")
        if category_id not in (None, ""):
            if not category_id.isdigit():
                raise ValidationError("category_id must be an integer")
            category_id = int(category_id)
        else:
            category_id = None
        products = product_service.list_products(shop_id, request.args.get("search"), category_id)
        return ok([p.to_dict() for p in products], meta={"shop_id": shop_id, "count": len(products)})

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list products")


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        shop_id = get_effective_shop_id()
        return ok(product_service.get_product(product_id, shop_id).to_dict())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load product")


@products_bp.post("")
@require_auth
def create_product_route():
    try:
        shop_id = require_credential_shop_id()
        product = product_service.create_product(request.get_json(silent=True), shop_id)
        return ok(product.to_dict(), 201, message="Product created successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to create product")


@products_bp.route("/<int:product_id>", methods=["PUT", "PATCH"])
@require_auth
def update_product_route(product_id: int):
    try:
        shop_id = require_credential_shop_id()
        product = product_service.update_product(product_id, request.get_json(silent=True), shop_id)
        return ok(product.to_dict(), message="Product updated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update product")


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        shop_id = require_credential_shop_id()
        product_service.delete_product(product_id, shop_id)
        return ok(message="Product deleted successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to delete product")


@catalog_bp.get("/categories")
@require_auth
def list_categories_route():
    return ok([c.to_dict() for c in product_service.list_categories()])


@catalog_bp.get("/brands")
@require_auth
def list_brands_route():
    return ok([b.to_dict() for b in product_service.list_brands()])
