# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, request

from ..errors import ApiError
from ..responses import ok, error_response, internal_error
from ..services import customer_service
from ..services.tenant_service import get_effective_shop_id, require_credential_shop_id
from ..decorators import require_auth


customers_bp = Blueprint("customers", __name__, url_prefix="/api/v1/customers")


@customers_bp.get("")
@require_auth
def list_customers_route():
    try:
        shop_id = get_effective_shop_id()
        customers = customer_service.list_customers(shop_id, request.args.get("search"))
        return ok([c.to_dict() for c in customers], meta={"shop_id": shop_id, "count": len(customers)})

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list customers")


@customers_bp.get("/<int:customer_id>")
@require_auth
def get_customer_route(customer_id: int):
    try:
        shop_id = get_effective_shop_id()
        return ok(customer_service.get_customer(customer_id, shop_id).to_dict())

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load customer")


@customers_bp.post("")
@require_auth
def create_customer_route():
    try:
        shop_id = require_credential_shop_id()
        customer = customer_service.create_customer(request.get_json(silent=True), shop_id)
        return ok(customer.to_dict(), 201, message="Customer created successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to create customer")


@customers_bp.route("/<int:customer_id>", methods=["PUT", "PATCH"])
@require_auth
def update_customer_route(customer_id: int):
    try:
        shop_id = require_credential_shop_id()
        customer = customer_service.update_customer(customer_id, request.get_json(silent=True), shop_id)
        return ok(customer.to_dict(), message="Customer updated successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update customer")


@customers_bp.delete("/<int:customer_id>")
@require_auth
def delete_customer_route(customer_id: int):
    try:
        shop_id = require_credential_shop_id()
        customer_service.delete_customer(customer_id, shop_id)
        return ok(message="Customer deleted successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to delete customer")
