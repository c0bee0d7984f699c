# Overview: Flask API routes for invoices; parses input and returns JSON responses.

# backend/shopdesk/routes/invoices.py
"""
Invoice API routes with tenant scoping.

Read routes (list, stats, detail) use the effective shop, so SUPER_ADMIN
can view any shop with ?shopId=. Every write route, payments and
reminders and item history use the credential shop only.

<ref> accepts the numeric id, the invoice number, or the digits of the
invoice number without its prefix.
"""

from flask import Blueprint, request, g

from ..errors import ApiError
from ..responses import ok, error_response, internal_error
from ..services import invoice_service
from ..services.tenant_service import get_effective_shop_id, require_credential_shop_id
from ..decorators import require_auth


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/v1/invoices")


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """
    List invoices for the effective shop.

    Query: status, customer_id, search, sort_by, sort_order, page, per_page
    """
    try:
        shop_id = get_effective_shop_id()
        rows, pagination = invoice_service.list_invoices(shop_id, request.args)
        return ok(rows, pagination=pagination, meta={"shop_id": shop_id})

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list invoices")


@invoices_bp.get("/stats")
@require_auth
def invoice_stats_route():
    try:
        shop_id = get_effective_shop_id()
        return ok(invoice_service.invoice_stats(shop_id), meta={"shop_id": shop_id})

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load invoice stats")


@invoices_bp.get("/<ref>")
@require_auth
def get_invoice_route(ref: str):
    """Invoice with items, payments and reminder count."""
    try:
        shop_id = get_effective_shop_id()
        invoice = invoice_service.get_invoice(ref, shop_id)
        data = invoice.to_dict(include_items=True, include_payments=True)
        data["reminder_count"] = invoice_service.reminder_count(invoice.id)
        return ok(data)

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to load invoice")


@invoices_bp.post("")
@require_auth
def create_invoice_route():
    try:
        shop_id = require_credential_shop_id()
        invoice = invoice_service.create_invoice(
            request.get_json(silent=True),
            shop_id,
            g.current_user.id,
        )
        return ok(
            invoice.to_dict(include_items=True, include_payments=True),
            201,
            message="Invoice created successfully",
        )

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to create invoice")


@invoices_bp.route("/<ref>", methods=["PUT", "PATCH"])
@require_auth
def update_invoice_route(ref: str):
    try:
        shop_id = require_credential_shop_id()
        invoice = invoice_service.update_invoice(
            ref,
            request.get_json(silent=True),
            shop_id,
            g.current_user,
        )
        return ok(
            invoice.to_dict(include_items=True, include_payments=True),
            message="Invoice updated successfully",
        )

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to update invoice")


@invoices_bp.delete("/<ref>")
@require_auth
def delete_invoice_route(ref: str):
    try:
        shop_id = require_credential_shop_id()
        invoice_number = invoice_service.delete_invoice(ref, shop_id)
        return ok({"invoice_number": invoice_number}, message="Invoice deleted successfully")

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to delete invoice")


@invoices_bp.post("/<ref>/payments")
@require_auth
def add_payment_route(ref: str):
    """
    Record a payment.

    Body: amount_cents (required, > 0), payment_method, payment_date,
    notes, reference.
    """
    try:
        shop_id = require_credential_shop_id()
        payment, invoice = invoice_service.add_payment(
            ref,
            request.get_json(silent=True),
            shop_id,
            g.current_user.id,
        )
        return ok(
            {
                "payment": payment.to_dict(),
                "invoice": invoice.to_dict(include_items=True, include_payments=True),
            },
            201,
            message="Payment recorded successfully",
        )

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to record payment")


@invoices_bp.get("/<ref>/payments")
@require_auth
def list_payments_route(ref: str):
    try:
        shop_id = require_credential_shop_id()
        payments = invoice_service.list_payments(ref, shop_id)
        return ok([p.to_dict() for p in payments])

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list payments")


@invoices_bp.post("/<ref>/reminders")
@require_auth
def add_reminder_route(ref: str):
    """
    Record a payment/overdue reminder.

    Body: type (PAYMENT|OVERDUE), channel, message, customer_name,
    customer_phone. Delivery is handled by the client.
    """
    try:
        shop_id = require_credential_shop_id()
        reminder, count = invoice_service.add_reminder(ref, request.get_json(silent=True), shop_id)
        return ok(
            {"reminder": reminder.to_dict(), "reminder_count": count},
            201,
            message="Reminder recorded",
        )

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to record reminder")


@invoices_bp.get("/<ref>/reminders")
@require_auth
def list_reminders_route(ref: str):
    try:
        shop_id = require_credential_shop_id()
        reminders, count = invoice_service.list_reminders(ref, shop_id)
        return ok({"reminders": [r.to_dict() for r in reminders], "count": count})

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list reminders")


@invoices_bp.get("/<ref>/item-history")
@require_auth
def list_item_history_route(ref: str):
    try:
        shop_id = require_credential_shop_id()
        records, invoice = invoice_service.list_item_history(ref, shop_id)
        return ok(
            [r.to_dict() for r in records],
            meta={"count": len(records), "invoice_number": invoice.invoice_number},
        )

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to list item history")


@invoices_bp.post("/<ref>/item-history")
@require_auth
def add_item_history_route(ref: str):
    """
    Record item changes made outside an items update.

    Body: one object or a list of objects with action
    (ADDED|REMOVED|QTY_INCREASED|QTY_DECREASED|PRICE_CHANGED), product_name,
    unit_price_cents, amount_change_cents and optional product_id,
    old_quantity, new_quantity, reason, notes, changed_by_name.
    """
    try:
        shop_id = require_credential_shop_id()
        records, invoice = invoice_service.add_item_history(
            ref,
            request.get_json(silent=True),
            shop_id,
            g.current_user,
        )
        return ok(
            [r.to_dict() for r in records],
            201,
            message="Item history recorded",
            meta={"created": len(records), "invoice_number": invoice.invoice_number},
        )

    except ApiError as e:
        return error_response(e)
    except Exception as e:
        return internal_error(e, "Failed to record item history")
