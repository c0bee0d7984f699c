# Overview: Service-layer operations for customers; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..errors import ConflictError
from ..extensions import db
from ..models import Customer, Invoice
from ..permissions import Action
from ..validation import CUSTOMER_POLICY, LIKE_ESCAPE, contains_pattern, enforce_rules_customer, validate_payload
from .tenant_service import assert_owned


def list_customers(shop_id: int, search: str | None = None) -> list[Customer]:
    query = db.session.query(Customer).filter(Customer.shop_id == shop_id)
    if search:
        pattern = contains_pattern(search)
        query = query.filter(
            or_(
                func.lower(Customer.name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Customer.email).like(pattern, escape=LIKE_ESCAPE),
                Customer.phone.like(pattern, escape=LIKE_ESCAPE),
            )
        )
    return query.order_by(Customer.name.asc(), Customer.id.asc()).all()


def get_customer(customer_id: int, shop_id: int, action: str = Action.READ) -> Customer:
    return assert_owned(db.session.get(Customer, customer_id), shop_id, "Customer", action=action)


def create_customer(payload: dict, shop_id: int) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
    enforce_rules_customer(patch)

    customer = Customer(shop_id=shop_id, **patch)
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer(customer_id: int, payload: dict, shop_id: int) -> Customer:
    patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=True)
    enforce_rules_customer(patch)

    customer = get_customer(customer_id, shop_id, action=Action.WRITE)
    for key, value in patch.items():
        setattr(customer, key, value)
    db.session.commit()
    return customer


def delete_customer(customer_id: int, shop_id: int) -> None:
    """Customers referenced by invoices are kept (409)."""
    customer = get_customer(customer_id, shop_id, action=Action.WRITE)

    invoice_count = (
        db.session.query(func.count(Invoice.id)).filter(Invoice.customer_id == customer.id).scalar()
    )
    if invoice_count:
        raise ConflictError(f"Customer has {invoice_count} invoice(s) and cannot be deleted")

    db.session.delete(customer)
    db.session.commit()
    current_app.logger.info("Customer %s deleted from shop %s", customer_id, shop_id)
