# Overview: Service-layer operations for shops (tenants); registration, settings and stats.

"""
Shop (tenant) management.

Registration creates the shop and its first ADMIN user in one
transaction. Deactivation is a soft flag; shops are never deleted.
"""

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, Product, Shop, User
from ..models.auth import ROLE_ADMIN
from ..validation import SHOP_POLICY, enforce_rules_shop, validate_payload
from .auth_service import build_user
from shopdesk.time_utils import days_ago


# Registration payload keys that map onto Shop columns under another name
_REGISTRATION_ALIASES = {
    "shop_name": "name",
    "shop_email": "email",
    "shop_description": "description",
}
_ADMIN_KEYS = ("admin_name", "admin_email", "admin_password")


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")
    return slug or "shop"


def unique_slug(name: str) -> str:
    base = slugify(name)
    slug = base
    counter = 1
    while db.session.query(Shop.id).filter(Shop.slug == slug).first():
        slug = f"{base}-{counter}"
        counter += 1
    return slug


def get_shop(shop_id: int) -> Shop:
    shop = db.session.get(Shop, shop_id)
    if not shop:
        raise NotFoundError("Shop not found")
    return shop


def get_shop_by_slug(slug: str) -> Shop:
    shop = db.session.query(Shop).filter(Shop.slug == slug.strip().lower()).first()
    if not shop:
        raise NotFoundError("Shop not found")
    return shop


def register_shop(payload: dict) -> tuple[Shop, User]:
    """
    Create a shop and its ADMIN user atomically.

    payload: shop_name (required), shop_email, shop_description, address,
    phone, website, business_reg_no, tax_id, currency, tax_rate_bps,
    admin_name, admin_email, admin_password (all three required).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    admin = {key: payload.pop(key, None) for key in _ADMIN_KEYS}
    missing = [key for key, value in admin.items() if not value]
    if "shop_name" not in payload:
        missing.insert(0, "shop_name")
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    shop_fields = {_REGISTRATION_ALIASES.get(key, key): value for key, value in payload.items()}
    if "name" in payload or "email" in payload or "description" in payload:
        raise ValidationError("Use shop_name, shop_email and shop_description")

    patch = validate_payload(model=Shop, payload=shop_fields, policy=SHOP_POLICY, partial=False)
    enforce_rules_shop(patch)

    if patch.get("email") and db.session.query(Shop.id).filter(Shop.email == patch["email"]).first():
        raise ConflictError("A shop with this email already exists")

    shop = Shop(slug=unique_slug(patch["name"]), is_active=True, **patch)
    db.session.add(shop)
    db.session.flush()

    try:
        user = build_user(
            admin["admin_email"],
            admin["admin_name"],
            admin["admin_password"],
            role=ROLE_ADMIN,
            shop_id=shop.id,
        )
    except Exception:
        db.session.rollback()
        raise

    db.session.commit()
    current_app.logger.info("Shop %s (%s) registered with admin user %s", shop.id, shop.slug, user.id)
    return shop, user


def update_shop(shop: Shop, payload: dict, *, allow_status: bool = False) -> Shop:
    """
    Partial settings update. is_active is only accepted when allow_status
    is set (platform admin path).
    """
    payload = dict(payload or {})
    is_active = payload.pop("is_active", None) if allow_status else None

    patch = validate_payload(model=Shop, payload=payload, policy=SHOP_POLICY, partial=True)
    enforce_rules_shop(patch)

    for key, value in patch.items():
        setattr(shop, key, value)

    if is_active is not None:
        if not isinstance(is_active, bool):
            raise ValidationError("is_active must be a boolean")
        shop.is_active = is_active

    db.session.commit()
    return shop


def deactivate_shop(shop: Shop) -> Shop:
    shop.is_active = False
    db.session.commit()
    current_app.logger.info("Shop %s deactivated", shop.id)
    return shop


def _count(model, *criteria) -> int:
    return db.session.query(func.count(model.id)).filter(*criteria).scalar() or 0


def shop_counts(shop_id: int) -> dict:
    return {
        "user_count": _count(User, User.shop_id == shop_id),
        "customer_count": _count(Customer, Customer.shop_id == shop_id),
        "product_count": _count(Product, Product.shop_id == shop_id),
        "invoice_count": _count(Invoice, Invoice.shop_id == shop_id),
    }


def list_shops_with_counts() -> list[dict]:
    shops = db.session.query(Shop).order_by(Shop.created_at.desc(), Shop.id.desc()).all()
    return [dict(shop.to_dict(), **shop_counts(shop.id)) for shop in shops]


def platform_stats() -> dict:
    total_shops = _count(Shop)
    active_shops = _count(Shop, Shop.is_active.is_(True))
    since = days_ago(7)
    return {
        "total_shops": total_shops,
        "active_shops": active_shops,
        "inactive_shops": total_shops - active_shops,
        "total_users": _count(User),
        "total_invoices": _count(Invoice),
        "total_customers": _count(Customer),
        "total_products": _count(Product),
        "recent_shops": _count(Shop, Shop.created_at >= since),
        "recent_users": _count(User, User.created_at >= since),
    }


def shop_admin_stats(shop_id: int) -> dict:
    shop = get_shop(shop_id)
    total_users = _count(User, User.shop_id == shop_id)
    active_users = _count(User, User.shop_id == shop_id, User.is_active.is_(True))
    counts = shop_counts(shop_id)
    return {
        "shop": {"id": shop.id, "name": shop.name, "slug": shop.slug},
        "total_users": total_users,
        "active_users": active_users,
        "inactive_users": total_users - active_users,
        "total_customers": counts["customer_count"],
        "total_products": counts["product_count"],
        "total_invoices": counts["invoice_count"],
    }
