# Overview: Service-layer operations for products and catalog reference data.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import Brand, Category, InvoiceItem, Product
from ..permissions import Action
from ..validation import LIKE_ESCAPE, PRODUCT_POLICY, contains_pattern, enforce_rules_product, validate_payload
from .tenant_service import assert_owned


def _validate_references(patch: dict) -> None:
    if patch.get("category_id") is not None and not db.session.get(Category, patch["category_id"]):
        raise NotFoundError("Category not found")
    if patch.get("brand_id") is not None and not db.session.get(Brand, patch["brand_id"]):
        raise NotFoundError("Brand not found")


def list_products(shop_id: int, search: str | None = None, category_id: int | None = None) -> list[Product]:
    query = db.session.query(Product).filter(Product.shop_id == shop_id)
    if search:
        pattern = contains_pattern(search)
        query = query.filter(
            or_(
                func.lower(Product.name).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Product.sku).like(pattern, escape=LIKE_ESCAPE),
            )
        )
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return query.order_by(Product.name.asc(), Product.id.asc()).all()


def get_product(product_id: int, shop_id: int, action: str = Action.READ) -> Product:
    return assert_owned(db.session.get(Product, product_id), shop_id, "Product", action=action)


def create_product(payload: dict, shop_id: int) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    _validate_references(patch)

    product = Product(shop_id=shop_id, **patch)
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, payload: dict, shop_id: int) -> Product:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    _validate_references(patch)

    product = get_product(product_id, shop_id, action=Action.WRITE)
    for key, value in patch.items():
        setattr(product, key, value)
    db.session.commit()
    return product


def delete_product(product_id: int, shop_id: int) -> None:
    """Invoice items keep their name/price snapshot and lose the product link."""
    product = get_product(product_id, shop_id, action=Action.WRITE)

    db.session.query(InvoiceItem).filter(InvoiceItem.product_id == product.id).update(
        {InvoiceItem.product_id: None}, synchronize_session=False
    )
    db.session.delete(product)
    db.session.commit()
    current_app.logger.info("Product %s deleted from shop %s", product_id, shop_id)


def list_categories() -> list[Category]:
    return db.session.query(Category).order_by(Category.name.asc()).all()


def list_brands() -> list[Brand]:
    return db.session.query(Brand).order_by(Brand.name.asc()).all()


DEFAULT_CATEGORIES = ("Accessories", "Electronics", "Repairs", "Services")
DEFAULT_BRANDS = ("Apple", "Generic", "Samsung")


def seed_catalog() -> int:
    """Insert default categories and brands that are missing. Returns rows added."""
    added = 0
    for name in DEFAULT_CATEGORIES:
        if not db.session.query(Category).filter_by(name=name).first():
            db.session.add(Category(name=name))
            added += 1
    for name in DEFAULT_BRANDS:
        if not db.session.query(Brand).filter_by(name=name).first():
            db.session.add(Brand(name=name))
            added += 1
    db.session.commit()
    return added
