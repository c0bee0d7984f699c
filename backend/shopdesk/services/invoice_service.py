# Overview: Service-layer operations for invoices; the only code that mutates invoice money totals.

"""
Invoice Ledger Engine

Owns invoice numbering, line-item snapshots, payment application, status
derivation, reminders, item change history and statistics.

MONEY INVARIANTS (all amounts in cents):
- total = subtotal + tax - discount
- due   = max(0, total - paid)
- After add_payment: paid = SUM(invoice_payments.amount_cents)

STATUS:
- Create and add_payment derive status from paid vs total
  (FULLPAID if paid >= total, HALFPAY if 0 < paid < total, else UNPAID)
- Create honours an explicit status; update only changes status when one
  is supplied (manual correction path)

MULTI-TENANT: Every function takes the shop id chosen by the route
(effective shop for reads, credential shop for writes). Ownership is
asserted after lookup via tenant_service.assert_owned.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func, or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, InvoiceItem, InvoiceItemHistory, InvoicePayment, InvoiceReminder, Product
from ..models.invoices import (
    INVOICE_STATUS_FULLPAID,
    INVOICE_STATUS_HALFPAY,
    INVOICE_STATUS_UNPAID,
    INVOICE_STATUSES,
    ITEM_ADDED,
    ITEM_PRICE_CHANGED,
    ITEM_QTY_DECREASED,
    ITEM_QTY_INCREASED,
    ITEM_REMOVED,
    REMINDER_TYPE_OVERDUE,
    REMINDER_TYPE_PAYMENT,
)
from ..permissions import Action
from ..validation import (
    INVOICE_CREATE_POLICY,
    INVOICE_ITEM_HISTORY_POLICY,
    INVOICE_ITEM_POLICY,
    INVOICE_PAYMENT_POLICY,
    INVOICE_REMINDER_POLICY,
    INVOICE_UPDATE_POLICY,
    LIKE_ESCAPE,
    contains_pattern,
    enforce_rules_invoice,
    enforce_rules_invoice_item,
    enforce_rules_item_history,
    enforce_rules_payment,
    validate_payload,
)
from .concurrency import commit_or_conflict, lock_for_update
from .tenant_service import assert_owned
from shopdesk.time_utils import days_after, utcnow


DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100

SORT_COLUMNS = {
    "date": Invoice.date,
    "invoice_number": Invoice.invoice_number,
    "total": Invoice.total_cents,
}

UNKNOWN_CUSTOMER = "Unknown Customer"
UNKNOWN_PRODUCT = "Unknown Product"


# =============================================================================
# DERIVED FIELDS
# =============================================================================

def derive_status(total_cents: int, paid_cents: int) -> str:
    if paid_cents >= total_cents:
        return INVOICE_STATUS_FULLPAID
    if paid_cents > 0:
        return INVOICE_STATUS_HALFPAY
    return INVOICE_STATUS_UNPAID


def compute_total(subtotal_cents: int, tax_cents: int, discount_cents: int) -> int:
    return subtotal_cents + tax_cents - discount_cents


def _checked_total(subtotal_cents: int, tax_cents: int, discount_cents: int) -> int:
    total = compute_total(subtotal_cents, tax_cents, discount_cents)
    if total < 0:
        raise ValidationError("discount_cents cannot exceed subtotal plus tax")
    return total


def compute_due(total_cents: int, paid_cents: int) -> int:
    return max(0, total_cents - paid_cents)


def next_invoice_number() -> str:
    """
    Next number in the platform-wide INV-<n> sequence.

    Reads the numerically highest existing number (longest string first,
    then lexicographic) and increments it. Two writers allocating at the
    same time collide on the unique constraint and surface as 409.
    """
    prefix = current_app.config["INVOICE_NUMBER_PREFIX"]
    base = current_app.config["INVOICE_NUMBER_BASE"]

    numbers = (
        db.session.query(Invoice.invoice_number)
        .filter(Invoice.invoice_number.like(f"{prefix}%"))
        .order_by(func.length(Invoice.invoice_number).desc(), Invoice.invoice_number.desc())
        .limit(20)
        .all()
    )

    highest = base
    for (number,) in numbers:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
            break

    return f"{prefix}{highest + 1}"


# =============================================================================
# LOOKUP
# =============================================================================

def find_invoice(ref, *, for_update: bool = False) -> Invoice | None:
    """
    Resolve an invoice reference without any tenant check.

    Lookup chase:
    1. primary key (when ref is all digits)
    2. invoice_number == ref
    3. invoice_number == "INV-" + ref (when ref is not already prefixed)
    """
    ref = str(ref).strip()
    if not ref:
        return None

    prefix = current_app.config["INVOICE_NUMBER_PREFIX"]

    def _query():
        query = db.session.query(Invoice)
        return lock_for_update(query) if for_update else query

    if ref.isdigit():
        invoice = _query().filter(Invoice.id == int(ref)).first()
        if invoice:
            return invoice

    invoice = _query().filter(Invoice.invoice_number == ref).first()
    if invoice:
        return invoice

    if not ref.upper().startswith(prefix):
        return _query().filter(Invoice.invoice_number == f"{prefix}{ref}").first()

    return None


def get_invoice(ref, shop_id: int, *, action: str = Action.READ, for_update: bool = False) -> Invoice:
    """Lookup + ownership guard. 404 when absent, 403 when owned by another shop."""
    invoice = find_invoice(ref, for_update=for_update)
    return assert_owned(invoice, shop_id, "Invoice", action=action)


# =============================================================================
# ITEMS
# =============================================================================

def _build_items(raw_items, shop_id: int) -> list[InvoiceItem]:
    """
    Validate item payloads and build unsaved InvoiceItem rows.

    A product_id that does not exist or belongs to another shop is nulled;
    the item itself is kept with its name/price snapshot.
    """
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items: list[InvoiceItem] = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        try:
            patch = validate_payload(model=InvoiceItem, payload=raw, policy=INVOICE_ITEM_POLICY, partial=False)
            enforce_rules_invoice_item(patch)
        except ValidationError as e:
            raise ValidationError(f"items[{index}]: {e.message}")

        product = None
        if patch.get("product_id") is not None:
            product = db.session.get(Product, patch["product_id"])
            if product is None or product.shop_id != shop_id:
                current_app.logger.info(
                    "De-linking invoice item from unknown product %s", patch["product_id"]
                )
                product = None
                patch["product_id"] = None

        quantity = patch["quantity"]
        unit_price = patch["unit_price_cents"]

        items.append(
            InvoiceItem(
                product_id=patch.get("product_id"),
                product_name=patch.get("product_name") or (product.name if product else UNKNOWN_PRODUCT),
                quantity=quantity,
                unit_price_cents=unit_price,
                original_price_cents=(
                    patch["original_price_cents"]
                    if patch.get("original_price_cents") is not None
                    else unit_price
                ),
                discount_cents=patch.get("discount_cents") or 0,
                total_cents=(
                    patch["total_cents"]
                    if patch.get("total_cents") is not None
                    else quantity * unit_price
                ),
            )
        )
    return items


def _items_subtotal(items: list[InvoiceItem]) -> int:
    return sum(item.quantity * item.unit_price_cents for item in items)


def _adjust_stock(items, direction: int) -> None:
    """Move stock for linked products: -1 when sold, +1 when an invoice is undone."""
    for item in items:
        if item.product_id is None:
            continue
        product = db.session.get(Product, item.product_id)
        if product is not None:
            product.stock = (product.stock or 0) + direction * item.quantity


def _group_items(items) -> dict:
    """Merge lines by product (or by name for unlinked lines): key -> (name, product_id, qty, unit price)."""
    grouped: dict = {}
    for item in items:
        key = item.product_id if item.product_id is not None else item.product_name.strip().lower()
        if key in grouped:
            name, product_id, quantity, unit_price = grouped[key]
            grouped[key] = (name, product_id, quantity + item.quantity, unit_price)
        else:
            grouped[key] = (item.product_name, item.product_id, item.quantity, item.unit_price_cents)
    return grouped


def diff_items(old_items, new_items) -> list[InvoiceItemHistory]:
    """
    Unsaved history rows describing how new_items differs from old_items.

    One row per product: ADDED, REMOVED, PRICE_CHANGED (takes precedence
    over a quantity change), QTY_INCREASED or QTY_DECREASED. Unchanged
    lines produce nothing.
    """
    old = _group_items(old_items)
    new = _group_items(new_items)
    history: list[InvoiceItemHistory] = []

    for key, (name, product_id, old_qty, old_price) in old.items():
        if key not in new:
            history.append(InvoiceItemHistory(
                action=ITEM_REMOVED,
                product_id=product_id,
                product_name=name,
                old_quantity=old_qty,
                new_quantity=0,
                unit_price_cents=old_price,
                amount_change_cents=-old_qty * old_price,
            ))
            continue

        _, _, new_qty, new_price = new[key]
        if new_price != old_price:
            action = ITEM_PRICE_CHANGED
        elif new_qty > old_qty:
            action = ITEM_QTY_INCREASED
        elif new_qty < old_qty:
            action = ITEM_QTY_DECREASED
        else:
            continue
        history.append(InvoiceItemHistory(
            action=action,
            product_id=product_id,
            product_name=name,
            old_quantity=old_qty,
            new_quantity=new_qty,
            unit_price_cents=new_price,
            amount_change_cents=new_qty * new_price - old_qty * old_price,
        ))

    for key, (name, product_id, new_qty, new_price) in new.items():
        if key not in old:
            history.append(InvoiceItemHistory(
                action=ITEM_ADDED,
                product_id=product_id,
                product_name=name,
                old_quantity=0,
                new_quantity=new_qty,
                unit_price_cents=new_price,
                amount_change_cents=new_qty * new_price,
            ))

    return history


def _stamp_history(entry: InvoiceItemHistory, invoice: Invoice, shop_id: int, user) -> None:
    entry.invoice_id = invoice.id
    entry.shop_id = shop_id
    entry.changed_by_user_id = user.id if user else None
    if not entry.changed_by_name:
        entry.changed_by_name = user.name if user else None


# =============================================================================
# CREATE / UPDATE / DELETE
# =============================================================================

def create_invoice(payload: dict, shop_id: int, user_id: int | None) -> Invoice:
    """
    Create an invoice in the caller's shop.

    payload keys: customer_id, customer_name, items, subtotal_cents,
    tax_cents, discount_cents, paid_amount_cents, status, date, due_date,
    payment_method, sales_channel, notes.

    A shop_id key is rejected by validation; the invoice is always stamped
    with the credential shop passed in here.
    """
    if payload is None or not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    raw_items = payload.pop("items", None)
    if raw_items is None:
        raw_items = []

    patch = validate_payload(model=Invoice, payload=payload, policy=INVOICE_CREATE_POLICY, partial=False)
    enforce_rules_invoice(patch)

    items = _build_items(raw_items, shop_id)
    if not items and patch.get("subtotal_cents") is None:
        raise ValidationError("At least one item or subtotal_cents is required")

    customer = None
    if patch.get("customer_id") is not None:
        customer = db.session.get(Customer, patch["customer_id"])
        assert_owned(customer, shop_id, "Customer", action=Action.WRITE)

    subtotal = patch["subtotal_cents"] if patch.get("subtotal_cents") is not None else _items_subtotal(items)
    tax = patch.get("tax_cents") or 0
    discount = patch.get("discount_cents") or 0
    paid = patch.get("paid_amount_cents") or 0
    total = _checked_total(subtotal, tax, discount)

    now = utcnow()
    invoice_date = patch.get("date") or now
    term_days = current_app.config["INVOICE_DEFAULT_TERM_DAYS"]

    invoice = Invoice(
        shop_id=shop_id,
        invoice_number=next_invoice_number(),
        customer_id=customer.id if customer else None,
        customer_name=patch.get("customer_name") or (customer.name if customer else UNKNOWN_CUSTOMER),
        subtotal_cents=subtotal,
        tax_cents=tax,
        discount_cents=discount,
        total_cents=total,
        paid_amount_cents=paid,
        due_amount_cents=compute_due(total, paid),
        status=patch.get("status") or derive_status(total, paid),
        date=invoice_date,
        due_date=patch.get("due_date") or days_after(invoice_date, term_days),
        payment_method=patch.get("payment_method") or "CASH",
        sales_channel=patch.get("sales_channel") or "ON_SITE",
        notes=patch.get("notes"),
        created_by_user_id=user_id,
    )
    invoice.items = items
    db.session.add(invoice)

    # Opening payment keeps paid == SUM(payments) from the first write
    if paid > 0:
        invoice.payments.append(
            InvoicePayment(
                amount_cents=paid,
                payment_method=invoice.payment_method,
                payment_date=now,
                notes="Initial payment",
                recorded_by_user_id=user_id,
            )
        )

    _adjust_stock(items, -1)

    commit_or_conflict("Invoice number already allocated, please retry")
    current_app.logger.info(
        "Invoice %s created in shop %s by user %s", invoice.invoice_number, shop_id, user_id
    )
    return invoice


def update_invoice(ref, payload: dict, shop_id: int, user=None) -> Invoice:
    """
    Partial update.

    - items: destructive replace-all; subtotal is recomputed from the new set
      and the difference is written to invoice_item_history
      (optional item_change_reason is stored on those rows)
    - subtotal/tax/discount: total recomputed from current-or-new values
    - paid_amount_cents or any total change: due recomputed
    - status: only changed when supplied
    - version_id: optional optimistic check against the stored token
    """
    if payload is None or not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    payload = dict(payload)
    raw_items = payload.pop("items", None)
    change_reason = payload.pop("item_change_reason", None)
    if change_reason is not None:
        if not isinstance(change_reason, str):
            raise ValidationError("item_change_reason must be a string")
        change_reason = change_reason.strip() or None

    patch = validate_payload(model=Invoice, payload=payload, policy=INVOICE_UPDATE_POLICY, partial=True)
    enforce_rules_invoice(patch)

    invoice = get_invoice(ref, shop_id, action=Action.WRITE, for_update=True)

    expected_version = patch.pop("version_id", None)
    if expected_version is not None and expected_version != invoice.version_id:
        raise ConflictError("Invoice was modified by another request, reload and retry")

    totals_changed = False

    if raw_items is not None:
        new_items = _build_items(raw_items, shop_id)
        if not new_items:
            raise ValidationError("items must contain at least one item")

        history = diff_items(invoice.items, new_items)
        _adjust_stock(invoice.items, +1)
        db.session.query(InvoiceItem).filter(InvoiceItem.invoice_id == invoice.id).delete(synchronize_session=False)
        db.session.expire(invoice, ["items"])
        for item in new_items:
            item.invoice_id = invoice.id
        db.session.add_all(new_items)
        _adjust_stock(new_items, -1)
        for entry in history:
            _stamp_history(entry, invoice, shop_id, user)
            entry.reason = change_reason
        db.session.add_all(history)

        invoice.subtotal_cents = _items_subtotal(new_items)
        totals_changed = True

    for field in ("subtotal_cents", "tax_cents", "discount_cents"):
        if field in patch:
            if field == "subtotal_cents" and raw_items is not None:
                continue
            setattr(invoice, field, patch[field])
            totals_changed = True

    if totals_changed:
        invoice.total_cents = _checked_total(invoice.subtotal_cents, invoice.tax_cents, invoice.discount_cents)

    if "paid_amount_cents" in patch:
        invoice.paid_amount_cents = patch["paid_amount_cents"]

    if totals_changed or "paid_amount_cents" in patch:
        invoice.due_amount_cents = compute_due(invoice.total_cents, invoice.paid_amount_cents)

    for field in ("status", "notes", "customer_name", "due_date", "payment_method", "sales_channel"):
        if field in patch:
            setattr(invoice, field, patch[field])

    commit_or_conflict("Invoice was modified by another request, reload and retry")
    return invoice


def delete_invoice(ref, shop_id: int) -> str:
    """
    Delete an invoice and its children: items, then payments, then
    reminders and item history, then the invoice row. Linked product stock is restored.

    Returns the deleted invoice number.
    """
    invoice = get_invoice(ref, shop_id, action=Action.WRITE, for_update=True)
    invoice_number = invoice.invoice_number
    invoice_id = invoice.id

    _adjust_stock(invoice.items, +1)

    db.session.query(InvoiceItem).filter(InvoiceItem.invoice_id == invoice_id).delete(synchronize_session=False)
    db.session.query(InvoicePayment).filter(InvoicePayment.invoice_id == invoice_id).delete(synchronize_session=False)
    db.session.query(InvoiceReminder).filter(InvoiceReminder.invoice_id == invoice_id).delete(synchronize_session=False)
    db.session.query(InvoiceItemHistory).filter(InvoiceItemHistory.invoice_id == invoice_id).delete(synchronize_session=False)
    db.session.expire(invoice, ["items", "payments"])
    db.session.delete(invoice)

    commit_or_conflict()
    current_app.logger.info("Invoice %s deleted from shop %s", invoice_number, shop_id)
    return invoice_number


# =============================================================================
# PAYMENTS
# =============================================================================

def add_payment(ref, payload: dict, shop_id: int, user_id: int | None) -> tuple[InvoicePayment, Invoice]:
    """
    Append a payment and rebuild paid/due/status from the payment ledger.

    Runs as one transaction: the invoice row is locked, paid is re-summed
    from invoice_payments, and the invoice version token is bumped. A
    concurrent modification raises ConflictError (409), no retry.
    """
    patch = validate_payload(model=InvoicePayment, payload=payload, policy=INVOICE_PAYMENT_POLICY, partial=False)
    enforce_rules_payment(patch)

    invoice = get_invoice(ref, shop_id, action=Action.WRITE, for_update=True)

    payment = InvoicePayment(
        invoice_id=invoice.id,
        amount_cents=patch["amount_cents"],
        payment_method=patch.get("payment_method") or invoice.payment_method,
        payment_date=patch.get("payment_date") or utcnow(),
        notes=patch.get("notes"),
        reference=patch.get("reference"),
        recorded_by_user_id=user_id,
    )
    db.session.add(payment)
    db.session.flush()

    paid = (
        db.session.query(func.coalesce(func.sum(InvoicePayment.amount_cents), 0))
        .filter(InvoicePayment.invoice_id == invoice.id)
        .scalar()
    )

    invoice.paid_amount_cents = int(paid)
    invoice.due_amount_cents = compute_due(invoice.total_cents, invoice.paid_amount_cents)
    invoice.status = derive_status(invoice.total_cents, invoice.paid_amount_cents)

    commit_or_conflict("Invoice was modified by another request, reload and retry")
    current_app.logger.info(
        "Payment of %s recorded on invoice %s (status %s)",
        payment.amount_cents,
        invoice.invoice_number,
        invoice.status,
    )
    return payment, invoice


def list_payments(ref, shop_id: int) -> list[InvoicePayment]:
    invoice = get_invoice(ref, shop_id)
    return (
        db.session.query(InvoicePayment)
        .filter(InvoicePayment.invoice_id == invoice.id)
        .order_by(InvoicePayment.payment_date.desc(), InvoicePayment.id.desc())
        .all()
    )


# =============================================================================
# REMINDERS
# =============================================================================

def reminder_count(invoice_id: int) -> int:
    return db.session.query(func.count(InvoiceReminder.id)).filter(InvoiceReminder.invoice_id == invoice_id).scalar() or 0


def reminder_counts(invoice_ids: list[int]) -> dict[int, int]:
    if not invoice_ids:
        return {}
    rows = (
        db.session.query(InvoiceReminder.invoice_id, func.count(InvoiceReminder.id))
        .filter(InvoiceReminder.invoice_id.in_(invoice_ids))
        .group_by(InvoiceReminder.invoice_id)
        .all()
    )
    return {invoice_id: count for invoice_id, count in rows}


def add_reminder(ref, payload: dict | None, shop_id: int) -> tuple[InvoiceReminder, int]:
    """
    Record a reminder for an owned invoice.

    The reminder is stamped with the caller's credential shop. Recipient
    name/phone default to the invoice's customer snapshot.

    Returns (reminder, reminder_count).
    """
    patch = validate_payload(model=InvoiceReminder, payload=payload or {}, policy=INVOICE_REMINDER_POLICY, partial=True)

    invoice = get_invoice(ref, shop_id, action=Action.WRITE)

    reminder_type = REMINDER_TYPE_OVERDUE if str(patch.get("type") or "").upper() == REMINDER_TYPE_OVERDUE else REMINDER_TYPE_PAYMENT
    customer = invoice.customer

    reminder = InvoiceReminder(
        invoice_id=invoice.id,
        shop_id=shop_id,
        type=reminder_type,
        channel=patch.get("channel") or "whatsapp",
        message=patch.get("message"),
        customer_name=patch.get("customer_name") or invoice.customer_name,
        customer_phone=patch.get("customer_phone") or (customer.phone if customer else None),
        sent_at=utcnow(),
    )
    db.session.add(reminder)
    db.session.commit()

    return reminder, reminder_count(invoice.id)


def list_reminders(ref, shop_id: int) -> tuple[list[InvoiceReminder], int]:
    invoice = get_invoice(ref, shop_id)
    reminders = (
        db.session.query(InvoiceReminder)
        .filter(InvoiceReminder.invoice_id == invoice.id)
        .order_by(InvoiceReminder.sent_at.desc(), InvoiceReminder.id.desc())
        .all()
    )
    return reminders, len(reminders)


# =============================================================================
# ITEM HISTORY
# =============================================================================

def add_item_history(ref, payload, shop_id: int, user) -> tuple[list[InvoiceItemHistory], Invoice]:
    """
    Record client-described item changes (one object or a list of them).

    Rows are stamped with the credential shop and the calling user;
    changed_by_name defaults to the user's name. A product_id outside the
    shop is dropped, as on invoice items.
    """
    entries = payload if isinstance(payload, list) else [payload]
    if not entries:
        raise ValidationError("At least one history record is required")

    invoice = get_invoice(ref, shop_id, action=Action.WRITE)

    records: list[InvoiceItemHistory] = []
    for index, raw in enumerate(entries):
        try:
            patch = validate_payload(
                model=InvoiceItemHistory, payload=raw, policy=INVOICE_ITEM_HISTORY_POLICY, partial=False
            )
            enforce_rules_item_history(patch)
        except ValidationError as e:
            raise ValidationError(f"records[{index}]: {e.message}")

        if patch.get("product_id") is not None:
            product = db.session.get(Product, patch["product_id"])
            if product is None or product.shop_id != shop_id:
                patch["product_id"] = None

        entry = InvoiceItemHistory(**patch)
        _stamp_history(entry, invoice, shop_id, user)
        records.append(entry)

    db.session.add_all(records)
    db.session.commit()
    return records, invoice


def list_item_history(ref, shop_id: int) -> tuple[list[InvoiceItemHistory], Invoice]:
    invoice = get_invoice(ref, shop_id)
    records = (
        db.session.query(InvoiceItemHistory)
        .filter(InvoiceItemHistory.invoice_id == invoice.id)
        .order_by(InvoiceItemHistory.created_at.desc(), InvoiceItemHistory.id.desc())
        .all()
    )
    return records, invoice


# =============================================================================
# LISTING / STATS
# =============================================================================

def _parse_positive_int(value, name: str, default: int) -> int:
    if value in (None, ""):
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
    if parsed < 1:
        raise ValidationError(f"{name} must be >= 1")
    return parsed


def list_invoices(shop_id: int, args) -> tuple[list[dict], dict]:
    """
    Filtered, sorted, paginated invoice listing for one shop.

    args (query string): status, customer_id, search, sort_by
    (date|invoice_number|total), sort_order (asc|desc), page, per_page.

    Returns (rows, pagination). Each row carries reminder_count.
    """
    query = db.session.query(Invoice).filter(Invoice.shop_id == shop_id)

    status = (args.get("status") or "").strip().upper()
    if status:
        if status not in INVOICE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(INVOICE_STATUSES)}")
        query = query.filter(Invoice.status == status)

    customer_id = args.get("customer_id")
    if customer_id not in (None, ""):
        query = query.filter(Invoice.customer_id == _parse_positive_int(customer_id, "customer_id", 0))

    search = (args.get("search") or "").strip()
    if search:
        pattern = contains_pattern(search)
        query = query.filter(
            or_(
                func.lower(Invoice.invoice_number).like(pattern, escape=LIKE_ESCAPE),
                func.lower(Invoice.customer_name).like(pattern, escape=LIKE_ESCAPE),
            )
        )

    sort_by = args.get("sort_by") or "date"
    if sort_by not in SORT_COLUMNS:
        raise ValidationError(f"sort_by must be one of: {', '.join(SORT_COLUMNS)}")
    sort_order = (args.get("sort_order") or "desc").lower()
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sort_order must be asc or desc")

    column = SORT_COLUMNS[sort_by]
    if sort_order == "asc":
        query = query.order_by(column.asc(), Invoice.id.asc())
    else:
        query = query.order_by(column.desc(), Invoice.id.desc())

    page = _parse_positive_int(args.get("page"), "page", 1)
    per_page = min(_parse_positive_int(args.get("per_page"), "per_page", DEFAULT_PER_PAGE), MAX_PER_PAGE)

    total = query.count()
    invoices = query.offset((page - 1) * per_page).limit(per_page).all()

    counts = reminder_counts([inv.id for inv in invoices])
    rows = []
    for inv in invoices:
        row = inv.to_dict()
        row["reminder_count"] = counts.get(inv.id, 0)
        rows.append(row)

    pagination = {
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": (total + per_page - 1) // per_page,
    }
    return rows, pagination


def invoice_stats(shop_id: int) -> dict:
    """Totals per status, overall revenue figures and the five most recent invoices."""
    base = db.session.query(Invoice).filter(Invoice.shop_id == shop_id)

    status_rows = (
        db.session.query(
            Invoice.status,
            func.count(Invoice.id),
            func.coalesce(func.sum(Invoice.total_cents), 0),
            func.coalesce(func.sum(Invoice.paid_amount_cents), 0),
            func.coalesce(func.sum(Invoice.due_amount_cents), 0),
        )
        .filter(Invoice.shop_id == shop_id)
        .group_by(Invoice.status)
        .all()
    )
    status_stats = {
        status.lower(): {"count": count, "total_cents": int(total), "paid_cents": int(paid), "due_cents": int(due)}
        for status, count, total, paid, due in status_rows
    }

    total, paid, due, tax, discount, average = (
        db.session.query(
            func.coalesce(func.sum(Invoice.total_cents), 0),
            func.coalesce(func.sum(Invoice.paid_amount_cents), 0),
            func.coalesce(func.sum(Invoice.due_amount_cents), 0),
            func.coalesce(func.sum(Invoice.tax_cents), 0),
            func.coalesce(func.sum(Invoice.discount_cents), 0),
            func.coalesce(func.avg(Invoice.total_cents), 0),
        )
        .filter(Invoice.shop_id == shop_id)
        .one()
    )

    recent = base.order_by(Invoice.created_at.desc(), Invoice.id.desc()).limit(5).all()

    return {
        "total_invoices": base.count(),
        "status_stats": status_stats,
        "revenue": {
            "total_cents": int(total),
            "paid_cents": int(paid),
            "due_cents": int(due),
            "tax_cents": int(tax),
            "discount_cents": int(discount),
            "average_cents": int(round(float(average))),
        },
        "recent_invoices": [inv.to_dict() for inv in recent],
    }
