from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


INVOICE_STATUS_UNPAID = "UNPAID"
INVOICE_STATUS_HALFPAY = "HALFPAY"
INVOICE_STATUS_FULLPAID = "FULLPAID"
INVOICE_STATUSES = (INVOICE_STATUS_UNPAID, INVOICE_STATUS_HALFPAY, INVOICE_STATUS_FULLPAID)

PAYMENT_METHODS = ("CASH", "CARD", "BANK_TRANSFER", "CHEQUE", "CREDIT")
SALES_CHANNELS = ("ON_SITE", "ONLINE")

REMINDER_TYPE_PAYMENT = "PAYMENT"
REMINDER_TYPE_OVERDUE = "OVERDUE"

ITEM_ADDED = "ADDED"
ITEM_REMOVED = "REMOVED"
ITEM_QTY_INCREASED = "QTY_INCREASED"
ITEM_QTY_DECREASED = "QTY_DECREASED"
ITEM_PRICE_CHANGED = "PRICE_CHANGED"
ITEM_HISTORY_ACTIONS = (ITEM_ADDED, ITEM_REMOVED, ITEM_QTY_INCREASED, ITEM_QTY_DECREASED, ITEM_PRICE_CHANGED)


class Invoice(db.Model):
    """
    Invoice header with denormalized money totals.

    Totals are owned by the invoice ledger service:
        total_cents = subtotal_cents + tax_cents - discount_cents
        due_amount_cents = max(0, total_cents - paid_amount_cents)

    invoice_number is unique across the whole platform (INV-<n>), not per shop.
    version_id is an optimistic concurrency token bumped on every flush.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("invoice_number", name="uq_invoices_invoice_number"),
        # Composite index for shop-scoped listings by status and date
        db.Index("ix_invoices_shop_status_date", "shop_id", "status", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    # Human-readable number (e.g., "INV-10260001")
    invoice_number = db.Column(db.String(64), nullable=False, index=True)

    # Nullable for walk-in customers
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    customer_name = db.Column(db.String(255), nullable=False, default="Unknown Customer")

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    paid_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    due_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=INVOICE_STATUS_UNPAID, index=True)

    date = db.Column(db.DateTime(timezone=True), nullable=False)
    due_date = db.Column(db.DateTime(timezone=True), nullable=True)

    payment_method = db.Column(db.String(32), nullable=False, default="CASH")
    sales_channel = db.Column(db.String(16), nullable=False, default="ON_SITE")
    notes = db.Column(db.Text, nullable=True)

    # User attribution (plain column so users can be removed)
    created_by_user_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)

    shop = db.relationship("Shop", backref=db.backref("invoices", lazy=True))
    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))
    items = db.relationship("InvoiceItem", backref="invoice", lazy=True, order_by="InvoiceItem.id")
    payments = db.relationship("InvoicePayment", backref="invoice", lazy=True, order_by="InvoicePayment.id")
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, *, include_items: bool = False, include_payments: bool = False) -> dict:
        data = {
            "id": self.id,
            "shop_id": self.shop_id,
            "invoice_number": self.invoice_number,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "paid_amount_cents": self.paid_amount_cents,
            "due_amount_cents": self.due_amount_cents,
            "status": self.status,
            "date": to_utc_z(self.date),
            "due_date": to_utc_z(self.due_date) if self.due_date else None,
            "payment_method": self.payment_method,
            "sales_channel": self.sales_channel,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        if include_payments:
            data["payments"] = [payment.to_dict() for payment in self.payments]
        return data


class InvoiceItem(db.Model):
    """Line item with a product name/price snapshot."""
    __tablename__ = "invoice_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    # Nulled when the product is missing, foreign or deleted
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    original_price_cents = db.Column(db.Integer, nullable=True)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "original_price_cents": self.original_price_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
        }


class InvoicePayment(db.Model):
    """
    One payment applied to an invoice.

    IMMUTABLE: Append-only. The invoice's paid amount is the sum of these rows.
    """
    __tablename__ = "invoice_payments"
    __table_args__ = (
        db.Index("ix_invoice_payments_invoice_date", "invoice_id", "payment_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False, default="CASH")
    payment_date = db.Column(db.DateTime(timezone=True), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    reference = db.Column(db.String(128), nullable=True)

    recorded_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "amount_cents": self.amount_cents,
            "payment_method": self.payment_method,
            "payment_date": to_utc_z(self.payment_date),
            "notes": self.notes,
            "reference": self.reference,
            "recorded_by_user_id": self.recorded_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }


class InvoiceReminder(db.Model):
    """
    Record of a payment/overdue reminder sent to the invoice's customer.

    Delivery happens outside this service; only the record is kept.
    """
    __tablename__ = "invoice_reminders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False, default=REMINDER_TYPE_PAYMENT)
    channel = db.Column(db.String(32), nullable=False, default="whatsapp")
    message = db.Column(db.Text, nullable=True)
    customer_name = db.Column(db.String(255), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)

    sent_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "shop_id": self.shop_id,
            "type": self.type,
            "channel": self.channel,
            "message": self.message,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "sent_at": to_utc_z(self.sent_at),
        }


class InvoiceItemHistory(db.Model):
    """
    Audit trail of line-item changes on an invoice.

    Rows are written by the ledger when an update replaces the item set, or
    recorded explicitly by the client. product_id is a plain column so the
    history outlives the product.

    IMMUTABLE: Append-only.
    """
    __tablename__ = "invoice_item_history"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    shop_id = db.Column(db.Integer, db.ForeignKey("shops.id"), nullable=False, index=True)

    action = db.Column(db.String(16), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=True)
    product_name = db.Column(db.String(255), nullable=False)
    old_quantity = db.Column(db.Integer, nullable=True)
    new_quantity = db.Column(db.Integer, nullable=True)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    # Signed effect on the invoice subtotal
    amount_change_cents = db.Column(db.Integer, nullable=False)

    changed_by_user_id = db.Column(db.Integer, nullable=True)
    changed_by_name = db.Column(db.String(255), nullable=True)
    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "shop_id": self.shop_id,
            "action": self.action,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "old_quantity": self.old_quantity,
            "new_quantity": self.new_quantity,
            "unit_price_cents": self.unit_price_cents,
            "amount_change_cents": self.amount_change_cents,
            "changed_by_user_id": self.changed_by_user_id,
            "changed_by_name": self.changed_by_name,
            "reason": self.reason,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
