# Overview: Pytest coverage for invoice ledger behavior (totals, payments, numbering, stock).

"""
Invoice Ledger Tests

Service-level coverage of invoice_service:
- derived money fields (total, due) and status derivation
- payment ledger consistency (paid == SUM(payments))
- numbering, lookup chase, item replacement and deletion
- tenant stamping on every write
"""

import pytest
from sqlalchemy import text

from shopdesk.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from shopdesk.models import Invoice, InvoiceItem, InvoiceItemHistory, InvoicePayment, InvoiceReminder
from shopdesk.services import invoice_service


def _create(user, **overrides):
    payload = {"items": [{"quantity": 2, "unit_price_cents": 100}]}
    payload.update(overrides)
    return invoice_service.create_invoice(payload, user.shop_id, user.id)


def _payments_sum(db_session, invoice_id: int) -> int:
    return sum(
        p.amount_cents
        for p in db_session.query(InvoicePayment).filter_by(invoice_id=invoice_id).all()
    )


class TestDerivedFields:

    @pytest.mark.parametrize("total,paid,expected", [
        (200, 0, "UNPAID"),
        (200, -5, "UNPAID"),
        (200, 1, "HALFPAY"),
        (200, 199, "HALFPAY"),
        (200, 200, "FULLPAID"),
        (200, 250, "FULLPAID"),
        (0, 0, "FULLPAID"),
    ])
    def test_derive_status(self, total, paid, expected):
        assert invoice_service.derive_status(total, paid) == expected

    def test_compute_total_and_due(self):
        assert invoice_service.compute_total(1000, 150, 50) == 1100
        assert invoice_service.compute_due(1100, 300) == 800
        assert invoice_service.compute_due(1100, 5000) == 0


class TestCreateInvoice:

    def test_items_only_invoice(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, tax_cents=0, discount_cents=0, paid_amount_cents=0)

        assert invoice.subtotal_cents == 200
        assert invoice.total_cents == 200
        assert invoice.due_amount_cents == 200
        assert invoice.paid_amount_cents == 0
        assert invoice.status == "UNPAID"
        assert invoice.shop_id == staff_a.shop_id
        assert invoice.created_by_user_id == staff_a.id
        assert invoice.customer_name == "Unknown Customer"
        assert invoice.items[0].product_name == "Unknown Product"
        assert invoice.items[0].total_cents == 200

    def test_totals_with_tax_and_discount(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, tax_cents=30, discount_cents=50)

        assert invoice.total_cents == 200 + 30 - 50
        assert invoice.due_amount_cents == invoice.total_cents

    def test_explicit_subtotal_without_items(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = invoice_service.create_invoice({"subtotal_cents": 5000}, staff_a.shop_id, staff_a.id)

        assert invoice.total_cents == 5000
        assert invoice.items == []

    def test_requires_items_or_subtotal(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            with pytest.raises(ValidationError):
                invoice_service.create_invoice({"customer_name": "Walk-in"}, staff_a.shop_id, staff_a.id)

    def test_discount_larger_than_total_rejected(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            with pytest.raises(ValidationError):
                _create(staff_a, discount_cents=500)
        assert db_session.query(Invoice).count() == 0

    def test_partial_opening_payment(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, paid_amount_cents=50)

        assert invoice.status == "HALFPAY"
        assert invoice.due_amount_cents == 150
        assert _payments_sum(db_session, invoice.id) == 50

    def test_full_opening_payment(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, paid_amount_cents=200)

        assert invoice.status == "FULLPAID"
        assert invoice.due_amount_cents == 0

    def test_explicit_status_is_honoured(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, status="fullpaid")
        assert invoice.status == "FULLPAID"

    def test_shop_id_in_payload_rejected(self, db_session, acting_as, staff_a, shop_b):
        with acting_as(staff_a):
            with pytest.raises(ValidationError, match="shop_id"):
                _create(staff_a, shop_id=shop_b.id)

    def test_customer_snapshot(self, db_session, acting_as, staff_a, customer_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, customer_id=customer_a.id)

        assert invoice.customer_id == customer_a.id
        assert invoice.customer_name == "Nimal Perera"

    def test_foreign_customer_rejected(self, db_session, acting_as, staff_a, customer_b):
        with acting_as(staff_a):
            with pytest.raises(AuthorizationError):
                _create(staff_a, customer_id=customer_b.id)

    def test_product_snapshot_and_stock(self, db_session, acting_as, staff_a, product_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, items=[{"product_id": product_a.id, "quantity": 2, "unit_price_cents": 1500}])

        item = invoice.items[0]
        assert item.product_id == product_a.id
        assert item.product_name == "Phone Case"
        assert item.original_price_cents == 1500
        assert product_a.stock == 8

    def test_foreign_product_is_delinked(self, db_session, acting_as, staff_a, product_b):
        with acting_as(staff_a):
            invoice = _create(staff_a, items=[{"product_id": product_b.id, "quantity": 1, "unit_price_cents": 999}])

        assert invoice.items[0].product_id is None
        assert product_b.stock == 5

    @pytest.mark.parametrize("item", [
        {"quantity": 0, "unit_price_cents": 100},
        {"quantity": 1, "unit_price_cents": -1},
        {"quantity": 1.5, "unit_price_cents": 100},
        {"unit_price_cents": 100},
        {"quantity": 1, "unit_price_cents": 100, "colour": "red"},
    ])
    def test_invalid_items_rejected(self, db_session, acting_as, staff_a, item):
        with acting_as(staff_a):
            with pytest.raises(ValidationError):
                _create(staff_a, items=[item])

    def test_invalid_enum_rejected(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            with pytest.raises(ValidationError):
                _create(staff_a, payment_method="BITCOIN")


class TestInvoiceNumbering:

    def test_first_number_uses_base(self, app, db_session):
        base = app.config["INVOICE_NUMBER_BASE"]
        assert invoice_service.next_invoice_number() == f"INV-{base + 1}"

    def test_sequential_numbers(self, db_session, acting_as, staff_a, staff_b):
        with acting_as(staff_a):
            first = _create(staff_a)
        with acting_as(staff_b):
            second = _create(staff_b)

        first_n = int(first.invoice_number[4:])
        second_n = int(second.invoice_number[4:])
        assert second_n == first_n + 1

    def test_numeric_not_lexicographic_max(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            invoice.invoice_number = "INV-99999999"
            db_session.commit()
            other = _create(staff_a)
            other.invoice_number = "INV-100000000"
            db_session.commit()

        assert invoice_service.next_invoice_number() == "INV-100000001"


class TestLookup:

    def test_lookup_chase_returns_same_invoice(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            digits = invoice.invoice_number[len("INV-"):]

            by_id = invoice_service.get_invoice(str(invoice.id), staff_a.shop_id)
            by_number = invoice_service.get_invoice(invoice.invoice_number, staff_a.shop_id)
            by_digits = invoice_service.get_invoice(digits, staff_a.shop_id)

        assert by_id.id == by_number.id == by_digits.id == invoice.id

    def test_missing_invoice_is_not_found(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            with pytest.raises(NotFoundError):
                invoice_service.get_invoice("INV-1", staff_a.shop_id)

    def test_foreign_invoice_is_forbidden(self, db_session, acting_as, staff_a, staff_b):
        with acting_as(staff_b):
            invoice = _create(staff_b)
        with acting_as(staff_a):
            with pytest.raises(AuthorizationError):
                invoice_service.get_invoice(invoice.invoice_number, staff_a.shop_id)


class TestPayments:

    def test_single_full_payment(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            payment, invoice = invoice_service.add_payment(
                invoice.invoice_number, {"amount_cents": 200}, staff_a.shop_id, staff_a.id
            )

        assert payment.amount_cents == 200
        assert invoice.paid_amount_cents == 200
        assert invoice.due_amount_cents == 0
        assert invoice.status == "FULLPAID"

    def test_payments_accumulate(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            invoice_service.add_payment(invoice.id, {"amount_cents": 50}, staff_a.shop_id, staff_a.id)
            _, invoice = invoice_service.add_payment(invoice.id, {"amount_cents": 50}, staff_a.shop_id, staff_a.id)

        assert invoice.paid_amount_cents == 100
        assert invoice.due_amount_cents == 100
        assert invoice.status == "HALFPAY"
        assert _payments_sum(db_session, invoice.id) == invoice.paid_amount_cents

    def test_paid_includes_opening_payment(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, paid_amount_cents=120)
            _, invoice = invoice_service.add_payment(invoice.id, {"amount_cents": 80}, staff_a.shop_id, staff_a.id)

        assert invoice.paid_amount_cents == 200
        assert invoice.status == "FULLPAID"
        assert _payments_sum(db_session, invoice.id) == 200

    def test_overpayment_floors_due_at_zero(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            _, invoice = invoice_service.add_payment(invoice.id, {"amount_cents": 500}, staff_a.shop_id, staff_a.id)

        assert invoice.paid_amount_cents == 500
        assert invoice.due_amount_cents == 0
        assert invoice.status == "FULLPAID"

    def test_payment_bumps_version(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            before = invoice.version_id
            _, invoice = invoice_service.add_payment(invoice.id, {"amount_cents": 10}, staff_a.shop_id, staff_a.id)

        assert invoice.version_id == before + 1

    def test_concurrent_write_between_load_and_commit(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            invoice_id = invoice.id
            assert invoice.version_id == 1

            # Another writer bumps the row after this session loaded it
            db_session.execute(
                text("UPDATE invoices SET version_id = version_id + 1 WHERE id = :id"),
                {"id": invoice_id},
            )

            with pytest.raises(ConflictError):
                invoice_service.add_payment(invoice_id, {"amount_cents": 50}, staff_a.shop_id, staff_a.id)

        db_session.expire_all()
        assert db_session.get(Invoice, invoice_id).paid_amount_cents == 0
        assert db_session.query(InvoicePayment).filter_by(invoice_id=invoice_id).count() == 0

    @pytest.mark.parametrize("payload", [{}, {"amount_cents": 0}, {"amount_cents": -10}, {"amount_cents": "abc"}])
    def test_invalid_amount_rejected(self, db_session, acting_as, staff_a, payload):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            with pytest.raises(ValidationError):
                invoice_service.add_payment(invoice.id, payload, staff_a.shop_id, staff_a.id)

    def test_foreign_invoice_payment_forbidden(self, db_session, acting_as, staff_a, staff_b):
        with acting_as(staff_b):
            invoice = _create(staff_b)
        with acting_as(staff_a):
            with pytest.raises(AuthorizationError):
                invoice_service.add_payment(invoice.id, {"amount_cents": 10}, staff_a.shop_id, staff_a.id)

        assert db_session.query(InvoicePayment).filter_by(invoice_id=invoice.id).count() == 0


class TestUpdateInvoice:

    def test_discount_change_recomputes_total_and_due(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, paid_amount_cents=50)
            invoice = invoice_service.update_invoice(invoice.id, {"discount_cents": 20}, staff_a.shop_id)

        assert invoice.total_cents == 180
        assert invoice.due_amount_cents == 130
        # Status only moves when supplied on update
        assert invoice.status == "HALFPAY"

    def test_status_correction(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            invoice = invoice_service.update_invoice(invoice.id, {"status": "FULLPAID"}, staff_a.shop_id)
        assert invoice.status == "FULLPAID"

    def test_items_replace_all(self, db_session, acting_as, staff_a, product_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, items=[{"product_id": product_a.id, "quantity": 2, "unit_price_cents": 1500}])
            invoice = invoice_service.update_invoice(
                invoice.id,
                {"items": [
                    {"product_id": product_a.id, "quantity": 3, "unit_price_cents": 1500},
                    {"product_name": "Screen Guard", "quantity": 1, "unit_price_cents": 500},
                ]},
                staff_a.shop_id,
            )

        assert invoice.subtotal_cents == 5000
        assert invoice.total_cents == 5000
        assert invoice.due_amount_cents == 5000
        assert db_session.query(InvoiceItem).filter_by(invoice_id=invoice.id).count() == 2
        assert product_a.stock == 7

    def test_empty_items_rejected(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            with pytest.raises(ValidationError):
                invoice_service.update_invoice(invoice.id, {"items": []}, staff_a.shop_id)

    def test_stale_version_conflicts(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            stale = invoice.version_id
            invoice_service.add_payment(invoice.id, {"amount_cents": 10}, staff_a.shop_id, staff_a.id)
            with pytest.raises(ConflictError):
                invoice_service.update_invoice(invoice.id, {"notes": "late", "version_id": stale}, staff_a.shop_id)

    def test_shop_id_cannot_be_changed(self, db_session, acting_as, staff_a, shop_b):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            with pytest.raises(ValidationError):
                invoice_service.update_invoice(invoice.id, {"shop_id": shop_b.id}, staff_a.shop_id)
        assert invoice.shop_id == staff_a.shop_id


class TestItemHistory:

    def test_items_update_writes_history(self, db_session, acting_as, staff_a, product_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, items=[
                {"product_id": product_a.id, "quantity": 2, "unit_price_cents": 1500},
                {"product_name": "Screen Guard", "quantity": 1, "unit_price_cents": 500},
                {"product_name": "Cable", "quantity": 1, "unit_price_cents": 300},
            ])
            old_subtotal = invoice.subtotal_cents
            invoice = invoice_service.update_invoice(
                invoice.id,
                {
                    "items": [
                        {"product_id": product_a.id, "quantity": 3, "unit_price_cents": 1500},
                        {"product_name": "screen guard", "quantity": 1, "unit_price_cents": 450},
                        {"product_name": "Charger Head", "quantity": 2, "unit_price_cents": 800},
                    ],
                    "item_change_reason": "  Customer swapped cable  ",
                },
                staff_a.shop_id,
                staff_a,
            )

        rows = db_session.query(InvoiceItemHistory).filter_by(invoice_id=invoice.id).all()
        by_name = {row.product_name.lower(): row for row in rows}
        assert len(rows) == 4

        assert by_name["phone case"].action == "QTY_INCREASED"
        assert by_name["phone case"].product_id == product_a.id
        assert (by_name["phone case"].old_quantity, by_name["phone case"].new_quantity) == (2, 3)
        assert by_name["phone case"].amount_change_cents == 1500

        assert by_name["screen guard"].action == "PRICE_CHANGED"
        assert by_name["screen guard"].unit_price_cents == 450
        assert by_name["screen guard"].amount_change_cents == -50

        assert by_name["cable"].action == "REMOVED"
        assert (by_name["cable"].old_quantity, by_name["cable"].new_quantity) == (1, 0)
        assert by_name["cable"].amount_change_cents == -300

        assert by_name["charger head"].action == "ADDED"
        assert by_name["charger head"].amount_change_cents == 1600

        assert sum(row.amount_change_cents for row in rows) == invoice.subtotal_cents - old_subtotal
        assert all(row.shop_id == staff_a.shop_id for row in rows)
        assert all(row.changed_by_user_id == staff_a.id for row in rows)
        assert all(row.changed_by_name == staff_a.name for row in rows)
        assert all(row.reason == "Customer swapped cable" for row in rows)

    def test_unchanged_items_write_nothing(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            invoice_service.update_invoice(
                invoice.id, {"items": [{"quantity": 2, "unit_price_cents": 100}]}, staff_a.shop_id, staff_a
            )
            invoice_service.update_invoice(invoice.id, {"notes": "checked"}, staff_a.shop_id, staff_a)

        assert db_session.query(InvoiceItemHistory).filter_by(invoice_id=invoice.id).count() == 0

    def test_split_lines_are_merged_per_product(self):
        old = [InvoiceItem(product_id=7, product_name="Case", quantity=1, unit_price_cents=100)]
        new = [
            InvoiceItem(product_id=7, product_name="Case", quantity=1, unit_price_cents=100),
            InvoiceItem(product_id=7, product_name="Case", quantity=2, unit_price_cents=100),
        ]

        history = invoice_service.diff_items(old, new)

        assert len(history) == 1
        assert history[0].action == "QTY_INCREASED"
        assert (history[0].old_quantity, history[0].new_quantity) == (1, 3)
        assert history[0].amount_change_cents == 200

    def test_invalid_reason_rejected(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            with pytest.raises(ValidationError):
                invoice_service.update_invoice(
                    invoice.id,
                    {"items": [{"quantity": 1, "unit_price_cents": 100}], "item_change_reason": 5},
                    staff_a.shop_id,
                )

    def test_record_and_list(self, db_session, acting_as, staff_a, product_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            records, _ = invoice_service.add_item_history(
                invoice.invoice_number,
                [
                    {"action": "added", "product_id": product_a.id, "product_name": "Phone Case",
                     "new_quantity": 1, "unit_price_cents": 1500, "amount_change_cents": 1500},
                    {"action": "REMOVED", "product_name": "Cable", "old_quantity": 1, "new_quantity": 0,
                     "unit_price_cents": 300, "amount_change_cents": -300, "changed_by_name": "Front Desk"},
                ],
                staff_a.shop_id,
                staff_a,
            )
            listed, _ = invoice_service.list_item_history(invoice.id, staff_a.shop_id)

        assert [r.action for r in records] == ["ADDED", "REMOVED"]
        assert records[0].changed_by_name == staff_a.name
        assert records[1].changed_by_name == "Front Desk"
        assert [r.id for r in listed] == [records[1].id, records[0].id]

    def test_record_on_foreign_invoice_forbidden(self, db_session, acting_as, staff_a, staff_b):
        with acting_as(staff_b):
            invoice = _create(staff_b)
        with acting_as(staff_a):
            with pytest.raises(AuthorizationError):
                invoice_service.add_item_history(
                    invoice.id,
                    {"action": "ADDED", "product_name": "X", "unit_price_cents": 1, "amount_change_cents": 1},
                    staff_a.shop_id,
                    staff_a,
                )

        assert db_session.query(InvoiceItemHistory).count() == 0


class TestDeleteInvoice:

    def test_delete_removes_children_and_restores_stock(self, db_session, acting_as, staff_a, product_a):
        with acting_as(staff_a):
            invoice = _create(
                staff_a,
                items=[{"product_id": product_a.id, "quantity": 4, "unit_price_cents": 1500}],
                paid_amount_cents=1000,
            )
            invoice_service.add_reminder(invoice.id, {}, staff_a.shop_id)
            invoice_service.update_invoice(
                invoice.id,
                {"items": [{"product_id": product_a.id, "quantity": 5, "unit_price_cents": 1500}]},
                staff_a.shop_id,
                staff_a,
            )
            invoice_id = invoice.id
            number = invoice_service.delete_invoice(invoice.invoice_number, staff_a.shop_id)

        assert number.startswith("INV-")
        assert db_session.get(Invoice, invoice_id) is None
        assert db_session.query(InvoiceItem).filter_by(invoice_id=invoice_id).count() == 0
        assert db_session.query(InvoicePayment).filter_by(invoice_id=invoice_id).count() == 0
        assert db_session.query(InvoiceReminder).filter_by(invoice_id=invoice_id).count() == 0
        assert db_session.query(InvoiceItemHistory).filter_by(invoice_id=invoice_id).count() == 0
        assert product_a.stock == 10


class TestReminders:

    def test_reminder_defaults(self, db_session, acting_as, staff_a, customer_a):
        with acting_as(staff_a):
            invoice = _create(staff_a, customer_id=customer_a.id)
            reminder, count = invoice_service.add_reminder(invoice.id, None, staff_a.shop_id)

        assert count == 1
        assert reminder.type == "PAYMENT"
        assert reminder.channel == "whatsapp"
        assert reminder.shop_id == staff_a.shop_id
        assert reminder.customer_name == "Nimal Perera"
        assert reminder.customer_phone == "0711111111"

    def test_overdue_type_and_listing(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            invoice = _create(staff_a)
            invoice_service.add_reminder(invoice.id, {"type": "overdue"}, staff_a.shop_id)
            invoice_service.add_reminder(invoice.id, {"type": "anything"}, staff_a.shop_id)
            reminders, count = invoice_service.list_reminders(invoice.id, staff_a.shop_id)

        assert count == 2
        assert sorted(r.type for r in reminders) == ["OVERDUE", "PAYMENT"]


class TestListingAndStats:

    def test_list_is_shop_scoped_and_paginated(self, db_session, acting_as, staff_a, staff_b):
        with acting_as(staff_a):
            for _ in range(3):
                _create(staff_a)
        with acting_as(staff_b):
            _create(staff_b)

        rows, pagination = invoice_service.list_invoices(staff_a.shop_id, {"per_page": "2"})
        assert len(rows) == 2
        assert pagination == {"page": 1, "per_page": 2, "total": 3, "total_pages": 2}
        assert all(row["shop_id"] == staff_a.shop_id for row in rows)
        assert all(row["reminder_count"] == 0 for row in rows)

    def test_list_filters(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            _create(staff_a, customer_name="Sunil Traders")
            _create(staff_a, paid_amount_cents=200)

        rows, _ = invoice_service.list_invoices(staff_a.shop_id, {"status": "fullpaid"})
        assert len(rows) == 1
        rows, _ = invoice_service.list_invoices(staff_a.shop_id, {"search": "sunil"})
        assert [r["customer_name"] for r in rows] == ["Sunil Traders"]

    def test_search_escapes_like_wildcards(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            _create(staff_a, customer_name="50% Off Mart")
            _create(staff_a, customer_name="500 Mart")
            _create(staff_a, customer_name="A_B Traders")
            _create(staff_a, customer_name="AXB Traders")

        rows, _ = invoice_service.list_invoices(staff_a.shop_id, {"search": "50%"})
        assert [r["customer_name"] for r in rows] == ["50% Off Mart"]
        rows, _ = invoice_service.list_invoices(staff_a.shop_id, {"search": "a_b"})
        assert [r["customer_name"] for r in rows] == ["A_B Traders"]

    @pytest.mark.parametrize("args", [{"sort_by": "colour"}, {"page": "0"}, {"status": "LOST"}])
    def test_list_rejects_bad_args(self, db_session, staff_a, args):
        with pytest.raises(ValidationError):
            invoice_service.list_invoices(staff_a.shop_id, args)

    def test_stats(self, db_session, acting_as, staff_a):
        with acting_as(staff_a):
            _create(staff_a)
            _create(staff_a, paid_amount_cents=200)
            _create(staff_a, paid_amount_cents=100)

        stats = invoice_service.invoice_stats(staff_a.shop_id)
        assert stats["total_invoices"] == 3
        assert stats["status_stats"]["unpaid"]["count"] == 1
        assert stats["status_stats"]["fullpaid"]["paid_cents"] == 200
        assert stats["revenue"]["total_cents"] == 600
        assert stats["revenue"]["paid_cents"] == 300
        assert stats["revenue"]["due_cents"] == 300
        assert stats["revenue"]["average_cents"] == 200
        assert len(stats["recent_invoices"]) == 3
