# Overview: Pytest coverage for payment recording, status derivation and credit release.

from decimal import Decimal

import pytest

from billing.errors import NotFoundError, UnauthorizedError, ValidationError
from billing.models import Customer, Invoice, Payment
from billing.models.invoices import (
    INVOICE_STATUS_DRAFT,
    INVOICE_STATUS_ISSUED,
    INVOICE_STATUS_PAID,
    INVOICE_STATUS_PARTIAL,
)
from billing.services import payment_service
from billing.services.payment_service import (
    list_payments,
    next_invoice_status,
    record_payment,
)


class TestRecordPayment:
    def test_partial_then_full_payment(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "1000.00")

        record_payment(invoice.id, customer_a.id, 400, "Cash")
        db_session.expire_all()
        after_first = db_session.get(Invoice, invoice.id)
        assert after_first.amount_paid == Decimal("400.00")
        assert after_first.amount_due == Decimal("600.00")
        assert after_first.status == INVOICE_STATUS_PARTIAL

        record_payment(invoice.id, customer_a.id, "600", "UPI")
        db_session.expire_all()
        after_second = db_session.get(Invoice, invoice.id)
        assert after_second.amount_paid == Decimal("1000.00")
        assert after_second.amount_due == Decimal("0")
        assert after_second.status == INVOICE_STATUS_PAID
        assert len(after_second.payments) == 2

    def test_payment_fields(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "500.00")

        payment = record_payment(
            invoice.id, customer_a.id, Decimal("125.50"), "Bank Transfer",
            transaction_id=" NEFT-001 ", notes="First instalment",
        )

        assert payment.id is not None
        assert payment.amount == Decimal("125.50")
        assert payment.transaction_id == "NEFT-001"
        data = payment.to_dict()
        assert data["paymentMethod"] == "Bank Transfer"
        assert data["amount"] == 125.5

    def test_duplicate_transaction_id_is_counted_once(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "1000.00")

        first = record_payment(invoice.id, customer_a.id, 400, "UPI", transaction_id="UPI-123")
        replay = record_payment(invoice.id, customer_a.id, 400, "UPI", transaction_id="UPI-123")

        db_session.expire_all()
        assert replay.id == first.id
        assert db_session.query(Payment).count() == 1
        assert db_session.get(Invoice, invoice.id).amount_paid == Decimal("400.00")

    def test_same_transaction_id_on_another_invoice(self, db_session, account_a, customer_a, make_invoice):
        one = make_invoice(account_a, customer_a, "100.00", number="INV202601010001")
        two = make_invoice(account_a, customer_a, "100.00", number="INV202601010002")

        record_payment(one.id, customer_a.id, 50, "Check", transaction_id="CHQ-9")
        record_payment(two.id, customer_a.id, 50, "Check", transaction_id="CHQ-9")

        assert db_session.query(Payment).count() == 2

    def test_overpayment_is_accepted(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "100.00")

        record_payment(invoice.id, customer_a.id, 150, "Cash")

        db_session.expire_all()
        refreshed = db_session.get(Invoice, invoice.id)
        assert refreshed.status == INVOICE_STATUS_PAID
        assert refreshed.amount_due == Decimal("-50.00")

    def test_releases_customer_credit(self, db_session, account_a, customer_a, make_invoice):
        customer_a.credit_used = Decimal("500.00")
        db_session.commit()
        invoice = make_invoice(account_a, customer_a, "590.00")

        record_payment(invoice.id, customer_a.id, 400, "Cash")

        db_session.expire_all()
        assert db_session.get(Customer, customer_a.id).credit_used == Decimal("100.00")

    def test_credit_usage_never_goes_negative(self, db_session, account_a, customer_a, make_invoice):
        customer_a.credit_used = Decimal("100.00")
        db_session.commit()
        invoice = make_invoice(account_a, customer_a, "118.00")

        record_payment(invoice.id, customer_a.id, 118, "Cash")

        db_session.expire_all()
        assert db_session.get(Customer, customer_a.id).credit_used == Decimal("0")

    @pytest.mark.parametrize("amount", [0, -10, "abc", None])
    def test_rejects_bad_amount(self, db_session, account_a, customer_a, make_invoice, amount):
        invoice = make_invoice(account_a, customer_a, "100.00")
        with pytest.raises(ValidationError):
            record_payment(invoice.id, customer_a.id, amount, "Cash")
        assert db_session.query(Payment).count() == 0

    def test_rejects_unknown_method(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "100.00")
        with pytest.raises(ValidationError):
            record_payment(invoice.id, customer_a.id, 10, "Barter")

    def test_rejects_customer_other_than_invoice_customer(self, db_session, account_a, customer_a, customer_b,
                                                          make_invoice):
        customer_b.credit_used = Decimal("500.00")
        db_session.commit()
        invoice = make_invoice(account_a, customer_a, "1000.00")

        with pytest.raises(UnauthorizedError):
            record_payment(invoice.id, customer_b.id, "400", "Cash")

        db_session.expire_all()
        assert db_session.query(Payment).count() == 0
        assert db_session.get(Customer, customer_b.id).credit_used == Decimal("500.00")
        assert db_session.get(Invoice, invoice.id).amount_paid == Decimal("0")

    def test_concurrent_replay_returns_the_stored_payment(self, db_session, monkeypatch, account_a, customer_a,
                                                          make_invoice):
        """If another writer stores the transaction_id between lookup and insert, its payment is returned."""
        invoice = make_invoice(account_a, customer_a, "1000.00")
        stored = Payment(invoice_id=invoice.id, customer_id=customer_a.id, amount=Decimal("400.00"),
                         payment_method="UPI", transaction_id="UPI-777")
        db_session.add(stored)
        db_session.commit()

        real_lookup = payment_service._existing_payment
        calls = []

        def _lookup_misses_once(invoice_id, transaction_id):
            calls.append(transaction_id)
            if len(calls) == 1:
                return None
            return real_lookup(invoice_id, transaction_id)

        monkeypatch.setattr(payment_service, "_existing_payment", _lookup_misses_once)

        result = record_payment(invoice.id, customer_a.id, 400, "UPI", transaction_id="UPI-777")

        db_session.expire_all()
        assert result.id == stored.id
        assert len(calls) == 2
        assert db_session.query(Payment).count() == 1
        assert db_session.get(Invoice, invoice.id).amount_paid == Decimal("0")

    def test_missing_invoice(self, db_session, customer_a):
        with pytest.raises(NotFoundError):
            record_payment(99999, customer_a.id, 10, "Cash")


class TestStatusDerivation:
    @pytest.mark.parametrize("current,paid,total,expected", [
        (INVOICE_STATUS_DRAFT, "0", "100", INVOICE_STATUS_DRAFT),
        (INVOICE_STATUS_ISSUED, "0", "100", INVOICE_STATUS_ISSUED),
        (INVOICE_STATUS_DRAFT, "0.01", "100", INVOICE_STATUS_PARTIAL),
        (INVOICE_STATUS_ISSUED, "100", "100", INVOICE_STATUS_PAID),
        (INVOICE_STATUS_PARTIAL, "120", "100", INVOICE_STATUS_PAID),
    ])
    def test_next_invoice_status(self, current, paid, total, expected):
        assert next_invoice_status(current, Decimal(paid), Decimal(total)) == expected


class TestListPayments:
    def test_filters_and_orders_newest_first(self, db_session, account_a, customer_a, make_invoice):
        one = make_invoice(account_a, customer_a, "100.00", number="INV202601010001")
        two = make_invoice(account_a, customer_a, "100.00", number="INV202601010002")
        p1 = record_payment(one.id, customer_a.id, 10, "Cash")
        p2 = record_payment(one.id, customer_a.id, 20, "Cash")
        p3 = record_payment(two.id, customer_a.id, 30, "Cash")

        assert [p.id for p in list_payments(invoice_id=one.id)] == [p2.id, p1.id]
        assert {p.id for p in list_payments(customer_id=customer_a.id)} == {p1.id, p2.id, p3.id}
