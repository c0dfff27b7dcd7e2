# Overview: Pytest coverage for loyalty point accrual.

from datetime import timedelta
from decimal import Decimal

import pytest

from billing.errors import NotFoundError, UnauthorizedError, ValidationError
from billing.models import Customer, LoyaltyTransaction
from billing.models.customers import LOYALTY_EARNED
from billing.services.loyalty_service import (
    apply_loyalty_points,
    calculate_earned_points,
    get_customer_points,
    list_loyalty_transactions,
)
from billing.time_utils import utcnow


class TestApplyLoyaltyPoints:
    def test_earns_one_point_per_rupee_by_default(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "1345.20")

        result = apply_loyalty_points(customer_a.id, invoice.id)

        assert result == {"earnedPoints": 1345}
        db_session.expire_all()
        assert db_session.get(Customer, customer_a.id).loyalty_points == 1345

    def test_records_earned_transaction_with_expiry(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "250.00")

        apply_loyalty_points(customer_a.id, invoice.id)

        txn = db_session.query(LoyaltyTransaction).one()
        assert txn.type == LOYALTY_EARNED
        assert txn.points == 250
        assert txn.invoice_id == invoice.id
        assert invoice.invoice_number in txn.description
        expected_expiry = utcnow() + timedelta(days=365)
        assert abs(txn.expiry_date - expected_expiry) < timedelta(minutes=5)

    def test_explicit_points_override_total(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "1345.20")
        assert apply_loyalty_points(customer_a.id, invoice.id, points=50) == {"earnedPoints": 50}

    def test_points_per_rupee_multiplier(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "1345.20")
        assert apply_loyalty_points(customer_a.id, invoice.id, points_per_rupee="0.1") == {"earnedPoints": 134}

    def test_accruals_accumulate(self, db_session, account_a, customer_a, make_invoice):
        one = make_invoice(account_a, customer_a, "100.00", number="INV202601010001")
        two = make_invoice(account_a, customer_a, "40.50", number="INV202601010002")

        apply_loyalty_points(customer_a.id, one.id)
        apply_loyalty_points(customer_a.id, two.id)

        assert get_customer_points(customer_a.id) == 140
        assert len(list_loyalty_transactions(customer_a.id, type=LOYALTY_EARNED)) == 2

    def test_rejects_negative_points(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "100.00")
        with pytest.raises(ValidationError):
            apply_loyalty_points(customer_a.id, invoice.id, points=-5)

    def test_rejects_customer_other_than_invoice_customer(self, db_session, account_a, customer_a, customer_b,
                                                          make_invoice):
        invoice = make_invoice(account_a, customer_a, "1345.20")

        with pytest.raises(UnauthorizedError):
            apply_loyalty_points(customer_b.id, invoice.id)

        db_session.expire_all()
        assert db_session.query(LoyaltyTransaction).count() == 0
        assert db_session.get(Customer, customer_b.id).loyalty_points == 0

    def test_missing_invoice(self, db_session, customer_a):
        with pytest.raises(NotFoundError):
            apply_loyalty_points(customer_a.id, 99999)

    def test_missing_customer(self, db_session, account_a, customer_a, make_invoice):
        invoice = make_invoice(account_a, customer_a, "100.00")
        with pytest.raises(NotFoundError):
            apply_loyalty_points(99999, invoice.id)
        assert db_session.query(LoyaltyTransaction).count() == 0


class TestCalculateEarnedPoints:
    @pytest.mark.parametrize("total,points,rate,expected", [
        ("1345.20", 0, 1, 1345),
        ("99.99", 0, 1, 99),
        ("1000.00", 0, "2", 2000),
        ("1000.00", 7, 1, 7),
        ("0.50", 0, 1, 0),
    ])
    def test_formula(self, total, points, rate, expected):
        assert calculate_earned_points(Decimal(total), points, rate) == expected
