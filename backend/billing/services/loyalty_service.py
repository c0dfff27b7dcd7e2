# Overview: Service-layer operations for loyalty points; encapsulates business logic and database work.

"""
Loyalty Invariants

- Earned points = explicit points when > 0, else floor(invoice.total x points_per_rupee).
- Every accrual appends one Earned LoyaltyTransaction expiring after
  LOYALTY_EXPIRY_DAYS and increments customer.loyalty_points in the same
  transaction.
- Points are only ever earned here; there is no redemption path.
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..errors import NotFoundError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, LoyaltyTransaction
from ..models.customers import LOYALTY_EARNED
from ..money import floor_int, to_decimal
from ..validation import coerce_decimal
from billing.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


def calculate_earned_points(invoice_total, points: int = 0, points_per_rupee=1) -> int:
    if points and points > 0:
        return int(points)
    return floor_int(to_decimal(invoice_total) * to_decimal(points_per_rupee))


def apply_loyalty_points(
    customer_id: int,
    invoice_id: int,
    points: int | None = 0,
    points_per_rupee=1,
) -> dict:
    """
    Accrue loyalty points for an invoice.

    Returns:
        {"earnedPoints": n}

    Raises:
        ValidationError: negative points or non-positive points_per_rupee
        NotFoundError: invoice or customer missing
        UnauthorizedError: customer_id is not the invoice customer
    """
    points = points or 0
    if isinstance(points, bool) or not isinstance(points, int) or points < 0:
        raise ValidationError("points must be a non-negative integer")
    points_per_rupee = coerce_decimal(
        1 if points_per_rupee is None else points_per_rupee, "points_per_rupee", positive=True
    )

    def _op():
        invoice = db.session.query(Invoice).filter_by(id=invoice_id).first()
        if not invoice or invoice.deleted:
            raise NotFoundError("Invoice not found")

        customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
        if not customer:
            raise NotFoundError("Customer not found")
        if invoice.customer_id != customer.id:
            raise UnauthorizedError("Customer does not match the invoice customer")

        earned_points = calculate_earned_points(invoice.total, points, points_per_rupee)

        db.session.add(LoyaltyTransaction(
            customer_id=customer.id,
            points=earned_points,
            type=LOYALTY_EARNED,
            invoice_id=invoice.id,
            description=f"Earned from invoice {invoice.invoice_number}",
            expiry_date=utcnow() + timedelta(days=current_app.config["LOYALTY_EXPIRY_DAYS"]),
        ))
        customer.loyalty_points = (customer.loyalty_points or 0) + earned_points

        db.session.commit()

        current_app.logger.info(
            "Customer %s earned %d loyalty point(s) on invoice %s",
            customer.id, earned_points, invoice.invoice_number,
        )
        return {"earnedPoints": earned_points}

    return run_with_retry(_op)


def list_loyalty_transactions(customer_id: int, type: str | None = None) -> list[LoyaltyTransaction]:
    query = db.session.query(LoyaltyTransaction).filter_by(customer_id=customer_id)
    if type:
        query = query.filter_by(type=type)
    return query.order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc()).all()


def get_customer_points(customer_id: int) -> int:
    customer = db.session.query(Customer).filter_by(id=customer_id).first()
    return customer.loyalty_points if customer else 0
