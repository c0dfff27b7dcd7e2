# Overview: Service-layer operations for payment; encapsulates business logic and database work.

"""
Payment Ledger

WHY: Track money received against an invoice and derive its status.

DESIGN PRINCIPLES:
- Payments are separate from invoices (many-to-one relationship)
- Partial payments: a payment can be less than the amount due
- Append-only: payments are never edited or deleted
- Status: Paid iff amount_paid >= total, Partial iff 0 < amount_paid < total
- Overpayment is accepted; amount_due goes negative
- transaction_id is an idempotency key: replaying it returns the
  original payment without counting it twice
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..errors import NotFoundError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import Customer, Invoice, Payment
from ..models.invoices import INVOICE_STATUS_PAID, INVOICE_STATUS_PARTIAL
from ..money import ZERO, quantize_money, to_decimal
from ..validation import clean_text, coerce_decimal, coerce_int
from .concurrency import lock_for_update, run_with_retry


# =============================================================================
# PAYMENT METHODS (CONSTANTS)
# =============================================================================

METHOD_CASH = "Cash"
METHOD_CHECK = "Check"
METHOD_UPI = "UPI"
METHOD_BANK_TRANSFER = "Bank Transfer"
METHOD_CREDIT_CARD = "Credit Card"

VALID_PAYMENT_METHODS = [
    METHOD_CASH,
    METHOD_CHECK,
    METHOD_UPI,
    METHOD_BANK_TRANSFER,
    METHOD_CREDIT_CARD,
]


# =============================================================================
# PAYMENT RECORDING
# =============================================================================

def next_invoice_status(current_status: str, amount_paid: Decimal, total: Decimal) -> str:
    if amount_paid >= total:
        return INVOICE_STATUS_PAID
    if amount_paid > 0:
        return INVOICE_STATUS_PARTIAL
    return current_status


def record_payment(
    invoice_id: int,
    customer_id: int,
    amount,
    payment_method: str,
    transaction_id: str | None = None,
    notes: str | None = None,
) -> Payment:
    """
    Record a payment against an invoice.

    Args:
        invoice_id: Invoice being paid
        customer_id: Customer whose credit usage is released
        amount: Amount received (> 0)
        payment_method: Cash, Check, UPI, Bank Transfer, Credit Card
        transaction_id: External reference; deduplicates replays (optional)
        notes: Free text (optional)

    Returns:
        Payment record (the existing one when transaction_id was already used)

    Raises:
        ValidationError: amount not positive or unknown payment method
        NotFoundError: invoice missing
        UnauthorizedError: customer_id is not the invoice customer
    """
    amount = quantize_money(coerce_decimal(amount, "amount", positive=True))
    if amount <= 0:
        raise ValidationError("amount must be positive")
    if payment_method not in VALID_PAYMENT_METHODS:
        raise ValidationError(f"Invalid payment method: {payment_method}. Must be one of {VALID_PAYMENT_METHODS}")
    customer_id = coerce_int(customer_id, "customer_id")
    transaction_id = clean_text(transaction_id)

    def _op():
        invoice = lock_for_update(db.session.query(Invoice).filter_by(id=invoice_id)).first()
        if not invoice or invoice.deleted:
            raise NotFoundError("Invoice not found")
        if invoice.customer_id != customer_id:
            raise UnauthorizedError("Customer does not match the invoice customer")

        if transaction_id:
            existing = _existing_payment(invoice.id, transaction_id)
            if existing:
                current_app.logger.info(
                    "Duplicate payment %s for invoice %s ignored", transaction_id, invoice.invoice_number
                )
                return existing

        new_amount_paid = to_decimal(invoice.amount_paid) + amount
        total = to_decimal(invoice.total)

        payment = Payment(
            invoice_id=invoice.id,
            customer_id=customer_id,
            amount=amount,
            payment_method=payment_method,
            transaction_id=transaction_id,
            notes=notes,
        )
        db.session.add(payment)
        try:
            db.session.flush()
        except IntegrityError:
            # A concurrent replay inserted the same transaction_id first
            db.session.rollback()
            existing = _existing_payment(invoice_id, transaction_id) if transaction_id else None
            if existing is None:
                raise
            return existing

        invoice.amount_paid = new_amount_paid
        invoice.amount_due = total - new_amount_paid
        invoice.status = next_invoice_status(invoice.status, new_amount_paid, total)

        _release_credit(customer_id, amount)

        db.session.commit()

        current_app.logger.info(
            "Recorded %s payment of %s on invoice %s; status %s, due %s",
            payment_method, amount, invoice.invoice_number, invoice.status, invoice.amount_due,
        )
        return payment

    return run_with_retry(_op)


def _existing_payment(invoice_id: int, transaction_id: str) -> Payment | None:
    return (
        db.session.query(Payment)
        .filter_by(invoice_id=invoice_id, transaction_id=transaction_id)
        .first()
    )


def _release_credit(customer_id: int, amount: Decimal) -> None:
    """
    Free credit as cash comes in.

    NOTE: credit is consumed by pre-tax subtotals but released by
    tax-inclusive payments; usage is floored at zero.
    """
    customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
    if not customer:
        return
    released = to_decimal(customer.credit_used) - amount
    customer.credit_used = released if released > 0 else ZERO


# =============================================================================
# QUERIES
# =============================================================================

def list_payments(invoice_id: int | None = None, customer_id: int | None = None) -> list[Payment]:
    """Payments filtered by invoice and/or customer, newest first."""
    query = db.session.query(Payment)
    if invoice_id:
        query = query.filter_by(invoice_id=invoice_id)
    if customer_id:
        query = query.filter_by(customer_id=customer_id)
    return query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()
