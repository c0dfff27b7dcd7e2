# Overview: Credit-limit admission control for new invoices.

from __future__ import annotations

from decimal import Decimal

from ..errors import CreditLimitExceededError
from ..models import Customer
from ..money import ZERO, quantize_money, to_decimal


def available_credit(customer: Customer) -> Decimal:
    return quantize_money(to_decimal(customer.credit_limit) - to_decimal(customer.credit_used))


def check_credit(customer: Customer, proposed_subtotal) -> None:
    """
    Reject an invoice that would push the customer's credit usage over
    its limit.

    NOTE: the projection uses the pre-tax subtotal, while payments later
    release credit by tax-inclusive amounts.

    Raises:
        CreditLimitExceededError: credit_used + proposed_subtotal > credit_limit
    """
    credit_used = to_decimal(customer.credit_used or ZERO)
    projected = credit_used + to_decimal(proposed_subtotal)
    if projected > to_decimal(customer.credit_limit or ZERO):
        available = available_credit(customer)
        raise CreditLimitExceededError(
            f"Credit limit exceeded. Available: {available}",
            details={
                "customer_id": customer.id,
                "credit_limit": str(customer.credit_limit),
                "credit_used": str(credit_used),
                "requested": str(proposed_subtotal),
                "available": str(available),
            },
        )
