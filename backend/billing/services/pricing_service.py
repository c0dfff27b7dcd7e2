# Overview: Service-layer operations for pricing; resolves the effective unit price of a sale line.

"""
Price Resolution

PRECEDENCE:
1. Pricing rules. A rule is a candidate when it is active, has a known
   price type (Fixed | Percentage), belongs to the product's account, its
   window contains "now", the quantity falls within [min_quantity,
   max_quantity or unbounded], and at least one of these holds:
   rule.customer_id == customer, rule.product_id == product, or
   rule.customer_group == "Regular".
   Candidates are ranked newest first (created_at desc, id desc) and the
   first one wins.
2. Bulk-discount ladder, only when no rule matches.

Percentage discounts are capped at the base price, so a unit price is
never negative.

Resolution never writes; identical inputs over unchanged rules give
identical quotes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from flask import current_app
from sqlalchemy import or_

from ..errors import NotFoundError
from ..extensions import db
from ..models import PricingRule, Product
from ..models.catalog import PRICE_TYPE_FIXED, VALID_PRICE_TYPES
from ..models.customers import CUSTOMER_GROUP_REGULAR
from ..money import ZERO, percent_of, quantize_money, to_decimal
from ..validation import coerce_int
from billing.time_utils import utcnow


@dataclass(frozen=True)
class PriceQuote:
    base_price: Decimal
    final_price: Decimal
    discount_amount: Decimal
    discount_percent: Decimal
    rule_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "basePrice": float(self.base_price),
            "discountedPrice": float(self.final_price),
            "discountAmount": float(self.discount_amount),
            "discountPercent": float(self.discount_percent),
        }


def rank_pricing_rules(rules: Iterable[PricingRule]) -> list[PricingRule]:
    """Newest rule first; id breaks ties between rules created at the same instant."""
    return sorted(rules, key=lambda rule: (rule.created_at, rule.id), reverse=True)


def find_matching_rules(
    product: Product,
    customer_id: int | None,
    quantity: int,
    now: datetime | None = None,
) -> list[PricingRule]:
    """Return all candidate rules for a sale line, ranked by precedence."""
    now = now or utcnow()

    target_clauses = [
        PricingRule.product_id == product.id,
        PricingRule.customer_group == CUSTOMER_GROUP_REGULAR,
    ]
    if customer_id is not None:
        target_clauses.append(PricingRule.customer_id == customer_id)

    rules = (
        db.session.query(PricingRule)
        .filter(
            PricingRule.account_id == product.account_id,
            PricingRule.is_active.is_(True),
            PricingRule.price_type.in_(VALID_PRICE_TYPES),
            or_(*target_clauses),
            PricingRule.start_date <= now,
            or_(PricingRule.end_date.is_(None), PricingRule.end_date >= now),
            PricingRule.min_quantity <= quantity,
            or_(PricingRule.max_quantity.is_(None), PricingRule.max_quantity >= quantity),
        )
        .all()
    )
    return rank_pricing_rules(rules)


def bulk_discount_percent(
    quantity: int,
    tiers: Iterable[tuple[int, Decimal]] | None = None,
    highest_tier_wins: bool | None = None,
) -> Decimal:
    """
    Quantity-based discount used when no pricing rule applies.

    Legacy policy (highest_tier_wins=False) checks the thresholds in
    ascending order and stops at the first hit, so every quantity >= 10
    gets the lowest tier. With highest_tier_wins=True the largest
    threshold the quantity reaches decides the percentage.
    """
    if tiers is None:
        tiers = current_app.config["BULK_DISCOUNT_TIERS"]
    if highest_tier_wins is None:
        highest_tier_wins = current_app.config["BULK_DISCOUNT_HIGHEST_TIER_WINS"]

    ordered = sorted(tiers, key=lambda tier: tier[0], reverse=highest_tier_wins)
    for min_quantity, percent in ordered:
        if quantity >= min_quantity:
            return to_decimal(percent)
    return ZERO


def resolve_price(product: Product, customer_id: int | None, quantity: int) -> PriceQuote:
    """Price one line for an already-loaded product."""
    base_price = quantize_money(product.price)

    rules = find_matching_rules(product, customer_id, quantity)
    if rules:
        rule = rules[0]
        if rule.price_type == PRICE_TYPE_FIXED:
            return PriceQuote(
                base_price=base_price,
                final_price=quantize_money(rule.price_value),
                discount_amount=ZERO,
                discount_percent=ZERO,
                rule_id=rule.id,
            )
        # Percentage rules never take the price below zero
        discount_percent = to_decimal(rule.price_value)
        discount_amount = min(percent_of(base_price, discount_percent), base_price)
        return PriceQuote(
            base_price=base_price,
            final_price=base_price - discount_amount,
            discount_amount=discount_amount,
            discount_percent=discount_percent,
            rule_id=rule.id,
        )

    discount_percent = bulk_discount_percent(quantity)
    if discount_percent > 0:
        discount_amount = percent_of(base_price, discount_percent)
        return PriceQuote(
            base_price=base_price,
            final_price=base_price - discount_amount,
            discount_amount=discount_amount,
            discount_percent=discount_percent,
        )

    return PriceQuote(base_price, base_price, ZERO, ZERO)


def calculate_price(product_id: int, customer_id: int | None, quantity) -> PriceQuote:
    """
    Resolve the effective unit price for a (product, customer, quantity) triple.

    Raises:
        NotFoundError: product does not exist or has been deleted
        ValidationError: quantity is not a positive integer
    """
    quantity = coerce_int(quantity, "quantity", minimum=1)

    product = db.session.query(Product).filter_by(id=product_id).first()
    if not product or product.deleted:
        raise NotFoundError(f"Product {product_id} not found")

    return resolve_price(product, customer_id, quantity)
