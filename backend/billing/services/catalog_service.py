# Overview: Service-layer operations for products, customers, pricing rules and tax rules.

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..errors import NotFoundError, UnauthorizedError, ValidationError
from ..extensions import db
from ..models import Account, Customer, PricingRule, Product, TaxRule
from ..models.catalog import PRICE_TYPE_PERCENTAGE, VALID_PRICE_TYPES
from ..models.customers import CUSTOMER_GROUP_REGULAR, VALID_CUSTOMER_GROUPS
from ..money import quantize_money
from ..validation import (
    clean_text,
    coerce_datetime,
    coerce_decimal,
    coerce_int,
    require_fields,
)
from billing.time_utils import utcnow


def _require_account(account_id: int) -> Account:
    account = db.session.query(Account).filter_by(id=account_id).first()
    if not account:
        raise NotFoundError(f"Account {account_id} not found")
    return account


def _owned(model, entity_id: int, account_id: int, label: str):
    entity = db.session.query(model).filter_by(id=entity_id).first()
    if not entity:
        raise NotFoundError(f"{label} {entity_id} not found")
    if entity.account_id != account_id:
        raise UnauthorizedError(f"{label} {entity_id} does not belong to this account")
    return entity


# =============================================================================
# PRODUCTS
# =============================================================================

def create_product(account_id: int, data: dict) -> Product:
    _require_account(account_id)
    require_fields(data, ("name", "price"))

    name = clean_text(data["name"])
    if not name:
        raise ValidationError("Name is required")

    gst_rate = data.get("gstRate")
    product = Product(
        account_id=account_id,
        name=name,
        sku=clean_text(data.get("sku")),
        price=quantize_money(coerce_decimal(data["price"], "price", minimum=0)),
        gst_rate=(
            current_app.config["DEFAULT_GST_RATE"]
            if gst_rate in (None, "")
            else coerce_decimal(gst_rate, "gstRate", minimum=0)
        ),
        quantity=coerce_int(data.get("quantity", 0), "quantity", minimum=0),
        low_stock_at=(
            None
            if data.get("lowStockAt") in (None, "")
            else coerce_int(data["lowStockAt"], "lowStockAt", minimum=0)
        ),
    )
    db.session.add(product)
    db.session.commit()
    return product


def update_product(product_id: int, account_id: int, data: dict) -> Product:
    product = _owned(Product, product_id, account_id, "Product")
    if product.deleted:
        raise NotFoundError(f"Product {product_id} not found")

    if "name" in data:
        name = clean_text(data["name"])
        if not name:
            raise ValidationError("Name is required")
        product.name = name
    if "sku" in data:
        product.sku = clean_text(data["sku"])
    if "price" in data:
        product.price = quantize_money(coerce_decimal(data["price"], "price", minimum=0))
    if "gstRate" in data:
        product.gst_rate = coerce_decimal(data["gstRate"], "gstRate", minimum=0)
    if "quantity" in data:
        product.quantity = coerce_int(data["quantity"], "quantity", minimum=0)
    if "lowStockAt" in data:
        product.low_stock_at = (
            None if data["lowStockAt"] in (None, "") else coerce_int(data["lowStockAt"], "lowStockAt", minimum=0)
        )

    db.session.commit()
    return product


def delete_product(product_id: int, account_id: int) -> Product:
    """Soft delete; existing invoice lines keep referencing the product."""
    product = _owned(Product, product_id, account_id, "Product")
    product.deleted = True
    db.session.commit()
    return product


def list_products(account_id: int, include_deleted: bool = False) -> list[Product]:
    query = db.session.query(Product).filter_by(account_id=account_id)
    if not include_deleted:
        query = query.filter_by(deleted=False)
    return query.order_by(Product.name).all()


def low_stock_products(account_id: int) -> list[Product]:
    return [
        p for p in list_products(account_id)
        if p.low_stock_at is not None and p.quantity <= p.low_stock_at
    ]


# =============================================================================
# CUSTOMERS
# =============================================================================

def create_customer(account_id: int, data: dict) -> Customer:
    _require_account(account_id)
    require_fields(data, ("name",))

    group_type = data.get("groupType") or CUSTOMER_GROUP_REGULAR
    if group_type not in VALID_CUSTOMER_GROUPS:
        raise ValidationError(f"Invalid groupType: {group_type}. Must be one of {VALID_CUSTOMER_GROUPS}")

    credit_limit = data.get("creditLimit")
    customer = Customer(
        account_id=account_id,
        name=clean_text(data["name"]),
        email=clean_text(data.get("email")),
        phone=clean_text(data.get("phone")),
        address=clean_text(data.get("address")),
        gstin=clean_text(data.get("gstin")),
        credit_limit=(
            quantize_money(0)
            if credit_limit in (None, "")
            else quantize_money(coerce_decimal(credit_limit, "creditLimit", minimum=0))
        ),
        credit_used=quantize_money(0),
        loyalty_points=0,
        group_type=group_type,
    )
    db.session.add(customer)
    db.session.commit()
    return customer


def list_customers(account_id: int, group_type: str | None = None, search: str | None = None) -> list[Customer]:
    query = db.session.query(Customer).filter_by(account_id=account_id)
    if group_type:
        query = query.filter_by(group_type=group_type)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    return query.order_by(Customer.created_at.desc(), Customer.id.desc()).all()


# =============================================================================
# PRICING RULES
# =============================================================================

def create_pricing_rule(account_id: int, data: dict) -> PricingRule:
    """
    Create an active pricing rule.

    Required: priceType (Fixed | Percentage), priceValue.
    Optional: customerId, productId, customerGroup, minQuantity (default 1),
    maxQuantity, startDate (default now), endDate.
    """
    _require_account(account_id)
    require_fields(data, ("priceType", "priceValue"))

    price_type = data["priceType"]
    if price_type not in VALID_PRICE_TYPES:
        raise ValidationError(f"Invalid priceType: {price_type}. Must be one of {VALID_PRICE_TYPES}")

    customer_id = data.get("customerId")
    if customer_id is not None:
        customer_id = coerce_int(customer_id, "customerId")
        _owned(Customer, customer_id, account_id, "Customer")
    product_id = data.get("productId")
    if product_id is not None:
        product_id = coerce_int(product_id, "productId")
        _owned(Product, product_id, account_id, "Product")

    customer_group = data.get("customerGroup")
    if customer_group is not None and customer_group not in VALID_CUSTOMER_GROUPS:
        raise ValidationError(f"Invalid customerGroup: {customer_group}")

    min_quantity = coerce_int(data.get("minQuantity", 1), "minQuantity", minimum=1)
    max_quantity = data.get("maxQuantity")
    if max_quantity is not None:
        max_quantity = coerce_int(max_quantity, "maxQuantity", minimum=min_quantity)

    price_value = quantize_money(coerce_decimal(data["priceValue"], "priceValue", positive=True))
    if price_type == PRICE_TYPE_PERCENTAGE and price_value > 100:
        raise ValidationError("priceValue for a Percentage rule cannot exceed 100")

    start_date = coerce_datetime(data.get("startDate"), "startDate") or utcnow()
    end_date = coerce_datetime(data.get("endDate"), "endDate")
    if end_date is not None and end_date < start_date:
        raise ValidationError("endDate must be on or after startDate")

    rule = PricingRule(
        account_id=account_id,
        customer_id=customer_id,
        product_id=product_id,
        customer_group=customer_group,
        price_type=price_type,
        price_value=price_value,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        start_date=start_date,
        end_date=end_date,
        is_active=True,
    )
    db.session.add(rule)
    db.session.commit()
    return rule


def list_pricing_rules(
    account_id: int,
    customer_id: int | None = None,
    product_id: int | None = None,
    is_active: bool | None = None,
) -> list[PricingRule]:
    query = db.session.query(PricingRule).filter_by(account_id=account_id)
    if customer_id:
        query = query.filter_by(customer_id=customer_id)
    if product_id:
        query = query.filter_by(product_id=product_id)
    if is_active is not None:
        query = query.filter_by(is_active=is_active)
    return query.order_by(PricingRule.start_date.desc(), PricingRule.id.desc()).all()


def deactivate_pricing_rule(rule_id: int, account_id: int) -> PricingRule:
    rule = _owned(PricingRule, rule_id, account_id, "Pricing rule")
    rule.is_active = False
    db.session.commit()
    return rule


# =============================================================================
# TAX RULES
# =============================================================================

def create_tax_rule(account_id: int, data: dict) -> TaxRule:
    _require_account(account_id)
    require_fields(data, ("hsnCode",))

    rule = TaxRule(
        account_id=account_id,
        hsn_code=str(data["hsnCode"]).strip(),
        tds_applicable=bool(data.get("tdsApplicable", False)),
        tds_rate=None if data.get("tdsRate") in (None, "") else coerce_decimal(data["tdsRate"], "tdsRate", minimum=0),
        tcs_applicable=bool(data.get("tcsApplicable", False)),
        tcs_rate=None if data.get("tcsRate") in (None, "") else coerce_decimal(data["tcsRate"], "tcsRate", minimum=0),
    )
    db.session.add(rule)
    db.session.commit()
    return rule
