# Overview: Service-layer operations for invoices; encapsulates business logic and database work.

"""
Invoice Assembly

WHY: Turns submitted (product, quantity, discount) lines into a priced,
taxed, credit-checked invoice in one atomic unit.

DESIGN PRINCIPLES:
- All-or-nothing: invoice, line items, credit usage and the number
  sequence are written in the same transaction. Any failure rolls back.
- Drafting never touches stock. deduct_inventory() decrements stock with
  a conditional UPDATE and moves the invoice from Draft to Issued.
- Line items are immutable once created.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy import update

from ..errors import (
    CreditLimitExceededError,
    InsufficientStockError,
    NotFoundError,
    UnauthorizedError,
)
from ..extensions import db
from ..models import Customer, Invoice, LineItem, Product, TaxRule
from ..models.invoices import INVOICE_STATUS_DRAFT, INVOICE_STATUS_ISSUED
from ..money import HUNDRED, ZERO, quantize_money, to_decimal
from ..validation import LineItemRequest, parse_line_items
from billing.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
from .credit_service import check_credit
from .document_service import DOCUMENT_TYPE_INVOICE, next_document_number
from .pricing_service import resolve_price
from .tax_service import compute_tax, compute_tcs, compute_tds


# =============================================================================
# INVOICE CREATION
# =============================================================================

def create_invoice(
    account_id: int,
    customer_id: int,
    line_items: list,
    delivery_address: str | None = None,
    notes: str | None = None,
    is_same_state: bool = True,
) -> Invoice:
    """
    Create a Draft invoice with its line items.

    Args:
        account_id: Owning account
        customer_id: Customer being billed (must belong to account_id)
        line_items: LineItemRequest objects or {"productId", "quantity", "discount"?} dicts
        delivery_address: Optional shipping address
        notes: Optional free text
        is_same_state: CGST+SGST when True, IGST when False

    Returns:
        Persisted invoice (status Draft, amount_due == total)

    Raises:
        ValidationError: malformed line items
        NotFoundError: customer or product missing
        UnauthorizedError: customer or product belongs to another account
        InsufficientStockError: requested quantity exceeds on-hand stock
        CreditLimitExceededError: subtotal would push credit usage over the limit
    """
    items = parse_line_items(line_items)

    def _op():
        customer = lock_for_update(db.session.query(Customer).filter_by(id=customer_id)).first()
        if not customer:
            raise NotFoundError("Customer not found")
        if customer.account_id != account_id:
            raise UnauthorizedError("Customer does not belong to this account")

        products = _load_products(account_id, items)
        _validate_stock(products, items)

        cost_ratio = to_decimal(current_app.config["COST_BASIS_RATIO"])
        default_gst_rate = to_decimal(current_app.config["DEFAULT_GST_RATE"])

        subtotal = ZERO
        total_cgst = ZERO
        total_sgst = ZERO
        total_igst = ZERO
        total_profit = ZERO
        lines: list[LineItem] = []

        for item in items:
            product = products[item.product_id]
            line = _build_line(product, customer.id, item, is_same_state, cost_ratio, default_gst_rate)

            subtotal += line.taxable_amount
            total_cgst += line.cgst
            total_sgst += line.sgst
            total_igst += line.igst
            total_profit += line.profit
            lines.append(line)

        try:
            check_credit(customer, subtotal)
        except CreditLimitExceededError:
            current_app.logger.warning(
                "Credit limit exceeded for customer %s (requested %s)", customer.id, subtotal
            )
            raise
        customer.credit_used = quantize_money(to_decimal(customer.credit_used) + subtotal)

        tds, tcs = _invoice_deductions(account_id, items, subtotal)

        total = subtotal + total_cgst + total_sgst + total_igst - tds - tcs
        profit_percent = quantize_money(total_profit * HUNDRED / subtotal) if subtotal > 0 else ZERO

        invoice_number = next_document_number(
            account_id=account_id,
            document_type=DOCUMENT_TYPE_INVOICE,
            prefix=current_app.config["INVOICE_PREFIX"],
        )

        invoice = Invoice(
            account_id=account_id,
            invoice_number=invoice_number,
            customer_id=customer.id,
            invoice_date=utcnow(),
            subtotal=subtotal,
            cgst=total_cgst,
            sgst=total_sgst,
            igst=total_igst,
            tds=tds,
            tcs=tcs,
            total=total,
            amount_paid=ZERO,
            amount_due=total,
            status=INVOICE_STATUS_DRAFT,
            profit_margin=total_profit,
            profit_percent=profit_percent,
            delivery_address=delivery_address,
            notes=notes,
        )
        invoice.line_items = lines
        db.session.add(invoice)
        db.session.commit()

        current_app.logger.info(
            "Created invoice %s for customer %s: %d line(s), total %s",
            invoice.invoice_number, customer.id, len(lines), total,
        )
        return invoice

    return run_with_retry(_op)


def _load_products(account_id: int, items: list[LineItemRequest]) -> dict[int, Product]:
    products: dict[int, Product] = {}
    for item in items:
        if item.product_id in products:
            continue
        product = db.session.query(Product).filter_by(id=item.product_id).first()
        if not product or product.deleted:
            raise NotFoundError(f"Product {item.product_id} not found")
        if product.account_id != account_id:
            raise UnauthorizedError(f"Product {item.product_id} does not belong to this account")
        products[item.product_id] = product
    return products


def _validate_stock(products: dict[int, Product], items: list[LineItemRequest]) -> None:
    requested: dict[int, int] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.quantity < quantity:
            current_app.logger.warning(
                "Insufficient stock for product %s: available %s, requested %s",
                product_id, product.quantity, quantity,
            )
            raise InsufficientStockError(
                f"Insufficient stock for {product.name}. "
                f"Available: {product.quantity}, Requested: {quantity}",
                details={
                    "product_id": product_id,
                    "available": product.quantity,
                    "requested": quantity,
                },
            )


def _build_line(
    product: Product,
    customer_id: int,
    item: LineItemRequest,
    is_same_state: bool,
    cost_ratio: Decimal,
    default_gst_rate: Decimal,
) -> LineItem:
    quote = resolve_price(product, customer_id, item.quantity)

    unit_price = quote.final_price
    taxable_amount = quantize_money(unit_price * item.quantity)
    gst_rate = to_decimal(product.gst_rate) if product.gst_rate is not None else default_gst_rate
    tax = compute_tax(taxable_amount, gst_rate, is_same_state)

    discount = quantize_money(item.discount)
    line_total = taxable_amount + tax.total_tax - discount

    # Cost basis is an estimate: a fixed share of the list price
    cost_price = quantize_money(to_decimal(product.price) * cost_ratio)
    profit = quantize_money((unit_price - cost_price) * item.quantity)

    return LineItem(
        product_id=product.id,
        quantity=item.quantity,
        unit_price=unit_price,
        discount=discount,
        discount_percent=quote.discount_percent,
        taxable_amount=taxable_amount,
        gst_rate=gst_rate,
        cgst=tax.cgst,
        sgst=tax.sgst,
        igst=tax.igst,
        line_total=line_total,
        cost_price=cost_price,
        profit=profit,
    )


def _invoice_deductions(account_id: int, items: list[LineItemRequest], subtotal: Decimal) -> tuple[Decimal, Decimal]:
    """
    TDS and TCS for the whole invoice.

    NOTE: the tax rule is looked up by the first line's product id used as
    the HSN code. Kept for compatibility with existing tax rule data.
    """
    tax_rule = (
        db.session.query(TaxRule)
        .filter_by(account_id=account_id, hsn_code=str(items[0].product_id))
        .first()
    )

    tds_rate = current_app.config["DEFAULT_TDS_RATE"]
    tcs_rate = current_app.config["DEFAULT_TCS_RATE"]
    tds_applicable = False
    tcs_applicable = False
    if tax_rule:
        tds_applicable = tax_rule.tds_applicable
        tcs_applicable = tax_rule.tcs_applicable
        if tax_rule.tds_rate is not None:
            tds_rate = tax_rule.tds_rate
        if tax_rule.tcs_rate is not None:
            tcs_rate = tax_rule.tcs_rate

    return (
        compute_tds(subtotal, tds_applicable, tds_rate),
        compute_tcs(subtotal, tcs_applicable, tcs_rate),
    )


# =============================================================================
# ISSUANCE (STOCK DEDUCTION)
# =============================================================================

def deduct_inventory(invoice_id: int, account_id: int | None = None) -> Invoice:
    """
    Decrement stock for every line and move a Draft invoice to Issued.

    Each product is decremented with a single conditional UPDATE
    (quantity >= requested), so concurrent issuance can never drive stock
    negative. Calling this again after stock was deducted is a no-op.
    Partial/Paid invoices keep their payment status.
    """
    def _op():
        invoice = lock_for_update(db.session.query(Invoice).filter_by(id=invoice_id)).first()
        if not invoice or invoice.deleted:
            raise NotFoundError("Invoice not found")
        if account_id is not None and invoice.account_id != account_id:
            raise UnauthorizedError("Invoice does not belong to this account")

        if invoice.inventory_deducted_at is not None:
            return invoice

        requested: dict[int, int] = {}
        for line in invoice.line_items:
            requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

        for product_id, quantity in sorted(requested.items()):
            stmt = (
                update(Product)
                .where(Product.id == product_id, Product.quantity >= quantity)
                .values(quantity=Product.quantity - quantity)
            )
            result = db.session.execute(stmt)
            if result.rowcount != 1:
                row = db.session.query(Product.name, Product.quantity).filter_by(id=product_id).first()
                available = row.quantity if row else 0
                raise InsufficientStockError(
                    f"Insufficient stock for {row.name if row else product_id}. "
                    f"Available: {available}, Requested: {quantity}",
                    details={"product_id": product_id, "available": available, "requested": quantity},
                )

        invoice.inventory_deducted_at = utcnow()
        if invoice.status == INVOICE_STATUS_DRAFT:
            invoice.status = INVOICE_STATUS_ISSUED

        db.session.commit()
        current_app.logger.info("Issued invoice %s; stock deducted for %d product(s)", invoice.invoice_number, len(requested))
        return invoice

    return run_with_retry(_op)


# =============================================================================
# QUERIES
# =============================================================================

def get_invoice(invoice_id: int, account_id: int | None = None, include_deleted: bool = False) -> Invoice:
    invoice = db.session.query(Invoice).filter_by(id=invoice_id).first()
    if not invoice or (invoice.deleted and not include_deleted):
        raise NotFoundError("Invoice not found")
    if account_id is not None and invoice.account_id != account_id:
        raise UnauthorizedError("Invoice does not belong to this account")
    return invoice


def list_invoices(account_id: int, customer_id: int | None = None, status: str | None = None) -> list[Invoice]:
    """Non-deleted invoices for an account, newest first."""
    query = db.session.query(Invoice).filter_by(account_id=account_id, deleted=False)
    if customer_id:
        query = query.filter_by(customer_id=customer_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()


def delete_invoice(invoice_id: int, account_id: int) -> Invoice:
    """Soft delete. Line items, payments and credit usage are left untouched."""
    def _op():
        invoice = get_invoice(invoice_id, account_id=account_id)
        invoice.deleted = True
        invoice.deleted_at = utcnow()
        db.session.commit()
        current_app.logger.info("Deleted invoice %s", invoice.invoice_number)
        return invoice

    return run_with_retry(_op)
