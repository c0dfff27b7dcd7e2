from __future__ import annotations

from ..extensions import db
from ..money import as_number
from billing.time_utils import to_utc_z, utcnow


INVOICE_STATUS_DRAFT = "Draft"
INVOICE_STATUS_ISSUED = "Issued"
INVOICE_STATUS_PARTIAL = "Partial"
INVOICE_STATUS_PAID = "Paid"

CHALLAN_STATUS_PENDING = "Pending"


class Invoice(db.Model):
    """
    Invoice document with GST breakdown and a running payment balance.

    INVARIANTS:
    - total = subtotal + cgst + sgst + igst - tds - tcs
    - amount_due = total - amount_paid
    - status moves Draft -> Issued -> Partial -> Paid
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.UniqueConstraint("account_id", "invoice_number", name="uq_invoices_account_number"),
        db.Index("ix_invoices_account_status", "account_id", "status"),
        db.Index("ix_invoices_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    invoice_number = db.Column(db.String(32), nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    invoice_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    cgst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sgst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    igst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tds = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tcs = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    amount_paid = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    amount_due = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default=INVOICE_STATUS_DRAFT, index=True)

    profit_margin = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    profit_percent = db.Column(db.Numeric(7, 2), nullable=False, default=0)

    delivery_address = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Set once stock has been decremented for every line
    inventory_deducted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("invoices", lazy=True))
    line_items = db.relationship(
        "LineItem",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="LineItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "accountId": self.account_id,
            "invoiceNumber": self.invoice_number,
            "customerId": self.customer_id,
            "invoiceDate": to_utc_z(self.invoice_date),
            "subtotal": as_number(self.subtotal),
            "cgst": as_number(self.cgst),
            "sgst": as_number(self.sgst),
            "igst": as_number(self.igst),
            "tds": as_number(self.tds),
            "tcs": as_number(self.tcs),
            "total": as_number(self.total),
            "amountPaid": as_number(self.amount_paid),
            "amountDue": as_number(self.amount_due),
            "status": self.status,
            "profitMargin": as_number(self.profit_margin),
            "profitPercent": as_number(self.profit_percent),
            "deliveryAddress": self.delivery_address,
            "notes": self.notes,
            "inventoryDeductedAt": to_utc_z(self.inventory_deducted_at) if self.inventory_deducted_at else None,
            "deleted": self.deleted,
            "deletedAt": to_utc_z(self.deleted_at) if self.deleted_at else None,
            "createdAt": to_utc_z(self.created_at),
        }
        if include_lines:
            data["lineItems"] = [line.to_dict() for line in self.line_items]
            data["customer"] = self.customer.to_dict() if self.customer else None
        return data


class LineItem(db.Model):
    """Priced and taxed invoice line. Created with its invoice, never edited."""
    __tablename__ = "invoice_line_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    discount_percent = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    taxable_amount = db.Column(db.Numeric(12, 2), nullable=False)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False)
    cgst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sgst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    igst = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)
    cost_price = db.Column(db.Numeric(12, 2), nullable=False)
    profit = db.Column(db.Numeric(12, 2), nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceId": self.invoice_id,
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": as_number(self.unit_price),
            "discount": as_number(self.discount),
            "discountPercent": as_number(self.discount_percent),
            "taxableAmount": as_number(self.taxable_amount),
            "gstRate": as_number(self.gst_rate),
            "cgst": as_number(self.cgst),
            "sgst": as_number(self.sgst),
            "igst": as_number(self.igst),
            "lineTotal": as_number(self.line_total),
            "costPrice": as_number(self.cost_price),
            "profit": as_number(self.profit),
        }


class Payment(db.Model):
    """
    Payment received against an invoice.

    Append-only. transaction_id doubles as an idempotency key per invoice.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("invoice_id", "transaction_id", name="uq_payments_invoice_txn"),
        db.Index("ix_payments_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    amount = db.Column(db.Numeric(12, 2), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)
    transaction_id = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    invoice = db.relationship("Invoice", backref=db.backref("payments", lazy=True, order_by="Payment.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceId": self.invoice_id,
            "customerId": self.customer_id,
            "amount": as_number(self.amount),
            "paymentMethod": self.payment_method,
            "transactionId": self.transaction_id,
            "notes": self.notes,
            "createdAt": to_utc_z(self.created_at),
        }


class DeliveryChallan(db.Model):
    """Dispatch document accompanying the goods of an invoice."""
    __tablename__ = "delivery_challans"
    __table_args__ = (
        db.UniqueConstraint("account_id", "challan_number", name="uq_challans_account_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    challan_number = db.Column(db.String(32), nullable=False)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)

    delivery_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    delivery_address = db.Column(db.Text, nullable=False, default="")
    recipient_name = db.Column(db.String(255), nullable=True)
    recipient_phone = db.Column(db.String(32), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default=CHALLAN_STATUS_PENDING)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    invoice = db.relationship("Invoice", backref=db.backref("delivery_challans", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "challanNumber": self.challan_number,
            "invoiceId": self.invoice_id,
            "deliveryDate": to_utc_z(self.delivery_date),
            "deliveryAddress": self.delivery_address,
            "recipientName": self.recipient_name,
            "recipientPhone": self.recipient_phone,
            "notes": self.notes,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }


class DocumentSequence(db.Model):
    """
    Atomic per-account, per-day document sequences.

    WHY: Prevent duplicate invoice/challan numbers when two documents are
    created for the same account on the same day.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("account_id", "document_type", "sequence_date", name="uq_doc_sequences_account_type_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    document_type = db.Column(db.String(32), nullable=False)
    sequence_date = db.Column(db.String(8), nullable=False)  # YYYYMMDD
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "documentType": self.document_type,
            "sequenceDate": self.sequence_date,
            "nextNumber": self.next_number,
            "updatedAt": to_utc_z(self.updated_at),
        }
