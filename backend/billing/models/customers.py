from __future__ import annotations

from ..extensions import db
from ..money import as_number
from billing.time_utils import to_utc_z, utcnow


CUSTOMER_GROUP_REGULAR = "Regular"
CUSTOMER_GROUP_VIP = "VIP"
CUSTOMER_GROUP_WHOLESALE = "Wholesale"
VALID_CUSTOMER_GROUPS = [CUSTOMER_GROUP_REGULAR, CUSTOMER_GROUP_VIP, CUSTOMER_GROUP_WHOLESALE]

LOYALTY_EARNED = "Earned"
LOYALTY_REDEEMED = "Redeemed"


class Customer(db.Model):
    """
    Customer master data with credit and loyalty balances.

    credit_used grows by the invoice subtotal when an invoice is drafted and
    shrinks by each payment amount. It never goes below zero.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_account_group", "account_id", "group_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    gstin = db.Column(db.String(15), nullable=True)

    credit_limit = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    credit_used = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    loyalty_points = db.Column(db.Integer, nullable=False, default=0)
    group_type = db.Column(db.String(16), nullable=False, default=CUSTOMER_GROUP_REGULAR)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    account = db.relationship("Account", backref=db.backref("customers", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "gstin": self.gstin,
            "creditLimit": as_number(self.credit_limit),
            "creditUsed": as_number(self.credit_used),
            "loyaltyPoints": self.loyalty_points,
            "groupType": self.group_type,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class LoyaltyTransaction(db.Model):
    """
    Append-only ledger of loyalty point events.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "loyalty_transactions"
    __table_args__ = (
        db.Index("ix_loyalty_txns_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    points = db.Column(db.Integer, nullable=False)  # Positive for earn, negative for redeem
    type = db.Column(db.String(16), nullable=False, index=True)  # Earned, Redeemed
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=True, index=True)
    description = db.Column(db.String(255), nullable=True)
    expiry_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    customer = db.relationship("Customer", backref=db.backref("loyalty_history", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerId": self.customer_id,
            "points": self.points,
            "type": self.type,
            "invoiceId": self.invoice_id,
            "description": self.description,
            "expiryDate": to_utc_z(self.expiry_date) if self.expiry_date else None,
            "createdAt": to_utc_z(self.created_at),
        }
