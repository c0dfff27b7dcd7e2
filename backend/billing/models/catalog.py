from __future__ import annotations

from ..extensions import db
from ..money import as_number
from billing.time_utils import to_utc_z, utcnow


PRICE_TYPE_FIXED = "Fixed"
PRICE_TYPE_PERCENTAGE = "Percentage"
VALID_PRICE_TYPES = [PRICE_TYPE_FIXED, PRICE_TYPE_PERCENTAGE]


class Product(db.Model):
    """
    Sellable product with list price, GST rate and on-hand quantity.

    Quantity is only decremented when an invoice is issued
    (invoice_service.deduct_inventory), never when it is drafted.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_account_deleted", "account_id", "deleted"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=True, index=True)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    gst_rate = db.Column(db.Numeric(5, 2), nullable=False, default=18)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_at = db.Column(db.Integer, nullable=True)

    deleted = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    account = db.relationship("Account", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "name": self.name,
            "sku": self.sku,
            "price": as_number(self.price),
            "gstRate": as_number(self.gst_rate),
            "quantity": self.quantity,
            "lowStockAt": self.low_stock_at,
            "deleted": self.deleted,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class PricingRule(db.Model):
    """
    Customer-, product- or group-specific price override.

    Rules are evaluated, never consumed. Among matching rules the most
    recently created wins (created_at desc, then id desc).
    """
    __tablename__ = "pricing_rules"
    __table_args__ = (
        db.Index("ix_pricing_rules_account_active", "account_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)
    customer_group = db.Column(db.String(32), nullable=True)

    price_type = db.Column(db.String(16), nullable=False)  # Fixed, Percentage
    price_value = db.Column(db.Numeric(12, 2), nullable=False)

    min_quantity = db.Column(db.Integer, nullable=False, default=1)
    max_quantity = db.Column(db.Integer, nullable=True)

    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    customer = db.relationship("Customer")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "customerId": self.customer_id,
            "productId": self.product_id,
            "customerGroup": self.customer_group,
            "priceType": self.price_type,
            "priceValue": as_number(self.price_value),
            "minQuantity": self.min_quantity,
            "maxQuantity": self.max_quantity,
            "startDate": to_utc_z(self.start_date),
            "endDate": to_utc_z(self.end_date) if self.end_date else None,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
        }


class TaxRule(db.Model):
    """TDS/TCS applicability and rates, keyed to an HSN reference."""
    __tablename__ = "tax_rules"
    __table_args__ = (
        db.Index("ix_tax_rules_account_hsn", "account_id", "hsn_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey("accounts.id"), nullable=False, index=True)
    hsn_code = db.Column(db.String(32), nullable=False)

    tds_applicable = db.Column(db.Boolean, nullable=False, default=False)
    tds_rate = db.Column(db.Numeric(5, 2), nullable=True)
    tcs_applicable = db.Column(db.Boolean, nullable=False, default=False)
    tcs_rate = db.Column(db.Numeric(5, 2), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountId": self.account_id,
            "hsnCode": self.hsn_code,
            "tdsApplicable": self.tds_applicable,
            "tdsRate": as_number(self.tds_rate),
            "tcsApplicable": self.tcs_applicable,
            "tcsRate": as_number(self.tcs_rate),
            "createdAt": to_utc_z(self.created_at),
        }
