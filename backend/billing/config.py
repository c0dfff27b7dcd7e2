# backend/billing/config.py
from __future__ import annotations
import os
from decimal import Decimal


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/billing.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///billing.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Profit is estimated against this share of the product's list price
    COST_BASIS_RATIO = Decimal(os.environ.get("COST_BASIS_RATIO", "0.60"))

    DEFAULT_GST_RATE = Decimal(os.environ.get("DEFAULT_GST_RATE", "18"))
    DEFAULT_TDS_RATE = Decimal(os.environ.get("DEFAULT_TDS_RATE", "2"))
    DEFAULT_TCS_RATE = Decimal(os.environ.get("DEFAULT_TCS_RATE", "1"))

    # (minimum quantity, discount percent), used when no pricing rule matches
    BULK_DISCOUNT_TIERS = (
        (10, Decimal("5")),
        (20, Decimal("10")),
        (50, Decimal("15")),
    )
    # False keeps the legacy ascending evaluation: any quantity >= 10 gets 5%.
    BULK_DISCOUNT_HIGHEST_TIER_WINS = _env_bool("BULK_DISCOUNT_HIGHEST_TIER_WINS", False)

    LOYALTY_EXPIRY_DAYS = int(os.environ.get("LOYALTY_EXPIRY_DAYS", "365"))

    INVOICE_PREFIX = "INV"
    CHALLAN_PREFIX = "CHALLAN"
