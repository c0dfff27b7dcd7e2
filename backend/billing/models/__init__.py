from .accounts import Account
from .catalog import Product, PricingRule, TaxRule
from .customers import Customer, LoyaltyTransaction
from .invoices import Invoice, LineItem, Payment, DeliveryChallan, DocumentSequence

__all__ = [
    'Account',
    'Product', 'PricingRule', 'TaxRule',
    'Customer', 'LoyaltyTransaction',
    'Invoice', 'LineItem', 'Payment', 'DeliveryChallan', 'DocumentSequence',
]
