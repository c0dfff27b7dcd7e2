"""
Pytest fixtures for billing engine tests.

Provides an application on in-memory SQLite, a per-test table wipe,
two tenant accounts and a priced, stocked catalog.
"""

from decimal import Decimal

import pytest

from billing import create_app
from billing.extensions import db
from billing.models import Account, Customer, Invoice, Product
from billing.models.invoices import INVOICE_STATUS_DRAFT


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def account_a(db_session):
    """Create Account A (first tenant)."""
    account = Account(name="Account A - Sharma Traders", code="SHARMA")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def account_b(db_session):
    """Create Account B (second tenant)."""
    account = Account(name="Account B - Verma Stores", code="VERMA")
    db_session.add(account)
    db_session.commit()
    return account


@pytest.fixture(scope='function')
def customer_a(db_session, account_a):
    """Regular customer in Account A with a generous credit limit."""
    customer = Customer(
        account_id=account_a.id,
        name="Ravi Kumar",
        email="ravi@example.com",
        phone="9800000001",
        address="12 MG Road, Pune",
        credit_limit=Decimal("100000.00"),
        credit_used=Decimal("0.00"),
        loyalty_points=0,
        group_type="Regular",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_b(db_session, account_b):
    """Customer in Account B."""
    customer = Customer(
        account_id=account_b.id,
        name="Anita Desai",
        credit_limit=Decimal("100000.00"),
        credit_used=Decimal("0.00"),
        group_type="Regular",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def product_a(db_session, account_a):
    """Product in Account A: price 100, GST 18%, 50 on hand."""
    product = Product(
        account_id=account_a.id,
        name="Steel Bolt Pack",
        sku="BOLT-001",
        price=Decimal("100.00"),
        gst_rate=Decimal("18.00"),
        quantity=50,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a2(db_session, account_a):
    """Second product in Account A: price 250, GST 12%, 5 on hand."""
    product = Product(
        account_id=account_a.id,
        name="Hex Key Set",
        sku="HEX-002",
        price=Decimal("250.00"),
        gst_rate=Decimal("12.00"),
        quantity=5,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, account_b):
    """Product in Account B."""
    product = Product(
        account_id=account_b.id,
        name="Copper Wire",
        sku="WIRE-001",
        price=Decimal("40.00"),
        gst_rate=Decimal("18.00"),
        quantity=100,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def make_invoice(db_session):
    """Factory inserting a bare invoice with a given total (no line items)."""
    def _make(account, customer, total, number="INV202601010001", status=INVOICE_STATUS_DRAFT):
        total = Decimal(total)
        invoice = Invoice(
            account_id=account.id,
            invoice_number=number,
            customer_id=customer.id,
            subtotal=total,
            total=total,
            amount_paid=Decimal("0.00"),
            amount_due=total,
            status=status,
        )
        db_session.add(invoice)
        db_session.commit()
        return invoice

    return _make
