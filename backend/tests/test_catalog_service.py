# Overview: Pytest coverage for catalog, customer and rule management.

from decimal import Decimal

import pytest

from billing.errors import NotFoundError, UnauthorizedError, ValidationError
from billing.services import catalog_service


class TestProducts:
    def test_create_product_defaults(self, db_session, account_a):
        product = catalog_service.create_product(account_a.id, {"name": "  Wall Plug  ", "price": "12.5"})

        assert product.name == "Wall Plug"
        assert product.price == Decimal("12.50")
        assert product.gst_rate == Decimal("18")
        assert product.quantity == 0
        assert product.deleted is False

    @pytest.mark.parametrize("payload", [
        {"price": "10"},
        {"name": "X", "price": "-1"},
        {"name": "X", "price": "10", "quantity": "1.5"},
        {"name": "X", "price": "10", "gstRate": "-3"},
    ])
    def test_create_product_validation(self, db_session, account_a, payload):
        with pytest.raises(ValidationError):
            catalog_service.create_product(account_a.id, payload)

    def test_create_product_unknown_account(self, db_session):
        with pytest.raises(NotFoundError):
            catalog_service.create_product(99999, {"name": "X", "price": "1"})

    def test_update_product(self, db_session, account_a, product_a):
        updated = catalog_service.update_product(product_a.id, account_a.id, {"price": "110", "quantity": 7})

        assert updated.price == Decimal("110.00")
        assert updated.quantity == 7

    def test_update_product_other_account(self, db_session, account_b, product_a):
        with pytest.raises(UnauthorizedError):
            catalog_service.update_product(product_a.id, account_b.id, {"price": "1"})

    def test_soft_delete_hides_product(self, db_session, account_a, product_a, product_a2):
        catalog_service.delete_product(product_a.id, account_a.id)

        assert [p.id for p in catalog_service.list_products(account_a.id)] == [product_a2.id]
        assert len(catalog_service.list_products(account_a.id, include_deleted=True)) == 2
        with pytest.raises(NotFoundError):
            catalog_service.update_product(product_a.id, account_a.id, {"price": "1"})

    def test_low_stock(self, db_session, account_a, product_a, product_a2):
        product_a2.low_stock_at = 5
        product_a.low_stock_at = 10
        db_session.commit()

        assert [p.id for p in catalog_service.low_stock_products(account_a.id)] == [product_a2.id]


class TestCustomers:
    def test_create_customer_defaults(self, db_session, account_a):
        customer = catalog_service.create_customer(account_a.id, {"name": "Meera Shah"})

        assert customer.group_type == "Regular"
        assert customer.credit_limit == Decimal("0")
        assert customer.credit_used == Decimal("0")
        assert customer.loyalty_points == 0

    def test_create_customer_with_group_and_limit(self, db_session, account_a):
        customer = catalog_service.create_customer(account_a.id, {
            "name": "Big Buyer", "groupType": "Wholesale", "creditLimit": "50000",
        })

        assert customer.group_type == "Wholesale"
        assert customer.credit_limit == Decimal("50000.00")

    def test_invalid_group(self, db_session, account_a):
        with pytest.raises(ValidationError):
            catalog_service.create_customer(account_a.id, {"name": "X", "groupType": "Platinum"})

    def test_list_filters(self, db_session, account_a, account_b, customer_a, customer_b):
        catalog_service.create_customer(account_a.id, {"name": "Big Buyer", "groupType": "VIP"})

        assert len(catalog_service.list_customers(account_a.id)) == 2
        assert [c.name for c in catalog_service.list_customers(account_a.id, group_type="VIP")] == ["Big Buyer"]
        assert [c.name for c in catalog_service.list_customers(account_a.id, search="ravi")] == ["Ravi Kumar"]
        assert [c.name for c in catalog_service.list_customers(account_a.id, search="9800000001")] == ["Ravi Kumar"]


class TestPricingRules:
    def test_create_rule_defaults(self, db_session, account_a, product_a):
        rule = catalog_service.create_pricing_rule(account_a.id, {
            "productId": product_a.id, "priceType": "Percentage", "priceValue": "7.5",
        })

        assert rule.is_active is True
        assert rule.min_quantity == 1
        assert rule.max_quantity is None
        assert rule.start_date is not None
        assert rule.end_date is None
        assert rule.price_value == Decimal("7.50")

    @pytest.mark.parametrize("payload", [
        {"priceType": "Bogus", "priceValue": "5"},
        {"priceType": "Fixed", "priceValue": "0"},
        {"priceType": "Fixed"},
        {"priceType": "Fixed", "priceValue": "5", "minQuantity": 10, "maxQuantity": 5},
        {"priceType": "Fixed", "priceValue": "5", "customerGroup": "Gold"},
        {"priceType": "Percentage", "priceValue": "100.01"},
        {"priceType": "Fixed", "priceValue": "5",
         "startDate": "2026-02-01T00:00:00Z", "endDate": "2026-01-01T00:00:00Z"},
    ])
    def test_rule_validation(self, db_session, account_a, payload):
        with pytest.raises(ValidationError):
            catalog_service.create_pricing_rule(account_a.id, payload)

    def test_percentage_rule_may_discount_fully(self, db_session, account_a, product_a):
        rule = catalog_service.create_pricing_rule(account_a.id, {
            "productId": product_a.id, "priceType": "Percentage", "priceValue": "100",
        })

        assert rule.price_value == Decimal("100.00")

    def test_fixed_rule_is_not_capped_at_100(self, db_session, account_a, product_a):
        rule = catalog_service.create_pricing_rule(account_a.id, {
            "productId": product_a.id, "priceType": "Fixed", "priceValue": "250",
        })

        assert rule.price_value == Decimal("250.00")

    def test_rule_targets_must_belong_to_account(self, db_session, account_a, product_b, customer_b):
        with pytest.raises(UnauthorizedError):
            catalog_service.create_pricing_rule(account_a.id, {
                "productId": product_b.id, "priceType": "Fixed", "priceValue": "5",
            })
        with pytest.raises(UnauthorizedError):
            catalog_service.create_pricing_rule(account_a.id, {
                "customerId": customer_b.id, "priceType": "Fixed", "priceValue": "5",
            })

    def test_deactivate_and_list(self, db_session, account_a, product_a):
        rule = catalog_service.create_pricing_rule(account_a.id, {
            "productId": product_a.id, "priceType": "Fixed", "priceValue": "80",
        })

        catalog_service.deactivate_pricing_rule(rule.id, account_a.id)

        assert catalog_service.list_pricing_rules(account_a.id, is_active=True) == []
        assert [r.id for r in catalog_service.list_pricing_rules(account_a.id, product_id=product_a.id)] == [rule.id]


class TestTaxRules:
    def test_create_tax_rule(self, db_session, account_a):
        rule = catalog_service.create_tax_rule(account_a.id, {
            "hsnCode": 7318, "tdsApplicable": True, "tdsRate": "1",
        })

        assert rule.hsn_code == "7318"
        assert rule.tds_applicable is True
        assert rule.tds_rate == Decimal("1")
        assert rule.tcs_applicable is False
        assert rule.tcs_rate is None

    def test_requires_hsn_code(self, db_session, account_a):
        with pytest.raises(ValidationError):
            catalog_service.create_tax_rule(account_a.id, {"tdsApplicable": True})
