"""
Unit tests for domain models
"""
from decimal import Decimal

import pytest
from pydantic import ValidationError as PydanticValidationError

from marketplace.domain import (
    Address,
    KycDocument,
    Order,
    OrderLineItem,
    Payment,
    PaymentMethod,
    ProductPricingUpdate,
    Supplier,
)


def make_item(**overrides):
    data = dict(
        order_id="order-1",
        product_id="p-1",
        supplier_id="sup-1",
        product_name="Espresso Beans 1kg",
        unit_price=Decimal("25.00"),
        quantity=2,
        subtotal=Decimal("50.00"),
        commission_rate=Decimal("10"),
        platform_commission=Decimal("5.00"),
        supplier_amount=Decimal("45.00"),
    )
    data.update(overrides)
    return OrderLineItem(**data)


class TestAddress:

    def test_complete_address_has_no_missing_fields(self):
        address = Address(street="1 Main St", city="Springfield", state="OR", postal_code="97403", country="US")
        assert address.missing_fields() == []

    def test_blank_fields_are_missing(self):
        address = Address(street="1 Main St", city=" ", state="OR")
        assert address.missing_fields() == ["city", "postal_code", "country"]


class TestOrderLineItem:

    def test_line_items_are_immutable(self):
        item = make_item()
        with pytest.raises(PydanticValidationError):
            item.unit_price = Decimal("1.00")

    def test_commission_rate_bounded(self):
        with pytest.raises(PydanticValidationError):
            make_item(commission_rate=Decimal("101"))


class TestOrder:

    def test_to_dict_converts_money_to_float(self):
        # Arrange
        address = Address(street="1 Main St", city="Springfield", state="OR", postal_code="97403", country="US")
        order = Order(
            id="order-1",
            order_number="ORD-20250314120000-ABCDEF12",
            buyer_id="buyer-1",
            subtotal=Decimal("50.00"),
            platform_commission=Decimal("5.00"),
            total=Decimal("50.00"),
            shipping_address=address,
            billing_address=address,
            items=[make_item()],
            payment=Payment(
                payment_gateway="stripe",
                amount=Decimal("50.00"),
                currency="USD",
                payment_method=PaymentMethod.CARD,
            ),
        )

        # Act
        data = order.to_dict()

        # Assert
        assert data["total"] == 50.0
        assert data["item_count"] == 1
        assert data["total_quantity"] == 2
        assert data["items"][0]["supplier_amount"] == 45.0
        assert data["payment"]["amount"] == 50.0
        assert data["status"] == "pending"
        assert order.supplier_payout == Decimal("45.00")


class TestProductPricingUpdate:

    def test_wholesale_must_be_below_retail(self):
        with pytest.raises(PydanticValidationError):
            ProductPricingUpdate(retail_price=Decimal("10"), wholesale_price=Decimal("12"))

    def test_wholesale_optional(self):
        pricing = ProductPricingUpdate(retail_price=Decimal("10"))
        assert pricing.wholesale_price is None


class TestSupplier:

    def test_missing_document_types_in_required_order(self):
        supplier = Supplier(
            id="sup-1",
            user_id="user-1",
            business_name="Acme Coffee",
            documents=[
                KycDocument(supplier_id="sup-1", document_type="identity", document_url="https://files/id.pdf"),
            ],
        )

        missing = supplier.missing_document_types(["business_registration", "identity", "bank_account"])

        assert missing == ["business_registration", "bank_account"]

    def test_to_dict(self):
        supplier = Supplier(id="sup-1", user_id="user-1", business_name="Acme", commission_rate=Decimal("12.5"))

        data = supplier.to_dict()

        assert data["commission_rate"] == 12.5
        assert data["kyc_status"] == "pending"
        assert supplier.is_approved is False
