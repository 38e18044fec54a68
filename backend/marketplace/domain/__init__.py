"""
Domain Layer - Business Entities

Pydantic models for every entity the core reads or writes. Store rows are
validated into these at the repository boundary.
"""
from marketplace.domain.product import BuyerClass, Product, ProductPricingUpdate, CartLine
from marketplace.domain.order import Address, Order, OrderLineItem, OrderStatus, Payment, PaymentMethod
from marketplace.domain.supplier import DocumentStatus, KycDocument, KycStatus, Supplier

__all__ = [
    'BuyerClass', 'Product', 'ProductPricingUpdate', 'CartLine',
    'Address', 'Order', 'OrderLineItem', 'OrderStatus', 'Payment', 'PaymentMethod',
    'DocumentStatus', 'KycDocument', 'KycStatus', 'Supplier',
]
