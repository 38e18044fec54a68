"""
Modelos de base de datos

Table definitions used by init_schema(); runtime queries go through the
repositories.
"""
from .supplier import Supplier, KycDocument, Notification
from .product import Product, CartItem
from .order import Order, OrderItem, Payment

__all__ = [
    "Supplier",
    "KycDocument",
    "Notification",
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "Payment",
]
