"""
Repository Layer - Data Access

This layer handles all database queries and returns domain models.
Repositories abstract away SQL details from business logic; services
own the transaction and hand its connection to each call.
"""
from marketplace.repositories.cart_repository import CartRepository
from marketplace.repositories.order_repository import OrderRepository, OrderNumberTaken
from marketplace.repositories.product_repository import ProductRepository
from marketplace.repositories.supplier_repository import SupplierRepository

__all__ = [
    'CartRepository',
    'OrderRepository',
    'OrderNumberTaken',
    'ProductRepository',
    'SupplierRepository',
]
