"""
Product Repository - Data Access Layer for Products

Handles product reads, supplier price edits and the stock decrement
performed by settlement.
"""
from typing import Optional

from marketplace.domain.product import Product, ProductPricingUpdate


PRODUCT_COLUMNS = """
    id, supplier_id, name, b2c_price, b2b_price, currency,
    stock_quantity, is_active, created_at, updated_at
"""


class ProductRepository:
    """
    Repository for Product data access

    Returns Product domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        """Map the b2c/b2b price columns onto the retail/wholesale pair"""
        return Product(
            id=row['id'],
            supplier_id=row['supplier_id'],
            name=row['name'],
            retail_price=row['b2c_price'],
            wholesale_price=row.get('b2b_price'),
            currency=row.get('currency') or 'USD',
            stock_quantity=row.get('stock_quantity') or 0,
            is_active=row['is_active'] if row.get('is_active') is not None else True,
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
        )

    def find_by_id(self, conn, product_id: str) -> Optional[Product]:
        """
        Find product by ID

        Returns:
            Product or None if not found
        """
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                SELECT {PRODUCT_COLUMNS}
                FROM products
                WHERE id = %s
            """, (product_id,))

            row = cursor.fetchone()
            return self._map_row_to_product(row) if row else None
        finally:
            cursor.close()

    def decrement_stock(self, conn, product_id: str, quantity: int) -> bool:
        """
        Atomically take `quantity` units from stock

        The floor check lives in the WHERE clause, so two concurrent
        checkouts can never drive stock below zero.

        Returns:
            True if the units were taken, False if stock was insufficient
        """
        cursor = conn.cursor()
        try:
            cursor.execute("""
                UPDATE products
                SET stock_quantity = stock_quantity - %s,
                    updated_at = NOW()
                WHERE id = %s AND stock_quantity >= %s
                RETURNING stock_quantity
            """, (quantity, product_id, quantity))
            return cursor.fetchone() is not None
        finally:
            cursor.close()

    def update_pricing(self, conn, product_id: str, pricing: ProductPricingUpdate) -> Optional[Product]:
        """
        Update a product's retail/wholesale price pair

        Past order line items keep the price frozen at settlement.

        Returns:
            Updated product or None if not found
        """
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                UPDATE products
                SET b2c_price = %s,
                    b2b_price = %s,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {PRODUCT_COLUMNS}
            """, (pricing.retail_price, pricing.wholesale_price, product_id))

            row = cursor.fetchone()
            return self._map_row_to_product(row) if row else None
        finally:
            cursor.close()
