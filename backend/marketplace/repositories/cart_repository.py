"""
Cart Repository - Data Access Layer for cart items

Reads a buyer's cart joined with its products and suppliers, and clears
the exact lines a settlement consumed.
"""
from typing import List, Sequence

from marketplace.domain.product import CartLine, Product


class CartRepository:
    """
    Repository for cart_items

    Every method runs on the caller's connection so settlement can hold the
    buyer lock, read the cart and clear it inside one transaction.
    """

    def lock_buyer(self, conn, buyer_id: str) -> None:
        """
        Take a transaction-scoped advisory lock on the buyer's cart

        Concurrent checkouts for the same buyer queue behind it; the lock is
        released automatically on commit or rollback.
        """
        cursor = conn.cursor()
        try:
            cursor.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (f"cart:{buyer_id}",))
        finally:
            cursor.close()

    def find_by_buyer(self, conn, buyer_id: str) -> List[CartLine]:
        """
        Get every cart line for a buyer with product and supplier info

        Args:
            buyer_id: Owning user ID

        Returns:
            Cart lines ordered by creation
        """
        cursor = conn.cursor()
        try:
            cursor.execute("""
                SELECT
                    ci.id, ci.user_id, ci.product_id, ci.quantity,
                    p.supplier_id, p.name, p.b2c_price, p.b2b_price, p.currency,
                    p.stock_quantity, p.is_active,
                    s.commission_rate, s.kyc_status
                FROM cart_items ci
                JOIN products p ON ci.product_id = p.id
                JOIN suppliers s ON p.supplier_id = s.id
                WHERE ci.user_id = %s
                ORDER BY ci.created_at, ci.id
            """, (buyer_id,))

            return [self._map_row_to_line(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def delete_lines(self, conn, buyer_id: str, line_ids: Sequence[str]) -> int:
        """
        Delete specific cart lines belonging to the buyer

        Returns:
            Number of rows deleted
        """
        if not line_ids:
            return 0

        cursor = conn.cursor()
        try:
            cursor.execute("""
                DELETE FROM cart_items
                WHERE user_id = %s AND id = ANY(%s)
            """, (buyer_id, list(line_ids)))
            return cursor.rowcount
        finally:
            cursor.close()

    @staticmethod
    def _map_row_to_line(row: dict) -> CartLine:
        product = Product(
            id=row['product_id'],
            supplier_id=row['supplier_id'],
            name=row['name'],
            retail_price=row['b2c_price'],
            wholesale_price=row.get('b2b_price'),
            currency=row.get('currency') or 'USD',
            stock_quantity=row.get('stock_quantity') or 0,
            is_active=row['is_active'] if row.get('is_active') is not None else True,
        )
        return CartLine(
            id=row['id'],
            buyer_id=row['user_id'],
            product_id=row['product_id'],
            quantity=row['quantity'],
            product=product,
            supplier_commission_rate=row.get('commission_rate'),
            supplier_kyc_status=row.get('kyc_status'),
        )
