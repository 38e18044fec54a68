"""
Order Repository - Data Access Layer for Orders

Handles the settlement writes (order, line items, payment), status
compare-and-swap, and the reads used by order screens and revenue reports.
"""
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from psycopg2 import errors
from psycopg2.extras import Json

from marketplace.domain.order import Order, OrderLineItem, OrderStatus, Payment


ORDER_COLUMNS = """
    id, order_number, user_id, status,
    subtotal, tax, shipping_fee, platform_commission, total, currency,
    shipping_address, billing_address,
    created_at, updated_at, shipped_at, delivered_at
"""

ITEM_COLUMNS = """
    id, order_id, product_id, supplier_id, product_name,
    unit_price, quantity, subtotal, commission_rate,
    platform_commission, supplier_amount, created_at
"""

PAYMENT_COLUMNS = """
    id, order_id, payment_gateway, amount, currency, status,
    payment_method, created_at
"""


class OrderNumberTaken(Exception):
    """The generated order number hit the UNIQUE constraint"""


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders, order_items and payments are centralized
    here. Every method runs on the caller's connection.
    """

    @staticmethod
    def _map_row_to_order(row: dict) -> Order:
        data = dict(row)
        data['buyer_id'] = data.pop('user_id')
        data['shipping_address'] = data.get('shipping_address') or {}
        data['billing_address'] = data.get('billing_address') or data['shipping_address']
        return Order(**data)

    # ------------------------------------------------------------------
    # Settlement writes
    # ------------------------------------------------------------------

    def insert_order(self, conn, order: Order) -> Order:
        """
        Insert the order header

        Runs under a savepoint so an order-number collision can be retried
        without aborting the surrounding settlement transaction.

        Raises:
            OrderNumberTaken: order_number already exists
        """
        cursor = conn.cursor()
        try:
            cursor.execute("SAVEPOINT insert_order")
            try:
                cursor.execute(f"""
                    INSERT INTO orders (
                        order_number, user_id, status,
                        subtotal, tax, shipping_fee, platform_commission, total, currency,
                        shipping_address, billing_address
                    ) VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                    )
                    RETURNING {ORDER_COLUMNS}
                """, (
                    order.order_number,
                    order.buyer_id,
                    order.status.value,
                    order.subtotal,
                    order.tax,
                    order.shipping_fee,
                    order.platform_commission,
                    order.total,
                    order.currency,
                    Json(order.shipping_address.model_dump()),
                    Json(order.billing_address.model_dump()),
                ))
            except errors.UniqueViolation as e:
                cursor.execute("ROLLBACK TO SAVEPOINT insert_order")
                raise OrderNumberTaken(order.order_number) from e

            row = cursor.fetchone()
            cursor.execute("RELEASE SAVEPOINT insert_order")
            return self._map_row_to_order(row)
        finally:
            cursor.close()

    def insert_line_items(self, conn, order_id: str, items: List[OrderLineItem]) -> List[OrderLineItem]:
        """Insert every line item of a freshly created order"""
        cursor = conn.cursor()
        created = []
        try:
            for item in items:
                cursor.execute(f"""
                    INSERT INTO order_items (
                        order_id, product_id, supplier_id, product_name,
                        unit_price, quantity, subtotal, commission_rate,
                        platform_commission, supplier_amount
                    ) VALUES (
                        %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                    )
                    RETURNING {ITEM_COLUMNS}
                """, (
                    order_id,
                    item.product_id,
                    item.supplier_id,
                    item.product_name,
                    item.unit_price,
                    item.quantity,
                    item.subtotal,
                    item.commission_rate,
                    item.platform_commission,
                    item.supplier_amount,
                ))
                created.append(OrderLineItem(**cursor.fetchone()))
            return created
        finally:
            cursor.close()

    def insert_payment(self, conn, order_id: str, payment: Payment) -> Payment:
        """Record the order's payment"""
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                INSERT INTO payments (
                    order_id, payment_gateway, amount, currency, status, payment_method
                ) VALUES (
                    %s, %s, %s, %s, %s, %s
                )
                RETURNING {PAYMENT_COLUMNS}
            """, (
                order_id,
                payment.payment_gateway,
                payment.amount,
                payment.currency,
                payment.status,
                payment.payment_method.value,
            ))
            return Payment(**cursor.fetchone())
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def update_status(
        self,
        conn,
        order_id: str,
        expected: OrderStatus,
        new_status: OrderStatus
    ) -> Optional[Order]:
        """
        Compare-and-swap the order status

        Only applies when the stored status still equals `expected`, so a
        stale double-advance can never apply twice.

        Returns:
            Updated order (without items) or None if the status had moved
            or the order does not exist
        """
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                UPDATE orders
                SET status = %s,
                    updated_at = NOW(),
                    shipped_at = CASE WHEN %s = 'shipped' THEN NOW() ELSE shipped_at END,
                    delivered_at = CASE WHEN %s = 'delivered' THEN NOW() ELSE delivered_at END
                WHERE id = %s AND status = %s
                RETURNING {ORDER_COLUMNS}
            """, (new_status.value, new_status.value, new_status.value, order_id, expected.value))

            row = cursor.fetchone()
            return self._map_row_to_order(row) if row else None
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_by_id(self, conn, order_id: str) -> Optional[Order]:
        """
        Find order by ID with its line items and payment

        Returns:
            Order or None if not found
        """
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE id = %s
            """, (order_id,))

            row = cursor.fetchone()
            if not row:
                return None

            order = self._map_row_to_order(row)

            cursor.execute(f"""
                SELECT {ITEM_COLUMNS}
                FROM order_items
                WHERE order_id = %s
                ORDER BY created_at, id
            """, (order_id,))
            order.items = [OrderLineItem(**item) for item in cursor.fetchall()]

            cursor.execute(f"""
                SELECT {PAYMENT_COLUMNS}
                FROM payments
                WHERE order_id = %s
                ORDER BY created_at
                LIMIT 1
            """, (order_id,))
            payment = cursor.fetchone()
            order.payment = Payment(**payment) if payment else None

            return order
        finally:
            cursor.close()

    def find_all(
        self,
        conn,
        buyer_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters, newest first, items included

        Returns:
            Tuple of (list of orders, total count)
        """
        cursor = conn.cursor()
        try:
            conditions = []
            params = []

            if buyer_id:
                conditions.append("user_id = %s")
                params.append(buyer_id)

            if status:
                conditions.append("status = %s")
                params.append(status.value)

            where_clause = " AND ".join(conditions) if conditions else "1=1"

            cursor.execute(f"""
                SELECT COUNT(*) as total
                FROM orders
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            orders = [self._map_row_to_order(row) for row in cursor.fetchall()]

            if not orders:
                return [], total

            # All items for these orders in one query
            items_by_order = self._items_by_order(cursor, [order.id for order in orders])
            for order in orders:
                order.items = items_by_order.get(order.id, [])

            return orders, total
        finally:
            cursor.close()

    def find_in_range(
        self,
        conn,
        start: datetime,
        end: datetime
    ) -> Tuple[List[Order], List[OrderLineItem]]:
        """
        Orders created in [start, end) and their line items, for reporting

        Returns:
            Tuple of (orders, line items)
        """
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders
                WHERE created_at >= %s AND created_at < %s
                ORDER BY created_at
            """, (start, end))
            orders = [self._map_row_to_order(row) for row in cursor.fetchall()]

            if not orders:
                return [], []

            items_by_order = self._items_by_order(cursor, [order.id for order in orders])
            items = [item for order in orders for item in items_by_order.get(order.id, [])]
            return orders, items
        finally:
            cursor.close()

    @staticmethod
    def _items_by_order(cursor, order_ids: List[str]) -> Dict[str, List[OrderLineItem]]:
        cursor.execute(f"""
            SELECT {ITEM_COLUMNS}
            FROM order_items
            WHERE order_id = ANY(%s)
            ORDER BY order_id, created_at, id
        """, (order_ids,))

        items_by_order: Dict[str, List[OrderLineItem]] = {}
        for row in cursor.fetchall():
            items_by_order.setdefault(row['order_id'], []).append(OrderLineItem(**row))
        return items_by_order
