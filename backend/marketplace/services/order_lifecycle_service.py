"""
Order Lifecycle Service
Operator-driven status transitions for settled orders

    pending -> processing -> confirmed -> shipped -> delivered
    cancelled: from any non-terminal state
    refunded:  from delivered or cancelled

Every transition is a single compare-and-swap write on the status column.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from marketplace.core.database import transaction
from marketplace.core.errors import ConflictError, InvalidTransitionError, NotFoundError
from marketplace.domain.order import Order, OrderStatus
from marketplace.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


NEXT_STATUS: Dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.PROCESSING,
    OrderStatus.PROCESSING: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED})
REFUNDABLE_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


def next_status(current: OrderStatus) -> Optional[OrderStatus]:
    """Next happy-path status, None for terminal states"""
    return NEXT_STATUS.get(current)


def can_cancel(current: OrderStatus) -> bool:
    return current not in TERMINAL_STATUSES


def can_refund(current: OrderStatus) -> bool:
    return current in REFUNDABLE_STATUSES


class OrderLifecycleService:
    """Advance, cancel and refund orders"""

    def __init__(self, order_repo: Optional[OrderRepository] = None, transaction_factory=None):
        self.order_repo = order_repo or OrderRepository()
        self.transaction = transaction_factory or transaction

    def advance_order_status(self, order_id: str, expected_status: Optional[OrderStatus] = None) -> Order:
        """
        Move the order one step along the happy path

        Args:
            order_id: Order to advance
            expected_status: Status the operator saw; a mismatch is a conflict

        Raises:
            InvalidTransitionError: order is delivered, cancelled or refunded
            ConflictError: status moved since it was read
        """
        def target(current: OrderStatus) -> OrderStatus:
            following = next_status(current)
            if following is None:
                raise InvalidTransitionError("order", current.value, "next")
            return following

        return self._transition(order_id, target, expected_status)

    def cancel_order(self, order_id: str, expected_status: Optional[OrderStatus] = None) -> Order:
        """Cancel an order that is not yet delivered, cancelled or refunded"""
        def target(current: OrderStatus) -> OrderStatus:
            if not can_cancel(current):
                raise InvalidTransitionError("order", current.value, OrderStatus.CANCELLED.value)
            return OrderStatus.CANCELLED

        return self._transition(order_id, target, expected_status)

    def refund_order(self, order_id: str, expected_status: Optional[OrderStatus] = None) -> Order:
        """Refund a delivered or cancelled order"""
        def target(current: OrderStatus) -> OrderStatus:
            if not can_refund(current):
                raise InvalidTransitionError("order", current.value, OrderStatus.REFUNDED.value)
            return OrderStatus.REFUNDED

        return self._transition(order_id, target, expected_status)

    def get_order(self, order_id: str) -> Order:
        with self.transaction() as conn:
            order = self.order_repo.find_by_id(conn, order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    def list_orders(
        self,
        buyer_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        with self.transaction() as conn:
            return self.order_repo.find_all(conn, buyer_id=buyer_id, status=status, limit=limit, offset=offset)

    def _transition(
        self,
        order_id: str,
        target: Callable[[OrderStatus], OrderStatus],
        expected_status: Optional[OrderStatus]
    ) -> Order:
        with self.transaction() as conn:
            order = self.order_repo.find_by_id(conn, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)

            current = order.status
            if expected_status is not None and expected_status != current:
                raise ConflictError(
                    f"Order {order.order_number} is '{current.value}', not '{expected_status.value}'"
                )

            new_status = target(current)
            updated = self.order_repo.update_status(conn, order_id, current, new_status)
            if updated is None:
                logger.warning(f"Order {order.order_number}: lost race moving {current.value} -> {new_status.value}")
                raise ConflictError(f"Order {order.order_number} was updated by someone else")

        updated.items = order.items
        updated.payment = order.payment
        logger.info(f"Order {updated.order_number}: {current.value} -> {new_status.value}")
        return updated
