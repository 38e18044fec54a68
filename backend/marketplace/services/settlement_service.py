"""
Settlement Service
Turns a buyer's cart into a durable, paid order

Handles:
- Address and cart validation
- Price resolution per line (wholesale vs retail)
- Per-line commission split using each supplier's own rate
- Stock decrement with a floor check
- Order, line items, payment and cart-clear as ONE transaction
"""
import logging
import secrets
from collections import Counter
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, List, Optional, Sequence

from marketplace.core.config import settings
from marketplace.core.database import transaction
from marketplace.core.errors import ConflictError, PersistenceError, ValidationError
from marketplace.domain.order import Address, Order, OrderLineItem, OrderStatus, Payment, PaymentMethod
from marketplace.domain.product import BuyerClass, CartLine
from marketplace.domain.supplier import KycStatus
from marketplace.repositories.cart_repository import CartRepository
from marketplace.repositories.order_repository import OrderNumberTaken, OrderRepository
from marketplace.repositories.product_repository import ProductRepository
from marketplace.services.pricing_service import resolve_unit_price, split_commission, to_money

logger = logging.getLogger(__name__)


def generate_order_number(prefix: Optional[str] = None, now: Optional[datetime] = None) -> str:
    """
    Human-readable order number: PREFIX-YYYYMMDDHHMMSS-XXXXXXXX

    The random hex suffix makes same-second collisions negligible; the
    UNIQUE constraint plus retry in settle() closes the rest.
    """
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    now = now or datetime.now(timezone.utc)
    return f"{prefix}-{now:%Y%m%d%H%M%S}-{secrets.token_hex(4).upper()}"


class SettlementService:
    """
    Service for settling carts into orders

    Repositories and the transaction factory are injectable so the write
    path can be exercised against an in-memory store.
    """

    def __init__(
        self,
        cart_repo: Optional[CartRepository] = None,
        order_repo: Optional[OrderRepository] = None,
        product_repo: Optional[ProductRepository] = None,
        transaction_factory=None,
        order_number_factory: Optional[Callable[[], str]] = None,
    ):
        self.cart_repo = cart_repo or CartRepository()
        self.order_repo = order_repo or OrderRepository()
        self.product_repo = product_repo or ProductRepository()
        self.transaction = transaction_factory or transaction
        self.order_number_factory = order_number_factory or generate_order_number

    def settle(
        self,
        buyer_id: str,
        buyer_class: BuyerClass,
        cart_lines: Sequence[CartLine],
        shipping_address: Address,
        billing_address: Optional[Address] = None,
        payment_method: PaymentMethod = PaymentMethod.CARD,
    ) -> Order:
        """
        Settle the buyer's cart

        Steps (all inside one transaction, holding the buyer's cart lock):
        1. Re-read the cart and check it still matches what the buyer saw
        2. Check every product is purchasable
        3. Resolve prices and build line items
        4. Take stock for each line
        5. Insert order (retrying on order-number collision), items, payment
        6. Delete exactly the cart lines that were settled

        Args:
            buyer_id: Buyer placing the order
            buyer_class: Buyer's class, decides the price tier
            cart_lines: Cart as presented to the buyer (product_id, quantity)
            shipping_address: Address snapshot stored on the order
            billing_address: Defaults to the shipping address
            payment_method: card or cash_on_delivery

        Returns:
            Created order with items and payment

        Raises:
            ValidationError: empty cart, incomplete address, unpurchasable product
            ConflictError: cart changed or stock ran out meanwhile
            PersistenceError: any write failed; nothing was committed
        """
        self._validate_request(cart_lines, shipping_address)
        billing_address = billing_address or shipping_address

        with self.transaction() as conn:
            self.cart_repo.lock_buyer(conn, buyer_id)
            current = self.cart_repo.find_by_buyer(conn, buyer_id)

            self._ensure_cart_unchanged(cart_lines, current)
            self._ensure_purchasable(current)

            items = [self.build_line_item(line, buyer_class) for line in current]
            draft = self.build_order(buyer_id, items, current, shipping_address, billing_address)

            # Product rows are locked in id order
            for line in sorted(current, key=lambda l: l.product_id):
                if not self.product_repo.decrement_stock(conn, line.product_id, line.quantity):
                    raise ConflictError(
                        f"Not enough stock for '{line.product.name}' (requested {line.quantity})"
                    )

            order = self._insert_order(conn, draft)
            order.items = self.order_repo.insert_line_items(conn, order.id, items)
            order.payment = self.order_repo.insert_payment(conn, order.id, Payment(
                payment_gateway=settings.PAYMENT_GATEWAY,
                amount=order.total,
                currency=order.currency,
                status="completed",
                payment_method=payment_method,
            ))

            deleted = self.cart_repo.delete_lines(conn, buyer_id, [line.id for line in current])
            if deleted != len(current):
                raise ConflictError("Cart changed while the order was being placed")

        logger.info(
            f"Order {order.order_number} settled for buyer {buyer_id}: "
            f"{order.item_count} items, subtotal={order.subtotal} "
            f"commission={order.platform_commission} total={order.total} {order.currency}"
        )
        return order

    # ------------------------------------------------------------------
    # Building blocks (pure)
    # ------------------------------------------------------------------

    @staticmethod
    def build_line_item(line: CartLine, buyer_class: BuyerClass) -> OrderLineItem:
        """Freeze price, name and commission split for one cart line"""
        product = line.product
        unit_price = resolve_unit_price(product, buyer_class)
        subtotal = to_money(unit_price * line.quantity)

        rate = line.supplier_commission_rate
        if rate is None:
            rate = settings.DEFAULT_COMMISSION_RATE
        commission, payout = split_commission(subtotal, rate)

        return OrderLineItem(
            product_id=product.id,
            supplier_id=product.supplier_id,
            product_name=product.name,
            unit_price=unit_price,
            quantity=line.quantity,
            subtotal=subtotal,
            commission_rate=rate,
            platform_commission=commission,
            supplier_amount=payout,
        )

    def build_order(
        self,
        buyer_id: str,
        items: List[OrderLineItem],
        lines: Sequence[CartLine],
        shipping_address: Address,
        billing_address: Address,
    ) -> Order:
        """
        Order header totals

        The header commission is the sum of the per-line commissions, so
        header and lines always agree. No tax or shipping fee is charged.
        """
        currencies = {line.product.currency for line in lines}
        if len(currencies) > 1:
            raise ValidationError(
                f"Cart mixes currencies: {', '.join(sorted(currencies))}", field="cart"
            )

        subtotal = sum((item.subtotal for item in items), Decimal("0"))
        commission = sum((item.platform_commission for item in items), Decimal("0"))
        tax = Decimal("0")
        shipping_fee = Decimal("0")

        return Order(
            order_number=self.order_number_factory(),
            buyer_id=buyer_id,
            status=OrderStatus.PENDING,
            subtotal=subtotal,
            tax=tax,
            shipping_fee=shipping_fee,
            platform_commission=commission,
            total=subtotal + tax + shipping_fee,
            currency=currencies.pop(),
            shipping_address=shipping_address.model_copy(),
            billing_address=billing_address.model_copy(),
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_request(cart_lines: Sequence[CartLine], shipping_address: Address) -> None:
        if not cart_lines:
            raise ValidationError("Your cart is empty", field="cart")

        missing = shipping_address.missing_fields()
        if missing:
            raise ValidationError(
                f"Shipping address is incomplete: {', '.join(missing)} required",
                field=f"shipping_address.{missing[0]}",
            )

    @staticmethod
    def _ensure_cart_unchanged(presented: Sequence[CartLine], current: Sequence[CartLine]) -> None:
        """
        The cart read under the lock must be the cart the buyer checked out

        A second concurrent checkout finds the cart already cleared and
        fails here instead of charging twice.
        """
        seen = Counter((line.product_id, line.quantity) for line in presented)
        stored = Counter((line.product_id, line.quantity) for line in current)
        if seen != stored:
            logger.warning(
                f"Cart changed before settlement: presented={dict(seen)} stored={dict(stored)}"
            )
            raise ConflictError("Your cart changed. Please review it and try again.")

    @staticmethod
    def _ensure_purchasable(lines: Sequence[CartLine]) -> None:
        for line in lines:
            if not line.product.is_active:
                raise ValidationError(f"'{line.product.name}' is no longer available", field="cart")
            if line.supplier_kyc_status != KycStatus.APPROVED.value:
                raise ValidationError(
                    f"'{line.product.name}' is sold by a supplier that is not verified", field="cart"
                )

    def _insert_order(self, conn, draft: Order) -> Order:
        for attempt in range(1, settings.ORDER_NUMBER_MAX_ATTEMPTS + 1):
            try:
                return self.order_repo.insert_order(conn, draft)
            except OrderNumberTaken:
                logger.warning(
                    f"Order number {draft.order_number} taken "
                    f"(attempt {attempt}/{settings.ORDER_NUMBER_MAX_ATTEMPTS})"
                )
                draft = draft.model_copy(update={"order_number": self.order_number_factory()})

        raise PersistenceError("Could not allocate a unique order number")
