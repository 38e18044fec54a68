"""
Pricing Service
Resolves the unit price a buyer pays and splits a line between platform
and supplier.

The same resolve_unit_price is used to display the cart and to settle it;
the settled value is frozen into the order line item and never recomputed.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from marketplace.core.database import transaction
from marketplace.core.errors import NotFoundError, ValidationError
from marketplace.domain.product import BuyerClass, Product, ProductPricingUpdate
from marketplace.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_money(value) -> Decimal:
    """Round to cents, half up"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def resolve_unit_price(product: Product, buyer_class: BuyerClass) -> Decimal:
    """
    Unit price to charge a buyer of the given class

    Wholesale buyers get the wholesale price when the product has one;
    everybody else (and wholesale buyers without one) pays retail.
    """
    if buyer_class == BuyerClass.WHOLESALE and product.wholesale_price is not None:
        return product.wholesale_price
    return product.retail_price


def split_commission(subtotal: Decimal, commission_rate: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Split a line subtotal into (platform commission, supplier payout)

    The commission is rounded to cents and the payout takes the remainder,
    so the two always add back up to the subtotal exactly.
    """
    commission = to_money(subtotal * commission_rate / HUNDRED)
    return commission, to_money(subtotal) - commission


def parse_rate(value) -> Decimal:
    """Coerce a commission rate to Decimal, rejecting non-numeric input"""
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Commission rate must be a number, got {value!r}", field="commission_rate")
    if not rate.is_finite():
        raise ValidationError("Commission rate must be a finite number", field="commission_rate")
    return rate


class PricingService:
    """Product price reads and supplier price edits"""

    def __init__(self, product_repo: Optional[ProductRepository] = None, transaction_factory=None):
        self.product_repo = product_repo or ProductRepository()
        self.transaction = transaction_factory or transaction

    def get_product(self, product_id: str) -> Product:
        with self.transaction() as conn:
            product = self.product_repo.find_by_id(conn, product_id)
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def quote_unit_price(self, product_id: str, buyer_class: BuyerClass) -> Tuple[Product, Decimal]:
        """Resolve the unit price of a stored product for a buyer class"""
        product = self.get_product(product_id)
        return product, resolve_unit_price(product, buyer_class)

    def update_product_pricing(
        self,
        product_id: str,
        retail_price,
        wholesale_price=None
    ) -> Product:
        """
        Edit a product's price pair

        Raises:
            ValidationError: non-positive prices or wholesale >= retail
            NotFoundError: product does not exist
        """
        try:
            pricing = ProductPricingUpdate(retail_price=retail_price, wholesale_price=wholesale_price)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = first['loc'][0] if first.get('loc') else 'wholesale_price'
            raise ValidationError(first['msg'], field=str(field)) from e

        with self.transaction() as conn:
            product = self.product_repo.update_pricing(conn, product_id, pricing)

        if product is None:
            raise NotFoundError("Product", product_id)

        logger.info(
            f"Product {product_id} repriced: retail={pricing.retail_price} wholesale={pricing.wholesale_price}"
        )
        return product
