"""
Order Domain Models

Orders, their frozen line items and the payment recorded at settlement.
An order's money fields are written once; afterwards only status moves.
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import ClassVar, Optional, List, Dict, Tuple
from datetime import datetime
from decimal import Decimal


class OrderStatus(str, Enum):
    """Order lifecycle states"""
    PENDING = "pending"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CARD = "card"
    CASH_ON_DELIVERY = "cash_on_delivery"


class Address(BaseModel):
    """
    Shipping/billing address snapshot

    Copied into the order at settlement; later profile edits never touch it.
    Field presence is checked by the settlement service so it can report
    every missing field at once.
    """

    street: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("street", "city", "state", "postal_code", "country")

    def missing_fields(self) -> List[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name).strip()]


class OrderLineItem(BaseModel):
    """
    Order line item - immutable record of one product bought

    Fields:
        order_id: Parent order
        product_id: Product bought
        supplier_id: Product's supplier at time of purchase
        product_name: Product name at time of purchase
        unit_price: Resolved unit price at settlement
        quantity: Units bought
        subtotal: unit_price * quantity
        commission_rate: Supplier's commission rate (percent) at settlement
        platform_commission: Platform's cut of this line
        supplier_amount: Supplier payout for this line
    """

    id: Optional[str] = Field(None, description="Line item ID")
    order_id: Optional[str] = Field(None, description="Parent order ID")
    product_id: str = Field(..., description="Product ID")
    supplier_id: str = Field(..., description="Supplier ID")
    product_name: str = Field(..., description="Product name at order time")
    unit_price: Decimal = Field(..., ge=0)
    quantity: int = Field(..., ge=1)
    subtotal: Decimal = Field(..., ge=0)
    commission_rate: Decimal = Field(..., ge=0, le=100)
    platform_commission: Decimal = Field(..., ge=0)
    supplier_amount: Decimal = Field(..., ge=0)
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)


class Payment(BaseModel):
    """Payment recorded for an order at settlement"""

    id: Optional[str] = None
    order_id: Optional[str] = None
    payment_gateway: str
    amount: Decimal = Field(..., ge=0)
    currency: str
    status: str = "completed"
    payment_method: PaymentMethod = PaymentMethod.CARD
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Order(BaseModel):
    """
    Order domain model

    Fields:
        id: Order ID
        order_number: Human-readable unique order number
        buyer_id: Owning buyer
        status: Lifecycle status
        subtotal: Sum of line subtotals
        tax / shipping_fee: Always zero under the current pricing policy
        platform_commission: Sum of per-line platform commission
        total: subtotal + tax + shipping_fee
        shipping_address / billing_address: Snapshots taken at settlement
        items: Line items (from JOIN)
        payment: Payment record (from JOIN)
    """

    id: Optional[str] = Field(None, description="Order ID")
    order_number: str = Field(..., description="Order number")
    buyer_id: str = Field(..., description="Buyer ID")
    status: OrderStatus = Field(OrderStatus.PENDING, description="Order status")

    subtotal: Decimal = Field(..., ge=0)
    tax: Decimal = Field(Decimal("0"), ge=0)
    shipping_fee: Decimal = Field(Decimal("0"), ge=0)
    platform_commission: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)
    currency: str = Field("USD")

    shipping_address: Address
    billing_address: Address

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None

    items: List[OrderLineItem] = Field(default_factory=list)
    payment: Optional[Payment] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def item_count(self) -> int:
        """Number of line items"""
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        """Total quantity of all items"""
        return sum(item.quantity for item in self.items)

    @property
    def supplier_payout(self) -> Decimal:
        return sum((item.supplier_amount for item in self.items), Decimal("0"))

    def to_dict(self) -> Dict:
        """Convert to dictionary with computed fields, Decimals as floats"""
        data = self.model_dump(mode="json")
        data['item_count'] = self.item_count
        data['total_quantity'] = self.total_quantity

        for field in ['subtotal', 'tax', 'shipping_fee', 'platform_commission', 'total']:
            data[field] = float(getattr(self, field))
        for item, raw in zip(data['items'], self.items):
            for field in ['unit_price', 'subtotal', 'commission_rate', 'platform_commission', 'supplier_amount']:
                item[field] = float(getattr(raw, field))
        if self.payment:
            data['payment']['amount'] = float(self.payment.amount)

        return data
