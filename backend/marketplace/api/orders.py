"""
Orders API Endpoints
Checkout and operator-driven order status changes
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from marketplace.core.auth import Caller, get_current_caller, require_operator
from marketplace.domain.order import Address, OrderStatus, PaymentMethod
from marketplace.domain.product import CartLine
from marketplace.services.order_lifecycle_service import OrderLifecycleService
from marketplace.services.settlement_service import SettlementService

router = APIRouter()


# Request models
class CheckoutLine(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class CheckoutRequest(BaseModel):
    items: List[CheckoutLine]
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: PaymentMethod = PaymentMethod.CARD


class TransitionRequest(BaseModel):
    expected_status: Optional[OrderStatus] = None


def get_settlement_service() -> SettlementService:
    return SettlementService()


def get_lifecycle_service() -> OrderLifecycleService:
    return OrderLifecycleService()


def _expected(request: Optional[TransitionRequest]) -> Optional[OrderStatus]:
    return request.expected_status if request else None


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
def checkout(
    request: CheckoutRequest,
    caller: Caller = Depends(get_current_caller),
    service: SettlementService = Depends(get_settlement_service),
):
    """
    Settle the caller's cart into a paid order

    `items` is the cart as shown to the buyer; if the stored cart no longer
    matches, the request fails with 409 and nothing is charged.
    """
    order = service.settle(
        buyer_id=caller.id,
        buyer_class=caller.buyer_class,
        cart_lines=[CartLine(product_id=line.product_id, quantity=line.quantity) for line in request.items],
        shipping_address=request.shipping_address,
        billing_address=request.billing_address,
        payment_method=request.payment_method,
    )
    return {
        "status": "success",
        "message": f"Order {order.order_number} placed",
        "data": order.to_dict()
    }


@router.get("/")
def get_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filter by order status"),
    buyer_id: Optional[str] = Query(None, description="Filter by buyer (operators only)"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    caller: Caller = Depends(get_current_caller),
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """
    List orders, newest first

    Buyers only ever see their own orders.
    """
    if not caller.is_operator:
        buyer_id = caller.id

    orders, total = service.list_orders(buyer_id=buyer_id, status=status_filter, limit=limit, offset=offset)

    return {
        "status": "success",
        "total": total,
        "limit": limit,
        "offset": offset,
        "count": len(orders),
        "data": [order.to_dict() for order in orders]
    }


@router.get("/{order_id}")
def get_order(
    order_id: str,
    caller: Caller = Depends(get_current_caller),
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """Get one order with its line items and payment"""
    order = service.get_order(order_id)
    if not caller.is_operator and order.buyer_id != caller.id:
        raise HTTPException(status_code=404, detail=f"Order {order_id} not found")

    return {"status": "success", "data": order.to_dict()}


@router.post("/{order_id}/advance")
def advance_order(
    order_id: str,
    request: Optional[TransitionRequest] = None,
    operator: Caller = Depends(require_operator),
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """Move the order one step: pending → processing → confirmed → shipped → delivered"""
    order = service.advance_order_status(order_id, expected_status=_expected(request))
    return {"status": "success", "data": order.to_dict()}


@router.post("/{order_id}/cancel")
def cancel_order(
    order_id: str,
    request: Optional[TransitionRequest] = None,
    operator: Caller = Depends(require_operator),
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """Cancel an order that has not been delivered"""
    order = service.cancel_order(order_id, expected_status=_expected(request))
    return {"status": "success", "data": order.to_dict()}


@router.post("/{order_id}/refund")
def refund_order(
    order_id: str,
    request: Optional[TransitionRequest] = None,
    operator: Caller = Depends(require_operator),
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """Refund a delivered or cancelled order"""
    order = service.refund_order(order_id, expected_status=_expected(request))
    return {"status": "success", "data": order.to_dict()}
