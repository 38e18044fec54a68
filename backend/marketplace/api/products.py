"""
Products API Endpoints
Unit price for the caller's buyer class and supplier price edits
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from marketplace.core.auth import Caller, get_current_caller, require_seller
from marketplace.services.pricing_service import PricingService
from marketplace.services.supplier_trust_service import SupplierTrustService

router = APIRouter()


# Request models
class PricingUpdate(BaseModel):
    retail_price: Decimal
    wholesale_price: Optional[Decimal] = None


def get_pricing_service() -> PricingService:
    return PricingService()


def get_supplier_service() -> SupplierTrustService:
    return SupplierTrustService()


@router.get("/{product_id}/price")
def get_unit_price(
    product_id: str,
    caller: Caller = Depends(get_current_caller),
    service: PricingService = Depends(get_pricing_service),
):
    """
    Unit price the caller pays for this product

    Same resolution the checkout uses, so the cart shows what gets charged.
    """
    product, unit_price = service.quote_unit_price(product_id, caller.buyer_class)
    return {
        "status": "success",
        "data": {
            "product_id": product.id,
            "buyer_class": caller.buyer_class.value,
            "unit_price": float(unit_price),
            "currency": product.currency,
            "is_wholesale_price": unit_price != product.retail_price,
        }
    }


@router.put("/{product_id}/pricing")
def update_pricing(
    product_id: str,
    update: PricingUpdate,
    caller: Caller = Depends(require_seller),
    service: PricingService = Depends(get_pricing_service),
    suppliers: SupplierTrustService = Depends(get_supplier_service),
):
    """Edit retail/wholesale prices; suppliers may only edit their own products"""
    if not caller.is_operator:
        product = service.get_product(product_id)
        supplier = suppliers.find_supplier_for_user(caller.id)
        if supplier is None or supplier.id != product.supplier_id:
            raise HTTPException(status_code=403, detail="You can only edit your own products")

    product = service.update_product_pricing(product_id, update.retail_price, update.wholesale_price)
    return {"status": "success", "data": product.to_dict()}
