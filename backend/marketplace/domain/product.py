"""
Product Domain Models

Products, buyer classes and cart lines as read from the store.
Rows are validated here at the boundary; services never touch raw dicts.
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal


class BuyerClass(str, Enum):
    """
    Buyer class - determines which price tier applies

    Values match the role stored on the user's profile.
    """
    RETAIL = "customer"
    WHOLESALE = "b2b"
    SUPPLIER = "supplier"
    OPERATOR = "admin"

    @classmethod
    def from_role(cls, role: Optional[str]) -> "BuyerClass":
        """Map a profile role to a buyer class, unknown roles buy at retail"""
        try:
            return cls(role)
        except ValueError:
            return cls.RETAIL


class Product(BaseModel):
    """
    Product domain model - a sellable item owned by one supplier

    Fields:
        id: Product ID
        supplier_id: Owning supplier
        name: Product name
        retail_price: Unit price for retail buyers
        wholesale_price: Unit price for wholesale buyers (optional)
        currency: ISO currency code
        stock_quantity: Units available
        is_active: Whether the supplier lists it
    """

    id: str = Field(..., description="Product ID")
    supplier_id: str = Field(..., description="Owning supplier ID")
    name: str = Field(..., description="Product name")
    retail_price: Decimal = Field(..., description="Retail unit price", ge=0)
    wholesale_price: Optional[Decimal] = Field(None, description="Wholesale unit price", ge=0)
    currency: str = Field("USD", description="Currency code")
    stock_quantity: int = Field(0, description="Available stock", ge=0)
    is_active: bool = Field(True, description="Whether product is listed")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def has_wholesale_price(self) -> bool:
        return self.wholesale_price is not None

    def to_dict(self) -> dict:
        """Convert to dictionary with prices as floats"""
        data = self.model_dump(mode="json")
        data['retail_price'] = float(self.retail_price)
        data['wholesale_price'] = float(self.wholesale_price) if self.wholesale_price is not None else None
        return data


class ProductPricingUpdate(BaseModel):
    """Schema for a supplier editing a product's price pair"""

    retail_price: Decimal = Field(..., gt=0)
    wholesale_price: Optional[Decimal] = Field(None, gt=0)

    @model_validator(mode="after")
    def wholesale_below_retail(self):
        if self.wholesale_price is not None and self.wholesale_price >= self.retail_price:
            raise ValueError("Wholesale price must be less than retail price")
        return self


class CartLine(BaseModel):
    """
    Cart line - one product and quantity in a buyer's cart

    `product` and `supplier_commission_rate` are filled from a JOIN when the
    cart is read for checkout; callers presenting the cart they saw only
    need product_id and quantity.
    """

    id: Optional[str] = Field(None, description="Cart item ID")
    buyer_id: Optional[str] = Field(None, description="Owning buyer")
    product_id: str = Field(..., description="Product ID")
    quantity: int = Field(..., description="Quantity", ge=1)

    product: Optional[Product] = Field(None, description="Product (from JOIN)")
    supplier_commission_rate: Optional[Decimal] = Field(None, description="Supplier rate (from JOIN)")
    supplier_kyc_status: Optional[str] = Field(None, description="Supplier KYC status (from JOIN)")

    model_config = ConfigDict(from_attributes=True)
