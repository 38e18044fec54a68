"""
Modelos de productos y carrito
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, DECIMAL, ForeignKey, CheckConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.core.database import Base


class Product(Base):
    """
    Productos publicados por proveedores
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("b2c_price > 0", name="ck_products_b2c_price"),
        CheckConstraint("b2b_price IS NULL OR b2b_price < b2c_price", name="ck_products_b2b_below_b2c"),
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_floor"),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    supplier_id = Column(UUID(as_uuid=False), ForeignKey("suppliers.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    # Precios (b2c = retail, b2b = wholesale)
    b2c_price = Column(DECIMAL(12, 2), nullable=False)
    b2b_price = Column(DECIMAL(12, 2))
    currency = Column(String(3), nullable=False, server_default="USD")

    stock_quantity = Column(Integer, nullable=False, server_default="0")
    is_active = Column(Boolean, nullable=False, server_default="true", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier", back_populates="products")


class CartItem(Base):
    """
    Carrito del comprador (se vacía al liquidar la orden)
    """
    __tablename__ = "cart_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity"),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=False), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    quantity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
