"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Column, String, Integer, DateTime, DECIMAL, ForeignKey, CheckConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.core.database import Base


class Order(Base):
    """
    Órdenes liquidadas - los montos no cambian después de crearse
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'confirmed', 'shipped', 'delivered', 'cancelled', 'refunded')",
            name="ck_orders_status",
        ),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    order_number = Column(String(64), nullable=False, unique=True)
    user_id = Column(UUID(as_uuid=False), nullable=False, index=True)

    status = Column(String(20), nullable=False, server_default="pending", index=True)

    # Montos
    subtotal = Column(DECIMAL(12, 2), nullable=False)
    tax = Column(DECIMAL(12, 2), nullable=False, server_default="0")
    shipping_fee = Column(DECIMAL(12, 2), nullable=False, server_default="0")
    platform_commission = Column(DECIMAL(12, 2), nullable=False)
    total = Column(DECIMAL(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)

    # Snapshots de dirección
    shipping_address = Column(JSONB, nullable=False)
    billing_address = Column(JSONB, nullable=False)

    # Fechas
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    shipped_at = Column(DateTime(timezone=True))
    delivered_at = Column(DateTime(timezone=True))

    # Relationships
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    payments = relationship("Payment", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    """
    Items de cada orden - precio y comisión congelados al liquidar
    """
    __tablename__ = "order_items"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    order_id = Column(UUID(as_uuid=False), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=False), ForeignKey("products.id"), nullable=False)
    supplier_id = Column(UUID(as_uuid=False), ForeignKey("suppliers.id"), nullable=False, index=True)

    product_name = Column(String(255), nullable=False)
    unit_price = Column(DECIMAL(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(DECIMAL(12, 2), nullable=False)
    commission_rate = Column(DECIMAL(5, 2), nullable=False)
    platform_commission = Column(DECIMAL(12, 2), nullable=False)
    supplier_amount = Column(DECIMAL(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="items")


class Payment(Base):
    """
    Pago registrado al liquidar la orden
    """
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    order_id = Column(UUID(as_uuid=False), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_gateway = Column(String(50), nullable=False)
    amount = Column(DECIMAL(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False)
    payment_method = Column(String(30), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="payments")
