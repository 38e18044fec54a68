"""
Modelos de proveedores y KYC
"""
from sqlalchemy import Column, String, Boolean, DateTime, Text, DECIMAL, ForeignKey, CheckConstraint, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from marketplace.core.database import Base


class Supplier(Base):
    """
    Proveedores del marketplace y su estado KYC
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        CheckConstraint("commission_rate >= 0 AND commission_rate <= 100", name="ck_suppliers_commission_rate"),
        CheckConstraint(
            "kyc_status IN ('pending', 'under_review', 'approved', 'rejected')",
            name="ck_suppliers_kyc_status",
        ),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID(as_uuid=False), nullable=False, unique=True, index=True)

    # Identidad del negocio
    business_name = Column(String(255), nullable=False)
    registration_number = Column(String(100))

    # KYC
    kyc_status = Column(String(20), nullable=False, server_default="pending", index=True)
    rejection_reason = Column(Text)
    reviewed_at = Column(DateTime(timezone=True))

    commission_rate = Column(DECIMAL(5, 2), server_default="10")
    is_active = Column(Boolean, nullable=False, server_default="true")

    # Metadata
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    documents = relationship("KycDocument", back_populates="supplier", cascade="all, delete-orphan")
    products = relationship("Product", back_populates="supplier")


class KycDocument(Base):
    """
    Documentos KYC enviados por cada proveedor
    """
    __tablename__ = "kyc_documents"
    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_kyc_documents_status"),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    supplier_id = Column(UUID(as_uuid=False), ForeignKey("suppliers.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(50), nullable=False)
    document_url = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, server_default="pending")
    rejection_reason = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    supplier = relationship("Supplier", back_populates="documents")


class Notification(Base):
    """
    Notificaciones para usuarios (leídas por las apps cliente)
    """
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=False), primary_key=True, server_default=text("gen_random_uuid()"))
    user_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    related_type = Column(String(50))
    is_read = Column(Boolean, server_default="false")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
