"""
Supplier Domain Models

Suppliers, their KYC status and the documents that gate approval.
"""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Iterable, Set
from datetime import datetime
from decimal import Decimal


class KycStatus(str, Enum):
    """Supplier trust lifecycle states"""
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentStatus(str, Enum):
    """Per-document review states"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class KycDocument(BaseModel):
    """
    KYC document submitted by a supplier

    Fields:
        supplier_id: Owning supplier
        document_type: One of the required document types
        document_url: Where the operator can view it
        status: Review status for this document alone
        rejection_reason: Why the operator rejected it (only while rejected)
    """

    id: Optional[str] = Field(None, description="Document ID")
    supplier_id: str = Field(..., description="Supplier ID")
    document_type: str = Field(..., description="Document type")
    document_url: str = Field(..., description="Document URL")
    status: DocumentStatus = Field(DocumentStatus.PENDING)
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class Supplier(BaseModel):
    """
    Supplier domain model

    Fields:
        id: Supplier ID
        user_id: Owning user
        business_name / registration_number: Business identity
        kyc_status: Trust lifecycle status
        commission_rate: Platform commission percent for future settlements
        rejection_reason: Present only while kyc_status is rejected
        reviewed_at: Last operator approve/reject
        documents: KYC documents (from JOIN)
    """

    id: str = Field(..., description="Supplier ID")
    user_id: str = Field(..., description="Owning user ID")
    business_name: str = Field(..., description="Business name")
    registration_number: Optional[str] = None
    kyc_status: KycStatus = Field(KycStatus.PENDING)
    commission_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    rejection_reason: Optional[str] = None
    is_active: bool = True
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    documents: List[KycDocument] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_approved(self) -> bool:
        return self.kyc_status == KycStatus.APPROVED

    def submitted_types(self) -> Set[str]:
        return {doc.document_type for doc in self.documents}

    def missing_document_types(self, required: Iterable[str]) -> List[str]:
        """Required document types with no submission yet, in required order"""
        submitted = self.submitted_types()
        return [doc_type for doc_type in required if doc_type not in submitted]

    def to_dict(self) -> dict:
        """Convert to dictionary, commission rate as float"""
        data = self.model_dump(mode="json")
        data['commission_rate'] = float(self.commission_rate) if self.commission_rate is not None else None
        return data
