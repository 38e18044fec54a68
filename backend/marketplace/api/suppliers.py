"""
Suppliers API Endpoints
Supplier registration, KYC document submission and operator review
"""
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from marketplace.core.auth import Caller, get_current_caller, require_operator
from marketplace.domain.supplier import DocumentStatus, KycStatus
from marketplace.services.supplier_trust_service import SupplierTrustService

router = APIRouter()


# Request models
class RegisterRequest(BaseModel):
    business_name: str


class DocumentSubmission(BaseModel):
    document_type: str
    document_url: str


class KycStatusUpdate(BaseModel):
    status: KycStatus
    rejection_reason: Optional[str] = None
    expected_status: Optional[KycStatus] = None
    force: bool = False


class DocumentReview(BaseModel):
    status: DocumentStatus
    rejection_reason: Optional[str] = None


class CommissionRateUpdate(BaseModel):
    commission_rate: Decimal


def get_supplier_service() -> SupplierTrustService:
    return SupplierTrustService()


def _ensure_owner_or_operator(service: SupplierTrustService, supplier_id: str, caller: Caller):
    supplier = service.get_supplier(supplier_id)
    if not caller.is_operator and supplier.user_id != caller.id:
        raise HTTPException(status_code=404, detail=f"Supplier {supplier_id} not found")
    return supplier


@router.post("/register")
def register_supplier(
    request: RegisterRequest,
    caller: Caller = Depends(get_current_caller),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    """Get or create the caller's supplier record (starts in KYC pending)"""
    supplier = service.register_supplier(caller.id, request.business_name)
    return {"status": "success", "data": supplier.to_dict()}


@router.get("/me")
def get_my_supplier(
    caller: Caller = Depends(get_current_caller),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    supplier = service.find_supplier_for_user(caller.id)
    if supplier is None:
        raise HTTPException(status_code=404, detail="No supplier account for this user")
    return {"status": "success", "data": supplier.to_dict()}


@router.get("/{supplier_id}")
def get_supplier(
    supplier_id: str,
    caller: Caller = Depends(get_current_caller),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    """Supplier with KYC status and documents"""
    supplier = _ensure_owner_or_operator(service, supplier_id, caller)
    return {"status": "success", "data": supplier.to_dict()}


@router.post("/{supplier_id}/documents")
def submit_document(
    supplier_id: str,
    submission: DocumentSubmission,
    caller: Caller = Depends(get_current_caller),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    """
    Submit or replace a KYC document

    A rejected supplier goes back to pending once every required document
    type has been submitted.
    """
    _ensure_owner_or_operator(service, supplier_id, caller)
    supplier = service.submit_kyc_document(supplier_id, submission.document_type, submission.document_url)
    return {"status": "success", "data": supplier.to_dict()}


@router.put("/{supplier_id}/kyc-status")
def set_kyc_status(
    supplier_id: str,
    update: KycStatusUpdate,
    operator: Caller = Depends(require_operator),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    """Operator moves the supplier to under_review, approved or rejected"""
    supplier = service.set_supplier_kyc_status(
        supplier_id,
        update.status,
        rejection_reason=update.rejection_reason,
        expected_status=update.expected_status,
        force=update.force,
    )
    return {"status": "success", "data": supplier.to_dict()}


@router.put("/{supplier_id}/commission-rate")
def set_commission_rate(
    supplier_id: str,
    update: CommissionRateUpdate,
    operator: Caller = Depends(require_operator),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    """Set the commission percent (0-100) applied to future settlements"""
    supplier = service.set_commission_rate(supplier_id, update.commission_rate)
    return {"status": "success", "data": supplier.to_dict()}


@router.put("/documents/{document_id}/status")
def review_document(
    document_id: str,
    review: DocumentReview,
    operator: Caller = Depends(require_operator),
    service: SupplierTrustService = Depends(get_supplier_service),
):
    """Operator approves or rejects a single KYC document"""
    document = service.review_kyc_document(document_id, review.status, review.rejection_reason)
    return {"status": "success", "data": document.model_dump(mode="json")}
