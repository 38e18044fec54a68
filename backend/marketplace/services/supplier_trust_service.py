"""
Supplier Trust Service
KYC lifecycle for suppliers and review of their documents

    pending -> under_review -> approved
    pending | under_review -> rejected   (reason required)
    rejected -> pending                  (automatic, once every required
                                          document type has a submission)
    rejected -> approved                 (operator force-approve)

Approval is always an explicit operator action; approving every document
individually never approves the supplier.
"""
import logging
from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional

from marketplace.core.config import settings
from marketplace.core.database import transaction
from marketplace.core.errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from marketplace.domain.supplier import DocumentStatus, KycDocument, KycStatus, Supplier
from marketplace.repositories.supplier_repository import SupplierRepository
from marketplace.services.notification_service import NotificationSender
from marketplace.services.pricing_service import parse_rate

logger = logging.getLogger(__name__)


OPERATOR_TRANSITIONS: Dict[KycStatus, FrozenSet[KycStatus]] = {
    KycStatus.PENDING: frozenset({KycStatus.UNDER_REVIEW, KycStatus.APPROVED, KycStatus.REJECTED}),
    KycStatus.UNDER_REVIEW: frozenset({KycStatus.APPROVED, KycStatus.REJECTED}),
    KycStatus.REJECTED: frozenset({KycStatus.APPROVED}),
    KycStatus.APPROVED: frozenset(),
}

# Documents are frozen while an operator is looking at them or once approved
LOCKED_FOR_SUBMISSION = frozenset({KycStatus.UNDER_REVIEW, KycStatus.APPROVED})

MIN_COMMISSION_RATE = Decimal("0")
MAX_COMMISSION_RATE = Decimal("100")


def _clean_reason(reason: Optional[str]) -> str:
    return (reason or "").strip()


class SupplierTrustService:
    """
    Service for supplier KYC

    Status changes commit first; the notification is sent afterwards and
    its failure is logged, never raised.
    """

    def __init__(
        self,
        supplier_repo: Optional[SupplierRepository] = None,
        notifier: Optional[NotificationSender] = None,
        transaction_factory=None,
        required_documents: Optional[List[str]] = None,
    ):
        self.supplier_repo = supplier_repo or SupplierRepository()
        self.notifier = notifier or NotificationSender()
        self.transaction = transaction_factory or transaction
        self.required_documents = list(required_documents or settings.REQUIRED_KYC_DOCUMENTS)

    # ------------------------------------------------------------------
    # Reads / registration
    # ------------------------------------------------------------------

    def get_supplier(self, supplier_id: str) -> Supplier:
        with self.transaction() as conn:
            supplier = self.supplier_repo.find_by_id(conn, supplier_id)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)
        return supplier

    def find_supplier_for_user(self, user_id: str) -> Optional[Supplier]:
        with self.transaction() as conn:
            return self.supplier_repo.find_by_user(conn, user_id)

    def register_supplier(self, user_id: str, business_name: str) -> Supplier:
        """
        Get the user's supplier record, creating it (pending, default
        commission rate) on first use
        """
        business_name = (business_name or "").strip()
        if not business_name:
            raise ValidationError("Business name is required", field="business_name")

        with self.transaction() as conn:
            existing = self.supplier_repo.find_by_user(conn, user_id)
            if existing is not None:
                return existing
            supplier = self.supplier_repo.create(
                conn, user_id, business_name, settings.DEFAULT_COMMISSION_RATE
            )

        logger.info(f"Supplier {supplier.id} registered for user {user_id}")
        return supplier

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def set_supplier_kyc_status(
        self,
        supplier_id: str,
        status: KycStatus,
        rejection_reason: Optional[str] = None,
        expected_status: Optional[KycStatus] = None,
        force: bool = False,
    ) -> Supplier:
        """
        Operator moves a supplier to under_review, approved or rejected

        Args:
            supplier_id: Supplier to update
            status: Target status
            rejection_reason: Required (non-blank) when rejecting
            expected_status: Status the operator saw; a mismatch is a conflict
            force: Approve even if some required document types are missing

        Raises:
            ValidationError: blank rejection reason, missing documents
            InvalidTransitionError: target not reachable from current status
            ConflictError: status moved since it was read
        """
        reason = _clean_reason(rejection_reason)
        if status == KycStatus.REJECTED and not reason:
            raise ValidationError("A rejection reason is required", field="rejection_reason")

        with self.transaction() as conn:
            supplier = self.supplier_repo.find_by_id(conn, supplier_id, for_update=True)
            if supplier is None:
                raise NotFoundError("Supplier", supplier_id)

            current = supplier.kyc_status
            if expected_status is not None and expected_status != current:
                raise ConflictError(f"Supplier is '{current.value}', not '{expected_status.value}'")

            if status not in OPERATOR_TRANSITIONS[current]:
                raise InvalidTransitionError("supplier", current.value, status.value)

            if status == KycStatus.APPROVED and not force:
                missing = supplier.missing_document_types(self.required_documents)
                if missing:
                    raise ValidationError(
                        f"Supplier has not submitted: {', '.join(missing)}", field="documents"
                    )

            updated = self.supplier_repo.update_kyc_status(
                conn,
                supplier_id,
                expected=current,
                new_status=status,
                rejection_reason=reason if status == KycStatus.REJECTED else None,
                reviewed=status in (KycStatus.APPROVED, KycStatus.REJECTED),
            )
            if updated is None:
                raise ConflictError("Supplier was updated by someone else")

        updated.documents = supplier.documents
        logger.info(f"Supplier {supplier_id} KYC: {current.value} -> {status.value}")

        if status in (KycStatus.APPROVED, KycStatus.REJECTED):
            self._notify_decision(updated)

        return updated

    def review_kyc_document(
        self,
        document_id: str,
        status: DocumentStatus,
        rejection_reason: Optional[str] = None,
    ) -> KycDocument:
        """
        Operator approves or rejects a single document

        Does not change the supplier's own status.
        """
        if status == DocumentStatus.PENDING:
            raise ValidationError("Documents can only be approved or rejected", field="status")

        reason = _clean_reason(rejection_reason)
        if status == DocumentStatus.REJECTED and not reason:
            raise ValidationError("A rejection reason is required", field="rejection_reason")

        with self.transaction() as conn:
            if self.supplier_repo.find_document(conn, document_id) is None:
                raise NotFoundError("KYC document", document_id)
            document = self.supplier_repo.update_document_status(
                conn, document_id, status, reason if status == DocumentStatus.REJECTED else None
            )
        if document is None:
            raise ConflictError("KYC document was removed while it was being reviewed")

        logger.info(f"KYC document {document_id} ({document.document_type}) -> {status.value}")
        return document

    def set_commission_rate(self, supplier_id: str, commission_rate) -> Supplier:
        """
        Set a supplier's commission percent for future settlements

        Past order line items keep the rate frozen at their settlement.

        Raises:
            ValidationError: rate outside [0, 100]
        """
        rate = parse_rate(commission_rate)
        if rate < MIN_COMMISSION_RATE or rate > MAX_COMMISSION_RATE:
            raise ValidationError(
                f"Commission rate must be between {MIN_COMMISSION_RATE} and {MAX_COMMISSION_RATE}, got {rate}",
                field="commission_rate",
            )

        with self.transaction() as conn:
            supplier = self.supplier_repo.update_commission_rate(conn, supplier_id, rate)
        if supplier is None:
            raise NotFoundError("Supplier", supplier_id)

        logger.info(f"Supplier {supplier_id} commission rate set to {rate}%")
        return supplier

    # ------------------------------------------------------------------
    # Supplier actions
    # ------------------------------------------------------------------

    def submit_kyc_document(self, supplier_id: str, document_type: str, document_url: str) -> Supplier:
        """
        Submit (or replace) one KYC document

        A rejected supplier returns to pending only once every required
        document type has at least one submission.

        Raises:
            ValidationError: unknown document type or blank URL
            ConflictError: supplier is under review or approved
        """
        if document_type not in self.required_documents:
            raise ValidationError(
                f"Unknown document type '{document_type}'. Expected one of: {', '.join(self.required_documents)}",
                field="document_type",
            )
        document_url = (document_url or "").strip()
        if not document_url:
            raise ValidationError("A document URL is required", field="document_url")

        with self.transaction() as conn:
            supplier = self.supplier_repo.find_by_id(conn, supplier_id, for_update=True)
            if supplier is None:
                raise NotFoundError("Supplier", supplier_id)

            if supplier.kyc_status in LOCKED_FOR_SUBMISSION:
                raise ConflictError(
                    f"Documents cannot be changed while the supplier is '{supplier.kyc_status.value}'"
                )

            document = self.supplier_repo.upsert_document(conn, supplier_id, document_type, document_url)
            documents = [doc for doc in supplier.documents if doc.id != document.id] + [document]
            supplier.documents = documents

            if supplier.kyc_status == KycStatus.REJECTED and not supplier.missing_document_types(self.required_documents):
                updated = self.supplier_repo.update_kyc_status(
                    conn,
                    supplier_id,
                    expected=KycStatus.REJECTED,
                    new_status=KycStatus.PENDING,
                    rejection_reason=None,
                )
                if updated is None:
                    raise ConflictError("Supplier was updated by someone else")
                updated.documents = documents
                supplier = updated
                logger.info(f"Supplier {supplier_id} resubmitted all documents: rejected -> pending")

        logger.info(f"Supplier {supplier_id} submitted {document_type}")
        return supplier

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _notify_decision(self, supplier: Supplier) -> None:
        if supplier.kyc_status == KycStatus.APPROVED:
            title = "KYC Approved"
            message = "Your supplier account has been approved. You can now list products."
            kind = "success"
        else:
            title = "KYC Review Update"
            message = f"Your KYC application was not approved. Reason: {supplier.rejection_reason}"
            kind = "error"

        try:
            self.notifier.notify(supplier.user_id, title, message, kind)
        except Exception:
            logger.exception(f"Failed to notify supplier {supplier.id} of KYC {supplier.kyc_status.value}")
