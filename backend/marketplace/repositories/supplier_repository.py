"""
Supplier Repository - Data Access Layer for suppliers and KYC documents
"""
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from marketplace.domain.supplier import DocumentStatus, KycDocument, KycStatus, Supplier


SUPPLIER_COLUMNS = """
    id, user_id, business_name, registration_number, kyc_status,
    commission_rate, rejection_reason, is_active, reviewed_at,
    created_at, updated_at
"""

DOCUMENT_COLUMNS = """
    id, supplier_id, document_type, document_url, status,
    rejection_reason, created_at, updated_at
"""


class SupplierRepository:
    """
    Repository for suppliers and kyc_documents

    Status writes are compare-and-swap on kyc_status; reads can lock the
    supplier row for the rest of the caller's transaction.
    """

    @staticmethod
    def _map_row_to_supplier(row: dict) -> Supplier:
        data = dict(row)
        if data.get('is_active') is None:
            data['is_active'] = True
        return Supplier(**data)

    def find_by_id(self, conn, supplier_id: str, for_update: bool = False) -> Optional[Supplier]:
        """
        Find supplier by ID with its KYC documents

        Args:
            supplier_id: Supplier ID
            for_update: Lock the supplier row until the transaction ends

        Returns:
            Supplier or None if not found
        """
        lock = "FOR UPDATE" if for_update else ""
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                SELECT {SUPPLIER_COLUMNS}
                FROM suppliers
                WHERE id = %s
                {lock}
            """, (supplier_id,))

            row = cursor.fetchone()
            if not row:
                return None

            supplier = self._map_row_to_supplier(row)
            supplier.documents = self._find_documents(cursor, supplier_id)
            return supplier
        finally:
            cursor.close()

    def find_by_user(self, conn, user_id: str) -> Optional[Supplier]:
        """Find the supplier record owned by a user"""
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                SELECT {SUPPLIER_COLUMNS}
                FROM suppliers
                WHERE user_id = %s
            """, (user_id,))

            row = cursor.fetchone()
            if not row:
                return None

            supplier = self._map_row_to_supplier(row)
            supplier.documents = self._find_documents(cursor, supplier.id)
            return supplier
        finally:
            cursor.close()

    def create(self, conn, user_id: str, business_name: str, commission_rate: Decimal) -> Supplier:
        """Create a supplier in the pending KYC state"""
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                INSERT INTO suppliers (
                    user_id, business_name, kyc_status, commission_rate, is_active
                ) VALUES (
                    %s, %s, %s, %s, %s
                )
                RETURNING {SUPPLIER_COLUMNS}
            """, (user_id, business_name, KycStatus.PENDING.value, commission_rate, True))
            return self._map_row_to_supplier(cursor.fetchone())
        finally:
            cursor.close()

    def update_kyc_status(
        self,
        conn,
        supplier_id: str,
        expected: KycStatus,
        new_status: KycStatus,
        rejection_reason: Optional[str] = None,
        reviewed: bool = False
    ) -> Optional[Supplier]:
        """
        Compare-and-swap the supplier's KYC status

        rejection_reason is written as given, so passing None clears it.

        Returns:
            Updated supplier (without documents) or None if the status had moved
        """
        reviewed_at = "NOW()" if reviewed else "reviewed_at"
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                UPDATE suppliers
                SET kyc_status = %s,
                    rejection_reason = %s,
                    reviewed_at = {reviewed_at},
                    updated_at = NOW()
                WHERE id = %s AND kyc_status = %s
                RETURNING {SUPPLIER_COLUMNS}
            """, (new_status.value, rejection_reason, supplier_id, expected.value))

            row = cursor.fetchone()
            return self._map_row_to_supplier(row) if row else None
        finally:
            cursor.close()

    def find_business_names(self, conn, supplier_ids: Sequence[str]) -> Dict[str, str]:
        """Business name per supplier ID; unknown IDs are left out"""
        if not supplier_ids:
            return {}

        cursor = conn.cursor()
        try:
            cursor.execute("""
                SELECT id, business_name
                FROM suppliers
                WHERE id = ANY(%s)
            """, (list(supplier_ids),))
            return {row['id']: row['business_name'] for row in cursor.fetchall()}
        finally:
            cursor.close()

    def update_commission_rate(self, conn, supplier_id: str, commission_rate: Decimal) -> Optional[Supplier]:
        """Set the rate used by future settlements"""
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                UPDATE suppliers
                SET commission_rate = %s,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {SUPPLIER_COLUMNS}
            """, (commission_rate, supplier_id))

            row = cursor.fetchone()
            return self._map_row_to_supplier(row) if row else None
        finally:
            cursor.close()

    # ------------------------------------------------------------------
    # KYC documents
    # ------------------------------------------------------------------

    def find_document(self, conn, document_id: str) -> Optional[KycDocument]:
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                SELECT {DOCUMENT_COLUMNS}
                FROM kyc_documents
                WHERE id = %s
            """, (document_id,))

            row = cursor.fetchone()
            return KycDocument(**row) if row else None
        finally:
            cursor.close()

    def upsert_document(self, conn, supplier_id: str, document_type: str, document_url: str) -> KycDocument:
        """
        Submit a document of the given type

        Replaces the newest existing document of that type (resetting it to
        pending review) or inserts a new one.
        """
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                UPDATE kyc_documents
                SET document_url = %s,
                    status = %s,
                    rejection_reason = NULL,
                    updated_at = NOW()
                WHERE id = (
                    SELECT id FROM kyc_documents
                    WHERE supplier_id = %s AND document_type = %s
                    ORDER BY created_at DESC
                    LIMIT 1
                )
                RETURNING {DOCUMENT_COLUMNS}
            """, (document_url, DocumentStatus.PENDING.value, supplier_id, document_type))

            row = cursor.fetchone()
            if row:
                return KycDocument(**row)

            cursor.execute(f"""
                INSERT INTO kyc_documents (
                    supplier_id, document_type, document_url, status
                ) VALUES (
                    %s, %s, %s, %s
                )
                RETURNING {DOCUMENT_COLUMNS}
            """, (supplier_id, document_type, document_url, DocumentStatus.PENDING.value))
            return KycDocument(**cursor.fetchone())
        finally:
            cursor.close()

    def update_document_status(
        self,
        conn,
        document_id: str,
        status: DocumentStatus,
        rejection_reason: Optional[str] = None
    ) -> Optional[KycDocument]:
        cursor = conn.cursor()
        try:
            cursor.execute(f"""
                UPDATE kyc_documents
                SET status = %s,
                    rejection_reason = %s,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {DOCUMENT_COLUMNS}
            """, (status.value, rejection_reason, document_id))

            row = cursor.fetchone()
            return KycDocument(**row) if row else None
        finally:
            cursor.close()

    @staticmethod
    def _find_documents(cursor, supplier_id: str) -> List[KycDocument]:
        cursor.execute(f"""
            SELECT {DOCUMENT_COLUMNS}
            FROM kyc_documents
            WHERE supplier_id = %s
            ORDER BY created_at DESC
        """, (supplier_id,))
        return [KycDocument(**row) for row in cursor.fetchall()]
