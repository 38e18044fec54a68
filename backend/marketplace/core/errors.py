"""
Error taxonomy for the marketplace core

Every error is scoped to a single request. The HTTP layer maps each kind
to a status code (see marketplace.main).
"""
from typing import Optional


class MarketplaceError(Exception):
    """Base class for all errors raised by the core"""

    code = "marketplace_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Malformed input. Nothing was written."""

    code = "validation_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(MarketplaceError):
    """Referenced entity does not exist"""

    code = "not_found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(MarketplaceError):
    """
    A concurrent change won the race (stale status, cart changed,
    stock taken). The caller should reload rather than blindly retry.
    """

    code = "conflict"


class InvalidTransitionError(ConflictError):
    """The requested lifecycle transition is not defined from the current state"""

    code = "invalid_transition"

    def __init__(self, entity: str, current: str, target: str):
        super().__init__(f"Cannot move {entity} from '{current}' to '{target}'")
        self.current = current
        self.target = target


class PersistenceError(MarketplaceError):
    """Backing store failure. The whole operation did not happen."""

    code = "persistence_error"
