"""Domain exceptions.

Structured errors raised by the store adapters and the blocker services,
mapped to HTTP responses by the API layer.
"""

from typing import Optional
from uuid import UUID


class TaskhubError(Exception):
    """Base exception for taskhub errors."""

    def __init__(self, message: str, code: str = "TASKHUB_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(TaskhubError):
    """The entity or blocker referenced by an operation does not exist.

    Raised before any write is issued, so a failed lookup never leaves
    partial state behind.
    """

    def __init__(self, entity_type: str, entity_id: UUID | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            message=f"{entity_type} {entity_id} not found",
            code="NOT_FOUND",
        )


class StoreUnavailableError(TaskhubError):
    """Transient failure reading from or writing to the database.

    Wraps the underlying SQLAlchemy error. Requested writes surface it to the
    caller; downstream reconciliation catches and logs it.
    """

    def __init__(self, operation: str, original: Optional[Exception] = None):
        self.operation = operation
        self.original = original
        detail = f": {original}" if original else ""
        super().__init__(
            message=f"Store unavailable during {operation}{detail}",
            code="STORE_UNAVAILABLE",
        )


class InvariantViolationError(TaskhubError):
    """Internal consistency guard tripped.

    Should never be raised in practice; its presence documents a state the
    services refuse to write.
    """

    def __init__(self, message: str):
        super().__init__(message=message, code="INVARIANT_VIOLATION")


class InvalidStatusTransitionError(TaskhubError):
    """A requested status change is not allowed from the entity's current state.

    A blocked task leaves the blocked state only when its last active
    blocker is resolved.
    """

    def __init__(self, entity_type: str, entity_id: UUID | str, from_status: str, to_status: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message=f"Cannot change {entity_type} {entity_id} from {from_status} to {to_status}",
            code="INVALID_STATUS_TRANSITION",
        )
