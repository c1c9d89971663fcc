"""
Domain error taxonomy.

- Validation problems are plain ``ValueError`` raised by constructors and
  validators before anything is persisted.
- ``NotFoundError``: a referenced id does not resolve.
- ``PreconditionError``: the entity exists but is in the wrong lifecycle state
  for the requested operation.
- ``UpstreamError``: Supabase, the chain node or Moltbook failed.
"""

from __future__ import annotations


class NotFoundError(LookupError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class PreconditionError(Exception):
    """Raised when an operation is invoked on an entity in the wrong state."""
    pass


class TransactionPendingError(PreconditionError):
    """Raised when a transaction has no receipt yet (still unconfirmed)."""
    pass


class UpstreamError(RuntimeError):
    """Raised when an external dependency returns an error or times out."""
    pass


__all__ = [
    "NotFoundError",
    "PreconditionError",
    "TransactionPendingError",
    "UpstreamError",
]
