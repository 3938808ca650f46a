"""
Audit store interface.
Defines the contract that all audit storage backends must implement.
"""

from typing import Protocol, List

from models import AuditRecord


class AuditStoreError(RuntimeError):
    """Raised by adapters when a read or write against the backend fails."""


class AuditStore(Protocol):
    """
    Protocol for the append-only audit log.

    This allows swapping between SQLite/any SQLAlchemy URL and a JSON-lines
    file without changing the recorder or router code.

    NOTE:
    - There is deliberately no update/delete: records are immutable once
      appended.
    - append() is at-least-once from the caller's side. A retried append may
      leave a duplicate row for the same artifact; readers must tolerate it.
    """

    def append(self, record: AuditRecord) -> None:
        """
        Durably persist one record.

        Raises:
            AuditStoreError: if the record could not be written.
        """
        ...

    def list_records(self, document_id: str) -> List[AuditRecord]:
        """
        Return every record for a document, oldest first.
        """
        ...

    def ping(self) -> None:
        """
        Cheap connectivity check used by the readiness probe.

        Raises:
            AuditStoreError: if the backend is unreachable.
        """
        ...
