# services/api/core/audit.py

from __future__ import annotations

import logging

from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from adapters.base import AuditStore, AuditStoreError
from core.errors import AuditWriteError, InternalError
from core.hashing import sha256_hex
from models import AuditRecord

logger = logging.getLogger(__name__)


class AuditRecorder:
    """
    Hashes a document before/after a signature was applied and appends the
    pair to the audit store.

    Appends are retried with exponential backoff on AuditStoreError
    (at-least-once); anything still failing surfaces as AuditWriteError.
    """

    def __init__(
        self,
        store: AuditStore,
        *,
        max_attempts: int = 3,
        backoff_min: float = 0.1,
        backoff_max: float = 2.0,
    ) -> None:
        self.store = store
        self.max_attempts = max(1, int(max_attempts))
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max

    def record(self, document_id: str, before_bytes: bytes, after_bytes: bytes) -> AuditRecord:
        """
        Build and persist one AuditRecord.

        Raises:
            InternalError:   hashes are equal, i.e. the overlay was never applied.
            AuditWriteError: the store rejected the append on every attempt.
        """
        hash_before = sha256_hex(before_bytes)
        hash_after = sha256_hex(after_bytes)

        if hash_before == hash_after:
            logger.error(f"Audit refused for {document_id}: document unchanged ({hash_before})")
            raise InternalError(
                "Signed document is byte-identical to the original; the signature was not applied"
            )

        record = AuditRecord(
            document_id=document_id,
            hash_before=hash_before,
            hash_after=hash_after,
        )
        self._append(record)

        logger.info(
            f"Audit record {record.record_id} appended for {document_id} "
            f"({hash_before[:12]}… → {hash_after[:12]}…)"
        )
        return record

    def _append(self, record: AuditRecord) -> None:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff_min, min=self.backoff_min, max=self.backoff_max),
            retry=retry_if_exception_type(AuditStoreError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            retrying(self.store.append, record)
        except Exception as e:  # any store failure means no durable audit trail
            logger.error(f"Audit write failed for {record.document_id}: {e}")
            raise AuditWriteError(f"Audit record could not be persisted: {e}") from e

    @staticmethod
    def _log_retry(retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(f"Audit append attempt {retry_state.attempt_number} failed: {exc}; retrying")
