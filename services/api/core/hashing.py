"""
Content digest used by the audit trail.

SHA-256 over the full byte sequence, lowercase hex, no prefix and no
truncation. Audit trails written by other implementations hash the same
way, so this encoding must not change.
"""
import hashlib
from typing import Union


def sha256_hex(data: Union[bytes, bytearray, memoryview]) -> str:
    """
    Return the lowercase hex SHA-256 digest of `data`.

    Raises:
        TypeError: if `data` is not a bytes-like object (str is rejected
            so text is never hashed under an implicit encoding).
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"sha256_hex expects bytes, got {type(data).__name__}")
    return hashlib.sha256(data).hexdigest()
