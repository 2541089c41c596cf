"""Error taxonomy for the configvault store.

Every error carries the HTTP ``status_code`` and a stable ``error_kind`` so
a transport layer can render it without knowing the class hierarchy:

- 400 ``ValidationError`` (and ``MalformedPayload``, ``InvalidIdFormat``)
- 403 ``Unauthorized``
- 404 ``NotFound``
- 500 ``UnrecognizedPayloadEncoding``, ``CorruptedPayload``,
  ``MalformedVersion`` (data-integrity faults) and ``InternalFailure``
"""

from __future__ import annotations

__all__ = [
    "VaultError",
    "ValidationError",
    "MalformedPayload",
    "InvalidIdFormat",
    "NotFound",
    "Unauthorized",
    "DataIntegrityError",
    "UnrecognizedPayloadEncoding",
    "CorruptedPayload",
    "MalformedVersion",
    "InternalFailure",
]


class VaultError(RuntimeError):
    """Base class for all configvault failures."""

    status_code: int = 500
    error_kind: str = "internal_failure"

    def to_dict(self) -> dict[str, object]:
        """Render as the ``{"success": false, "error": ...}`` wire shape."""
        return {"success": False, "error": str(self), "kind": self.error_kind}


class ValidationError(VaultError):
    """Raised when client-supplied fields are missing, oversized or malformed."""

    status_code = 400
    error_kind = "validation_error"


class MalformedPayload(ValidationError):
    """Raised when an uploaded payload is not one well-formed JSON document."""

    error_kind = "malformed_payload"


class InvalidIdFormat(ValidationError):
    """Raised when an external identifier has a non-numeric remainder."""

    error_kind = "invalid_id_format"


class NotFound(VaultError):
    """Raised when no artifact exists for an identifier."""

    status_code = 404
    error_kind = "not_found"


class Unauthorized(VaultError):
    """Raised on a wrong shared secret or a bad, expired or missing token.

    The message is deliberately identical for every token failure so the
    caller cannot tell an expired token from a wrong one.
    """

    status_code = 403
    error_kind = "unauthorized"


class DataIntegrityError(VaultError):
    """Raised when stored data cannot be reconstructed.

    Indicates a problem with the stored data itself, not with the request.
    """

    status_code = 500
    error_kind = "data_integrity"


class UnrecognizedPayloadEncoding(DataIntegrityError):
    """Raised when a stored payload matches none of the known encodings."""

    error_kind = "unrecognized_payload_encoding"


class CorruptedPayload(DataIntegrityError):
    """Raised when a stored payload has a known shape but invalid contents."""

    error_kind = "corrupted_payload"


class MalformedVersion(DataIntegrityError):
    """Raised when a stored version tag has a non-numeric component."""

    error_kind = "malformed_version"


class InternalFailure(VaultError):
    """Raised when the backing store fails; the cause is chained, not exposed."""

    status_code = 500
    error_kind = "internal_failure"
