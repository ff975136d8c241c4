"""Domain exceptions.

Validation problems surface synchronously to callers. Fetch problems are raised by
the guarded fetch and TXT lookup ports and never escape the verification engine:
it turns them into a ``failed`` status plus a reason code.
"""

from __future__ import annotations


class AnchorIdError(Exception):
    """Base class for all AnchorID domain errors."""


class ClaimValidationError(AnchorIdError, ValueError):
    """Raised for malformed claim input (bad UUID, unknown type, bad handle or target)."""

    def __init__(self, message: str, *, reason: str = "invalid_target") -> None:
        super().__init__(message)
        self.reason = reason


class ProfileValidationError(AnchorIdError, ValueError):
    """Raised for profile input that cannot be canonicalized."""


class FetchBlockedError(AnchorIdError):
    """Raised when the fetch guard refuses a URL before any network access."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Fetch blocked ({reason}): {url}")
        self.url = url
        self.reason = reason


class ProofFetchError(AnchorIdError):
    """Raised when a proof source could not be retrieved.

    ``reason`` is the diagnostic code stored on the claim, e.g. ``fetch_failed:404``,
    ``doh_status:503``, ``dns_status:3`` or ``timeout``. ``transient`` marks failures
    the engine should try once more within its deadline; HTTP timeouts and 5xx
    answers have already been retried by the transport and are not transient here.
    """

    def __init__(self, reason: str, *, transient: bool = False, status_code: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.transient = transient
        self.status_code = status_code


class ProfileNotFoundError(AnchorIdError, LookupError):
    """Raised when no profile is stored for an identifier."""


class ClaimNotFoundError(AnchorIdError, LookupError):
    """Raised when a claim id is not present in an identifier's ledger."""


class LedgerConflictError(AnchorIdError):
    """Raised when an optimistic ledger update keeps losing the compare-and-set race."""
