"""
Exception hierarchy for irys-mcp.

All irys-mcp exceptions inherit from IrysError, allowing callers to catch
every package-specific failure with a single except clause.

Exception Categories:
    - ResolutionError: Indexing query failed or returned malformed data
    - TransportError: Gateway fetch failed for one transaction id
    - ClassificationError: Body could not be read after a successful fetch
    - WriteError: Upload to the ledger failed
    - ConfigError: Settings could not be loaded
    - ToolNotFoundError: Unknown tool name

Errors are carried inside Result values across component boundaries; they
are only raised when a caller explicitly unwraps a failed Result.
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Resolution errors: 1xxx
ERROR_RESOLUTION_FAILED = 1001
ERROR_RESOLUTION_MALFORMED = 1002

# Transport errors: 2xxx
ERROR_TRANSPORT_FAILED = 2001
ERROR_TRANSPORT_STATUS = 2002
ERROR_TRANSPORT_TIMEOUT = 2003

# Classification errors: 3xxx
ERROR_CLASSIFICATION_FAILED = 3001

# Write errors: 4xxx
ERROR_WRITE_FAILED = 4001
ERROR_WRITE_INVALID_ROOT = 4002
ERROR_WRITE_CREDENTIAL_MISSING = 4003
ERROR_WRITE_SIGNING = 4004

# Config errors: 5xxx
ERROR_CONFIG_INVALID = 5001

# Tool errors: 6xxx
ERROR_TOOL_NOT_FOUND = 6001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class IrysError(Exception):
    """
    Base exception for all irys-mcp errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Resolution Errors
# =============================================================================


@dataclass
class ResolutionError(IrysError):
    """
    Raised when the indexing query cannot be answered.

    The message is deliberately generic; the underlying cause is kept in
    context for debugging.

    Attributes:
        underlying_error: Description of the transport-level failure
    """

    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Failed to query transactions from the indexer"
        if self.code == 0:
            self.code = ERROR_RESOLUTION_FAILED
        self.context["underlying_error"] = self.underlying_error


@dataclass
class ResolutionMalformedError(ResolutionError):
    """Raised when the indexer answers with an unexpected response shape."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Indexer returned a malformed response"
        if self.code == 0:
            self.code = ERROR_RESOLUTION_MALFORMED
        super().__post_init__()


# =============================================================================
# Transport Errors
# =============================================================================


@dataclass
class TransportError(IrysError):
    """
    Raised when a gateway fetch fails for one transaction.

    Attributes:
        transaction_id: The transaction being fetched
        underlying_error: Description of the network failure
    """

    transaction_id: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to fetch {self.transaction_id}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_TRANSPORT_FAILED
        self.context.update({
            "transaction_id": self.transaction_id,
            "underlying_error": self.underlying_error,
        })


@dataclass
class TransportStatusError(TransportError):
    """Raised when the gateway answers with a non-2xx status."""

    status_code: int = 0
    reason_phrase: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            status = f"{self.status_code} {self.reason_phrase}".strip()
            self.message = f"Gateway returned {status} for {self.transaction_id}"
        if self.code == 0:
            self.code = ERROR_TRANSPORT_STATUS
        super().__post_init__()
        self.context.update({
            "status_code": self.status_code,
            "reason_phrase": self.reason_phrase,
        })


@dataclass
class TransportTimeoutError(TransportError):
    """Raised when one item of a batch exceeds its timeout."""

    timeout_seconds: float = 0

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Fetching {self.transaction_id} timed out after {self.timeout_seconds}s"
        if self.code == 0:
            self.code = ERROR_TRANSPORT_TIMEOUT
        if not self.suggestion:
            self.suggestion = "Increase item_timeout_seconds in settings"
        super().__post_init__()
        self.context["timeout_seconds"] = self.timeout_seconds


# =============================================================================
# Classification Errors
# =============================================================================


@dataclass
class ClassificationError(IrysError):
    """Raised when a fetched body cannot be read."""

    transaction_id: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Failed to read content of {self.transaction_id}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CLASSIFICATION_FAILED
        self.context.update({
            "transaction_id": self.transaction_id,
            "underlying_error": self.underlying_error,
        })


# =============================================================================
# Write Errors
# =============================================================================


@dataclass
class WriteError(IrysError):
    """
    Raised when an upload fails.

    A write is a single unit, so this error fails the whole operation.

    Attributes:
        underlying_error: Description of the network or service failure
        status_code: HTTP status from the upload node, if one was received
    """

    underlying_error: str = ""
    status_code: int | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Upload failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_WRITE_FAILED
        self.context.update({
            "underlying_error": self.underlying_error,
            "status_code": self.status_code,
        })


@dataclass
class InvalidRootReferenceError(WriteError):
    """Raised when a follow-up chain write names a malformed root id."""

    root_transaction_id: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid root transaction id: {self.root_transaction_id!r}"
        if self.code == 0:
            self.code = ERROR_WRITE_INVALID_ROOT
        if not self.suggestion:
            self.suggestion = "Pass the 43-character id returned by the first write of the chain"
        super().__post_init__()
        self.context["root_transaction_id"] = self.root_transaction_id


@dataclass
class CredentialMissingError(WriteError):
    """Raised when a write is attempted without a private key."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "No private key configured for uploads"
        if self.code == 0:
            self.code = ERROR_WRITE_CREDENTIAL_MISSING
        if not self.suggestion:
            self.suggestion = "Set the PRIVATE_KEY environment variable"
        super().__post_init__()


@dataclass
class SigningError(WriteError):
    """Raised when the private key is unusable or signing fails."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Signing failed: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_WRITE_SIGNING
        super().__post_init__()


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigError(IrysError):
    """Raised when settings cannot be loaded."""

    path: str = ""
    underlying_error: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid settings {self.path}: {self.underlying_error}"
        if self.code == 0:
            self.code = ERROR_CONFIG_INVALID
        self.context.update({
            "path": self.path,
            "underlying_error": self.underlying_error,
        })


# =============================================================================
# Tool Errors
# =============================================================================


@dataclass
class ToolNotFoundError(IrysError):
    """Raised when a tool name is not registered."""

    tool: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Tool not found: {self.tool}"
        if self.code == 0:
            self.code = ERROR_TOOL_NOT_FOUND
        if not self.suggestion:
            self.suggestion = "Check tool name spelling or register the tool"
        self.context["tool"] = self.tool
