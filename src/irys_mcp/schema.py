"""
Schema definitions for irys-mcp.

This module defines the Pydantic models used throughout irys-mcp:
- Tag/TimeRange: Filters and annotations attached to transactions
- TransactionRef/RetrievedItem: Read-path values
- UploadResult/MutableChain: Write-path values
- Tool request models: Validated arguments for the agent-facing tools
- Settings: Endpoints, limits and the write credential

Design Decisions:
    - Value models are immutable (frozen=True)
    - Tool request models accept the camelCase names agents send
    - Settings come from an optional YAML file plus environment overrides
"""

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)

from irys_mcp.errors import ConfigError

# Transaction ids are 32-byte hashes, base64url encoded without padding
TRANSACTION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{43}$")

TagScalar = str | int | float | bool


# =============================================================================
# Enums
# =============================================================================


class DataKind(str, Enum):
    """
    Caller-declared kind of an upload.

    FILE and IMAGE payloads are file paths; everything else is a
    structured value serialized as JSON.
    """

    FILE = "FILE"
    IMAGE = "IMAGE"
    OTHER = "OTHER"

    @property
    def is_file(self) -> bool:
        return self in (DataKind.FILE, DataKind.IMAGE)


# =============================================================================
# Filter / Annotation Models
# =============================================================================


class Tag(BaseModel):
    """
    A name/values annotation.

    Attributes:
        name: Tag name (e.g., "App-Name")
        values: One or more scalar values; joined on the wire for writes
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1, description="Tag name")
    values: list[TagScalar] = Field(..., min_length=1, description="Tag values")

    @classmethod
    def of(cls, name: str, *values: TagScalar) -> "Tag":
        """Shorthand constructor: Tag.of("App", "demo")."""
        return cls(name=name, values=list(values))


class TimeRange(BaseModel):
    """
    Inclusive time bounds in milliseconds since the epoch.

    An absent bound is unbounded on that side.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    from_: int | None = Field(default=None, alias="from", ge=0)
    to: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_order(self) -> "TimeRange":
        if self.from_ is not None and self.to is not None and self.from_ > self.to:
            msg = f"'from' ({self.from_}) must not be after 'to' ({self.to})"
            raise ValueError(msg)
        return self

    @property
    def is_unbounded(self) -> bool:
        return self.from_ is None and self.to is None


# =============================================================================
# Read-path Models
# =============================================================================


class TransactionRef(BaseModel):
    """A transaction id and the address that submitted it."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Content identifier")
    address: str = Field(..., description="Submitter address")


class RetrievedItem(BaseModel):
    """
    One entry of a batch retrieval.

    data holds the parsed payload, a redirect URL for binary content,
    or None when error is set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., description="Transaction id this item was fetched from")
    address: str = Field(..., description="Submitter address")
    data: Any = Field(default=None, description="Parsed payload or URL")
    error: str | None = Field(default=None, description="Failure description")


# =============================================================================
# Write-path Models
# =============================================================================


class UploadResult(BaseModel):
    """Terminal value of any write operation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    success: bool
    url: str | None = None
    transaction_id: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, url: str, transaction_id: str) -> "UploadResult":
        return cls(success=True, url=url, transaction_id=transaction_id)

    @classmethod
    def fail(cls, error: str) -> "UploadResult":
        return cls(success=False, error=error)


class MutableChain(BaseModel):
    """
    Position of a write within a mutable chain.

    Either unwritten (root_id is None: the next write starts the chain)
    or rooted at an existing transaction (the next write is a follow-up
    tagged with Root-TX).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    root_id: str | None = None

    @classmethod
    def unwritten(cls) -> "MutableChain":
        return cls()

    @classmethod
    def root(cls, root_id: str) -> "MutableChain":
        return cls(root_id=root_id)

    @classmethod
    def from_flag(cls, root_transaction_id: str, already_uploaded: bool) -> "MutableChain":
        """Build the chain position from the tool-level flag and id."""
        if already_uploaded:
            return cls.root(root_transaction_id)
        return cls.unwritten()

    @property
    def is_unwritten(self) -> bool:
        return self.root_id is None

    def has_valid_root(self) -> bool:
        """Whether root_id has the shape of a ledger transaction id."""
        return self.root_id is not None and bool(TRANSACTION_ID_PATTERN.match(self.root_id))


# =============================================================================
# Tool Request Models
# =============================================================================


class UploadRequest(BaseModel):
    """Arguments for uploadDataOnIrys."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    data: Any = Field(..., description="Value to store, or a file path for FILE/IMAGE")
    data_type: DataKind = Field(default=DataKind.OTHER, alias="dataType")
    tags: list[Tag] = Field(default_factory=list)

    @field_validator("data")
    @classmethod
    def require_data(cls, v: Any) -> Any:
        if v is None:
            msg = "'data' is required"
            raise ValueError(msg)
        return v


class RetrieveRequest(BaseModel):
    """Arguments for retrieveDataFromIrys."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    wallet_address: list[str] = Field(default_factory=list, alias="walletAddress")
    tags: list[Tag] | None = None
    timestamp: TimeRange | None = None


class TransactionRequest(BaseModel):
    """Arguments for retrieveDataFromATransactionId."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    transaction_id: str = Field(..., min_length=1, alias="transactionId")
    is_mutable: bool = Field(default=False, alias="isMutable")


class MutateRequest(BaseModel):
    """Arguments for mutateDataOnIrys."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    data: Any = Field(..., description="Value to store")
    root_transaction_id: str = Field(default="", alias="rootTransactionId")
    already_uploaded: bool = Field(default=False, alias="alreadyUploaded")

    @model_validator(mode="after")
    def require_root_for_follow_up(self) -> "MutateRequest":
        if self.already_uploaded and not self.root_transaction_id:
            msg = "'rootTransactionId' is required when 'alreadyUploaded' is true"
            raise ValueError(msg)
        return self

    @property
    def chain(self) -> MutableChain:
        return MutableChain.from_flag(self.root_transaction_id, self.already_uploaded)


# =============================================================================
# Settings
# =============================================================================


class Settings(BaseModel):
    """
    Runtime configuration.

    Attributes:
        gateway_url: Base URL serving transaction content by id
        graphql_url: Indexing query endpoint
        upload_url: Upload node base URL
        token: Payment network path segment used for uploads
        timeout_seconds: HTTP client timeout
        max_concurrency: Maximum concurrent fetches in a batch
        item_timeout_seconds: Timeout for one item of a batch
        private_key: Hex-encoded Ethereum key used to sign uploads
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    gateway_url: str = Field(default="https://gateway.irys.xyz")
    graphql_url: str = Field(default="https://uploader.irys.xyz/graphql")
    upload_url: str = Field(default="https://uploader.irys.xyz")
    token: str = Field(default="ethereum", min_length=1)
    timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    max_concurrency: int = Field(default=8, gt=0, le=256)
    item_timeout_seconds: float = Field(default=30.0, gt=0, le=600)
    private_key: SecretStr | None = Field(default=None)

    @field_validator("gateway_url", "graphql_url", "upload_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            msg = f"URL must start with http:// or https://: {v}"
            raise ValueError(msg)
        return v.rstrip("/")


# Environment variable -> settings field
ENV_OVERRIDES = {
    "IRYS_GATEWAY_URL": "gateway_url",
    "IRYS_GRAPHQL_URL": "graphql_url",
    "IRYS_UPLOAD_URL": "upload_url",
    "IRYS_TOKEN": "token",
    "IRYS_PRIVATE_KEY": "private_key",
    "PRIVATE_KEY": "private_key",
}


def load_settings(path: Path | str | None = None, environ: dict[str, str] | None = None) -> Settings:
    """
    Load settings from an optional YAML file and the environment.

    Environment variables take precedence over the file. PRIVATE_KEY wins
    over IRYS_PRIVATE_KEY when both are set.

    Args:
        path: Optional YAML settings file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated Settings

    Raises:
        ConfigError: If the file cannot be read or fails validation
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        try:
            with path.open() as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(path=str(path), underlying_error=str(e)) from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(path=str(path), underlying_error="top level must be a mapping")
        data.update(loaded or {})

    for var, field_name in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field_name] = value

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(path=str(path or "<environment>"), underlying_error=str(e)) from e


def load_settings_from_string(content: str) -> Settings:
    """Load settings from a YAML string, without environment overrides."""
    data = yaml.safe_load(content) or {}
    return Settings.model_validate(data)
