"""
Base classes for the tool interface.

This module defines the core abstractions for tools in irys-mcp:
- Tool: Abstract base class that all tools must implement
- ToolContext: Runtime context passed to tools during execution
- ToolOutput: Standardized result format from tool execution

Design Principles:
    - Tools are stateless - the ledger handles come from ToolContext
    - Arguments are validated against a pydantic request model
    - Tools return ToolOutput - never raise exceptions for expected failures
    - Tools are registered by name - the registry handles lookup
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ValidationError

if TYPE_CHECKING:
    from irys_mcp.ledger import BatchRetriever, LedgerWriter
    from irys_mcp.schema import Settings


@dataclass(frozen=True)
class ToolOutput:
    """
    Standardized output from tool execution.

    Attributes:
        success: Whether the tool executed successfully
        data: The output data from the tool (URL, items or payload)
        error: Error message if success is False
        metadata: Additional metadata; "summary" is the status line
    """

    success: bool
    data: Any = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: Any, **metadata: Any) -> "ToolOutput":
        """Create a successful output."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> "ToolOutput":
        """Create a failed output."""
        return cls(success=False, error=error, metadata=metadata)

    def to_text(self) -> str:
        """
        Render as the text returned to the agent host.

        A status line, then the URL or pretty-printed JSON payload on
        success, or the error description on failure.
        """
        summary = self.metadata.get("summary")
        if not self.success:
            return f"{summary}: {self.error}" if summary else f"Error: {self.error}"

        if self.data is None:
            body = ""
        elif isinstance(self.data, str):
            body = self.data
        else:
            body = json.dumps(_jsonable(self.data), indent=2, default=str)

        if summary and body:
            return f"{summary}\n{body}"
        return summary or body


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


@dataclass
class ToolContext:
    """
    Runtime context passed to tools during execution.

    Attributes:
        retriever: Read path of the ledger
        writer: Write path of the ledger
        settings: Active settings (for reference)
        metadata: Additional context-specific metadata
    """

    retriever: "BatchRetriever"
    writer: "LedgerWriter"
    settings: "Settings | None" = None
    metadata: dict[str, Any] = field(default_factory=dict)


class Tool(ABC):
    """
    Abstract base class for all irys-mcp tools.

    Subclasses set request_model and implement name, description and
    execute().

    Example:
        class EchoTool(Tool):
            request_model = EchoRequest

            @property
            def name(self) -> str:
                return "echo"

            async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
                request = self.parse_args(args)
                return ToolOutput.ok(request.message)
    """

    request_model: ClassVar[type[BaseModel] | None] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """The unique identifier for this tool, as exposed to agents."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        return f"Tool: {self.name}"

    @abstractmethod
    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        """
        Execute the tool with the given arguments.

        Args:
            args: The arguments for this tool call (tool-specific)
            context: Runtime context with the ledger handles

        Returns:
            ToolOutput indicating success or failure with data/error

        Note:
            - Do NOT raise exceptions for expected failures
            - Use ToolOutput.fail() for expected errors
        """
        ...

    def validate_args(self, args: dict[str, Any]) -> list[str]:
        """
        Validate the arguments against request_model.

        Returns:
            List of validation error messages (empty if valid)
        """
        if self.request_model is None:
            return []
        try:
            self.request_model.model_validate(args)
        except ValidationError as e:
            return [
                f"{'.'.join(str(p) for p in err['loc']) or 'args'}: {err['msg']}"
                for err in e.errors()
            ]
        return []

    def parse_args(self, args: dict[str, Any]) -> Any:
        """
        Validate and return the request model instance.

        Raises:
            NotImplementedError: If the tool declares no request_model
            pydantic.ValidationError: If the arguments are invalid
        """
        if self.request_model is None:
            msg = f"Tool {self.name} declares no request_model"
            raise NotImplementedError(msg)
        return self.request_model.model_validate(args)

    def __repr__(self) -> str:
        """String representation of the tool."""
        return f"<Tool: {self.name}>"
