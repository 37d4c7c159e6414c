from typing import Any, Awaitable, Callable

from form_mcp.analyzer import ToolMetadata
from form_mcp.execution import ExecuteResult

Executor = Callable[[dict[str, Any]], Awaitable[ExecuteResult]]


class FormTool:
    """A form exposed as a tool: metadata plus the executor that drives it."""

    def __init__(self, metadata: ToolMetadata, executor: Executor):
        self.name = metadata.name
        self.description = metadata.description
        self.metadata = metadata
        self._executor = executor

    def schema(self) -> dict:
        """Return the JSON schema of the tool's parameters."""
        return self.metadata.input_schema.to_dict()

    async def execute(self, **kwargs) -> ExecuteResult:
        """Fill the form with ``kwargs`` and wait for its submission."""
        return await self._executor(kwargs)


class ToolHost:
    """Capability that accepts tool registrations and routes calls to them."""

    async def register_tool(self, tool: FormTool) -> None:
        raise NotImplementedError

    async def unregister_tool(self, name: str) -> None:
        raise NotImplementedError
