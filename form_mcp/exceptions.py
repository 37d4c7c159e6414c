class FormToolsError(Exception):
    """Base exception for form-mcp errors."""


class ToolRegistrationError(FormToolsError):
    """Raised when the tool host rejects a registration."""


class ToolNotFound(FormToolsError):
    """Raised when a host is asked for a tool it doesn't have."""


class EnrichmentError(FormToolsError):
    """Raised when a description provider returns an unusable reply."""


class ExecutionSuperseded(FormToolsError):
    """Raised to a pending invocation replaced by a newer one for the same form."""


class FormDetached(FormToolsError):
    """Raised to a pending invocation whose form left the page."""
