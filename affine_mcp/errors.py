"""
Error taxonomy shared by the upstream proxy, the handlers and the MCP boundary.
"""

from enum import Enum


class AffineMCPError(Exception):
    """Base class for all errors raised by the bridge"""


class ConfigurationError(AffineMCPError):
    """Raised at startup when mandatory settings are missing or invalid"""


class UpstreamErrorKind(str, Enum):
    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    APPLICATION_ERRORS = "application_errors"
    MALFORMED_RESPONSE = "malformed_response"


class UpstreamError(AffineMCPError):
    """
    Normalized failure of a single upstream GraphQL call.

    Raised by AffineProxy.execute for every failure mode so callers only have
    one exception type to deal with.
    """

    def __init__(self, kind: UpstreamErrorKind, message: str, operation: str | None = None) -> None:
        self.kind: UpstreamErrorKind = kind
        self.message: str = message
        self.operation: str | None = operation
        super().__init__(message)

    def __repr__(self) -> str:
        return f"UpstreamError(kind={self.kind.value!r}, operation={self.operation!r}, message={self.message!r})"


class UnknownToolError(AffineMCPError):
    """Raised when a tool name is not declared in the registry"""

    def __init__(self, name: str) -> None:
        self.name: str = name
        super().__init__(f"Unknown tool: {name}")


class InvalidResourceError(AffineMCPError):
    """Raised when a resource URI does not map to any known resource"""

    def __init__(self, uri: str, reason: str | None = None) -> None:
        self.uri: str = uri
        super().__init__(f"Invalid resource URI '{uri}'" + (f": {reason}" if reason else ""))


class InvalidArgumentError(AffineMCPError, ValueError):
    """Raised by handlers when call arguments are structurally valid but unusable"""
