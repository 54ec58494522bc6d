"""
Bridge configuration

Immutable settings captured once at startup:
- Upstream endpoint and credential
- Default workspace
- Default page sizes applied by the tool handlers
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

DEFAULT_API_URL: str = "https://app.affine.pro"

DEFAULT_SEARCH_LIMIT: int = 10
DEFAULT_COMMENT_LIMIT: int = 10
DEFAULT_HISTORY_LIMIT: int = 10
DEFAULT_DOCUMENT_LIMIT: int = 50


class AffineSettings(BaseModel):
    """Upstream connection settings"""

    model_config = ConfigDict(frozen=True)

    api_url: str = Field(default=DEFAULT_API_URL, description="Base address of the AFFiNE server")
    access_token: SecretStr = Field(description="Bearer token used for every upstream call")
    workspace_id: Optional[str] = Field(default=None, description="Workspace used when a tool call omits one")
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    user_agent: str = Field(default="affine-mcp-server/1.0", description="User-Agent header sent upstream")

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/") or DEFAULT_API_URL

    @field_validator("workspace_id")
    @classmethod
    def _blank_workspace_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() or None if value else None


class ServerOptions(BaseModel):
    """MCP server process options"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="affine-mcp-server", description="Server name announced to MCP clients")
    verify_on_startup: bool = Field(default=False, description="Query the workspace list before serving")
