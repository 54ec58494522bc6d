"""
AFFiNE MCP bridge - tools, resources and the MCP server facade

Provides:
- ToolRegistry: tool declarations and dispatch
- AffineResources: affine:// resource listing and resolution
- AffineTools: operation handlers over the AFFiNE GraphQL API
"""

from .config import AffineSettings, ServerOptions
from .models import (
    Blob,
    Comment,
    Document,
    DocumentDetail,
    DocumentPage,
    HistoryEntry,
    SearchHit,
    SearchResult,
    Workspace,
)
from .registry import ToolName, ToolRegistry
from .resources import AffineResources
from .server import AffineMCPServer
from .tools import AffineTools

__all__ = [
    "AffineMCPServer",
    "AffineResources",
    "AffineSettings",
    "AffineTools",
    "Blob",
    "Comment",
    "Document",
    "DocumentDetail",
    "DocumentPage",
    "HistoryEntry",
    "SearchHit",
    "SearchResult",
    "ServerOptions",
    "ToolName",
    "ToolRegistry",
    "Workspace",
]
