"""
MCP Resources - Read-only views addressed by affine:// URIs

Recognized forms:
- affine://workspace/{id}        workspace detail, degrading to its document listing
- affine://workspace/{id}/docs   first page of documents in the workspace
- affine://search?q=...          search across all workspaces
"""

from dataclasses import dataclass
from typing import Any
from urllib.parse import SplitResult, parse_qs, urlsplit

from loguru import logger
from mcp.types import Resource

from affine_mcp.errors import InvalidResourceError, UpstreamError

from .models import DocumentPage, ListDocumentsParams, SearchDocumentsParams, SearchResult, Workspace, WorkspaceParams
from .tools import AffineTools

SCHEME: str = "affine"
JSON_MIME_TYPE: str = "application/json"

SEARCH_USAGE: dict[str, Any] = {
    "message": "Add a query parameter to search documents across all workspaces",
    "usage": f"{SCHEME}://search?q=<keywords>",
}


@dataclass(frozen=True)
class ResourceContent:
    uri: str
    data: Any
    mime_type: str = JSON_MIME_TYPE


def split_resource_uri(uri: str) -> tuple[list[str], dict[str, list[str]]]:
    """Split an affine:// URI into path segments (collection first) and query parameters.

    A single trailing slash is ignored; any other empty segment (an empty id) is rejected.
    """
    parts: SplitResult = urlsplit(uri)
    if parts.scheme != SCHEME:
        raise InvalidResourceError(uri, f"unsupported scheme '{parts.scheme}'")
    path: str = parts.path.removeprefix("/").removesuffix("/")
    segments: list[str] = [parts.netloc, *path.split("/")] if path else [parts.netloc]
    if not all(segments):
        raise InvalidResourceError(uri, "empty path segment")
    return segments, parse_qs(parts.query)


class AffineResources:
    """Handles MCP resource listing and URI resolution"""

    def __init__(self, tools: AffineTools):
        self.tools: AffineTools = tools

    async def list_resources(self) -> list[Resource]:
        """Advertise detail and listing resources per workspace, plus global search"""
        workspaces: list[Workspace] = await self.tools.list_workspaces()
        resources: list[Resource] = []

        for workspace in workspaces:
            label: str = workspace.name or workspace.id
            resources.append(
                Resource(
                    uri=f"{SCHEME}://workspace/{workspace.id}",
                    name=f"Workspace: {label}",
                    description=f'Access to workspace "{label}" documents and metadata',
                    mimeType=JSON_MIME_TYPE,
                )
            )
            resources.append(
                Resource(
                    uri=f"{SCHEME}://workspace/{workspace.id}/docs",
                    name=f"Documents in {label}",
                    description=f'List all documents in workspace "{label}"',
                    mimeType=JSON_MIME_TYPE,
                )
            )

        resources.append(
            Resource(
                uri=f"{SCHEME}://search",
                name="Document Search",
                description="Search across all accessible documents (affine://search?q=...)",
                mimeType=JSON_MIME_TYPE,
            )
        )
        return resources

    async def resolve(self, uri: str) -> ResourceContent:
        segments, query = split_resource_uri(uri)

        if segments and segments[0] == "workspace":
            if len(segments) == 2:
                return ResourceContent(uri=uri, data=await self._workspace_or_documents(segments[1]))
            if len(segments) == 3 and segments[2] == "docs":
                page: DocumentPage = await self.tools.list_documents(ListDocumentsParams(workspace_id=segments[1]))
                return ResourceContent(uri=uri, data=page.model_dump(mode="json"))

        if segments == ["search"]:
            keywords: str = " ".join(query.get("q", [])).strip()
            if not keywords:
                return ResourceContent(uri=uri, data=SEARCH_USAGE)
            result: SearchResult = await self.tools.search_documents(SearchDocumentsParams(query=keywords))
            return ResourceContent(uri=uri, data=result.model_dump(mode="json"))

        raise InvalidResourceError(uri, "unknown resource path")

    async def _workspace_or_documents(self, workspace_id: str) -> dict[str, Any]:
        """
        Read workspace detail; if that fails, fall back to the document listing.

        The detail error is only raised when the listing fails too.
        """
        try:
            workspace: Workspace = await self.tools.get_workspace_info(WorkspaceParams(workspace_id=workspace_id))
            return {"workspace": workspace.model_dump(mode="json")}
        except UpstreamError as detail_error:
            logger.warning(f"workspace {workspace_id}: detail unavailable, falling back to document listing: {detail_error.message}")
            try:
                page: DocumentPage = await self.tools.list_documents(ListDocumentsParams(workspace_id=workspace_id))
            except UpstreamError:
                raise detail_error from None
            return {
                "note": f"Workspace details for '{workspace_id}' are unavailable ({detail_error.message}); showing its documents instead.",
                "documents": page.model_dump(mode="json"),
            }
