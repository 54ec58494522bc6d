"""
Tool registry - declarations and dispatch

Maps each ToolName to its parameter model and handler. The registry routes by
name only; argument validation is the parameter model's job.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from loguru import logger
from mcp.types import Tool
from pydantic import BaseModel

from affine_mcp.errors import UnknownToolError

from .models import (
    CreateCommentParams,
    DeleteBlobParams,
    DeleteCommentParams,
    DocumentRefParams,
    GetDocumentParams,
    GetHistoryParams,
    ListCommentsParams,
    ListDocumentsParams,
    ListWorkspacesParams,
    PublishDocumentParams,
    ResolveCommentParams,
    SearchDocumentsParams,
    WorkspaceParams,
)
from .tools import AffineTools


class ToolName(str, Enum):
    SEARCH_DOCUMENTS = "search_documents"
    GET_DOCUMENT = "get_document"
    LIST_WORKSPACES = "list_workspaces"
    GET_WORKSPACE_INFO = "get_workspace_info"
    LIST_DOCUMENTS = "list_documents"
    PUBLISH_DOCUMENT = "publish_document"
    UNPUBLISH_DOCUMENT = "unpublish_document"
    LIST_COMMENTS = "list_comments"
    CREATE_COMMENT = "create_comment"
    RESOLVE_COMMENT = "resolve_comment"
    DELETE_COMMENT = "delete_comment"
    GET_DOCUMENT_HISTORY = "get_document_history"
    LIST_BLOBS = "list_blobs"
    DELETE_BLOB = "delete_blob"


Handler = Callable[[AffineTools, Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    params: type[BaseModel]
    handler: Handler

    def input_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = self.params.model_json_schema(by_alias=True)
        schema.pop("title", None)
        schema.setdefault("properties", {})
        return schema

    def as_tool(self) -> Tool:
        return Tool(name=self.name.value, description=self.description, inputSchema=self.input_schema())


TOOL_SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        ToolName.SEARCH_DOCUMENTS,
        "Search for documents across all workspaces, or within one workspace when workspaceId is given",
        SearchDocumentsParams,
        AffineTools.search_documents,
    ),
    ToolSpec(ToolName.GET_DOCUMENT, "Retrieve a specific document by ID", GetDocumentParams, AffineTools.get_document),
    ToolSpec(ToolName.LIST_WORKSPACES, "Get all accessible workspaces", ListWorkspacesParams, AffineTools.list_workspaces),
    ToolSpec(
        ToolName.GET_WORKSPACE_INFO,
        "Get detailed information about a workspace (owner, members, quota)",
        WorkspaceParams,
        AffineTools.get_workspace_info,
    ),
    ToolSpec(
        ToolName.LIST_DOCUMENTS,
        "List documents in a workspace, one page at a time (pass endCursor back as cursor to continue)",
        ListDocumentsParams,
        AffineTools.list_documents,
    ),
    ToolSpec(
        ToolName.PUBLISH_DOCUMENT,
        "Make a document publicly accessible in Page or Edgeless mode",
        PublishDocumentParams,
        AffineTools.publish_document,
    ),
    ToolSpec(ToolName.UNPUBLISH_DOCUMENT, "Revoke public access to a document", DocumentRefParams, AffineTools.unpublish_document),
    ToolSpec(ToolName.LIST_COMMENTS, "List comments on a document", ListCommentsParams, AffineTools.list_comments),
    ToolSpec(ToolName.CREATE_COMMENT, "Add a comment to a document", CreateCommentParams, AffineTools.create_comment),
    ToolSpec(ToolName.RESOLVE_COMMENT, "Mark a comment as resolved or unresolved", ResolveCommentParams, AffineTools.resolve_comment),
    ToolSpec(ToolName.DELETE_COMMENT, "Delete a comment", DeleteCommentParams, AffineTools.delete_comment),
    ToolSpec(
        ToolName.GET_DOCUMENT_HISTORY,
        "List the version history of a document, newest first (pass nextBefore back as before to continue)",
        GetHistoryParams,
        AffineTools.get_document_history,
    ),
    ToolSpec(ToolName.LIST_BLOBS, "List blobs stored in a workspace with their total size", WorkspaceParams, AffineTools.list_blobs),
    ToolSpec(ToolName.DELETE_BLOB, "Delete a blob from a workspace", DeleteBlobParams, AffineTools.delete_blob),
)


class ToolRegistry:
    """Advertises the declared tools and routes calls to their handlers"""

    def __init__(self, tools: AffineTools, specs: tuple[ToolSpec, ...] = TOOL_SPECS) -> None:
        self.tools: AffineTools = tools
        self.specs: dict[str, ToolSpec] = {spec.name.value: spec for spec in specs}

    def list_tools(self) -> list[Tool]:
        return [spec.as_tool() for spec in self.specs.values()]

    def get(self, name: str) -> ToolSpec:
        spec: ToolSpec | None = self.specs.get(name)
        if spec is None:
            raise UnknownToolError(name)
        return spec

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Validate arguments against the tool's parameter model and run its handler"""
        spec: ToolSpec = self.get(name)
        params: BaseModel = spec.params.model_validate(arguments or {})
        logger.debug(f"invoke {name} with {params.model_dump(by_alias=True, exclude_none=True)}")
        return await spec.handler(self.tools, params)
