"""
Data models for the AFFiNE MCP bridge

Entities are read-through projections of upstream GraphQL payloads (camelCase
on the wire, snake_case in Python). Parameter models define the argument
contract of each tool; their JSON schema is what MCP clients see.
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import DEFAULT_COMMENT_LIMIT, DEFAULT_DOCUMENT_LIMIT, DEFAULT_HISTORY_LIMIT, DEFAULT_SEARCH_LIMIT


class AffineModel(BaseModel):
    """Base model accepting camelCase upstream keys as well as field names"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocMode(str, Enum):
    PAGE = "page"
    EDGELESS = "edgeless"


class PublishMode(str, Enum):
    PAGE = "Page"
    EDGELESS = "Edgeless"


# Entities


class UserRef(AffineModel):
    name: Optional[str] = None
    email: Optional[str] = None


class WorkspaceQuota(AffineModel):
    name: Optional[str] = Field(None, description="Plan name")
    storage_quota: Optional[int] = None
    used_storage_quota: Optional[int] = None
    member_limit: Optional[int] = None
    member_count: Optional[int] = None


class Workspace(AffineModel):
    id: str
    name: Optional[str] = None
    public: bool = False
    created_at: Optional[str] = None
    owner: Optional[UserRef] = None
    member_count: Optional[int] = None
    quota: Optional[WorkspaceQuota] = None


class DocumentPermissions(BaseModel):
    read: bool = Field(False, alias="Doc_Read")
    update: bool = Field(False, alias="Doc_Update")
    delete: bool = Field(False, alias="Doc_Delete")

    model_config = ConfigDict(populate_by_name=True)


class Document(AffineModel):
    id: str
    title: Optional[str] = Field(None, description="Absent for untitled documents")
    mode: Optional[DocMode] = None
    public: bool = False
    created_by: Optional[UserRef] = None
    last_updated_by: Optional[UserRef] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    permissions: Optional[DocumentPermissions] = None
    summary: Optional[str] = None

    @field_validator("mode", mode="before")
    @classmethod
    def _lower_mode(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


class CommentReply(AffineModel):
    id: str
    content: Any = Field(None, description="Opaque structured comment body")
    user: Optional[UserRef] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Comment(CommentReply):
    resolved: bool = False
    replies: list[CommentReply] = Field(default_factory=list)


class HistoryEntry(AffineModel):
    id: str = Field(description="Version marker")
    timestamp: str
    editor: Optional[UserRef] = None
    workspace_id: Optional[str] = None


class Blob(AffineModel):
    key: str
    mime: Optional[str] = None
    size: int = 0
    created_at: Optional[str] = None


class SearchHit(AffineModel):
    doc_id: str
    title: Optional[str] = None
    highlight: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PageInfo(AffineModel):
    has_next_page: bool = False
    end_cursor: Optional[str] = Field(None, description="Opaque continuation token")


# Tool parameters


class SearchDocumentsParams(AffineModel):
    """Parameters for search_documents tool"""

    query: str = Field(description="Search query string; empty lists documents when a workspace is given")
    workspace_id: Optional[str] = Field(None, description="Optional: limit search to a specific workspace")
    limit: int = Field(DEFAULT_SEARCH_LIMIT, description="Maximum number of results to return", ge=1, le=100)


class GetDocumentParams(AffineModel):
    """Parameters for get_document tool"""

    doc_id: str = Field(description="Document ID to retrieve")
    workspace_id: str = Field(description="Workspace ID containing the document")


class ListWorkspacesParams(AffineModel):
    """list_workspaces takes no parameters"""


class WorkspaceParams(AffineModel):
    """Parameters for tools addressing a single workspace"""

    workspace_id: Optional[str] = Field(None, description="Workspace ID (defaults to the configured workspace)")


class ListDocumentsParams(WorkspaceParams):
    """Parameters for list_documents tool"""

    cursor: Optional[str] = Field(None, description="End cursor of the previous page")
    limit: int = Field(DEFAULT_DOCUMENT_LIMIT, description="Page size", ge=1, le=100)


class DocumentRefParams(AffineModel):
    doc_id: str = Field(description="Document ID")
    workspace_id: str = Field(description="Workspace ID containing the document")


class PublishDocumentParams(DocumentRefParams):
    """Parameters for publish_document tool"""

    mode: PublishMode = Field(PublishMode.PAGE, description="Public view mode")


class ListCommentsParams(DocumentRefParams):
    """Parameters for list_comments tool"""

    limit: int = Field(DEFAULT_COMMENT_LIMIT, description="Maximum number of comments to return", ge=1, le=100)


class CreateCommentParams(DocumentRefParams):
    """Parameters for create_comment tool"""

    content: Any = Field(description="Comment body, passed upstream as is")
    doc_title: str = Field("", description="Title of the commented document")
    doc_mode: DocMode = Field(DocMode.PAGE, description="Mode the document was viewed in")


class ResolveCommentParams(AffineModel):
    """Parameters for resolve_comment tool"""

    comment_id: str = Field(description="Comment ID")
    resolved: bool = Field(description="Target resolved state")


class DeleteCommentParams(AffineModel):
    """Parameters for delete_comment tool"""

    comment_id: str = Field(description="Comment ID")


class GetHistoryParams(DocumentRefParams):
    """Parameters for get_document_history tool"""

    limit: int = Field(DEFAULT_HISTORY_LIMIT, description="Maximum number of history entries", ge=1, le=100)
    before: Optional[str] = Field(None, description="Only return entries strictly older than this timestamp")


class DeleteBlobParams(WorkspaceParams):
    """Parameters for delete_blob tool"""

    key: str = Field(description="Blob key")
    permanently: bool = Field(False, description="Delete permanently instead of moving to trash")


# Results


class DocumentPage(AffineModel):
    workspace_id: str
    documents: list[Document]
    page_info: PageInfo = Field(default_factory=PageInfo)
    total_count: Optional[int] = None


class WorkspaceHits(AffineModel):
    workspace_id: str
    workspace_name: Optional[str] = None
    hits: list[SearchHit]


class SearchResult(AffineModel):
    """
    Outcome of search_documents. `scope` tells which path produced it:
    a scoped or fan-out search fills `groups`, an empty query with a
    workspace fills `documents`, an empty query without one fills `guidance`.
    """

    query: str
    scope: Literal["workspace", "all", "listing", "guidance"]
    groups: list[WorkspaceHits] = Field(default_factory=list)
    documents: list[Document] = Field(default_factory=list)
    guidance: Optional[str] = None

    @property
    def total(self) -> int:
        return sum(len(group.hits) for group in self.groups) if self.groups else len(self.documents)


class DocumentDetail(AffineModel):
    workspace_id: str
    document: Document
    snippet: Optional[str] = None
    content: str


class CommentPage(AffineModel):
    doc_id: str
    comments: list[Comment]
    total_count: Optional[int] = None
    has_next_page: bool = False


class HistoryPage(AffineModel):
    doc_id: str
    entries: list[HistoryEntry]
    next_before: Optional[str] = Field(None, description="Pass as `before` to fetch the next page")


class BlobList(AffineModel):
    workspace_id: str
    blobs: list[Blob]
    total_size: int


class BlobDeletion(AffineModel):
    workspace_id: str
    key: str
    permanently: bool
    deleted: bool


class OperationAck(AffineModel):
    """Result of mutations that only report success"""

    operation: str
    target_id: str
    success: bool
