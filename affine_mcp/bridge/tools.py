"""
MCP Tools - Operation handlers over the AFFiNE API

Each handler composes one or more AffineProxy calls and shapes the upstream
payload into result models. Upstream errors propagate unchanged, except for
the per-workspace skip in fan-out search.
"""

import asyncio
import math
from typing import Any, Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel, ValidationError

from affine_mcp.errors import InvalidArgumentError, UpstreamError, UpstreamErrorKind
from affine_mcp.upstream import operations as ops
from affine_mcp.upstream.operations import Operation

from .config import AffineSettings
from .models import (
    Blob,
    BlobDeletion,
    BlobList,
    Comment,
    CommentPage,
    CreateCommentParams,
    DeleteBlobParams,
    DeleteCommentParams,
    Document,
    DocumentDetail,
    DocumentPage,
    DocumentRefParams,
    GetDocumentParams,
    GetHistoryParams,
    HistoryEntry,
    HistoryPage,
    ListCommentsParams,
    ListDocumentsParams,
    ListWorkspacesParams,
    OperationAck,
    PageInfo,
    PublishDocumentParams,
    ResolveCommentParams,
    SearchDocumentsParams,
    SearchHit,
    SearchResult,
    Workspace,
    WorkspaceHits,
    WorkspaceParams,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

CONTENT_UNAVAILABLE: str = (
    "Document content is not available through the AFFiNE GraphQL API; only metadata and search highlights can be retrieved."
)

SEARCH_GUIDANCE: str = (
    "Provide a non-empty query to search documents across all accessible workspaces, "
    "or pass a workspaceId with an empty query to list the documents of that workspace."
)


class GraphQLExecutor(Protocol):
    async def execute(self, operation: Operation, variables: dict[str, Any] | None = None) -> dict[str, Any]: ...


def parse(model: type[ModelT], payload: Any, operation: Operation) -> ModelT:
    """Validate an upstream payload, reporting shape mismatches as malformed responses"""
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise UpstreamError(
            UpstreamErrorKind.MALFORMED_RESPONSE,
            f"{operation.name}: unexpected payload shape: {e.error_count()} validation error(s)",
            operation=operation.name,
        ) from e


def parse_list(model: type[ModelT], payload: Any, operation: Operation) -> list[ModelT]:
    if not isinstance(payload, list):
        raise UpstreamError(
            UpstreamErrorKind.MALFORMED_RESPONSE,
            f"{operation.name}: expected a list, found {type(payload).__name__}",
            operation=operation.name,
        )
    return [parse(model, item, operation) for item in payload]


def workspace_node(data: dict[str, Any], operation: Operation, workspace_id: str) -> dict[str, Any]:
    node: Any = data.get("workspace")
    if not isinstance(node, dict):
        raise UpstreamError(
            UpstreamErrorKind.MALFORMED_RESPONSE,
            f"{operation.name}: workspace '{workspace_id}' missing from response",
            operation=operation.name,
        )
    return node


def connection(node: dict[str, Any], key: str, operation: Operation, workspace_id: str) -> dict[str, Any]:
    """The paginated `key` connection of a workspace node; an absent one is a malformed response"""
    page: Any = node.get(key)
    if not isinstance(page, dict):
        raise UpstreamError(
            UpstreamErrorKind.MALFORMED_RESPONSE,
            f"{operation.name}: workspace '{workspace_id}' response has no '{key}' connection",
            operation=operation.name,
        )
    return page


class AffineTools:
    """Implements MCP tool operations over the AFFiNE GraphQL API"""

    def __init__(self, proxy: GraphQLExecutor, settings: AffineSettings):
        self.proxy: GraphQLExecutor = proxy
        self.settings: AffineSettings = settings

    def _workspace_id(self, params: WorkspaceParams, tool: str) -> str:
        workspace_id: str | None = params.workspace_id or self.settings.workspace_id
        if not workspace_id:
            raise InvalidArgumentError(f"{tool}: workspaceId is required (no default workspace configured)")
        return workspace_id

    # Workspaces

    async def list_workspaces(self, params: ListWorkspacesParams | None = None) -> list[Workspace]:  # pylint: disable=unused-argument
        data: dict[str, Any] = await self.proxy.execute(ops.LIST_WORKSPACES)
        return parse_list(Workspace, data.get("workspaces"), ops.LIST_WORKSPACES)

    async def get_workspace_info(self, params: WorkspaceParams) -> Workspace:
        workspace_id: str = self._workspace_id(params, "get_workspace_info")
        data: dict[str, Any] = await self.proxy.execute(ops.GET_WORKSPACE, {"workspaceId": workspace_id})
        return parse(Workspace, workspace_node(data, ops.GET_WORKSPACE, workspace_id), ops.GET_WORKSPACE)

    # Documents

    async def list_documents(self, params: ListDocumentsParams) -> DocumentPage:
        workspace_id: str = self._workspace_id(params, "list_documents")
        data: dict[str, Any] = await self.proxy.execute(
            ops.LIST_DOCS,
            {"workspaceId": workspace_id, "first": params.limit, "after": params.cursor},
        )
        docs: dict[str, Any] = connection(workspace_node(data, ops.LIST_DOCS, workspace_id), "docs", ops.LIST_DOCS, workspace_id)
        edges: list[Any] = docs.get("edges") or []

        return DocumentPage(
            workspace_id=workspace_id,
            documents=[parse(Document, (edge or {}).get("node"), ops.LIST_DOCS) for edge in edges],
            page_info=parse(PageInfo, docs.get("pageInfo") or {}, ops.LIST_DOCS),
            total_count=docs.get("totalCount"),
        )

    async def get_document(self, params: GetDocumentParams) -> DocumentDetail:
        """
        Fetch document metadata, then probe the search index for a highlight.

        The API offers no way to read a document body, so the result always
        carries the fixed CONTENT_UNAVAILABLE text in place of content.
        """
        variables: dict[str, str] = {"workspaceId": params.workspace_id, "docId": params.doc_id}
        data: dict[str, Any] = await self.proxy.execute(ops.GET_DOC, variables)
        node: Any = workspace_node(data, ops.GET_DOC, params.workspace_id).get("doc")
        if node is None:
            raise UpstreamError(
                UpstreamErrorKind.MALFORMED_RESPONSE,
                f"{ops.GET_DOC.name}: document '{params.doc_id}' not found in workspace '{params.workspace_id}'",
                operation=ops.GET_DOC.name,
            )
        document: Document = parse(Document, node, ops.GET_DOC)

        snippet: str | None = None
        if document.title:
            hits: list[SearchHit] = await self._search_workspace(params.workspace_id, document.title, 5)
            snippet = next((hit.highlight for hit in hits if hit.doc_id == document.id), None)

        return DocumentDetail(workspace_id=params.workspace_id, document=document, snippet=snippet, content=CONTENT_UNAVAILABLE)

    # Search

    async def search_documents(self, params: SearchDocumentsParams) -> SearchResult:
        query: str = params.query.strip()

        if not query:
            if params.workspace_id:
                page: DocumentPage = await self.list_documents(ListDocumentsParams(workspace_id=params.workspace_id))
                return SearchResult(query=params.query, scope="listing", documents=page.documents)
            return SearchResult(query=params.query, scope="guidance", guidance=SEARCH_GUIDANCE)

        if params.workspace_id:
            hits: list[SearchHit] = await self._search_workspace(params.workspace_id, query, params.limit)
            return SearchResult(
                query=query,
                scope="workspace",
                groups=[WorkspaceHits(workspace_id=params.workspace_id, hits=hits)],
            )

        return SearchResult(query=query, scope="all", groups=await self._fan_out_search(query, params.limit))

    async def _search_workspace(self, workspace_id: str, keyword: str, limit: int) -> list[SearchHit]:
        data: dict[str, Any] = await self.proxy.execute(
            ops.SEARCH_DOCS,
            {"workspaceId": workspace_id, "keyword": keyword, "limit": limit},
        )
        return parse_list(SearchHit, workspace_node(data, ops.SEARCH_DOCS, workspace_id).get("searchDocs") or [], ops.SEARCH_DOCS)

    async def _fan_out_search(self, query: str, limit: int) -> list[WorkspaceHits]:
        workspaces: list[Workspace] = await self.list_workspaces()
        if not workspaces:
            return []

        # NOTE: ceil(limit / n) may return fewer than `limit` hits when some workspaces have few matches
        per_workspace: int = math.ceil(limit / len(workspaces))

        async def search_one(workspace: Workspace) -> WorkspaceHits | None:
            try:
                hits: list[SearchHit] = await self._search_workspace(workspace.id, query, per_workspace)
            except UpstreamError as e:
                logger.warning(f"search_documents: skipping workspace {workspace.id}: {e.message}")
                return None
            return WorkspaceHits(workspace_id=workspace.id, workspace_name=workspace.name, hits=hits) if hits else None

        results: list[WorkspaceHits | None] = await asyncio.gather(*(search_one(workspace) for workspace in workspaces))
        return [result for result in results if result is not None]

    # Publication

    async def publish_document(self, params: PublishDocumentParams) -> Document:
        data: dict[str, Any] = await self.proxy.execute(
            ops.PUBLISH_DOC,
            {"workspaceId": params.workspace_id, "docId": params.doc_id, "mode": params.mode.value},
        )
        return parse(Document, data.get("publishDoc"), ops.PUBLISH_DOC)

    async def unpublish_document(self, params: DocumentRefParams) -> Document:
        data: dict[str, Any] = await self.proxy.execute(
            ops.REVOKE_PUBLIC_DOC,
            {"workspaceId": params.workspace_id, "docId": params.doc_id},
        )
        return parse(Document, data.get("revokePublicDoc"), ops.REVOKE_PUBLIC_DOC)

    # Comments

    async def list_comments(self, params: ListCommentsParams) -> CommentPage:
        data: dict[str, Any] = await self.proxy.execute(
            ops.LIST_COMMENTS,
            {"workspaceId": params.workspace_id, "docId": params.doc_id, "first": params.limit},
        )
        node: dict[str, Any] = workspace_node(data, ops.LIST_COMMENTS, params.workspace_id)
        comments: dict[str, Any] = connection(node, "comments", ops.LIST_COMMENTS, params.workspace_id)
        return CommentPage(
            doc_id=params.doc_id,
            comments=[parse(Comment, (edge or {}).get("node"), ops.LIST_COMMENTS) for edge in comments.get("edges") or []],
            total_count=comments.get("totalCount"),
            has_next_page=bool((comments.get("pageInfo") or {}).get("hasNextPage")),
        )

    async def create_comment(self, params: CreateCommentParams) -> Comment:
        data: dict[str, Any] = await self.proxy.execute(
            ops.CREATE_COMMENT,
            {
                "input": {
                    "workspaceId": params.workspace_id,
                    "docId": params.doc_id,
                    "docTitle": params.doc_title,
                    "docMode": params.doc_mode.value,
                    "content": params.content,
                }
            },
        )
        return parse(Comment, data.get("createComment"), ops.CREATE_COMMENT)

    async def resolve_comment(self, params: ResolveCommentParams) -> OperationAck:
        data: dict[str, Any] = await self.proxy.execute(
            ops.RESOLVE_COMMENT,
            {"input": {"id": params.comment_id, "resolved": params.resolved}},
        )
        return OperationAck(operation="resolve_comment", target_id=params.comment_id, success=bool(data.get("resolveComment")))

    async def delete_comment(self, params: DeleteCommentParams) -> OperationAck:
        data: dict[str, Any] = await self.proxy.execute(ops.DELETE_COMMENT, {"id": params.comment_id})
        return OperationAck(operation="delete_comment", target_id=params.comment_id, success=bool(data.get("deleteComment")))

    # History

    async def get_document_history(self, params: GetHistoryParams) -> HistoryPage:
        data: dict[str, Any] = await self.proxy.execute(
            ops.LIST_HISTORIES,
            {"workspaceId": params.workspace_id, "docId": params.doc_id, "take": params.limit, "before": params.before},
        )
        entries: list[HistoryEntry] = parse_list(
            HistoryEntry,
            workspace_node(data, ops.LIST_HISTORIES, params.workspace_id).get("histories") or [],
            ops.LIST_HISTORIES,
        )
        return HistoryPage(
            doc_id=params.doc_id,
            entries=entries,
            next_before=entries[-1].timestamp if len(entries) >= params.limit else None,
        )

    # Blobs

    async def list_blobs(self, params: WorkspaceParams) -> BlobList:
        workspace_id: str = self._workspace_id(params, "list_blobs")
        data: dict[str, Any] = await self.proxy.execute(ops.LIST_BLOBS, {"workspaceId": workspace_id})
        node: dict[str, Any] = workspace_node(data, ops.LIST_BLOBS, workspace_id)
        blobs: list[Blob] = parse_list(Blob, node.get("blobs") or [], ops.LIST_BLOBS)
        total_size: Any = node.get("blobsSize")
        return BlobList(
            workspace_id=workspace_id,
            blobs=blobs,
            total_size=total_size if isinstance(total_size, int) else sum(blob.size for blob in blobs),
        )

    async def delete_blob(self, params: DeleteBlobParams) -> BlobDeletion:
        workspace_id: str = self._workspace_id(params, "delete_blob")
        data: dict[str, Any] = await self.proxy.execute(
            ops.DELETE_BLOB,
            {"workspaceId": workspace_id, "key": params.key, "permanently": params.permanently},
        )
        return BlobDeletion(
            workspace_id=workspace_id,
            key=params.key,
            permanently=params.permanently,
            deleted=bool(data.get("deleteBlob")),
        )
