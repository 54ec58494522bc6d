"""Markdown rendering of handler results for MCP text content."""

import json
from typing import Any

from pydantic import BaseModel

from .models import (
    BlobDeletion,
    BlobList,
    Comment,
    CommentPage,
    Document,
    DocumentDetail,
    DocumentPage,
    HistoryPage,
    OperationAck,
    SearchHit,
    SearchResult,
    UserRef,
    Workspace,
)

UNTITLED: str = "Untitled"


def _yes_no(value: bool) -> str:
    return "Yes" if value else "No"


def _user(user: UserRef | None) -> str:
    if user is None or not user.name:
        return "Unknown"
    return f"{user.name} ({user.email})" if user.email else user.name


def _hit(hit: SearchHit) -> str:
    text = f"• **{hit.title or UNTITLED}**\n"
    if hit.highlight:
        text += f"  {hit.highlight}\n"
    text += f"  Document ID: {hit.doc_id}"
    return text


def render_document(doc: Document) -> str:
    lines: list[str] = [
        f"**Document: {doc.title or UNTITLED}**",
        "",
        f"**ID:** {doc.id}",
        f"**Created:** {doc.created_at or 'Unknown'}",
        f"**Updated:** {doc.updated_at or 'Unknown'}",
        f"**Created by:** {_user(doc.created_by)}",
        f"**Last updated by:** {_user(doc.last_updated_by)}",
        f"**Mode:** {doc.mode.value if doc.mode else 'Unknown'}",
        f"**Public:** {_yes_no(doc.public)}",
    ]
    if doc.permissions:
        granted = [name for name, allowed in doc.permissions.model_dump().items() if allowed]
        lines.append(f"**Permissions:** {', '.join(granted) or 'none'}")
    if doc.summary:
        lines.append(f"**Summary:** {doc.summary}")
    return "\n".join(lines)


def render_document_detail(detail: DocumentDetail) -> str:
    text = render_document(detail.document)
    if detail.snippet:
        text += f"\n\n**Highlight:** {detail.snippet}"
    return text + f"\n\n*Note: {detail.content}*"


def render_document_page(page: DocumentPage) -> str:
    if not page.documents:
        return f"No documents found in workspace {page.workspace_id}."
    text = f"**Documents in workspace {page.workspace_id}**"
    if page.total_count is not None:
        text += f" ({len(page.documents)} of {page.total_count})"
    text += "\n\n" + "\n".join(f"• **{doc.title or UNTITLED}** (ID: {doc.id}, updated {doc.updated_at or 'unknown'})" for doc in page.documents)
    if page.page_info.has_next_page:
        text += f"\n\nMore documents available; continue with cursor: {page.page_info.end_cursor}"
    return text


def render_search_result(result: SearchResult) -> str:
    if result.scope == "guidance":
        return result.guidance or ""
    if result.scope == "listing":
        docs = "\n".join(f"• **{doc.title or UNTITLED}**\n  Document ID: {doc.id}" for doc in result.documents)
        return f"No query given; listing {len(result.documents)} documents:\n\n{docs}"
    if result.total == 0:
        return f'No documents found matching "{result.query}".'
    if result.scope == "workspace":
        hits = result.groups[0].hits
        return f'Found {len(hits)} documents matching "{result.query}" in workspace:\n\n' + "\n\n".join(_hit(hit) for hit in hits)
    return f'Search results for "{result.query}":\n\n' + "\n\n".join(
        f"**{group.workspace_name or group.workspace_id}:**\n" + "\n".join(_hit(hit) for hit in group.hits) for group in result.groups
    )


def render_workspace(workspace: Workspace) -> str:
    lines: list[str] = [
        f"**Workspace: {workspace.name or workspace.id}**",
        "",
        f"**ID:** {workspace.id}",
        f"**Public:** {_yes_no(workspace.public)}",
        f"**Created:** {workspace.created_at or 'Unknown'}",
    ]
    if workspace.owner:
        lines.append(f"**Owner:** {_user(workspace.owner)}")
    if workspace.member_count is not None:
        lines.append(f"**Members:** {workspace.member_count}")
    if workspace.quota:
        quota = workspace.quota
        lines += [
            "",
            "**Quota Information:**",
            f"• Plan: {quota.name or 'Unknown'}",
            f"• Storage: {quota.used_storage_quota} / {quota.storage_quota}",
            f"• Members: {quota.member_count} / {quota.member_limit}",
        ]
    return "\n".join(lines)


def render_workspaces(workspaces: list[Workspace]) -> str:
    if not workspaces:
        return "No accessible workspaces."
    return "**Available Workspaces:**\n\n" + "\n\n".join(
        f"• **{ws.name or ws.id}**\n  ID: {ws.id}\n  Public: {_yes_no(ws.public)}\n  Created: {ws.created_at or 'Unknown'}" for ws in workspaces
    )


def render_comment(comment: Comment) -> str:
    status = "resolved" if comment.resolved else "open"
    text = f"• [{status}] {_user(comment.user)} at {comment.created_at or 'unknown'} (ID: {comment.id})\n  {_content(comment.content)}"
    for reply in comment.replies:
        text += f"\n    ↳ {_user(reply.user)}: {_content(reply.content)} (ID: {reply.id})"
    return text


def _content(content: Any) -> str:
    return content if isinstance(content, str) else json.dumps(content, ensure_ascii=False)


def render_comment_page(page: CommentPage) -> str:
    if not page.comments:
        return f"No comments on document {page.doc_id}."
    header = f"**Comments on document {page.doc_id}**"
    if page.total_count is not None:
        header += f" ({len(page.comments)} of {page.total_count})"
    return header + "\n\n" + "\n\n".join(render_comment(comment) for comment in page.comments)


def render_history_page(page: HistoryPage) -> str:
    if not page.entries:
        return f"No history entries for document {page.doc_id}."
    text = f"**History of document {page.doc_id}**\n\n" + "\n".join(
        f"• {entry.timestamp} by {_user(entry.editor)} (version {entry.id})" for entry in page.entries
    )
    if page.next_before:
        text += f"\n\nOlder entries may exist; continue with before: {page.next_before}"
    return text


def render_blob_list(blobs: BlobList) -> str:
    if not blobs.blobs:
        return f"No blobs in workspace {blobs.workspace_id}."
    return f"**Blobs in workspace {blobs.workspace_id}** (total {blobs.total_size} bytes)\n\n" + "\n".join(
        f"• {blob.key} ({blob.mime or 'unknown type'}, {blob.size} bytes, created {blob.created_at or 'unknown'})" for blob in blobs.blobs
    )


def render_blob_deletion(deletion: BlobDeletion) -> str:
    how = "permanently deleted" if deletion.permanently else "moved to trash"
    if deletion.deleted:
        return f"Blob {deletion.key} {how} in workspace {deletion.workspace_id}."
    return f"Blob {deletion.key} was not deleted from workspace {deletion.workspace_id}."


def render_ack(ack: OperationAck) -> str:
    return f"{ack.operation} {'succeeded' if ack.success else 'failed'} for {ack.target_id}."


RENDERERS: dict[type, Any] = {
    DocumentDetail: render_document_detail,
    Document: render_document,
    DocumentPage: render_document_page,
    SearchResult: render_search_result,
    Workspace: render_workspace,
    Comment: render_comment,
    CommentPage: render_comment_page,
    HistoryPage: render_history_page,
    BlobList: render_blob_list,
    BlobDeletion: render_blob_deletion,
    OperationAck: render_ack,
}


def render_result(result: Any) -> str:
    """Render any handler result; unknown shapes fall back to JSON"""
    if isinstance(result, list) and all(isinstance(item, Workspace) for item in result):
        return render_workspaces(result)
    renderer = RENDERERS.get(type(result))
    if renderer:
        return renderer(result)
    if isinstance(result, BaseModel):
        return result.model_dump_json(indent=2)
    return json.dumps(result, indent=2, default=str)
