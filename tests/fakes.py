"""Test doubles and payload builders for the AFFiNE GraphQL API"""

from typing import Any, Callable

from affine_mcp.errors import UpstreamError, UpstreamErrorKind
from affine_mcp.upstream.operations import Operation

Response = dict[str, Any] | Exception | Callable[[dict[str, Any]], Any]


class FakeAffineProxy:
    """
    Stands in for AffineProxy: records every call and answers from canned
    responses keyed by operation name. A response may be a payload, an
    exception to raise, or a callable receiving the variables.
    """

    def __init__(self, responses: dict[str, Response] | None = None) -> None:
        self.responses: dict[str, Response] = dict(responses or {})
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def on(self, operation: Operation, response: Response) -> "FakeAffineProxy":
        self.responses[operation.name] = response
        return self

    async def execute(self, operation: Operation, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        variables = dict(variables or {})
        self.calls.append((operation.name, variables))

        if operation.name not in self.responses:
            raise AssertionError(f"unexpected upstream call: {operation.name}")

        response: Any = self.responses[operation.name]
        if callable(response):
            response = response(variables)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def operation_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def calls_to(self, operation: Operation) -> list[dict[str, Any]]:
        return [variables for name, variables in self.calls if name == operation.name]


def upstream_error(operation: Operation, kind: UpstreamErrorKind = UpstreamErrorKind.HTTP_STATUS, message: str = "boom") -> UpstreamError:
    return UpstreamError(kind, f"{operation.name}: {message}", operation=operation.name)


def workspace(workspace_id: str, name: str | None = None, **extra: Any) -> dict[str, Any]:
    return {"id": workspace_id, "name": name, "public": False, "createdAt": "2024-01-01T00:00:00.000Z"} | extra


def workspaces_payload(*items: dict[str, Any]) -> dict[str, Any]:
    return {"workspaces": list(items)}


def doc(doc_id: str, title: str | None = None, **extra: Any) -> dict[str, Any]:
    return {
        "id": doc_id,
        "title": title,
        "mode": "page",
        "public": False,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-02T00:00:00.000Z",
    } | extra


def docs_payload(*docs: dict[str, Any], has_next_page: bool = False, end_cursor: str | None = None, total_count: int | None = None) -> dict[str, Any]:
    return {
        "workspace": {
            "docs": {
                "totalCount": len(docs) if total_count is None else total_count,
                "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
                "edges": [{"node": node} for node in docs],
            }
        }
    }


def hit(doc_id: str, title: str | None = None, highlight: str | None = None) -> dict[str, Any]:
    return {"docId": doc_id, "title": title, "highlight": highlight, "createdAt": None, "updatedAt": None}


def search_payload(*hits: dict[str, Any]) -> dict[str, Any]:
    return {"workspace": {"searchDocs": list(hits)}}
