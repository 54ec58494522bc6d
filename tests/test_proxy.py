from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from affine_mcp.errors import ConfigurationError, UpstreamError, UpstreamErrorKind
from affine_mcp.upstream.operations import CREATE_COMMENT, DELETE_BLOB, GET_DOC, GET_WORKSPACE, LIST_WORKSPACES, RESOLVE_COMMENT, describe
from affine_mcp.upstream.proxy import AffineProxy

# pylint: disable=unused-argument, protected-access

ENDPOINT: str = "https://affine.test/graphql"


def make_response(status_code: int = 200, **kwargs: Any) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", ENDPOINT), **kwargs)


def entered_client(response: httpx.Response | None = None, side_effect: Exception | None = None) -> AsyncMock:
    client = AsyncMock()
    if side_effect is not None:
        client.post.side_effect = side_effect
    else:
        client.post.return_value = response
    return client


class TestAffineProxyInit:

    def test_init_defaults(self):
        proxy = AffineProxy(access_token="secret")

        assert proxy.base_url == "https://app.affine.pro"
        assert proxy.endpoint == "https://app.affine.pro/graphql"
        assert proxy.timeout == 30.0
        assert proxy._client is None

    def test_init_custom_values(self):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test/", timeout=5.0, user_agent="agent/1")

        assert proxy.endpoint == ENDPOINT
        assert proxy.timeout == 5.0
        assert proxy.headers == {
            "Content-Type": "application/json",
            "Authorization": "Bearer secret",
            "User-Agent": "agent/1",
        }

    @pytest.mark.parametrize("token", ["", "   "])
    def test_blank_token_is_rejected(self, token: str):
        with pytest.raises(ConfigurationError, match="access token is required"):
            AffineProxy(access_token=token)

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with AffineProxy(access_token="secret", base_url="https://affine.test") as proxy:
            assert isinstance(proxy._client, httpx.AsyncClient)
            assert proxy._client.headers["Authorization"] == "Bearer secret"

        assert proxy._client is None


class TestAffineProxyExecute:

    @pytest.mark.asyncio
    async def test_execute_returns_data(self):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(make_response(json={"data": {"workspaces": [{"id": "w1"}]}}))

        data: dict[str, Any] = await proxy.execute(GET_WORKSPACE, {"workspaceId": "w1"})

        assert data == {"workspaces": [{"id": "w1"}]}
        proxy._client.post.assert_called_once_with(
            ENDPOINT,
            json={"query": GET_WORKSPACE.document, "variables": {"workspaceId": "w1"}},
        )

    @pytest.mark.asyncio
    async def test_execute_without_variables_sends_empty_object(self):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(make_response(json={"data": {"workspaces": []}}))

        await proxy.execute(LIST_WORKSPACES)

        assert proxy._client.post.call_args.kwargs["json"]["variables"] == {}

    @pytest.mark.asyncio
    async def test_execute_uses_one_shot_client_when_not_entered(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = entered_client(make_response(json={"data": {"workspaces": []}}))
            mock_client_class.return_value.__aenter__.return_value = mock_client

            proxy = AffineProxy(access_token="secret", base_url="https://affine.test", timeout=7.0)
            data = await proxy.execute(LIST_WORKSPACES)

            assert data == {"workspaces": []}
            mock_client_class.assert_called_once_with(timeout=7.0, headers=proxy.headers)
            mock_client.post.assert_called_once()

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(make_response(500, text="Internal Server Error"))

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.execute(GET_WORKSPACE, {"workspaceId": "w1"})

        assert exc_info.value.kind == UpstreamErrorKind.HTTP_STATUS
        assert exc_info.value.operation == "getWorkspace"
        assert exc_info.value.message.startswith("getWorkspace(workspaceId=w1): HTTP 500")
        assert "Internal Server Error" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_graphql_errors_are_joined(self):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(
            make_response(json={"errors": [{"message": "first problem"}, {"message": "second problem"}], "data": {"workspaces": []}})
        )

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.execute(LIST_WORKSPACES)

        assert exc_info.value.kind == UpstreamErrorKind.APPLICATION_ERRORS
        assert "first problem, second problem" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            make_response(content=b"<html>not json</html>"),
            make_response(json=["not", "an", "object"]),
            make_response(json={"data": None}),
            make_response(json={}),
        ],
    )
    async def test_malformed_response(self, response: httpx.Response):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(response)

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.execute(LIST_WORKSPACES)

        assert exc_info.value.kind == UpstreamErrorKind.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("Connection refused"),
            httpx.ReadTimeout("Timed out"),
        ],
    )
    async def test_transport_failure_is_not_retried(self, error: Exception):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(side_effect=error)

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.execute(LIST_WORKSPACES)

        assert exc_info.value.kind == UpstreamErrorKind.TRANSPORT
        assert exc_info.value.__cause__ is error
        proxy._client.post.assert_called_once()

    @pytest.mark.asyncio
    async def test_one_shot_client_transport_failure(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = MagicMock()
            mock_client.post = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
            mock_client_class.return_value.__aenter__.return_value = mock_client

            proxy = AffineProxy(access_token="secret")

            with pytest.raises(UpstreamError) as exc_info:
                await proxy.execute(LIST_WORKSPACES)

            assert exc_info.value.kind == UpstreamErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_transport_failure_names_ids(self):
        proxy = AffineProxy(access_token="secret", base_url="https://affine.test")
        proxy._client = entered_client(side_effect=httpx.ConnectError("Connection refused"))

        with pytest.raises(UpstreamError) as exc_info:
            await proxy.execute(GET_DOC, {"workspaceId": "w1", "docId": "d1"})

        assert exc_info.value.message.startswith("getDoc(workspaceId=w1, docId=d1): request to")


class TestDescribe:

    def test_without_variables(self):
        assert describe(LIST_WORKSPACES) == "listWorkspaces"
        assert describe(LIST_WORKSPACES, {}) == "listWorkspaces"

    def test_top_level_ids(self):
        assert describe(DELETE_BLOB, {"workspaceId": "w1", "key": "k1", "permanently": True}) == "deleteBlob(workspaceId=w1, key=k1)"

    def test_ids_inside_input(self):
        assert describe(RESOLVE_COMMENT, {"input": {"id": "c1", "resolved": True}}) == "resolveComment(id=c1)"
        assert (
            describe(CREATE_COMMENT, {"input": {"workspaceId": "w1", "docId": "d1", "content": "hi"}})
            == "createComment(workspaceId=w1, docId=d1)"
        )

    def test_absent_ids_are_skipped(self):
        assert describe(GET_DOC, {"workspaceId": "w1", "docId": None}) == "getDoc(workspaceId=w1)"
