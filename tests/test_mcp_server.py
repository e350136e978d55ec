"""Session lifecycle and request dispatch of the MCP server."""

import pytest

from indexer.sqlite_adapter import DocumentationStore
from server.mcp_server import MCPServer, SessionState
from server.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    MCP_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    NOT_INITIALIZED_MESSAGE,
    PARSE_ERROR,
    SERVER_NOT_INITIALIZED,
)
from server.tools import DocumentationTools

TOOL_NAMES = [
    "search_datatables",
    "get_function_details",
    "search_by_example",
    "search_by_topic",
    "get_related_items",
]


def request(method, request_id=1, params=None):
    message = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def notification(method, params=None):
    message = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        message["params"] = params
    return message


async def handshake(server):
    await server.handle_message(request("initialize", 0, {"clientInfo": {"name": "pytest"}}))
    await server.handle_message(notification("notifications/initialized"))


class TestLifecycle:
    """Handshake ordering and the AwaitingHandshake -> Ready transition."""

    def test_new_session_awaits_handshake(self, server):
        assert server.state is SessionState.AWAITING_HANDSHAKE

    @pytest.mark.asyncio
    async def test_initialize_result(self, server):
        response = await server.handle_message(
            request("initialize", 1, {"clientInfo": {"name": "test"}})
        )
        result = response["result"]
        assert response["id"] == 1
        assert result["protocolVersion"] == MCP_PROTOCOL_VERSION
        assert result["serverInfo"] == {"name": "datatables-mcp", "version": "1.0.0"}
        assert result["capabilities"] == {"tools": {}, "resources": {}, "prompts": {}}

    @pytest.mark.asyncio
    async def test_initialize_does_not_make_session_ready(self, server):
        await server.handle_message(request("initialize", 1, {"clientInfo": {"name": "test"}}))
        assert server.state is SessionState.AWAITING_HANDSHAKE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["tools/list", "tools/call", "resources/list", "prompts/list", "bogus"])
    async def test_requests_rejected_before_handshake(self, server, method):
        response = await server.handle_message(request(method, "abc"))
        assert response["id"] == "abc"
        assert response["error"]["code"] == SERVER_NOT_INITIALIZED
        assert response["error"]["message"] == NOT_INITIALIZED_MESSAGE

    @pytest.mark.asyncio
    async def test_rejected_after_initialize_without_notification(self, server):
        await server.handle_message(request("initialize", 1))
        response = await server.handle_message(request("tools/list", 2))
        assert response["error"]["code"] == SERVER_NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_initialized_notification_makes_session_ready(self, server):
        response = await server.handle_message(notification("notifications/initialized"))
        assert response is None
        assert server.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_initialized_notification_is_idempotent(self, server):
        await handshake(server)
        response = await server.handle_message(notification("notifications/initialized"))
        assert response is None
        assert server.state is SessionState.READY

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["initialized", "notifications/cancelled", "tools/list"])
    async def test_other_notifications_do_not_change_state(self, server, method):
        assert await server.handle_message(notification(method)) is None
        assert server.state is SessionState.AWAITING_HANDSHAKE

    @pytest.mark.asyncio
    async def test_initialize_can_be_repeated_when_ready(self, server):
        await handshake(server)
        response = await server.handle_message(request("initialize", 5))
        assert response["result"]["protocolVersion"] == MCP_PROTOCOL_VERSION
        assert server.state is SessionState.READY

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, tools):
        first, second = MCPServer(tools), MCPServer(tools)
        await handshake(first)
        assert first.state is SessionState.READY
        assert second.state is SessionState.AWAITING_HANDSHAKE


class TestDispatch:
    """Method table lookup and error envelopes once the session is ready."""

    @pytest.mark.asyncio
    async def test_tools_list(self, server):
        await handshake(server)
        response = await server.handle_message(request("tools/list", 2))
        tools = response["result"]["tools"]
        assert [tool["name"] for tool in tools] == TOOL_NAMES
        for tool in tools:
            assert tool["description"]
            assert tool["inputSchema"]["type"] == "object"
            assert tool["inputSchema"]["required"]

    @pytest.mark.asyncio
    async def test_resources_and_prompts_are_empty(self, server):
        await handshake(server)
        resources = await server.handle_message(request("resources/list", 3))
        prompts = await server.handle_message(request("prompts/list", 4))
        assert resources["result"] == {"resources": []}
        assert prompts["result"] == {"prompts": []}

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        await handshake(server)
        response = await server.handle_message(request("sampling/createMessage", 7))
        assert response["id"] == 7
        assert response["error"]["code"] == METHOD_NOT_FOUND
        assert "sampling/createMessage" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_tools_call_returns_text_content(self, server):
        await handshake(server)
        response = await server.handle_message(
            request("tools/call", 8, {"name": "search_datatables", "arguments": {"query": "reload"}})
        )
        content = response["result"]["content"]
        assert content[0]["type"] == "text"
        assert "ajax.reload()" in content[0]["text"]

    @pytest.mark.asyncio
    async def test_hyphenated_query_is_searchable(self, server):
        await handshake(server)
        response = await server.handle_message(
            request("tools/call", 9, {"name": "search_datatables", "arguments": {"query": "server-side"}})
        )
        assert "Server-side processing" in response["result"]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        await handshake(server)
        response = await server.handle_message(
            request("tools/call", 10, {"name": "delete_everything", "arguments": {}})
        )
        assert response["error"]["code"] == INTERNAL_ERROR
        assert "Unknown tool" in response["error"]["message"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tool,argument", [
        ("search_datatables", "query"),
        ("get_function_details", "name"),
        ("search_by_example", "query"),
        ("search_by_topic", "query"),
        ("get_related_items", "name"),
    ])
    @pytest.mark.parametrize("arguments", [{}, {"query": "", "name": ""}, {"query": "  ", "name": "  "}])
    async def test_required_argument(self, server, tool, argument, arguments):
        await handshake(server)
        response = await server.handle_message(
            request("tools/call", 11, {"name": tool, "arguments": arguments})
        )
        assert response["id"] == 11
        assert response["error"]["code"] == INTERNAL_ERROR
        assert response["error"]["message"] == f"{argument} parameter is required"

    @pytest.mark.asyncio
    async def test_tools_call_without_name_is_invalid_params(self, server):
        await handshake(server)
        response = await server.handle_message(request("tools/call", 12, {"arguments": {}}))
        assert response["error"]["code"] == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_store_failure_becomes_internal_error(self, tmp_path):
        server = MCPServer(DocumentationTools(DocumentationStore(tmp_path / "missing.db")))
        await handshake(server)
        response = await server.handle_message(
            request("tools/call", 13, {"name": "search_datatables", "arguments": {"query": "ajax"}})
        )
        assert response["error"]["code"] == INTERNAL_ERROR
        assert "Database not found" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_fts_syntax_error_becomes_internal_error(self, server):
        await handshake(server)
        response = await server.handle_message(
            request("tools/call", 14, {"name": "search_datatables", "arguments": {"query": "ajax AND"}})
        )
        assert response["error"]["code"] == INTERNAL_ERROR


class TestEnvelope:
    """Malformed envelopes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message", [[1, 2, 3], 5, "initialize", None])
    async def test_non_object_message_is_a_parse_error(self, server, message):
        response = await server.handle_message(message)
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR
        assert response["error"]["message"] == "Parse error: expected a JSON object"

    @pytest.mark.asyncio
    async def test_wrong_version_marker(self, server):
        response = await server.handle_message({"jsonrpc": "1.0", "id": 4, "method": "initialize"})
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    @pytest.mark.asyncio
    @pytest.mark.parametrize("params", [[1], "all", 3])
    async def test_non_object_params_are_a_parse_error(self, server, params):
        response = await server.handle_message(request("initialize", 5, params))
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_empty_params_list_means_no_params(self, server):
        await handshake(server)
        response = await server.handle_message(request("tools/list", 2, []))
        assert response["id"] == 2
        assert [tool["name"] for tool in response["result"]["tools"]] == TOOL_NAMES

    @pytest.mark.asyncio
    async def test_invalid_notification_gets_no_response(self, server):
        assert await server.handle_message({"jsonrpc": "2.0", "method": 42}) is None

    @pytest.mark.asyncio
    async def test_null_id_is_a_request(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": None, "method": "tools/list"})
        assert response["id"] is None
        assert response["error"]["code"] == SERVER_NOT_INITIALIZED

    @pytest.mark.asyncio
    async def test_parse_error(self, server):
        response = await server.handle_line("{not json")
        assert response["id"] is None
        assert response["error"]["code"] == -32700
