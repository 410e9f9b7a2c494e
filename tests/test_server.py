"""
Tests for the MCP protocol layer.
"""

import asyncio
import json

import pytest

from mcp_repl.server import McpReplServer, create_server
from mcp_repl.server.router import RequestRouter, ToolResponse
from mcp_repl.server.server import INTERNAL_ERROR, METHOD_NOT_FOUND, PROTOCOL_VERSION


class SlowRouter:
    """Router double whose calls finish in reverse order of arrival."""

    def __init__(self):
        self.finished = []
        self.search_index = None

    async def dispatch(self, name, arguments):
        await asyncio.sleep(arguments["delay"])
        self.finished.append(arguments["tag"])
        return ToolResponse(segments=[arguments["tag"]])


@pytest.fixture
def server(gateway_config):
    return create_server(gateway_config)


class TestMcpReplServer:
    """Tests for McpReplServer message handling."""

    @pytest.mark.asyncio
    async def test_initialize(self, server):
        response = await server.handle_message(
            {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}}
        )

        assert response["id"] == 1
        result = response["result"]
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert result["serverInfo"]["name"] == "direct-node-executor"
        assert "tools" in result["capabilities"]

    @pytest.mark.asyncio
    async def test_initialize_echoes_client_protocol(self, server):
        response = await server.handle_message(
            {"jsonrpc": "2.0", "id": 2, "method": "initialize", "params": {"protocolVersion": "2025-03-26"}}
        )
        assert response["result"]["protocolVersion"] == "2025-03-26"

    @pytest.mark.asyncio
    async def test_tools_list(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 3, "method": "tools/list"})

        tools = {tool["name"]: tool for tool in response["result"]["tools"]}
        assert set(tools) == {"executenodejs", "executedeno", "searchcode"}
        assert tools["executenodejs"]["inputSchema"]["required"] == ["code"]
        assert tools["searchcode"]["inputSchema"]["required"] == ["query"]
        assert "20000" in tools["executedeno"]["inputSchema"]["properties"]["timeout"]["description"]

    @pytest.mark.asyncio
    async def test_tools_call(self, server):
        response = await server.handle_message(
            {
                "jsonrpc": "2.0",
                "id": 4,
                "method": "tools/call",
                "params": {"name": "executenodejs", "arguments": {"code": "print('hi')"}},
            }
        )

        content = response["result"]["content"]
        assert content[0] == {"type": "text", "text": "hi"}
        assert content[-1]["text"].endswith("with exit code 0")

    @pytest.mark.asyncio
    async def test_tools_call_error_is_a_result(self, server):
        response = await server.handle_message(
            {"jsonrpc": "2.0", "id": 5, "method": "tools/call", "params": {"name": "nope"}}
        )
        assert "error" not in response
        assert response["result"]["content"] == [{"type": "text", "text": "ERROR: Unknown tool: nope"}]

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 6, "method": "resources/list"})
        assert response["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_notifications_get_no_response(self, server):
        assert await server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
        assert await server.handle_message({"jsonrpc": "2.0", "method": "ping"}) is None

    @pytest.mark.asyncio
    async def test_ping(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "id": 7, "method": "ping"})
        assert response["result"] == {}

    @pytest.mark.asyncio
    async def test_handler_crash_is_internal_error(self, server, monkeypatch):
        async def crash(params):
            raise RuntimeError("broken")

        monkeypatch.setattr(server, "handle_tools_list", crash)
        response = await server.handle_message({"jsonrpc": "2.0", "id": 8, "method": "tools/list"})

        assert response["error"] == {"code": INTERNAL_ERROR, "message": "broken"}

    @pytest.mark.asyncio
    async def test_concurrent_tool_calls_overlap(self, gateway_config):
        router = SlowRouter()
        server = McpReplServer(gateway_config, router=router)

        def call(msg_id, tag, delay):
            return server.handle_message(
                {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "method": "tools/call",
                    "params": {"name": "executenodejs", "arguments": {"tag": tag, "delay": delay}},
                }
            )

        responses = await asyncio.gather(call(1, "slow", 0.3), call(2, "fast", 0.0))

        assert router.finished == ["fast", "slow"]
        assert [r["id"] for r in responses] == [1, 2]
        assert responses[0]["result"]["content"][0]["text"] == "slow"


class RecordingWriter:
    """Stream writer double that keeps every written line."""

    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data.extend(data)

    async def drain(self):
        pass

    def messages(self):
        return [json.loads(line) for line in self.data.decode("utf-8").splitlines()]


def _frame(message):
    return (json.dumps(message) + "\n").encode("utf-8")


class TestServe:
    """Tests for the newline-delimited message loop."""

    @pytest.mark.asyncio
    async def test_answers_each_frame(self, server):
        reader = asyncio.StreamReader()
        reader.feed_data(_frame({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        reader.feed_data(b"\n")
        reader.feed_data(_frame({"jsonrpc": "2.0", "method": "notifications/initialized"}))
        reader.feed_data(_frame({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}))
        reader.feed_eof()
        writer = RecordingWriter()

        await server.serve(reader, writer)

        assert sorted(m["id"] for m in writer.messages()) == [1, 2]

    @pytest.mark.asyncio
    async def test_oversized_frame_is_skipped(self, server):
        reader = asyncio.StreamReader(limit=1024)
        huge = {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"code": "x" * 10_000}}
        reader.feed_data(_frame(huge))
        reader.feed_data(_frame({"jsonrpc": "2.0", "id": 2, "method": "tools/list"}))
        reader.feed_eof()
        writer = RecordingWriter()

        await server.serve(reader, writer)

        (response,) = writer.messages()
        assert response["id"] == 2
        assert "tools" in response["result"]

    @pytest.mark.asyncio
    async def test_oversized_frame_arriving_in_pieces_is_skipped(self, server):
        reader = asyncio.StreamReader(limit=1024)
        writer = RecordingWriter()

        async def client():
            for _ in range(5):
                reader.feed_data(b"y" * 4096)
                await asyncio.sleep(0)
            reader.feed_data(b"}\n")
            reader.feed_data(_frame({"jsonrpc": "2.0", "id": 7, "method": "ping"}))
            reader.feed_eof()

        await asyncio.gather(server.serve(reader, writer), client())

        assert writer.messages() == [{"jsonrpc": "2.0", "id": 7, "result": {}}]

    @pytest.mark.asyncio
    async def test_undecodable_and_non_object_frames_are_skipped(self, server):
        reader = asyncio.StreamReader()
        reader.feed_data(b"\xff\xfe\n")
        reader.feed_data(b"{not json\n")
        reader.feed_data(b"[1, 2]\n")
        reader.feed_data(_frame({"jsonrpc": "2.0", "id": 3, "method": "ping"}))
        reader.feed_eof()
        writer = RecordingWriter()

        await server.serve(reader, writer)

        assert writer.messages() == [{"jsonrpc": "2.0", "id": 3, "result": {}}]

    @pytest.mark.asyncio
    async def test_unterminated_last_frame_is_answered(self, server):
        reader = asyncio.StreamReader()
        reader.feed_data(json.dumps({"jsonrpc": "2.0", "id": 4, "method": "ping"}).encode())
        reader.feed_eof()
        writer = RecordingWriter()

        await server.serve(reader, writer)

        assert writer.messages()[0]["id"] == 4


@pytest.mark.asyncio
async def test_start_skips_indexing_when_disabled(gateway_config):
    server = McpReplServer(gateway_config)
    await server.start()
    assert server._index_task is None


@pytest.mark.asyncio
async def test_start_indexes_working_directory(gateway_config, sample_js_project):
    gateway_config.search.index_on_startup = True
    server = McpReplServer(gateway_config, router=RequestRouter.from_config(gateway_config))

    await server.start()
    await server._index_task

    assert server.router.search_index.file_count == 2
