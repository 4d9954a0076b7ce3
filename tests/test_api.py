"""
Tests for the HTTP API layer.
"""

import asyncio
import json
from urllib.parse import urlencode

import pytest

from conftest import break_file, read_file, write_file
from http_server.request import Request
from http_server.server import HTTPServer
from linekv.engine import Engine
from serve import register_routes


class HTTPClient:
    """Simple HTTP client for testing."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = port

    async def request(
        self,
        method: str,
        path: str = "/",
        form: dict | list | None = None,
        body: dict | None = None,
        query_params: dict | list | None = None,
    ) -> tuple[int, str]:
        """Make an HTTP request and return status code and response text."""
        reader, writer = await asyncio.open_connection(self.host, self.port)

        try:
            query_string = ""
            if query_params:
                query_string = "?" + urlencode(query_params, doseq=True)

            headers = f"Host: {self.host}\r\n"
            body_bytes = b""
            if form is not None:
                body_bytes = urlencode(form, doseq=True).encode()
                headers += "Content-Type: application/x-www-form-urlencoded\r\n"
            elif body is not None:
                body_bytes = json.dumps(body).encode()
                headers += "Content-Type: application/json\r\n"

            headers += f"Content-Length: {len(body_bytes)}\r\n"
            headers += "Connection: close\r\n"
            headers += "\r\n"

            request_line = f"{method} {path}{query_string} HTTP/1.1\r\n"
            writer.write(request_line.encode() + headers.encode() + body_bytes)
            await writer.drain()

            response = await reader.read()

            head, _, body_raw = response.partition(b"\r\n\r\n")
            status_code = int(head.split(b"\r\n")[0].split(b" ")[1])
            return status_code, body_raw.decode("utf-8")

        finally:
            writer.close()
            await writer.wait_closed()


@pytest.fixture
async def api_server(data_path):
    """Start HTTP server with routes for testing."""
    server = HTTPServer(host="127.0.0.1", port=0)  # Use port 0 for random free port
    engine = await Engine.create(data_path, sync_writes=False)

    await register_routes(server, engine)

    test_server = await asyncio.start_server(
        server.handle_client, server.host, server.port
    )
    actual_port = test_server.sockets[0].getsockname()[1]

    client = HTTPClient(server.host, actual_port)

    try:
        yield client, engine
    finally:
        test_server.close()
        await test_server.wait_closed()
        await engine.close()


class TestPutEndpoint:
    """Tests for PUT /."""

    async def test_put_form(self, api_server, data_path):
        client, engine = api_server

        status, text = await client.request("PUT", form={"key": "alice", "value": "30"})

        assert status == 200
        assert text == "OK"
        assert read_file(data_path) == b"5 alice30"

    async def test_put_query_params(self, api_server):
        client, engine = api_server

        status, text = await client.request("PUT", query_params={"key": "k", "value": "v"})

        assert status == 200
        assert await engine.get("k") == ("v", True)

    async def test_put_json(self, api_server):
        client, engine = api_server

        status, _ = await client.request("PUT", body={"key": "k", "value": "a b"})

        assert status == 200
        assert await engine.get("k") == ("a b", True)

    async def test_put_update_existing(self, api_server):
        client, engine = api_server

        await client.request("PUT", form={"key": "k", "value": "v1"})
        status, text = await client.request("PUT", form={"key": "k", "value": "v2"})

        assert status == 200
        assert text == "OK"
        assert await engine.get("k") == ("v2", True)

    async def test_put_empty_value(self, api_server):
        client, engine = api_server

        status, _ = await client.request("PUT", form={"key": "k", "value": ""})

        assert status == 200
        assert await engine.get("k") == ("", True)

    async def test_put_missing_key(self, api_server):
        client, _ = api_server

        status, text = await client.request("PUT", form={"value": "v"})

        assert status == 400
        assert text == "error: No key provided"

    async def test_put_missing_value(self, api_server):
        client, _ = api_server

        status, text = await client.request("PUT", form={"key": "k"})

        assert status == 400
        assert text == "error: No value provided"

    async def test_put_multiple_keys(self, api_server):
        client, _ = api_server

        status, text = await client.request(
            "PUT", form=[("key", "a"), ("key", "b"), ("value", "v")]
        )

        assert status == 400
        assert text == "error: Multiple keys provided"

    async def test_put_multiple_values(self, api_server):
        client, _ = api_server

        status, text = await client.request(
            "PUT", form=[("key", "k"), ("value", "1"), ("value", "2")]
        )

        assert status == 400
        assert text == "error: Multiple values provided"

    async def test_put_key_in_body_and_query(self, api_server):
        """Test that body and query values count together."""
        client, _ = api_server

        status, text = await client.request(
            "PUT", form={"key": "a", "value": "v"}, query_params={"key": "b"}
        )

        assert status == 400
        assert text == "error: Multiple keys provided"

    async def test_put_line_break(self, api_server, data_path):
        client, _ = api_server

        status, text = await client.request("PUT", form={"key": "k", "value": "a\nb"})

        assert status == 400
        assert "line break" in text
        assert read_file(data_path) == b""


class TestGetEndpoint:
    """Tests for GET /."""

    async def test_get_success(self, api_server):
        client, engine = api_server
        await engine.put("bob", "25")

        status, text = await client.request("GET", query_params={"key": "bob"})

        assert status == 200
        assert text == "25"

    async def test_get_raw_value(self, api_server):
        """Test that the value is returned verbatim."""
        client, engine = api_server
        await engine.put("k", '{"not": "json"} and spaces')

        status, text = await client.request("GET", query_params={"key": "k"})

        assert status == 200
        assert text == '{"not": "json"} and spaces'

    async def test_get_nonexistent_key(self, api_server):
        client, _ = api_server

        status, text = await client.request("GET", query_params={"key": "nonexistent"})

        assert status == 404
        assert text == "error: No such key exists"

    async def test_get_missing_key_param(self, api_server):
        client, _ = api_server

        status, text = await client.request("GET")

        assert status == 400
        assert text == "error: No key provided"

    async def test_get_multiple_keys(self, api_server):
        client, _ = api_server

        status, text = await client.request("GET", query_params=[("key", "a"), ("key", "b")])

        assert status == 400
        assert text == "error: Multiple keys provided"

    async def test_get_corrupt_file(self, api_server, data_path):
        """Test that decode failures become server errors, not 404."""
        client, _ = api_server
        write_file(data_path, b"garbage")

        status, text = await client.request("GET", query_params={"key": "k"})

        assert status == 500
        assert text == "error: Storage failure"

    async def test_put_write_failure(self, api_server, data_path):
        """Test that an I/O failure during a rewrite becomes a server error."""
        client, engine = api_server
        await engine.put("a", "1")
        break_file(engine.database._lines, "write")

        status, text = await client.request("PUT", form={"key": "b", "value": "2"})

        assert status == 500
        assert text == "error: Storage failure"

    async def test_delete_truncate_failure(self, api_server):
        client, engine = api_server
        await engine.put("a", "1")
        break_file(engine.database._lines, "truncate")

        status, text = await client.request("DELETE", query_params={"key": "a"})

        assert status == 500
        assert text == "error: Storage failure"


class TestDeleteEndpoint:
    """Tests for DELETE /."""

    async def test_delete_success(self, api_server):
        client, engine = api_server
        await engine.put("k", "v")

        status, text = await client.request("DELETE", query_params={"key": "k"})

        assert status == 200
        assert text == "OK"
        assert await engine.get("k") == ("", False)

    async def test_delete_nonexistent_key(self, api_server):
        client, _ = api_server

        status, text = await client.request("DELETE", query_params={"key": "nonexistent"})

        assert status == 404
        assert text == "error: No such key exists"

    async def test_delete_missing_key_param(self, api_server):
        client, _ = api_server

        status, text = await client.request("DELETE")

        assert status == 400
        assert text == "error: No key provided"


class TestRouting:
    """Tests for unknown paths and methods."""

    async def test_invalid_path(self, api_server):
        client, _ = api_server

        status, _ = await client.request("GET", "/nonexistent", query_params={"key": "k"})

        assert status == 404

    async def test_valid_path_wrong_method(self, api_server):
        client, _ = api_server

        status, _ = await client.request("POST", form={"key": "k", "value": "v"})

        assert status == 405

    async def test_malformed_content_length(self, api_server):
        client, _ = api_server
        reader, writer = await asyncio.open_connection(client.host, client.port)
        writer.write(b"PUT / HTTP/1.1\r\nContent-Length: abc\r\n\r\n")
        await writer.drain()

        response = await reader.read()
        writer.close()
        await writer.wait_closed()

        assert response.startswith(b"HTTP/1.1 400 Bad Request")

    async def test_unexpected_handler_error(self):
        """Test that a non-storage exception is reported as a generic 500."""
        server = HTTPServer()

        @server.route("/", ["GET"])
        async def broken(request):
            raise KeyError("boom")

        request = Request(method="GET", path="/", headers={}, query_params={}, body=b"", version="HTTP/1.1")
        response = await server.dispatch(request)

        assert response.status == 500
        assert response.body == b"error: Internal server error"


class TestRequest:
    """Tests for request parameter extraction."""

    def _request(self, body: bytes = b"", content_type: str = "", query: dict | None = None) -> Request:
        headers = {"content-type": content_type} if content_type else {}
        return Request(
            method="PUT",
            path="/",
            headers=headers,
            query_params=query or {},
            body=body,
            version="HTTP/1.1",
        )

    def test_form_body(self):
        request = self._request(b"key=a+b&value=%0A", "application/x-www-form-urlencoded")
        assert request.get_all("key") == ["a b"]
        assert request.get_all("value") == ["\n"]

    def test_json_list_counts_as_multiple(self):
        request = self._request(b'{"key": ["a", "b"]}', "application/json")
        assert request.get_all("key") == ["a", "b"]

    def test_json_non_string_value(self):
        request = self._request(b'{"value": 30}', "application/json")
        assert request.get_all("value") == ["30"]

    def test_invalid_json_ignored(self):
        request = self._request(b"{not json", "application/json", query={"key": ["k"]})
        assert request.get_all("key") == ["k"]

    def test_empty_field_name(self):
        with pytest.raises(ValueError):
            self._request().get_all("")


class TestIntegrationScenarios:
    """Integration tests for complete workflows."""

    async def test_full_crud_workflow(self, api_server, data_path):
        client, _ = api_server

        assert (await client.request("PUT", form={"key": "alice", "value": "30"}))[0] == 200
        assert (await client.request("PUT", form={"key": "bob", "value": "25"}))[0] == 200
        assert read_file(data_path) == b"5 alice30\n3 bob25"

        assert await client.request("GET", query_params={"key": "bob"}) == (200, "25")

        assert (await client.request("DELETE", query_params={"key": "alice"}))[0] == 200
        assert read_file(data_path) == b"3 bob25"

        status, _ = await client.request("GET", query_params={"key": "alice"})
        assert status == 404

    async def test_concurrent_operations(self, api_server):
        client, engine = api_server

        results = await asyncio.gather(
            *(client.request("PUT", form={"key": f"concurrent{i}", "value": f"val{i}"}) for i in range(10))
        )

        for status, text in results:
            assert status == 200
            assert text == "OK"

        for i in range(10):
            assert await engine.get(f"concurrent{i}") == (f"val{i}", True)
