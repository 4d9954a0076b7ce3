"""
HTTPServer - asyncio HTTP/1.1 front end for the key-value engine.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from linekv.models.exceptions import StoreError

from .request import Request
from .response import Response

logger = logging.getLogger()

Handler = Callable[[Request], Awaitable[Response]]

MAX_BODY_BYTES = 10 * 1024 * 1024
HEAD_TIMEOUT_S = 5.0
BODY_TIMEOUT_S = 30.0

STATUS_TEXT = {
    200: 'OK',
    400: 'Bad Request',
    404: 'Not Found',
    405: 'Method Not Allowed',
    413: 'Payload Too Large',
    500: 'Internal Server Error',
}

ERR_STORAGE_FAILURE = b'error: Storage failure'
ERR_INTERNAL = b'error: Internal server error'


class MalformedRequestError(ValueError):
    """The request head or body could not be parsed."""

    def __init__(self, message: str, status: int = 400):
        self.status = status
        super().__init__(message)


def encode_response(response: Response) -> bytes:
    """Serialize a Response to HTTP/1.1 wire bytes."""
    headers = dict(response.headers)
    headers.setdefault('content-type', 'text/plain; charset=utf-8')
    headers['content-length'] = str(len(response.body))
    headers['server'] = 'LineKV/1.0'

    head = f"HTTP/1.1 {response.status} {STATUS_TEXT.get(response.status, 'Unknown')}\r\n"
    head += ''.join(f"{name}: {value}\r\n" for name, value in headers.items())
    return head.encode() + b'\r\n' + response.body


class HTTPServer:
    """
    Minimal keep-alive HTTP server dispatching on (path, method).

    Handlers always return a Response. Storage failures raised from a
    handler become a 500 with a fixed body, so callers never receive a
    partial or misleading "not found".
    """

    def __init__(self, host: str = '0.0.0.0', port: int = 3000):
        self.host = host
        self.port = port
        self.routes: Dict[str, Dict[str, Handler]] = {}

    def route(self, path: str, methods: Optional[List[str]] = None):
        """Decorator registering a handler for ``path`` under each of ``methods``."""
        methods = methods or ['GET']

        def decorator(handler: Handler) -> Handler:
            by_method = self.routes.setdefault(path, {})
            for method in methods:
                by_method[method.upper()] = handler
            return handler
        return decorator

    async def read_request(self, reader: asyncio.StreamReader) -> Optional[Request]:
        """
        Read one request from the stream.

        Returns:
            The parsed Request, or None when the peer closed the connection
            or went idle.

        Raises:
            MalformedRequestError: If the request line, headers or body are invalid.
        """
        try:
            request_line = await asyncio.wait_for(reader.readline(), timeout=HEAD_TIMEOUT_S)
        except asyncio.TimeoutError:
            return None
        if not request_line:
            return None

        try:
            method, target, version = request_line.decode('utf-8').strip().split(' ', 2)
        except (UnicodeDecodeError, ValueError):
            raise MalformedRequestError(f"Invalid request line: {request_line[:100]!r}") from None

        headers = await self._read_headers(reader)
        body = await self._read_body(reader, headers)

        # Blank values are kept: an empty key or value is valid
        url = urlparse(target)
        return Request(
            method=method.upper(),
            path=url.path,
            headers=headers,
            query_params=parse_qs(url.query, keep_blank_values=True),
            body=body,
            version=version,
        )

    async def _read_headers(self, reader: asyncio.StreamReader) -> dict[str, str]:
        headers = {}
        while True:
            try:
                line = await asyncio.wait_for(reader.readline(), timeout=HEAD_TIMEOUT_S)
            except asyncio.TimeoutError:
                raise MalformedRequestError("Timed out reading headers") from None
            if line in (b'\r\n', b'\n', b''):
                return headers

            name, sep, value = line.decode('latin-1').partition(':')
            if sep:
                headers[name.strip().lower()] = value.strip()

    async def _read_body(self, reader: asyncio.StreamReader, headers: dict[str, str]) -> bytes:
        raw_length = headers.get('content-length', '0')
        if not raw_length.isdigit():
            raise MalformedRequestError(f"Invalid content-length: {raw_length!r}")

        length = int(raw_length)
        if length == 0:
            return b''
        if length > MAX_BODY_BYTES:
            raise MalformedRequestError("Request body too large", status=413)

        try:
            return await asyncio.wait_for(reader.readexactly(length), timeout=BODY_TIMEOUT_S)
        except (asyncio.TimeoutError, asyncio.IncompleteReadError):
            raise MalformedRequestError("Incomplete request body") from None

    async def dispatch(self, request: Request) -> Response:
        """Route a request to its handler and map failures to status codes."""
        by_method = self.routes.get(request.path)
        if by_method is None:
            return Response(status=404, body=b'Route Not Found')

        handler = by_method.get(request.method)
        if handler is None:
            return Response(
                status=405,
                headers={'allow': ', '.join(sorted(by_method))},
                body=b'Method Not Allowed',
            )

        try:
            return await handler(request)
        except StoreError as e:
            logger.error(f"Storage failure on {request.method} {request.path}: {e!r} (cause: {e.__cause__!r})")
            return Response(status=500, body=ERR_STORAGE_FAILURE)
        except Exception as e:
            logger.error(f"Handler error on {request.method} {request.path}: {e!r}")
            return Response(status=500, body=ERR_INTERNAL)

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Serve requests on one connection until the peer closes or asks to."""
        peer = writer.get_extra_info('peername')

        try:
            while True:
                try:
                    request = await self.read_request(reader)
                except MalformedRequestError as e:
                    logger.warning(f"Malformed request from {peer}: {e}")
                    writer.write(encode_response(Response(status=e.status, body=str(e).encode())))
                    await writer.drain()
                    break
                if request is None:
                    break

                start_time = time.perf_counter()
                response = await self.dispatch(request)

                keep_alive = request.headers.get('connection', '').lower() != 'close'
                response.headers['connection'] = 'keep-alive' if keep_alive else 'close'
                writer.write(encode_response(response))
                await writer.drain()

                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(f"{request.method} {request.path} -> {response.status} ({elapsed_ms:.2f}ms)")

                if not keep_alive:
                    break

        except ConnectionResetError:
            pass
        except Exception as e:
            logger.error(f"Connection error from {peer}: {e}")
        finally:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def start(self):
        """Listen and serve until cancelled."""
        server = await asyncio.start_server(self.handle_client, self.host, self.port)

        addr = server.sockets[0].getsockname()
        logger.info(f'Started listening for requests on http://{addr[0]}:{addr[1]}')

        try:
            async with server:
                await server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server shutdown requested")
        finally:
            server.close()
            await server.wait_closed()
            logger.info("Server shutdown complete")
