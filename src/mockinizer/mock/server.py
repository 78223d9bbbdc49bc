"""
Mockinizer Mock Web Server

FastAPI-based HTTP server that answers every request through an installed
dispatcher.

Features:
- Catch-all route for all methods and paths
- Per-response artificial latency
- Background-thread start/shutdown for use inside test processes
- Recorded requests for test assertions
- Optional HTTPS
"""

from __future__ import annotations  # Enable forward references for type hints

import asyncio
import logging
import socket
import threading
import time
from collections import deque
from typing import Deque, List, Optional

import uvicorn
from fastapi import FastAPI, Request, Response

from .dispatcher import MockDispatcher, RecordedRequest
from .response import ResponseTemplate
from ..config import MockinizerConfig

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


class MockWebServer:
    """
    Mock HTTP server driven by a MockDispatcher.

    The dispatcher decides every response. Without one, all requests get a
    plain 404.

    Example:
        server = MockWebServer()
        server.dispatcher = MockDispatcher(table)
        server.start(34567)
        ...
        server.shutdown()
    """

    def __init__(self, config: Optional[MockinizerConfig] = None):
        """
        Initialize mock server.

        Args:
            config: Optional MockinizerConfig for server behavior
        """
        self.config = config or MockinizerConfig()
        self.dispatcher: Optional[MockDispatcher] = None

        self.logger = logging.getLogger("mockinizer.mock.server")

        self._recorded: Deque[RecordedRequest] = deque(maxlen=self.config.recording_limit or None)
        self._request_count = 0
        self._lock = threading.Lock()

        self._uvicorn: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None
        self._socket: Optional[socket.socket] = None
        self._port: Optional[int] = None

        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with the catch-all mock route."""
        app = FastAPI(
            title="Mockinizer Mock Server",
            description="Serves registered mock responses",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        @app.api_route("/{path:path}", methods=ALL_METHODS)
        async def mock_request(request: Request, path: str):
            """Handle incoming requests and serve mock responses."""
            return await self._handle_request(request)

        return app

    async def _handle_request(self, request: Request) -> Response:
        """
        Record the request, ask the dispatcher for a response and send it.

        Args:
            request: FastAPI Request object

        Returns:
            FastAPI Response built from the chosen template
        """
        target = request.url.path
        if request.url.query:
            target = f"{target}?{request.url.query}"

        recorded = RecordedRequest(
            method=request.method,
            target=target,
            headers=tuple((name.decode('latin-1'), value.decode('latin-1'))
                          for name, value in request.headers.raw),
            body=await request.body()
        )
        self._record(recorded)

        self.logger.debug(f"Incoming: {recorded.method} {recorded.target}")

        dispatcher = self.dispatcher
        if dispatcher is None:
            template, matched = ResponseTemplate.not_found(), False
        else:
            result = dispatcher.match(recorded)
            template, matched = result.response, result.matched

        if not matched:
            self.logger.warning(f"No mock found for {recorded.method} {recorded.target}")

        if template.delay_ms > 0:
            await asyncio.sleep(template.delay_ms / 1000)

        return self._create_response(template)

    @staticmethod
    def _create_response(template: ResponseTemplate) -> Response:
        """Convert a template to a FastAPI Response, keeping header order."""
        response = Response(content=template.body_bytes, status_code=template.status_code)
        for name, value in template.headers:
            if name.lower() == 'content-length':
                continue
            # Header values may not start or end with whitespace on the wire
            response.headers.append(name, value.strip())
        return response

    def _record(self, request: RecordedRequest):
        with self._lock:
            self._request_count += 1
            self._recorded.append(request)

    @property
    def request_count(self) -> int:
        """Number of requests received since the server was created."""
        with self._lock:
            return self._request_count

    @property
    def recorded_requests(self) -> List[RecordedRequest]:
        with self._lock:
            return list(self._recorded)

    def take_request(self) -> Optional[RecordedRequest]:
        """Remove and return the oldest recorded request, or None."""
        with self._lock:
            return self._recorded.popleft() if self._recorded else None

    @property
    def started(self) -> bool:
        return self._uvicorn is not None

    @property
    def hostname(self) -> str:
        return self.config.host

    @property
    def port(self) -> int:
        """Port the server listens on (the configured port before start)."""
        return self._port if self._port is not None else self.config.port

    def url(self, path: str = "/") -> str:
        """Absolute URL of a path on this server."""
        if not path.startswith('/'):
            path = '/' + path
        return f"{self.config.scheme}://{self.hostname}:{self.port}{path}"

    def start(self, port: Optional[int] = None, timeout: float = 10.0):
        """
        Start serving in a background thread.

        The socket is bound before this returns, so bind errors (e.g. the port
        is already in use) are raised to the caller.

        Args:
            port: Port to bind to (overrides config, 0 picks a free port)
            timeout: Seconds to wait for uvicorn to come up

        Raises:
            RuntimeError: If the server is already started or fails to start
            OSError: If the port cannot be bound
        """
        if self.started:
            raise RuntimeError(f"Mock server already started on port {self.port}")

        actual_port = self.config.port if port is None else port

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.hostname, actual_port))
        except OSError:
            sock.close()
            raise

        config = uvicorn.Config(
            self.app,
            log_level=self.config.log_level,
            log_config=None,
            access_log=False,
            server_header=False,
            ssl_certfile=self.config.ssl_certfile,
            ssl_keyfile=self.config.ssl_keyfile
        )
        server = uvicorn.Server(config)
        thread = threading.Thread(
            target=server.run,
            kwargs={'sockets': [sock]},
            name=f"mockinizer-{sock.getsockname()[1]}",
            daemon=True
        )

        self._socket = sock
        self._port = sock.getsockname()[1]
        self._uvicorn = server
        self._thread = thread
        thread.start()

        deadline = time.monotonic() + timeout
        while not server.started:
            if not thread.is_alive() or time.monotonic() > deadline:
                self._cleanup()
                raise RuntimeError(f"Mock server failed to start on port {actual_port}")
            time.sleep(0.01)

        self.logger.info(f"Mock server listening on {self.url()}")

    def shutdown(self, timeout: float = 10.0):
        """Stop serving and release the socket. No-op if not started."""
        if not self.started:
            return

        self._uvicorn.should_exit = True
        self._thread.join(timeout)
        self.logger.info(f"Mock server on port {self.port} stopped")
        self._cleanup()

    def _cleanup(self):
        if self._socket is not None:
            self._socket.close()
        self._uvicorn = None
        self._thread = None
        self._socket = None
        self._port = None

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing.

        Returns:
            FastAPI application instance
        """
        return self.app
