"""
Mockinizer Registry

Lifecycle owner of the active mock server and its installed mock table.

A registry is created explicitly and handed to whatever wires up the server
and the client. All operations run during test setup and teardown and must
not race each other: init() completes before start(), and shut_down() runs
after the last request.
"""

import logging
from typing import Optional

from .config import DEFAULT_PORT
from .mock.dispatcher import MockDispatcher
from .mock.response import annotate
from .mock.server import MockWebServer
from .mock.table import MockEntries, MockTable

logger = logging.getLogger("mockinizer.registry")


class Mockinizer:
    """
    Registry holding the active mock server.

    Example:
        registry = Mockinizer()
        registry.init(MockWebServer(), {
            RequestFingerprint('/users'): ResponseTemplate(200, body='[]'),
        })
        registry.start()
        ...
        registry.shut_down()

    start() and shut_down() do nothing until init() has been called.
    """

    def __init__(self):
        self._server: Optional[MockWebServer] = None
        self._table: Optional[MockTable] = None

    @property
    def server(self) -> Optional[MockWebServer]:
        return self._server

    @property
    def table(self) -> Optional[MockTable]:
        """The annotated table installed by the last init()."""
        return self._table

    @property
    def is_initialized(self) -> bool:
        return self._server is not None

    def init(self, server: MockWebServer, mocks: MockEntries) -> MockTable:
        """
        Install mocks on a server and make it the active one.

        Every response gets the diagnostic headers. The caller's templates are
        left untouched; the installed table holds annotated copies. Any
        previously active server and table are replaced, not merged.

        Args:
            server: Mock server to install the dispatcher on
            mocks: MockTable, mapping or iterable of (fingerprint, response) pairs

        Returns:
            The annotated MockTable now installed on the server
        """
        table = mocks if isinstance(mocks, MockTable) else MockTable(mocks)

        version = server.config.version
        author = server.config.author
        annotated = table.map_responses(
            lambda fingerprint, response: annotate(fingerprint, response, version, author)
        )

        server.dispatcher = MockDispatcher(annotated, server.config.signature)

        if self._server is not None and self._server is not server:
            logger.debug("Replacing previously active mock server")

        self._server = server
        self._table = annotated

        logger.debug(f"Installed {len(annotated)} mocks on {server.hostname}:{server.port}")
        return annotated

    def start(self, port: int = DEFAULT_PORT):
        """
        Start the active server on a port. No-op before init().

        Errors from the server (port in use, already started) propagate.
        """
        if self._server is None:
            logger.debug("start() called before init(), ignoring")
            return
        self._server.start(port)

    def shut_down(self):
        """Stop the active server. No-op before init()."""
        if self._server is None:
            logger.debug("shut_down() called before init(), ignoring")
            return
        self._server.shutdown()
