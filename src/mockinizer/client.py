"""
Mockinizer Client Wiring

Connects a requests.Session to a mock server.

- MockinizerAdapter sends requests that match a registered mock to the mock
  server and everything else to the real network
- mockinize() installs the adapter, trusts the mock server's certificate and
  registers the mocks
"""

import logging
from typing import Optional

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.utils import default_headers
from urllib3.exceptions import InsecureRequestWarning

from .config import MockinizerConfig
from .mock.fingerprint import RequestFingerprint
from .mock.matcher import DEFAULT_SIGNATURE, FallbackMatcher, TransportSignature
from .mock.server import MockWebServer
from .mock.table import MockEntries
from .registry import Mockinizer

logger = logging.getLogger("mockinizer.client")

# requests defaults that are not part of the transport signature
_EXTRA_DEFAULT_HEADERS = ('Accept', 'Connection')


class MockinizerAdapter(HTTPAdapter):
    """
    Transport adapter that redirects mocked requests to the mock server.

    The redirect decision uses the headers the caller set plus the body headers
    requests computes (content-length, content-type, transfer-encoding), since
    those reach the mock server too. The session defaults (user-agent,
    accept-encoding, accept, connection) are left out.
    Redirected requests carry the original scheme in the signature's scheme
    header, so the server sees the full transport signature.

    Example:
        session = requests.Session()
        session.mount('https://', MockinizerAdapter(registry))
    """

    def __init__(
        self,
        registry: Mockinizer,
        signature: TransportSignature = DEFAULT_SIGNATURE,
        **kwargs
    ):
        """
        Initialize adapter.

        Args:
            registry: Registry whose active server and table are used
            signature: Transport signature of the redirected requests
            **kwargs: Passed to HTTPAdapter (pool sizes, max_retries)
        """
        super().__init__(**kwargs)
        self.registry = registry
        self.signature = signature

        defaults = default_headers()
        self._session_defaults = {name.lower(): value for name, value in defaults.items()}
        self._default_encodings = {defaults['Accept-Encoding'], signature.accept_encoding}

    def _outgoing_headers(self, request: requests.PreparedRequest):
        """Headers of a prepared request minus the session defaults."""
        headers = []
        for name, value in request.headers.items():
            lowered = name.lower()
            if lowered == 'accept-encoding' and value in self._default_encodings:
                continue
            if lowered != 'accept-encoding' and self._session_defaults.get(lowered) == value:
                continue
            headers.append((name, value))
        return headers

    def fingerprint(self, request: requests.PreparedRequest) -> RequestFingerprint:
        """Fingerprint of an outgoing request as the mock server will see it, minus the transport signature."""
        return RequestFingerprint.from_wire(
            request.method,
            request.path_url,
            self._outgoing_headers(request),
            request.body
        )

    def should_mock(self, request: requests.PreparedRequest) -> bool:
        server = self.registry.server
        table = self.registry.table
        if server is None or table is None or not server.started:
            return False
        return FallbackMatcher(table, self.signature).match(self.fingerprint(request)).matched

    def redirect(self, request: requests.PreparedRequest, server: MockWebServer) -> requests.PreparedRequest:
        """Copy of the request pointed at the mock server."""
        original_scheme = request.url.split('://', 1)[0].lower()

        redirected = request.copy()
        redirected.url = server.url(request.path_url)
        for name in _EXTRA_DEFAULT_HEADERS:
            if redirected.headers.get(name) == self._session_defaults.get(name.lower()):
                del redirected.headers[name]
        redirected.headers[self.signature.scheme_header] = original_scheme
        return redirected

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        if self.should_mock(request):
            logger.debug(f"Mockinizer intercepted {request.method} {request.url}")
            request = self.redirect(request, self.registry.server)
            # The mock server never sits behind a proxy
            proxies = None

        return super().send(request, stream=stream, timeout=timeout, verify=verify,
                            cert=cert, proxies=proxies)


def trust_all_certificates(session: requests.Session) -> requests.Session:
    """Accept any certificate and hostname, for the mock server's self-signed use."""
    session.verify = False
    urllib3.disable_warnings(InsecureRequestWarning)
    return session


def mockinize(
    session: Optional[requests.Session] = None,
    mocks: MockEntries = (),
    server: Optional[MockWebServer] = None,
    registry: Optional[Mockinizer] = None,
    config: Optional[MockinizerConfig] = None,
    trust_all: bool = True
) -> requests.Session:
    """
    Wire a requests.Session to a mock server.

    Generally only the mocks need to be given; the defaults suit most tests.
    The server is not started; call registry.start() when ready.

    Args:
        session: Session to configure (a new one if None)
        mocks: MockTable, mapping or iterable of (fingerprint, response) pairs
        server: Mock server (a new MockWebServer if None)
        registry: Registry to initialize (a new Mockinizer if None)
        config: Config for a newly created server
        trust_all: Disable certificate and hostname verification

    Returns:
        The configured session, for chaining

    Example:
        registry = Mockinizer()
        session = mockinize(requests.Session(), mocks, registry=registry)
        registry.start()
        session.get('https://api.example.com/users')  # served by the mock
    """
    if session is None:
        session = requests.Session()
    if server is None:
        server = MockWebServer(config)
    if registry is None:
        registry = Mockinizer()

    table = registry.init(server, mocks)

    adapter = MockinizerAdapter(registry, server.config.signature)
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    session.headers['Accept-Encoding'] = server.config.accept_encoding

    if trust_all:
        trust_all_certificates(session)

    logger.debug(f"Mockinized {session} with mocks: {table} and server {server.hostname}:{server.port}")

    return session
