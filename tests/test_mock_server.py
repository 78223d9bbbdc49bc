"""
Tests for Mockinizer Mock Server

Tests the FastAPI-based mock server including:
- Request handling through the installed dispatcher
- Diagnostic headers on the wire
- Response latency
- Request recording
- Background start and shutdown
"""

import logging
import time

import pytest
import requests
from fastapi.testclient import TestClient

from mockinizer.config import MockinizerConfig
from mockinizer.mock.dispatcher import MockDispatcher
from mockinizer.mock.fingerprint import Method, RequestFingerprint
from mockinizer.mock.response import ResponseTemplate
from mockinizer.mock.server import MockWebServer
from mockinizer.mock.table import MockTable
from mockinizer.registry import Mockinizer


@pytest.fixture
def sample_mocks():
    """Sample mock table."""
    return MockTable({
        RequestFingerprint('/users'): ResponseTemplate(
            200,
            headers={'Content-Type': 'application/json'},
            body='[{"id": 1}]'
        ),
        RequestFingerprint('/users', Method.POST, body='{"name": "ann"}'): ResponseTemplate(201, body='{"id": 2}'),
        RequestFingerprint('/slow'): ResponseTemplate(200, body='late', delay_ms=100),
        RequestFingerprint('/search?q=x'): ResponseTemplate(200, body='found'),
    })


@pytest.fixture
def server(sample_mocks):
    """Mock server with annotated mocks installed."""
    server = MockWebServer(MockinizerConfig(port=0))
    Mockinizer().init(server, sample_mocks)
    return server


@pytest.fixture
def client(server):
    """Test client for the mock server app."""
    return TestClient(server.get_app())


class TestMockWebServer:
    """Test MockWebServer initialization."""

    def test_defaults(self):
        """Test server with default config."""
        server = MockWebServer()

        assert server.dispatcher is None
        assert server.hostname == 'localhost'
        assert server.port == 34567
        assert not server.started
        assert server.request_count == 0

    def test_url(self):
        """Test URL building."""
        server = MockWebServer(MockinizerConfig(port=8080))

        assert server.url() == 'http://localhost:8080/'
        assert server.url('/users?id=1') == 'http://localhost:8080/users?id=1'
        assert server.url('users') == 'http://localhost:8080/users'

    def test_https_url(self):
        """Test URL scheme when TLS is configured."""
        config = MockinizerConfig(port=8443, ssl_certfile='cert.pem', ssl_keyfile='key.pem')

        assert MockWebServer(config).url('/x') == 'https://localhost:8443/x'

    def test_servers_share_logger_level(self):
        """Test that creating a server does not change the shared logger level."""
        logger = logging.getLogger('mockinizer.mock.server')
        level = logger.level

        MockWebServer(MockinizerConfig(log_level='debug'))
        MockWebServer(MockinizerConfig(log_level='error'))

        assert logger.level == level


class TestMockWebServerEndpoints:
    """Test request handling."""

    def test_without_dispatcher(self):
        """Test that a server without dispatcher answers 404."""
        client = TestClient(MockWebServer().get_app())

        response = client.get('/users')

        assert response.status_code == 404
        assert response.content == b''

    def test_registered_get(self, client):
        """Test serving a registered GET."""
        response = client.get('/users')

        assert response.status_code == 200
        assert response.json() == [{'id': 1}]
        assert response.headers['content-type'] == 'application/json'

    def test_registered_post_body(self, client):
        """Test that the request body selects the mock."""
        assert client.post('/users', content='{"name": "ann"}').status_code == 201
        assert client.post('/users', content='{"name": "bob"}').status_code == 404

    def test_query_string_part_of_path(self, client):
        """Test that the query string is matched."""
        assert client.get('/search?q=x').text == 'found'
        assert client.get('/search?q=y').status_code == 404
        assert client.get('/search').status_code == 404

    def test_unmatched(self, client):
        """Test 404 for unknown requests."""
        response = client.delete('/unknown')

        assert response.status_code == 404
        assert response.content == b''
        assert 'mockinizer' not in response.headers

    def test_diagnostic_headers(self, client):
        """Test the annotation headers on the wire."""
        response = client.get('/users')

        assert response.headers['mockinizer'] == (
            '<-- Real request /users is now mocked to MockResponse{status=HTTP/1.1 200 OK}'
        )
        assert response.headers['server'] == 'Mockinizer 1.0.0 by Thomas Fuchs-Martin'

    def test_delay(self, client):
        """Test per-response latency."""
        start = time.monotonic()
        response = client.get('/slow')
        elapsed = time.monotonic() - start

        assert response.text == 'late'
        assert elapsed >= 0.1

    def test_replace_dispatcher(self, server, client):
        """Test that a new dispatcher takes effect immediately."""
        server.dispatcher = MockDispatcher(MockTable({RequestFingerprint('/other'): ResponseTemplate(202)}))

        assert client.get('/users').status_code == 404
        assert client.get('/other').status_code == 202


class TestRequestRecording:
    """Test recording of received requests."""

    def test_records_requests(self, server, client):
        """Test recorded request details."""
        client.post('/users?x=1', content='{"name": "ann"}', headers={'X-Test': 'yes'})

        assert server.request_count == 1
        recorded = server.take_request()
        assert recorded.method == 'POST'
        assert recorded.target == '/users?x=1'
        assert recorded.path == '/users'
        assert recorded.header('x-test') == 'yes'
        assert recorded.body_text == '{"name": "ann"}'

    def test_take_request_order(self, server, client):
        """Test that take_request returns the oldest request first."""
        client.get('/first')
        client.get('/second')

        assert server.take_request().target == '/first'
        assert server.take_request().target == '/second'
        assert server.take_request() is None
        assert server.request_count == 2

    def test_recording_limit(self):
        """Test that only the newest requests are kept."""
        server = MockWebServer(MockinizerConfig(recording_limit=2))
        client = TestClient(server.get_app())

        for path in ['/a', '/b', '/c']:
            client.get(path)

        assert server.request_count == 3
        assert [r.target for r in server.recorded_requests] == ['/b', '/c']

    def test_unmatched_recorded(self, server, client):
        """Test that unmatched requests are recorded too."""
        client.get('/missing')

        assert server.recorded_requests[0].target == '/missing'


class TestServerLifecycle:
    """Test starting and stopping the background server."""

    def test_start_and_shutdown(self, server):
        """Test serving over a real socket."""
        server.start(0)
        try:
            assert server.started
            assert server.port != 0

            response = requests.get(server.url('/users'), timeout=5)

            assert response.status_code == 200
            assert response.headers['server'] == 'Mockinizer 1.0.0 by Thomas Fuchs-Martin'
            assert response.json() == [{'id': 1}]
        finally:
            server.shutdown()

        assert not server.started

    def test_double_start(self, server):
        """Test that starting twice fails."""
        server.start(0)
        try:
            with pytest.raises(RuntimeError):
                server.start(0)
        finally:
            server.shutdown()

    def test_port_in_use(self, server):
        """Test that bind errors reach the caller."""
        server.start(0)
        try:
            other = MockWebServer()
            with pytest.raises(OSError):
                other.start(server.port)
            assert not other.started
        finally:
            server.shutdown()

    def test_shutdown_not_started(self):
        """Test that shutdown is a no-op before start."""
        server = MockWebServer()

        server.shutdown()

        assert not server.started

    def test_restart(self, server):
        """Test that a stopped server can be started again."""
        server.start(0)
        server.shutdown()
        server.start(0)
        try:
            assert requests.get(server.url('/users'), timeout=5).status_code == 200
        finally:
            server.shutdown()
