"""
Mockinizer Dispatcher

Adapts the mock server's per-request callback to the fallback matcher.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Union

from .fingerprint import HeaderPairs, HeadersLike, RequestFingerprint, normalize_headers
from .matcher import DEFAULT_SIGNATURE, FallbackMatcher, MatchResult, TransportSignature
from .response import ResponseTemplate
from .table import MockTable

logger = logging.getLogger("mockinizer.mock.dispatcher")


@dataclass
class RecordedRequest:
    """A request as received by the mock server."""

    method: Optional[str]
    target: Optional[str]
    headers: Optional[HeaderPairs] = None
    body: Union[str, bytes, None] = None
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def path(self) -> str:
        return (self.target or '/').split('?', 1)[0]

    @property
    def body_text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode('utf-8', errors='replace')
        return self.body or ''

    def header(self, name: str) -> Optional[str]:
        """Get the first value of a header (case-insensitive), or None."""
        name = name.lower()
        for header_name, value in normalize_headers(self.headers) or ():
            if header_name == name:
                return value
        return None

    def fingerprint(self) -> RequestFingerprint:
        return RequestFingerprint.from_wire(self.method, self.target, self.headers, self.body)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'timestamp': self.timestamp,
            'method': self.method,
            'target': self.target,
            'headers': [list(pair) for pair in self.headers or ()],
            'body': self.body_text
        }


class MockDispatcher:
    """
    Per-request callback installed on the mock server.

    Reads the mock table and never modifies it, the server, or the templates.
    dispatch() is total: every request gets a response, unmatched ones a 404.
    """

    def __init__(self, table: MockTable, signature: TransportSignature = DEFAULT_SIGNATURE):
        self.table = table
        self.matcher = FallbackMatcher(table, signature)

    def match(self, request: RecordedRequest) -> MatchResult:
        """Run the fallback cascade for a recorded request."""
        fingerprint = request.fingerprint()
        result = self.matcher.match(fingerprint)
        logger.debug(f"{fingerprint}: {result.reason}")
        return result

    def dispatch(self, request: RecordedRequest) -> ResponseTemplate:
        """
        Choose the response for one request.

        Args:
            request: Request received by the server

        Returns:
            Registered ResponseTemplate, or a plain 404
        """
        return self.match(request).response

    def dispatch_raw(
        self,
        method: Optional[str],
        target: Optional[str],
        headers: Optional[HeadersLike] = None,
        body: Union[str, bytes, None] = None
    ) -> ResponseTemplate:
        """Choose the response for raw request parts."""
        pairs = normalize_headers(headers) if headers is not None else None
        return self.dispatch(RecordedRequest(method, target, pairs, body))
