"""
Mockinizer Response Templates

Canned HTTP responses returned by the mock server.

Templates are immutable values. Adding a header produces a new template, which
is how the registry annotates every registered response with diagnostics.
"""

import dataclasses
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Dict, Optional, Union

from .fingerprint import HeaderPairs, HeadersLike, RequestFingerprint, definition_body

MOCKINIZER_HEADER = "Mockinizer"
SERVER_HEADER = "server"


def _header_pairs(headers: Optional[HeadersLike]) -> HeaderPairs:
    if not headers:
        return ()
    items = headers.items() if hasattr(headers, 'items') else headers
    return tuple((str(name), str(value)) for name, value in items)


@dataclass(frozen=True)
class ResponseTemplate:
    """
    Canned HTTP response.

    Headers keep the order they were given in; names are matched
    case-insensitively by with_header() and header().

    Example:
        ResponseTemplate(status_code=201, headers={'content-type': 'application/json'},
                         body='{"id": 1}', delay_ms=250)
    """

    status_code: int = 200
    headers: HeaderPairs = ()
    body: Union[str, bytes] = ''
    delay_ms: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'headers', _header_pairs(self.headers))
        if self.body is None:
            object.__setattr__(self, 'body', '')
        if not isinstance(self.body, (str, bytes)):
            raise TypeError(f"Response body must be str or bytes, got {type(self.body).__name__}")
        if self.delay_ms < 0:
            raise ValueError(f"delay_ms must not be negative: {self.delay_ms}")

    @property
    def status_line(self) -> str:
        """Status line as sent on the wire, e.g. 'HTTP/1.1 200 OK'."""
        try:
            reason = HTTPStatus(self.status_code).phrase
        except ValueError:
            reason = "Mock Response"
        return f"HTTP/1.1 {self.status_code} {reason}"

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode('utf-8')

    def header(self, name: str) -> Optional[str]:
        """Get the first value of a header (case-insensitive), or None."""
        name = name.lower()
        for header_name, value in self.headers:
            if header_name.lower() == name:
                return value
        return None

    def with_header(self, name: str, value: str) -> 'ResponseTemplate':
        """
        Return a copy with a header set, replacing any existing values.

        Args:
            name: Header name (case-insensitive for replacement)
            value: Header value

        Returns:
            New ResponseTemplate
        """
        kept = tuple(pair for pair in self.headers if pair[0].lower() != name.lower())
        return dataclasses.replace(self, headers=kept + ((name, value),))

    @classmethod
    def not_found(cls) -> 'ResponseTemplate':
        """Default response for requests that match no registered fingerprint."""
        return cls(status_code=404)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResponseTemplate':
        """Create a template from a mock-definition dictionary."""
        return cls(
            status_code=int(data.get('status', data.get('status_code', 200))),
            headers=data.get('headers') or (),
            body=definition_body(data.get('body')) or '',
            delay_ms=int(data.get('delay_ms', 0))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'status': self.status_code,
            'headers': [list(pair) for pair in self.headers],
            'body': self.body if isinstance(self.body, str) else self.body.decode('utf-8', errors='replace'),
            'delay_ms': self.delay_ms
        }

    def __str__(self) -> str:
        return f"MockResponse{{status={self.status_line}}}"


def annotate(
    fingerprint: RequestFingerprint,
    response: ResponseTemplate,
    version: str,
    author: str
) -> ResponseTemplate:
    """
    Add the diagnostic headers to a registered response.

    Existing diagnostic headers are replaced, so annotating twice yields the
    same template as annotating once.

    Args:
        fingerprint: Fingerprint the response is registered under
        response: Registered response
        version: Version reported in the server header
        author: Author reported in the server header

    Returns:
        Annotated copy of the response
    """
    return (
        response
        .with_header(MOCKINIZER_HEADER, f" <-- Real request {fingerprint.path} is now mocked to {response}")
        .with_header(SERVER_HEADER, f"Mockinizer {version} by {author}")
    )
