"""
Mockinizer Request Fingerprint

Normalized, hashable description of the parts of an HTTP request a test cares
about. Fingerprints are the keys of a mock table.

Matching semantics:
- path and method are always compared
- headers=None means "ignore headers", otherwise the header set must be equal
- body=None means "ignore body", otherwise the body must be equal
- None is never equal to an empty header collection or an empty body
"""

import dataclasses
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

HeaderPairs = Tuple[Tuple[str, str], ...]
HeadersLike = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class Method(str, Enum):
    """HTTP methods a fingerprint can be registered for."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


def _decode(value: Union[str, bytes]) -> str:
    if isinstance(value, bytes):
        return value.decode('latin-1')
    return str(value)


def normalize_headers(headers: Optional[HeadersLike]) -> Optional[HeaderPairs]:
    """
    Convert headers into their canonical, comparable form.

    Names are lower-cased (HTTP header names are case-insensitive), values are
    kept verbatim. Pairs are sorted so that two collections holding the same
    pairs compare equal regardless of the order they were supplied in.

    Args:
        headers: Mapping, iterable of (name, value) pairs, or None

    Returns:
        Sorted tuple of (name, value) pairs, or None if headers is None
    """
    if headers is None:
        return None

    items = headers.items() if isinstance(headers, Mapping) else headers
    return tuple(sorted((_decode(name).lower(), _decode(value)) for name, value in items))


def _normalize_method(method: Union[Method, str, None]) -> str:
    if method is None:
        return Method.GET.value
    if isinstance(method, Method):
        return method.value
    return str(method).upper()


@dataclass(frozen=True)
class RequestFingerprint:
    """
    Comparable representation of an HTTP request.

    Example:
        RequestFingerprint(path='/users', method=Method.POST, body='{"name": "ann"}')
        RequestFingerprint(path='/search?q=x', headers={'accept': 'application/json'})
    """

    path: str
    method: str = Method.GET.value
    headers: Optional[HeaderPairs] = None
    body: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.path, str) or not self.path:
            raise ValueError("Fingerprint path must be a non-empty string")
        if not self.path.startswith('/'):
            raise ValueError(f"Fingerprint path must start with '/': {self.path!r}")

        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, 'method', _normalize_method(self.method))
        object.__setattr__(self, 'headers', normalize_headers(self.headers))
        if self.body is not None and not isinstance(self.body, str):
            object.__setattr__(self, 'body', _decode_body(self.body))

    def replace(self, **changes: Any) -> 'RequestFingerprint':
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def header(self, name: str) -> Optional[str]:
        """Get the first value of a header, or None."""
        if self.headers is None:
            return None
        name = name.lower()
        for header_name, value in self.headers:
            if header_name == name:
                return value
        return None

    @classmethod
    def from_wire(
        cls,
        method: Optional[str],
        target: Optional[str],
        headers: Optional[HeadersLike] = None,
        body: Union[str, bytes, None] = None
    ) -> 'RequestFingerprint':
        """
        Build a fingerprint from raw request data as received on the wire.

        Every part is populated with a concrete value. Missing headers become
        an empty collection and a missing body becomes an empty string, so
        "nothing was sent" never looks like "don't care".

        Args:
            method: Request method
            target: Request target (path plus optional query string)
            headers: All headers present on the wire
            body: Raw body

        Returns:
            RequestFingerprint with path, method, headers and body set
        """
        return cls(
            path=target if target and target.startswith('/') else '/' + (target or ''),
            method=method or Method.GET.value,
            headers=headers if headers is not None else (),
            body=_decode_body(body)
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RequestFingerprint':
        """Create a fingerprint from a mock-definition dictionary."""
        if 'path' not in data:
            raise ValueError(f"Request definition is missing 'path': {data}")

        return cls(
            path=data['path'],
            method=data.get('method', Method.GET.value),
            headers=data.get('headers'),
            body=definition_body(data.get('body'))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, leaving out fields that are ignored when matching."""
        data: Dict[str, Any] = {'path': self.path, 'method': self.method}
        if self.headers is not None:
            data['headers'] = [list(pair) for pair in self.headers]
        if self.body is not None:
            data['body'] = self.body
        return data

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


def _decode_body(body: Union[str, bytes, None]) -> str:
    if body is None:
        return ''
    if isinstance(body, bytes):
        return body.decode('utf-8', errors='replace')
    return str(body)


def definition_body(body: Any) -> Union[str, bytes, None]:
    """
    Body text of a mock definition.

    Structured bodies (mappings, lists, numbers) from YAML or JSON files are
    serialized with json.dumps, the same way requests serializes json= bodies.
    """
    if body is None or isinstance(body, (str, bytes)):
        return body
    return json.dumps(body)
