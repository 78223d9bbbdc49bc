"""
Mockinizer Fallback Matcher

Finds the registered response for an inbound request.

The inbound fingerprint is looked up in the mock table, then progressively
looser copies of it are tried:

1. exact fingerprint
2. body ignored
3. transport headers cleared
4. headers ignored
5. body ignored and transport headers cleared
6. body and headers ignored

If nothing matches, a plain 404 is returned. Only the inbound fingerprint is
loosened; registered keys are always compared verbatim.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .fingerprint import HeaderPairs, RequestFingerprint
from .response import ResponseTemplate
from .table import MockTable

_SCHEME_VALUE = re.compile(r'https?')


@dataclass(frozen=True)
class TransportSignature:
    """
    Headers the HTTP client stack adds to every request it sends.

    Defaults describe a requests.Session redirected by MockinizerAdapter over
    HTTP/1.1. For HTTP/2 stacks use ':authority' and ':scheme'.
    """

    authority_header: str = "host"
    scheme_header: str = "x-forwarded-proto"
    accept_encoding: str = "gzip"
    user_agent_prefix: str = "python-requests/"

    @property
    def header_names(self) -> frozenset:
        return frozenset((
            self.authority_header.lower(),
            self.scheme_header.lower(),
            'accept-encoding',
            'user-agent'
        ))


DEFAULT_SIGNATURE = TransportSignature()


def _first(headers: HeaderPairs, name: str) -> Optional[str]:
    for header_name, value in headers:
        if header_name == name:
            return value
    return None


def clear_transport_headers(
    headers: Optional[HeaderPairs],
    signature: TransportSignature = DEFAULT_SIGNATURE
) -> Optional[HeaderPairs]:
    """
    Remove the headers the transport injected, if all of them are present.

    All four checks must pass or the headers are returned unchanged:
    - authority header starts with 'localhost:'
    - scheme header is exactly 'http' or 'https'
    - accept-encoding is exactly the signature's value
    - user-agent starts with the signature's prefix

    Args:
        headers: Canonical header pairs (lower-case names), or None
        signature: Transport signature to look for

    Returns:
        Headers without the transport entries, or the input unchanged
    """
    if headers is None:
        return None

    authority = _first(headers, signature.authority_header.lower())
    scheme = _first(headers, signature.scheme_header.lower())
    accept_encoding = _first(headers, 'accept-encoding')
    user_agent = _first(headers, 'user-agent')

    if (
        authority is not None and authority.startswith('localhost:') and
        scheme is not None and _SCHEME_VALUE.fullmatch(scheme) is not None and
        accept_encoding == signature.accept_encoding and
        user_agent is not None and user_agent.startswith(signature.user_agent_prefix)
    ):
        stripped = signature.header_names
        return tuple(pair for pair in headers if pair[0] not in stripped)

    return headers


class FallbackStep(Enum):
    """Cascade step that produced a response."""

    EXACT = 1
    BODY_IGNORED = 2
    TRANSPORT_HEADERS_CLEARED = 3
    HEADERS_IGNORED = 4
    BODY_IGNORED_TRANSPORT_HEADERS_CLEARED = 5
    BODY_AND_HEADERS_IGNORED = 6
    NOT_FOUND = 7


@dataclass
class MatchResult:
    """Result of matching a request."""

    matched: bool
    response: ResponseTemplate
    step: FallbackStep
    fingerprint: Optional[RequestFingerprint] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'matched': self.matched,
            'step': self.step.value,
            'status': self.response.status_code,
            'reason': self.reason,
            'fingerprint': self.fingerprint.to_dict() if self.fingerprint else None
        }


class FallbackMatcher:
    """
    Deterministic matcher over a mock table.

    Each step is a single dictionary lookup, so the result never depends on
    the order or number of table entries. The matcher holds no mutable state
    and can be shared between request handlers.

    Example:
        matcher = FallbackMatcher(table)
        result = matcher.match(RequestFingerprint.from_wire('GET', '/users', headers, b''))

        if result.matched:
            print(f"Matched at step {result.step.value}")
    """

    def __init__(self, table: MockTable, signature: TransportSignature = DEFAULT_SIGNATURE):
        """
        Initialize matcher.

        Args:
            table: Registered mocks
            signature: Transport headers stripped at steps 3 and 5
        """
        self.table = table
        self.signature = signature

    def candidates(self, fingerprint: RequestFingerprint):
        """Yield (step, derived fingerprint) pairs in lookup order."""
        cleared = clear_transport_headers(fingerprint.headers, self.signature)

        yield FallbackStep.EXACT, fingerprint
        yield FallbackStep.BODY_IGNORED, fingerprint.replace(body=None)
        yield FallbackStep.TRANSPORT_HEADERS_CLEARED, fingerprint.replace(headers=cleared)
        yield FallbackStep.HEADERS_IGNORED, fingerprint.replace(headers=None)
        yield FallbackStep.BODY_IGNORED_TRANSPORT_HEADERS_CLEARED, fingerprint.replace(body=None, headers=cleared)
        yield FallbackStep.BODY_AND_HEADERS_IGNORED, fingerprint.replace(body=None, headers=None)

    def match(self, fingerprint: RequestFingerprint) -> MatchResult:
        """
        Find the response for an inbound request.

        Args:
            fingerprint: Fingerprint of the inbound request

        Returns:
            MatchResult; unmatched requests get a fresh 404 response
        """
        for step, candidate in self.candidates(fingerprint):
            response = self.table.get(candidate)
            if response is not None:
                return MatchResult(
                    matched=True,
                    response=response,
                    step=step,
                    fingerprint=candidate,
                    reason=f"Matched at step {step.value} ({step.name.lower()})"
                )

        return MatchResult(
            matched=False,
            response=ResponseTemplate.not_found(),
            step=FallbackStep.NOT_FOUND,
            reason=f"No mock registered for {fingerprint}"
        )

    def match_response(self, fingerprint: RequestFingerprint) -> ResponseTemplate:
        """Find the response for an inbound request, without match details."""
        return self.match(fingerprint).response
