"""
Mockinizer Mock Module

Request matching and mock serving.

This module provides:
- Request fingerprints and response templates
- The immutable mock table
- The fallback matcher and dispatcher
- FastAPI-based mock web server
"""

from .fingerprint import Method, RequestFingerprint, normalize_headers
from .response import ResponseTemplate, annotate
from .table import MockTable
from .matcher import (
    FallbackMatcher,
    FallbackStep,
    MatchResult,
    TransportSignature,
    clear_transport_headers
)
from .dispatcher import MockDispatcher, RecordedRequest
from .server import MockWebServer

__all__ = [
    # Data
    'Method',
    'RequestFingerprint',
    'normalize_headers',
    'ResponseTemplate',
    'annotate',
    'MockTable',

    # Matching
    'FallbackMatcher',
    'FallbackStep',
    'MatchResult',
    'TransportSignature',
    'clear_transport_headers',

    # Serving
    'MockDispatcher',
    'RecordedRequest',
    'MockWebServer',
]
