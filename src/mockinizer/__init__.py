"""
Mockinizer

Programmable mock HTTP server for integration tests. Requests are matched
against registered fingerprints with a fallback cascade that tolerates
headers injected by the HTTP client stack.

Example:
    registry = Mockinizer()
    session = mockinize(requests.Session(), {
        RequestFingerprint('/users'): ResponseTemplate(200, body='[]'),
    }, registry=registry)
    registry.start()
"""

__version__ = '1.0.0'
__author__ = 'Thomas Fuchs-Martin'

from .config import MockinizerConfig
from .mock import (
    FallbackMatcher,
    FallbackStep,
    Method,
    MockDispatcher,
    MockTable,
    MockWebServer,
    RequestFingerprint,
    ResponseTemplate,
)
from .registry import Mockinizer
from .client import MockinizerAdapter, mockinize

__all__ = [
    'MockinizerConfig',
    'FallbackMatcher',
    'FallbackStep',
    'Method',
    'MockDispatcher',
    'MockTable',
    'MockWebServer',
    'RequestFingerprint',
    'ResponseTemplate',
    'Mockinizer',
    'MockinizerAdapter',
    'mockinize',
]
