"""
Mockinizer Mock Table

Read-only mapping from request fingerprints to response templates.
"""

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Tuple, Union

from .fingerprint import RequestFingerprint
from .response import ResponseTemplate

MockEntries = Union[
    Mapping,
    Iterable[Tuple[RequestFingerprint, ResponseTemplate]]
]


class MockTable(Mapping):
    """
    Immutable table of registered mocks.

    Built once from a mapping or an iterable of (fingerprint, response) pairs.
    When the same fingerprint appears more than once the last entry wins.

    Example:
        table = MockTable([
            (RequestFingerprint('/users'), ResponseTemplate(200, body='[]')),
            (RequestFingerprint('/users', method='POST'), ResponseTemplate(201)),
        ])
        table[RequestFingerprint('/users')].status_code  # 200
    """

    def __init__(self, entries: MockEntries = ()):
        items = entries.items() if isinstance(entries, Mapping) else entries

        mocks = {}
        for fingerprint, response in items:
            if not isinstance(fingerprint, RequestFingerprint):
                raise TypeError(f"Mock key must be a RequestFingerprint, got {type(fingerprint).__name__}")
            if not isinstance(response, ResponseTemplate):
                raise TypeError(f"Mock value must be a ResponseTemplate, got {type(response).__name__}")
            mocks[fingerprint] = response

        self._mocks = MappingProxyType(mocks)

    def __getitem__(self, fingerprint: RequestFingerprint) -> ResponseTemplate:
        return self._mocks[fingerprint]

    def __iter__(self) -> Iterator[RequestFingerprint]:
        return iter(self._mocks)

    def __len__(self) -> int:
        return len(self._mocks)

    def map_responses(
        self,
        transform: Callable[[RequestFingerprint, ResponseTemplate], ResponseTemplate]
    ) -> 'MockTable':
        """Return a new table with every response passed through transform."""
        return MockTable((fingerprint, transform(fingerprint, response))
                         for fingerprint, response in self._mocks.items())

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'MockTable':
        """Load a table from a YAML or JSON mock-definition file."""
        from ..common.utils import MockFileLoader

        return cls(MockFileLoader(file_path).load())

    def __repr__(self) -> str:
        entries = ', '.join(f"{fingerprint} -> {response.status_code}"
                            for fingerprint, response in self._mocks.items())
        return f"MockTable({entries})"
