"""
Mockinizer Common Utilities

Loading of mock-definition files.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import yaml

from ..mock.fingerprint import RequestFingerprint
from ..mock.response import ResponseTemplate

YAML_SUFFIXES = ('.yaml', '.yml')


def parse_mock_entry(entry: Dict[str, Any]) -> Tuple[RequestFingerprint, ResponseTemplate]:
    """
    Convert one mock definition into a (fingerprint, response) pair.

    Example entry:
        {'request': {'path': '/users', 'method': 'POST', 'body': '{"name": "ann"}'},
         'response': {'status': 201, 'body': '{"id": 1}'}}

    Raises:
        ValueError: If the entry has no request or the request has no path
    """
    if not isinstance(entry, dict) or 'request' not in entry:
        raise ValueError(f"Mock entry must be a mapping with a 'request' key: {entry}")

    return (
        RequestFingerprint.from_dict(entry['request']),
        ResponseTemplate.from_dict(entry.get('response') or {})
    )


class MockFileLoader:
    """
    Loader for mock-definition files.

    Handles the formats Mockinizer accepts:
    - Format 1: {"mocks": [...]}  (wrapped format)
    - Format 2: [...]             (direct list format)

    Files ending in .yaml or .yml are read with PyYAML, everything else as
    JSON.

    Example:
        loader = MockFileLoader("mocks.yaml")
        table = MockTable(loader.load())
    """

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize mock file loader.

        Args:
            file_path: Path to mock-definition file
        """
        self.file_path = Path(file_path)

    def read(self) -> List[Dict[str, Any]]:
        """
        Read the raw mock entries.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the format is invalid or unrecognized
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Mock file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            if self.file_path.suffix.lower() in YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

        if isinstance(data, dict):
            if 'mocks' in data:
                return data['mocks'] or []
            raise ValueError(
                f"Unexpected format in {self.file_path}. "
                f"Expected dict with 'mocks' key or a list of mocks. "
                f"Found keys: {list(data.keys())}"
            )
        elif isinstance(data, list):
            return data
        elif data is None:
            return []
        else:
            raise ValueError(
                f"Unexpected format in {self.file_path}. "
                f"Expected dict or list, got {type(data).__name__}"
            )

    def load(self) -> List[Tuple[RequestFingerprint, ResponseTemplate]]:
        """
        Load mock entries as (fingerprint, response) pairs, in file order.

        Returns:
            List of pairs; later duplicates win once put in a MockTable
        """
        return [parse_mock_entry(entry) for entry in self.read()]
