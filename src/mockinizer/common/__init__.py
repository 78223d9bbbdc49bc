"""
Mockinizer Common Utilities

Shared helpers used across Mockinizer modules.
"""

from .utils import MockFileLoader, parse_mock_entry

__all__ = [
    'MockFileLoader',
    'parse_mock_entry',
]
