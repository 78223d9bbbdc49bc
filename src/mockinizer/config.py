"""
Mockinizer Configuration

Settings for the mock server, the diagnostic headers and the transport
signature used when matching.

Configuration can come from:
- constructor arguments
- MOCKINIZER_* environment variables
- a YAML file (either a 'config:' section or a flat mapping)
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from . import __author__, __version__

DEFAULT_PORT = 34567
ENV_PREFIX = "MOCKINIZER_"


@dataclass
class MockinizerConfig:
    """Configuration for mock server behavior."""

    # Server options
    host: str = "localhost"
    port: int = DEFAULT_PORT
    log_level: str = "info"

    # Requests kept for take_request() (0 = unlimited)
    recording_limit: int = 1000

    # TLS (both set = serve HTTPS)
    ssl_certfile: Optional[str] = None
    ssl_keyfile: Optional[str] = None

    # Diagnostic server header
    version: str = __version__
    author: str = __author__

    # Transport signature
    authority_header: str = "host"
    scheme_header: str = "x-forwarded-proto"
    accept_encoding: str = "gzip"
    user_agent_prefix: str = "python-requests/"

    def __post_init__(self):
        self.port = int(self.port)
        self.recording_limit = int(self.recording_limit)
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Port out of range: {self.port}")
        if bool(self.ssl_certfile) != bool(self.ssl_keyfile):
            raise ValueError("ssl_certfile and ssl_keyfile must be set together")

    @property
    def signature(self):
        """TransportSignature built from the signature fields."""
        from .mock.matcher import TransportSignature

        return TransportSignature(
            authority_header=self.authority_header,
            scheme_header=self.scheme_header,
            accept_encoding=self.accept_encoding,
            user_agent_prefix=self.user_agent_prefix
        )

    @property
    def ssl_enabled(self) -> bool:
        return bool(self.ssl_certfile and self.ssl_keyfile)

    @property
    def scheme(self) -> str:
        return "https" if self.ssl_enabled else "http"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockinizerConfig':
        """Create config from a dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> 'MockinizerConfig':
        """
        Create config from MOCKINIZER_* environment variables.

        Example:
            MOCKINIZER_PORT=40000 MOCKINIZER_LOG_LEVEL=debug pytest
        """
        env = os.environ if env is None else env
        data = {}
        for f in fields(cls):
            value = env.get(ENV_PREFIX + f.name.upper())
            if value is not None:
                data[f.name] = value
        return cls.from_dict(data)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'MockinizerConfig':
        """Load config from YAML file."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Expected a mapping in {yaml_path}, got {type(data).__name__}")

        return cls.from_dict(data.get('config', data))
