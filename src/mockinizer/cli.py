"""
Mockinizer CLI

Command-line interface for serving mock-definition files.

Commands:
    serve       - Start the mock server for a mock file
    check       - Validate a mock file and list its entries

Examples:
    # Serve mocks on the default port (34567)
    python3 -m mockinizer.cli serve mocks.yaml

    # Serve on another port with debug logging
    python3 -m mockinizer.cli serve mocks.yaml --port 8080 --log-level debug

    # Validate a mock file
    python3 -m mockinizer.cli check mocks.json
"""

import argparse
import dataclasses
import logging
import sys
import threading
from typing import List, Optional

from .config import MockinizerConfig
from .mock.server import MockWebServer
from .mock.table import MockTable
from .registry import Mockinizer


def build_config(args) -> MockinizerConfig:
    """
    Build server config from (in increasing precedence) environment, config
    file and command-line arguments.
    """
    config = MockinizerConfig.from_yaml(args.config) if args.config else MockinizerConfig.from_env()

    overrides = {
        'host': args.host,
        'port': args.port,
        'log_level': args.log_level,
        'ssl_certfile': args.ssl_certfile,
        'ssl_keyfile': args.ssl_keyfile,
    }
    return dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})


def cmd_serve(args, stop_event: Optional[threading.Event] = None):
    """
    Start the mock server and block until interrupted.

    Args:
        args: Parsed command-line arguments
        stop_event: Event that ends serving when set (Ctrl-C otherwise)
    """
    print(f"🎭 Mockinizer Mock Server")
    print(f"   Mock file: {args.mock_file}")

    try:
        config = build_config(args)
        table = MockTable.from_file(args.mock_file)
    except Exception as e:
        print(f"❌ Failed to load mocks: {e}")
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logging.getLogger("mockinizer").setLevel(getattr(logging, config.log_level.upper()))

    server = MockWebServer(config)
    registry = Mockinizer()
    registry.init(server, table)

    try:
        registry.start(config.port)
    except (OSError, RuntimeError) as e:
        print(f"❌ Failed to start mock server: {e}")
        sys.exit(1)

    print(f"   Listening: {server.url()}")
    print(f"   Mocks loaded: {len(table)}")
    print()

    if stop_event is None:
        stop_event = threading.Event()
    try:
        while not stop_event.wait(0.5):
            pass
    except KeyboardInterrupt:
        print("\n\n👋 Mock server stopped")
    finally:
        registry.shut_down()


def cmd_check(args):
    """
    Validate a mock file and print its entries.

    Args:
        args: Parsed command-line arguments
    """
    print(f"🔍 Mockinizer Mock Check")
    print(f"   Mock file: {args.mock_file}")

    try:
        table = MockTable.from_file(args.mock_file)
    except Exception as e:
        print(f"❌ Invalid mock file: {e}")
        sys.exit(1)

    print(f"\n📊 Found {len(table)} mocks:\n")
    for fingerprint, response in table.items():
        details = []
        if fingerprint.headers is not None:
            details.append(f"{len(fingerprint.headers)} headers")
        if fingerprint.body is not None:
            details.append("body")
        suffix = f" ({', '.join(details)})" if details else ""
        print(f"  • {fingerprint}{suffix} -> {response.status_code}")

    print(f"\n✅ {args.mock_file} is valid")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='mockinizer',
        description='Mockinizer - programmable mock HTTP server for integration tests',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Start mock HTTP server')
    serve_parser.add_argument('mock_file', help='Mock definition file (YAML or JSON)')
    serve_parser.add_argument('--host', help='Host to bind (default: localhost)')
    serve_parser.add_argument('-p', '--port', type=int, help='Port to bind (default: 34567)')
    serve_parser.add_argument('--log-level', choices=['debug', 'info', 'warning', 'error'],
                              help='Log level (default: info)')
    serve_parser.add_argument('--config', help='YAML config file')
    serve_parser.add_argument('--ssl-certfile', help='TLS certificate file (serve HTTPS)')
    serve_parser.add_argument('--ssl-keyfile', help='TLS private key file (serve HTTPS)')

    # Check command
    check_parser = subparsers.add_parser('check', help='Validate mock file')
    check_parser.add_argument('mock_file', help='Mock definition file (YAML or JSON)')

    return parser


def main(argv: Optional[List[str]] = None):
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'check':
        cmd_check(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == '__main__':
    main()
