"""
Command-line entry point for the credential relay.

Settings come from RELAY_* environment variables; command-line flags
override them.
"""
import argparse
import dataclasses
import logging
import sys
from typing import List, Optional

from .config import NetworkConfig, RelayConfig
from .exceptions import RelayError
from .server import run_server
from .version import __version__

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="credential-relay",
        description="Credential-gated JSON-RPC transaction relay.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        help="Logging level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the JSON-RPC server")
    serve.add_argument("--host", help="Interface to bind")
    serve.add_argument("--port", type=int, help="Port to listen on")
    serve.add_argument("--network", help="Network name from networks.json")
    serve.add_argument("--rpc-url", help="Ledger JSON-RPC endpoint (overrides the network default)")
    serve.add_argument("--keystore", help="Path to an encrypted V3 keystore file")
    serve.add_argument("--workers", type=int, help="Number of request worker threads")

    subparsers.add_parser("networks", help="List bundled networks")
    return parser


def config_from_args(args: argparse.Namespace, base: Optional[RelayConfig] = None) -> RelayConfig:
    """Overlay command-line flags on top of the environment configuration."""
    config = base or RelayConfig.from_env()
    overrides = {
        name: getattr(args, name)
        for name in ("host", "port", "network", "rpc_url", "keystore", "workers")
        if getattr(args, name, None) is not None
    }
    return dataclasses.replace(config, **overrides)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    if args.command == "networks":
        for name, network in sorted(NetworkConfig.load_networks().items()):
            print(f"{name}\tchain {network['chainId']}\t{network['credentialContract']}")
        return 0

    try:
        config = config_from_args(args)
        logger.debug(f"Starting with {config!r}")
        run_server(config)
    except (RelayError, ValueError, OSError) as e:
        logger.error(f"Relay failed to start: {e}")
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
