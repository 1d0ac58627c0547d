"""
Command-line interface for the HL7 FHIR bridge.

Subcommands:
    serve            HTTP receiver plus directory poller
    process FILE...  run files once through the file route
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from hl7_bridge import configure_logging
from hl7_bridge.adapters.mock_client import InMemoryResourceClient
from hl7_bridge.bootstrap import Bridge, build_bridge
from hl7_bridge.config.loader import ConfigLoader
from hl7_bridge.config.models import BridgeConfig
from hl7_bridge.domain.entities import RawInput
from hl7_bridge.domain.errors import ExchangeFailed

logger = logging.getLogger("hl7_bridge")

DEFAULT_CONFIG = Path("config/default.yaml")


def load_bridge_config(args: argparse.Namespace) -> BridgeConfig:
    """Explicit --config, else config/default.yaml if present, else defaults."""
    loader = ConfigLoader(base_path=Path(args.base_path))
    if args.config:
        return loader.load(args.config, args.profile)
    if (Path(args.base_path) / DEFAULT_CONFIG).exists():
        return loader.load(DEFAULT_CONFIG, args.profile)
    return loader.load_from_dict({})


def make_bridge(args: argparse.Namespace, config: BridgeConfig) -> Bridge:
    client = InMemoryResourceClient() if args.dry_run else None
    return build_bridge(config, client=client, base_path=Path(args.base_path))


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the HTTP receiver and the directory poller until interrupted."""
    import uvicorn

    config = load_bridge_config(args)
    bridge = make_bridge(args, config)

    poller = None
    if config.file_ingress.enabled:
        poller = bridge.create_poller()
        poller.start()

    try:
        if config.http_ingress.enabled:
            uvicorn.run(
                bridge.create_app(),
                host=args.host or config.http_ingress.host,
                port=args.port or config.http_ingress.port,
                log_level=config.logging.level.lower(),
            )
        elif poller is not None:
            poller.join()
        else:
            print("Error: both ingresses are disabled", file=sys.stderr)
            return 1
    except KeyboardInterrupt:
        pass
    finally:
        if poller is not None:
            poller.stop()
        bridge.close()
    return 0


def cmd_process(args: argparse.Namespace) -> int:
    """Run each file through the file route; 1 if any exchange was Fatal."""
    config = load_bridge_config(args)
    bridge = make_bridge(args, config)

    failed = 0
    try:
        for name in args.files:
            path = Path(name)
            try:
                payload = path.read_bytes()
            except OSError as e:
                print(f"Error: cannot read {path}: {e}", file=sys.stderr)
                failed += 1
                continue

            try:
                exchange = bridge.file_pipeline.process(
                    RawInput(payload=payload, source=path.name)
                )
            except ExchangeFailed as e:
                print(f"{path.name}: FATAL in {e.exchange.failed_stage}: {e}", file=sys.stderr)
                failed += 1
                continue

            print(f"{path.name}: {exchange.state.value} [{exchange.response_code}] {exchange.body}")
    finally:
        bridge.close()

    return 1 if failed else 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="hl7-bridge",
        description="HL7 v2 to FHIR Patient bridge",
    )

    parser.add_argument("--config", help="Path to YAML config (default: config/default.yaml)")
    parser.add_argument("--profile", help="Profile from config/profiles to merge")
    parser.add_argument("--base-path", default=".", help="Base path for relative config paths")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Use the in-memory FHIR client instead of the configured server",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run HTTP receiver and directory poller")
    serve_parser.add_argument("--host", help="Override http_ingress.host")
    serve_parser.add_argument("--port", type=int, help="Override http_ingress.port")
    serve_parser.set_defaults(func=cmd_serve)

    process_parser = subparsers.add_parser("process", help="Process HL7 files once")
    process_parser.add_argument("files", nargs="+", metavar="FILE", help="HL7 message files")
    process_parser.set_defaults(func=cmd_process)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
