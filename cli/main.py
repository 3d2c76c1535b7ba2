"""
Command line entry point for pshare.

Usage: pshare [options] file [...]
"""

import argparse
import logging
import sys
from typing import List, Optional

from api.main import VERSION, create_app
from core.announce import announce
from core.config import build_settings
from core.content_type import ContentTypeResolver
from core.dispatcher import Dispatcher
from core.errors import ConfigError
from core.network import reachable_address, server_url
from core.registry import build_registry
from core.runner import ServerRunner
from core.tls import prepare_tls
from core.upnp import PortMapping
from observability.metrics import metrics
from observability.tracing import setup_tracing

logger = logging.getLogger("pshare")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pshare",
        description="Share the given files over HTTP.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"pshare {VERSION}")
    parser.add_argument("-b", "--bind", metavar="IP", help="bind the server to IP address")
    parser.add_argument("-p", "--port", metavar="N", help="set port to listen on (default: random)")
    parser.add_argument("-P", "--prefix", metavar="PFX", help="require all URLs to start with the prefix PFX")
    parser.add_argument("-U", "--no-upnp", dest="upnp", action="store_false", default=None,
                        help="disable port redirection using UPnP")
    parser.add_argument("-s", "--ssl", action="store_true", default=None, help="enable SSL/TLS socket")
    parser.add_argument("--ssl-cert", metavar="FILE", help="TLS certificate (default: generate a self-signed one)")
    parser.add_argument("--ssl-key", metavar="FILE", help="TLS private key")
    parser.add_argument("-Q", "--no-qrcode", dest="qrcode", action="store_false", default=None,
                        help="do not print the server URL as a QR code")
    parser.add_argument("--log-level", metavar="LEVEL", help="logging level (default: INFO)")
    parser.add_argument("files", nargs="*", metavar="file", help="files to share")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # no files supplied
    if not args.files:
        parser.print_help(sys.stderr)
        return 1

    try:
        settings = build_settings(
            args.files,
            port=args.port,
            bind=args.bind,
            prefix=args.prefix,
            ssl=args.ssl,
            ssl_cert=args.ssl_cert,
            ssl_key=args.ssl_key,
            qrcode=args.qrcode,
            upnp=args.upnp,
            log_level=args.log_level,
        )
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    port_mapping = None
    try:
        registry = build_registry(settings.files, settings.prefix)
        address = reachable_address(settings.bind)
        if settings.upnp and address:
            port_mapping = PortMapping(settings.port, address)
            address = port_mapping.open() or address
        tls = prepare_tls(settings, address)
    except ConfigError as e:
        logger.error("%s", e)
        if port_mapping:
            port_mapping.close()
        return 1

    dispatcher = Dispatcher(registry, ContentTypeResolver())
    app = create_app(dispatcher)
    setup_tracing(app, file_count=len(registry))
    if settings.metrics_port:
        metrics.start_server(settings.metrics_port, addr=settings.bind)

    runner = ServerRunner(app, settings.bind, settings.port, tls, port_mapping)
    url = server_url(settings, registry, address) if address else None
    announce(len(registry), settings.bind, settings.port, url, show_qrcode=settings.qrcode)

    return 0 if runner.run() else 1


if __name__ == "__main__":
    sys.exit(main())
