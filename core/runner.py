"""
Server runner for pshare.

This module owns the uvicorn server: binding, TLS, and shutdown on signals.
"""

import logging
import signal
from typing import Optional

import uvicorn

from core.tls import TLSMaterial
from core.upnp import PortMapping

logger = logging.getLogger(__name__)

# SIGINT and SIGTERM are captured by uvicorn itself
EXTRA_SHUTDOWN_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGHUP", "SIGUSR1", "SIGUSR2") if hasattr(signal, name)
)


class ServerRunner:
    """
    Runs the HTTP server until a termination signal arrives.
    """

    def __init__(self, app, bind: str, port: int, tls: Optional[TLSMaterial] = None,
                 port_mapping: Optional[PortMapping] = None):
        """
        Initialize the server runner.

        Args:
            app: ASGI application to serve
            bind: Address to bind to
            port: Port to listen on
            tls: Certificate and key, None for plain HTTP
            port_mapping: UPnP mapping to remove on shutdown
        """
        self.bind = bind
        self.port = port
        self.tls = tls
        self.port_mapping = port_mapping
        self.config = uvicorn.Config(
            app,
            host=bind,
            port=port,
            ssl_certfile=tls.certfile if tls else None,
            ssl_keyfile=tls.keyfile if tls else None,
            # requests are logged by the app; keep uvicorn on the root logger
            log_config=None,
            access_log=False,
        )
        self.server = uvicorn.Server(self.config)

    def run(self) -> bool:
        """
        Serve until stopped.

        Returns:
            bool: True if the server started and shut down cleanly
        """
        for sig in EXTRA_SHUTDOWN_SIGNALS:
            signal.signal(sig, self._handle_signal)

        try:
            self.server.run()
        finally:
            for sig in EXTRA_SHUTDOWN_SIGNALS:
                signal.signal(sig, signal.SIG_DFL)
            if self.tls:
                self.tls.cleanup()
            if self.port_mapping:
                self.port_mapping.close()

        return self.server.started

    def stop(self):
        """Ask the server to finish in-flight requests and exit."""
        self.server.should_exit = True

    def _handle_signal(self, signum, frame):
        logger.warning("Terminating due to signal %s.", signal.Signals(signum).name)
        self.stop()
