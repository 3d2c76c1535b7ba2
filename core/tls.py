"""
TLS material for HTTPS mode.

Either uses the certificate and key the user supplied, or generates a
throwaway self-signed pair with the openssl command.
"""

import logging
import os
import shutil
import subprocess
import tempfile
from typing import Optional, Tuple

from core.config import ServerSettings
from core.errors import ConfigError

logger = logging.getLogger(__name__)


class TLSMaterial:
    """
    Certificate and key paths for uvicorn.

    Generated material lives in a temporary directory removed by cleanup().
    """

    def __init__(self, certfile: str, keyfile: str, tmpdir: Optional[str] = None):
        self.certfile = certfile
        self.keyfile = keyfile
        self._tmpdir = tmpdir

    def cleanup(self):
        """Remove generated certificate files, if any."""
        if self._tmpdir:
            shutil.rmtree(self._tmpdir, ignore_errors=True)
            self._tmpdir = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()


def generate_self_signed(common_name: str, directory: str) -> Tuple[str, str]:
    """
    Generate a self-signed certificate with openssl.

    Args:
        common_name: Subject CN, usually the reachable address
        directory: Where to write server.crt and server.key

    Returns:
        Tuple[str, str]: Certificate and key paths

    Raises:
        ConfigError: If openssl is missing or fails
    """
    certfile = os.path.join(directory, "server.crt")
    keyfile = os.path.join(directory, "server.key")
    logger.info(f"Generating self-signed certificate for {common_name}")
    try:
        subprocess.run(
            [
                "openssl", "req", "-x509",
                "-newkey", "rsa:2048",
                "-keyout", keyfile,
                "-out", certfile,
                "-days", "1",
                "-nodes",
                "-subj", f"/CN={common_name}",
            ],
            check=True,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise ConfigError("openssl not found, pass --ssl-cert and --ssl-key") from e
    except subprocess.CalledProcessError as e:
        raise ConfigError(f"Certificate generation failed: {e.stderr.decode(errors='replace').strip()}") from e
    return certfile, keyfile


def prepare_tls(settings: ServerSettings, common_name: Optional[str]) -> Optional[TLSMaterial]:
    """
    Get TLS material for the server, or None when TLS is off.

    Raises:
        ConfigError: If only one of certificate/key was given, or a file is missing
    """
    if not settings.ssl:
        return None

    if settings.ssl_cert or settings.ssl_key:
        if not (settings.ssl_cert and settings.ssl_key):
            raise ConfigError("--ssl-cert and --ssl-key must be given together")
        for path in (settings.ssl_cert, settings.ssl_key):
            if not os.path.isfile(path):
                raise ConfigError(f"TLS file not found: {path}")
        return TLSMaterial(settings.ssl_cert, settings.ssl_key)

    tmpdir = tempfile.mkdtemp(prefix="pshare-tls-")
    try:
        certfile, keyfile = generate_self_signed(common_name or "localhost", tmpdir)
    except ConfigError:
        shutil.rmtree(tmpdir, ignore_errors=True)
        raise
    return TLSMaterial(certfile, keyfile, tmpdir)
