"""
Startup announcement: where the server is and a QR code to get there.
"""

import io
import logging
import sys
from typing import Optional, TextIO

import qrcode

logger = logging.getLogger(__name__)


def render_qrcode(url: str) -> str:
    """
    Render a URL as a QR code made of terminal block characters.

    Args:
        url: Text to encode

    Returns:
        str: Multi-line QR code
    """
    qr = qrcode.QRCode(border=1)
    qr.add_data(url)
    qr.make(fit=True)
    out = io.StringIO()
    qr.print_ascii(out=out, invert=True)
    return out.getvalue()


def announce(file_count: int, bind: str, port: int, url: Optional[str],
             show_qrcode: bool = True, stream: TextIO = None):
    """Print the startup banner to stderr."""
    stream = stream or sys.stderr
    print(f"Ready to share {file_count} files.", file=stream)
    print(f"Bound to {bind}:{port}.", file=stream)
    if not url:
        logger.info("No reachable address found, not printing server URL")
        return
    print(f"Server reachable at: {url}", file=stream)
    if show_qrcode:
        stream.write(render_qrcode(url))
    stream.flush()
