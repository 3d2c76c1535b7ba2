"""
Reachable address discovery.

Used to tell the user (and the QR code) where the server can be reached.
"""

import logging
import socket
from typing import Optional

from core.config import ServerSettings
from core.registry import FileRegistry, encode_name

logger = logging.getLogger(__name__)

WILDCARD_ADDRESSES = ("", "0.0.0.0", "::")


def get_outgoing_ip() -> Optional[str]:
    """Get the address of the interface used for outgoing traffic."""
    s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # no packet is sent, connect() on UDP only selects a route
        s.connect(("8.8.8.8", 80))
        return s.getsockname()[0]
    except OSError as e:
        logger.debug(f"Could not determine outgoing address: {e}")
        return None
    finally:
        s.close()


def reachable_address(bind: str) -> Optional[str]:
    """
    Determine the address clients should use.

    Args:
        bind: Address the server is bound to

    Returns:
        Optional[str]: The bind address if it is specific, otherwise the
            outgoing interface address, or None if unknown
    """
    if bind not in WILDCARD_ADDRESSES:
        return bind
    return get_outgoing_ip()


def server_url(settings: ServerSettings, registry: FileRegistry, address: str) -> str:
    """
    Build the URL announced at startup.

    When exactly one file is shared the URL points directly at it.
    """
    host = f"[{address}]" if ":" in address else address
    if len(registry) == 1:
        path = registry.url_for(registry.entries[0])
    else:
        path = encode_name(registry.index_path)
    return f"{settings.scheme}://{host}:{settings.port}{path}"
