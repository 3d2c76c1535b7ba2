"""
UPnP port redirection.

Asks the local Internet gateway to forward the server port, so the announced
URL can use the external address. Any failure just leaves the server
reachable on the local network only.
"""

import logging
from typing import Optional

import upnpclient

logger = logging.getLogger(__name__)

GATEWAY_SERVICES = ("WANIPConnection", "WANPPPConnection")
DISCOVERY_TIMEOUT = 2


def find_gateway_service(devices):
    """Return the first WAN connection service offering port mappings."""
    for device in devices:
        for service in device.services:
            if any(name in service.service_type for name in GATEWAY_SERVICES):
                return service
    return None


class PortMapping:
    """
    A TCP port forwarded on the gateway for the lifetime of the server.
    """

    def __init__(self, port: int, internal_ip: str, description: str = "pshare"):
        """
        Initialize the mapping.

        Args:
            port: Port to forward, same number on both sides
            internal_ip: Local address the gateway forwards to
            description: Label shown in the gateway's mapping table
        """
        self.port = port
        self.internal_ip = internal_ip
        self.description = description
        self.external_ip: Optional[str] = None
        self._service = None

    def open(self) -> Optional[str]:
        """
        Discover the gateway and add the mapping.

        Returns:
            Optional[str]: External address, or None if no mapping was made
        """
        try:
            service = find_gateway_service(upnpclient.discover(timeout=DISCOVERY_TIMEOUT))
            if service is None:
                logger.info("No UPnP gateway found")
                return None

            service.AddPortMapping(
                NewRemoteHost="",
                NewExternalPort=self.port,
                NewProtocol="TCP",
                NewInternalPort=self.port,
                NewInternalClient=self.internal_ip,
                NewEnabled="1",
                NewPortMappingDescription=self.description,
                NewLeaseDuration=0,
            )
            self._service = service
            self.external_ip = service.GetExternalIPAddress()["NewExternalIPAddress"] or None
        except Exception as e:
            logger.warning(f"UPnP port mapping failed: {e}")
            return None

        logger.info(f"UPnP: forwarding {self.external_ip}:{self.port} to {self.internal_ip}:{self.port}")
        return self.external_ip

    def close(self):
        """Remove the mapping if one was added."""
        if self._service is None:
            return
        try:
            self._service.DeletePortMapping(NewRemoteHost="", NewExternalPort=self.port, NewProtocol="TCP")
            logger.info(f"UPnP: removed mapping for port {self.port}")
        except Exception as e:
            logger.warning(f"Failed to remove UPnP mapping for port {self.port}: {e}")
        finally:
            self._service = None
