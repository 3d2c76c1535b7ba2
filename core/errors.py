"""
Exception hierarchy for pshare.

Dispatch errors carry the HTTP status they translate to and never leave the
dispatcher; ConfigError is the only failure that stops the server.
"""


class PshareError(Exception):
    """Base class for all pshare errors."""


class ConfigError(PshareError):
    """Invalid startup configuration (no files, bad port, missing TLS material)."""


class DispatchError(PshareError):
    """A request that must be answered with an HTTP error status."""

    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.__class__.__name__)
        self.detail = detail


class MethodNotAllowed(DispatchError):
    status_code = 405


class NotFound(DispatchError):
    status_code = 404
