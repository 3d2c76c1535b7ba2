"""
Request dispatcher for pshare.

This module decides how an HTTP request is answered: the index page, one of
the registered files, or an error status. It knows nothing about the HTTP
server that calls it.
"""

import html
import logging
from dataclasses import dataclass, field
from typing import Dict
from urllib.parse import unquote

from core.content_type import ContentTypeResolver
from core.errors import DispatchError, MethodNotAllowed, NotFound
from core.registry import FileEntry, FileRegistry, encode_name

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "HEAD")
INDEX_CONTENT_TYPE = "text/html; charset=utf-8"


@dataclass
class DispatchResult:
    """Status, headers and body of a response; body is empty for HEAD."""
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class Dispatcher:
    """
    Maps requests onto the file registry.

    The dispatcher only reads its registry and resolver, so a single instance
    may be called from any number of threads at once.
    """

    def __init__(self, registry: FileRegistry, resolver: ContentTypeResolver):
        """
        Initialize the dispatcher.

        Args:
            registry: Files to serve
            resolver: Content-Type resolver used for file responses
        """
        self.registry = registry
        self.resolver = resolver

    def serve_index(self, method: str) -> DispatchResult:
        """
        Answer a request for the index page.

        Args:
            method: HTTP method of the request

        Returns:
            DispatchResult: 200 with the HTML index, or 405
        """
        try:
            self._check_method(method)
        except DispatchError as e:
            return self._error(e)

        body = self.render_index().encode("utf-8", errors="surrogateescape")
        headers = {
            "Content-Type": INDEX_CONTENT_TYPE,
            "Content-Length": str(len(body)),
        }
        return DispatchResult(200, headers, self._body_for(method, body))

    def serve_path(self, method: str, raw_path: str) -> DispatchResult:
        """
        Answer a request for any path other than the index.

        Args:
            method: HTTP method of the request
            raw_path: Percent-encoded request path, starting with '/'

        Returns:
            DispatchResult: 200 with the file content, 404 or 405
        """
        try:
            self._check_method(method)
            entry = self._match(raw_path)
            content = self._read(entry)
        except DispatchError as e:
            return self._error(e)

        headers = {
            "Content-Type": self.resolver.resolve(entry.display_name),
            "Content-Length": str(len(content)),
        }
        return DispatchResult(200, headers, self._body_for(method, content))

    def render_index(self) -> str:
        """Render the index page listing every entry in registry order."""
        items = []
        for entry in self.registry.entries:
            href = html.escape(self.registry.url_for(entry), quote=True)
            label = html.escape(entry.display_name, quote=False)
            items.append(f'<li><a href="{href}">{label}</a></li>')

        return (
            "<!DOCTYPE html>\n"
            "<html>\n"
            "<head><meta charset=\"utf-8\"><title>Shared files</title></head>\n"
            "<body>\n"
            "<h1>Shared files</h1>\n"
            "<ul>\n"
            + "\n".join(items) +
            "\n</ul>\n"
            "</body>\n"
            "</html>\n"
        )

    # --------------------------------------------------------------------------
    # Helpers
    # --------------------------------------------------------------------------
    @staticmethod
    def _check_method(method: str):
        if method not in ALLOWED_METHODS:
            raise MethodNotAllowed(f"Method {method} not allowed")

    def _match(self, raw_path: str) -> FileEntry:
        path = raw_path[1:] if raw_path.startswith("/") else raw_path

        # the prefix is matched before decoding, so %2F never acts as a separator
        prefix = self.registry.prefix
        if prefix:
            raw_prefix = encode_name(prefix) + "/"
            if not path.startswith(raw_prefix):
                raise NotFound(f"{raw_path} is outside prefix /{prefix}/")
            path = path[len(raw_prefix):]

        name = unquote(path, errors="surrogateescape")
        entry = self.registry.find(name)
        if entry is None:
            raise NotFound(f"{name} is not shared")
        return entry

    @staticmethod
    def _read(entry: FileEntry) -> bytes:
        try:
            with open(entry.path, "rb") as f:
                return f.read()
        except OSError as e:
            logger.warning("Cannot read %s: %s", entry.path, e)
            raise NotFound(f"{entry.display_name} is not readable") from e

    @staticmethod
    def _body_for(method: str, body: bytes) -> bytes:
        if method == "HEAD":
            return b""
        return body

    @staticmethod
    def _error(error: DispatchError) -> DispatchResult:
        logger.debug("Request rejected with %d: %s", error.status_code, error)
        headers = {"Content-Length": "0"}
        if isinstance(error, MethodNotAllowed):
            headers["Allow"] = ", ".join(ALLOWED_METHODS)
        return DispatchResult(error.status_code, headers)
