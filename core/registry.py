"""
Registry of shared files.

The registry is built once from the command line and never modified; its
order is the order of the arguments and of the links on the index page.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from urllib.parse import quote

from core.errors import ConfigError

logger = logging.getLogger(__name__)


def encode_name(name: str) -> str:
    """Percent-encode a display name for use in a URL path."""
    return quote(name, safe="/", errors="surrogateescape")


@dataclass(frozen=True)
class FileEntry:
    """A single shared file: where it lives and the name it is served under."""
    path: str
    display_name: str


@dataclass(frozen=True)
class FileRegistry:
    entries: Tuple[FileEntry, ...]
    prefix: Optional[str] = None

    @property
    def index_path(self) -> str:
        """Path of the index page: '/' or '/<prefix>/'."""
        if self.prefix:
            return f"/{self.prefix}/"
        return "/"

    def url_for(self, entry: FileEntry) -> str:
        """Encoded absolute route of an entry, including the prefix."""
        return encode_name(self.index_path + entry.display_name)

    def find(self, display_name: str) -> Optional[FileEntry]:
        """
        Look up an entry by exact display name.

        Args:
            display_name: Decoded route segment

        Returns:
            Optional[FileEntry]: First matching entry in registry order, or None
        """
        for entry in self.entries:
            if entry.display_name == display_name:
                return entry
        return None

    def __len__(self) -> int:
        return len(self.entries)


def normalize_prefix(prefix: Optional[str]) -> Optional[str]:
    """Strip surrounding slashes; an empty prefix means no prefix."""
    if prefix is None:
        return None
    prefix = prefix.strip("/")
    return prefix or None


def build_registry(raw_args: Iterable[str], prefix: Optional[str] = None) -> FileRegistry:
    """
    Build the file registry from command line arguments.

    Args:
        raw_args: File paths in the order they were given
        prefix: Optional URL prefix all routes must start with

    Returns:
        FileRegistry: Immutable registry

    Raises:
        ConfigError: If no files were supplied
    """
    entries = []
    for arg in raw_args:
        # ./ prefixes end up in the URL and confuse clients
        if arg.startswith("./"):
            arg = arg[2:]
        entries.append(FileEntry(path=arg, display_name=arg))

    if not entries:
        raise ConfigError("No files to share")

    registry = FileRegistry(entries=tuple(entries), prefix=normalize_prefix(prefix))
    logger.debug("Registry built with %d files, index at %s", len(registry), registry.index_path)
    return registry
