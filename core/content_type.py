"""
Content-Type resolution for shared files.

This module maps a file name's extension to a MIME type using a fixed table
built once at startup.
"""

from types import MappingProxyType
from typing import Mapping, Optional

FALLBACK_CONTENT_TYPE = "application/octet-stream"

DEFAULT_CONTENT_TYPES = MappingProxyType({
    # text
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "csv": "text/csv",
    "txt": "text/plain",
    "text": "text/plain",
    "log": "text/plain",
    "md": "text/markdown",
    "xml": "application/xml",
    "js": "application/javascript",
    "mjs": "application/javascript",
    "json": "application/json",
    "rtf": "application/rtf",
    # images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "webp": "image/webp",
    "ico": "image/vnd.microsoft.icon",
    "bmp": "image/bmp",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    # documents
    "pdf": "application/pdf",
    "epub": "application/epub+zip",
    "odt": "application/vnd.oasis.opendocument.text",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "odp": "application/vnd.oasis.opendocument.presentation",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # audio
    "mp3": "audio/mpeg",
    "ogg": "audio/ogg",
    "oga": "audio/ogg",
    "opus": "audio/opus",
    "wav": "audio/wav",
    "flac": "audio/flac",
    "m4a": "audio/mp4",
    # video
    "mp4": "video/mp4",
    "m4v": "video/mp4",
    "webm": "video/webm",
    "ogv": "video/ogg",
    "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
    "mov": "video/quicktime",
    # archives and packages
    "zip": "application/zip",
    "gz": "application/gzip",
    "tgz": "application/gzip",
    "bz2": "application/x-bzip2",
    "xz": "application/x-xz",
    "zst": "application/zstd",
    "tar": "application/x-tar",
    "7z": "application/x-7z-compressed",
    "rar": "application/vnd.rar",
    "iso": "application/x-iso9660-image",
    "apk": "application/vnd.android.package-archive",
    "deb": "application/vnd.debian.binary-package",
    "rpm": "application/x-rpm",
    "jar": "application/java-archive",
    "wasm": "application/wasm",
})


class ContentTypeResolver:
    """
    Resolve MIME types from file names.

    The lookup table is copied into a read-only mapping on construction and
    never changes afterwards, so one resolver can be shared by all requests.
    """

    def __init__(self, table: Optional[Mapping[str, str]] = None,
                 fallback: str = FALLBACK_CONTENT_TYPE):
        """
        Initialize the resolver.

        Args:
            table: Extension (lowercase, without dot) to MIME type mapping.
                Defaults to DEFAULT_CONTENT_TYPES.
            fallback: Type returned for unknown or missing extensions
        """
        if table is None:
            self.table = DEFAULT_CONTENT_TYPES
        else:
            self.table = MappingProxyType({k.lower(): v for k, v in table.items()})
        self.fallback = fallback

    def resolve(self, file_name: str) -> str:
        """
        Get the MIME type for a file name.

        Args:
            file_name: File name or path; only the last component is inspected

        Returns:
            str: MIME type, or the fallback type if the extension is unknown
        """
        base = file_name.rpartition("/")[2]
        _, dot, ext = base.rpartition(".")
        if not dot:
            return self.fallback
        return self.table.get(ext.lower(), self.fallback)
