import pytest
import os
import sys

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.content_type import ContentTypeResolver, DEFAULT_CONTENT_TYPES, FALLBACK_CONTENT_TYPE


@pytest.fixture
def resolver():
    """Resolver with the built-in table."""
    return ContentTypeResolver()


@pytest.mark.parametrize("name,expected", [
    ("index.html", "text/html"),
    ("style.css", "text/css"),
    ("app.js", "application/javascript"),
    ("data.json", "application/json"),
    ("logo.png", "image/png"),
    ("photo.jpg", "image/jpeg"),
    ("anim.gif", "image/gif"),
    ("icon.svg", "image/svg+xml"),
    ("paper.pdf", "application/pdf"),
    ("notes.txt", "text/plain"),
    ("song.mp3", "audio/mpeg"),
    ("clip.mp4", "video/mp4"),
    ("bundle.zip", "application/zip"),
    ("backup.tar.gz", "application/gzip"),
])
def test_known_extensions(resolver, name, expected):
    """Test common extensions map to their standard types."""
    assert resolver.resolve(name) == expected


def test_case_insensitive(resolver):
    """Test extension lookup ignores case."""
    assert resolver.resolve("a.PNG") == resolver.resolve("a.png")
    assert resolver.resolve("README.Txt") == "text/plain"


@pytest.mark.parametrize("name", ["noext", "archive.unknownext", "trailingdot.", "dir.d/file", ""])
def test_fallback(resolver, name):
    """Test missing or unknown extensions use the generic type."""
    assert resolver.resolve(name) == FALLBACK_CONTENT_TYPE
    assert resolver.resolve("noext") == "application/octet-stream"


def test_path_components(resolver):
    """Test only the last path component is inspected."""
    assert resolver.resolve("docs/v1.2/manual.pdf") == "application/pdf"
    assert resolver.resolve(".hidden/readme") == FALLBACK_CONTENT_TYPE


def test_custom_table():
    """Test a custom table is normalised and read-only."""
    resolver = ContentTypeResolver({"CSV": "text/csv"}, fallback="text/plain")

    assert resolver.resolve("report.csv") == "text/csv"
    assert resolver.resolve("report.json") == "text/plain"
    with pytest.raises(TypeError):
        resolver.table["json"] = "application/json"


def test_default_table_read_only():
    """Test the built-in table cannot be changed at runtime."""
    with pytest.raises(TypeError):
        DEFAULT_CONTENT_TYPES["txt"] = "application/x-evil"


if __name__ == "__main__":
    pytest.main(["-xvs", __file__])
