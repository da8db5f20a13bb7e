"""Unit tests for extension-based content type lookup."""

from pathlib import Path

import pytest

from fileserver.domain.mime_types import DEFAULT_CONTENT_TYPE, content_type_for_path


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("index.html", "text/html"),
        ("styles.css", "text/css"),
        ("script.js", "application/javascript"),
        ("data.json", "application/json"),
        ("notes.txt", "text/plain"),
        ("logo.svg", "image/svg+xml"),
        ("photo.png", "image/png"),
        ("INDEX.HTML", "text/html"),
    ],
)
def test_content_type_for_known_extensions(filename, expected):
    assert content_type_for_path(filename) == expected


def test_content_type_accepts_paths():
    assert content_type_for_path(Path("/srv/files/report.pdf")) == "application/pdf"


def test_content_type_falls_back_to_octet_stream():
    assert content_type_for_path("archive.unknownext") == DEFAULT_CONTENT_TYPE
    assert content_type_for_path("Makefile") == DEFAULT_CONTENT_TYPE
