"""HTML rendering of directory listings."""

import html
import os
import posixpath
import urllib.parse
from dataclasses import dataclass

from fileserver.bootstrap.config import ASSET_PREFIX
from fileserver.domain.formatting import format_file_size

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Directory listing for {title}</title>
    <link rel="stylesheet" href="{asset_prefix}styles.css">
</head>
<body>
    <div class="header">
        <h1>Directory listing for {title}</h1>
    </div>
    <ul>
        {items}
    </ul>
    <button class="upload-btn" id="uploadBtn">+</button>
    <div class="upload-overlay" id="uploadOverlay">
        <div class="upload-modal">
            <button class="close-btn" id="closeBtn">&times;</button>
            <h2>Upload Files</h2>
            <div class="drop-area" id="dropArea">
                Drag &amp; drop files here or click to browse
            </div>
            <input type="file" class="file-input" id="fileInput" multiple>
            <div class="progress" id="progress">
                <div class="progress-bar" id="progressBar"></div>
            </div>
        </div>
    </div>
    <script src="{asset_prefix}script.js"></script>
</body>
</html>
"""


@dataclass
class DirectoryEntry:
    """One row of a directory listing; ``href`` is already percent-encoded."""

    name: str
    is_directory: bool
    size: int
    href: str


def _quote_path(request_path: str) -> str:
    return urllib.parse.quote(request_path, safe="/")


def _read_entries(dir_path: str, request_path: str) -> list[DirectoryEntry]:
    entries = []
    base = _quote_path(request_path)
    with os.scandir(dir_path) as iterator:
        for item in iterator:
            stat_result = os.stat(item.path)
            href = posixpath.join(base, urllib.parse.quote(item.name, safe=""))
            entries.append(
                DirectoryEntry(
                    name=item.name,
                    is_directory=item.is_dir(),
                    size=stat_result.st_size,
                    href=href,
                )
            )
    return entries


def _parent_href(request_path: str) -> str:
    return _quote_path(posixpath.dirname(request_path.rstrip("/")) or "/")


def render_directory_listing(dir_path: str, request_path: str) -> str:
    """Render ``dir_path`` as an HTML page with links relative to ``request_path``.

    The parent link comes first (omitted at ``/``), then subdirectories,
    then files with their formatted sizes, each group in read order.
    """
    items = []
    if request_path != "/":
        items.append(
            f'<li><a href="{html.escape(_parent_href(request_path))}">📁 ../</a></li>'
        )

    entries = _read_entries(dir_path, request_path)
    for entry in entries:
        if entry.is_directory:
            items.append(
                f'<li><a href="{html.escape(entry.href)}/">'
                f"📁 {html.escape(entry.name)}/</a></li>"
            )
    for entry in entries:
        if not entry.is_directory:
            items.append(
                f'<li><a href="{html.escape(entry.href)}">'
                f"📄 {html.escape(entry.name)}</a>"
                f' <span class="size">({format_file_size(entry.size)})</span></li>'
            )

    return PAGE_TEMPLATE.format(
        title=html.escape(request_path),
        asset_prefix=ASSET_PREFIX,
        items="\n        ".join(items),
    )
