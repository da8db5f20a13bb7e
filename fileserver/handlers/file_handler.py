"""File and packaged-asset serving handlers."""

import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterator

from fileserver.bootstrap.config import ASSET_PREFIX, SECURITY_HEADERS, Config
from fileserver.domain.correlation_id import CorrelationLoggerAdapter
from fileserver.domain.errors import NotFoundError
from fileserver.domain.http_types import HttpResponse
from fileserver.domain.mime_types import content_type_for_path
from fileserver.domain.response_builders import streaming_response
from fileserver.pipeline.context import RequestContext

FILE_LOGGER = CorrelationLoggerAdapter(
    logging.getLogger("fileserver.handlers.file"), {}
)

ASSETS_DIR = Path(__file__).resolve().parent.parent / "assets"
CHUNK_SIZE = 65536


class FileChunkStream:
    """Iterates an already opened file in fixed-size chunks.

    The file is closed on exhaustion or on ``close()``, whether or not
    iteration ever started.
    """

    def __init__(self, file_handle: BinaryIO, chunk_size: int = CHUNK_SIZE) -> None:
        self._file = file_handle
        self._chunk_size = chunk_size

    @property
    def closed(self) -> bool:
        return self._file.closed

    def __iter__(self) -> Iterator[bytes]:
        return self

    def __next__(self) -> bytes:
        if self._file.closed:
            raise StopIteration
        chunk = self._file.read(self._chunk_size)
        if not chunk:
            self.close()
            raise StopIteration
        if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
            FILE_LOGGER.debug(
                "File chunk sent",
                extra={"event": "file_chunk_sent", "bytes_out": len(chunk)},
            )
        return chunk

    def close(self) -> None:
        self._file.close()


def _open_stream(context: RequestContext, filepath: Path) -> HttpResponse:
    # Opened here so a permission error surfaces before headers are written.
    file_handle = open(filepath, "rb")  # pylint: disable=consider-using-with
    if FILE_LOGGER.logger.isEnabledFor(logging.DEBUG):
        FILE_LOGGER.debug(
            "File streaming started",
            extra={"event": "file_streaming_started", "path": filepath.as_posix()},
        )
    return streaming_response(
        FileChunkStream(file_handle),
        content_type_for_path(filepath),
        context.headers,
        SECURITY_HEADERS,
    )


def serve_file(context: RequestContext, config: Config) -> HttpResponse:
    """Stream a regular file from under the served root."""
    del config
    return _open_stream(context, Path(context.resolved_path))


def serve_asset(context: RequestContext, config: Config) -> HttpResponse:
    """Stream one of the listing page's packaged static assets."""
    del config
    asset_name = context.raw_path[len(ASSET_PREFIX) :]
    asset_root = os.path.normpath(ASSETS_DIR)
    asset_path = os.path.normpath(os.path.join(asset_root, asset_name.lstrip("/\\")))
    if not asset_path.startswith(asset_root + os.sep) or not os.path.isfile(
        asset_path
    ):
        FILE_LOGGER.info(
            "Asset not found",
            extra={"event": "asset_not_found", "path": asset_name},
        )
        raise NotFoundError()
    return _open_stream(context, Path(asset_path))
