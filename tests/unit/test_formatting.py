"""Unit tests for human-readable size formatting."""

import pytest

from fileserver.domain.formatting import format_file_size


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, "0.0 B"),
        (5, "5.0 B"),
        (1023, "1023.0 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (1024**2 - 1, "1024.0 KB"),
        (1024**2, "1.0 MB"),
        (1024**3, "1.0 GB"),
        (1024**4, "1.0 TB"),
        (8192 * 1024**4, "8192.0 TB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected


def test_format_file_size_is_monotonic_within_a_unit():
    sizes = range(1024, 1024**2, 4099)
    rendered = [float(format_file_size(size).split()[0]) for size in sizes]

    assert rendered == sorted(rendered)


def test_format_file_size_negative_stays_in_bytes():
    assert format_file_size(-1) == "-1.0 B"
