"""Human-readable formatting helpers."""

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_file_size(size: float) -> str:
    """Render a byte count with one decimal place in 1024-based units."""
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.1f} {SIZE_UNITS[unit_index]}"
