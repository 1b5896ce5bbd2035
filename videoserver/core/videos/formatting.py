"""Human-readable formatting helpers."""

SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size_bytes: int) -> str:
    """
    Format a byte count with base-1024 units.

    Rounded to two decimals with trailing zeros dropped, so 1024 is
    "1 KB" and 1572864 is "1.5 MB". Anything past GB stays in GB.
    """
    if size_bytes <= 0:
        return "0 Bytes"

    exponent = 0
    while size_bytes >= 1024 ** (exponent + 1) and exponent < len(SIZE_UNITS) - 1:
        exponent += 1

    value = f"{size_bytes / 1024 ** exponent:.2f}".rstrip("0").rstrip(".")
    return f"{value} {SIZE_UNITS[exponent]}"
