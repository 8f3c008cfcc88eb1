"""
Helper functions that turn durations and byte counts into the short strings
used in log lines and in the run report.
"""

from datetime import timedelta


def format_timedelta(td_object: timedelta) -> str:
    """
    Formats a timedelta as "HH:MM:SS".

    Args:
        td_object: The elapsed time, e.g. the wall-clock time of a batch run.

    Returns:
        The formatted string; 7261 seconds becomes "02:01:01". Anything that is
        not a timedelta yields "00:00:00".
    """
    if not isinstance(td_object, timedelta):
        return "00:00:00"

    total_seconds = int(td_object.total_seconds())
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def formatted_size(size_bytes: int) -> str:
    """
    Converts a byte count to a readable size: 1536 -> "1.50 KB", 2097152 -> "2 MB".

    Negative values are treated as zero; anything past terabytes stays in PB.
    """
    if size_bytes <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB", "PB"]
    factor = 1024.0
    size = float(size_bytes)

    for unit in units:
        if size < factor:
            if unit == "B":
                return f"{int(size)} {unit}"
            return f"{size:.2f} {unit}".replace(".00", "")
        size /= factor

    return f"{size * factor:.2f} {units[-1]}".replace(".00", "")
