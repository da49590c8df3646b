"""Formatting helpers for CLI output."""

import os
from datetime import datetime, timezone

from common.types import CrudFile


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_timestamp(timestamp: int) -> str:
    """Ledger timestamp (unix seconds) as UTC ISO-8601; 0 is shown as unconfirmed."""
    if timestamp == 0:
        return "unconfirmed"
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return str(timestamp)


def format_record(record: CrudFile) -> str:
    """Multi-line description of one record."""
    lines = [
        f"Path:      {record.path}",
        f"Key:       {record.key_hex}",
        f"CID:       {record.content_id}",
        f"Timestamp: {format_timestamp(record.timestamp)}",
    ]
    if record.metadata:
        pairs = ", ".join(f"{k}={v}" for k, v in sorted(record.metadata.items()))
        lines.append(f"Metadata:  {pairs}")
    return "\n".join(lines)


def format_record_line(record: CrudFile) -> str:
    """One-line summary used by 'list'."""
    try:
        size = format_file_size(os.path.getsize(record.path))
    except OSError:
        size = "missing"
    return f"{record.path}  {size}  {record.content_id}  {format_timestamp(record.timestamp)}"
