"""
Small helpers shared by the indexer, the stores and the CLI.

`simple_string_hash` feeds fallback question ids; the rest is formatting and
file handling.
"""

import json
from pathlib import Path
from typing import Any

from mathsearch.shared.logging import get_logger

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Hashing Functions
# ─────────────────────────────────────────────────────────────────────────────


def simple_string_hash(text: str) -> int:
    """
    Compute a 32-bit polynomial string hash (``h = h * 31 + code point``).

    Not collision resistant; only used to make generated ids readable and
    roughly distinct.

    Args:
        text: Text to hash

    Returns:
        Non-negative integer below 2**31 (+1 for the most negative value)

    Example:
        >>> simple_string_hash("a")
        97
    """
    h = 0
    for char in text:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    # Reinterpret as signed 32-bit before taking the magnitude
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


# ─────────────────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────────────────


def truncate_text(text: str, max_length: int = 50) -> str:
    """
    Shorten text for log messages.

    Example:
        >>> truncate_text("What is 5 + 3?", 7)
        'What is...'
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def format_bytes(size: int) -> str:
    """
    Format a byte count the way OpenSearch's _cat API does.

    Example:
        >>> format_bytes(2048)
        '2kb'
        >>> format_bytes(1536)
        '1.5kb'
    """
    value = float(size)
    for unit in ("b", "kb", "mb", "gb"):
        if value < 1024 or unit == "gb":
            break
        value /= 1024
    return f"{value:.1f}".rstrip("0").rstrip(".") + unit


# ─────────────────────────────────────────────────────────────────────────────
# File I/O
# ─────────────────────────────────────────────────────────────────────────────


def ensure_directory(path: Path) -> Path:
    """
    Create `path` (and parents) when missing.

    Args:
        path: Directory path

    Returns:
        The same path
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def directory_size(path: Path) -> int:
    """Total size in bytes of all files under a directory."""
    if not path.exists():
        return 0
    return sum(f.stat().st_size for f in path.rglob("*") if f.is_file())


def load_json(file_path: Path) -> Any:
    """
    Load JSON from a file.

    Raises:
        FileNotFoundError: If `file_path` is missing
        json.JSONDecodeError: If the file is not valid JSON
    """
    with open(file_path, encoding="utf-8") as f:
        return json.load(f)
