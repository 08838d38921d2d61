"""
HAR loading and validation.
"""

import json
import sys
from pathlib import Path
from typing import TextIO

from pydantic import ValidationError

from .models import HARFile


INVALID_JSON_MESSAGE = (
    "Invalid JSON format. Please ensure the file is a valid HAR file "
    "exported from browser DevTools."
)
INVALID_STRUCTURE_MESSAGE = (
    "Invalid HAR file structure. The file appears to be JSON but doesn't match "
    "the HAR (HTTP Archive) format. Please export a HAR file from your "
    "browser's Network tab."
)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def strict_loads(text: str):
    """
    json.loads that rejects NaN / Infinity literals.

    Raises:
        ValueError: If text is not strict JSON
    """
    return json.loads(text, parse_constant=_reject_constant)


# ============================================================================
# HAR LOADING AND VALIDATION
# ============================================================================

def parse_har_text(content: str) -> HARFile:
    """
    Parse and validate HAR JSON text.

    Args:
        content: Raw HAR file contents

    Returns:
        Validated HARFile

    Raises:
        ValueError: If the text is not JSON or not HAR-shaped
    """
    try:
        data = strict_loads(content)
    except (ValueError, RecursionError) as e:
        raise ValueError(INVALID_JSON_MESSAGE) from e

    try:
        return HARFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(INVALID_STRUCTURE_MESSAGE) from e


def load_har_file(har_path: Path) -> HARFile:
    """
    Load HAR file from disk with validation.

    Args:
        har_path: Path to HAR file

    Returns:
        Validated HARFile

    Raises:
        ValueError: If HAR format is invalid or the file can't be read
        FileNotFoundError: If file doesn't exist
    """
    har_path = Path(har_path)
    if not har_path.exists():
        raise FileNotFoundError(
            f"File not found: {har_path}\n\nPlease check the file path and try again."
        )

    try:
        with open(har_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ValueError(f"Unable to read file: {har_path}\n\nError: {e}") from e

    return parse_har_text(content)


def read_har_from_stdin(stream: TextIO = None) -> HARFile:
    """Read a whole HAR document from stdin (or the given stream)."""
    stream = stream if stream is not None else sys.stdin
    return parse_har_text(stream.read())
