"""Small file helpers shared by the CLI and the history loader."""

import json
from pathlib import Path
from typing import Any


def read_text(path: str | Path | None) -> str | None:
    """Read a UTF-8 file, returning None when no path is given or the file is absent."""
    if not path:
        return None

    file_path = Path(path)
    if not file_path.is_file():
        return None

    return file_path.read_text(encoding="utf-8")


def read_json(path: str | Path | None) -> Any | None:
    """Read a JSON file, returning None when it is absent, unreadable or not valid JSON."""
    try:
        content = read_text(path)
    except (OSError, UnicodeDecodeError):
        return None

    if not content:
        return None

    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return None
