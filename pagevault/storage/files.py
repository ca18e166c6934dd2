"""
JSON file helpers shared by the page, revision and record stores.

Reads and writes run in a worker thread so request handlers only suspend
at these calls. Writes go through a temporary file and an atomic rename so
a crash never leaves a half-written document behind.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def read_json_sync(path: Path, default: Any = None) -> Any:
    """Load a JSON document, returning ``default`` when missing or unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return default
    except (json.JSONDecodeError, UnicodeDecodeError, IsADirectoryError) as e:
        logger.warning(f"Ignoring unreadable JSON document {path}: {e}")
        return default


def write_json_sync(path: Path, payload: Any) -> None:
    """Write a JSON document (2-space indented), creating parent dirs."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


async def read_json(path: Path, default: Any = None) -> Any:
    return await asyncio.to_thread(read_json_sync, path, default)


async def write_json(path: Path, payload: Any) -> None:
    await asyncio.to_thread(write_json_sync, path, payload)
