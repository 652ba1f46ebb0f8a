"""
Source document loading.

Secondary documents arrive either as a path on disk (CLI) or as already
decoded text plus its filename (HTTP). Both end up in
``normalize_source_text`` which applies the per-extension rules.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Union

import structlog

from tabwriter.core import config
from tabwriter.core.exceptions import SourceReadError
from tabwriter.utils.async_utils import run_in_thread

logger = structlog.get_logger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".md", ".json", ".csv")


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def normalize_source_text(content: str, filename: str) -> str:
    """Convert raw file content into the text blob handed to the extractor.

    ``.txt``/``.md`` and unknown extensions pass through verbatim, ``.json``
    is pretty-printed unless the document is a bare string, and ``.csv``
    keeps only its leading lines.
    """
    ext = _extension(filename)
    if ext == ".json":
        try:
            data = json.loads(content)
        except ValueError as e:
            raise SourceReadError(f"Failed to read source file: invalid JSON ({e})") from e
        if isinstance(data, str):
            return data
        return json.dumps(data, indent=2, ensure_ascii=False)
    if ext == ".csv":
        return "\n".join(content.split("\n")[: config.EVIDENCE_CSV_MAX_LINES])
    return content


def _read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


async def read_source(path: Union[str, Path]) -> str:
    """Read *path* off the event loop and normalise it by extension.

    Raises:
        SourceReadError: missing file, permission problem, decode failure
            or malformed JSON. Not retried.
    """
    path = Path(path)
    try:
        content = await run_in_thread(_read_text, path)
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Source read failed", file=str(path), error=str(e))
        raise SourceReadError(f"Failed to read source file: {e}") from e

    text = normalize_source_text(content, path.name)
    logger.info("Source document loaded", file=path.name, chars=len(text))
    return text


class SourceDocument:
    """Handle on a secondary document: a path on disk or decoded text."""

    def __init__(self, filename: str, *, path: Union[str, Path, None] = None, text: str | None = None):
        if path is None and text is None:
            raise ValueError("SourceDocument needs a path or text")
        self.filename = filename
        self.path = Path(path) if path is not None else None
        self.text = text

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceDocument":
        return cls(Path(path).name, path=path)

    @classmethod
    def from_text(cls, text: str, filename: str = "source.txt") -> "SourceDocument":
        return cls(filename or "source.txt", text=text)

    async def load(self) -> str:
        if self.path is not None:
            return await read_source(self.path)
        return normalize_source_text(self.text or "", self.filename)

    def __repr__(self) -> str:
        origin = str(self.path) if self.path is not None else f"<{len(self.text or '')} chars>"
        return f"SourceDocument({self.filename!r}, {origin})"
