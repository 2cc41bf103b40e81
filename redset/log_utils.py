"""
log_utils.py — Logging setup and request redaction.

Requests to the image model carry several megabytes of inline image data.
describe_parts() renders a request for the debug log with every image
replaced by a short placeholder, so logs stay readable.
"""

from __future__ import annotations

import logging
from typing import Iterable

from google.genai import types
from rich.logging import RichHandler

TEXT_LOG_LIMIT = 5000


def setup_logging(verbose: bool = False) -> None:
    """Route all log records through rich. Call once from the entry point."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(name)s — %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # The SDK's HTTP stack is chatty at DEBUG
    for noisy in ("httpx", "httpcore", "google_genai"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def describe_part(part: types.Part) -> str:
    blob = part.inline_data
    if blob is not None:
        size = len(blob.data or b"")
        return f"[image {blob.mime_type or 'unknown'}, {size} bytes]"
    text = part.text or ""
    if len(text) > TEXT_LOG_LIMIT:
        return f"{text[:TEXT_LOG_LIMIT]}... [truncated, {len(text)} chars total]"
    return text


def describe_parts(parts: Iterable[types.Part]) -> str:
    lines = [f"  {i}: {describe_part(p)}" for i, p in enumerate(parts)]
    return "\n".join(lines)
