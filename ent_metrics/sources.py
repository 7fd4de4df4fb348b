"""Input sources: materialise a file or stream into a uint8 buffer."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import BinaryIO

import numpy as np

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


class EntMetricsError(Exception):
    """Base class for ent-metrics errors."""


class SourceError(EntMetricsError):
    """The input could not be read."""


def read_stream(stream: BinaryIO) -> np.ndarray:
    """Read *stream* to EOF.

    Text streams such as ``sys.stdin`` are read through their underlying
    ``buffer`` so no decoding takes place.
    """
    raw = getattr(stream, "buffer", stream)
    try:
        data = raw.read()
    except OSError as e:
        raise SourceError(f"cannot read stream: {e}") from e
    if isinstance(data, str):
        raise SourceError("stream must be opened in binary mode")
    logger.debug("read %d bytes from stream", len(data))
    return np.frombuffer(data, dtype=np.uint8).copy()


def read_path(path: str | Path) -> np.ndarray:
    """Read a whole file; ``"-"`` means standard input."""
    if str(path) == STDIN_PATH:
        return read_stream(sys.stdin)
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise SourceError(f"cannot read {path}: {e.strerror or e}") from e
    logger.debug("read %d bytes from %s", len(data), path)
    return np.frombuffer(data, dtype=np.uint8).copy()
