"""Fetch corpus files from a local path or an HTTP(S) URL."""

from __future__ import annotations

import logging
from pathlib import Path

import requests

from quiz.errors import CorpusLoadError

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def read_text(source: str, timeout: float = 10.0) -> str:
    """
    Read a corpus file.

    Args:
        source: Local path or http(s) URL
        timeout: Request timeout in seconds (URLs only)

    Returns:
        File contents as text

    Raises:
        CorpusLoadError: If the file is missing or the request fails
    """
    if is_url(source):
        logger.info("Loading from: %s", source)
        try:
            response = requests.get(source, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise CorpusLoadError(f"Request timed out: {source}") from e
        except requests.exceptions.ConnectionError as e:
            raise CorpusLoadError(f"Connection error: unable to reach {source}") from e

        if response.status_code != 200:
            raise CorpusLoadError(f"HTTP error! Status: {response.status_code} {response.reason} ({source})")
        return response.text

    path = Path(source)
    logger.info("Loading from: %s", path)
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise CorpusLoadError(f"Cannot read {path}: {e}") from e
