# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Header resolver callbacks.

A resolver maps a header path, as written in an include directive, to the
header's text, or to None when it declines. Resolvers may also raise OSError,
which callers treat as declining.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

HeaderResolver = Callable[[str], Optional[str]]

# Headers larger than this are declined rather than read
_MAX_HEADER_SIZE_BYTES = 10_000_000


def read_source_text(path: Union[str, Path]) -> str:
    """Read a source file as UTF-8, falling back to latin-1.

    Raises:
        OSError: If the file cannot be read.
    """
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        logger.debug(f"{path} is not valid UTF-8, reading as latin-1")
        return path.read_text(encoding="latin-1")


class SearchPathResolver:
    """Resolves quoted headers against an ordered list of directories.

    A header resolves only to a file inside one of the search directories:
    absolute paths and paths escaping the directories through ".." are
    declined.
    """

    def __init__(
        self, search_paths: Iterable[Union[str, Path]], max_size: int = _MAX_HEADER_SIZE_BYTES
    ):
        self.search_paths: List[Path] = [Path(p).resolve() for p in search_paths]
        self.max_size = max_size

    def find(self, header: str) -> Optional[Path]:
        """Return the first matching file for header, or None."""
        if Path(header).is_absolute():
            logger.debug(f"Declining absolute header path {header}")
            return None

        for directory in self.search_paths:
            candidate = (directory / header).resolve()
            if not candidate.is_relative_to(directory):
                logger.debug(f"Declining {header}: escapes {directory}")
                continue
            if candidate.is_file():
                return candidate
        return None

    def __call__(self, header: str) -> Optional[str]:
        path = self.find(header)
        if path is None:
            return None
        size = path.stat().st_size
        if size > self.max_size:
            logger.warning(f"Header too large, not parsed: {path} ({size} bytes > {self.max_size})")
            return None
        return read_source_text(path)

    def __repr__(self) -> str:
        return f"SearchPathResolver({[str(p) for p in self.search_paths]})"


class MappingResolver:
    """Serves header text from an in-memory mapping."""

    def __init__(self, headers: Optional[Dict[str, str]] = None):
        self.headers: Dict[str, str] = dict(headers or {})

    def add(self, header: str, text: str) -> None:
        self.headers[header] = text

    def __call__(self, header: str) -> Optional[str]:
        return self.headers.get(header)


def first_of(*resolvers: Optional[HeaderResolver]) -> HeaderResolver:
    """Combine resolvers: the first one returning text wins.

    A resolver raising OSError counts as declining.
    """
    chain = [r for r in resolvers if r is not None]

    def resolve(header: str) -> Optional[str]:
        for resolver in chain:
            try:
                text = resolver(header)
            except OSError as e:
                logger.debug(f"Resolver {resolver!r} failed for {header}: {e}")
                continue
            if text is not None:
                return text
        return None

    return resolve
