# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Exceptions raised by the include usage analysis pipeline.

Only SourceSyntaxError and ResourceLimitExceeded abort the analysis of a
file. Unresolvable headers and cyclic local includes are reported as
AnalysisWarning values instead (see diagnostics.py).
"""

from typing import Optional


class IncludeAuditError(Exception):
    """Base class for errors that abort the analysis of one file."""

    def __init__(self, message: str, source_id: Optional[str] = None, line: Optional[int] = None):
        self.message = message
        self.source_id = source_id
        self.line = line
        super().__init__(self._format())

    def _format(self) -> str:
        location = self.source_id or "<memory>"
        if self.line is not None:
            location = f"{location}:{self.line}"
        return f"{location}: {self.message}"


class SourceSyntaxError(IncludeAuditError):
    """Raised for unbalanced conditionals or braces and unterminated literals."""

    pass


class ResourceLimitExceeded(IncludeAuditError):
    """Raised when a file exceeds the per-file parse step budget."""

    def __init__(self, limit: int, source_id: Optional[str] = None, line: Optional[int] = None):
        self.limit = limit
        super().__init__(f"parse step budget of {limit} exceeded", source_id, line)
