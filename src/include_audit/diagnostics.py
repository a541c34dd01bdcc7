# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Structured non-fatal warnings produced during analysis.

Conditions that degrade a result without aborting the file are reported as
AnalysisWarning values attached to the header lookup (HeaderSymbolSet) and
to the ClassificationResult of every include of that header.

Warning Format:
- type: Warning identifier (see WarningType)
- header: Header path the warning is about
- message: Human-readable summary
- source_id: File containing the include that triggered the warning
- line: Line of that include (optional)
- timestamp: ISO 8601 timestamp
- explanation: Actionable guidance for the warning type (optional)
- metadata: Additional type-specific fields
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class WarningType:
    """Identifiers of non-fatal analysis conditions."""

    UNRESOLVABLE_HEADER = "unresolvable_header"
    UNPARSABLE_HEADER = "unparsable_header"
    CYCLIC_LOCAL_INCLUDE = "cyclic_local_include"
    INCLUDE_DEPTH_EXCEEDED = "include_depth_exceeded"
    COMPUTED_INCLUDE = "computed_include"
    LOCAL_INCLUDES_NOT_FOLLOWED = "local_includes_not_followed"


WARNING_GUIDANCE: Dict[str, str] = {
    WarningType.UNRESOLVABLE_HEADER: (
        "The header text was not available, so the symbols it provides are unknown. "
        "Add its directory to the resolver search paths or list its symbols under "
        "extra_header_symbols to get a definite verdict."
    ),
    WarningType.UNPARSABLE_HEADER: (
        "The header could not be parsed (unbalanced conditionals or braces, unterminated "
        "literal, or parse budget exhausted). Its symbols are treated as unknown."
    ),
    WarningType.CYCLIC_LOCAL_INCLUDE: (
        "Local headers include each other in a cycle. The cycle was cut at the repeated "
        "header, which was already being collected, so the symbol set stays complete."
    ),
    WarningType.INCLUDE_DEPTH_EXCEEDED: (
        "Nested local includes went deeper than max_local_include_depth. Headers below the "
        "limit were not parsed, so the symbols of the outer header are treated as unknown."
    ),
    WarningType.COMPUTED_INCLUDE: (
        "The include names its header through a macro, which is not expanded. "
        "The directive is classified as indeterminate."
    ),
    WarningType.LOCAL_INCLUDES_NOT_FOLLOWED: (
        "The header includes other local headers and follow_local_includes is disabled, "
        "so the symbols it re-exports are unknown. Enable follow_local_includes or list "
        "its symbols under extra_header_symbols."
    ),
}

WARNING_DISPLAY_NAMES: Dict[str, str] = {
    WarningType.UNRESOLVABLE_HEADER: "Unresolvable header",
    WarningType.UNPARSABLE_HEADER: "Unparsable header",
    WarningType.CYCLIC_LOCAL_INCLUDE: "Cyclic local include",
    WarningType.INCLUDE_DEPTH_EXCEEDED: "Include depth exceeded",
    WarningType.COMPUTED_INCLUDE: "Computed include",
    WarningType.LOCAL_INCLUDES_NOT_FOLLOWED: "Local includes not followed",
}


@dataclass
class AnalysisWarning:
    """A structured, non-fatal analysis warning."""

    type: str
    header: str
    message: str
    source_id: str = "<memory>"
    line: Optional[int] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def explanation(self) -> Optional[str]:
        return WARNING_GUIDANCE.get(self.type)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dictionary.

        Returns:
            Dictionary with all fields, excluding None values for optional fields.
        """
        result: Dict[str, Any] = {
            "type": self.type,
            "header": self.header,
            "message": self.message,
            "source_id": self.source_id,
            "timestamp": self.timestamp,
        }
        if self.line is not None:
            result["line"] = self.line
        if self.explanation is not None:
            result["explanation"] = self.explanation
        if self.metadata:
            result["metadata"] = self.metadata
        return result

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisWarning":
        """Create an AnalysisWarning from a dictionary.

        Raises:
            KeyError: If required fields are missing.
        """
        return cls(
            type=data["type"],
            header=data["header"],
            message=data["message"],
            source_id=data.get("source_id", "<memory>"),
            line=data.get("line"),
            timestamp=data.get("timestamp", datetime.now(timezone.utc).isoformat()),
            metadata=data.get("metadata", {}),
        )

    def format_for_display(self) -> str:
        """Format the warning for terminal output.

        Example:
            Unresolvable header: src/main.cpp:3
              "spdlog/spdlog.h" could not be resolved
              Guidance: The header text was not available, ...
        """
        location = self.source_id if self.line is None else f"{self.source_id}:{self.line}"
        display_name = WARNING_DISPLAY_NAMES.get(self.type, self.type)
        lines = [f"{display_name}: {location}", f"  {self.message}"]
        if self.explanation:
            lines.append(f"  Guidance: {self.explanation}")
        return "\n".join(lines)
