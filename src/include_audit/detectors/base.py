# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Base interface for symbol usage detector plugins.

Detectors inspect the scoped token stream one position at a time. Two
extraction modes are supported:
1. Usage mode: detect() returns SymbolUsage objects for code being analyzed
2. Declaration mode: extract_declarations() returns the names a header introduces

Detectors run in priority order at every token position. A detector that
consumes tokens claims them through the ExtractionContext, and lower-priority
detectors skip claimed positions, so each token yields at most one usage.
"""

import re
from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from include_audit.models import Declaration, SymbolUsage, Token, TokenKind, UsageOrigin

_MACRO_NAME_RE = re.compile(r"^_*[A-Z][A-Z0-9_]+$")

MEMBER_ACCESS = frozenset([".", "->", ".*", "->*"])


def is_macro_like(name: str) -> bool:
    """Return True for upper-case names such as DEBUG_PRINT or FILENAME_MAX."""
    return bool(_MACRO_NAME_RE.match(name))


class ExtractionContext:
    """Shared state for one pass of the detectors over a token stream."""

    def __init__(
        self,
        tokens: Sequence[Token],
        source_id: str = "<memory>",
        origin: str = UsageOrigin.CODE,
        allow_scope_updates: bool = True,
        excluded_names: FrozenSet[str] = frozenset(),
    ):
        """Initialize the context.

        Args:
            tokens: The token stream being walked.
            source_id: Identifier of the file, for logging.
            origin: UsageOrigin recorded on every usage.
            allow_scope_updates: Whether using-directives may modify scope alias
                tables. Disabled for macro bodies, which are not in any scope.
            excluded_names: Names never recorded (macro parameters).
        """
        self.tokens = tokens
        self.source_id = source_id
        self.origin = origin
        self.allow_scope_updates = allow_scope_updates
        self.excluded_names = excluded_names
        self._claimed: Set[int] = set()
        self._paren_depths: Optional[List[int]] = None
        self._closing_braces: Optional[Dict[int, int]] = None

    def token(self, index: int) -> Optional[Token]:
        if 0 <= index < len(self.tokens):
            return self.tokens[index]
        return None

    def text(self, index: int) -> str:
        token = self.token(index)
        return token.text if token is not None else ""

    def is_identifier(self, index: int) -> bool:
        token = self.token(index)
        return token is not None and token.kind == TokenKind.IDENTIFIER

    def paren_depth(self, index: int) -> int:
        """Number of "(" still open at index since the last ";", "{" or "}"."""
        if self._paren_depths is None:
            self._index_structure()
        return self._paren_depths[index]

    def closing_brace(self, index: int) -> Optional[int]:
        """Index of the "}" matching the "{" at index, or None."""
        if self._closing_braces is None:
            self._index_structure()
        return self._closing_braces.get(index)

    def _index_structure(self) -> None:
        # one forward pass for both tables
        depths: List[int] = []
        closing: Dict[int, int] = {}
        open_braces: List[int] = []
        depth = 0
        for i, token in enumerate(self.tokens):
            depths.append(depth)
            text = token.text
            if text == "(":
                depth += 1
            elif text == ")":
                depth -= 1
            elif text in (";", "{", "}"):
                depth = 0
                if text == "{":
                    open_braces.append(i)
                elif text == "}" and open_braces:
                    closing[open_braces.pop()] = i
        self._paren_depths = depths
        self._closing_braces = closing

    def claim(self, start: int, end: Optional[int] = None) -> None:
        """Mark tokens start..end (inclusive) as consumed."""
        self._claimed.update(range(start, (start if end is None else end) + 1))

    def is_claimed(self, index: int) -> bool:
        return index in self._claimed

    def read_qualified(self, index: int) -> Tuple[List[str], int]:
        """Read an identifier chain a::b::c starting at index.

        A leading "::" is skipped and "::template" is tolerated.

        Returns:
            Tuple of (name parts, index of the last consumed token). Parts are
            empty when no identifier starts at index.
        """
        i = index
        if self.text(i) == "::":
            i += 1
        parts: List[str] = []
        last = index
        while self.is_identifier(i):
            parts.append(self.text(i))
            last = i
            if self.text(i + 1) != "::":
                break
            if self.is_identifier(i + 2):
                i += 2
            elif self.text(i + 2) == "template" and self.is_identifier(i + 3):
                i += 3
            else:
                break
        return parts, last

    def make_usage(
        self, name: str, kind: str, token: Token, qualified_name: Optional[str] = None
    ) -> SymbolUsage:
        """Build a usage, expanding it through the scope alias tables."""
        return SymbolUsage(
            name=name,
            kind=kind,
            line=token.line,
            scope=token.scope,
            branch=token.branch,
            qualified_name=qualified_name,
            origin=self.origin,
            aliases=alias_spellings(token, name, qualified_name),
        )


def alias_spellings(token: Token, name: str, qualified_name: Optional[str]) -> Tuple[str, ...]:
    """Spellings a usage may also match through using-directives and namespace aliases."""
    scope = token.scope
    spellings: List[str] = []
    if qualified_name is None:
        target = scope.resolve_using_name(name)
        if target is not None:
            spellings.append(target)
        for namespace in scope.visible_namespaces():
            spellings.append(f"{namespace}::{name}")
    else:
        first, _, rest = qualified_name.partition("::")
        target = scope.resolve_namespace_alias(first)
        if target is not None and rest:
            spellings.append(f"{target}::{rest}")
        for namespace in scope.visible_namespaces():
            spellings.append(f"{namespace}::{qualified_name}")
    return tuple(dict.fromkeys(spellings))


def chain_usages(
    context: ExtractionContext,
    parts: List[str],
    token: Token,
    final_kind: str,
    qualifier_kind: str,
) -> List[SymbolUsage]:
    """Usages for every component of a qualified name a::b::c.

    Leading components are recorded as qualifiers; the last one carries the
    full qualified name.
    """
    usages: List[SymbolUsage] = []
    for position, part in enumerate(parts):
        qualified = "::".join(parts[: position + 1]) if position > 0 else None
        kind = final_kind if position == len(parts) - 1 else qualifier_kind
        usages.append(context.make_usage(part, kind, token, qualified))
    return usages


class UsageDetector(ABC):
    """Abstract base class for symbol usage detector plugins.

    Design:
    - Detectors are stateless; per-pass state lives in ExtractionContext
    - Higher priority detectors execute first at each token position
    - A detector that returns usages or claims the current position ends
      dispatch for that position
    """

    @abstractmethod
    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        """Detect usages starting at tokens[index].

        Args:
            tokens: The token stream.
            index: Position to inspect.
            context: Shared pass state (claims, alias expansion).

        Returns:
            List of usages. Empty list if the pattern does not match.
        """
        pass

    @abstractmethod
    def priority(self) -> int:
        """Return detector priority for execution order.

        Priority Guidelines:
        - 100+: Detectors that change lookup state (using-directives)
        - 50-99: Multi-token patterns (operators, qualified names, macros)
        - 0-49: Single identifier fallbacks

        Returns:
            Integer priority value. Higher values execute first.
        """
        pass

    @abstractmethod
    def name(self) -> str:
        """Return detector name for logging and debugging."""
        pass

    def supports_usage_detection(self) -> bool:
        return True

    def supports_declaration_extraction(self) -> bool:
        """Check if this detector can report declarations for header parsing."""
        return False

    def extract_declarations(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[Declaration]:
        """Extract names declared at tokens[index].

        Raises:
            NotImplementedError: If detector doesn't support declaration extraction.
                Check supports_declaration_extraction() before calling.
        """
        raise NotImplementedError(
            f"{self.name()} does not support declaration extraction. "
            "Check supports_declaration_extraction() before calling."
        )
