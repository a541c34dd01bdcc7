# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Operator-overload detector plugin.

Records "operator<<", "operator()", "operator new[]", "operator bool" and
user-defined literal operators as usages of the operator name, qualified by
the type they belong to: an explicit "Type::" qualifier when present,
otherwise the enclosing class.
"""

from typing import List, Optional, Sequence, Tuple

from include_audit.detectors.base import ExtractionContext, UsageDetector
from include_audit.models import SymbolUsage, Token, TokenKind, UsageKind

_BRACKET_PAIRS = {"(": ")", "[": "]"}


def read_operator_name(context: ExtractionContext, index: int) -> Tuple[Optional[str], int]:
    """Read the operator name starting at the "operator" keyword at index.

    Returns:
        Tuple of (name such as "operator<<", index of the last consumed token).
        The name is None when nothing follows the keyword.
    """
    following = context.token(index + 1)
    if following is None:
        return None, index

    text = following.text
    if text in _BRACKET_PAIRS:
        closing = _BRACKET_PAIRS[text]
        if context.text(index + 2) == closing:
            return f"operator{text}{closing}", index + 2
        return f"operator{text}", index + 1
    if text in ("new", "delete"):
        if context.text(index + 2) == "[" and context.text(index + 3) == "]":
            return f"operator {text}[]", index + 3
        return f"operator {text}", index + 1
    if following.kind == TokenKind.STRING:
        # operator""_suffix
        if context.is_identifier(index + 2):
            return f'operator""{context.text(index + 2)}', index + 2
        return 'operator""', index + 1
    if following.kind == TokenKind.PUNCT:
        return f"operator{text}", index + 1
    # conversion operator: operator bool, operator std::string
    return f"operator {text}", index + 1


class OperatorDetector(UsageDetector):
    """Detector for operator-overload names.

    Priority: 90
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        token = tokens[index]
        if token.text != "operator":
            return []

        op_name, last = read_operator_name(context, index)
        if op_name is None:
            context.claim(index)
            return []

        owner = self._owner(token, index, context)
        qualified = f"{owner}::{op_name}" if owner else None
        context.claim(index, last)
        return [context.make_usage(op_name, UsageKind.OPERATOR, token, qualified)]

    @staticmethod
    def _owner(token: Token, index: int, context: ExtractionContext) -> Optional[str]:
        if context.text(index - 1) == "::" and context.is_identifier(index - 2):
            return context.text(index - 2)
        enclosing = token.scope.enclosing_class()
        if enclosing is not None:
            return enclosing.name
        return None

    def priority(self) -> int:
        return 90

    def name(self) -> str:
        return "OperatorDetector"
