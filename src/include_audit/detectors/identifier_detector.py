# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Fallback detector for plain identifiers and member names."""

from typing import List, Sequence

from include_audit.detectors.base import MEMBER_ACCESS, ExtractionContext, UsageDetector
from include_audit.lexer import HEADER_PROVIDED_KEYWORDS
from include_audit.models import SymbolUsage, Token, UsageKind


class IdentifierDetector(UsageDetector):
    """Records every remaining identifier.

    Member names (obj.push_back, ptr->size) are recorded too, since a header
    whose declarations are the only source of that name is still needed.
    Keywords in HEADER_PROVIDED_KEYWORDS (bool, true, wchar_t, ...) are
    recorded as identifiers, since in C they come from a header.

    Priority: 0 (runs last)
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        token = tokens[index]
        if not (token.is_identifier or token.text in HEADER_PROVIDED_KEYWORDS):
            return []
        kind = UsageKind.IDENTIFIER
        if context.text(index - 1) in MEMBER_ACCESS:
            kind = UsageKind.MEMBER
        context.claim(index)
        return [context.make_usage(token.text, kind, token)]

    def priority(self) -> int:
        return 0

    def name(self) -> str:
        return "IdentifierDetector"
