# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Template instantiation detector plugin."""

from typing import List, Sequence

from include_audit.detectors.base import MEMBER_ACCESS, ExtractionContext, UsageDetector
from include_audit.models import SymbolUsage, Token, UsageKind


class TemplateDetector(UsageDetector):
    """Detector for unqualified template names: vector<int>, make_shared<T>(...).

    The base name is recorded; template arguments are ordinary tokens that
    later positions pick up. "a < b" comparisons also match, which only
    affects the recorded usage kind.

    Priority: 60
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        token = tokens[index]
        if not token.is_identifier or context.text(index + 1) != "<":
            return []
        if context.text(index - 1) in MEMBER_ACCESS:
            # obj.template get<0>() style member templates stay members
            return []
        context.claim(index)
        return [context.make_usage(token.text, UsageKind.TEMPLATE, token)]

    def priority(self) -> int:
        return 60

    def name(self) -> str:
        return "TemplateDetector"
