# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Macro-like identifier detector plugin."""

from typing import List, Sequence

from include_audit.detectors.base import ExtractionContext, UsageDetector, is_macro_like
from include_audit.models import SymbolUsage, Token, UsageKind


class MacroDetector(UsageDetector):
    """Detector for upper-case macro-like names.

    Patterns:
    - DEBUG_PRINT(x)
    - FILENAME_MAX
    - assert(x) is not matched here: lower-case macros are found by the
      identifier detector and still match a header that defines them

    Priority: 70
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        token = tokens[index]
        if not token.is_identifier or not is_macro_like(token.text):
            return []
        if context.text(index - 1) in ("::", ".", "->"):
            return []
        context.claim(index)
        return [context.make_usage(token.text, UsageKind.MACRO, token)]

    def priority(self) -> int:
        return 70

    def name(self) -> str:
        return "MacroDetector"
