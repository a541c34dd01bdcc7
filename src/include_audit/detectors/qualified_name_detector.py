# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Qualified name detector plugin.

Detects name chains such as std::vector, ::getcwd and Company::Utils::helper.
Every component is recorded: the leading ones as qualifiers and the last one
with its full qualified name, so that both a header providing "std::vector"
and one providing only "vector" can match.
"""

from typing import List, Sequence

from include_audit.detectors.base import ExtractionContext, UsageDetector, chain_usages
from include_audit.models import SymbolUsage, Token, UsageKind


class QualifiedNameDetector(UsageDetector):
    """Detector for a::b::c name chains.

    Patterns:
    - std::cout              -> std (qualifier), cout (qualified std::cout)
    - ::getcwd(buf, n)       -> getcwd
    - fs::path after "namespace fs = std::filesystem;"
                             -> path, also matching std::filesystem::path
    - std::vector<int>       -> vector recorded as a template usage

    Priority: 80
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        token = tokens[index]
        global_led = token.text == "::"
        if not (global_led or token.is_identifier):
            return []
        if not global_led and context.text(index + 1) != "::":
            return []

        parts, last = context.read_qualified(index)
        if not parts or (len(parts) == 1 and not global_led):
            # "Type::operator<<" and "Type::~Type" leave a lone qualifier
            return []

        final_kind = UsageKind.TEMPLATE if context.text(last + 1) == "<" else UsageKind.QUALIFIED
        context.claim(index, last)
        return chain_usages(context, parts, token, final_kind, UsageKind.QUALIFIER)

    def priority(self) -> int:
        return 80

    def name(self) -> str:
        return "QualifiedNameDetector"
