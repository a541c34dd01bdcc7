# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Using-directive detector plugin.

Handles the constructs that change how later unqualified names are looked up:
- using namespace N;           (scope opens namespace N)
- using N::x;                  (x now means N::x in this scope)
- namespace fs = std::filesystem;  (fs:: now means std::filesystem::)

The effect is recorded in the alias table of the scope the directive appears
in, so it lasts for the remainder of that scope and its nested scopes. Alias
declarations (using X = T;) only declare X; the type T is left to the other
detectors.
"""

import logging
from typing import List, Sequence

from include_audit.detectors.base import ExtractionContext, UsageDetector, chain_usages
from include_audit.models import Declaration, DeclarationKind, SymbolUsage, Token, UsageKind

logger = logging.getLogger(__name__)


def _is_namespace_alias(token: Token, index: int, context: ExtractionContext) -> bool:
    return (
        token.text == "namespace"
        and context.is_identifier(index + 1)
        and context.text(index + 2) == "="
    )


class UsingDirectiveDetector(UsageDetector):
    """Detector for using-directives, using-declarations and namespace aliases.

    Priority: 100 (alias tables must be updated before later tokens are seen)
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        token = tokens[index]
        if token.text == "using":
            return self._detect_using(token, index, context)
        if _is_namespace_alias(token, index, context):
            return self._detect_namespace_alias(token, index, context)
        return []

    def _detect_using(
        self, token: Token, index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        if context.text(index + 1) == "namespace":
            parts, last = context.read_qualified(index + 2)
            if not parts:
                return []
            namespace = "::".join(parts)
            if context.allow_scope_updates and namespace not in token.scope.using_namespaces:
                token.scope.using_namespaces.append(namespace)
                logger.debug(f"using namespace {namespace} in {token.scope.describe()}")
            context.claim(index, last)
            return chain_usages(context, parts, token, UsageKind.USING, UsageKind.QUALIFIER)

        # using X = T;
        if context.is_identifier(index + 1) and context.text(index + 2) == "=":
            context.claim(index, index + 2)
            return []

        start = index + 2 if context.text(index + 1) == "typename" else index + 1
        parts, last = context.read_qualified(start)
        if len(parts) < 2:
            return []
        if context.allow_scope_updates:
            token.scope.using_names[parts[-1]] = "::".join(parts)
        context.claim(index, last)
        return chain_usages(context, parts, token, UsageKind.USING, UsageKind.QUALIFIER)

    def _detect_namespace_alias(
        self, token: Token, index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        alias = context.text(index + 1)
        parts, last = context.read_qualified(index + 3)
        if not parts:
            return []
        if context.allow_scope_updates:
            token.scope.namespace_aliases[alias] = "::".join(parts)
        context.claim(index, last)
        return chain_usages(context, parts, token, UsageKind.QUALIFIED, UsageKind.QUALIFIER)

    def priority(self) -> int:
        return 100

    def name(self) -> str:
        return "UsingDirectiveDetector"

    def supports_declaration_extraction(self) -> bool:
        return True

    def extract_declarations(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[Declaration]:
        """Names a header introduces through using and namespace aliases.

        A using-declaration in a header re-exports the named symbol, so the
        header provides it.
        """
        token = tokens[index]
        prefix = token.scope.qualified_name
        declared = None
        kind = DeclarationKind.USING

        if token.text == "using":
            if context.is_identifier(index + 1) and context.text(index + 2) == "=":
                declared = context.text(index + 1)
            elif context.text(index + 1) != "namespace":
                start = index + 2 if context.text(index + 1) == "typename" else index + 1
                parts, _ = context.read_qualified(start)
                if len(parts) >= 2:
                    declared = parts[-1]
        elif _is_namespace_alias(token, index, context):
            declared = context.text(index + 1)
            kind = DeclarationKind.NAMESPACE

        if declared is None:
            return []
        return [
            Declaration(
                name=declared,
                kind=kind,
                line=token.line,
                qualified_name=f"{prefix}::{declared}" if prefix else None,
            )
        ]
