# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Symbol Reference Extractor.

Drives the detector plugins over a scanned token stream. In usage mode it
produces the SymbolUsage list of a file under analysis; in declaration mode
it produces the names a local header introduces.

Usages come from two places:
1. Code tokens, walked in order so using-directives take effect for the
   rest of their scope
2. Directive text: #define bodies and #if/#ifdef expressions, which
   reference symbols without any code token (e.g. "#define GetCurrentDir getcwd")
"""

import logging
from typing import Dict, FrozenSet, List, Optional, Tuple

from include_audit.detectors import DetectorRegistry, ExtractionContext, default_registry
from include_audit.lexer import PREPROCESSOR_OPERATORS, tokenize
from include_audit.models import (
    BranchNode,
    Declaration,
    DeclarationKind,
    MacroDefinition,
    Scope,
    SymbolUsage,
    Token,
    UsageOrigin,
)
from include_audit.source import SourceFile

logger = logging.getLogger(__name__)


def _is_include_guard(macro: MacroDefinition) -> bool:
    """Return True for the empty object-like macro of an include guard."""
    if macro.parameters is not None or macro.body:
        return False
    condition = macro.branch.condition.replace(" ", "")
    return condition in (
        f"ifndef{macro.name}",
        f"if!defined({macro.name})",
        f"if!defined{macro.name}",
    )


class SymbolReferenceExtractor:
    """Produces symbol usages and declarations from a loaded SourceFile."""

    def __init__(
        self, registry: Optional[DetectorRegistry] = None, record_directive_usages: bool = True
    ):
        """Initialize the extractor.

        Args:
            registry: Detector registry. Defaults to all built-in detectors.
            record_directive_usages: Treat identifiers in #define bodies and
                conditional expressions as usages.
        """
        self.registry = registry or default_registry()
        self.record_directive_usages = record_directive_usages

    def extract(self, source: SourceFile) -> List[SymbolUsage]:
        """Collect every symbol usage in source, ordered by line."""
        usages = self._walk(
            source.scan.tokens, source.source_id, UsageOrigin.CODE, True, frozenset()
        )

        if self.record_directive_usages:
            usages.extend(self._directive_usages(source))

        # stable: code order is kept within a line
        usages.sort(key=lambda u: u.line)
        logger.debug(f"Extracted {len(usages)} usages from {source.source_id}")
        return usages

    def extract_declarations(self, source: SourceFile) -> List[Declaration]:
        """Collect the names source introduces, deduplicated by spelling."""
        tokens = source.scan.tokens
        context = ExtractionContext(tokens, source.source_id, allow_scope_updates=False)
        detectors = [
            d for d in self.registry.get_detectors() if d.supports_declaration_extraction()
        ]

        declarations: List[Declaration] = []
        for index in range(len(tokens)):
            for detector in detectors:
                declarations.extend(detector.extract_declarations(tokens, index, context))

        for macro in source.directives.macros:
            if _is_include_guard(macro):
                continue
            declarations.append(
                Declaration(name=macro.name, kind=DeclarationKind.MACRO, line=macro.line)
            )

        unique: Dict[Tuple[str, Optional[str]], Declaration] = {}
        for declaration in declarations:
            unique.setdefault((declaration.name, declaration.qualified_name), declaration)
        logger.debug(f"Extracted {len(unique)} declarations from {source.source_id}")
        return list(unique.values())

    def _walk(
        self,
        tokens: List[Token],
        source_id: str,
        origin: str,
        allow_scope_updates: bool,
        excluded_names: FrozenSet[str],
    ) -> List[SymbolUsage]:
        context = ExtractionContext(tokens, source_id, origin, allow_scope_updates, excluded_names)
        detectors = [d for d in self.registry.get_detectors() if d.supports_usage_detection()]

        usages: List[SymbolUsage] = []
        for index, token in enumerate(tokens):
            if context.is_claimed(index) or token.text in excluded_names:
                continue
            for detector in detectors:
                found = detector.detect(tokens, index, context)
                if found or context.is_claimed(index):
                    usages.extend(u for u in found if u.name not in excluded_names)
                    break
        return usages

    def _directive_usages(self, source: SourceFile) -> List[SymbolUsage]:
        usages: List[SymbolUsage] = []
        for macro in source.directives.macros:
            if not macro.body:
                continue
            excluded = PREPROCESSOR_OPERATORS | frozenset(macro.parameters or ()) | {macro.name}
            tokens = self._directive_tokens(source, macro.body, macro.line, macro.branch)
            usages.extend(
                self._walk(tokens, source.source_id, UsageOrigin.MACRO_BODY, False, excluded)
            )

        for condition in source.directives.conditions:
            tokens = self._directive_tokens(
                source, condition.expression, condition.line, condition.branch
            )
            usages.extend(
                self._walk(
                    tokens, source.source_id, UsageOrigin.CONDITION, False, PREPROCESSOR_OPERATORS
                )
            )
        return usages

    @staticmethod
    def _directive_tokens(
        source: SourceFile, text: str, line: int, branch: BranchNode
    ) -> List[Token]:
        scope: Scope = source.scan.directive_scopes.get(line, source.scan.root)
        return [
            Token(text=value, kind=kind, line=line, scope=scope, branch=branch, index=i)
            for i, (kind, value) in enumerate(tokenize(text))
        ]
