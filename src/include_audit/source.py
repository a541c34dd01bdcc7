# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Loaded source file: the output of the parse passes for one text."""

import logging
from dataclasses import dataclass
from typing import List, Optional

from include_audit.lexer import LogicalLine, ParseBudget, clean_source
from include_audit.models import DirectiveTree, IncludeDirective, Scope
from include_audit.preprocessor import DirectiveTracker, DirectiveTrackingResult
from include_audit.scanner import LexicalScanner, ScanResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceFile:
    """Raw text plus everything derived from it by the parse passes.

    Immutable after load; owns the DirectiveTree and the root Scope.
    """

    source_id: str
    text: str
    lines: List[LogicalLine]
    directives: DirectiveTrackingResult
    scan: ScanResult
    parse_steps: int = 0

    @property
    def tree(self) -> DirectiveTree:
        return self.directives.tree

    @property
    def root_scope(self) -> Scope:
        return self.scan.root

    @property
    def includes(self) -> List[IncludeDirective]:
        return self.directives.includes

    def scope_of(self, include: IncludeDirective) -> Scope:
        """Lexical scope an include directive appears in."""
        return self.scan.directive_scopes.get(include.line, self.scan.root)

    @classmethod
    def load(
        cls, text: str, source_id: str = "<memory>", max_steps: Optional[int] = None
    ) -> "SourceFile":
        """Run the cleaning, directive and scope passes over text.

        Directive and token counts share one parse budget.

        Raises:
            SourceSyntaxError: On malformed conditionals, braces or literals.
            ResourceLimitExceeded: If more than max_steps directives and tokens are seen.
        """
        budget = ParseBudget(max_steps, source_id)
        lines = clean_source(text, source_id)
        directives = DirectiveTracker(source_id, budget).track(lines)
        scan = LexicalScanner(source_id, budget).scan(lines, directives.line_branches)
        logger.debug(f"Loaded {source_id}: {len(lines)} logical lines, {budget.steps} parse steps")
        return cls(
            source_id=source_id,
            text=text,
            lines=lines,
            directives=directives,
            scan=scan,
            parse_steps=budget.steps,
        )
