# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Usage Resolution Engine.

Joins the include list, the branch-tagged usages and the header symbol sets
into one ClassificationResult per include directive.

Reachability rule: an include at branch B and a usage at branch U are
compatible when one of B, U is an ancestor of (or equal to) the other.
Sibling branches of one #if chain, and branches of unrelated chains, are
never compatible.

Classification:
- Indeterminate: the header's symbol set is Unknown, or the include is computed
- Used: some compatible usage matches a symbol of a Known set
- Unused: the set is Known and no compatible usage matches it

Usage evidence is never consumed: every include providing a matched symbol
gets it in its justification. The engine holds no state between calls.
"""

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Sequence

from include_audit.diagnostics import AnalysisWarning, WarningType
from include_audit.models import (
    BranchNode,
    ClassificationResult,
    DirectiveTree,
    HeaderSymbolSet,
    IncludeDirective,
    SymbolUsage,
    Verdict,
)

logger = logging.getLogger(__name__)

SymbolLookup = Callable[[IncludeDirective], HeaderSymbolSet]


class UsageIndex:
    """Usages indexed by every spelling they can match."""

    def __init__(self, usages: Sequence[SymbolUsage]):
        self._by_spelling: Dict[str, List[SymbolUsage]] = defaultdict(list)
        for usage in usages:
            for spelling in usage.candidates():
                self._by_spelling[spelling].append(usage)

    def matching(self, symbols: frozenset) -> Dict[str, List[SymbolUsage]]:
        """Return spelling -> usages for every symbol with at least one usage."""
        return {s: self._by_spelling[s] for s in symbols.intersection(self._by_spelling)}

    def __len__(self) -> int:
        return len(self._by_spelling)


class UsageResolutionEngine:
    """Classifies include directives against symbol usages."""

    @staticmethod
    def compatible(include_branch: BranchNode, usage_branch: BranchNode) -> bool:
        """Return True if both branches can be active in one compilation."""
        return DirectiveTree.compatible(include_branch, usage_branch)

    def classify(
        self,
        includes: Sequence[IncludeDirective],
        usages: Sequence[SymbolUsage],
        lookup: SymbolLookup,
        scope_of: Optional[Callable[[IncludeDirective], str]] = None,
        source_id: str = "<memory>",
    ) -> List[ClassificationResult]:
        """Classify every include, in the order given.

        Args:
            includes: Include directives in source order, duplicates kept.
            usages: Every usage of the file, from any position.
            lookup: Returns the HeaderSymbolSet of an include's header.
            scope_of: Optional description of the scope an include sits in.
            source_id: File being classified, for warnings.

        Returns:
            One ClassificationResult per include, same order.
        """
        index = UsageIndex(usages)
        results = []
        for include in includes:
            symbol_set = None if include.is_computed else lookup(include)
            result = self.classify_include(include, symbol_set, index, source_id)
            if scope_of is not None:
                result.scope = scope_of(include)
            results.append(result)
        return results

    def classify_include(
        self,
        include: IncludeDirective,
        symbol_set: Optional[HeaderSymbolSet],
        index: UsageIndex,
        source_id: str = "<memory>",
    ) -> ClassificationResult:
        """Classify one include directive.

        Args:
            include: The directive.
            symbol_set: Symbols of its header; None for a computed include.
            index: Usages of the file.
        """
        result = ClassificationResult(
            path=include.path,
            is_system=include.is_system,
            branch_path=include.branch.path,
            line=include.line,
            verdict=Verdict.INDETERMINATE,
            is_computed=include.is_computed,
        )

        if symbol_set is None:
            result.warnings.append(
                AnalysisWarning(
                    type=WarningType.COMPUTED_INCLUDE,
                    header=include.path,
                    message=f"#{include.directive} {include.path} names its header through a macro",
                    source_id=source_id,
                    line=include.line,
                )
            )
            return result

        result.warnings.extend(symbol_set.warnings)
        if not symbol_set.is_known:
            # never Unused for a header that could not be enumerated
            return result

        justification = set()
        for usages in index.matching(symbol_set.symbols).values():
            for usage in usages:
                if self.compatible(include.branch, usage.branch):
                    justification.add(usage.name)

        if justification:
            result.verdict = Verdict.USED
            result.justification = sorted(justification)
        else:
            result.verdict = Verdict.UNUSED

        logger.debug(
            f"{include.spelling} at line {include.line}: {result.verdict} {result.justification}"
        )
        return result
