# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Directive tracker: builds the conditional-branch tree of a source file.

The tracker walks logical lines in order and keeps an explicit stack of open
conditional chains, so nesting depth never turns into recursion depth.

State machine:
- DEFAULT: no conditional is open (stack empty)
- IN_BRANCH: depth = number of open chains
Transitions happen on #if/#ifdef/#ifndef (push), #elif/#else (replace the
top branch with a mutually exclusive sibling) and #endif (pop). The only
accepting state at end of file is DEFAULT.

Include guards are ordinary #ifndef branches. No #if expression is evaluated:
every branch is treated as potentially reachable.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from include_audit.errors import SourceSyntaxError
from include_audit.lexer import LogicalLine, ParseBudget
from include_audit.models import (
    BranchNode,
    ConditionExpression,
    ConditionKind,
    DirectiveTree,
    IncludeDirective,
    MacroDefinition,
)

logger = logging.getLogger(__name__)

_DIRECTIVE_RE = re.compile(r"^\s*#\s*([A-Za-z_]\w*)?(.*)$")
_INCLUDE_PATH_RE = re.compile(r'^\s*(?:<([^>]*)>|"([^"]*)")')
_DEFINE_RE = re.compile(r"^\s*([A-Za-z_]\w*)(\([^)]*\))?(.*)$")

_OPENING_DIRECTIVES = frozenset(["if", "ifdef", "ifndef"])
_ELIF_DIRECTIVES = frozenset(["elif", "elifdef", "elifndef"])
_INCLUDE_DIRECTIVES = frozenset(["include", "include_next", "import"])


class TrackerState:
    """States of the directive tracker."""

    DEFAULT = "default"
    IN_BRANCH = "in_branch"


@dataclass
class _OpenChain:
    parent: BranchNode
    current: BranchNode
    directive: str
    line: int
    seen_else: bool = False


@dataclass
class DirectiveTrackingResult:
    """Everything the tracker learned about one file."""

    tree: DirectiveTree
    includes: List[IncludeDirective]
    macros: List[MacroDefinition]
    conditions: List[ConditionExpression]
    # Branch active on each logical line, aligned with the input lines.
    line_branches: List[BranchNode] = field(default_factory=list)
    directive_count: int = 0


class DirectiveTracker:
    """Parses preprocessor lines into a DirectiveTree and include list."""

    def __init__(self, source_id: str = "<memory>", budget: Optional[ParseBudget] = None):
        self.source_id = source_id
        self.budget = budget or ParseBudget(None, source_id)
        self.tree = DirectiveTree()
        self._stack: List[_OpenChain] = []
        self._includes: List[IncludeDirective] = []
        self._macros: List[MacroDefinition] = []
        self._conditions: List[ConditionExpression] = []
        self._directive_count = 0

    @property
    def state(self) -> str:
        return TrackerState.IN_BRANCH if self._stack else TrackerState.DEFAULT

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def current_branch(self) -> BranchNode:
        return self._stack[-1].current if self._stack else self.tree.root

    def track(self, lines: List[LogicalLine]) -> DirectiveTrackingResult:
        """Process every logical line of a file.

        Raises:
            SourceSyntaxError: On stray #elif/#else/#endif or conditionals
                still open at end of file.
            ResourceLimitExceeded: If the parse budget runs out.
        """
        line_branches: List[BranchNode] = []
        for logical in lines:
            if logical.is_directive:
                self.budget.charge(line=logical.line)
                self._handle_directive(logical)
            line_branches.append(self.current_branch)

        if self._stack:
            chain = self._stack[-1]
            raise SourceSyntaxError(
                f"unterminated #{chain.directive} "
                f"({len(self._stack)} conditional(s) open at end of file)",
                self.source_id,
                chain.line,
            )

        logger.debug(
            f"Tracked {self._directive_count} directives in {self.source_id}: "
            f"{len(self._includes)} includes, {len(self.tree)} branches"
        )
        return DirectiveTrackingResult(
            tree=self.tree,
            includes=self._includes,
            macros=self._macros,
            conditions=self._conditions,
            line_branches=line_branches,
            directive_count=self._directive_count,
        )

    def _handle_directive(self, logical: LogicalLine) -> None:
        match = _DIRECTIVE_RE.match(logical.text)
        if match is None or match.group(1) is None:
            return  # null directive "#"
        self._directive_count += 1
        name = match.group(1)
        rest = match.group(2).strip()
        line = logical.line

        if name in _OPENING_DIRECTIVES:
            self._open_chain(name, rest, line)
        elif name in _ELIF_DIRECTIVES:
            self._add_elif(name, rest, line)
        elif name == "else":
            self._add_else(line)
        elif name == "endif":
            self._close_chain(line)
        elif name in _INCLUDE_DIRECTIVES:
            self._add_include(name, rest, line)
        elif name == "define":
            self._add_define(rest, line)

    def _open_chain(self, directive: str, expression: str, line: int) -> None:
        parent = self.current_branch
        self._conditions.append(ConditionExpression(directive, expression, parent, line))
        condition = f"{directive} {expression}".strip()
        node = self.tree.add_branch(parent, ConditionKind.IF, condition, line)
        self._stack.append(_OpenChain(parent=parent, current=node, directive=directive, line=line))

    def _add_elif(self, directive: str, expression: str, line: int) -> None:
        chain = self._require_chain(directive, line)
        if chain.seen_else:
            raise SourceSyntaxError(f"#{directive} after #else", self.source_id, line)
        self._conditions.append(ConditionExpression(directive, expression, chain.parent, line))
        chain.current = self.tree.add_branch(
            chain.parent,
            ConditionKind.ELIF,
            f"{directive} {expression}".strip(),
            line,
            chain_id=chain.current.chain_id,
        )

    def _add_else(self, line: int) -> None:
        chain = self._require_chain("else", line)
        if chain.seen_else:
            raise SourceSyntaxError("#else after #else", self.source_id, line)
        chain.seen_else = True
        chain.current = self.tree.add_branch(
            chain.parent, ConditionKind.ELSE, "else", line, chain_id=chain.current.chain_id
        )

    def _close_chain(self, line: int) -> None:
        self._require_chain("endif", line)
        self._stack.pop()

    def _require_chain(self, directive: str, line: int) -> _OpenChain:
        if not self._stack:
            raise SourceSyntaxError(f"#{directive} without #if", self.source_id, line)
        return self._stack[-1]

    def _add_include(self, directive: str, rest: str, line: int) -> None:
        match = _INCLUDE_PATH_RE.match(rest)
        if match is not None:
            system_path, local_path = match.group(1), match.group(2)
            is_system = system_path is not None
            path = (system_path if is_system else local_path).strip()
            is_computed = False
        else:
            # #include MACRO_NAME: the header cannot be known without expansion
            path = rest
            is_system = False
            is_computed = True
            logger.debug(f"Computed include '{rest}' at {self.source_id}:{line}")

        self._includes.append(
            IncludeDirective(
                path=path,
                is_system=is_system,
                branch=self.current_branch,
                line=line,
                index=len(self._includes),
                directive=directive,
                is_computed=is_computed,
            )
        )

    def _add_define(self, rest: str, line: int) -> None:
        match = _DEFINE_RE.match(rest)
        if match is None:
            logger.debug(f"Malformed #define at {self.source_id}:{line}")
            return
        name, params, body = match.group(1), match.group(2), match.group(3)
        parameters: Optional[List[str]] = None
        if params is not None:
            parameters = [p.strip() for p in params[1:-1].split(",") if p.strip()]
        self._macros.append(
            MacroDefinition(
                name=name,
                parameters=parameters,
                body=body.strip(),
                branch=self.current_branch,
                line=line,
            )
        )


def track_directives(
    lines: List[LogicalLine], source_id: str = "<memory>", budget: Optional[ParseBudget] = None
) -> DirectiveTrackingResult:
    """Convenience wrapper around DirectiveTracker.track()."""
    return DirectiveTracker(source_id, budget).track(lines)
