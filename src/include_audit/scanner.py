# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Lexical scanner: scoped token stream for the non-directive source text.

Scopes open on "{" and close on the matching "}". Brace depth is tracked
exactly, independent of keywords; the statement head before a "{" (the
tokens since the previous ";", "{" or "}") only decides what kind of scope
opens. Includes placed inside namespaces, classes or function bodies need no
special handling: directive lines are skipped here and only the enclosing
scope of each directive line is remembered for reporting.

Conditional alternatives are scanned from the same starting scope: on "#elif"
or "#else" the scope and statement head saved at the opening "#if" are
restored, and after "#endif" scanning continues from where the first
alternative ended. Alternative signatures such as

    #ifdef A
    int run(void* p) {
    #else
    int run(int p) {
    #endif

then open one function body instead of two.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from include_audit.errors import SourceSyntaxError
from include_audit.lexer import LogicalLine, ParseBudget, tokenize
from include_audit.models import BranchNode, Scope, ScopeKind, Token, TokenKind

logger = logging.getLogger(__name__)

_CLASS_KEYWORDS = frozenset(["class", "struct", "union"])
_CODE_SCOPES = frozenset([ScopeKind.FUNCTION, ScopeKind.BLOCK])
_CONDITIONAL_RE = re.compile(r"^\s*#\s*(ifdef|ifndef|if|elifdef|elifndef|elif|else|endif)\b")


@dataclass
class ScanResult:
    """Output of the lexical scanner."""

    tokens: List[Token]
    root: Scope
    scopes: List[Scope]
    # Enclosing scope of each directive line, keyed by its first physical line.
    directive_scopes: Dict[int, Scope] = field(default_factory=dict)


@dataclass
class _ConditionalFrame:
    """Scanner state saved at an opening "#if" directive."""

    scope: Scope
    head: List[Tuple[str, str]]
    first_end: Optional[Tuple[Scope, List[Tuple[str, str]]]] = None


def _strip_template_prefix(head: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Drop leading "template <...>" clauses from a statement head."""
    while len(head) >= 2 and head[0][1] == "template" and head[1][1] == "<":
        depth = 0
        end = None
        for i in range(1, len(head)):
            text = head[i][1]
            if text == "<":
                depth += 1
            elif text == ">":
                depth -= 1
            elif text == ">>":
                depth -= 2
            if depth <= 0:
                end = i
                break
        if end is None:
            return []
        head = head[end + 1 :]
    return head


def classify_scope(head: List[Tuple[str, str]], enclosing: Scope) -> Tuple[str, Optional[str]]:
    """Decide the kind and name of the scope a "{" opens.

    Args:
        head: (kind, text) tokens of the statement preceding the brace.
        enclosing: The scope the brace appears in.

    Returns:
        Tuple of (ScopeKind value, name or None).
    """
    head = _strip_template_prefix(head)
    texts = [text for _, text in head]

    if "namespace" in texts:
        start = texts.index("namespace") + 1
        name_parts = [t for t in texts[start:] if t != "inline"]
        if not name_parts:
            return ScopeKind.ANONYMOUS_NAMESPACE, None
        return ScopeKind.NAMESPACE, "".join(name_parts)

    if texts[:1] == ["extern"] and len(head) > 1 and head[1][0] == TokenKind.STRING:
        return ScopeKind.LINKAGE, None

    # "struct S s = {...}" and "struct S *make(int) {...}" are not type definitions
    is_type_definition = "(" not in texts and "=" not in texts
    for i, text in enumerate(texts if is_type_definition else []):
        if text == "enum":
            names = [t for k, t in head[i + 1 :] if k == TokenKind.IDENTIFIER]
            return ScopeKind.ENUM, names[0] if names else None
        if text in _CLASS_KEYWORDS:
            name = None
            for kind, value in head[i + 1 :]:
                if value in (":", "{"):
                    break
                if kind == TokenKind.IDENTIFIER:
                    name = value
                    break
            return ScopeKind.CLASS, name

    if "(" in texts:
        if enclosing.kind in _CODE_SCOPES:
            return ScopeKind.BLOCK, None
        paren = texts.index("(")
        if paren >= 2 and texts[paren - 2] == "operator":
            return ScopeKind.FUNCTION, "operator" + texts[paren - 1]
        name_tokens: List[str] = []
        j = paren - 1
        while j >= 0 and (head[j][0] == TokenKind.IDENTIFIER or texts[j] in ("::", "~")):
            name_tokens.insert(0, texts[j])
            j -= 1
        return ScopeKind.FUNCTION, "".join(name_tokens) or None

    return ScopeKind.BLOCK, None


class LexicalScanner:
    """Tokenizes code lines and tracks lexical scope nesting."""

    def __init__(self, source_id: str = "<memory>", budget: Optional[ParseBudget] = None):
        self.source_id = source_id
        self.budget = budget or ParseBudget(None, source_id)

    def scan(self, lines: List[LogicalLine], line_branches: List[BranchNode]) -> ScanResult:
        """Produce the scoped token stream.

        Args:
            lines: Cleaned logical lines of the file.
            line_branches: Branch active on each logical line (same length as lines).

        Raises:
            SourceSyntaxError: On an unmatched "}" or a "{" still open at end of file.
            ResourceLimitExceeded: If the parse budget runs out.
        """
        if len(lines) != len(line_branches):
            raise ValueError("lines and line_branches must have the same length")

        root = Scope(id=0, kind=ScopeKind.GLOBAL, branch=self._root_of(line_branches))
        scopes: List[Scope] = [root]
        tokens: List[Token] = []
        directive_scopes: Dict[int, Scope] = {}

        current = root
        head: List[Tuple[str, str]] = []
        conditionals: List[_ConditionalFrame] = []

        for logical, branch in zip(lines, line_branches):
            if logical.is_directive:
                directive_scopes[logical.line] = current
                current, head = self._conditional(logical.text, current, head, conditionals)
                continue

            for kind, text in tokenize(logical.text):
                self.budget.charge(line=logical.line)

                if text == "{":
                    scope_kind, name = classify_scope(head, current)
                    tokens.append(self._token(text, kind, logical.line, current, branch, tokens))
                    scope = Scope(
                        id=len(scopes),
                        kind=scope_kind,
                        name=name,
                        parent=current,
                        branch=branch,
                        line=logical.line,
                    )
                    current.children.append(scope)
                    scopes.append(scope)
                    current = scope
                    head = []
                    continue

                if text == "}":
                    if current.parent is None:
                        raise SourceSyntaxError("unmatched '}'", self.source_id, logical.line)
                    current = current.parent
                    tokens.append(self._token(text, kind, logical.line, current, branch, tokens))
                    head = []
                    continue

                tokens.append(self._token(text, kind, logical.line, current, branch, tokens))
                if text == ";":
                    head = []
                else:
                    head.append((kind, text))

        if current is not root:
            raise SourceSyntaxError(
                f"unclosed '{{' opening {current.describe()}", self.source_id, current.line
            )

        logger.debug(f"Scanned {len(tokens)} tokens and {len(scopes)} scopes in {self.source_id}")
        return ScanResult(
            tokens=tokens, root=root, scopes=scopes, directive_scopes=directive_scopes
        )

    @staticmethod
    def _conditional(
        text: str,
        current: Scope,
        head: List[Tuple[str, str]],
        conditionals: List[_ConditionalFrame],
    ) -> Tuple[Scope, List[Tuple[str, str]]]:
        """Apply a conditional directive line to the scanner state."""
        match = _CONDITIONAL_RE.match(text)
        if match is None:
            return current, head
        name = match.group(1)

        if name in ("if", "ifdef", "ifndef"):
            conditionals.append(_ConditionalFrame(scope=current, head=list(head)))
            return current, head
        if not conditionals:
            return current, head  # unbalanced, reported by the directive tracker

        frame = conditionals[-1]
        if name == "endif":
            conditionals.pop()
            if frame.first_end is not None:
                return frame.first_end
            return current, head
        # elif, elifdef, elifndef, else
        if frame.first_end is None:
            frame.first_end = (current, head)
        return frame.scope, list(frame.head)

    @staticmethod
    def _root_of(line_branches: List[BranchNode]) -> Optional[BranchNode]:
        if not line_branches:
            return None
        node = line_branches[0]
        while node.parent is not None:
            node = node.parent
        return node

    @staticmethod
    def _token(
        text: str, kind: str, line: int, scope: Scope, branch: BranchNode, tokens: List[Token]
    ) -> Token:
        return Token(text=text, kind=kind, line=line, scope=scope, branch=branch, index=len(tokens))
