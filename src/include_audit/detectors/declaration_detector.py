# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Declaration detector plugin.

Used when parsing local headers: finds the names a header introduces so the
knowledge base can build the header's provided-symbol set. Only
declaration-introducing constructs at namespace, class or file level are
considered; function bodies never declare anything visible to includers.

Recognized constructs:
- class / struct / union / enum names (definitions and forward declarations)
- enumerators
- typedef names, including function-pointer typedefs
- function declarations and inline definitions
- operator overloads
- variables and data members
"""

from typing import List, Optional, Sequence

from include_audit.detectors.base import ExtractionContext, UsageDetector
from include_audit.detectors.operator_detector import read_operator_name
from include_audit.models import (
    Declaration,
    DeclarationKind,
    ScopeKind,
    SymbolUsage,
    Token,
    TokenKind,
)

_DECLARING_SCOPES = frozenset(
    [
        ScopeKind.GLOBAL,
        ScopeKind.NAMESPACE,
        ScopeKind.ANONYMOUS_NAMESPACE,
        ScopeKind.CLASS,
        ScopeKind.LINKAGE,
    ]
)

_TYPE_KEYWORDS = frozenset(["class", "struct", "union", "enum"])

# Keywords that can not precede a declared name.
_NON_TYPE_KEYWORDS = frozenset(
    [
        "return",
        "sizeof",
        "alignof",
        "decltype",
        "noexcept",
        "throw",
        "new",
        "delete",
        "case",
        "goto",
        "typedef",
        "using",
        "namespace",
        "public",
        "private",
        "protected",
        "virtual",
        "operator",
    ]
) | _TYPE_KEYWORDS

_VARIABLE_FOLLOWERS = frozenset([";", "=", "[", ",", "{"])
_TYPE_PUNCT = frozenset(["*", "&", "&&", ">", ">>"])


class DeclarationDetector(UsageDetector):
    """Extracts declared names from header token streams.

    This detector takes no part in usage detection.
    """

    def detect(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[SymbolUsage]:
        return []

    def priority(self) -> int:
        return 50

    def name(self) -> str:
        return "DeclarationDetector"

    def supports_usage_detection(self) -> bool:
        return False

    def supports_declaration_extraction(self) -> bool:
        return True

    def extract_declarations(
        self, tokens: Sequence[Token], index: int, context: ExtractionContext
    ) -> List[Declaration]:
        token = tokens[index]

        if token.scope.kind == ScopeKind.ENUM:
            return self._enumerator(token, index, context)
        if token.scope.kind not in _DECLARING_SCOPES:
            return []

        if token.text in _TYPE_KEYWORDS:
            return self._type_name(token, index, context)
        if token.text == "typedef":
            return self._typedef(token, index, context)
        if token.text == "operator":
            op_name, _ = read_operator_name(context, index)
            if op_name is None or context.text(index - 1) == "::":
                return []
            return [self._declare(token, op_name, DeclarationKind.FUNCTION)]
        if not token.is_identifier or not self._follows_type(index, context):
            return []
        if context.paren_depth(index) > 0:
            # parameter names and call arguments
            return []

        following = context.text(index + 1)
        if following == "(":
            return [self._declare(token, token.text, DeclarationKind.FUNCTION)]
        if following in _VARIABLE_FOLLOWERS:
            return [self._declare(token, token.text, DeclarationKind.VARIABLE)]
        return []

    def _type_name(self, token: Token, index: int, context: ExtractionContext) -> List[Declaration]:
        if context.text(index - 1) in ("<", ","):
            # template <class T>
            return []
        name_index = index + 1
        if token.text == "enum" and context.text(name_index) in ("class", "struct"):
            name_index += 1
        if not context.is_identifier(name_index):
            return []
        kind = DeclarationKind.ENUM if token.text == "enum" else DeclarationKind.CLASS
        return [self._declare(token, context.text(name_index), kind)]

    def _enumerator(
        self, token: Token, index: int, context: ExtractionContext
    ) -> List[Declaration]:
        if not token.is_identifier:
            return []
        if context.text(index - 1) not in ("{", ","):
            return []
        if context.text(index + 1) not in ("=", ",", "}", ""):
            return []
        return [self._declare(token, token.text, DeclarationKind.ENUMERATOR)]

    def _typedef(self, token: Token, index: int, context: ExtractionContext) -> List[Declaration]:
        """Find the name a typedef introduces.

        Handles "typedef int Id;", "typedef struct {...} Point;" and
        "typedef void (*Callback)(int);". Brace bodies are skipped whole, so
        every token is visited by at most one typedef scan.
        """
        parens = 0
        last_identifier: Optional[str] = None
        i = index + 1
        while context.token(i) is not None:
            text = context.text(i)
            if text == "{":
                closing = context.closing_brace(i)
                if closing is None:
                    break
                i = closing + 1
                continue
            if text in (";", "}", "typedef"):
                break
            if text == "(":
                if context.text(i + 1) == "*" and context.is_identifier(i + 2):
                    return [self._declare(token, context.text(i + 2), DeclarationKind.TYPEDEF)]
                parens += 1
            elif text == ")":
                parens -= 1
            elif parens == 0 and context.is_identifier(i):
                last_identifier = text
            i += 1

        if last_identifier is None:
            return []
        return [self._declare(token, last_identifier, DeclarationKind.TYPEDEF)]

    @staticmethod
    def _follows_type(index: int, context: ExtractionContext) -> bool:
        previous = context.token(index - 1)
        if previous is None:
            return False
        if previous.kind == TokenKind.IDENTIFIER:
            return True
        if previous.kind == TokenKind.KEYWORD:
            return previous.text not in _NON_TYPE_KEYWORDS
        return previous.text in _TYPE_PUNCT

    @staticmethod
    def _declare(token: Token, name: str, kind: str) -> Declaration:
        prefix = token.scope.qualified_name
        return Declaration(
            name=name,
            kind=kind,
            line=token.line,
            qualified_name=f"{prefix}::{name}" if prefix else None,
        )
