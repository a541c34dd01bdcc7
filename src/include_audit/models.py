# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Core data models for include usage analysis.

This module defines the data structures shared by every analysis stage:
- BranchNode / DirectiveTree: the conditional-compilation branch tree
- IncludeDirective / MacroDefinition / ConditionExpression: preprocessor records
- Scope: lexical nesting (namespace, class, function, block)
- Token: a scanned token annotated with its scope and branch
- SymbolUsage: an identifier reference found in code
- Declaration: a name a header introduces
- HeaderSymbolSet: the symbols a header provides, with a completeness flag
- ClassificationResult: the verdict for one include directive

All enum-like types are classes of string constants so that every model
serializes to JSON-compatible primitives.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ConditionKind:
    """Kinds of branch nodes in the directive tree."""

    UNCONDITIONAL = "unconditional"  # the root branch
    IF = "if"  # #if / #ifdef / #ifndef
    ELIF = "elif"  # #elif / #elifdef / #elifndef
    ELSE = "else"  # #else


class ScopeKind:
    """Kinds of lexical scopes."""

    GLOBAL = "global"
    NAMESPACE = "namespace"
    ANONYMOUS_NAMESPACE = "anonymous_namespace"
    CLASS = "class"  # class / struct / union
    ENUM = "enum"
    FUNCTION = "function"
    BLOCK = "block"  # compound statements, lambdas, braced initializers
    LINKAGE = "linkage"  # extern "C" { ... }


class TokenKind:
    """Kinds of scanned tokens."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    NUMBER = "number"
    STRING = "string"
    CHAR = "char"
    PUNCT = "punct"


class UsageKind:
    """How a symbol usage appeared in the source."""

    IDENTIFIER = "identifier"  # sqrt(x)
    MEMBER = "member"  # obj.push_back(...)
    QUALIFIED = "qualified"  # std::cout (the final component)
    QUALIFIER = "qualifier"  # std in std::cout
    TEMPLATE = "template"  # vector<int>
    MACRO = "macro"  # DEBUG_PRINT(x), FILENAME_MAX
    OPERATOR = "operator"  # operator<<
    USING = "using"  # using std::cout; / using namespace std;


class UsageOrigin:
    """Where a usage was collected from."""

    CODE = "code"
    MACRO_BODY = "macro_body"  # #define NAME body
    CONDITION = "condition"  # #if / #ifdef expression


class DeclarationKind:
    """Kinds of names a header can introduce."""

    FUNCTION = "function"
    CLASS = "class"
    ENUM = "enum"
    ENUMERATOR = "enumerator"
    TYPEDEF = "typedef"
    USING = "using"
    VARIABLE = "variable"
    NAMESPACE = "namespace"
    MACRO = "macro"


class Completeness:
    """Whether a header's provided-symbol set is fully enumerated."""

    KNOWN = "known"
    UNKNOWN = "unknown"


class Verdict:
    """Classification verdict for an include directive."""

    USED = "used"
    UNUSED = "unused"
    INDETERMINATE = "indeterminate"


@dataclass(eq=False)
class BranchNode:
    """A region of source guarded by one outcome of a preprocessor conditional.

    Siblings that share a parent are mutually exclusive. A node is
    simultaneously reachable with each of its ancestors.
    """

    id: int
    kind: str  # ConditionKind value
    parent: Optional["BranchNode"] = None
    condition: str = ""  # e.g. "ifdef _WIN32", empty for #else and the root
    line: int = 0
    chain_id: Optional[int] = None  # id of the #if node that opened this chain
    children: List["BranchNode"] = field(default_factory=list)

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    def ancestors(self) -> Iterator["BranchNode"]:
        """Yield this node and then each ancestor up to the root."""
        node: Optional[BranchNode] = self
        while node is not None:
            yield node
            node = node.parent

    def is_ancestor_of(self, other: "BranchNode") -> bool:
        """Return True if this node is other or one of other's ancestors."""
        return any(node is self for node in other.ancestors())

    @property
    def path(self) -> str:
        """Branch path identifier, e.g. "0/3/4" (root first)."""
        ids = [str(node.id) for node in self.ancestors()]
        return "/".join(reversed(ids))

    def __repr__(self) -> str:
        return f"BranchNode(id={self.id}, kind={self.kind!r}, condition={self.condition!r})"


class DirectiveTree:
    """Tree of BranchNodes rooted at the always-true root branch."""

    def __init__(self) -> None:
        self.root = BranchNode(id=0, kind=ConditionKind.UNCONDITIONAL)
        self._nodes: List[BranchNode] = [self.root]

    def add_branch(
        self,
        parent: BranchNode,
        kind: str,
        condition: str,
        line: int,
        chain_id: Optional[int] = None,
    ) -> BranchNode:
        """Create a child branch under parent and return it."""
        node = BranchNode(
            id=len(self._nodes),
            kind=kind,
            parent=parent,
            condition=condition,
            line=line,
            chain_id=chain_id,
        )
        if node.chain_id is None:
            node.chain_id = node.id
        parent.children.append(node)
        self._nodes.append(node)
        return node

    def node(self, node_id: int) -> BranchNode:
        return self._nodes[node_id]

    def nodes(self) -> List[BranchNode]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    @staticmethod
    def compatible(first: BranchNode, second: BranchNode) -> bool:
        """Return True if both branches can be active in the same compilation."""
        return first.is_ancestor_of(second) or second.is_ancestor_of(first)


@dataclass(eq=False)
class Scope:
    """A node in the lexical scope tree.

    Each scope carries a scope-local alias table filled in by using-directives,
    using-declarations and namespace aliases as they are encountered, so lookups
    made later in the same scope (or in nested scopes) see them.
    """

    id: int
    kind: str  # ScopeKind value
    name: Optional[str] = None
    parent: Optional["Scope"] = None
    branch: Optional[BranchNode] = None
    line: int = 0
    children: List["Scope"] = field(default_factory=list)

    using_namespaces: List[str] = field(default_factory=list)  # using namespace N;
    using_names: Dict[str, str] = field(default_factory=dict)  # using N::x; -> x: N::x
    namespace_aliases: Dict[str, str] = field(default_factory=dict)  # namespace a = b;

    def chain(self) -> Iterator["Scope"]:
        """Yield this scope and then each enclosing scope."""
        scope: Optional[Scope] = self
        while scope is not None:
            yield scope
            scope = scope.parent

    @property
    def qualified_name(self) -> str:
        """Namespace/class path of this scope, e.g. "Company::Utils"."""
        parts = []
        for scope in self.chain():
            if scope.kind in (ScopeKind.NAMESPACE, ScopeKind.CLASS, ScopeKind.ENUM) and scope.name:
                parts.append(scope.name)
        return "::".join(reversed(parts))

    def enclosing_class(self) -> Optional["Scope"]:
        for scope in self.chain():
            if scope.kind == ScopeKind.CLASS:
                return scope
        return None

    def visible_namespaces(self) -> List[str]:
        """Namespaces opened by using-directives visible from this scope."""
        namespaces: List[str] = []
        for scope in self.chain():
            for namespace in scope.using_namespaces:
                if namespace not in namespaces:
                    namespaces.append(namespace)
        return namespaces

    def resolve_using_name(self, name: str) -> Optional[str]:
        for scope in self.chain():
            if name in scope.using_names:
                return scope.using_names[name]
        return None

    def resolve_namespace_alias(self, name: str) -> Optional[str]:
        for scope in self.chain():
            if name in scope.namespace_aliases:
                return scope.namespace_aliases[name]
        return None

    def describe(self) -> str:
        if self.kind == ScopeKind.GLOBAL:
            return "global"
        if self.kind == ScopeKind.ANONYMOUS_NAMESPACE:
            return "anonymous namespace"
        if self.name:
            return f"{self.kind} {self.name}"
        return self.kind

    def __repr__(self) -> str:
        return f"Scope(id={self.id}, kind={self.kind!r}, name={self.name!r})"


@dataclass
class IncludeDirective:
    """One #include / #import directive.

    Duplicate includes of the same header are distinct instances.
    """

    path: str  # header path without delimiters, or the macro text of a computed include
    is_system: bool  # True for <...>, False for "..."
    branch: BranchNode
    line: int
    index: int  # position among the file's include directives
    directive: str = "include"  # include / include_next / import
    is_computed: bool = False  # #include MACRO_NAME

    @property
    def spelling(self) -> str:
        if self.is_computed:
            return self.path
        return f"<{self.path}>" if self.is_system else f'"{self.path}"'

    def __repr__(self) -> str:
        return f"IncludeDirective({self.spelling}, line={self.line}, branch={self.branch.path})"


@dataclass
class MacroDefinition:
    """A #define directive."""

    name: str
    parameters: Optional[List[str]]  # None for object-like macros
    body: str
    branch: BranchNode
    line: int


@dataclass
class ConditionExpression:
    """The controlling expression of an #if-family directive.

    The branch is the one the expression is evaluated in, which is the
    parent of the branch it opens.
    """

    directive: str
    expression: str
    branch: BranchNode
    line: int


@dataclass
class Token:
    """A scanned token annotated with its scope and branch."""

    text: str
    kind: str  # TokenKind value
    line: int
    scope: Scope
    branch: BranchNode
    index: int = 0

    @property
    def is_identifier(self) -> bool:
        return self.kind == TokenKind.IDENTIFIER


@dataclass
class SymbolUsage:
    """A recorded identifier reference."""

    name: str  # the literal identifier, e.g. "cout"
    kind: str  # UsageKind value
    line: int
    scope: Scope
    branch: BranchNode
    qualified_name: Optional[str] = None  # e.g. "std::cout"
    origin: str = UsageOrigin.CODE
    # Extra spellings this usage may match through the scope alias tables,
    # e.g. "std::cout" for a bare "cout" after "using namespace std;".
    aliases: Tuple[str, ...] = ()

    def candidates(self) -> Tuple[str, ...]:
        """All spellings this usage can match in a header's symbol set."""
        names = [self.name]
        if self.qualified_name and self.qualified_name not in names:
            names.append(self.qualified_name)
        for alias in self.aliases:
            if alias not in names:
                names.append(alias)
        return tuple(names)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "kind": self.kind,
            "line": self.line,
            "scope": self.scope.describe(),
            "branch": self.branch.path,
        }
        if self.qualified_name is not None:
            result["qualified_name"] = self.qualified_name
        if self.origin != UsageOrigin.CODE:
            result["origin"] = self.origin
        if self.aliases:
            result["aliases"] = list(self.aliases)
        return result


@dataclass
class Declaration:
    """A name introduced by a header."""

    name: str
    kind: str  # DeclarationKind value
    line: int
    qualified_name: Optional[str] = None

    def spellings(self) -> Tuple[str, ...]:
        if self.qualified_name and self.qualified_name != self.name:
            return (self.name, self.qualified_name)
        return (self.name,)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "kind": self.kind, "line": self.line}
        if self.qualified_name is not None:
            result["qualified_name"] = self.qualified_name
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Declaration":
        return cls(
            name=data["name"],
            kind=data["kind"],
            line=data["line"],
            qualified_name=data.get("qualified_name"),
        )


@dataclass
class HeaderSymbolSet:
    """The symbols a header provides.

    An Unknown set is always empty: a header that could not be enumerated
    never claims to provide nothing.
    """

    header: str
    is_system: bool
    completeness: str  # Completeness value
    symbols: FrozenSet[str] = frozenset()
    source: str = "builtin"  # builtin / config / parsed / unavailable
    warnings: List[Any] = field(default_factory=list)  # AnalysisWarning instances

    def __post_init__(self) -> None:
        if self.completeness == Completeness.UNKNOWN and self.symbols:
            self.symbols = frozenset()

    @property
    def is_known(self) -> bool:
        return self.completeness == Completeness.KNOWN

    @classmethod
    def known(
        cls,
        header: str,
        is_system: bool,
        symbols: FrozenSet[str],
        source: str,
        warnings: Optional[List[Any]] = None,
    ) -> "HeaderSymbolSet":
        return cls(
            header=header,
            is_system=is_system,
            completeness=Completeness.KNOWN,
            symbols=frozenset(symbols),
            source=source,
            warnings=list(warnings or []),
        )

    @classmethod
    def unknown(
        cls, header: str, is_system: bool, warnings: Optional[List[Any]] = None
    ) -> "HeaderSymbolSet":
        return cls(
            header=header,
            is_system=is_system,
            completeness=Completeness.UNKNOWN,
            source="unavailable",
            warnings=list(warnings or []),
        )


@dataclass
class ClassificationResult:
    """The verdict for one include directive."""

    path: str
    is_system: bool
    branch_path: str
    line: int
    verdict: str  # Verdict value
    justification: List[str] = field(default_factory=list)
    scope: str = "global"  # lexical scope the directive appears in
    warnings: List[Any] = field(default_factory=list)  # AnalysisWarning instances
    is_computed: bool = False

    @property
    def spelling(self) -> str:
        if self.is_computed:
            return self.path
        return f"<{self.path}>" if self.is_system else f'"{self.path}"'

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        result: Dict[str, Any] = {
            "path": self.path,
            "is_system": self.is_system,
            "branch_path": self.branch_path,
            "line": self.line,
            "verdict": self.verdict,
            "justification": list(self.justification),
            "scope": self.scope,
        }
        if self.is_computed:
            result["is_computed"] = True
        if self.warnings:
            result["warnings"] = [w.to_dict() for w in self.warnings]
        return result
