# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Header Symbol Knowledge Base.

Maps a header to the set of symbols it provides:
- Headers registered through configuration use the configured names
- System headers use the built-in curated tables (stdlib_symbols)
- Other headers are parsed, when the injected resolver returns their text,
  with the same scanner and detector pipeline restricted to declarations

A header whose text cannot be obtained is Unknown, never an empty Known set.
The same holds for a parsed header whose nested local includes could not all
be collected (unresolvable, unparsable, beyond the depth limit, or not
followed at all).

Local header parsing follows the quoted includes of the parsed header with an
explicit worklist. A visited set keyed by resolved path stops diamonds from
being parsed twice; the chain of ancestors of each worklist item detects
cycles, which are cut and reported as warnings. A cut cycle leaves the set
complete: the repeated header is already being collected.

Parsed declarations are cached process-wide in an LRU keyed by the sha256 of
the header text, so the same header reached through different resolvers is
parsed once.

Thread Safety:
    All public methods are thread-safe using a reentrant lock. Parsing happens
    outside the lock; two threads racing on the same text store equal values.
"""

import hashlib
import logging
import posixpath
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from include_audit.config import Config
from include_audit.diagnostics import AnalysisWarning, WarningType
from include_audit.errors import IncludeAuditError
from include_audit.extractor import SymbolReferenceExtractor
from include_audit.models import HeaderSymbolSet
from include_audit.resolvers import HeaderResolver
from include_audit.source import SourceFile
from include_audit.stdlib_symbols import builtin_symbols, normalize_header_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedHeader:
    """Declarations of one header text, plus the includes it contains."""

    symbols: FrozenSet[str]
    # (path, is_system, line) of each non-computed include in the header
    includes: Tuple[Tuple[str, bool, int], ...] = ()
    error: Optional[str] = None


@dataclass
class _PendingInclude:
    header: str
    is_system: bool
    line: int
    parent: str
    depth: int
    ancestors: Tuple[str, ...]


class HeaderKnowledgeBase:
    """Process-wide header -> provided-symbols knowledge base."""

    def __init__(
        self,
        max_entries: int = 1000,
        follow_local_includes: bool = True,
        max_include_depth: int = 32,
        max_parse_steps: Optional[int] = Config.DEFAULTS["max_parse_steps"],
        extra_header_symbols: Optional[Dict[str, Iterable[str]]] = None,
        extractor: Optional[SymbolReferenceExtractor] = None,
    ):
        """Initialize the knowledge base.

        Args:
            max_entries: Maximum number of parsed headers kept in the cache.
            follow_local_includes: Whether parsing a local header also collects
                the symbols of the local headers it includes.
            max_include_depth: Depth bound for that recursion.
            max_parse_steps: Parse step budget for each parsed header, or None
                for no limit.
            extra_header_symbols: Header -> names tables that extend or
                override the built-in tables.
            extractor: Extractor used for declaration parsing.
        """
        self._max_entries = max_entries
        self.follow_local_includes = follow_local_includes
        self.max_include_depth = max_include_depth
        self.max_parse_steps = max_parse_steps
        self._extractor = extractor or SymbolReferenceExtractor(record_directive_usages=False)
        self._lock = threading.RLock()

        # Use OrderedDict for LRU eviction
        self._cache: "OrderedDict[str, ParsedHeader]" = OrderedDict()
        self._registered: Dict[str, FrozenSet[str]] = {}

        # Statistics
        self._hits = 0
        self._misses = 0
        self._parse_failures = 0

        for header, symbols in (extra_header_symbols or {}).items():
            self.register_header(header, symbols)

    def register_header(self, header: str, symbols: Iterable[str]) -> None:
        """Declare the full symbol set of a header (system or local)."""
        with self._lock:
            self._registered[normalize_header_name(header)] = frozenset(symbols)
        logger.debug(f"Registered symbol table for {header}")

    def lookup(
        self,
        header: str,
        is_system: bool,
        resolver: Optional[HeaderResolver] = None,
        source_id: str = "<memory>",
        line: Optional[int] = None,
    ) -> HeaderSymbolSet:
        """Return the symbols a header provides.

        Args:
            header: Header path as written in the include directive.
            is_system: True for <...> includes.
            resolver: Callback returning header text, or None when unavailable.
            source_id: File containing the include, for warnings.
            line: Line of the include, for warnings.

        Returns:
            A Known set when the header is registered, curated or parsable;
            an Unknown set otherwise.
        """
        name = normalize_header_name(header)

        with self._lock:
            registered = self._registered.get(name)
        if registered is not None:
            return HeaderSymbolSet.known(name, is_system, registered, source="config")

        if is_system:
            table = builtin_symbols(name)
            if table is not None:
                return HeaderSymbolSet.known(name, is_system, table, source="builtin")

        text = self._resolve(resolver, name)
        if text is None:
            warning = AnalysisWarning(
                type=WarningType.UNRESOLVABLE_HEADER,
                header=name,
                message=f"{self._spelling(name, is_system)} could not be resolved",
                source_id=source_id,
                line=line,
            )
            logger.info(f"Header {self._spelling(name, is_system)} unresolvable from {source_id}")
            return HeaderSymbolSet.unknown(name, is_system, [warning])

        parsed = self._parse(name, text)
        if parsed.error is not None:
            warning = AnalysisWarning(
                type=WarningType.UNPARSABLE_HEADER,
                header=name,
                message=f"{self._spelling(name, is_system)} could not be parsed: {parsed.error}",
                source_id=source_id,
                line=line,
            )
            logger.warning(warning.message)
            return HeaderSymbolSet.unknown(name, is_system, [warning])

        local_includes = [path for path, system, _ in parsed.includes if not system]
        if local_includes and not self.follow_local_includes:
            warning = AnalysisWarning(
                type=WarningType.LOCAL_INCLUDES_NOT_FOLLOWED,
                header=name,
                message=(
                    f"{self._spelling(name, is_system)} includes local headers "
                    f"{', '.join(local_includes)} that were not followed"
                ),
                source_id=source_id,
                line=line,
                metadata={"includes": local_includes},
            )
            logger.info(warning.message)
            return HeaderSymbolSet.unknown(name, is_system, [warning])

        symbols: Set[str] = set(parsed.symbols)
        warnings: List[AnalysisWarning] = []
        nested, complete = self._collect_nested(name, parsed, resolver, warnings)
        symbols.update(nested)
        if not complete:
            logger.info(f"Symbols of {self._spelling(name, is_system)} incomplete, unknown")
            return HeaderSymbolSet.unknown(name, is_system, warnings)

        return HeaderSymbolSet.known(
            name, is_system, frozenset(symbols), source="parsed", warnings=warnings
        )

    def _collect_nested(
        self,
        root: str,
        parsed: ParsedHeader,
        resolver: Optional[HeaderResolver],
        warnings: List[AnalysisWarning],
    ) -> Tuple[Set[str], bool]:
        """Collect symbols of the local headers reachable from root.

        Iterative depth-first walk. System headers included by local headers
        are not expanded.

        Returns:
            (symbols, complete). complete is False when some nested header was
            unresolvable, unparsable or beyond the depth limit.
        """
        symbols: Set[str] = set()
        complete = True
        visited: Set[str] = {root}
        worklist: List[_PendingInclude] = self._pending(root, parsed, 1, (root,))

        while worklist:
            item = worklist.pop()
            resolved = self._resolve_nested(resolver, item.header, item.parent)
            if resolved is None:
                warnings.append(
                    AnalysisWarning(
                        type=WarningType.UNRESOLVABLE_HEADER,
                        header=item.header,
                        message=(
                            f'"{item.header}" included by "{item.parent}" could not be resolved'
                        ),
                        source_id=item.parent,
                        line=item.line,
                        metadata={"root": root},
                    )
                )
                complete = False
                continue

            key, text = resolved
            if key in item.ancestors:
                chain = " -> ".join(item.ancestors + (key,))
                warnings.append(
                    AnalysisWarning(
                        type=WarningType.CYCLIC_LOCAL_INCLUDE,
                        header=key,
                        message=f"include cycle {chain} cut at \"{key}\"",
                        source_id=item.parent,
                        line=item.line,
                        metadata={"cycle": list(item.ancestors + (key,))},
                    )
                )
                logger.warning(f"Cyclic local include: {chain}")
                continue
            if key in visited:
                continue
            if item.depth > self.max_include_depth:
                warnings.append(
                    AnalysisWarning(
                        type=WarningType.INCLUDE_DEPTH_EXCEEDED,
                        header=key,
                        message=(
                            f'"{key}" is nested {item.depth} levels below "{root}", '
                            f"beyond the limit of {self.max_include_depth}"
                        ),
                        source_id=item.parent,
                        line=item.line,
                        metadata={"depth": item.depth, "limit": self.max_include_depth},
                    )
                )
                logger.warning(f"Include depth limit {self.max_include_depth} reached at {key}")
                complete = False
                continue

            visited.add(key)
            nested = self._parse(key, text)
            if nested.error is not None:
                warnings.append(
                    AnalysisWarning(
                        type=WarningType.UNPARSABLE_HEADER,
                        header=key,
                        message=f'"{key}" could not be parsed: {nested.error}',
                        source_id=item.parent,
                        line=item.line,
                        metadata={"root": root},
                    )
                )
                complete = False
                continue
            symbols.update(nested.symbols)
            worklist.extend(self._pending(key, nested, item.depth + 1, item.ancestors + (key,)))

        return symbols, complete

    @staticmethod
    def _pending(
        parent: str, parsed: ParsedHeader, depth: int, ancestors: Tuple[str, ...]
    ) -> List[_PendingInclude]:
        # reversed so the worklist pops includes in source order
        return [
            _PendingInclude(header, is_system, line, parent, depth, ancestors)
            for header, is_system, line in reversed(parsed.includes)
            if not is_system
        ]

    def _resolve_nested(
        self, resolver: Optional[HeaderResolver], header: str, parent: str
    ) -> Optional[Tuple[str, str]]:
        """Resolve a quoted include relative to its includer first, then as written."""
        candidates = []
        directory = posixpath.dirname(parent)
        if directory:
            candidates.append(posixpath.normpath(posixpath.join(directory, header)))
        candidates.append(normalize_header_name(header))

        for candidate in dict.fromkeys(candidates):
            text = self._resolve(resolver, candidate)
            if text is not None:
                return candidate, text
        return None

    @staticmethod
    def _resolve(resolver: Optional[HeaderResolver], header: str) -> Optional[str]:
        if resolver is None:
            return None
        try:
            return resolver(header)
        except OSError as e:
            logger.debug(f"Resolver failed for {header}: {e}")
            return None

    def _parse(self, header: str, text: str) -> ParsedHeader:
        """Parse header text into declarations, using the cache."""
        key = hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()
        with self._lock:
            entry = self._cache.get(key)
            if entry is not None:
                self._cache.move_to_end(key)
                self._hits += 1
                return entry
            self._misses += 1

        try:
            source = SourceFile.load(text, source_id=header, max_steps=self.max_parse_steps)
            declarations = self._extractor.extract_declarations(source)
        except IncludeAuditError as e:
            with self._lock:
                self._parse_failures += 1
            logger.warning(f"Failed to parse header {header}: {e}")
            entry = ParsedHeader(symbols=frozenset(), error=str(e))
        else:
            symbols = frozenset(s for d in declarations for s in d.spellings())
            includes = tuple(
                (inc.path, inc.is_system, inc.line)
                for inc in source.includes
                if not inc.is_computed
            )
            entry = ParsedHeader(symbols=symbols, includes=includes)
            logger.debug(
                f"Parsed header {header}: {len(symbols)} symbols, {len(includes)} includes"
            )

        with self._lock:
            while len(self._cache) >= self._max_entries:
                self._evict_oldest()
            self._cache[key] = entry
            self._cache.move_to_end(key)
        return entry

    def _evict_oldest(self) -> None:
        """Evict the least recently used entry."""
        if self._cache:
            oldest_key = next(iter(self._cache))
            del self._cache[oldest_key]
            logger.debug(f"Evicted parsed header: {oldest_key[:12]}")

    @staticmethod
    def _spelling(header: str, is_system: bool) -> str:
        return f"<{header}>" if is_system else f'"{header}"'

    def get_statistics(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with cache statistics.
        """
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0

            return {
                "entries": len(self._cache),
                "max_entries": self._max_entries,
                "registered_headers": len(self._registered),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": hit_rate,
                "parse_failures": self._parse_failures,
            }

    def clear(self) -> None:
        """Drop every cached parse and registered table."""
        with self._lock:
            self._cache.clear()
            self._registered.clear()
            self._hits = 0
            self._misses = 0
            self._parse_failures = 0
        logger.debug("Header knowledge base cleared")


_default_knowledge_base: Optional[HeaderKnowledgeBase] = None
_default_lock = threading.Lock()


def default_knowledge_base() -> HeaderKnowledgeBase:
    """Return the shared process-wide knowledge base, creating it on first use."""
    global _default_knowledge_base
    with _default_lock:
        if _default_knowledge_base is None:
            _default_knowledge_base = HeaderKnowledgeBase()
        return _default_knowledge_base
