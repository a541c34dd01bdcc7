# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""IncludeUsageService - orchestration of the analysis pipeline.

Pipeline per file:
1. Pass 1: SourceFile.load builds the directive tree, include list and
   scoped token stream; the extractor collects every symbol usage
2. Pass 2: the Usage Resolution Engine classifies each include against all
   usages of the file, looking headers up in the knowledge base

Pass 2 only starts once pass 1 is complete, so usages that appear before an
include (includes placed inside functions or classes) still count.

Key Responsibilities:
- classify(): the core entry point, raising on fatal per-file errors
- analyze_*(): per-file isolation, collecting errors into FileAnalysis
- Routing analysis warnings to the diagnostics logger
"""

import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from include_audit.config import Config
from include_audit.diagnostics import AnalysisWarning
from include_audit.engine import UsageResolutionEngine
from include_audit.errors import IncludeAuditError
from include_audit.extractor import SymbolReferenceExtractor
from include_audit.knowledge_base import HeaderKnowledgeBase, default_knowledge_base
from include_audit.logging_setup import DIAGNOSTICS_LOGGER_NAME
from include_audit.models import ClassificationResult, HeaderSymbolSet, IncludeDirective, Verdict
from include_audit.resolvers import HeaderResolver, SearchPathResolver, first_of, read_source_text
from include_audit.source import SourceFile

logger = logging.getLogger(__name__)
diagnostics_logger = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)


@dataclass
class FileAnalysis:
    """Outcome of analyzing one file.

    Exactly one of results/error is meaningful: a file that failed with a
    syntax or resource-limit error has no results.
    """

    source_id: str
    results: List[ClassificationResult] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    usage_count: int = 0
    analysis_time: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def warnings(self) -> List[AnalysisWarning]:
        """Warnings of every result, each reported once."""
        seen = set()
        warnings = []
        for result in self.results:
            for warning in result.warnings:
                if id(warning) not in seen:
                    seen.add(id(warning))
                    warnings.append(warning)
        return warnings

    def summary(self) -> Dict[str, int]:
        """Count results per verdict."""
        counts = {Verdict.USED: 0, Verdict.UNUSED: 0, Verdict.INDETERMINATE: 0}
        for result in self.results:
            counts[result.verdict] += 1
        counts["total"] = len(self.results)
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the report layer."""
        data: Dict[str, Any] = {
            "source_id": self.source_id,
            "succeeded": self.succeeded,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary(),
            "usage_count": self.usage_count,
            "analysis_time": self.analysis_time,
        }
        if self.error is not None:
            data["error"] = self.error
            data["error_type"] = self.error_type
        return data


def knowledge_base_from_config(config: Config) -> HeaderKnowledgeBase:
    """Create a knowledge base configured by config."""
    return HeaderKnowledgeBase(
        max_entries=config.knowledge_base_max_entries,
        follow_local_includes=config.follow_local_includes,
        max_include_depth=config.max_local_include_depth,
        max_parse_steps=config.max_parse_steps,
        extra_header_symbols=config.extra_header_symbols,
    )


class IncludeUsageService:
    """Classifies the include directives of C and C++ sources.

    Owned Components:
    - SymbolReferenceExtractor: usage extraction with the default detectors
    - UsageResolutionEngine: stateless classification
    - HeaderKnowledgeBase: shared, thread-safe; the process-wide default
      unless a config or an explicit knowledge base is given

    Files share no mutable state except the knowledge base, so the analyze_*
    methods may run files in parallel.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        knowledge_base: Optional[HeaderKnowledgeBase] = None,
        resolver: Optional[HeaderResolver] = None,
    ):
        """Initialize the service.

        Args:
            config: Analysis configuration. Defaults to built-in defaults
                (use Config() to load .include_audit.yml).
            knowledge_base: Knowledge base to use. Defaults to one built from
                config, or the process-wide one when config is None.
            resolver: Fallback header resolver for every analysis.
        """
        if knowledge_base is None:
            if config is None:
                knowledge_base = default_knowledge_base()
            else:
                knowledge_base = knowledge_base_from_config(config)
        self.config = config or Config.from_dict({})
        self.knowledge_base = knowledge_base
        self.resolver = resolver
        self.extractor = SymbolReferenceExtractor(
            record_directive_usages=self.config.record_directive_usages
        )
        self.engine = UsageResolutionEngine()

    def classify(
        self,
        text: str,
        resolve_local_header: Optional[HeaderResolver] = None,
        source_id: str = "<memory>",
    ) -> List[ClassificationResult]:
        """Classify every include directive of text.

        Returns:
            One result per include directive, in source order, duplicates kept.

        Raises:
            SourceSyntaxError: On malformed conditionals, braces or literals.
            ResourceLimitExceeded: If the parse step budget runs out.
        """
        results, _ = self._classify(text, first_of(resolve_local_header, self.resolver), source_id)
        return results

    def _classify(
        self, text: str, resolver: HeaderResolver, source_id: str
    ) -> Tuple[List[ClassificationResult], int]:
        source = SourceFile.load(text, source_id=source_id, max_steps=self.config.max_parse_steps)
        usages = self.extractor.extract(source)

        lookups: Dict[Tuple[str, bool], HeaderSymbolSet] = {}

        def lookup(include: IncludeDirective) -> HeaderSymbolSet:
            key = (include.path, include.is_system)
            if key not in lookups:
                lookups[key] = self.knowledge_base.lookup(
                    include.path,
                    include.is_system,
                    resolver,
                    source_id=source_id,
                    line=include.line,
                )
            return lookups[key]

        results = self.engine.classify(
            source.includes,
            usages,
            lookup,
            scope_of=lambda include: source.scope_of(include).describe(),
            source_id=source_id,
        )
        return results, len(usages)

    def analyze_source(
        self, text: str, source_id: str = "<memory>", resolver: Optional[HeaderResolver] = None
    ) -> FileAnalysis:
        """Analyze in-memory source text, capturing fatal errors in the result."""
        return self._analyze(text, source_id, first_of(resolver, self.resolver))

    def analyze_file(
        self, path: Union[str, Path], resolver: Optional[HeaderResolver] = None
    ) -> FileAnalysis:
        """Analyze one source file.

        Quoted headers resolve against the file's directory first, then the
        configured include_paths, then the given and service-level resolvers.
        """
        path = Path(path)
        try:
            text = read_source_text(path)
        except OSError as e:
            logger.warning(f"Cannot read {path}: {e}")
            return FileAnalysis(source_id=str(path), error=str(e), error_type=type(e).__name__)

        search = SearchPathResolver([path.parent, *self.config.include_paths])
        return self._analyze(text, str(path), first_of(search, resolver, self.resolver))

    def analyze_many(
        self,
        paths: Iterable[Union[str, Path]],
        resolver: Optional[HeaderResolver] = None,
        max_workers: Optional[int] = None,
    ) -> List[FileAnalysis]:
        """Analyze several files; a failing file never affects the others.

        Args:
            paths: Source files to analyze.
            resolver: Extra header resolver passed to analyze_file.
            max_workers: Thread count. None or 1 analyzes sequentially.

        Returns:
            One FileAnalysis per path, in input order.
        """
        paths = list(paths)
        if not max_workers or max_workers <= 1:
            return [self.analyze_file(p, resolver) for p in paths]
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(lambda p: self.analyze_file(p, resolver), paths))

    def analyze_sources(
        self,
        sources: Mapping[str, str],
        resolver: Optional[HeaderResolver] = None,
        max_workers: Optional[int] = None,
    ) -> List[FileAnalysis]:
        """Analyze several in-memory sources keyed by source id, in mapping order."""
        items = list(sources.items())
        if not max_workers or max_workers <= 1:
            return [self.analyze_source(text, source_id, resolver) for source_id, text in items]
        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(
                executor.map(lambda item: self.analyze_source(item[1], item[0], resolver), items)
            )

    def _analyze(self, text: str, source_id: str, resolver: HeaderResolver) -> FileAnalysis:
        start = time.perf_counter()
        try:
            results, usage_count = self._classify(text, resolver, source_id)
        except IncludeAuditError as e:
            logger.warning(f"Analysis of {source_id} failed: {e}")
            return FileAnalysis(
                source_id=source_id,
                error=str(e),
                error_type=type(e).__name__,
                analysis_time=time.perf_counter() - start,
            )

        analysis = FileAnalysis(
            source_id=source_id,
            results=results,
            usage_count=usage_count,
            analysis_time=time.perf_counter() - start,
        )
        for warning in analysis.warnings:
            diagnostics_logger.info(warning.message, extra={"extra_fields": warning.to_dict()})

        summary = analysis.summary()
        logger.info(
            f"Analyzed {source_id}: {summary['total']} includes "
            f"({summary[Verdict.USED]} used, {summary[Verdict.UNUSED]} unused, "
            f"{summary[Verdict.INDETERMINATE]} indeterminate)"
        )
        return analysis


def classify(
    text: str,
    resolve_local_header: Optional[HeaderResolver] = None,
    *,
    source_id: str = "<memory>",
    config: Optional[Config] = None,
    knowledge_base: Optional[HeaderKnowledgeBase] = None,
) -> List[ClassificationResult]:
    """Classify every include directive of a C or C++ source text.

    Args:
        text: Source text of the translation unit.
        resolve_local_header: Callback returning a header's text, or None.
        source_id: Name used in errors and warnings.
        config: Analysis configuration (defaults when None).
        knowledge_base: Knowledge base (process-wide one when None).

    Returns:
        One ClassificationResult per include directive, in source order.

    Raises:
        SourceSyntaxError: On malformed conditionals, braces or literals.
        ResourceLimitExceeded: If the parse step budget runs out.
    """
    service = IncludeUsageService(config=config, knowledge_base=knowledge_base)
    return service.classify(text, resolve_local_header, source_id=source_id)
