# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Include usage analysis for C and C++ sources."""

from .config import Config, ConfigurationError
from .diagnostics import AnalysisWarning, WarningType
from .engine import UsageResolutionEngine
from .errors import IncludeAuditError, ResourceLimitExceeded, SourceSyntaxError
from .knowledge_base import HeaderKnowledgeBase, default_knowledge_base
from .models import ClassificationResult, Completeness, HeaderSymbolSet, Verdict
from .resolvers import MappingResolver, SearchPathResolver
from .service import FileAnalysis, IncludeUsageService, classify
from .source import SourceFile

__version__ = "0.1.0"

__all__ = [
    "classify",
    "IncludeUsageService",
    "FileAnalysis",
    "SourceFile",
    "UsageResolutionEngine",
    "HeaderKnowledgeBase",
    "default_knowledge_base",
    "ClassificationResult",
    "HeaderSymbolSet",
    "Completeness",
    "Verdict",
    "AnalysisWarning",
    "WarningType",
    "Config",
    "ConfigurationError",
    "IncludeAuditError",
    "SourceSyntaxError",
    "ResourceLimitExceeded",
    "MappingResolver",
    "SearchPathResolver",
]
