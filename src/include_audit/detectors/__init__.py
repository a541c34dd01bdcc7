# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Detector plugins for symbol extraction from scoped token streams.

Components:
- UsageDetector: Abstract base class for detector plugins
- ExtractionContext: Per-pass claim and alias state shared by detectors
- DetectorRegistry: Priority-based registry for detector plugins
- UsingDirectiveDetector: using namespace / using-declarations / namespace aliases
- OperatorDetector: operator-overload names
- QualifiedNameDetector: a::b::c chains
- MacroDetector: upper-case macro-like names
- TemplateDetector: Name<...> instantiations
- IdentifierDetector: fallback for plain identifiers and member names
- DeclarationDetector: names a header introduces (declaration mode only)
"""

from include_audit.detectors.base import ExtractionContext, UsageDetector, is_macro_like
from include_audit.detectors.declaration_detector import DeclarationDetector
from include_audit.detectors.identifier_detector import IdentifierDetector
from include_audit.detectors.macro_detector import MacroDetector
from include_audit.detectors.operator_detector import OperatorDetector
from include_audit.detectors.qualified_name_detector import QualifiedNameDetector
from include_audit.detectors.registry import DetectorRegistry
from include_audit.detectors.template_detector import TemplateDetector
from include_audit.detectors.using_directive_detector import UsingDirectiveDetector


def default_registry() -> DetectorRegistry:
    """Create a registry holding every built-in detector."""
    registry = DetectorRegistry()
    registry.register(UsingDirectiveDetector())
    registry.register(OperatorDetector())
    registry.register(QualifiedNameDetector())
    registry.register(MacroDetector())
    registry.register(TemplateDetector())
    registry.register(DeclarationDetector())
    registry.register(IdentifierDetector())
    return registry


__all__ = [
    # Base classes
    "UsageDetector",
    "ExtractionContext",
    "DetectorRegistry",
    "is_macro_like",
    "default_registry",
    # Usage detectors
    "UsingDirectiveDetector",
    "OperatorDetector",
    "QualifiedNameDetector",
    "MacroDetector",
    "TemplateDetector",
    "IdentifierDetector",
    # Declaration detectors
    "DeclarationDetector",
]
