# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for the Usage Resolution Engine."""

import pytest

from include_audit.diagnostics import AnalysisWarning, WarningType
from include_audit.engine import UsageIndex, UsageResolutionEngine
from include_audit.models import (
    ConditionKind,
    DirectiveTree,
    HeaderSymbolSet,
    IncludeDirective,
    Scope,
    ScopeKind,
    SymbolUsage,
    UsageKind,
    Verdict,
)


@pytest.fixture
def tree():
    """root(0) -> ifdef _WIN32 (1) / else (2)."""
    tree = DirectiveTree()
    win = tree.add_branch(tree.root, ConditionKind.IF, "ifdef _WIN32", 1)
    tree.add_branch(tree.root, ConditionKind.ELSE, "else", 3, chain_id=win.chain_id)
    return tree


@pytest.fixture
def scope():
    return Scope(id=0, kind=ScopeKind.GLOBAL)


def _usage(name, branch, scope, qualified_name=None, line=10):
    return SymbolUsage(
        name, UsageKind.IDENTIFIER, line, scope, branch, qualified_name=qualified_name
    )


def _lookup(tables):
    def lookup(include):
        symbols = tables[include.path]
        if symbols is None:
            return HeaderSymbolSet.unknown(include.path, include.is_system)
        return HeaderSymbolSet.known(
            include.path, include.is_system, frozenset(symbols), source="builtin"
        )

    return lookup


class TestClassification:
    """Tests for per-include verdicts."""

    def test_used_with_sorted_justification(self, tree, scope):
        include = IncludeDirective("cmath", True, tree.root, 1, 0)
        usages = [
            _usage("sqrt", tree.root, scope),
            _usage("pow", tree.root, scope),
            _usage("sqrt", tree.root, scope, line=12),
            _usage("main", tree.root, scope),
        ]

        lookup = _lookup({"cmath": ["sqrt", "pow", "floor"]})

        results = UsageResolutionEngine().classify([include], usages, lookup)

        assert results[0].verdict == Verdict.USED
        assert results[0].justification == ["pow", "sqrt"]

    def test_unused_when_nothing_matches(self, tree, scope):
        include = IncludeDirective("ctime", True, tree.root, 1, 0)

        results = UsageResolutionEngine().classify(
            [include], [_usage("sqrt", tree.root, scope)], _lookup({"ctime": ["time", "clock"]})
        )

        assert results[0].verdict == Verdict.UNUSED
        assert results[0].justification == []

    def test_unknown_is_indeterminate(self, tree, scope):
        include = IncludeDirective("spdlog/spdlog.h", False, tree.root, 1, 0)

        results = UsageResolutionEngine().classify(
            [include], [_usage("info", tree.root, scope)], _lookup({"spdlog/spdlog.h": None})
        )

        assert results[0].verdict == Verdict.INDETERMINATE
        assert results[0].justification == []

    def test_lookup_warnings_are_attached(self, tree, scope):
        warning = AnalysisWarning(
            WarningType.UNRESOLVABLE_HEADER, "x.h", '"x.h" could not be resolved'
        )
        include = IncludeDirective("x.h", False, tree.root, 1, 0)

        results = UsageResolutionEngine().classify(
            [include], [], lambda inc: HeaderSymbolSet.unknown("x.h", False, [warning])
        )

        assert results[0].warnings == [warning]

    def test_computed_include_is_indeterminate(self, tree, scope):
        include = IncludeDirective("PLATFORM_HEADER", False, tree.root, 4, 0, is_computed=True)

        def lookup(inc):
            raise AssertionError("computed includes are never looked up")

        results = UsageResolutionEngine().classify([include], [], lookup)

        assert results[0].verdict == Verdict.INDETERMINATE
        assert results[0].is_computed
        assert results[0].warnings[0].type == WarningType.COMPUTED_INCLUDE
        assert results[0].warnings[0].line == 4

    def test_justification_uses_literal_names(self, tree, scope):
        include = IncludeDirective("iostream", True, tree.root, 1, 0)
        usage = _usage("cout", tree.root, scope, qualified_name="std::cout")

        lookup = _lookup({"iostream": ["std::cout"]})

        results = UsageResolutionEngine().classify([include], [usage], lookup)

        assert results[0].justification == ["cout"]

    def test_result_fields(self, tree, scope):
        include = IncludeDirective("set", True, tree.node(1), 2, 0)

        results = UsageResolutionEngine().classify(
            [include], [], _lookup({"set": ["set"]}), scope_of=lambda inc: "namespace net"
        )

        result = results[0]
        assert (result.path, result.is_system) == ("set", True)
        assert (result.branch_path, result.line) == ("0/1", 2)
        assert result.scope == "namespace net"


class TestBranchCompatibility:
    """Tests for the reachability rule."""

    def test_usage_in_sibling_branch_does_not_count(self, tree, scope):
        win, other = tree.node(1), tree.node(2)
        includes = [
            IncludeDirective("windows.h", True, win, 2, 0),
            IncludeDirective("unistd.h", True, other, 4, 1),
        ]
        usages = [_usage("getcwd", other, scope)]

        results = UsageResolutionEngine().classify(
            includes,
            usages,
            _lookup({"windows.h": ["GetUserName", "getcwd"], "unistd.h": ["getcwd"]}),
        )

        assert [r.verdict for r in results] == [Verdict.UNUSED, Verdict.USED]

    def test_usage_in_nested_branch_counts_for_outer_include(self, tree, scope):
        include = IncludeDirective("unistd.h", True, tree.root, 1, 0)

        results = UsageResolutionEngine().classify(
            [include], [_usage("getcwd", tree.node(2), scope)], _lookup({"unistd.h": ["getcwd"]})
        )

        assert results[0].verdict == Verdict.USED

    def test_unconditional_usage_counts_for_guarded_include(self, tree, scope):
        include = IncludeDirective("set", True, tree.node(1), 2, 0)

        results = UsageResolutionEngine().classify(
            [include], [_usage("set", tree.root, scope)], _lookup({"set": ["set"]})
        )

        assert results[0].verdict == Verdict.USED

    def test_compatible(self, tree):
        engine = UsageResolutionEngine()

        assert engine.compatible(tree.root, tree.node(1))
        assert not engine.compatible(tree.node(1), tree.node(2))


class TestEvidenceSharing:
    """Tests that usage evidence is never consumed."""

    def test_every_provider_is_used(self, tree, scope):
        includes = [
            IncludeDirective("cstdio", True, tree.root, 1, 0),
            IncludeDirective("cstdlib", True, tree.root, 2, 1),
        ]

        results = UsageResolutionEngine().classify(
            includes,
            [_usage("NULL", tree.root, scope)],
            _lookup({"cstdio": ["NULL"], "cstdlib": ["NULL"]}),
        )

        assert [r.verdict for r in results] == [Verdict.USED, Verdict.USED]
        assert [r.justification for r in results] == [["NULL"], ["NULL"]]

    def test_duplicate_includes_each_get_a_result(self, tree, scope):
        includes = [
            IncludeDirective("set", True, tree.root, 1, 0),
            IncludeDirective("set", True, tree.root, 2, 1),
        ]

        results = UsageResolutionEngine().classify(
            includes, [_usage("set", tree.root, scope)], _lookup({"set": ["set"]})
        )

        assert [(r.line, r.verdict) for r in results] == [(1, Verdict.USED), (2, Verdict.USED)]


class TestUsageIndex:
    """Tests for UsageIndex."""

    def test_matching_by_any_candidate(self, tree, scope):
        bare = _usage("cout", tree.root, scope)
        qualified = _usage("cout", tree.root, scope, qualified_name="std::cout")
        index = UsageIndex([bare, qualified])

        assert len(index) == 2
        assert index.matching(frozenset(["std::cout"])) == {"std::cout": [qualified]}
        assert index.matching(frozenset(["cout", "cin"])) == {"cout": [bare, qualified]}
