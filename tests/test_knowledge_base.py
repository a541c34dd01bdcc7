# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for HeaderKnowledgeBase.

Tests header lookup functionality including:
- Built-in and configured symbol tables
- Parsing local headers through a resolver
- Nested local includes, cycles, diamonds and the depth limit
- Parse caching, LRU eviction and statistics
"""

import concurrent.futures

import pytest

from include_audit.config import Config
from include_audit.diagnostics import WarningType
from include_audit.knowledge_base import HeaderKnowledgeBase, default_knowledge_base
from include_audit.models import Completeness
from include_audit.resolvers import MappingResolver
from include_audit.stdlib_symbols import builtin_symbols


@pytest.fixture
def kb():
    return HeaderKnowledgeBase()


class TestBuiltinAndConfigured:
    """Tests for lookups that need no parsing."""

    def test_builtin_system_header(self, kb):
        symbol_set = kb.lookup("cmath", True)

        assert symbol_set.is_known
        assert symbol_set.source == "builtin"
        assert "sqrt" in symbol_set.symbols
        assert symbol_set.warnings == []

    def test_c_and_cpp_spellings_share_a_table(self):
        assert builtin_symbols("cstdio") == builtin_symbols("stdio.h")

    @pytest.mark.parametrize("header", ["assert.h", "cassert"])
    def test_assert_tables_leave_out_user_defined_ndebug(self, kb, header):
        symbols = kb.lookup(header, True).symbols

        assert "assert" in symbols
        assert "NDEBUG" not in symbols

    def test_windows_headers_are_case_insensitive(self, kb):
        symbol_set = kb.lookup("Windows.h", True)

        assert symbol_set.is_known
        assert "GetUserName" in symbol_set.symbols

    def test_backslash_separators_are_normalized(self, kb):
        assert kb.lookup("sys\\types.h", True).symbols == builtin_symbols("sys/types.h")

    def test_configured_header(self):
        kb = HeaderKnowledgeBase(extra_header_symbols={"spdlog/spdlog.h": ["spdlog", "info"]})

        symbol_set = kb.lookup("spdlog/spdlog.h", False)

        assert symbol_set.is_known
        assert symbol_set.source == "config"
        assert symbol_set.symbols == frozenset(["spdlog", "info"])

    def test_configured_table_overrides_builtin(self, kb):
        kb.register_header("set", ["only_this"])

        assert kb.lookup("set", True).symbols == frozenset(["only_this"])

    def test_quoted_header_gets_no_builtin_table(self, kb):
        symbol_set = kb.lookup("set", False)

        assert not symbol_set.is_known


class TestUnresolvable:
    """Tests for headers whose text is unavailable."""

    def test_unknown_without_resolver(self, kb):
        symbol_set = kb.lookup("spdlog/spdlog.h", False, source_id="main.cpp", line=3)

        assert symbol_set.completeness == Completeness.UNKNOWN
        assert symbol_set.symbols == frozenset()
        warning = symbol_set.warnings[0]
        assert warning.type == WarningType.UNRESOLVABLE_HEADER
        assert warning.header == "spdlog/spdlog.h"
        assert warning.source_id == "main.cpp"
        assert warning.line == 3

    def test_resolver_declining(self, kb):
        symbol_set = kb.lookup("missing.h", False, MappingResolver())

        assert not symbol_set.is_known

    def test_resolver_raising_oserror_declines(self, kb):
        def broken(header):
            raise PermissionError(header)

        symbol_set = kb.lookup("secret.h", False, broken)

        assert not symbol_set.is_known
        assert symbol_set.warnings[0].type == WarningType.UNRESOLVABLE_HEADER

    def test_uncurated_system_header_uses_resolver(self, kb):
        resolver = MappingResolver({"mylib/api.h": "int mylib_init(void);"})

        symbol_set = kb.lookup("mylib/api.h", True, resolver)

        assert symbol_set.is_known
        assert symbol_set.source == "parsed"
        assert "mylib_init" in symbol_set.symbols


class TestParsedHeaders:
    """Tests for local header parsing."""

    def test_parsed_header(self, kb):
        resolver = MappingResolver(
            {"utils.h": "namespace util { int add(int a, int b); }\n#define LIMIT 4\n"}
        )

        symbol_set = kb.lookup("utils.h", False, resolver)

        assert symbol_set.source == "parsed"
        assert symbol_set.symbols == frozenset(["add", "util::add", "LIMIT"])

    def test_nested_local_includes(self, kb):
        resolver = MappingResolver(
            {
                "a.h": '#include "b.h"\n#include <vector>\nint a_func();\n',
                "b.h": "int b_func();\n",
            }
        )

        symbols = kb.lookup("a.h", False, resolver).symbols

        assert symbols == frozenset(["a_func", "b_func"])

    def test_nested_include_relative_to_includer(self, kb):
        resolver = MappingResolver(
            {
                "lib/a.h": '#include "b.h"\nint a_func();\n',
                "lib/b.h": "int b_func();\n",
            }
        )

        assert "b_func" in kb.lookup("lib/a.h", False, resolver).symbols

    def test_nested_includes_not_followed_when_disabled(self):
        kb = HeaderKnowledgeBase(follow_local_includes=False)
        resolver = MappingResolver(
            {"a.h": '#include "b.h"\nint a_func();\n', "b.h": "int b_func();\n"}
        )

        symbol_set = kb.lookup("a.h", False, resolver, source_id="main.cpp", line=1)

        assert not symbol_set.is_known
        warning = symbol_set.warnings[0]
        assert warning.type == WarningType.LOCAL_INCLUDES_NOT_FOLLOWED
        assert warning.metadata == {"includes": ["b.h"]}
        assert (warning.source_id, warning.line) == ("main.cpp", 1)

    def test_disabled_following_keeps_headers_without_local_includes_known(self):
        kb = HeaderKnowledgeBase(follow_local_includes=False)
        resolver = MappingResolver({"a.h": "#include <vector>\nint a_func();\n"})

        symbol_set = kb.lookup("a.h", False, resolver)

        assert symbol_set.is_known
        assert symbol_set.symbols == frozenset(["a_func"])

    def test_cycle_is_cut_with_warning(self, kb):
        resolver = MappingResolver(
            {
                "a.h": '#include "b.h"\nint a_func();\n',
                "b.h": '#include "a.h"\nint b_func();\n',
            }
        )

        symbol_set = kb.lookup("a.h", False, resolver)

        assert symbol_set.is_known
        assert symbol_set.symbols == frozenset(["a_func", "b_func"])
        assert [w.type for w in symbol_set.warnings] == [WarningType.CYCLIC_LOCAL_INCLUDE]
        assert symbol_set.warnings[0].metadata["cycle"] == ["a.h", "b.h", "a.h"]

    def test_self_include(self, kb):
        resolver = MappingResolver({"self.h": '#include "self.h"\nint s();\n'})

        symbol_set = kb.lookup("self.h", False, resolver)

        assert symbol_set.symbols == frozenset(["s"])
        assert symbol_set.warnings[0].type == WarningType.CYCLIC_LOCAL_INCLUDE

    def test_diamond_parses_shared_header_once(self, kb):
        resolver = MappingResolver(
            {
                "top.h": '#include "left.h"\n#include "right.h"\n',
                "left.h": '#include "base.h"\nint left();\n',
                "right.h": '#include "base.h"\nint right();\n',
                "base.h": "int base();\n",
            }
        )

        symbol_set = kb.lookup("top.h", False, resolver)

        assert symbol_set.symbols == frozenset(["left", "right", "base"])
        assert symbol_set.warnings == []
        assert kb.get_statistics()["misses"] == 4

    def test_depth_limit(self):
        kb = HeaderKnowledgeBase(max_include_depth=2)
        resolver = MappingResolver(
            {
                "h0.h": '#include "h1.h"\nint f0();\n',
                "h1.h": '#include "h2.h"\nint f1();\n',
                "h2.h": '#include "h3.h"\nint f2();\n',
                "h3.h": "int f3();\n",
            }
        )

        symbol_set = kb.lookup("h0.h", False, resolver)

        assert not symbol_set.is_known
        assert symbol_set.symbols == frozenset()
        warning = symbol_set.warnings[0]
        assert warning.type == WarningType.INCLUDE_DEPTH_EXCEEDED
        assert warning.metadata == {"depth": 3, "limit": 2}

    def test_chain_within_depth_limit_is_known(self):
        kb = HeaderKnowledgeBase(max_include_depth=3)
        resolver = MappingResolver(
            {
                "h0.h": '#include "h1.h"\nint f0();\n',
                "h1.h": '#include "h2.h"\nint f1();\n',
                "h2.h": '#include "h3.h"\nint f2();\n',
                "h3.h": "int f3();\n",
            }
        )

        symbol_set = kb.lookup("h0.h", False, resolver)

        assert symbol_set.is_known
        assert symbol_set.symbols == frozenset(["f0", "f1", "f2", "f3"])
        assert symbol_set.warnings == []

    def test_unresolvable_nested_header_makes_set_unknown(self, kb):
        resolver = MappingResolver({"a.h": '#include "gone.h"\nint a_func();\n'})

        symbol_set = kb.lookup("a.h", False, resolver)

        assert not symbol_set.is_known
        assert symbol_set.completeness == Completeness.UNKNOWN
        assert symbol_set.warnings[0].type == WarningType.UNRESOLVABLE_HEADER
        assert symbol_set.warnings[0].metadata == {"root": "a.h"}

    def test_unparsable_header_is_unknown(self, kb):
        resolver = MappingResolver({"broken.h": "int f() {\n"})

        symbol_set = kb.lookup("broken.h", False, resolver)

        assert not symbol_set.is_known
        assert symbol_set.warnings[0].type == WarningType.UNPARSABLE_HEADER
        assert kb.get_statistics()["parse_failures"] == 1

    def test_unparsable_nested_header_makes_set_unknown(self, kb):
        resolver = MappingResolver(
            {"a.h": '#include "broken.h"\nint a_func();\n', "broken.h": "#endif\n"}
        )

        symbol_set = kb.lookup("a.h", False, resolver)

        assert not symbol_set.is_known
        assert symbol_set.warnings[0].type == WarningType.UNPARSABLE_HEADER

    def test_parse_budget_applies_to_headers(self):
        kb = HeaderKnowledgeBase(max_parse_steps=3)
        resolver = MappingResolver({"big.h": "int a; int b; int c;\n"})

        symbol_set = kb.lookup("big.h", False, resolver)

        assert not symbol_set.is_known
        assert "budget" in symbol_set.warnings[0].message


class TestCache:
    """Tests for parse caching and statistics."""

    def test_identical_text_is_parsed_once(self, kb):
        resolver = MappingResolver({"one.h": "int f();\n", "two.h": "int f();\n"})

        kb.lookup("one.h", False, resolver)
        kb.lookup("two.h", False, resolver)
        kb.lookup("one.h", False, resolver)

        stats = kb.get_statistics()
        assert stats["misses"] == 1
        assert stats["hits"] == 2
        assert stats["hit_rate"] == pytest.approx(2 / 3)
        assert stats["entries"] == 1

    def test_lru_eviction(self):
        kb = HeaderKnowledgeBase(max_entries=2)
        resolver = MappingResolver({f"h{i}.h": f"int f{i}();\n" for i in range(3)})

        for i in range(3):
            kb.lookup(f"h{i}.h", False, resolver)

        assert kb.get_statistics()["entries"] == 2

    def test_clear(self, kb):
        kb.register_header("x.h", ["x"])
        kb.lookup("a.h", False, MappingResolver({"a.h": "int a();\n"}))

        kb.clear()

        stats = kb.get_statistics()
        assert stats["entries"] == 0
        assert stats["registered_headers"] == 0
        assert stats["misses"] == 0

    def test_concurrent_lookups(self, kb):
        resolver = MappingResolver({f"h{i}.h": f"int f{i}();\n" for i in range(8)})

        with concurrent.futures.ThreadPoolExecutor(max_workers=4) as executor:
            results = list(
                executor.map(lambda i: kb.lookup(f"h{i % 8}.h", False, resolver), range(64))
            )

        assert all(r.is_known for r in results)
        assert results[3].symbols == frozenset(["f3"])

    def test_default_knowledge_base_is_shared(self):
        assert default_knowledge_base() is default_knowledge_base()

    def test_default_knowledge_base_has_a_parse_budget(self):
        assert default_knowledge_base().max_parse_steps == Config.DEFAULTS["max_parse_steps"]
        assert HeaderKnowledgeBase().max_parse_steps == 200000
