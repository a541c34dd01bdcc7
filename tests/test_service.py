# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for IncludeUsageService and the classify() entry point."""

import logging

import pytest

from include_audit import classify
from include_audit.config import Config
from include_audit.diagnostics import WarningType
from include_audit.errors import ResourceLimitExceeded, SourceSyntaxError
from include_audit.knowledge_base import HeaderKnowledgeBase
from include_audit.logging_setup import DIAGNOSTICS_LOGGER_NAME
from include_audit.models import Verdict
from include_audit.resolvers import MappingResolver
from include_audit.service import FileAnalysis, IncludeUsageService

SCENARIO_A = """\
#include <cmath>
#include <iostream>
#include <ctime>

int main() {
    double x = 2.0;
    std::cout << sqrt(x);
    return 0;
}
"""

SCENARIO_B = """\
#include "spdlog/spdlog.h"

int main() {
    spdlog::info("starting");
    return 0;
}
"""

SCENARIO_C = """\
#ifdef _WIN32
#include <windows.h>
#else
#include <unistd.h>
void show_cwd() {
    char buf[256];
    getcwd(buf, sizeof(buf));
}
#endif
"""

SCENARIO_D = """\
#ifndef MYHEADER_H
#define MYHEADER_H
#include <set>
#endif

int main() {
    std::set<int> values;
    return 0;
}
"""


@pytest.fixture
def kb():
    return HeaderKnowledgeBase()


@pytest.fixture
def service(kb):
    return IncludeUsageService(knowledge_base=kb)


def _verdicts(results):
    return [(r.path, r.verdict, r.justification) for r in results]


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def diagnostics_records():
    diagnostics = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)
    handler = _ListHandler()
    previous_level = diagnostics.level
    diagnostics.addHandler(handler)
    diagnostics.setLevel(logging.INFO)
    yield handler.records
    diagnostics.removeHandler(handler)
    diagnostics.setLevel(previous_level)


class TestScenarios:
    """End-to-end classification of the reference scenarios."""

    def test_scenario_a_standard_headers(self, kb):
        results = classify(SCENARIO_A, knowledge_base=kb)

        assert _verdicts(results) == [
            ("cmath", Verdict.USED, ["sqrt"]),
            ("iostream", Verdict.USED, ["cout"]),
            ("ctime", Verdict.UNUSED, []),
        ]

    def test_scenario_b_unresolvable_header(self, service):
        results = service.classify(SCENARIO_B, lambda path: None)

        assert _verdicts(results) == [("spdlog/spdlog.h", Verdict.INDETERMINATE, [])]
        assert results[0].warnings[0].type == WarningType.UNRESOLVABLE_HEADER

    def test_scenario_b_with_header_text(self, service):
        resolver = MappingResolver(
            {"spdlog/spdlog.h": "namespace spdlog { void info(const char* msg); }"}
        )

        results = service.classify(SCENARIO_B, resolver)

        assert _verdicts(results) == [("spdlog/spdlog.h", Verdict.USED, ["info"])]

    def test_scenario_c_exclusive_branches(self, service):
        results = service.classify(SCENARIO_C)

        assert _verdicts(results) == [
            ("windows.h", Verdict.UNUSED, []),
            ("unistd.h", Verdict.USED, ["getcwd"]),
        ]
        assert [r.branch_path for r in results] == ["0/1", "0/2"]

    def test_scenario_d_include_guard(self, service):
        results = service.classify(SCENARIO_D)

        assert _verdicts(results) == [("set", Verdict.USED, ["set"])]
        assert results[0].branch_path == "0/1"


class TestProperties:
    """Tests for the invariants every classification keeps."""

    def test_idempotence(self, service):
        text = SCENARIO_A + SCENARIO_C

        def snapshot():
            return [
                (r.path, r.verdict, r.justification, r.branch_path, r.line)
                for r in service.classify(text)
            ]

        assert snapshot() == snapshot()

    def test_branch_independence(self, service):
        text = (
            "#ifdef USE_SET\n"
            "void f() { std::set<int> s; }\n"
            "#else\n"
            "#include <set>\n"
            "#endif\n"
        )

        results = service.classify(text)

        assert results[0].verdict == Verdict.UNUSED

    def test_never_false_unused(self, service):
        results = service.classify('#include "generated/config.h"\nint main() { return 0; }\n')

        assert results[0].verdict == Verdict.INDETERMINATE

    def test_known_header_without_usage_is_unused(self, service):
        results = service.classify("#include <vector>\n#include <map>\nint main() { return 0; }\n")

        assert [r.verdict for r in results] == [Verdict.UNUSED, Verdict.UNUSED]

    def test_order_and_duplicates_are_kept(self, service):
        text = (
            "#include <vector>\n"
            "#ifdef A\n"
            "#include <set>\n"
            "#else\n"
            "#include <set>\n"
            "#endif\n"
            "#include <vector>\n"
            "std::vector<int> v;\n"
        )

        results = service.classify(text)

        assert [(r.path, r.line) for r in results] == [
            ("vector", 1),
            ("set", 3),
            ("set", 5),
            ("vector", 7),
        ]
        assert [r.verdict for r in results] == [
            Verdict.USED,
            Verdict.UNUSED,
            Verdict.UNUSED,
            Verdict.USED,
        ]

    def test_usage_before_include_counts(self, service):
        text = 'void helper() {\n    printf("x");\n}\nvoid f() {\n#include <stdio.h>\n}\n'

        results = service.classify(text)

        assert results[0].verdict == Verdict.USED
        assert results[0].scope == "function f"

    def test_macro_body_usage(self, service):
        text = "#include <unistd.h>\n#define GetCurrentDir getcwd\n"

        assert service.classify(text)[0].verdict == Verdict.USED

    def test_using_namespace_std(self, service):
        text = "#include <iostream>\nusing namespace std;\nint main() { cout << endl; }\n"

        assert service.classify(text)[0].justification == ["cout", "endl"]

    def test_keyword_symbols_from_c_headers(self, service):
        text = (
            "#include <stdbool.h>\n"
            "#include <assert.h>\n"
            "#include <uchar.h>\n"
            "bool ready(void) { return true; }\n"
            'static_assert(sizeof(int) >= 2, "int too small");\n'
        )

        assert _verdicts(service.classify(text)) == [
            ("stdbool.h", Verdict.USED, ["bool", "true"]),
            ("assert.h", Verdict.USED, ["static_assert"]),
            ("uchar.h", Verdict.UNUSED, []),
        ]

    def test_ndebug_check_does_not_use_assert_header(self, service):
        text = "#include <assert.h>\n#ifdef NDEBUG\nint release_build;\n#endif\n"

        assert _verdicts(service.classify(text)) == [("assert.h", Verdict.UNUSED, [])]

    def test_computed_include(self, service):
        text = "#define PLATFORM_HEADER <windows.h>\n#include PLATFORM_HEADER\n"
        results = service.classify(text)

        assert results[0].verdict == Verdict.INDETERMINATE
        assert results[0].is_computed
        assert results[0].spelling == "PLATFORM_HEADER"


class TestLocalHeaders:
    """Tests for headers served by resolvers."""

    def test_local_header_used(self, service):
        resolver = MappingResolver(
            {
                "utils.h": "namespace util {\nint add(int a, int b);\n}\n",
                "unused.h": "int unused_function(void);\n",
            }
        )
        text = '#include "utils.h"\n#include "unused.h"\nint main() { return util::add(1, 2); }\n'

        results = service.classify(text, resolver)

        assert _verdicts(results) == [
            ("utils.h", Verdict.USED, ["add"]),
            ("unused.h", Verdict.UNUSED, []),
        ]

    def test_cyclic_local_headers(self, service):
        resolver = MappingResolver(
            {
                "a.h": '#include "b.h"\nint a_func();\n',
                "b.h": '#include "a.h"\nint b_func();\n',
            }
        )

        results = service.classify('#include "a.h"\nint main() { return b_func(); }\n', resolver)

        assert results[0].verdict == Verdict.USED
        assert results[0].justification == ["b_func"]
        assert results[0].warnings[0].type == WarningType.CYCLIC_LOCAL_INCLUDE

    def test_header_with_unresolvable_nested_include_is_indeterminate(self, service):
        resolver = MappingResolver({"wrapper.h": '#include "missing_impl.h"\nint wrap(void);\n'})

        text = '#include "wrapper.h"\nint main() { return impl_call(); }\n'
        results = service.classify(text, resolver)

        assert results[0].verdict == Verdict.INDETERMINATE
        assert results[0].warnings[0].type == WarningType.UNRESOLVABLE_HEADER

    def test_not_following_local_includes_is_indeterminate(self):
        service = IncludeUsageService(
            config=Config.from_dict({"follow_local_includes": False}),
            resolver=MappingResolver({"a.h": '#include "b.h"\n', "b.h": "int b_func();\n"}),
        )

        results = service.classify('#include "a.h"\nint main() { return b_func(); }\n')

        assert results[0].verdict == Verdict.INDETERMINATE
        assert results[0].warnings[0].type == WarningType.LOCAL_INCLUDES_NOT_FOLLOWED

    def test_service_resolver_is_a_fallback(self, kb):
        fallback = MappingResolver({"lib.h": "int lib_call();\n"})
        service = IncludeUsageService(knowledge_base=kb, resolver=fallback)

        results = service.classify('#include "lib.h"\nint main() { return lib_call(); }\n')

        assert results[0].verdict == Verdict.USED


class TestConfiguration:
    """Tests for configuration-driven behavior."""

    def test_extra_header_symbols(self):
        config = Config.from_dict({"extra_header_symbols": {"spdlog/spdlog.h": ["spdlog", "info"]}})
        service = IncludeUsageService(config=config)

        results = service.classify(SCENARIO_B)

        assert _verdicts(results) == [("spdlog/spdlog.h", Verdict.USED, ["info", "spdlog"])]

    def test_directive_usages_disabled(self, kb):
        config = Config.from_dict({"record_directive_usages": False})
        service = IncludeUsageService(config=config, knowledge_base=kb)

        results = service.classify("#include <unistd.h>\n#define GetCurrentDir getcwd\n")

        assert results[0].verdict == Verdict.UNUSED

    def test_parse_step_budget(self, kb):
        config = Config.from_dict({"max_parse_steps": 5})
        service = IncludeUsageService(config=config, knowledge_base=kb)

        with pytest.raises(ResourceLimitExceeded):
            service.classify("int a; int b; int c;\n")


class TestFatalErrors:
    """Tests for per-file error isolation."""

    def test_classify_raises_syntax_error(self, service):
        with pytest.raises(SourceSyntaxError):
            service.classify("#if A\n#include <set>\n", source_id="bad.c")

    def test_analyze_source_captures_error(self, service):
        analysis = service.analyze_source("#endif\n", source_id="bad.c")

        assert not analysis.succeeded
        assert analysis.error_type == "SourceSyntaxError"
        assert analysis.error.startswith("bad.c:1:")
        assert analysis.results == []
        assert analysis.to_dict()["error_type"] == "SourceSyntaxError"

    def test_analyze_sources_isolates_failures(self, service):
        sources = {"good.c": SCENARIO_A, "bad.c": "int main() {\n", "also_good.c": SCENARIO_D}

        analyses = service.analyze_sources(sources, max_workers=2)

        assert [a.source_id for a in analyses] == ["good.c", "bad.c", "also_good.c"]
        assert [a.succeeded for a in analyses] == [True, False, True]

    def test_parallel_matches_sequential(self, service):
        sources = {f"file{i}.c": SCENARIO_A if i % 2 else SCENARIO_C for i in range(8)}

        sequential = service.analyze_sources(sources)
        parallel = service.analyze_sources(sources, max_workers=4)

        expected = [_verdicts(a.results) for a in sequential]
        assert [_verdicts(a.results) for a in parallel] == expected


class TestFiles:
    """Tests for analyze_file and analyze_many."""

    def test_analyze_file_resolves_sibling_header(self, service, tmp_path):
        (tmp_path / "utils.h").write_text("int helper(int x);\n")
        source = tmp_path / "main.c"
        source.write_text(
            '#include "utils.h"\n#include <stdio.h>\nint main() { return helper(1); }\n'
        )

        analysis = service.analyze_file(source)

        assert analysis.succeeded
        assert analysis.source_id == str(source)
        assert _verdicts(analysis.results) == [
            ("utils.h", Verdict.USED, ["helper"]),
            ("stdio.h", Verdict.UNUSED, []),
        ]
        # main and helper
        assert analysis.usage_count == 2

    def test_analyze_file_uses_include_paths(self, kb, tmp_path):
        include_dir = tmp_path / "include"
        include_dir.mkdir()
        (include_dir / "api.h").write_text("void api_call(void);\n")
        source = tmp_path / "src" / "main.c"
        source.parent.mkdir()
        source.write_text('#include "api.h"\nvoid f(void) { api_call(); }\n')
        config = Config.from_dict({"include_paths": [str(include_dir)]})
        service = IncludeUsageService(config=config, knowledge_base=kb)

        analysis = service.analyze_file(source)

        assert analysis.results[0].verdict == Verdict.USED

    def test_analyze_missing_file(self, service, tmp_path):
        analysis = service.analyze_file(tmp_path / "missing.c")

        assert not analysis.succeeded
        assert analysis.error_type == "FileNotFoundError"

    def test_analyze_many(self, service, tmp_path):
        paths = []
        for name, text in [("a.cpp", SCENARIO_A), ("b.cpp", "#else\n"), ("c.cpp", SCENARIO_D)]:
            path = tmp_path / name
            path.write_text(text)
            paths.append(path)

        analyses = service.analyze_many(paths, max_workers=3)

        assert [a.succeeded for a in analyses] == [True, False, True]
        assert analyses[0].summary() == {
            Verdict.USED: 2,
            Verdict.UNUSED: 1,
            Verdict.INDETERMINATE: 0,
            "total": 3,
        }


class TestFileAnalysis:
    """Tests for FileAnalysis and diagnostics routing."""

    def test_shared_lookup_warnings_are_reported_once(self, service):
        analysis = service.analyze_source(
            '#include "gone.h"\n#include "gone.h"\n', source_id="dup.c"
        )

        assert len(analysis.results) == 2
        assert len(analysis.warnings) == 1
        assert analysis.summary()[Verdict.INDETERMINATE] == 2

    def test_to_dict(self, service):
        data = service.analyze_source(SCENARIO_D, source_id="d.cpp").to_dict()

        assert data["source_id"] == "d.cpp"
        assert data["succeeded"] is True
        assert data["results"][0]["verdict"] == "used"
        assert data["summary"]["total"] == 1
        assert "error" not in data

    def test_warnings_go_to_diagnostics_logger(self, service, diagnostics_records):
        service.analyze_source(SCENARIO_B, source_id="b.cpp")

        assert len(diagnostics_records) == 1
        fields = diagnostics_records[0].extra_fields
        assert fields["type"] == WarningType.UNRESOLVABLE_HEADER
        assert fields["source_id"] == "b.cpp"
        assert fields["line"] == 1

    def test_empty_analysis(self):
        analysis = FileAnalysis(source_id="empty.c")

        assert analysis.succeeded
        assert analysis.summary()["total"] == 0
