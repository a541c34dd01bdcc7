# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""
Functional tests over the sample project.

Every source under sample_project/src is analyzed from disk, with
sample_project/include as an include path, and every include directive is
compared with the ground truth manifest in sample_project/ground_truth.json.
"""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from include_audit.config import Config
from include_audit.diagnostics import WarningType
from include_audit.models import Verdict
from include_audit.service import FileAnalysis, IncludeUsageService

SAMPLE_PROJECT_PATH = Path(__file__).parent / "sample_project"
GROUND_TRUTH_PATH = SAMPLE_PROJECT_PATH / "ground_truth.json"

logger = logging.getLogger(__name__)

pytestmark = pytest.mark.slow


@pytest.fixture(scope="module")
def ground_truth() -> dict[str, Any]:
    """Load ground truth manifest for validation."""
    with open(GROUND_TRUTH_PATH) as f:
        return json.load(f)


@pytest.fixture(scope="module")
def service(ground_truth: dict[str, Any]) -> IncludeUsageService:
    include_paths = [str(SAMPLE_PROJECT_PATH / p) for p in ground_truth["include_paths"]]
    return IncludeUsageService(config=Config.from_dict({"include_paths": include_paths}))


@pytest.fixture(scope="module")
def analyses(service: IncludeUsageService, ground_truth: dict[str, Any]) -> dict[str, FileAnalysis]:
    """Analyze every manifest file once, keyed by its manifest path."""
    names = list(ground_truth["files"])
    results = service.analyze_many([SAMPLE_PROJECT_PATH / name for name in names], max_workers=4)
    return dict(zip(names, results))


class TestGroundTruth:
    """Compares every analyzed include with the manifest."""

    def test_manifest_covers_every_source(self, ground_truth: dict[str, Any]) -> None:
        sources = (SAMPLE_PROJECT_PATH / "src").iterdir()
        on_disk = sorted(p.relative_to(SAMPLE_PROJECT_PATH).as_posix() for p in sources)

        assert sorted(ground_truth["files"]) == on_disk

    def test_every_file_succeeds(self, analyses: dict[str, FileAnalysis]) -> None:
        failed = {name: a.error for name, a in analyses.items() if not a.succeeded}

        assert failed == {}

    @pytest.mark.parametrize(
        "name",
        [
            "src/getcwd_portable.c",
            "src/stats.cpp",
            "src/report.cpp",
            "src/platform.c",
            "src/shapes.cpp",
            "src/graph.cpp",
        ],
    )
    def test_includes_match_manifest(
        self, name: str, analyses: dict[str, FileAnalysis], ground_truth: dict[str, Any]
    ) -> None:
        expected = ground_truth["files"][name]["includes"]
        actual = [
            {
                "line": r.line,
                "path": r.path,
                "branch_path": r.branch_path,
                "verdict": r.verdict,
                "justification": r.justification,
            }
            for r in analyses[name].results
        ]

        assert actual == expected

    def test_warning_types_match_manifest(
        self, analyses: dict[str, FileAnalysis], ground_truth: dict[str, Any]
    ) -> None:
        for name, entry in ground_truth["files"].items():
            warning_types = sorted({w.type for w in analyses[name].warnings})
            assert warning_types == sorted(entry["warnings"]), name

    def test_summary_totals(
        self, analyses: dict[str, FileAnalysis], ground_truth: dict[str, Any]
    ) -> None:
        expected = {Verdict.USED: 0, Verdict.UNUSED: 0, Verdict.INDETERMINATE: 0}
        for entry in ground_truth["files"].values():
            for include in entry["includes"]:
                expected[include["verdict"]] += 1

        actual = {Verdict.USED: 0, Verdict.UNUSED: 0, Verdict.INDETERMINATE: 0}
        for analysis in analyses.values():
            summary = analysis.summary()
            for verdict in actual:
                actual[verdict] += summary[verdict]

        logger.info(f"Sample project verdicts: {actual}")
        assert actual == expected


class TestEdgeCases:
    """Spot checks of the behaviors the sample project exercises."""

    def test_cycle_is_reported_with_its_path(self, analyses: dict[str, FileAnalysis]) -> None:
        warnings = [
            w
            for w in analyses["src/graph.cpp"].warnings
            if w.type == WarningType.CYCLIC_LOCAL_INCLUDE
        ]

        assert len(warnings) == 1
        assert warnings[0].metadata["cycle"] == ["node.h", "edge.h", "node.h"]

    def test_unresolvable_header_points_at_its_include(
        self, analyses: dict[str, FileAnalysis]
    ) -> None:
        analysis = analyses["src/shapes.cpp"]
        warning = analysis.warnings[0]

        assert warning.type == WarningType.UNRESOLVABLE_HEADER
        assert warning.header == "logging.h"
        assert warning.line == 2
        assert warning.source_id == analysis.source_id

    def test_computed_include_is_flagged(self, analyses: dict[str, FileAnalysis]) -> None:
        result = analyses["src/platform.c"].results[2]

        assert result.is_computed
        assert result.warnings[0].type == WarningType.COMPUTED_INCLUDE

    def test_analysis_is_deterministic(
        self, service: IncludeUsageService, analyses: dict[str, FileAnalysis]
    ) -> None:
        for name, first in analyses.items():
            second = service.analyze_file(SAMPLE_PROJECT_PATH / name)
            assert [(r.line, r.verdict, r.justification) for r in second.results] == [
                (r.line, r.verdict, r.justification) for r in first.results
            ], name

    def test_without_include_path_local_headers_are_indeterminate(self) -> None:
        analysis = IncludeUsageService(config=Config.from_dict({})).analyze_file(
            SAMPLE_PROJECT_PATH / "src" / "shapes.cpp"
        )

        assert analysis.results[0].verdict == Verdict.INDETERMINATE
        assert analysis.results[3].verdict == Verdict.USED
