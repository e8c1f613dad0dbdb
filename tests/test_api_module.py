"""Tests for ref_audit.api — programmatic entrypoints."""

from __future__ import annotations

from pathlib import Path

import pytest

import ref_audit
from ref_audit.api import iter_results, scan_assets
from ref_audit.contracts.load import validate_instance
from ref_audit.core.config import ScanConfiguration
from ref_audit.errors import OrchestratorError
from ref_audit.model import RunState

from assetgen import null_ref_prefab, write


class TestScanAssets:
    def test_collects_results(self, ui_tree: Path):
        report = scan_assets([ui_tree], [".prefab"], jobs=1)
        assert report.outcome is not None and report.outcome.ok
        assert [Path(p).name for p in report.missing_paths] == ["b.prefab"]
        assert len(report.results) == 2

    def test_single_root_string(self, ui_tree: Path):
        report = scan_assets(str(ui_tree), ".prefab")
        assert sorted(Path(r.path).name for r in report.results) == ["a.prefab", "b.prefab"]

    def test_accepts_configuration(self, ui_tree: Path):
        report = scan_assets(ScanConfiguration.create([ui_tree], [".prefab", ".mat"]))
        names = sorted(Path(r.path).name for r in report.results)
        assert names == ["a.prefab", "b.prefab", "c.mat"]

    def test_report_matches_schema(self, ui_tree: Path):
        report = scan_assets([ui_tree], [".prefab"])
        data = report.to_dict()
        validate_instance(data, "scan_report.schema.json")
        assert data["summary"] == {
            "files_scanned": 2,
            "files_skipped": 0,
            "files_with_missing": 1,
        }
        assert data["outcome"] == {"state": "completed", "cancelled": False, "error": None}

    def test_failed_run_keeps_partial_results(self, ui_tree: Path):
        report = scan_assets([ui_tree], [".prefab"], jobs=0)
        assert report.outcome.state is RunState.FAILED
        validate_instance(report.to_dict(), "scan_report.schema.json")

    def test_jobs_from_environment(self, ui_tree: Path, monkeypatch):
        monkeypatch.setenv("REF_AUDIT_JOBS", "3")
        report = scan_assets([ui_tree], [".prefab"])
        assert len(report.results) == 2

    def test_package_exports(self):
        assert ref_audit.scan_assets is scan_assets
        assert ref_audit.__version__


class TestIterResults:
    def test_yields_every_result(self, ui_tree: Path):
        results = list(iter_results(ScanConfiguration.create([ui_tree], [".prefab"])))
        assert {Path(r.path).name: r.has_missing_property for r in results} == {
            "a.prefab": False,
            "b.prefab": True,
        }

    def test_raises_after_partial_results_on_failure(self, ui_tree: Path):
        cfg = ScanConfiguration.create([ui_tree], [".prefab"], jobs=0)
        with pytest.raises(OrchestratorError):
            list(iter_results(cfg))

    def test_closing_early_cancels(self, tmp_path: Path):
        for i in range(20):
            write(tmp_path / f"f{i:02d}.prefab", null_ref_prefab())
        it = iter_results(ScanConfiguration.create([tmp_path], [".prefab"]))
        first = next(it)
        it.close()
        assert first.path.endswith(".prefab")
