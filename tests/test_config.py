"""Tests for ScanConfiguration and preset loading."""

from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest

from ref_audit.core.config import (
    DEFAULT_EXTENSIONS,
    ScanConfiguration,
    config_from_dict,
    default_jobs,
    load_preset,
)


class TestScanConfiguration:
    def test_defaults(self):
        cfg = ScanConfiguration()
        assert cfg.check_file_extensions == DEFAULT_EXTENSIONS
        assert cfg.jobs == 1
        assert cfg.is_empty

    def test_create_stringifies_paths(self, tmp_path: Path):
        cfg = ScanConfiguration.create([tmp_path], [".prefab"])
        assert cfg.check_asset_paths == (str(tmp_path),)
        assert not cfg.is_empty

    def test_single_path_string_is_one_root(self):
        cfg = ScanConfiguration.create("/tmp/x", ".prefab")
        assert cfg.check_asset_paths == ("/tmp/x",)
        assert cfg.check_file_extensions == (".prefab",)

    def test_single_path_object_is_one_root(self, tmp_path: Path):
        cfg = ScanConfiguration.create(tmp_path, [".prefab"])
        assert cfg.check_asset_paths == (str(tmp_path),)

    def test_empty_extensions_is_empty(self):
        assert ScanConfiguration.create(["Assets"], []).is_empty

    def test_is_frozen(self):
        cfg = ScanConfiguration()
        with pytest.raises(Exception):
            cfg.jobs = 4  # type: ignore[misc]

    def test_to_dict_roundtrips_through_preset(self, tmp_path: Path):
        cfg = ScanConfiguration.create(["Assets/UI"], [".prefab"], asset_root=Path("Assets"))
        assert config_from_dict(cfg.to_dict()) == cfg


class TestDefaultJobs:
    def test_unset(self, monkeypatch):
        monkeypatch.delenv("REF_AUDIT_JOBS", raising=False)
        assert default_jobs() == 1

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("REF_AUDIT_JOBS", "4")
        assert default_jobs() == 4

    @pytest.mark.parametrize("raw", ["zero", "-3", "0"])
    def test_bad_values_fall_back(self, monkeypatch, raw):
        monkeypatch.setenv("REF_AUDIT_JOBS", raw)
        assert default_jobs() == 1


class TestLoadPreset:
    def test_loads_valid_preset(self, tmp_path: Path):
        preset = tmp_path / "ui.json"
        preset.write_text(
            json.dumps(
                {
                    "check_asset_paths": ["Assets/UI"],
                    "check_file_extensions": [".prefab", ".mat"],
                    "jobs": 2,
                }
            ),
            encoding="utf-8",
        )
        cfg = load_preset(preset)
        assert cfg.check_asset_paths == ("Assets/UI",)
        assert cfg.check_file_extensions == (".prefab", ".mat")
        assert cfg.jobs == 2

    def test_overrides_win(self, tmp_path: Path):
        preset = tmp_path / "ui.json"
        preset.write_text(
            json.dumps({"check_asset_paths": [], "check_file_extensions": []}),
            encoding="utf-8",
        )
        assert load_preset(preset, jobs=3).jobs == 3

    def test_schema_violation(self, tmp_path: Path):
        preset = tmp_path / "bad.json"
        preset.write_text(json.dumps({"check_asset_paths": "Assets"}), encoding="utf-8")
        with pytest.raises(jsonschema.ValidationError):
            load_preset(preset)

    def test_not_an_object(self, tmp_path: Path):
        preset = tmp_path / "bad.json"
        preset.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            load_preset(preset)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(OSError):
            load_preset(tmp_path / "nope.json")
