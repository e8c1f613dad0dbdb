"""Shared fixtures: tiny asset trees built under ``tmp_path``."""

from __future__ import annotations

from pathlib import Path

import pytest

from assetgen import asset_text, missing_ref_prefab, null_ref_prefab, write


@pytest.fixture()
def ui_tree(tmp_path: Path) -> Path:
    """``ui/a.prefab`` (null ref), ``ui/b.prefab`` (missing ref), ``ui/c.mat``."""
    ui = tmp_path / "assets" / "ui"
    write(ui / "a.prefab", null_ref_prefab())
    write(ui / "b.prefab", missing_ref_prefab())
    write(
        ui / "c.mat",
        asset_text(
            """
            --- !u!21 &2100000
            Material:
              m_Shader: {fileID: 77}
            """
        ),
    )
    return ui
