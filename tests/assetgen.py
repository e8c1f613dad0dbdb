"""Helpers that write tiny text-serialized asset files for tests."""

from __future__ import annotations

import textwrap
from pathlib import Path


PREAMBLE = "%YAML 1.1\n%TAG !u! tag:unity3d.com,2011:\n"

SCRIPT_GUID = "5f7201a12d95ffc409449d95f23cf332"
UNKNOWN_GUID = "deadbeefdeadbeefdeadbeefdeadbeef"


def asset_text(*objects: str) -> str:
    """Join object blocks (header + body) under the standard preamble."""
    return PREAMBLE + "".join(textwrap.dedent(o).lstrip("\n") for o in objects)


def game_object(file_id: int, name: str, *component_ids: int) -> str:
    comps = "".join(f"  - component: {{fileID: {c}}}\n" for c in component_ids)
    return (
        f"--- !u!1 &{file_id}\n"
        "GameObject:\n"
        f"  m_Name: {name}\n"
        "  m_Component:\n"
        f"{comps}"
    )


def behaviour(file_id: int, owner: int, target: str = "{fileID: 0}") -> str:
    return (
        f"--- !u!114 &{file_id}\n"
        "MonoBehaviour:\n"
        f"  m_GameObject: {{fileID: {owner}}}\n"
        f"  m_Script: {{fileID: 11500000, guid: {SCRIPT_GUID}, type: 3}}\n"
        f"  target: {target}\n"
    )


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_meta(asset: Path, guid: str) -> Path:
    return write(asset.with_name(asset.name + ".meta"), f"fileFormatVersion: 2\nguid: {guid}\n")


def null_ref_prefab() -> str:
    return asset_text(game_object(100, "A", 200), behaviour(200, 100, "{fileID: 0}"))


def missing_ref_prefab() -> str:
    return asset_text(game_object(100, "B", 200), behaviour(200, 100, "{fileID: 42}"))


