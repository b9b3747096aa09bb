"""Configuration: asset root, scenes to open, locate retry budget."""

from __future__ import annotations

import os
from dataclasses import dataclass


ASSET_EXTENSION = ".prefab"
CURRENT_SCENE = "current scene"  # container path for live nodes outside any valid scene
UNKNOWN_CONTAINER = "unknown container"
UNKNOWN_CHILD = "unknown child"
EMPTY_GROUP_KEY = "<empty>"
LOCATE_MAX_RETRIES = 10


@dataclass(frozen=True)
class Settings:
    asset_root: str
    scene_paths: tuple[str, ...] = ()
    locate_retries: int = LOCATE_MAX_RETRIES


def get_locate_retries() -> int:
    """Return the locate retry budget from env, or the default."""
    raw = os.environ.get("NESTCHECK_LOCATE_RETRIES", "").strip()
    if not raw:
        return LOCATE_MAX_RETRIES
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(
            f"NESTCHECK_LOCATE_RETRIES must be a positive integer, got {raw!r}"
        ) from None
    if value <= 0:
        raise RuntimeError(f"NESTCHECK_LOCATE_RETRIES must be a positive integer, got {value}")
    return value


def load_settings() -> Settings:
    """Load settings from NESTCHECK_* env vars.

    NESTCHECK_ASSET_ROOT is required: the directory holding container files.
    NESTCHECK_SCENES is optional: semicolon-separated scene files to open.
    Example: NESTCHECK_SCENES=scenes/Main.scene.json;scenes/Menu.scene.json

    Fail closed if the asset root is missing.
    """
    raw_root = os.environ.get("NESTCHECK_ASSET_ROOT", "")
    if not raw_root:
        raise RuntimeError(
            "NESTCHECK_ASSET_ROOT environment variable is required. "
            "Set it to the directory containing your container files."
        )
    asset_root = os.path.abspath(raw_root)
    if not os.path.isdir(asset_root):
        raise RuntimeError(f"Configured asset root does not exist or is not a directory: {asset_root}")

    scenes: list[str] = []
    for path in os.environ.get("NESTCHECK_SCENES", "").split(";"):
        path = path.strip()
        if not path:
            continue
        abs_path = os.path.abspath(path)
        if not os.path.isfile(abs_path):
            raise RuntimeError(f"Configured scene file does not exist: {abs_path}")
        scenes.append(abs_path)

    return Settings(
        asset_root=asset_root,
        scene_paths=tuple(scenes),
        locate_retries=get_locate_retries(),
    )
