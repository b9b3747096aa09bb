"""Shared test fixtures for nestcheck tests."""

from __future__ import annotations

import json
import os
from typing import Any

import pytest

from nestcheck.provider import JsonTreeProvider
from nestcheck.session import NestCheckSession
from nestcheck.store import ResultStore


def node(name: str, *children: dict[str, Any]) -> dict[str, Any]:
    return {"name": name, "children": list(children)}


def write_container(root: str, rel: str, data: Any) -> str:
    """Write a container file under `root`; `data` may be a dict or raw text."""
    path = os.path.join(root, *rel.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(data, str):
            f.write(data)
        else:
            json.dump(data, f)
    return rel


@pytest.fixture
def asset_root(tmp_path) -> str:
    """Asset root with a few containers, one of them with a nested chain."""
    root = str(tmp_path)
    write_container(root, "Assets/Weapon.prefab", node("Weapon", node("Weapon", node("Barrel"))))
    write_container(root, "Assets/Props/Chain.prefab", node("A", node("A", node("A"))))
    write_container(root, "Assets/Props/Clean.prefab", node("Crate", node("Lid")))
    return root


@pytest.fixture
def provider(asset_root) -> JsonTreeProvider:
    return JsonTreeProvider(asset_root)


@pytest.fixture
def store() -> ResultStore:
    return ResultStore()


@pytest.fixture
def session(provider) -> NestCheckSession:
    return NestCheckSession(provider)
