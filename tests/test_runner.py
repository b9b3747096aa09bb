"""Tests for batch scanning: load failures, release guarantees, ordering."""

from __future__ import annotations

import os

import pytest

from nestcheck.errors import W_LOAD_FAILURE, W_SOURCE_FAILED, EmptySourceSet
from nestcheck.models import AssetBacked, Live
from nestcheck.nodes import tree
from nestcheck import runner as runner_module
from nestcheck.runner import BatchRunner

from conftest import node, write_container


def _sources(provider, *paths):
    return [provider.load_asset(p) for p in paths]


def test_weapon_asset_finding(provider, store):
    runner = BatchRunner(provider, store)
    summary = runner.run_batch(_sources(provider, "Assets/Weapon.prefab"))

    assert summary.totalFindings == 1
    f = store.snapshot()[0]
    assert f.fullPath == "Weapon/Weapon"
    assert f.containerPath == "Assets/Weapon.prefab"
    assert f.isAssetBacked is True


def test_classify_asset_and_live(provider, store):
    runner = BatchRunner(provider, store)
    asset = provider.load_asset("Assets/Weapon.prefab")
    scene_root, = provider.add_scene("Main", [tree("P")], path="Scenes/Main.scene")
    unnamed_root, = provider.add_scene("Menu", [tree("Q")])
    orphan = tree("Loose")

    assert runner.classify(asset) == AssetBacked("Assets/Weapon.prefab")
    assert runner.classify(scene_root) == Live("Scenes/Main.scene")
    assert runner.classify(unnamed_root) == Live("Menu")
    assert runner.classify(orphan) == Live("current scene")


def test_one_bad_source_does_not_abort_batch(asset_root, provider, store):
    sources = _sources(provider, "Assets/Weapon.prefab", "Assets/Props/Chain.prefab")
    # handle exists, but the file turns malformed before the run
    broken = provider.load_asset("Assets/Props/Clean.prefab")
    write_container(asset_root, "Assets/Props/Clean.prefab", "{not json")
    sources.insert(1, broken)

    summary = BatchRunner(provider, store).run_batch(sources)

    assert summary.totalFindings == 3
    assert [w["code"] for w in summary.warnings] == [W_LOAD_FAILURE]
    assert [s.ok for s in summary.perSource] == [True, False, True]
    assert summary.failed_sources == [summary.perSource[1]]
    assert summary.perSource[1].findingCount == 0


class _TornDownNode:
    """Live object whose host side is gone; any child access fails."""

    name = "Rig"

    @property
    def children(self):
        raise RuntimeError("host object torn down")


def test_failing_live_source_does_not_abort_batch(provider, store):
    live_root, = provider.add_scene("Main", [tree("P", tree("P"))], path="Scenes/Main.scene")
    sources = [live_root, _TornDownNode(), provider.load_asset("Assets/Weapon.prefab")]

    summary = BatchRunner(provider, store).run_batch(sources)

    assert summary.totalFindings == 2
    assert [s.ok for s in summary.perSource] == [True, False, True]
    assert summary.perSource[1].findingCount == 0
    assert [w["code"] for w in summary.warnings] == [W_SOURCE_FAILED]
    assert summary.warnings[0]["details"]["reason"] == "host object torn down"


def test_classify_failure_skips_source(provider, store):
    broken = tree("Ghost")
    real_identity = provider.scene_identity

    def scene_identity(node):
        if node is broken:
            raise RuntimeError("scene unloaded")
        return real_identity(node)

    provider.scene_identity = scene_identity
    sources = _sources(provider, "Assets/Weapon.prefab") + [broken]

    summary = BatchRunner(provider, store).run_batch(sources)

    assert summary.totalFindings == 1
    assert summary.perSource[1].ok is False
    assert summary.perSource[1].kind == "unknown"
    assert summary.warnings[0]["code"] == W_SOURCE_FAILED


def test_missing_file_is_load_failure(asset_root, provider, store):
    handle = provider.load_asset("Assets/Weapon.prefab")
    os.remove(os.path.join(asset_root, "Assets", "Weapon.prefab"))

    summary = BatchRunner(provider, store).run_batch([handle])

    assert summary.totalFindings == 0
    assert summary.warnings[0]["code"] == W_LOAD_FAILURE
    assert summary.warnings[0]["details"]["containerPath"] == "Assets/Weapon.prefab"


def test_transient_copies_always_released(provider, store, monkeypatch):
    materialized = []
    released = []
    real_materialize = provider.materialize
    real_release = provider.release

    def materialize(path):
        copy = real_materialize(path)
        materialized.append(copy)
        return copy

    def release(root):
        released.append(root)
        real_release(root)

    def exploding_scan(root, kind, sink=None, warnings=None):
        if kind.path.endswith("Chain.prefab"):
            raise RuntimeError("host exploded")
        return real_scan(root, kind, sink, warnings)

    real_scan = runner_module.scan
    provider.materialize = materialize
    provider.release = release
    monkeypatch.setattr(runner_module, "scan", exploding_scan)

    sources = _sources(provider, "Assets/Weapon.prefab", "Assets/Props/Chain.prefab")
    summary = BatchRunner(provider, store).run_batch(sources)

    assert released == materialized
    assert len(released) == 2
    assert provider.outstanding_copies == 0
    assert summary.perSource[1].ok is False
    assert summary.warnings[0]["details"]["reason"] == "host exploded"
    assert [f.containerPath for f in store.snapshot()] == ["Assets/Weapon.prefab"]


def test_live_sources_scanned_without_materialize(provider, store):
    provider.materialize = lambda path: pytest.fail("live source must not be materialized")
    root, = provider.add_scene("Main", [tree("Player", tree("Player"))], path="Main.scene")

    summary = BatchRunner(provider, store).run_batch([root])

    assert summary.totalFindings == 1
    assert store.snapshot()[0].childRef is root.children[0]


def test_progress_after_each_source_and_clear_always_called(provider, store):
    calls = []
    cleared = []
    sources = _sources(provider, "Assets/Weapon.prefab", "Assets/Props/Chain.prefab")
    sources.append(None)

    BatchRunner(provider, store).run_batch(
        sources,
        on_progress=lambda i, n, label: calls.append((i, n, label)),
        on_clear=lambda: cleared.append(True),
    )

    assert [(i, n) for i, n, _ in calls] == [(1, 3), (2, 3), (3, 3)]
    assert "Weapon" in calls[0][2]
    assert cleared == [True]


def test_clear_called_when_progress_callback_raises(provider, store):
    cleared = []

    def bad_progress(i, n, label):
        raise RuntimeError("display closed")

    with pytest.raises(RuntimeError):
        BatchRunner(provider, store).run_batch(
            _sources(provider, "Assets/Weapon.prefab"),
            on_progress=bad_progress,
            on_clear=lambda: cleared.append(True),
        )
    assert cleared == [True]


def test_empty_sources_rejected(provider, store):
    with pytest.raises(EmptySourceSet):
        BatchRunner(provider, store).run_batch([])


def test_rerun_is_idempotent(provider, store):
    runner = BatchRunner(provider, store)
    sources = _sources(provider, "Assets/Props/Chain.prefab", "Assets/Weapon.prefab")

    first = runner.run_batch(sources)
    first_paths = [f.fullPath for f in store.snapshot()]
    second = runner.run_batch(sources)

    assert first.totalFindings == second.totalFindings == 3
    assert [f.fullPath for f in store.snapshot()] == first_paths


def test_final_order_independent_of_input_order(provider, store):
    runner = BatchRunner(provider, store)
    a = _sources(provider, "Assets/Props/Chain.prefab", "Assets/Weapon.prefab")
    runner.run_batch(a)
    forward = [f.fullPath for f in store.snapshot()]
    runner.run_batch(list(reversed(a)))

    assert [f.fullPath for f in store.snapshot()] == forward == sorted(forward)


def test_shared_subtree_reported_per_source(asset_root, provider, store):
    write_container(asset_root, "Assets/Copy.prefab", node("Weapon", node("Weapon")))
    sources = _sources(provider, "Assets/Weapon.prefab", "Assets/Copy.prefab")

    summary = BatchRunner(provider, store).run_batch(sources)

    assert summary.totalFindings == 2
    assert sorted(f.containerPath for f in store.snapshot()) == [
        "Assets/Copy.prefab",
        "Assets/Weapon.prefab",
    ]
