"""Tests for the session facade and the JSON-RPC tool surface."""

from __future__ import annotations

import json

from nestcheck.nodes import tree
from nestcheck.provider import JsonTreeProvider
from nestcheck.session import NestCheckSession
from nestcheck.server import NestCheckServer, TOOLS_LIST

from conftest import node, write_container


def _rpc(server, method, params=None, rpc_id=1):
    resp = server.handle_rpc({"jsonrpc": "2.0", "id": rpc_id, "method": method, "params": params or {}})
    assert resp["id"] == rpc_id
    return resp["result"]


def test_add_target_ignores_none_and_duplicates(session):
    root = tree("A")
    assert session.add_target(root)
    assert not session.add_target(root)
    assert not session.add_target(None)
    assert session.targets == [root]


def test_target_changes_clear_results(session, provider):
    session.add_directory("Assets")
    session.run_batch()
    assert session.store.count == 3

    session.add_target(tree("Extra"))
    assert session.store.count == 0
    assert session.last_summary is None

    session.run_batch()
    session.remove_target(0)
    assert session.store.count == 0


def test_add_directory_reports_progress(session):
    calls = []
    added = session.add_directory("Assets", on_progress=lambda i, n, label: calls.append((i, n)))

    assert added == 3
    assert calls == [(1, 3), (2, 3), (3, 3)]
    assert session.add_directory("Assets") == 0  # already listed


def test_too_deep_container_does_not_stop_directory_load(asset_root, session, provider):
    depth = 3000
    write_container(asset_root, "Deep/a.prefab", '{"name": "n", "children": [' * depth + '{"name": "n"}' + "]}" * depth)
    write_container(asset_root, "Deep/b.prefab", node("Crate", node("Lid")))

    added = session.add_directory("Deep")

    # whether a.prefab parses depends on the interpreter's parser depth limit
    paths = [provider.asset_path_of(t) for t in session.targets]
    assert "Deep/b.prefab" in paths
    assert added == len(paths)
    session.run_batch()


def test_views_through_session(session, provider):
    session.add_directory("Assets")
    scene_roots = provider.add_scene("Main", [tree("Hero", tree("Hero"))], path="Scenes/Main.scene")
    session.add_target(scene_roots[0])

    summary = session.run_batch()

    assert summary.totalFindings == 4
    assert session.container_issue_count() == 2
    assert [g.displayName for g in session.container_groups()] == ["Chain", "Weapon"]
    assert [f.fullPath for f in session.live_entries()] == ["Hero/Hero"]
    assert session.target_label(scene_roots[0]) == "live"
    assert session.target_label(session.targets[0]) == "asset"


def test_tools_list_names():
    names = {t["name"] for t in TOOLS_LIST}
    assert {"run_batch", "get_results", "locate", "get_finding"} <= names


def test_run_batch_with_no_targets_is_rejected(session, provider):
    server = NestCheckServer(session, provider)
    result = _rpc(server, "run_batch")

    assert result["ok"] is False
    assert result["error"]["code"] == "E_NO_SOURCES"


def test_full_rpc_flow(tmp_path, session, provider):
    scene = tmp_path / "Main.scene.json"
    scene.write_text(json.dumps({"name": "Main", "roots": [node("Player", node("Player"))]}), encoding="utf-8")
    server = NestCheckServer(session, provider)

    assert _rpc(server, "add_directory", {"directory": "Assets"})["result"]["added"] == 3
    assert _rpc(server, "open_scene", {"sceneFile": str(scene)})["result"]["added"] == 1
    targets = _rpc(server, "list_targets")["result"]["targets"]
    assert [t["kind"] for t in targets] == ["asset", "asset", "asset", "live"]

    run = _rpc(server, "run_batch")["result"]
    assert run["totalFindings"] == 4
    assert run["containerIssueCount"] == 2
    assert run["failedSources"] == 0

    results = _rpc(server, "get_results")["result"]
    weapon_group = results["containerGroups"][1]
    assert weapon_group["displayName"] == "Weapon"
    finding_id = weapon_group["entries"][0]["findingId"]
    assert results["liveEntries"][0]["childRefValid"] is True

    detail = _rpc(server, "get_finding", {"findingId": finding_id})["result"]["finding"]
    assert detail["fullPath"] == "Weapon/Weapon"
    assert detail["childDisplayName"] == "Weapon"

    located = _rpc(server, "locate", {"findingId": finding_id})["result"]
    assert located["state"] == "found"
    assert located["selected"] == "Weapon"
    assert provider.active_editing_path() == "Assets/Weapon.prefab"


def test_unknown_finding_and_method(session, provider):
    server = NestCheckServer(session, provider)
    assert _rpc(server, "get_finding", {"findingId": "fnd_99"})["error"]["code"] == "E_NOT_FOUND"
    assert _rpc(server, "locate", {"findingId": "bogus"})["error"]["code"] == "E_NOT_FOUND"

    resp = server.handle_rpc({"jsonrpc": "2.0", "id": 2, "method": "nope"})
    assert resp["error"]["code"] == -32601


def test_handler_exception_becomes_internal_error(session, provider):
    server = NestCheckServer(session, provider)
    result = _rpc(server, "get_finding", {})  # missing findingId
    assert result["error"]["code"] == "E_INTERNAL"


def test_open_scene_failure_envelope(tmp_path, session, provider):
    server = NestCheckServer(session, provider)
    result = _rpc(server, "open_scene", {"sceneFile": str(tmp_path / "missing.json")})
    assert result["error"]["code"] == "E_LOAD_FAILED"


def test_server_info(session, provider):
    server = NestCheckServer(session, provider)
    info = _rpc(server, "get_server_info")["result"]
    assert info["name"] == "nestcheck"
    assert info["assetExtension"] == ".prefab"


def test_non_ascii_digit_finding_id_not_found(session, provider):
    session.add_directory("Assets")
    session.run_batch()
    server = NestCheckServer(session, provider)

    assert _rpc(server, "get_finding", {"findingId": "fnd_²"})["error"]["code"] == "E_NOT_FOUND"
    assert _rpc(server, "locate", {"findingId": "fnd_١"})["error"]["code"] == "E_NOT_FOUND"


def test_locate_settles_with_large_retry_budget(asset_root):
    provider = JsonTreeProvider(asset_root, activation_delay=1000)
    session = NestCheckSession(provider, max_retries=150)
    session.add_directory("Assets")
    session.run_batch()
    server = NestCheckServer(session, provider)

    located = _rpc(server, "locate", {"findingId": "fnd_0"})["result"]

    assert located["state"] == "gave_up"
    assert located["warnings"][0]["code"] == "W_RETRY_EXHAUSTED"
    assert len(session.queue) == 0
