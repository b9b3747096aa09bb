"""Tool handlers: targets, run_batch, results, get_finding, locate, server info."""

from __future__ import annotations

import platform
from typing import Any

from nestcheck.config import ASSET_EXTENSION
from nestcheck.errors import EmptySourceSet, LoadFailure, err, ok
from nestcheck.models import Finding
from nestcheck.provider import JsonTreeProvider
from nestcheck.session import NestCheckSession

SERVER_NAME = "nestcheck"
SERVER_VERSION = "0.1.0"


def handle_add_directory(
    args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    """Add every container asset under a directory of the asset root."""
    directory = args.get("directory", "")
    added = session.add_directory(directory)
    return ok({"directory": directory, "added": added, "targetCount": len(session.targets)})


def handle_open_scene(
    args: dict[str, Any],
    session: NestCheckSession,
    provider: JsonTreeProvider,
) -> dict[str, Any]:
    """Open a scene file and add its root objects as live targets."""
    scene_file = args["sceneFile"]
    try:
        roots = provider.open_scene(scene_file)
    except LoadFailure as e:
        return err("E_LOAD_FAILED", "Scene could not be loaded.", {"sceneFile": scene_file, "reason": e.reason})
    added = sum(1 for r in roots if session.add_target(r))
    return ok({"sceneFile": scene_file, "added": added, "targetCount": len(session.targets)})


def handle_list_targets(
    _args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    return ok({
        "targets": [
            {"index": i, "name": node.name, "kind": session.target_label(node)}
            for i, node in enumerate(session.targets)
        ]
    })


def handle_clear_targets(
    _args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    session.clear_targets()
    return ok({"targetCount": 0})


def handle_run_batch(
    _args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    """Scan all targets. Rejected if the target list is empty."""
    try:
        summary = session.run_batch()
    except EmptySourceSet as e:
        return err(
            "E_NO_SOURCES",
            str(e),
            {},
            next_steps=[
                {"action": "ADD_TARGETS", "tool": "add_directory", "args": {"directory": ""}},
            ],
        )
    result = summary.to_dict()
    result["containerIssueCount"] = session.container_issue_count()
    return ok(result)


def handle_get_results(
    _args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    """Return container groups and live entries, each finding tagged with its id."""
    ids = _finding_ids(session)
    groups = []
    for group in session.container_groups():
        data = group.to_dict()
        data["entries"] = [_with_id(f, ids) for f in group.entries]
        groups.append(data)
    return ok({
        "totalFindings": session.store.count,
        "containerIssueCount": session.container_issue_count(),
        "containerGroups": groups,
        "liveEntries": [_with_id(f, ids) for f in session.live_entries()],
    })


def handle_get_finding(
    args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    """Return full details for a finding by ID."""
    finding_id = args["findingId"]
    finding = _lookup(session, finding_id)
    if not finding:
        return err("E_NOT_FOUND", "Finding not found.", {"findingId": finding_id})
    data = finding.to_dict()
    data["findingId"] = finding_id
    data["childDisplayName"] = finding.child_display_name()
    return ok({"finding": data})


def handle_locate(
    args: dict[str, Any],
    session: NestCheckSession,
) -> dict[str, Any]:
    """Select a finding's node, opening its container first if needed.

    Pumps the session's deferred queue until the request settles.
    """
    finding_id = args["findingId"]
    finding = _lookup(session, finding_id)
    if not finding:
        return err("E_NOT_FOUND", "Finding not found.", {"findingId": finding_id})

    request = session.locate(finding)
    session.queue.drain(max_ticks=session.locator.max_retries + 1)

    return ok({
        "findingId": finding_id,
        "state": request.state.value,
        "selected": request.target.name if request.target is not None else None,
        "warnings": list(request.warnings),
    })


def handle_get_server_info(_args: dict[str, Any]) -> dict[str, Any]:
    return ok({
        "name": SERVER_NAME,
        "version": SERVER_VERSION,
        "python": platform.python_version(),
        "assetExtension": ASSET_EXTENSION,
        "capabilities": ["scan", "group", "locate"],
    })


# --- Internal helpers ---


def _finding_ids(session: NestCheckSession) -> dict[int, str]:
    return {id(f): f"fnd_{i}" for i, f in enumerate(session.store.snapshot())}


def _with_id(finding: Finding, ids: dict[int, str]) -> dict[str, Any]:
    data = finding.to_dict()
    data["findingId"] = ids.get(id(finding))
    return data


def _lookup(session: NestCheckSession, finding_id: str) -> Finding | None:
    prefix, _, raw = finding_id.partition("_")
    if prefix != "fnd" or not (raw.isascii() and raw.isdigit()):
        return None
    return session.store.get(int(raw))
