"""Same-name adjacency detection: parent and direct child sharing a name."""

from __future__ import annotations

import logging
from typing import Any

from nestcheck.errors import W_TRAVERSAL_ANOMALY, warning
from nestcheck.models import AssetBacked, Finding, SourceKind
from nestcheck.nodes import Node, is_alive
from nestcheck.paths import build_path

logger = logging.getLogger(__name__)


def scan(
    root: Node,
    kind: SourceKind,
    sink: list[Finding] | None = None,
    warnings: list[dict[str, Any]] | None = None,
) -> list[Finding]:
    """Walk `root` depth-first and report every parent/child name match.

    Names compare by exact, case-sensitive equality. Every child is visited
    whether or not it matched, so a chain A/A/A yields two findings. The root
    itself is never flagged.

    Findings are appended to `sink` (a new list if None), which is returned.
    For live sources, parent/child references are kept on each finding; a
    reference the host reports as dead is recorded in `warnings` and the
    finding is kept without it.
    """
    out: list[Finding] = sink if sink is not None else []
    asset_backed = isinstance(kind, AssetBacked)
    container_path = kind.container_path
    visited: set[int] = set()

    # (node, path, parent, parent_path); children pushed reversed for pre-order
    stack: list[tuple[Node, str, Node | None, str]] = [(root, root.name, None, "")]
    while stack:
        node, path, parent, parent_path = stack.pop()
        if id(node) in visited:
            logger.debug("Cycle guard: %s already visited, not descending again", path)
            continue
        visited.add(id(node))

        if parent is not None and parent.name == node.name:
            out.append(
                _make_finding(parent, node, parent_path, path, container_path, asset_backed, warnings)
            )

        children = node.children or ()
        for child in reversed(children):
            if child is None:
                continue
            stack.append((child, build_path(path, child.name), node, path))

    return out


def _make_finding(
    parent: Node,
    child: Node,
    parent_path: str,
    child_path: str,
    container_path: str,
    asset_backed: bool,
    warnings: list[dict[str, Any]] | None,
) -> Finding:
    """Build a Finding; asset-backed findings never hold node references."""
    parent_ref: Node | None = None
    child_ref: Node | None = None

    if not asset_backed:
        parent_ref = parent if is_alive(parent) else None
        child_ref = child if is_alive(child) else None
        if parent_ref is None or child_ref is None:
            logger.warning("Same-name nesting found but object reference is missing: %s", child_path)
            if warnings is not None:
                warnings.append(warning(
                    W_TRAVERSAL_ANOMALY,
                    "Same-name nesting found but object reference is missing.",
                    {"fullPath": child_path, "containerPath": container_path},
                ))

    return Finding(
        adjacencyLabel=build_path(parent.name, child.name),
        fullPath=child_path,
        containerPath=container_path,
        parentPath=parent_path,
        childPath=child_path,
        isAssetBacked=asset_backed,
        parentRef=parent_ref,
        childRef=child_ref,
    )
