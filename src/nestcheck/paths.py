"""Slash paths: building them during a scan, resolving them against a live tree.

Names are joined with "/" and never escaped. A node name that itself contains
"/" cannot be addressed reliably; that is a known limitation.
"""

from __future__ import annotations

from typing import Any

from nestcheck.nodes import Node

SEPARATOR = "/"


def build_path(*segments: str) -> str:
    """Join path segments with "/"."""
    return SEPARATOR.join(segments)


def leaf_name(path: str) -> str:
    """Last segment of a slash path ("A/B/C" -> "C")."""
    return path.rsplit(SEPARATOR, 1)[-1]


def resolve(root: Node | None, path: str | None) -> Node | None:
    """Find the node at `path` under `root`, or None.

    The path may start with the root's own name ("Weapon/Barrel") or be
    relative to it ("Barrel"). Each segment tries the node's direct-child
    index first and falls back to scanning every child by name, so a stale
    or missing index still resolves. Never raises for malformed paths.
    """
    if root is None or not path:
        return None

    if path == root.name:
        return root

    prefix = root.name + SEPARATOR
    search = path[len(prefix):] if path.startswith(prefix) else path

    current: Node = root
    for part in search.split(SEPARATOR):
        if not part:
            continue
        child = _find_direct(current, part)
        if child is None:
            child = _scan_children(current, part)
        if child is None:
            return None
        current = child
    return current


def _find_direct(node: Node, name: str) -> Node | None:
    finder: Any = getattr(node, "find_child", None)
    if finder is None:
        return None
    try:
        return finder(name)
    except Exception:
        return None  # caller falls back to a linear scan


def _scan_children(node: Node, name: str) -> Node | None:
    for child in node.children or ():
        if child is not None and child.name == name:
            return child
    return None
