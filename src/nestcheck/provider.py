"""Asset/scene provider: the storage system the engine drives.

The engine only talks to the AssetProvider protocol. JsonTreeProvider is a
file-backed implementation: container assets are JSON files shaped like
{"name": "Weapon", "children": [...]}, and scenes are JSON files shaped like
{"name": "Main", "roots": [...]}.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Protocol

from nestcheck.config import ASSET_EXTENSION
from nestcheck.errors import LoadFailure
from nestcheck.nodes import Node, TreeNode

logger = logging.getLogger(__name__)


class AssetProvider(Protocol):
    def asset_path_of(self, node: Node) -> str | None:
        """Container path if `node` is an asset-backed source, else None."""
        ...

    def scene_identity(self, node: Node) -> tuple[str, str] | None:
        """(scene path, scene name) for a live node, None if in no valid scene."""
        ...

    def materialize(self, container_path: str) -> Node | None:
        """Load a transient editable copy; None if it could not be loaded."""
        ...

    def release(self, root: Node) -> None: ...

    def activate_for_editing(self, container_path: str) -> bool: ...

    def active_editing_path(self) -> str | None: ...

    def editing_state(self, container_path: str) -> tuple[bool, Node | None]:
        """(ready, root) for `container_path`; root may be set before ready."""
        ...

    def select(self, node: Node) -> None: ...

    def focus(self, node: Node) -> None: ...

    def load_asset(self, container_path: str) -> Node | None:
        """Stable handle for the container itself, None if it cannot be loaded."""
        ...


class AssetCatalog(AssetProvider, Protocol):
    """A provider that can also enumerate and hand out asset sources."""

    def list_assets(self, directory: str) -> list[str]: ...


class JsonTreeProvider:
    """File-backed provider over an asset root directory.

    `activation_delay` is the number of readiness polls that report "not
    ready" after each activation, to model editors that open asynchronously.
    """

    def __init__(self, asset_root: str, activation_delay: int = 0) -> None:
        self.asset_root = os.path.abspath(asset_root)
        self.activation_delay = activation_delay
        self.selection: Node | None = None
        self.focused: list[Node] = []
        self._asset_handles: dict[str, TreeNode] = {}
        self._asset_ids: dict[int, str] = {}
        self._scene_ids: dict[int, tuple[str, str]] = {}
        self._scenes: list[list[TreeNode]] = []
        self._transient: dict[int, TreeNode] = {}
        self._editing_path: str | None = None
        self._editing_root: TreeNode | None = None
        self._pending_polls = 0

    # --- Assets ---

    def container_path(self, path: str) -> str:
        """Normalize a filesystem path to a "/"-separated container path."""
        abs_path = path if os.path.isabs(path) else os.path.join(self.asset_root, path)
        return os.path.relpath(abs_path, self.asset_root).replace(os.sep, "/")

    def list_assets(self, directory: str) -> list[str]:
        """Container paths of every asset file under `directory`, sorted."""
        base = directory if os.path.isabs(directory) else os.path.join(self.asset_root, directory)
        if not os.path.isdir(base):
            return []
        found: list[str] = []
        for current, _dirs, files in os.walk(base):
            for name in files:
                if name.endswith(ASSET_EXTENSION):
                    found.append(self.container_path(os.path.join(current, name)))
        return sorted(found)

    def load_asset(self, container_path: str) -> TreeNode | None:
        """Return the stable handle for an asset, loading it on first use."""
        container_path = self.container_path(container_path)
        handle = self._asset_handles.get(container_path)
        if handle is not None:
            return handle
        try:
            handle = self._read_tree(container_path)
        except LoadFailure as e:
            logger.warning("Could not load asset %s: %s", container_path, e.reason)
            return None
        self._asset_handles[container_path] = handle
        self._asset_ids[id(handle)] = container_path
        return handle

    def asset_path_of(self, node: Node) -> str | None:
        return self._asset_ids.get(id(node))

    def materialize(self, container_path: str) -> TreeNode | None:
        """Parse a fresh copy. Missing file -> None; malformed file -> LoadFailure."""
        if not os.path.isfile(self._abs(container_path)):
            return None
        root = self._read_tree(container_path)
        self._transient[id(root)] = root
        return root

    def release(self, root: Node) -> None:
        copy = self._transient.pop(id(root), None)
        if copy is not None:
            copy.destroy()

    @property
    def outstanding_copies(self) -> int:
        return len(self._transient)

    # --- Scenes ---

    def open_scene(self, scene_file: str) -> list[TreeNode]:
        """Load a scene file and return its live root nodes."""
        try:
            with open(scene_file, encoding="utf-8") as f:
                data = json.load(f)
            roots = [TreeNode.from_dict(r) for r in data.get("roots") or []]
            name = data.get("name") or os.path.splitext(os.path.basename(scene_file))[0]
        except (OSError, ValueError, AttributeError, RecursionError) as exc:
            raise LoadFailure(scene_file, str(exc)) from exc
        return self.add_scene(name, roots, path=scene_file)

    def add_scene(self, name: str, roots: list[TreeNode], path: str = "") -> list[TreeNode]:
        """Register already-built nodes as a live scene."""
        self._scenes.append(roots)
        stack = list(roots)
        while stack:
            node = stack.pop()
            self._scene_ids[id(node)] = (path, name)
            stack.extend(node.children)
        return roots

    def scene_identity(self, node: Node) -> tuple[str, str] | None:
        return self._scene_ids.get(id(node))

    # --- Editing context ---

    def activate_for_editing(self, container_path: str) -> bool:
        if self._editing_path == container_path and self._editing_root is not None:
            return True
        try:
            root = self._read_tree(container_path)
        except LoadFailure as e:
            logger.warning("Could not open %s for editing: %s", container_path, e.reason)
            return False
        if self._editing_root is not None:
            self._editing_root.destroy()
        self._editing_path = container_path
        self._editing_root = root
        self._pending_polls = self.activation_delay
        return True

    def active_editing_path(self) -> str | None:
        return self._editing_path

    def editing_root(self) -> TreeNode | None:
        return self._editing_root

    def editing_state(self, container_path: str) -> tuple[bool, Node | None]:
        if self._editing_path != container_path or self._editing_root is None:
            return False, None
        if self._pending_polls > 0:
            self._pending_polls -= 1
            return False, self._editing_root
        return True, self._editing_root

    def select(self, node: Node) -> None:
        self.selection = node

    def focus(self, node: Node) -> None:
        self.focused.append(node)

    # --- Internal helpers ---

    def _abs(self, container_path: str) -> str:
        return os.path.join(self.asset_root, *container_path.split("/"))

    def _read_tree(self, container_path: str) -> TreeNode:
        try:
            with open(self._abs(container_path), encoding="utf-8") as f:
                data: Any = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")
            return TreeNode.from_dict(data)
        except (OSError, ValueError, AttributeError, RecursionError) as exc:
            raise LoadFailure(container_path, str(exc)) from exc
