"""Data models: Finding, source kinds, result shapes."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Union

from nestcheck.config import EMPTY_GROUP_KEY, UNKNOWN_CHILD, UNKNOWN_CONTAINER
from nestcheck.nodes import Node
from nestcheck.paths import leaf_name


@dataclass
class Finding:
    adjacencyLabel: str  # "{parent}/{child}", not unique
    fullPath: str
    containerPath: str
    parentPath: str
    childPath: str
    isAssetBacked: bool
    parentRef: Node | None = field(default=None, repr=False, compare=False)
    childRef: Node | None = field(default=None, repr=False, compare=False)

    def child_display_name(self) -> str:
        if self.childPath:
            return leaf_name(self.childPath)
        if self.childRef is not None:
            return self.childRef.name
        return UNKNOWN_CHILD

    def to_dict(self) -> dict[str, Any]:
        return {
            "adjacencyLabel": self.adjacencyLabel,
            "fullPath": self.fullPath,
            "containerPath": self.containerPath,
            "parentPath": self.parentPath,
            "childPath": self.childPath,
            "isAssetBacked": self.isAssetBacked,
            "childRefValid": self.childRef is not None,
        }


@dataclass(frozen=True)
class AssetBacked:
    """Source loaded transiently from a container file."""

    path: str

    @property
    def container_path(self) -> str:
        return self.path


@dataclass(frozen=True)
class Live:
    """Source backed by persistent objects in a scene."""

    scene_id: str

    @property
    def container_path(self) -> str:
        return self.scene_id


SourceKind = Union[AssetBacked, Live]


def display_name_for(container_path: str | None) -> str:
    """Base name without extension, or a placeholder for an empty path."""
    if not container_path:
        return UNKNOWN_CONTAINER
    return os.path.splitext(os.path.basename(container_path))[0]


@dataclass
class ContainerGroup:
    containerPath: str
    displayName: str
    entries: list[Finding] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Stable key for UI expand/collapse state."""
        return self.containerPath or EMPTY_GROUP_KEY

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "containerPath": self.containerPath,
            "displayName": self.displayName,
            "count": len(self.entries),
            "entries": [e.to_dict() for e in self.entries],
        }


@dataclass
class SourceReport:
    containerPath: str
    kind: str  # "asset" | "live"
    label: str
    findingCount: int = 0
    ok: bool = True


@dataclass
class RunSummary:
    totalFindings: int = 0
    perSource: list[SourceReport] = field(default_factory=list)
    warnings: list[dict[str, Any]] = field(default_factory=list)

    @property
    def failed_sources(self) -> list[SourceReport]:
        return [s for s in self.perSource if not s.ok]

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalFindings": self.totalFindings,
            "perSource": [asdict(s) for s in self.perSource],
            "failedSources": len(self.failed_sources),
            "warnings": list(self.warnings),
        }
