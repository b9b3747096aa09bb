"""Batch runner: scan many source trees into one result store."""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from nestcheck.config import CURRENT_SCENE
from nestcheck.errors import W_LOAD_FAILURE, W_SOURCE_FAILED, EmptySourceSet, warning
from nestcheck.models import (
    AssetBacked,
    Finding,
    Live,
    RunSummary,
    SourceKind,
    SourceReport,
    display_name_for,
)
from nestcheck.nodes import Node
from nestcheck.provider import AssetProvider
from nestcheck.scanner import scan
from nestcheck.store import ResultStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]


class BatchRunner:
    """Scans sources in input order and commits findings one source at a time."""

    def __init__(self, provider: AssetProvider, store: ResultStore) -> None:
        self.provider = provider
        self.store = store

    def classify(self, node: Node) -> SourceKind:
        """Asset-backed if the provider knows a container path, else live."""
        asset_path = self.provider.asset_path_of(node)
        if asset_path:
            return AssetBacked(asset_path)
        scene = self.provider.scene_identity(node)
        if scene is None:
            return Live(CURRENT_SCENE)
        scene_path, scene_name = scene
        return Live(scene_path or scene_name or CURRENT_SCENE)

    def run_batch(
        self,
        sources: Sequence[Node | None],
        on_progress: ProgressCallback | None = None,
        on_clear: Callable[[], None] | None = None,
    ) -> RunSummary:
        """Scan every source and return a summary.

        Raises EmptySourceSet if `sources` is empty. A source that cannot be
        loaded is skipped with a W_LOAD_FAILURE warning, and one whose host
        objects fail during classification or a live scan with W_SOURCE_FAILED;
        the batch goes on either way.
        `on_clear` runs on every exit path, so a progress display never sticks.
        """
        self.store.clear()
        if not sources:
            raise EmptySourceSet("Add at least one source before running a check.")

        summary = RunSummary()
        total = len(sources)
        try:
            for index, source in enumerate(sources, start=1):
                if source is None:
                    if on_progress:
                        on_progress(index, total, f"Skipping missing source ({index}/{total})")
                    continue

                report = self._scan_source(source, summary.warnings)
                summary.perSource.append(report)

                if on_progress:
                    on_progress(index, total, f"{report.label} ({index}/{total})")

            self.store.sort(key=lambda f: f.fullPath)
            summary.totalFindings = self.store.count
            _log_summary(summary)
        finally:
            if on_clear:
                on_clear()

        return summary

    def _scan_source(
        self,
        source: Node,
        warnings: list[dict[str, Any]],
    ) -> SourceReport:
        try:
            kind = self.classify(source)
        except Exception as e:
            report = SourceReport(containerPath="", kind="unknown", label="Checking object: ?")
            self._source_failed("", str(e), report, warnings)
            return report

        if isinstance(kind, AssetBacked):
            report = SourceReport(
                containerPath=kind.path,
                kind="asset",
                label=f"Checking asset: {display_name_for(kind.path)}",
            )
            found = self._scan_asset(kind, report, warnings)
        else:
            report = SourceReport(
                containerPath=kind.scene_id,
                kind="live",
                label=f"Checking object: {source.name}",
            )
            try:
                found = scan(source, kind, warnings=warnings)
            except Exception as e:
                self._source_failed(kind.scene_id, str(e), report, warnings)
                found = []

        # one commit per source; a half-scanned tree never reaches the store
        self.store.append(found)
        report.findingCount = len(found)
        return report

    def _scan_asset(
        self,
        kind: AssetBacked,
        report: SourceReport,
        warnings: list[dict[str, Any]],
    ) -> list[Finding]:
        copy: Node | None = None
        try:
            copy = self.provider.materialize(kind.path)
            if copy is None:
                self._load_failure(kind.path, "could not load container contents", report, warnings)
                return []
            return scan(copy, kind, warnings=warnings)
        except Exception as e:
            self._load_failure(kind.path, str(e), report, warnings)
            return []
        finally:
            if copy is not None:
                self.provider.release(copy)

    def _load_failure(
        self,
        path: str,
        reason: str,
        report: SourceReport,
        warnings: list[dict[str, Any]],
    ) -> None:
        logger.warning("Skipping container %s: %s", path, reason)
        report.ok = False
        warnings.append(warning(
            W_LOAD_FAILURE,
            "Container could not be loaded; skipped.",
            {"containerPath": path, "reason": reason},
        ))

    def _source_failed(
        self,
        container_path: str,
        reason: str,
        report: SourceReport,
        warnings: list[dict[str, Any]],
    ) -> None:
        logger.warning("Skipping source in %s: %s", container_path or "?", reason)
        report.ok = False
        warnings.append(warning(
            W_SOURCE_FAILED,
            "Source could not be scanned; skipped.",
            {"containerPath": container_path, "reason": reason},
        ))


def _log_summary(summary: RunSummary) -> None:
    lines = [
        f"{s.kind} {s.containerPath} -> {s.findingCount}" + ("" if s.ok else " (skipped)")
        for s in summary.perSource
    ]
    if summary.totalFindings:
        head = f"Batch check finished: {summary.totalFindings} same-name nesting(s) found."
    else:
        head = "Batch check finished: no same-name nesting found."
    logger.info("%s\n%s", head, "\n".join(lines))
