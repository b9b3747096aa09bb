"""Session: the target list plus engine components, as a shell sees them."""

from __future__ import annotations

import logging
from typing import Callable

from nestcheck.aggregator import ResultAggregator
from nestcheck.config import LOCATE_MAX_RETRIES
from nestcheck.locator import DeferredQueue, LocateRequest, Locator, Schedule
from nestcheck.models import ContainerGroup, Finding, RunSummary
from nestcheck.nodes import Node
from nestcheck.provider import AssetCatalog
from nestcheck.runner import BatchRunner, ProgressCallback
from nestcheck.store import ResultStore

logger = logging.getLogger(__name__)


class NestCheckSession:
    """Owns targets, results and the locator queue. Any target change clears results."""

    def __init__(
        self,
        provider: AssetCatalog,
        schedule: Schedule | None = None,
        max_retries: int = LOCATE_MAX_RETRIES,
    ) -> None:
        self.provider = provider
        self.queue = DeferredQueue()
        self.targets: list[Node] = []
        self.store = ResultStore()
        self.aggregator = ResultAggregator(self.store)
        self.runner = BatchRunner(provider, self.store)
        self.locator = Locator(provider, schedule or self.queue.call_later, max_retries)
        self.last_summary: RunSummary | None = None

    # --- Targets ---

    def add_target(self, node: Node | None) -> bool:
        """Add a source tree. None and already-listed nodes are ignored."""
        if node is None or any(t is node for t in self.targets):
            return False
        self.targets.append(node)
        self.clear_results()
        return True

    def remove_target(self, index: int) -> Node | None:
        if not 0 <= index < len(self.targets):
            return None
        node = self.targets.pop(index)
        self.clear_results()
        return node

    def clear_targets(self) -> None:
        self.targets.clear()
        self.clear_results()

    def add_directory(self, directory: str, on_progress: ProgressCallback | None = None) -> int:
        """Add every container asset under `directory`. Returns how many were added."""
        paths = self.provider.list_assets(directory)
        total = len(paths)
        added = 0
        for index, path in enumerate(paths, start=1):
            if on_progress:
                on_progress(index, total, f"Loading assets from {directory} ({index}/{total})")
            if self.add_target(self.provider.load_asset(path)):
                added += 1
        if added:
            logger.info("Loaded %d asset(s) from %s", added, directory)
        return added

    def target_label(self, node: Node) -> str:
        return "asset" if self.provider.asset_path_of(node) else "live"

    # --- Results ---

    def clear_results(self) -> None:
        self.store.clear()
        self.last_summary = None

    def run_batch(
        self,
        on_progress: ProgressCallback | None = None,
        on_clear: Callable[[], None] | None = None,
    ) -> RunSummary:
        """Raises EmptySourceSet when no targets are listed."""
        self.last_summary = self.runner.run_batch(self.targets, on_progress, on_clear)
        return self.last_summary

    def container_groups(self) -> tuple[ContainerGroup, ...]:
        return self.aggregator.container_groups()

    def live_entries(self) -> tuple[Finding, ...]:
        return self.aggregator.live_entries()

    def container_issue_count(self) -> int:
        return self.aggregator.container_issue_count()

    def locate(self, finding: Finding) -> LocateRequest:
        return self.locator.locate(finding)
