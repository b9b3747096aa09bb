"""Read views over the result store: container groups and live entries."""

from __future__ import annotations

from nestcheck.models import ContainerGroup, Finding, display_name_for
from nestcheck.store import ResultStore


class ResultAggregator:
    """Derives grouped/sorted views from a ResultStore, memoized per revision.

    Asset-backed findings go to container groups, everything else to the live
    entries list. Nothing is in both.
    """

    def __init__(self, store: ResultStore) -> None:
        self._store = store
        self._revision: int | None = None
        self._groups: tuple[ContainerGroup, ...] = ()
        self._live: tuple[Finding, ...] = ()

    def container_groups(self) -> tuple[ContainerGroup, ...]:
        self._ensure()
        return self._groups

    def live_entries(self) -> tuple[Finding, ...]:
        self._ensure()
        return self._live

    def container_issue_count(self) -> int:
        """Distinct container paths with findings; empty/None counts once."""
        return len(self.container_groups())

    def _ensure(self) -> None:
        if self._revision == self._store.revision:
            return

        buckets: dict[str, list[Finding]] = {}
        live: list[Finding] = []
        for finding in self._store.snapshot():
            if finding.isAssetBacked:
                buckets.setdefault(finding.containerPath or "", []).append(finding)
            else:
                live.append(finding)

        groups = [
            ContainerGroup(
                containerPath=path,
                displayName=display_name_for(path),
                entries=sorted(entries, key=lambda f: f.childPath),
            )
            for path, entries in sorted(buckets.items())
        ]

        self._groups = tuple(groups)
        self._live = tuple(sorted(live, key=lambda f: f.fullPath))
        self._revision = self._store.revision
