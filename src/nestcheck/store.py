"""In-memory result store for the current run."""

from __future__ import annotations

from typing import Callable, Iterable

from nestcheck.models import Finding


class ResultStore:
    """Insertion-ordered findings plus a revision counter.

    Every mutation bumps `revision`; derived views key their caches on it.
    """

    def __init__(self) -> None:
        self._findings: list[Finding] = []
        self._revision = 0

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def count(self) -> int:
        return len(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    def append(self, findings: Iterable[Finding]) -> None:
        """Commit one source tree's findings in a single step."""
        batch = list(findings)
        if not batch:
            return
        self._findings.extend(batch)
        self._revision += 1

    def clear(self) -> None:
        self._findings.clear()
        self._revision += 1

    def sort(self, key: Callable[[Finding], str]) -> None:
        """Reorder in place (stable)."""
        self._findings.sort(key=key)
        self._revision += 1

    def snapshot(self) -> tuple[Finding, ...]:
        return tuple(self._findings)

    def get(self, index: int) -> Finding | None:
        if 0 <= index < len(self._findings):
            return self._findings[index]
        return None
