"""Locator: find a reported node again inside a freshly opened container.

Opening a container for editing may finish later than the request, so each
resolve attempt is a separate callback handed to a scheduler. Attempts are
bounded; when they run out, or the stored path no longer resolves, the
container root is selected instead and a single warning is recorded.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from nestcheck.config import LOCATE_MAX_RETRIES
from nestcheck.errors import (
    W_ACTIVATION_FAILED,
    W_PATH_NOT_FOUND,
    W_RETRY_EXHAUSTED,
    W_STALE_REFERENCE,
    warning,
)
from nestcheck.models import Finding
from nestcheck.nodes import Node, is_alive
from nestcheck.paths import resolve
from nestcheck.provider import AssetProvider

logger = logging.getLogger(__name__)

Schedule = Callable[[Callable[[], None]], None]


class LocateState(Enum):
    IDLE = "idle"
    ACTIVATING = "activating"
    RESOLVING = "resolving"
    FOUND = "found"
    GAVE_UP = "gave_up"


class DeferredQueue:
    """Run-later callback queue, pumped by the host between events."""

    def __init__(self) -> None:
        self._pending: deque[Callable[[], None]] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def call_later(self, callback: Callable[[], None]) -> None:
        self._pending.append(callback)

    def run_pending(self) -> int:
        """Run callbacks queued so far; ones they queue wait for the next pass."""
        batch = len(self._pending)
        for _ in range(batch):
            self._pending.popleft()()
        return batch

    def drain(self, max_ticks: int = 100) -> int:
        """Pump until empty or `max_ticks` passes. Returns passes run."""
        ticks = 0
        while self._pending and ticks < max_ticks:
            self.run_pending()
            ticks += 1
        return ticks


@dataclass
class LocateRequest:
    finding: Finding
    state: LocateState = LocateState.IDLE
    attempts_remaining: int = 0
    root: Node | None = field(default=None, repr=False)
    target: Node | None = field(default=None, repr=False)
    warnings: list[dict[str, Any]] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return self.state in (LocateState.FOUND, LocateState.GAVE_UP)


class Locator:
    def __init__(
        self,
        provider: AssetProvider,
        schedule: Schedule,
        max_retries: int = LOCATE_MAX_RETRIES,
    ) -> None:
        self.provider = provider
        self.schedule = schedule
        self.max_retries = max_retries

    def locate(self, finding: Finding) -> LocateRequest:
        """Start locating `finding`. Completion shows up as selection/focus."""
        request = LocateRequest(finding=finding)

        if not finding.isAssetBacked:
            self._locate_live(request)
            return request

        path = finding.containerPath
        if not path:
            logger.debug("Finding %s has no container path; nothing to open", finding.fullPath)
            request.state = LocateState.GAVE_UP
            return request

        request.state = LocateState.ACTIVATING
        if self.provider.active_editing_path() != path:
            if not self.provider.activate_for_editing(path):
                self._give_up(request, W_ACTIVATION_FAILED, "Could not open container for editing.")
                return request

        request.state = LocateState.RESOLVING
        request.attempts_remaining = self.max_retries
        self.schedule(lambda: self._attempt(request))
        return request

    def _locate_live(self, request: LocateRequest) -> None:
        child = request.finding.childRef
        if not is_alive(child):
            self._give_up(request, W_STALE_REFERENCE, "Object no longer exists.")
            return
        self._select(request, child)

    def _attempt(self, request: LocateRequest) -> None:
        finding = request.finding
        if request.attempts_remaining <= 0:
            self._give_up(request, W_RETRY_EXHAUSTED, "Could not locate object, max retries reached.")
            return

        ready, root = self.provider.editing_state(finding.containerPath)
        if root is not None:
            request.root = root
        if not ready or root is None:
            request.attempts_remaining -= 1
            logger.debug(
                "Editing context for %s not ready, %d attempt(s) left",
                finding.containerPath, request.attempts_remaining,
            )
            self.schedule(lambda: self._attempt(request))
            return

        target = resolve(root, finding.childPath)
        if target is None:
            self._give_up(
                request,
                W_PATH_NOT_FOUND,
                "Could not find path; selected the container root. Look for it manually.",
            )
            return
        self._select(request, target)

    def _select(self, request: LocateRequest, node: Node) -> None:
        request.target = node
        request.state = LocateState.FOUND
        self.provider.select(node)
        self.provider.focus(node)

    def _give_up(self, request: LocateRequest, code: str, message: str) -> None:
        finding = request.finding
        request.state = LocateState.GAVE_UP
        root = request.root
        if root is None and finding.isAssetBacked and code != W_ACTIVATION_FAILED:
            # editing root never appeared; the container asset itself is next best
            root = self.provider.load_asset(finding.containerPath)
        if root is not None:
            self.provider.select(root)
            self.provider.focus(root)
        logger.warning("%s %s (container %s)", message, finding.childPath, finding.containerPath)
        request.warnings.append(warning(
            code,
            message,
            {"childPath": finding.childPath, "containerPath": finding.containerPath},
        ))
