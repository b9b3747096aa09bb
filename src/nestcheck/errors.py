"""Error taxonomy helpers: structured error/success envelopes and warnings."""

from __future__ import annotations

from typing import Any

# Non-fatal conditions, reported as warnings and degraded around.
W_LOAD_FAILURE = "W_LOAD_FAILURE"
W_TRAVERSAL_ANOMALY = "W_TRAVERSAL_ANOMALY"
W_PATH_NOT_FOUND = "W_PATH_NOT_FOUND"
W_RETRY_EXHAUSTED = "W_RETRY_EXHAUSTED"
W_STALE_REFERENCE = "W_STALE_REFERENCE"
W_ACTIVATION_FAILED = "W_ACTIVATION_FAILED"
W_SOURCE_FAILED = "W_SOURCE_FAILED"


class LoadFailure(Exception):
    """A container could not be read or parsed into a tree."""

    def __init__(self, container_path: str, reason: str) -> None:
        super().__init__(f"{container_path}: {reason}")
        self.container_path = container_path
        self.reason = reason


class EmptySourceSet(ValueError):
    """A batch was requested with no sources."""


def err(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    next_steps: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a structured error envelope."""
    return {
        "ok": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "nextSteps": next_steps or [],
        },
    }


def ok(result: dict[str, Any]) -> dict[str, Any]:
    """Build a structured success envelope."""
    return {"ok": True, "result": result}


def warning(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a warning record for summaries and locate requests."""
    return {"code": code, "message": message, "details": details or {}}
