"""nestcheck server: stdio JSON-RPC 2.0 loop."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from nestcheck.config import load_settings
from nestcheck.errors import LoadFailure, err
from nestcheck.provider import JsonTreeProvider
from nestcheck.session import NestCheckSession
from nestcheck.tools import (
    handle_add_directory,
    handle_open_scene,
    handle_list_targets,
    handle_clear_targets,
    handle_run_batch,
    handle_get_results,
    handle_get_finding,
    handle_locate,
    handle_get_server_info,
)

logger = logging.getLogger(__name__)

_FINDING_ID_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"findingId": {"type": "string"}},
    "required": ["findingId"],
    "additionalProperties": False,
}
_EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}

TOOLS_LIST: list[dict[str, Any]] = [
    {
        "name": "add_directory",
        "description": "Add every container asset under a directory of the asset root as a target.",
        "inputSchema": {
            "type": "object",
            "properties": {"directory": {"type": "string"}},
            "additionalProperties": False,
        },
    },
    {
        "name": "open_scene",
        "description": "Open a scene file and add its root objects as live targets.",
        "inputSchema": {
            "type": "object",
            "properties": {"sceneFile": {"type": "string"}},
            "required": ["sceneFile"],
            "additionalProperties": False,
        },
    },
    {
        "name": "list_targets",
        "description": "List the current targets and whether each is an asset or a live object.",
        "inputSchema": _EMPTY_SCHEMA,
        "annotations": {"readOnlyHint": True},
    },
    {
        "name": "clear_targets",
        "description": "Remove all targets and clear results.",
        "inputSchema": _EMPTY_SCHEMA,
    },
    {
        "name": "run_batch",
        "description": (
            "Scan every target for parent/child pairs that share a name. "
            "Containers that fail to load are skipped with a warning."
        ),
        "inputSchema": _EMPTY_SCHEMA,
    },
    {
        "name": "get_results",
        "description": "Findings grouped by container, plus live-object findings sorted by path.",
        "inputSchema": _EMPTY_SCHEMA,
        "annotations": {"readOnlyHint": True},
    },
    {
        "name": "get_finding",
        "description": "Return full details for a findingId returned by get_results.",
        "inputSchema": _FINDING_ID_SCHEMA,
        "annotations": {"readOnlyHint": True},
    },
    {
        "name": "locate",
        "description": (
            "Open the finding's container for editing and select the nested object. "
            "Falls back to the container root if the path no longer resolves."
        ),
        "inputSchema": _FINDING_ID_SCHEMA,
    },
    {
        "name": "get_server_info",
        "description": "Server metadata: name, version, asset extension, capabilities.",
        "inputSchema": _EMPTY_SCHEMA,
        "annotations": {"readOnlyHint": True},
    },
]


class NestCheckServer:
    """Tool routing over stdio JSON-RPC."""

    def __init__(self, session: NestCheckSession, provider: JsonTreeProvider) -> None:
        self.session = session
        self.provider = provider

    def handle_rpc(self, req: dict[str, Any]) -> dict[str, Any]:
        """Route a single JSON-RPC request to the appropriate handler."""
        rpc_id = req.get("id")
        method = req.get("method", "")
        params = req.get("params") or {}

        if method == "tools/list":
            return self._rpc_ok(rpc_id, {"tools": TOOLS_LIST})

        handlers = {
            "add_directory": lambda p: handle_add_directory(p, self.session),
            "open_scene": lambda p: handle_open_scene(p, self.session, self.provider),
            "list_targets": lambda p: handle_list_targets(p, self.session),
            "clear_targets": lambda p: handle_clear_targets(p, self.session),
            "run_batch": lambda p: handle_run_batch(p, self.session),
            "get_results": lambda p: handle_get_results(p, self.session),
            "get_finding": lambda p: handle_get_finding(p, self.session),
            "locate": lambda p: handle_locate(p, self.session),
            "get_server_info": lambda p: handle_get_server_info(p),
        }

        handler = handlers.get(method)
        if not handler:
            return {
                "jsonrpc": "2.0",
                "id": rpc_id,
                "error": {"code": -32601, "message": f"Method not found: {method}"},
            }

        try:
            result = handler(params)
            return self._rpc_ok(rpc_id, result)
        except Exception as e:
            logger.exception("Unhandled error in %s", method)
            return self._rpc_ok(
                rpc_id,
                err("E_INTERNAL", "Unhandled server error.", {"exception": str(e)}),
            )

    def _rpc_ok(self, rpc_id: Any, result: Any) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def main() -> None:
    """Entry point: load config, open configured scenes, run stdio JSON-RPC loop."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s", stream=sys.stderr)

    settings = load_settings()
    provider = JsonTreeProvider(settings.asset_root)
    session = NestCheckSession(provider, max_retries=settings.locate_retries)

    for scene_file in settings.scene_paths:
        try:
            for root in provider.open_scene(scene_file):
                session.add_target(root)
        except LoadFailure as e:
            logger.warning("Skipping scene %s: %s", scene_file, e.reason)

    server = NestCheckServer(session, provider)

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        try:
            req = json.loads(line)
        except json.JSONDecodeError:
            resp = {
                "jsonrpc": "2.0",
                "id": None,
                "error": {"code": -32700, "message": "Parse error"},
            }
            sys.stdout.write(json.dumps(resp) + "\n")
            sys.stdout.flush()
            continue

        resp = server.handle_rpc(req)
        sys.stdout.write(json.dumps(resp) + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
