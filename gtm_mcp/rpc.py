"""JSON-RPC 2.0 MCP methods, shared by the HTTP and stdio transports."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Optional

from . import SERVER_NAME, SERVER_VERSION
from .context import ServerContext
from .tools import handle_tool_call, tools_descriptor

log = logging.getLogger(__name__)

MCP_PROTOCOL_VERSION_FALLBACK = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


def rpc_result(rpc_id: Any, result: Any) -> dict:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def rpc_error(rpc_id: Any, code: int, message: str, data: Any = None) -> dict:
    err: dict = {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}
    if data is not None:
        err["error"]["data"] = data
    return err


def is_notification(payload: Mapping[str, Any]) -> bool:
    return "id" not in payload or str(payload.get("method") or "").startswith("notifications/")


def handle_message(payload: Any, ctx: ServerContext) -> Optional[dict]:
    """Answer one JSON-RPC request. Returns None for notifications."""
    if not isinstance(payload, Mapping) or payload.get("jsonrpc") != "2.0":
        return rpc_error(None, INVALID_REQUEST, "Invalid Request")

    t0 = time.time()
    rpc_id = payload.get("id")
    method = str(payload.get("method") or "")
    params = payload.get("params")
    if not isinstance(params, Mapping):
        params = {}

    def done(response: dict) -> Optional[dict]:
        log.debug("%s handled in %dms", method, int((time.time() - t0) * 1000))
        return None if is_notification(payload) else response

    if method == "initialize":
        proto = params.get("protocolVersion") or MCP_PROTOCOL_VERSION_FALLBACK
        return done(rpc_result(rpc_id, {
            "protocolVersion": proto,
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
            "capabilities": {"tools": {"listChanged": False}},
        }))

    if method in ("initialized", "notifications/initialized"):
        return done(rpc_result(rpc_id, {}))

    if method == "tools/list":
        return done(rpc_result(rpc_id, {"tools": tools_descriptor()["tools"]}))

    if method == "tools/call":
        name = params.get("name")
        args = params.get("arguments") or {}
        try:
            return done(rpc_result(rpc_id, handle_tool_call(ctx, name, args)))
        except Exception as e:
            log.exception("Error in tools/call %s", name)
            return done(rpc_error(rpc_id, INTERNAL_ERROR, "Tool call failed", {"message": str(e)}))

    if method == "ping":
        return done(rpc_result(rpc_id, {}))

    log.warning("Method '%s' not found", method)
    return done(rpc_error(rpc_id, METHOD_NOT_FOUND, f"Method '{method}' not found"))
