"""HTTP transport: JSON-RPC on POST / plus discovery and health routes."""

from __future__ import annotations

import logging

from flask import Flask, current_app, g, jsonify, request

from . import SERVER_NAME, SERVER_VERSION
from .context import ServerContext
from .rpc import MCP_PROTOCOL_VERSION_FALLBACK, PARSE_ERROR, handle_message, rpc_error
from .tools import tools_descriptor

log = logging.getLogger(__name__)

# Optional: serve versioned paths like /v1/.well-known/mcp.json
VERSION_PREFIXES = ["/v1"]

ALLOW_HEADERS = "Content-Type, Authorization, MCP-Protocol-Version, Mcp-Protocol-Version, Mcp-Session-Id, X-MCP-Key"


class _StripVersionPrefix:
    """WSGI wrapper so /v1/... resolves to the same routes; runs before URL matching."""

    def __init__(self, wsgi_app):
        self.wsgi_app = wsgi_app

    def __call__(self, environ, start_response):
        p = environ.get("PATH_INFO", "")
        for pref in VERSION_PREFIXES:
            if p == pref or p.startswith(pref + "/"):
                environ["PATH_INFO"] = p[len(pref):] or "/"
                break
        return self.wsgi_app(environ, start_response)


def _context() -> ServerContext:
    return current_app.extensions["gtm_mcp"]


def create_app(ctx: ServerContext) -> Flask:
    app = Flask(__name__)
    app.extensions["gtm_mcp"] = ctx
    app.wsgi_app = _StripVersionPrefix(app.wsgi_app)
    shared_key = ctx.settings.shared_key

    @app.before_request
    def _log_req():
        auth = ("present" if request.headers.get("X-MCP-Key") else "missing") if shared_key else "disabled"
        log.info("REQ %s %s auth=%s", request.method, request.path, auth)

    @app.after_request
    def _cors_and_log(resp):
        resp.headers["Access-Control-Allow-Origin"] = request.headers.get("Origin", "*")
        resp.headers["Vary"] = "Origin"
        resp.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        resp.headers["Access-Control-Allow-Headers"] = request.headers.get("Access-Control-Request-Headers", ALLOW_HEADERS)
        resp.headers["Access-Control-Expose-Headers"] = "Mcp-Session-Id, MCP-Protocol-Version"
        resp.headers["MCP-Protocol-Version"] = (
            request.headers.get("Mcp-Protocol-Version") or g.get("mcp_protocol") or MCP_PROTOCOL_VERSION_FALLBACK
        )
        log.info("RESP %s %s -> %s", request.method, request.path, resp.status)
        return resp

    @app.route("/", methods=["OPTIONS"])
    @app.route("/mcp/tools", methods=["OPTIONS"])
    def _options_ok():
        return ("", 204)

    @app.route("/healthz", methods=["GET"], strict_slashes=False)
    @app.route("/health", methods=["GET"], strict_slashes=False)
    def healthz():
        return jsonify({"ok": True, "version": SERVER_VERSION}), 200

    @app.get("/.well-known/mcp.json")
    def mcp_discovery():
        d = {
            "mcpVersion": "1.0",
            "name": SERVER_NAME,
            "version": SERVER_VERSION,
            "auth": {"type": "shared-key" if shared_key else "none"},
            "capabilities": {"tools": {"listChanged": False}},
        }
        d.update(tools_descriptor())
        return jsonify(d)

    @app.get("/mcp/tools")
    def mcp_tools_index():
        return jsonify(tools_descriptor())

    @app.get("/")
    def root_get():
        return jsonify({"ok": True, "message": "MCP server. Use POST / for JSON-RPC; see /.well-known/mcp.json"}), 200

    @app.post("/")
    def root_post():
        if shared_key and request.headers.get("X-MCP-Key", "") != shared_key:
            return jsonify({"jsonrpc": "2.0", "id": None, "error": {"code": -32001, "message": "Unauthorized"}}), 200

        payload = request.get_json(force=True, silent=True)
        if payload is None:
            return jsonify(rpc_error(None, PARSE_ERROR, "Parse error")), 200
        log.debug("ROOT POST payload keys=%s", list(payload.keys()) if isinstance(payload, dict) else type(payload).__name__)

        if isinstance(payload, dict) and payload.get("method") == "initialize":
            g.mcp_protocol = (payload.get("params") or {}).get("protocolVersion")

        response = handle_message(payload, _context())
        if response is None:
            return ("", 202)
        return jsonify(response), 200

    return app
