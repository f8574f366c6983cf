from __future__ import annotations

import json
import logging
import sys
from typing import Optional, TextIO

from .context import ServerContext
from .rpc import PARSE_ERROR, handle_message, rpc_error

log = logging.getLogger(__name__)


def serve_stdio(ctx: ServerContext, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None) -> None:
    """Newline-delimited JSON-RPC over stdin/stdout until stdin closes."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    log.info("Google Tag Manager MCP Server running on stdio")

    for line in stdin:
        line = line.strip()
        if not line:
            continue
        try:
            payload = json.loads(line)
        except ValueError as e:
            log.warning("Discarding malformed message: %s", e)
            response = rpc_error(None, PARSE_ERROR, "Parse error")
        else:
            response = handle_message(payload, ctx)
        if response is not None:
            stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
            stdout.flush()
    log.info("stdin closed, shutting down")
