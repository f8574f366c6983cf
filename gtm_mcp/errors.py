"""Tool error taxonomy and the normalizer that turns faults into tool results."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from googleapiclient.errors import HttpError

log = logging.getLogger(__name__)

REMOVE_SESSION_TOOL = "gtm_remove_session_data"

EXPIRED_SESSION_MESSAGE = (
    "It seems that your token has been expired, please use "
    f"{REMOVE_SESSION_TOOL} tool to clear your session in the MCP client"
)


class ToolError(Exception):
    pass


class ValidationError(ToolError):
    """A parameter required by the chosen action is missing or out of range."""


class MissingFingerprintError(ToolError):
    """No concurrency token could be resolved for an update."""


class WritesDisabledError(ToolError):
    def __init__(self) -> None:
        super().__init__("Write operations are disabled. Set ALLOW_GTM_WRITES=1 to enable.")


# ---- MCP result shapes (text-only so agents render them reliably) ----
def text_result(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


def json_result(data: Any) -> dict:
    return text_result(json.dumps(data, indent=2, ensure_ascii=False))


def _http_error_messages(err: HttpError) -> list[str]:
    try:
        body = json.loads(err.content.decode("utf-8"))
    except (ValueError, AttributeError):
        text = err.content.decode("utf-8", "replace").strip() if isinstance(err.content, bytes) else ""
        return [text or str(err)]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        messages = [item.get("message") for item in (error.get("errors") or []) if isinstance(item, dict)]
        messages = [m for m in messages if m]
        if not messages and error.get("message"):
            messages = [error["message"]]
        return messages
    # OAuth-style body: {"error": "invalid_grant", "error_description": "..."}
    description = body.get("error_description") if isinstance(body, dict) else None
    if description:
        return [str(description)]
    if isinstance(error, str) and error:
        return [error]
    return [str(err)]


def _remote_status(fault: Any) -> Optional[int]:
    if isinstance(fault, HttpError):
        return int(fault.status_code)
    code = getattr(fault, "code", None)
    if isinstance(code, int) and not isinstance(code, bool) and code:
        return code
    return None


def _remote_messages(fault: Any) -> list[str]:
    if isinstance(fault, HttpError):
        return _http_error_messages(fault)
    errors = getattr(fault, "errors", None) or []
    return [str(item.get("message")) if isinstance(item, dict) else str(item) for item in errors]


def describe_error(context: str, fault: Any) -> str:
    code = _remote_status(fault)
    if code == 401:
        return EXPIRED_SESSION_MESSAGE
    if code is not None:
        return f"{context}: Google API Error {code} - {'. '.join(_remote_messages(fault))}"
    if isinstance(fault, BaseException):
        return f"{context}: {fault}"
    return f"{context}: {fault!s}"


def error_result(context: str, fault: Any) -> dict:
    """Normalize any fault into an error-flagged tool result. Never raises."""
    try:
        text = describe_error(context, fault)
    except Exception:  # a broken fault object must not escape the tool boundary
        log.exception("Could not describe fault for %s", context)
        text = f"{context}: {type(fault).__name__}"
    if isinstance(fault, BaseException) and not isinstance(fault, ToolError):
        log.debug("Fault detail", exc_info=fault)
    log.error("MCP Tool Error: %s", text)
    return {"isError": True, "content": [{"type": "text", "text": text}]}
