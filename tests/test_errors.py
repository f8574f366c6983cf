import json
from types import SimpleNamespace

from googleapiclient.errors import HttpError

from gtm_mcp.errors import (
    EXPIRED_SESSION_MESSAGE,
    REMOVE_SESSION_TOOL,
    ValidationError,
    describe_error,
    error_result,
)


def http_error(status, messages):
    body = {"error": {"code": status, "message": messages[0] if messages else "", "errors": [{"message": m} for m in messages]}}
    resp = SimpleNamespace(status=status, reason="error")
    return HttpError(resp, json.dumps(body).encode("utf-8"), uri="https://tagmanager.googleapis.com/")


def test_401_points_at_session_reset_tool():
    text = describe_error("Error performing get on GTM tag", http_error(401, ["Invalid Credentials"]))
    assert text == EXPIRED_SESSION_MESSAGE
    assert REMOVE_SESSION_TOOL in text


def test_other_status_codes_list_sub_messages():
    text = describe_error("Error performing get on GTM tag", http_error(403, ["forbidden"]))
    assert text == "Error performing get on GTM tag: Google API Error 403 - forbidden"


def test_sub_messages_are_joined():
    text = describe_error("ctx", http_error(400, ["bad name", "bad type"]))
    assert text == "ctx: Google API Error 400 - bad name. bad type"


def test_duck_typed_remote_fault():
    fault = SimpleNamespace(code=412, errors=[{"message": "fingerprint mismatch"}])
    assert describe_error("ctx", fault) == "ctx: Google API Error 412 - fingerprint mismatch"


def test_generic_exception_uses_message():
    assert describe_error("ctx", ValidationError("tagId is required for get action")) == "ctx: tagId is required for get action"


def test_unknown_value_is_stringified():
    assert describe_error("ctx", 42) == "ctx: 42"
    assert describe_error("ctx", None) == "ctx: None"


def test_error_result_shape():
    result = error_result("ctx", RuntimeError("boom"))
    assert result == {"isError": True, "content": [{"type": "text", "text": "ctx: boom"}]}


def raw_http_error(status, content):
    return HttpError(SimpleNamespace(status=status, reason="error"), content, uri="https://oauth2.googleapis.com/token")


def test_string_error_body_keeps_status_code():
    err = raw_http_error(400, b'{"error": "invalid_grant", "error_description": "Token has been expired or revoked."}')
    assert describe_error("ctx", err) == "ctx: Google API Error 400 - Token has been expired or revoked."


def test_string_error_body_without_description():
    err = raw_http_error(400, b'{"error": "invalid_grant"}')
    assert error_result("ctx", err)["content"][0]["text"] == "ctx: Google API Error 400 - invalid_grant"


def test_string_error_body_401_points_at_session_reset_tool():
    err = raw_http_error(401, b'{"error": "invalid_grant"}')
    assert error_result("ctx", err)["content"][0]["text"] == EXPIRED_SESSION_MESSAGE


def test_non_json_body_keeps_status_code():
    err = raw_http_error(400, b"<html>Bad Request</html>")
    assert describe_error("ctx", err) == "ctx: Google API Error 400 - <html>Bad Request</html>"


def test_non_json_body_401_points_at_session_reset_tool():
    assert describe_error("ctx", raw_http_error(401, b"Unauthorized")) == EXPIRED_SESSION_MESSAGE
