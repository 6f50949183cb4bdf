import json
from unittest.mock import MagicMock

import pytest
import requests

from extractor_app.agent_client import call_ai_agent, normalize_agent_payload
from extractor_app.config import AgentConfig
from extractor_app.models import AGENT_ID


def make_session(status=200, body=None, text=None, exc=None):
    session = MagicMock()
    if exc is not None:
        session.post.side_effect = exc
        return session
    resp = MagicMock()
    resp.status_code = status
    if body is not None:
        resp.json.return_value = body
        resp.text = json.dumps(body)
    else:
        resp.json.side_effect = ValueError("no json")
        resp.text = text or ""
    session.post.return_value = resp
    return session


def test_posts_message_and_agent_id_once():
    config = AgentConfig(base_url="http://agent.local/run", api_key="k", timeout=None)
    session = make_session(body={"status": "success", "result": {"summary": "ok"}})

    result = call_ai_agent("hello", AGENT_ID, config=config, session=session)

    assert result.success
    assert result.response.result == {"summary": "ok"}
    session.post.assert_called_once()
    args, kwargs = session.post.call_args
    assert args[0] == "http://agent.local/run"
    assert kwargs["json"] == {"message": "hello", "agent_id": AGENT_ID}
    assert kwargs["headers"]["Authorization"] == "Bearer k"
    assert kwargs["timeout"] is None


def test_no_auth_header_without_key():
    session = make_session(body={"status": "success", "result": {}})
    call_ai_agent("hello", config=AgentConfig(api_key=""), session=session)
    headers = session.post.call_args[1]["headers"]
    assert "Authorization" not in headers


def test_empty_message_fails_without_request():
    session = make_session(body={})
    result = call_ai_agent("   ", session=session)
    assert not result.success
    assert result.response.status == "error"
    session.post.assert_not_called()


@pytest.mark.parametrize(
    "exc,expected",
    [
        (requests.exceptions.Timeout(), "Request timed out"),
        (requests.exceptions.ConnectionError("refused"), "Network error: refused"),
    ],
)
def test_transport_failures_fail_closed(exc, expected):
    result = call_ai_agent("hi", session=make_session(exc=exc))
    assert not result.success
    assert result.response.status == "error"
    assert result.response.message == expected
    assert result.response.result == {}


def test_http_error_status():
    session = make_session(status=503, body={"error": "overloaded"})
    result = call_ai_agent("hi", session=session)
    assert not result.success
    assert result.response.message == "HTTP 503: overloaded"


def test_http_error_without_body():
    result = call_ai_agent("hi", session=make_session(status=500, text="oops"))
    assert result.response.message == "HTTP 500"


def test_empty_body_is_error():
    result = call_ai_agent("hi", session=make_session(text="  "))
    assert not result.success
    assert result.response.message == "Empty response from agent"


def test_plain_text_body_becomes_summary():
    result = call_ai_agent("hi", session=make_session(text="Just prose."))
    assert result.success
    assert result.response.result == {"summary": "Just prose."}


def test_agent_error_envelope_is_not_success():
    body = {"status": "error", "result": {}, "message": "timeout"}
    result = call_ai_agent("hi", session=make_session(body=body))
    assert not result.success
    assert result.response.message == "timeout"


def test_normalize_wrapped_envelope():
    payload = {"success": True, "response": {"status": "success", "result": {"summary": "s"}}}
    response = normalize_agent_payload(payload)
    assert response.status == "success"
    assert response.result == {"summary": "s"}


def test_normalize_wrapped_failure():
    response = normalize_agent_payload({"success": False, "response": None, "error": "bad key"})
    assert response.status == "error"
    assert response.message == "bad key"


def test_normalize_nested_result_wrapper():
    payload = {"response": {"result": {"urls_processed": ["https://a.io"]}}}
    response = normalize_agent_payload(payload)
    assert response.status == "success"
    assert response.result == {"urls_processed": ["https://a.io"]}


def test_normalize_fenced_json_string():
    text = 'Here you go:\n```json\n{"summary": "fenced"}\n```'
    response = normalize_agent_payload(text)
    assert response.result == {"summary": "fenced"}


def test_normalize_result_json_string():
    payload = {"status": "success", "result": json.dumps({"summary": "inner"})}
    assert normalize_agent_payload(payload).result == {"summary": "inner"}


def test_normalize_bare_result_dict():
    response = normalize_agent_payload({"summary": "bare", "structured_table": []})
    assert response.status == "success"
    assert response.result["summary"] == "bare"


def test_normalize_unexpected_type():
    response = normalize_agent_payload(["a", "b"])
    assert response.status == "error"


def test_failure_wrapper_without_response_is_error():
    session = make_session(body={"success": False, "error": "Invalid API key"})
    result = call_ai_agent("hi", session=session)
    assert not result.success
    assert result.response.status == "error"
    assert result.response.message == "Invalid API key"
    assert result.response.result == {}


def test_failure_wrapper_falls_back_to_generic_message():
    response = normalize_agent_payload({"success": False})
    assert response.status == "error"
    assert response.message == "Agent call failed"


def test_failure_reply_is_not_recorded_in_history(store):
    from extractor_app import state as app_state

    s = app_state.AppState(url="https://a.io", selected_params=["Pricing"])
    app_state.begin_extraction(s)
    session = make_session(body={"success": False, "message": "quota exceeded"})

    app_state.run_extraction(
        s,
        store,
        client=lambda message, agent_id, config=None: call_ai_agent(message, agent_id, config, session=session),
    )

    assert s.response.message == "quota exceeded"
    assert s.history == []
