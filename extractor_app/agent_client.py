"""
Client for the remote extraction agent.

Sends one instruction message to the agent and always hands back a
``NormalizedAgentResponse``; transport and parsing failures become an
``error`` envelope instead of an exception.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from extractor_app.config import AgentConfig
from extractor_app.models import AGENT_ID, NormalizedAgentResponse


logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


@dataclass
class AgentCallResult:
    success: bool
    response: NormalizedAgentResponse


def _decode_text(text: str) -> Any:
    """Decode JSON text, also when wrapped in a Markdown code fence."""
    stripped = text.strip()
    match = _FENCE_RE.search(stripped)
    if match:
        stripped = match.group(1)
    try:
        return json.loads(stripped)
    except ValueError:
        return None


def _is_envelope(payload: Dict[str, Any]) -> bool:
    return payload.get("status") in ("success", "error") and (
        "result" in payload or "message" in payload
    )


def normalize_agent_payload(payload: Any) -> NormalizedAgentResponse:
    """Turn whatever the agent sent back into a status/result/message envelope."""
    if isinstance(payload, str):
        decoded = _decode_text(payload)
        if decoded is None:
            # plain prose answer
            return NormalizedAgentResponse(status="success", result={"summary": payload.strip()})
        payload = decoded

    if not isinstance(payload, dict):
        return NormalizedAgentResponse.error("Unexpected response format from agent")

    if _is_envelope(payload):
        result = payload.get("result")
        if isinstance(result, str):
            decoded = _decode_text(result)
            result = decoded if isinstance(decoded, dict) else {"summary": result}
        message = payload.get("message")
        return NormalizedAgentResponse(
            status=payload["status"],
            result=result if isinstance(result, dict) else {},
            message=message if isinstance(message, str) else None,
        )

    if payload.get("success") is False:
        inner = payload.get("response")
        if isinstance(inner, dict) and _is_envelope(inner):
            return normalize_agent_payload({**inner, "status": "error"})
        error = payload.get("error") or payload.get("message") or "Agent call failed"
        return NormalizedAgentResponse.error(str(error))

    if "response" in payload:
        inner = payload["response"]
        if isinstance(inner, dict) and "result" in inner and not _is_envelope(inner):
            inner = inner["result"]
        return normalize_agent_payload(inner)

    return NormalizedAgentResponse(status="success", result=payload)


def call_ai_agent(
    message: str,
    agent_id: str = AGENT_ID,
    config: Optional[AgentConfig] = None,
    session: Optional[requests.Session] = None,
) -> AgentCallResult:
    """
    Call the agent once. No retry is performed; the timeout comes from
    ``config.timeout`` and is unlimited when unset.
    """
    config = config or AgentConfig()
    if not message or not message.strip():
        return AgentCallResult(False, NormalizedAgentResponse.error("Message is required"))

    headers = {"Content-Type": "application/json"}
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
        headers["x-api-key"] = config.api_key

    http = session or requests
    logger.info("Calling agent %s at %s", agent_id, config.base_url)
    try:
        resp = http.post(
            config.base_url,
            json={"message": message, "agent_id": agent_id},
            headers=headers,
            timeout=config.timeout,
        )
    except requests.exceptions.Timeout:
        logger.warning("Agent call timed out")
        return AgentCallResult(False, NormalizedAgentResponse.error("Request timed out"))
    except requests.exceptions.RequestException as e:
        logger.warning("Agent call failed: %s", e)
        return AgentCallResult(False, NormalizedAgentResponse.error(f"Network error: {e}"))

    if resp.status_code >= 400:
        logger.warning("Agent returned HTTP %s", resp.status_code)
        detail = ""
        try:
            body = resp.json()
            if isinstance(body, dict):
                detail = str(body.get("error") or body.get("message") or "")
        except ValueError:
            detail = ""
        text = f"HTTP {resp.status_code}"
        if detail:
            text = f"{text}: {detail}"
        return AgentCallResult(False, NormalizedAgentResponse.error(text))

    try:
        payload = resp.json()
    except ValueError:
        payload = resp.text
        if not payload or not payload.strip():
            logger.warning("Agent returned an empty body")
            return AgentCallResult(False, NormalizedAgentResponse.error("Empty response from agent"))

    try:
        normalized = normalize_agent_payload(payload)
    except Exception:
        logger.exception("Failed to normalize agent response")
        return AgentCallResult(False, NormalizedAgentResponse.error("Failed to parse agent response"))

    return AgentCallResult(normalized.is_success, normalized)
