"""
Application state and the update functions applied on each UI event.

The Streamlit layer only reads ``AppState`` and calls these functions; they
never touch widgets, so the whole event flow can be tested without a UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional

from extractor_app.agent_client import AgentCallResult, call_ai_agent
from extractor_app.config import AgentConfig
from extractor_app.history import clear_history, load_history, new_history_item, record_history
from extractor_app.models import (
    AGENT_ID,
    DEFAULT_FORMAT,
    ExtractionRequest,
    HistoryItem,
    NormalizedAgentResponse,
)
from extractor_app.storage import KeyValueStore
from extractor_app.theme import Theme, load_theme, next_theme, save_theme


logger = logging.getLogger(__name__)

UNEXPECTED_ERROR = "An unexpected error occurred during extraction"

AgentCaller = Callable[..., AgentCallResult]


@dataclass
class AppState:
    url: str = ""
    selected_params: List[str] = field(default_factory=list)
    custom_param: str = ""
    format: str = DEFAULT_FORMAT
    instructions: str = ""
    busy: bool = False
    response: Optional[NormalizedAgentResponse] = None
    history: List[HistoryItem] = field(default_factory=list)
    selected_history_id: Optional[str] = None
    theme: Theme = "light"
    confirming_clear: bool = False


def initial_state(store: KeyValueStore) -> AppState:
    """Startup: read theme and history once from durable storage."""
    return AppState(history=load_history(store), theme=load_theme(store))


# --- form ---

def toggle_param(state: AppState, label: str) -> AppState:
    if state.busy:
        return state
    if label in state.selected_params:
        state.selected_params = [p for p in state.selected_params if p != label]
    else:
        state.selected_params = [*state.selected_params, label]
    return state


def add_custom_param(state: AppState, text: Optional[str] = None) -> AppState:
    if state.busy:
        return state
    value = (state.custom_param if text is None else text).strip()
    if value and value not in state.selected_params:
        state.selected_params = [*state.selected_params, value]
    state.custom_param = ""
    return state


def can_submit(state: AppState) -> bool:
    return bool(state.url.strip()) and bool(state.selected_params) and not state.busy


def current_request(state: AppState) -> ExtractionRequest:
    return ExtractionRequest(
        url=state.url.strip(),
        parameters=list(state.selected_params),
        format=state.format,
        instructions=state.instructions.strip(),
    )


# --- extraction ---

def begin_extraction(state: AppState) -> AppState:
    if not can_submit(state):
        raise ValueError("extraction needs a URL and at least one parameter")
    state.busy = True
    state.response = None
    state.selected_history_id = None
    return state


def finish_extraction(
    state: AppState,
    request: ExtractionRequest,
    call_result: AgentCallResult,
    store: KeyValueStore,
    now: Optional[datetime] = None,
) -> AppState:
    state.busy = False
    state.response = call_result.response
    if call_result.success:
        item = new_history_item(request, call_result.response, now=now)
        state.history = record_history(store, state.history, item)
    return state


def run_extraction(
    state: AppState,
    store: KeyValueStore,
    client: AgentCaller = call_ai_agent,
    agent_id: str = AGENT_ID,
    config: Optional[AgentConfig] = None,
    now: Optional[datetime] = None,
) -> AppState:
    """Perform the single agent call for a state already marked busy."""
    request = current_request(state)
    try:
        result = client(request.build_message(), agent_id, config=config)
    except Exception:
        logger.exception("Extraction error")
        result = AgentCallResult(False, NormalizedAgentResponse.error(UNEXPECTED_ERROR))
    return finish_extraction(state, request, result, store, now=now or datetime.now(timezone.utc))


# --- history ---

def select_history(state: AppState, item: HistoryItem) -> AppState:
    state.selected_history_id = item.id
    state.url = item.url
    state.selected_params = list(item.parameters)
    state.format = item.format
    state.response = item.response
    return state


def request_clear_history(state: AppState) -> AppState:
    if state.history:
        state.confirming_clear = True
    return state


def cancel_clear_history(state: AppState) -> AppState:
    state.confirming_clear = False
    return state


def confirm_clear_history(state: AppState, store: KeyValueStore) -> AppState:
    state.history = []
    clear_history(store)
    state.selected_history_id = None
    state.confirming_clear = False
    return state


# --- misc ---

def toggle_theme(state: AppState, store: KeyValueStore) -> AppState:
    state.theme = next_theme(state.theme)
    save_theme(store, state.theme)
    return state
