from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional

from extractor_app.models import (
    MAX_HISTORY,
    ExtractionRequest,
    HistoryItem,
    NormalizedAgentResponse,
)
from extractor_app.storage import HISTORY_KEY, KeyValueStore


logger = logging.getLogger(__name__)


def _now_iso(now: datetime) -> str:
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def load_history(store: KeyValueStore) -> List[HistoryItem]:
    raw_text = store.get(HISTORY_KEY)
    if not raw_text:
        return []
    try:
        raw = json.loads(raw_text)
    except Exception:
        logger.exception("Failed to load history")
        return []
    if not isinstance(raw, list):
        logger.error("Failed to load history: expected a list, got %s", type(raw).__name__)
        return []

    items: List[HistoryItem] = []
    for entry in raw[:MAX_HISTORY]:
        try:
            items.append(HistoryItem.from_dict(entry))
        except Exception:
            logger.warning("Skipping malformed history entry: %r", entry)
            continue
    return items


def save_history(store: KeyValueStore, items: List[HistoryItem]) -> None:
    data = [i.to_dict() for i in items]
    store.set(HISTORY_KEY, json.dumps(data, ensure_ascii=False))


def new_history_item(
    request: ExtractionRequest,
    response: NormalizedAgentResponse,
    now: Optional[datetime] = None,
) -> HistoryItem:
    now = now or datetime.now(timezone.utc)
    return HistoryItem(
        id=str(int(now.timestamp() * 1000)),
        timestamp=_now_iso(now),
        url=request.url,
        parameters=list(request.parameters),
        format=request.format,
        response=response,
    )


def record_history(
    store: KeyValueStore,
    items: List[HistoryItem],
    item: HistoryItem,
) -> List[HistoryItem]:
    """Prepend ``item``, keep the newest MAX_HISTORY entries and persist them."""
    updated = [item, *items][:MAX_HISTORY]
    save_history(store, updated)
    return updated


def clear_history(store: KeyValueStore) -> None:
    store.delete(HISTORY_KEY)
