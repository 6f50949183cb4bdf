"""
Pure helpers behind the results panel: which view to show and the text,
table and CSV derived from an agent result.
"""

from __future__ import annotations

import csv
import json
from enum import Enum
from typing import Any, List, Optional

import pandas as pd

from extractor_app.models import AgentResult, ExtractedData, NormalizedAgentResponse


DEFAULT_ERROR_MESSAGE = "An error occurred during extraction"
EMPTY_CELL = "-"


class ResultsView(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    ERROR = "error"
    SUCCESS = "success"


def select_view(response: Optional[NormalizedAgentResponse], busy: bool) -> ResultsView:
    if busy:
        return ResultsView.LOADING
    if response is None:
        return ResultsView.EMPTY
    if response.status == "error":
        return ResultsView.ERROR
    return ResultsView.SUCCESS


def error_message(response: NormalizedAgentResponse) -> str:
    return response.message or DEFAULT_ERROR_MESSAGE


def processed_count(result: AgentResult) -> int:
    return len(result.urls_processed)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and pd.isna(value):
        return True
    return value == "" or value == [] or value == {}


def _as_text(value: Any) -> str:
    # non-string agent values are shown as JSON text
    if isinstance(value, (dict, list, bool)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def visible_fields(item: ExtractedData) -> List[tuple]:
    """Fields of one extracted item that have a value, in agent order."""
    return [(k, _as_text(v)) for k, v in item.extracted_fields.items() if not _is_empty(v)]


def build_fields_text(item: ExtractedData) -> str:
    return "\n".join(f"{k}: {_as_text(v)}" for k, v in item.extracted_fields.items())


def build_copy_all_text(result: AgentResult) -> str:
    text = "Web Content Extraction\n\n"
    text += f"URLs Processed: {', '.join(result.urls_processed) or 'N/A'}\n\n"

    if result.summary:
        text += f"Summary:\n{result.summary}\n\n"

    if result.extracted_data:
        text += "Extracted Data:\n"
        for item in result.extracted_data:
            text += f"\nURL: {item.url}\n"
            text += f"Title: {item.title}\n"
            for key, value in visible_fields(item):
                text += f"{key}: {value}\n"

    return text


def table_headers(result: AgentResult) -> List[str]:
    if not result.structured_table:
        return []
    return [str(k) for k in result.structured_table[0].keys()]


def table_frame(result: AgentResult) -> pd.DataFrame:
    """Tabular rows as a DataFrame of strings, empty cells shown as ``-``."""
    headers = table_headers(result)
    if not headers:
        return pd.DataFrame()
    rows = [
        [EMPTY_CELL if _is_empty(row.get(h)) else _as_text(row.get(h)) for h in headers]
        for row in result.structured_table
    ]
    return pd.DataFrame(rows, columns=headers)


def build_csv(result: AgentResult) -> Optional[str]:
    """
    CSV of the structured table, or None when there are no rows.

    The header comes from the first row's keys; every cell is quoted and
    values missing from a row are written as empty strings.
    """
    headers = table_headers(result)
    if not headers:
        return None
    rows = [
        ["" if _is_empty(row.get(h)) else _as_text(row.get(h)) for h in headers]
        for row in result.structured_table
    ]
    df = pd.DataFrame(rows, columns=headers)
    text = df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return text[:-1] if text.endswith("\n") else text
