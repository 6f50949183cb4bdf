from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


AGENT_ID = "69725146d6d0dcaec111c478"

PREDEFINED_PARAMS = [
    "Definitions",
    "Features",
    "Pricing",
    "Categories",
    "Specifications",
    "FAQs",
]

FORMAT_OPTIONS: Dict[str, str] = {
    "table": "Table",
    "bullet": "Bullet List",
    "keyvalue": "Key-Value",
}
DEFAULT_FORMAT = "table"

MAX_HISTORY = 50

ResponseStatus = Literal["success", "error"]


@dataclass
class ExtractionRequest:
    url: str
    parameters: List[str]
    format: str = DEFAULT_FORMAT
    instructions: str = ""

    def build_message(self) -> str:
        """Compose the natural-language instruction sent to the agent."""
        extra = f"Additional instructions: {self.instructions}" if self.instructions else ""
        return (
            f"Extract content from URL: {self.url}\n"
            "\n"
            f"Parameters to extract: {', '.join(self.parameters)}\n"
            f"Output format: {self.format}\n"
            f"{extra}\n"
            "\n"
            "Please return the extracted data in a structured format."
        )


@dataclass
class NormalizedAgentResponse:
    status: ResponseStatus
    result: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @classmethod
    def error(cls, message: str) -> "NormalizedAgentResponse":
        return cls(status="error", result={}, message=message)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"status": self.status, "result": self.result}
        if self.message is not None:
            data["message"] = self.message
        return data

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "NormalizedAgentResponse":
        status = raw.get("status")
        result = raw.get("result")
        message = raw.get("message")
        return cls(
            status="success" if status == "success" else "error",
            result=result if isinstance(result, dict) else {},
            message=message if isinstance(message, str) else None,
        )


@dataclass
class ExtractedData:
    url: str = ""
    title: str = ""
    extracted_fields: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> "ExtractedData":
        if not isinstance(raw, dict):
            return cls()
        fields = raw.get("extracted_fields")
        return cls(
            url=str(raw.get("url") or ""),
            title=str(raw.get("title") or ""),
            extracted_fields=fields if isinstance(fields, dict) else {},
        )


@dataclass
class AgentResult:
    """Success payload of the agent. Every key is optional."""

    urls_processed: List[str] = field(default_factory=list)
    extracted_data: List[ExtractedData] = field(default_factory=list)
    structured_table: List[Dict[str, Any]] = field(default_factory=list)
    summary: str = ""

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "AgentResult":
        raw = raw if isinstance(raw, dict) else {}

        urls = raw.get("urls_processed")
        data = raw.get("extracted_data")
        table = raw.get("structured_table")
        summary = raw.get("summary")

        return cls(
            urls_processed=[str(u) for u in urls] if isinstance(urls, list) else [],
            extracted_data=[ExtractedData.from_dict(d) for d in data] if isinstance(data, list) else [],
            structured_table=[row for row in table if isinstance(row, dict)] if isinstance(table, list) else [],
            summary=summary if isinstance(summary, str) else "",
        )


@dataclass
class HistoryItem:
    id: str
    timestamp: str
    url: str
    parameters: List[str]
    format: str
    response: NormalizedAgentResponse

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "url": self.url,
            "parameters": list(self.parameters),
            "format": self.format,
            "response": self.response.to_dict(),
        }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "HistoryItem":
        response = raw["response"]
        if not isinstance(response, dict):
            raise ValueError("history item response must be an object")
        return cls(
            id=str(raw["id"]),
            timestamp=str(raw.get("timestamp", "")),
            url=str(raw.get("url", "")),
            parameters=[str(p) for p in raw.get("parameters") or []],
            format=str(raw.get("format") or DEFAULT_FORMAT),
            response=NormalizedAgentResponse.from_dict(response),
        )
