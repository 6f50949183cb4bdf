import pytest

from extractor_app.models import HistoryItem, NormalizedAgentResponse
from extractor_app.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def success_response():
    return NormalizedAgentResponse(
        status="success",
        result={
            "urls_processed": ["https://example.com/pricing"],
            "extracted_data": [
                {
                    "url": "https://example.com/pricing",
                    "title": "Pricing",
                    "extracted_fields": {"pricing": "$10/mo", "features": "", "definitions": "A tool"},
                },
                {
                    "url": "https://example.com/features",
                    "title": "Features",
                    "extracted_fields": {"features": "Exports"},
                },
            ],
            "structured_table": [
                {"Feature": "Exports", "Pricing Tier": "Pro"},
                {"Feature": "SSO", "Pricing Tier": ""},
            ],
            "summary": "Two plans.",
        },
    )


def make_item(n, response=None):
    return HistoryItem(
        id=str(1700000000000 + n),
        timestamp=f"2024-01-01T00:00:{n % 60:02d}.000Z",
        url=f"https://example.com/{n}",
        parameters=["Features"],
        format="table",
        response=response or NormalizedAgentResponse(status="success", result={"summary": str(n)}),
    )


@pytest.fixture
def item_factory():
    return make_item
