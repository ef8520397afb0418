"""
Pytest configuration and shared fixtures.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

import pytest

# Module-level loggers are created at import time; keep their files out of the repo.
os.environ.setdefault("PLACEMENTWATCH_LOG_DIR", tempfile.mkdtemp(prefix="placementwatch-logs-"))

from placementwatch.google_results import SearchHit  # noqa: E402
from placementwatch.relatedness import RelatednessIndex  # noqa: E402
from placementwatch.retry import BreakerRegistry  # noqa: E402


class FakeSearchClient:
    """
    Stand-in for SerperClient. Maps a query substring to canned hits and
    records every query it was asked.
    """

    service = "serper"

    def __init__(self, responses: Dict[str, List[SearchHit]] = None, configured: bool = True):
        self.responses = responses or {}
        self._configured = configured
        self.breaker = BreakerRegistry().get(self.service)
        self.queries: List[str] = []

    @property
    def configured(self) -> bool:
        return self._configured

    @property
    def available(self) -> bool:
        return self._configured and not self.breaker.is_open

    def hits(self, query: str, num: int = 10) -> List[SearchHit]:
        self.queries.append(query)
        if not self.available:
            return []
        for needle, hits in self.responses.items():
            if needle in query:
                return list(hits)
        return []


class FakeResponse:
    """Minimal requests.Response double for fetch()-level tests."""

    def __init__(self, status_code: int = 200, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or (json.dumps(payload) if payload is not None else "")
        self.headers = {"Content-Type": "application/json"}

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture
def fake_search():
    return FakeSearchClient


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def empty_index() -> RelatednessIndex:
    """Relatedness index without the built-in chain table."""
    return RelatednessIndex(seed={})


@pytest.fixture
def linkedin_hit() -> SearchHit:
    return SearchHit(
        title="Kenneth Minarik - Optometrist - Cutarelli Vision | LinkedIn",
        snippet="Optometrist at Cutarelli Vision. Rockford, Illinois. Experience: Cutarelli Vision · Rockford Eye Center",
        link="https://www.linkedin.com/in/kenneth-minarik-3b2a91c",
    )


@pytest.fixture
def serper_payload() -> Dict[str, Any]:
    """Serper search response with organic results, local pack and knowledge graph."""
    return {
        "organic": [
            {
                "title": "Dr. Jane Smith, OD - Abba Eye Care",
                "snippet": "Dr. Jane Smith is an optometrist at Abba Eye Care in Rockford, IL.",
                "link": "https://www.abbaeyecare.com/doctors/jane-smith",
                "position": 1,
            },
            {
                "title": "Jane Smith - Google Search",
                "snippet": "",
                "link": "https://www.google.com/search?q=jane+smith",
                "position": 2,
            },
        ],
        "places": [
            {
                "title": "Abba Eye Care",
                "category": "Optometrist",
                "address": "123 Main St, Rockford, IL 61101",
                "website": "https://www.abbaeyecare.com/",
            }
        ],
        "knowledgeGraph": {
            "title": "Abba Eye Care",
            "type": "Eye care center",
            "website": "https://www.abbaeyecare.com/",
            "attributes": {"Address": "123 Main St, Rockford, IL 61101"},
        },
    }


@pytest.fixture
def nppes_payload() -> Dict[str, Any]:
    """NPPES registry response for one individual provider."""
    return {
        "result_count": 1,
        "results": [
            {
                "number": 1234567893,
                "basic": {
                    "first_name": "JANE",
                    "last_name": "SMITH",
                    "credential": "OD",
                    "last_updated": "2024-03-01",
                },
                "addresses": [
                    {
                        "address_purpose": "MAILING",
                        "address_1": "PO BOX 9",
                        "city": "ROCKFORD",
                        "state": "IL",
                        "postal_code": "611010000",
                    },
                    {
                        "address_purpose": "LOCATION",
                        "organization_name": "ABBA EYE CARE",
                        "address_1": "123 MAIN ST",
                        "city": "ROCKFORD",
                        "state": "IL",
                        "postal_code": "611010000",
                    },
                ],
                "taxonomies": [
                    {"desc": "Optometrist", "primary": True},
                ],
            }
        ],
    }


@pytest.fixture
def netrows_payload() -> Dict[str, Any]:
    """Profile-history response with a wrapped experience list."""
    return {
        "data": {
            "full_name": "Kenneth Minarik",
            "headline": "Optometrist at Cutarelli Vision",
            "location": "Rockford, Illinois",
            "experiences": [
                {
                    "company": {"name": "Cutarelli Vision"},
                    "title": "Optometrist",
                    "start_date": {"year": 2021, "month": 6},
                    "end_date": None,
                },
                {
                    "company_name": "Walmart Vision Center",
                    "title": "Associate Optometrist",
                    "start_date": "2017-01",
                    "end_date": "2021-05",
                },
            ],
        }
    }


@pytest.fixture
def store_data() -> Dict[str, Any]:
    """Record store with two candidates and their submissions."""
    return {
        "candidates": [
            {"id": "c1", "full_name": "Jane Smith, OD", "npi_number": None},
            {
                "id": 2,
                "full_name": "Kenneth Minarik",
                "npi_number": "1234567893",
                "linkedin_url": "https://www.linkedin.com/in/kenneth-minarik-3b2a91c",
            },
        ],
        "submissions": [
            {
                "id": "s1",
                "candidate_id": "c1",
                "client_name": "Abba Eye Care",
                "job_title": "Associate Optometrist - Rockford, IL",
                "pipeline_stage": "Submitted",
            },
            {
                "id": "s2",
                "candidate_id": 2,
                "client_name": "Cutarelli Vision",
                "job_title": "Optometrist",
                "pipeline_stage": "Hired",
            },
        ],
        "alerts": [],
        "syncHistory": [],
    }


@pytest.fixture
def store_path(tmp_path, store_data) -> Path:
    path = tmp_path / "tracker-data.json"
    path.write_text(json.dumps(store_data, indent=2), encoding="utf-8")
    return path
