"""
Tests for profile-history payload parsing and the Netrows client.
"""

import pytest

from placementwatch.retry import BreakerRegistry
from placementwatch.sources import profile_history
from placementwatch.sources.profile_history import (
    ProfileHistoryClient,
    extract_username,
    parse_profile_payload,
)


class TestPayloadStrategies:
    """Each payload shape is handled by its own strategy."""

    def test_wrapped_experience_list(self, netrows_payload):
        """The common shape: a list under "experiences", wrapped in "data"."""
        history = parse_profile_payload(netrows_payload)

        assert history.strategy == "experience_list"
        assert history.full_name == "Kenneth Minarik"
        assert [r.organization for r in history.records] == ["Cutarelli Vision", "Walmart Vision Center"]

        current, past = history.records
        assert current.current is True
        assert current.start == "2021-06"
        assert current.end is None
        assert past.current is False
        assert past.end == "2021-05"
        assert history.current is current

    def test_nested_experience(self):
        """History one level down, with an explicit current flag."""
        payload = {"profile": {
            "full_name": "Jane Smith",
            "positions": {"values": [{"companyName": "Abba Eye Care", "title": "OD", "is_current": True}]},
        }}
        history = parse_profile_payload(payload)

        assert history.strategy == "nested_experience"
        assert history.records[0].organization == "Abba Eye Care"
        assert history.records[0].current is True

    def test_current_position_fields(self):
        """Only a current company on the profile."""
        payload = {"full_name": "Jane Smith", "current_company": "Abba Eye Care", "job_title": "Optometrist"}
        history = parse_profile_payload(payload)

        assert history.strategy == "current_position_fields"
        assert history.records[0].title == "Optometrist"

    def test_headline_employer(self):
        """The headline is the last resort."""
        payload = {"full_name": "Jane Smith", "headline": "Optometrist at Abba Eye Care | Rockford"}
        history = parse_profile_payload(payload)

        assert history.strategy == "headline_employer"
        assert history.records[0].organization == "Abba Eye Care"

    def test_present_end_date(self):
        """"Present" as an end date means a current position."""
        payload = {"experiences": [{"company": "Abba Eye Care", "end_date": "Present"}]}
        record = parse_profile_payload(payload).records[0]
        assert record.end is None
        assert record.current is True

    def test_split_name_fields(self):
        """First and last name fields are joined."""
        payload = {"first_name": "Jane", "last_name": "Smith", "experience": []}
        history = parse_profile_payload(payload)
        assert history.full_name == "Jane Smith"
        assert history.records == []
        assert history.strategy is None

    def test_entries_without_company_skipped(self):
        """Entries with no organization are ignored."""
        payload = {"experiences": [{"title": "Volunteer"}, {"company": "Abba Eye Care"}]}
        assert [r.organization for r in parse_profile_payload(payload).records] == ["Abba Eye Care"]


class TestUsername:
    """Test profile URL to username."""

    def test_extract_username(self):
        """Query strings and trailing slashes are ignored."""
        assert extract_username("https://www.linkedin.com/in/kenneth-minarik-3b2a91c/?trk=abc") == "kenneth-minarik-3b2a91c"
        assert extract_username("https://www.linkedin.com/company/abba") is None
        assert extract_username(None) is None


class TestProfileHistoryClient:
    """Test the Netrows client against a patched transport."""

    @pytest.fixture
    def transport(self, monkeypatch, fake_response, netrows_payload):
        state = {"calls": [], "response": fake_response(200, netrows_payload)}

        def fake_fetch(method, url, service, timeout, **kwargs):
            state["calls"].append({"method": method, "url": url, "service": service, **kwargs})
            return state["response"]

        monkeypatch.setattr(profile_history, "fetch", fake_fetch)
        return state

    def test_not_configured(self, transport):
        """Without a key nothing is sent."""
        client = ProfileHistoryClient(api_key="", delay=0)
        assert not client.available
        assert client.fetch_history("https://www.linkedin.com/in/jane-smith") is None
        assert transport["calls"] == []

    def test_fetch_history(self, transport):
        """The username and bearer key are sent; the payload is parsed."""
        client = ProfileHistoryClient(api_key="secret", delay=0)
        history = client.fetch_history("https://www.linkedin.com/in/kenneth-minarik-3b2a91c")

        call = transport["calls"][0]
        assert len(history.records) == 2
        assert call["params"] == {"username": "kenneth-minarik-3b2a91c"}
        assert call["headers"]["Authorization"] == "Bearer secret"
        assert call["service"] == "netrows"

    def test_quota_trips_breaker(self, transport, fake_response):
        """A quota response latches the breaker; later calls are not sent."""
        transport["response"] = fake_response(402, {"message": "Payment required"})
        breakers = BreakerRegistry()
        client = ProfileHistoryClient(api_key="secret", breakers=breakers, delay=0)

        assert client.fetch_history("https://www.linkedin.com/in/jane-smith") is None
        assert breakers.get("netrows").is_open
        assert not client.available

        assert client.fetch_history("https://www.linkedin.com/in/jane-smith") is None
        assert len(transport["calls"]) == 1

    def test_server_error_does_not_trip(self, transport, fake_response):
        """Other failures return None but leave the breaker closed."""
        transport["response"] = fake_response(500, {"message": "Internal error"})
        client = ProfileHistoryClient(api_key="secret", delay=0)

        assert client.fetch_history("https://www.linkedin.com/in/jane-smith") is None
        assert client.available

    def test_non_profile_url(self, transport):
        """URLs without a username are not looked up."""
        client = ProfileHistoryClient(api_key="secret", delay=0)
        assert client.fetch_history("https://www.linkedin.com/company/abba") is None
        assert transport["calls"] == []
