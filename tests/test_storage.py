"""
Tests for the JSON record store.
"""

import json

import pytest

from placementwatch.models import Alert, Confidence, Source
from placementwatch.storage import RecordStore, diff_dict, empty_store, load_store, save_store


def make_alert(source=Source.WEB, client="Abba Eye Care"):
    return Alert(
        candidate_id="c1",
        candidate_name="Jane Smith, OD",
        client_name=client,
        source=source,
        confidence=Confidence.HIGH,
        match_reason="Google: direct match",
        evidence={"source_url": "https://abbaeyecare.com/team"},
    )


class TestLoadSave:
    """Test reading and writing the store document."""

    def test_missing_file_is_empty(self, tmp_path):
        """A store that does not exist yet loads empty."""
        assert load_store(tmp_path / "missing.json") == empty_store()

    def test_corrupt_file_is_empty(self, tmp_path):
        """Unreadable JSON is reported and replaced by an empty store."""
        path = tmp_path / "tracker-data.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_store(path) == empty_store()

    def test_missing_sections_filled(self, tmp_path):
        """Older files without alerts get the section added."""
        path = tmp_path / "tracker-data.json"
        path.write_text(json.dumps({"candidates": [{"id": "c1", "full_name": "Jane Smith"}]}), encoding="utf-8")
        data = load_store(path)
        assert data["alerts"] == []
        assert data["candidates"][0]["id"] == "c1"

    def test_save_roundtrip(self, tmp_path):
        """Saved documents load back unchanged and leave no temp file."""
        path = tmp_path / "nested" / "tracker-data.json"
        store = empty_store()
        store["alerts"].append({"id": "a1", "client_name": "Café Vision"})

        save_store(path, store)

        assert load_store(path) == store
        assert not (tmp_path / "nested" / "tracker-data.json.tmp").exists()


class TestDiffDict:
    """Test change reporting."""

    def test_changes_only(self):
        """Unchanged keys are omitted; added and removed keys are reported."""
        changed = diff_dict({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4})
        assert changed == {"b": {"old": 2, "new": 3}, "c": {"old": None, "new": 4}}


class TestRecords:
    """Test candidate and submission access."""

    def test_list_candidates(self, store_path):
        """Identifiers are strings whatever their stored type."""
        candidates = RecordStore(store_path).list_candidates()
        assert [c.id for c in candidates] == ["c1", "2"]
        assert candidates[1].profile_urls == {"linkedin_url": "https://www.linkedin.com/in/kenneth-minarik-3b2a91c"}

    def test_invalid_records_skipped(self, store_path, store_data):
        """Records failing validation are skipped, not fatal."""
        store_data["candidates"].append({"id": "c3", "full_name": "Bad Npi", "npi_number": "123"})
        store_data["submissions"].append({"candidate_id": "c1", "client_name": ""})
        store_path.write_text(json.dumps(store_data), encoding="utf-8")
        store = RecordStore(store_path)

        assert [c.id for c in store.list_candidates()] == ["c1", "2"]
        assert [s.client_name for s in store.list_submissions_for("c1")] == ["Abba Eye Care"]

    def test_submissions_for_integer_id(self, store_path):
        """Integer and string identifiers compare equal."""
        submissions = RecordStore(store_path).list_submissions_for("2")
        assert [s.id for s in submissions] == ["s2"]

    def test_update_candidate(self, store_path):
        """Changed fields are returned and saved."""
        store = RecordStore(store_path)
        changed = store.update_candidate("c1", {"npi_number": "1234567893"})

        assert changed == {"npi_number": {"old": None, "new": "1234567893"}}
        assert RecordStore(store_path).get_candidate("c1")["npi_number"] == "1234567893"

    def test_update_unchanged(self, store_path):
        """No change, nothing reported."""
        assert RecordStore(store_path).update_candidate("c1", {"full_name": "Jane Smith, OD"}) == {}

    def test_update_unknown_candidate(self, store_path):
        """Unknown ids raise KeyError."""
        with pytest.raises(KeyError):
            RecordStore(store_path).update_candidate("nope", {"npi_number": "1234567893"})


class TestAlerts:
    """Test alert persistence and review."""

    def test_append_alert(self, store_path):
        """New alerts get an id, a timestamp, pending status and their evidence."""
        store = RecordStore(store_path)
        assert store.append_alert(make_alert())

        saved = json.loads(store_path.read_text())["alerts"][0]
        assert saved["id"]
        assert saved["created_at"]
        assert saved["status"] == "pending"
        assert saved["source"] == "Google"
        assert saved["source_url"] == "https://abbaeyecare.com/team"

    def test_one_alert_per_source(self, store_path):
        """A second alert for the same pair and source is refused; other sources are not."""
        store = RecordStore(store_path)
        assert store.append_alert(make_alert())
        assert not store.append_alert(make_alert())
        assert store.append_alert(make_alert(source=Source.REGISTRY))
        assert len(store.data["alerts"]) == 2

    def test_failed_save_rolled_back(self, store_path, monkeypatch):
        """An alert that cannot be saved is removed again."""
        store = RecordStore(store_path)
        monkeypatch.setattr(store, "save", lambda: False)

        assert not store.append_alert(make_alert())
        assert store.data["alerts"] == []

    def test_save_error_reported(self, tmp_path, monkeypatch):
        """OS errors while saving become False."""
        def refuse(path, data):
            raise PermissionError("read-only")

        monkeypatch.setattr("placementwatch.storage.save_store", refuse)
        assert RecordStore(tmp_path / "tracker-data.json").save() is False

    def test_review_transitions(self, store_path):
        """Valid moves are saved with a review time; invalid ones raise."""
        store = RecordStore(store_path)
        store.append_alert(make_alert())
        alert_id = store.data["alerts"][0]["id"]

        alert = store.update_alert_status(alert_id, "dismissed")
        assert alert["status"] == "dismissed"
        assert alert["reviewed_at"]
        with pytest.raises(ValueError):
            store.update_alert_status(alert_id, "confirmed")
        assert store.update_alert_status(alert_id, "pending")["status"] == "pending"

    def test_review_unknown_alert(self, store_path):
        """Unknown alert ids raise KeyError."""
        with pytest.raises(KeyError):
            RecordStore(store_path).update_alert_status("missing", "confirmed")

    def test_alerts_by_source(self, store_path):
        """Alerts are grouped under their source."""
        store = RecordStore(store_path)
        store.append_alert(make_alert())
        store.append_alert(make_alert(source=Source.REGISTRY))
        store.append_alert(make_alert(client="Cutarelli Vision"))

        grouped = store.alerts_by_source()
        assert sorted(grouped) == ["Google", "NPI"]
        assert len(grouped["Google"]) == 2

    def test_active_alert_for_pair(self, store_path):
        """Dismissed and excluded-source alerts do not count."""
        store = RecordStore(store_path)
        store.append_alert(make_alert())

        assert store.has_active_alert_for_pair("c1", "Abba Eye Care")
        assert not store.has_active_alert_for_pair("c1", "Abba Eye Care", exclude_source="Google")
        assert not store.has_active_alert_for_pair("c1", "Cutarelli Vision")

        store.update_alert_status(store.data["alerts"][0]["id"], "dismissed")
        assert not store.has_active_alert_for_pair("c1", "Abba Eye Care")
