"""
Tests for the organization relatedness index.
"""

import pytest

from placementwatch.database import RelationshipLedger
from placementwatch.relatedness import AUTO_DISCOVERED, MANUAL, RelatednessIndex


@pytest.fixture
def index():
    return RelatednessIndex(seed={"EssilorLuxottica": ["LensCrafters", "Pearle Vision"]})


class TestRelatedness:
    """Test alias groups and symmetry."""

    def test_parent_and_alias_related(self, index):
        """Parent and alias are related in both directions."""
        assert index.are_related("EssilorLuxottica", "LensCrafters").match
        assert index.are_related("LensCrafters", "EssilorLuxottica").match

    def test_siblings_related(self, index):
        """Two aliases of one parent are related through it."""
        result = index.are_related("Pearle Vision", "LensCrafters")
        assert result.match
        assert result.via == "essilorluxottica"
        assert "EssilorLuxottica" in result.reason

    def test_same_name_after_normalization(self, index):
        """Legal suffixes do not make two names different."""
        assert index.are_related("Cutarelli Vision LLC", "The Cutarelli Vision").match

    def test_unrelated(self, index):
        """Unknown pairs are not related."""
        result = index.are_related("LensCrafters", "Cutarelli Vision")
        assert not result.match
        assert result.reason == "no known relationship"

    def test_generic_name_never_related(self, index):
        """Names without distinguishing words never match, even to themselves."""
        assert not index.are_related("Vision Center", "Vision Center").match

    def test_aliases_for(self, index):
        """The queried name comes first, then its group."""
        assert index.aliases_for("LensCrafters") == ["lenscrafters", "essilorluxottica", "pearle vision"]
        assert index.aliases_for("Vision Associates") == []


class TestEdges:
    """Test adding edges at runtime."""

    def test_add_edge(self, index):
        """A new edge relates the names and is reported once."""
        assert index.add_edge("AEG Vision", "Cutarelli Vision", AUTO_DISCOVERED)
        assert not index.add_edge("AEG Vision", "Cutarelli Vision", AUTO_DISCOVERED)
        assert index.are_related("Cutarelli Vision", "AEG Vision").match

    def test_generic_alias_refused(self, index):
        """Generic names are refused and recorded."""
        assert not index.add_edge("AEG Vision", "Total Vision")
        assert "Total Vision" in index.refused
        assert not index.are_related("Total Vision", "AEG Vision").match

    def test_unknown_origin(self, index):
        """Only manual and auto-discovered origins exist."""
        with pytest.raises(ValueError):
            index.add_edge("AEG Vision", "Cutarelli Vision", "guessed")

    def test_all_edges_grouped_by_origin(self, index):
        """Manual seed and discovered edges are listed separately."""
        index.add_edge("AEG Vision", "Cutarelli Vision", AUTO_DISCOVERED)
        edges = index.all_edges()
        assert edges[MANUAL]["essilorluxottica"] == ["lenscrafters", "pearle vision"]
        assert edges[AUTO_DISCOVERED] == {"aeg vision": ["cutarelli vision"]}
        assert index.edge_count() == 3

    def test_builtin_table_seeds_index(self):
        """Without a seed argument the built-in chain table is loaded."""
        assert RelatednessIndex().are_related("LensCrafters", "EssilorLuxottica").match


class TestLedgerPersistence:
    """Test that runtime edges survive a restart."""

    def test_edges_reloaded(self, tmp_path):
        """Edges added on one index are known to the next."""
        db_path = tmp_path / "relationships.db"
        first = RelatednessIndex(seed={}, ledger=RelationshipLedger(db_path))
        first.add_edge("AEG Vision", "Cutarelli Vision", AUTO_DISCOVERED)

        second = RelatednessIndex(seed={}, ledger=RelationshipLedger(db_path))
        assert second.are_related("Cutarelli Vision", "AEG Vision").match
        assert second.all_edges()[AUTO_DISCOVERED] == {"aeg vision": ["cutarelli vision"]}

    def test_seed_not_persisted(self, tmp_path):
        """Built-in seed edges stay in memory only."""
        ledger = RelationshipLedger(tmp_path / "relationships.db")
        RelatednessIndex(seed={"EssilorLuxottica": ["LensCrafters"]}, ledger=ledger)
        assert ledger.count() == 0

    def test_refused_edge_not_persisted(self, tmp_path):
        """Refused edges never reach the ledger."""
        ledger = RelationshipLedger(tmp_path / "relationships.db")
        index = RelatednessIndex(seed={}, ledger=ledger)
        index.add_edge("AEG Vision", "Eye Care Associates")
        assert ledger.count() == 0
