"""
Tests for client enrichment and search-backed relationship confirmation.
"""

import pytest

from placementwatch.enrichment import CompanyResearcher
from placementwatch.google_results import SearchHit
from placementwatch.sources.registry import OrganizationRecord

WEBSITE = "https://www.cutarellivision.com/"

KNOWLEDGE_GRAPH = SearchHit(
    title="Cutarelli Vision",
    snippet="Optometry practice",
    link=WEBSITE,
    kind="knowledge_graph",
)

PARENT_HIT = SearchHit(
    title="Cutarelli Vision joins AEG Vision",
    snippet="Cutarelli Vision is now part of AEG Vision, a partnership of eye care practices.",
    link="https://aegvision.com/news/cutarelli",
)


class FakeOrgRegistry:
    def __init__(self, official="Frank Cutarelli", siblings=None):
        self.official = official
        self.siblings = siblings or []

    def search_organization(self, name):
        return OrganizationRecord(npi="1111111111", name=name.upper(), authorized_official=self.official)

    def organizations_by_official(self, official):
        return list(self.siblings)


@pytest.fixture
def pages():
    return {WEBSITE: "Welcome to Cutarelli Vision. Visit Rockford Family Eye Care or Belvidere Eye Center today."}


@pytest.fixture
def researcher(fake_search, empty_index, pages):
    # More specific needles first: every enrichment query quotes the client.
    search = fake_search({
        "parent company": [PARENT_HIT],
        '"Cutarelli Vision"': [KNOWLEDGE_GRAPH],
    })
    return CompanyResearcher(empty_index, search=search, page_fetcher=lambda url: pages.get(url, ""))


class TestFindWebsite:
    """Test locating a client's own site."""

    def test_knowledge_graph_preferred(self, researcher):
        """The knowledge-graph website wins."""
        assert researcher.find_website("Cutarelli Vision") == WEBSITE

    def test_directory_results_skipped(self, fake_search, empty_index):
        """Directory listings are not the client's website."""
        search = fake_search({"Abba": [
            SearchHit("Abba Eye Care - Healthgrades", "", "https://www.healthgrades.com/group-directory/abba"),
            SearchHit("Abba Eye Care", "Rockford optometrist", "https://abbaeyecare.com/"),
        ]})
        researcher = CompanyResearcher(empty_index, search=search, page_fetcher=None)
        assert researcher.find_website("Abba Eye Care") == "https://abbaeyecare.com/"

    def test_no_site(self, fake_search, empty_index):
        """No usable result, no website."""
        researcher = CompanyResearcher(empty_index, search=fake_search(), page_fetcher=None)
        assert researcher.find_website("Abba Eye Care") is None


class TestEnrich:
    """Test alias harvesting into the relatedness index."""

    def test_website_and_parent_harvest(self, researcher, empty_index):
        """Practice names on the site become aliases; the snippet parent becomes a parent."""
        report = researcher.enrich("Cutarelli Vision")

        assert report.website == WEBSITE
        assert report.aliases == ["Rockford Family Eye Care", "Belvidere Eye Center"]
        assert report.parents == ["AEG Vision"]
        assert report.edges_added == 3

        assert empty_index.are_related("Rockford Family Eye Care", "Cutarelli Vision").match
        assert empty_index.are_related("AEG Vision", "Cutarelli Vision").match
        assert "auto_discovered" in empty_index.all_edges()
        assert empty_index.all_edges()["manual"] == {}

    def test_groups_not_chained(self, researcher, empty_index):
        """A parent's group and an alias group are not merged."""
        researcher.enrich("Cutarelli Vision")
        assert not empty_index.are_related("Rockford Family Eye Care", "AEG Vision").match

    def test_second_run_adds_nothing(self, researcher):
        """Known edges are not reported again."""
        researcher.enrich("Cutarelli Vision")
        assert researcher.enrich("Cutarelli Vision").edges_added == 0

    def test_registry_organizations(self, fake_search, empty_index):
        """Organizations sharing the client's official are added; the client itself is not."""
        registry = FakeOrgRegistry(siblings=[
            OrganizationRecord("1111111111", "CUTARELLI VISION"),
            OrganizationRecord("2222222222", "ROCKTON OPTICAL GROUP"),
        ])
        researcher = CompanyResearcher(empty_index, search=fake_search(configured=False), registry=registry)

        report = researcher.enrich("Cutarelli Vision")

        assert report.registry_orgs == ["ROCKTON OPTICAL GROUP"]
        assert report.website is None
        assert empty_index.are_related("Rockton Optical Group", "Cutarelli Vision").match

    def test_registry_without_official(self, fake_search, empty_index):
        """No authorized official, no registry edges."""
        researcher = CompanyResearcher(
            empty_index, search=fake_search(configured=False), registry=FakeOrgRegistry(official=None),
        )
        assert researcher.enrich("Cutarelli Vision").registry_orgs == []

    def test_generic_client_skipped(self, fake_search, empty_index):
        """Generic client names are never enriched."""
        search = fake_search()
        report = CompanyResearcher(empty_index, search=search).enrich("Vision Center")

        assert report.edges_added == 0
        assert search.queries == []


class TestConfirmRelationship:
    """Test relationship confirmation by search."""

    ACQUIRED = SearchHit(
        title="AEG Vision acquires Cutarelli Vision",
        snippet="Cutarelli Vision was acquired by AEG Vision in 2022.",
        link="https://aegvision.com/news/cutarelli",
    )

    def test_known_relationship_needs_no_search(self, fake_search, empty_index):
        """An existing edge answers without querying."""
        empty_index.add_edge("AEG Vision", "Cutarelli Vision")
        search = fake_search()
        result = CompanyResearcher(empty_index, search=search).confirm_relationship("Cutarelli Vision", "AEG Vision")

        assert result.match
        assert search.queries == []

    def test_confirmed_by_search(self, fake_search, empty_index):
        """Both names plus relationship vocabulary register an edge."""
        search = fake_search({"Cutarelli": [self.ACQUIRED]})
        result = CompanyResearcher(empty_index, search=search).confirm_relationship("Cutarelli Vision", "AEG Vision")

        assert result.match
        assert result.via == self.ACQUIRED.link
        assert '"acquired"' in result.reason
        assert empty_index.are_related("Cutarelli Vision", "AEG Vision").match
        assert search.queries == ['"Cutarelli Vision" "AEG Vision"']

    def test_directory_hits_ignored(self, fake_search, empty_index):
        """Directory pages list many practices and prove nothing."""
        hit = SearchHit(self.ACQUIRED.title, self.ACQUIRED.snippet, "https://www.yelp.com/biz/aeg-vision")
        result = CompanyResearcher(empty_index, search=fake_search({"Cutarelli": [hit]})).confirm_relationship(
            "Cutarelli Vision", "AEG Vision",
        )
        assert not result.match
        assert result.reason == "no relationship found via search"

    def test_no_indicator(self, fake_search, empty_index):
        """Appearing together is not enough without relationship words."""
        hit = SearchHit("Cutarelli Vision and AEG Vision", "Both offer eye exams in Rockford.", "https://news.example.com/a")
        result = CompanyResearcher(empty_index, search=fake_search({"Cutarelli": [hit]})).confirm_relationship(
            "Cutarelli Vision", "AEG Vision",
        )
        assert not result.match

    def test_search_unavailable(self, fake_search, empty_index):
        """Without search the answer is a plain no."""
        result = CompanyResearcher(empty_index, search=fake_search(configured=False)).confirm_relationship(
            "Cutarelli Vision", "AEG Vision",
        )
        assert not result.match
        assert result.reason == "search unavailable"
