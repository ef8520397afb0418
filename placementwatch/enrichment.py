"""
Client enrichment: learn the practice and brand names a client operates under.

Three harvests feed auto-discovered edges into the relatedness index:
the client's own website, parent/owner phrases in search snippets, and the
registry organizations that share the client's authorized official.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional
from urllib.parse import urljoin

from .google_results import SearchHit, SerperClient, filter_evidence_hits
from .logger import get_logger
from .normalize import contains_phrase, domain_in, has_identity, normalize_free_text, normalize_organization_name
from .relatedness import AUTO_DISCOVERED, RelatednessIndex, RelatednessResult
from .search import quoted
from .sources.common import fetch_page_text
from .sources.extract import extract_parent_companies, extract_practice_names
from .sources.registry import RegistryClient
from .vocab import DIRECTORY_DOMAINS, RELATIONSHIP_INDICATORS

logger = get_logger()

LOCATION_PATHS = ["/locations", "/our-locations"]


@dataclass
class EnrichmentReport:
    client_name: str
    website: Optional[str] = None
    aliases: List[str] = field(default_factory=list)
    parents: List[str] = field(default_factory=list)
    registry_orgs: List[str] = field(default_factory=list)

    @property
    def edges_added(self) -> int:
        return len(self.aliases) + len(self.parents) + len(self.registry_orgs)


class CompanyResearcher:
    def __init__(
        self,
        index: RelatednessIndex,
        search: Optional[SerperClient] = None,
        registry: Optional[RegistryClient] = None,
        page_fetcher: Optional[Callable[[str], str]] = fetch_page_text,
    ):
        self.index = index
        self.search = search
        self.registry = registry
        self.page_fetcher = page_fetcher

    @property
    def can_search(self) -> bool:
        return self.search is not None and self.search.available

    def find_website(self, client_name: str) -> Optional[str]:
        """The client's own site: knowledge-graph website, else first non-directory hit."""
        hits = filter_evidence_hits(self.search.hits(quoted(client_name), num=5))
        graph = next((h for h in hits if h.kind == "knowledge_graph" and h.link), None)
        if graph:
            return graph.link
        for hit in hits:
            if hit.kind == "organic" and hit.link and not domain_in(hit.link, DIRECTORY_DOMAINS):
                return hit.link
        return None

    def _website_names(self, website: str, client_name: str) -> List[str]:
        if self.page_fetcher is None:
            return []
        root = urljoin(website, "/")
        names: List[str] = []
        for url in [root] + [urljoin(root, p) for p in LOCATION_PATHS]:
            names.extend(extract_practice_names(self.page_fetcher(url)))
        own = normalize_organization_name(client_name)
        return [n for n in names if normalize_organization_name(n) != own]

    def _snippet_parents(self, client_name: str) -> List[str]:
        hits: List[SearchHit] = self.search.hits(f"{quoted(client_name)} parent company OR owned by", num=10)
        own = normalize_organization_name(client_name)
        parents = []
        for hit in hits:
            for name in extract_parent_companies(f"{hit.title} {hit.snippet}"):
                if normalize_organization_name(name) != own and name not in parents:
                    parents.append(name)
        return parents

    def _registry_orgs(self, client_name: str) -> List[str]:
        org = self.registry.search_organization(client_name)
        if org is None or not org.authorized_official:
            return []
        siblings = self.registry.organizations_by_official(org.authorized_official)
        logger.debug("Registry organizations by official", client=client_name, count=len(siblings))
        return [o.name for o in siblings if o.name]

    def enrich(self, client_name: str) -> EnrichmentReport:
        """Harvest aliases for one client and register them as auto-discovered edges."""
        report = EnrichmentReport(client_name=client_name)
        if not has_identity(client_name):
            logger.info("Skipping enrichment for generic client name", client=client_name)
            return report

        if self.can_search:
            report.website = self.find_website(client_name)
            if report.website:
                for name in self._website_names(report.website, client_name):
                    if self.index.add_edge(client_name, name, AUTO_DISCOVERED):
                        report.aliases.append(name)
            for parent in self._snippet_parents(client_name):
                if self.index.add_edge(parent, client_name, AUTO_DISCOVERED):
                    report.parents.append(parent)

        if self.registry is not None:
            for name in self._registry_orgs(client_name):
                if self.index.add_edge(client_name, name, AUTO_DISCOVERED):
                    report.registry_orgs.append(name)

        logger.info(
            "Client enriched",
            client=client_name,
            website=report.website,
            aliases=len(report.aliases),
            parents=len(report.parents),
            registry_orgs=len(report.registry_orgs),
        )
        return report

    def confirm_relationship(self, organization: str, client_name: str) -> RelatednessResult:
        """
        Search both names together; a result naming both alongside relationship
        vocabulary ("part of", "acquired", ...) registers an edge.
        """
        related = self.index.are_related(organization, client_name)
        if related.match:
            return related
        if not self.can_search:
            return RelatednessResult(False, "search unavailable")
        if not has_identity(organization) or not has_identity(client_name):
            return RelatednessResult(False, "generic organization name")

        org_text = normalize_free_text(normalize_organization_name(organization))
        client_text = normalize_free_text(normalize_organization_name(client_name))
        for hit in self.search.hits(f"{quoted(organization)} {quoted(client_name)}", num=10):
            if not hit.link or domain_in(hit.link, DIRECTORY_DOMAINS):
                continue
            text = normalize_free_text(f"{hit.title} {hit.snippet}")
            if not (contains_phrase(text, org_text) and contains_phrase(text, client_text)):
                continue
            indicator = next((i for i in RELATIONSHIP_INDICATORS if contains_phrase(text, normalize_free_text(i))), None)
            if indicator:
                self.index.add_edge(client_name, organization, AUTO_DISCOVERED)
                logger.info("Relationship confirmed by search", organization=organization, client=client_name, url=hit.link)
                return RelatednessResult(True, f'"{organization}" and "{client_name}" appear together ("{indicator}")', via=hit.link)
        return RelatednessResult(False, "no relationship found via search")
