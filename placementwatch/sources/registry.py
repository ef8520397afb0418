"""
Professional registry evidence (NPPES NPI registry + CMS Medicare data).

The registry exposes one practice address per provider; the Medicare
dataset lists every location a provider bills from. When search is
configured, third-party registry mirrors and searches on each practice's
company name and street address add further organization names.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..google_results import SerperClient
from ..location import extract_location
from ..logger import get_logger
from ..models import EvidenceKind, Location, LookupStatus, OrganizationMention, Source, SourceResult
from ..normalize import normalize_organization_name, parse_person_name, person_tokens
from ..retry import RateLimiter
from ..schema import is_valid_npi
from ..search import quoted
from ..vocab import REGISTRY_AGGREGATOR_SITES
from .common import fetch, parse_json
from .extract import extract_organizations, extract_parent_companies, extract_practice_names

logger = get_logger()

NPPES_ENDPOINT = "https://npiregistry.cms.hhs.gov/api/"
NPPES_VERSION = "2.1"
CMS_ENDPOINT = "https://data.cms.gov/provider-data/api/1/datastore/query/mj5m-pzi6/0"

NAME_MATCH_THRESHOLD = 0.5


@dataclass
class PracticeAddress:
    line1: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""

    def key(self) -> str:
        return f"{self.line1}-{self.city}-{self.state}".lower()

    def location(self) -> Optional[Location]:
        loc = Location(city=self.city or None, state=(self.state or "").upper() or None)
        return loc or None

    def __str__(self) -> str:
        tail = " ".join(p for p in (self.state, self.zip) if p)
        return ", ".join(p for p in (self.line1, self.city, tail) if p)


@dataclass
class ProviderRecord:
    npi: str
    first_name: str = ""
    last_name: str = ""
    credential: str = ""
    organization_name: str = ""
    practice_address: PracticeAddress = field(default_factory=PracticeAddress)
    taxonomy: str = ""
    last_updated: str = ""
    match_score: float = 0.0

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def registry_url(self) -> str:
        return f"https://npiregistry.cms.hhs.gov/provider-view/{self.npi}"

    @property
    def cms_url(self) -> str:
        return f"https://data.cms.gov/tools/medicare-physician-other-practitioner-look-up-tool/provider/{self.npi}"


@dataclass
class OrganizationRecord:
    npi: str
    name: str
    authorized_official: Optional[str] = None
    address: Optional[PracticeAddress] = None


@dataclass
class PracticeLocation:
    organization_name: str
    address: PracticeAddress
    source: str
    url: Optional[str] = None
    related_to: Optional[str] = None
    kind: EvidenceKind = EvidenceKind.STRUCTURED


def name_match_score(name_a: str, name_b: str) -> float:
    """Share of words that agree (equal or prefix), 1.0 for identical names."""
    a = person_tokens(name_a)
    b = person_tokens(name_b)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    matches = sum(1 for w1 in a if any(w1 == w2 or w1.startswith(w2) or w2.startswith(w1) for w2 in b))
    return matches / max(len(a), len(b))


def _address(raw: Dict[str, Any]) -> PracticeAddress:
    return PracticeAddress(
        line1=raw.get("address_1") or "",
        city=raw.get("city") or "",
        state=raw.get("state") or "",
        zip=(raw.get("postal_code") or "")[:5],
    )


def parse_provider(result: Dict[str, Any]) -> ProviderRecord:
    basic = result.get("basic") or {}
    addresses = result.get("addresses") or []
    taxonomies = result.get("taxonomies") or []
    practice = next((a for a in addresses if a.get("address_purpose") == "LOCATION"), addresses[0] if addresses else {})
    primary = next((t for t in taxonomies if t.get("primary")), taxonomies[0] if taxonomies else {})
    return ProviderRecord(
        npi=str(result.get("number") or ""),
        first_name=basic.get("first_name") or "",
        last_name=basic.get("last_name") or "",
        credential=basic.get("credential") or "",
        organization_name=practice.get("organization_name") or basic.get("organization_name") or "",
        practice_address=_address(practice),
        taxonomy=primary.get("desc") or "",
        last_updated=basic.get("last_updated") or "",
    )


def _organization(result: Dict[str, Any]) -> OrganizationRecord:
    basic = result.get("basic") or {}
    first = basic.get("authorized_official_first_name")
    last = basic.get("authorized_official_last_name")
    addresses = result.get("addresses") or []
    return OrganizationRecord(
        npi=str(result.get("number") or ""),
        name=basic.get("organization_name") or "",
        authorized_official=f"{first} {last}" if first and last else None,
        address=_address(addresses[0]) if addresses else None,
    )


class RegistryClient:
    """Public NPI registry and Medicare practice-location lookups (no credentials)."""

    service = "nppes"

    def __init__(self, timeout: float = 10.0, delay: float = 0.35):
        self.timeout = timeout
        self.limiter = RateLimiter(delay)

    def _query(self, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self.limiter.wait()
        resp = fetch("GET", NPPES_ENDPOINT, self.service, self.timeout, params={**params, "version": NPPES_VERSION})
        if resp is None:
            return None
        data = parse_json(resp, self.service)
        if resp.status_code != 200 or not isinstance(data, dict):
            logger.record_lookup_failure(self.service, f"HTTP_{resp.status_code}")
            logger.warning("Registry request failed", status=resp.status_code)
            return None
        if data.get("Errors"):
            logger.warning("Registry rejected query", errors=data["Errors"])
            return None
        return data

    def search_by_name(self, full_name: str, state: Optional[str] = None, city: Optional[str] = None) -> List[ProviderRecord]:
        """Individual providers matching the name, best name match first."""
        name = parse_person_name(full_name)
        if name is None or len(name.last) < 2:
            logger.warning("Cannot search registry without a last name", name=full_name)
            return []

        params: Dict[str, Any] = {"enumeration_type": "NPI-1", "limit": 50, "last_name": f"{name.last}*"}
        if len(name.first) >= 2 and name.first != name.last:
            params["first_name"] = f"{name.first}*"
        if state:
            params["state"] = state.upper()
        if city:
            params["city"] = city

        data = self._query(params)
        if not data:
            return []
        providers = [parse_provider(r) for r in data.get("results") or []]
        for p in providers:
            p.match_score = name_match_score(name.full, p.full_name)
        providers.sort(key=lambda p: p.match_score, reverse=True)
        logger.debug("Registry name search", name=full_name, results=len(providers))
        return providers

    def lookup(self, npi: str) -> Optional[ProviderRecord]:
        if not is_valid_npi(npi):
            return None
        data = self._query({"number": npi})
        results = (data or {}).get("results") or []
        return parse_provider(results[0]) if results else None

    def practice_locations(self, npi: str) -> List[PracticeLocation]:
        """Every location the provider bills Medicare from."""
        self.limiter.wait()
        resp = fetch(
            "GET",
            CMS_ENDPOINT,
            "cms",
            self.timeout,
            params={"conditions[0][property]": "Rndrng_NPI", "conditions[0][value]": npi, "limit": 50},
            headers={"Accept": "application/json"},
        )
        if resp is None:
            return []
        data = parse_json(resp, "cms")
        if resp.status_code != 200 or not isinstance(data, dict):
            logger.warning("Medicare data request failed", npi=npi, status=resp.status_code)
            return []
        locations = []
        for row in data.get("results") or []:
            locations.append(PracticeLocation(
                organization_name=row.get("Rndrng_Prvdr_Org_Name") or row.get("Org_Name") or "",
                address=PracticeAddress(
                    line1=row.get("Rndrng_Prvdr_St1") or "",
                    city=row.get("Rndrng_Prvdr_City") or "",
                    state=row.get("Rndrng_Prvdr_State_Abrvtn") or "",
                    zip=row.get("Rndrng_Prvdr_Zip5") or "",
                ),
                source="CMS Medicare",
            ))
        return locations

    def search_organization(self, name: str) -> Optional[OrganizationRecord]:
        """First organization (NPI-2) record for a name, with its authorized official."""
        if not name or len(name) < 3:
            return None
        data = self._query({"organization_name": name, "enumeration_type": "NPI-2", "limit": 10})
        results = (data or {}).get("results") or []
        return _organization(results[0]) if results else None

    def organizations_by_official(self, official: str) -> List[OrganizationRecord]:
        """All organizations sharing an authorized official, i.e. a common owner."""
        parts = (official or "").split()
        if len(parts) < 2:
            return []
        data = self._query({
            "enumeration_type": "NPI-2",
            "authorized_official_first_name": parts[0],
            "authorized_official_last_name": parts[-1],
            "limit": 200,
        })
        return [_organization(r) for r in (data or {}).get("results") or []]


def dedupe_locations(locations: List[PracticeLocation]) -> List[PracticeLocation]:
    """One entry per normalized organization name, or per address when unnamed."""
    seen = set()
    unique = []
    for loc in locations:
        key = normalize_organization_name(loc.organization_name) or loc.address.key()
        if key and key.strip("-") and key not in seen:
            seen.add(key)
            unique.append(loc)
    return unique


class RegistryAdapter:
    source = Source.REGISTRY

    def __init__(self, registry: RegistryClient, search: Optional[SerperClient] = None, max_address_searches: int = 3):
        self.registry = registry
        self.search = search
        self.max_address_searches = max_address_searches

    @property
    def configured(self) -> bool:
        return True

    @property
    def can_search(self) -> bool:
        return self.search is not None and self.search.available

    def resolve_provider(self, full_name: str, npi: Optional[str]) -> Dict[str, Any]:
        """Provider by known NPI, else the best name match above the threshold."""
        if npi and is_valid_npi(npi):
            provider = self.registry.lookup(npi)
            if provider:
                return {"provider": provider, "method": "npi_lookup", "matches": 1, "exact_unique": False}

        providers = self.registry.search_by_name(full_name)
        plausible = [p for p in providers if p.match_score > NAME_MATCH_THRESHOLD]
        if not plausible:
            return {"provider": None, "method": "name_search", "matches": 0, "exact_unique": False}
        exact = [p for p in plausible if p.match_score == 1.0]
        return {
            "provider": plausible[0],
            "method": "name_search",
            "matches": len(plausible),
            "exact_unique": len(exact) == 1 and plausible[0] is exact[0],
        }

    def third_party_locations(self, full_name: str, npi: Optional[str]) -> List[PracticeLocation]:
        locations = []
        for label, site in REGISTRY_AGGREGATOR_SITES:
            query = f"{quoted(npi or full_name)} site:{site}"
            for hit in self.search.hits(query, num=3):
                text = f"{hit.title} {hit.snippet}"
                loc = extract_location(text)
                address = PracticeAddress(city=loc.city or "", state=loc.state or "")
                for org in extract_organizations(hit.snippet):
                    locations.append(PracticeLocation(org, address, label, url=hit.link or None))
        return locations

    def company_search(self, loc: PracticeLocation) -> List[PracticeLocation]:
        """Parents and sister businesses named alongside a practice."""
        query = quoted(loc.organization_name)
        if loc.address.city and loc.address.state:
            query += f" {loc.address.city}, {loc.address.state}"
        query += " eye care optometry"

        found = []
        own = normalize_organization_name(loc.organization_name)
        for hit in self.search.hits(query, num=5):
            text = f"{hit.title} {hit.snippet}"
            for name in extract_parent_companies(text) + extract_practice_names(text):
                if normalize_organization_name(name) != own:
                    found.append(PracticeLocation(
                        name, loc.address, "Google (related company)", url=hit.link or None,
                        related_to=loc.organization_name,
                    ))
        return found

    def address_search(self, loc: PracticeLocation) -> List[PracticeLocation]:
        """Businesses listed at a practice's street address."""
        address = f"{loc.address.line1} {loc.address.city} {loc.address.state}".strip()
        if not loc.address.line1 or len(address) < 10:
            return []
        found = []
        for hit in self.search.hits(f"{quoted(address)} optometry eye care", num=5):
            for name in extract_practice_names(f"{hit.title} {hit.snippet}"):
                found.append(PracticeLocation(name, loc.address, "Google (address search)", url=hit.link or None))
        return found

    def all_locations(self, provider: ProviderRecord, full_name: str) -> List[PracticeLocation]:
        locations: List[PracticeLocation] = []
        if provider.organization_name or provider.practice_address.line1:
            locations.append(PracticeLocation(
                provider.organization_name, provider.practice_address, "NPPES", url=provider.registry_url,
            ))
        locations.extend(self.registry.practice_locations(provider.npi))

        if self.can_search:
            locations.extend(self.third_party_locations(full_name, provider.npi))
            for loc in list(locations[: self.max_address_searches]):
                if loc.organization_name:
                    locations.extend(self.company_search(loc))
                locations.extend(self.address_search(loc))

        return dedupe_locations(locations)

    def find(self, full_name: str, context: Optional[Dict[str, Any]] = None) -> SourceResult:
        context = context or {}
        if not parse_person_name(full_name):
            return SourceResult.not_found(self.source, "could not parse name")

        logger.record_lookup_attempt(self.source.value)
        resolved = self.resolve_provider(full_name, context.get("npi_number"))
        provider: Optional[ProviderRecord] = resolved["provider"]
        if provider is None:
            logger.info("No registry record found", name=full_name)
            return SourceResult.not_found(self.source, "no registry record matched the name")

        locations = self.all_locations(provider, full_name)
        mentions = [
            OrganizationMention(
                organization=loc.organization_name,
                source=self.source,
                url=loc.url or provider.registry_url,
                location=loc.address.location(),
                kind=loc.kind,
                signal=provider.match_score or None,
                provenance=f"{loc.source} (related to {loc.related_to})" if loc.related_to else loc.source,
            )
            for loc in locations
            if loc.organization_name
        ]

        logger.record_lookup_success(self.source.value)
        logger.info(
            "Registry record found",
            name=full_name,
            npi=provider.npi,
            method=resolved["method"],
            matches=resolved["matches"],
            locations=len(locations),
        )
        return SourceResult(
            source=self.source,
            status=LookupStatus.FOUND,
            mentions=mentions,
            profile_url=provider.registry_url,
            identifier=provider.npi,
            details={
                "method": resolved["method"],
                "name_matches": resolved["matches"],
                "ambiguous": resolved["matches"] > 1,
                "exact_unique": resolved["exact_unique"],
                "provider_name": provider.full_name,
                "cms_url": provider.cms_url,
                "addresses": {loc.organization_name: str(loc.address) for loc in locations if loc.organization_name},
            },
        )
