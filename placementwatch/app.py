import argparse
import json
from functools import partial
from pathlib import Path

from . import __version__
from .config import Settings
from .database import RelationshipLedger
from .enrichment import CompanyResearcher
from .env import load_env
from .google_results import SerperClient
from .models import AlertStatus, Source
from .monitor import MonitoringCoordinator
from .normalize import normalize_person_name
from .relatedness import RelatednessIndex
from .retry import BreakerRegistry
from .search import build_person_queries, build_query_urls
from .sources.common import fetch_page_text
from .sources.directory import DOXIMITY, HEALTHGRADES, ProviderDirectoryAdapter
from .sources.network import PROFILE_SITE, ProfessionalNetworkAdapter
from .sources.profile_history import ProfileHistoryClient
from .sources.registry import RegistryAdapter, RegistryClient
from .sources.web_search import WebSearchAdapter
from .storage import RecordStore
from .vocab import PROFESSION_QUERY_KEYWORDS

# Quota trips latch here for the life of the process, across runs.
BREAKERS = BreakerRegistry()


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    if getattr(args, "store", None):
        settings.store_path = Path(args.store)
    if getattr(args, "db", None):
        settings.relationships_db = Path(args.db)
    return settings


def build_index(settings: Settings) -> RelatednessIndex:
    return RelatednessIndex(ledger=RelationshipLedger(settings.relationships_db))


def build_coordinator(settings: Settings, breakers: BreakerRegistry = BREAKERS, scrape_pages: bool = True) -> MonitoringCoordinator:
    """Wire clients, adapters and the relatedness index from settings."""
    search = SerperClient(
        api_key=settings.serper_api_key,
        breakers=breakers,
        timeout=settings.search_timeout,
        delay=settings.search_delay,
    )
    history = ProfileHistoryClient(
        api_key=settings.netrows_api_key,
        breakers=breakers,
        timeout=settings.profile_timeout,
        delay=settings.profile_delay,
    )
    registry = RegistryClient(timeout=settings.registry_timeout, delay=settings.registry_delay)
    page_fetcher = None
    if scrape_pages:
        page_fetcher = partial(
            fetch_page_text,
            timeout=settings.page_timeout,
            byte_limit=settings.page_byte_limit,
            text_limit=settings.page_text_limit,
        )

    index = build_index(settings)
    adapters = [
        RegistryAdapter(registry, search, max_address_searches=settings.max_address_searches),
        ProviderDirectoryAdapter(search, DOXIMITY),
        ProviderDirectoryAdapter(search, HEALTHGRADES),
        WebSearchAdapter(search, page_fetcher=page_fetcher, max_pages=settings.max_pages),
        ProfessionalNetworkAdapter(search, history),
    ]
    researcher = CompanyResearcher(index, search=search, registry=registry, page_fetcher=page_fetcher)
    return MonitoringCoordinator(RecordStore(settings.store_path), index, adapters, researcher, settings)


def cmd_run(args: argparse.Namespace) -> None:
    settings = _settings(args)
    if not settings.store_path.exists():
        raise SystemExit(f"Store not found: {settings.store_path}")
    if not settings.serper_api_key:
        print("[warn] SERPER_API_KEY not set: only pipeline and registry checks will run.")
    coordinator = build_coordinator(settings, scrape_pages=not args.no_pages)
    summary = coordinator.run_monitoring()
    if args.json:
        print(json.dumps(summary, indent=2))
        return
    print(f"Status: {summary.get('status')}")
    print(f"Candidates checked: {summary['checked']}")
    print(f"Pairs checked: {summary['pairs']}")
    print(f"Alerts created: {summary['alerts_created']}")
    for source, count in summary["per_source_counts"].items():
        print(f"  - {source}: {count}")
    tripped = BREAKERS.open_services()
    if tripped:
        print(f"Quota exhausted: {', '.join(tripped)}")


def cmd_variants(args: argparse.Namespace) -> None:
    variants = normalize_person_name(args.name)
    if not variants:
        raise SystemExit("Could not parse a searchable name.")
    for v in variants:
        print(v)


def cmd_registry_search(args: argparse.Namespace) -> None:
    settings = _settings(args)
    registry = RegistryClient(timeout=settings.registry_timeout, delay=settings.registry_delay)
    providers = registry.search_by_name(args.name, state=args.state)
    if not providers:
        print("No registry records found.")
        return
    for p in providers[: args.limit]:
        print(f"{p.npi}  {p.full_name} {p.credential}".rstrip())
        print(f"  Score: {p.match_score:.2f}")
        print(f"  Organization: {p.organization_name or '-'}")
        print(f"  Address: {p.practice_address}")
        print(f"  Specialty: {p.taxonomy or '-'}")


def cmd_relationships(args: argparse.Namespace) -> None:
    index = build_index(_settings(args))
    edges = index.all_edges()
    if args.json:
        print(json.dumps(edges, indent=2))
        return
    for origin, groups in edges.items():
        print(f"{origin} ({sum(len(v) for v in groups.values())} edges):")
        for parent, aliases in sorted(groups.items()):
            print(f"  {parent}: {', '.join(aliases)}")


def cmd_relate(args: argparse.Namespace) -> None:
    index = build_index(_settings(args))
    if index.add_edge(args.parent, args.alias):
        print(f"Added: {args.parent} -> {args.alias}")
    elif args.alias in index.refused or args.parent in index.refused:
        raise SystemExit("Refused: one of the names has no distinguishing words.")
    else:
        print("Relationship already known.")


def cmd_alerts(args: argparse.Namespace) -> None:
    store = RecordStore(_settings(args).store_path)
    alerts = store.data["alerts"]
    if args.source:
        alerts = [a for a in alerts if a.get("source") == args.source]
    if args.status:
        alerts = [a for a in alerts if a.get("status") == args.status]
    if not alerts:
        print("No alerts.")
        return
    for a in alerts:
        print(f"ID: {a.get('id')}")
        print(f"  {a.get('candidate_name')} -> {a.get('client_name')}")
        print(f"  Source: {a.get('source')}  Confidence: {a.get('confidence')}  Status: {a.get('status')}")
        print(f"  Reason: {a.get('match_reason')}")
        if a.get("source_url"):
            print(f"  Evidence: {a['source_url']}")
        print()


def cmd_review(args: argparse.Namespace) -> None:
    store = RecordStore(_settings(args).store_path)
    try:
        alert = store.update_alert_status(args.id, args.status)
    except (KeyError, ValueError) as e:
        raise SystemExit(str(e))
    print(f"Alert {alert['id']}: {alert['status']}")


def cmd_queries(args: argparse.Namespace) -> None:
    variants = normalize_person_name(args.name)
    if not variants:
        raise SystemExit("Could not parse a searchable name.")
    groups = {
        "Web": build_person_queries(variants, PROFESSION_QUERY_KEYWORDS),
        "LinkedIn": build_person_queries(variants, ["optometrist", "OD"], site=PROFILE_SITE),
        "Doximity": build_person_queries(variants, ["optometrist"], site=DOXIMITY.domain),
        "Healthgrades": build_person_queries(variants, ["optometrist"], site=HEALTHGRADES.domain),
    }
    for label, queries in groups.items():
        print(f"{label}:")
        for u in build_query_urls(queries):
            print(f" - {u}")


def main():
    # Load .env if present (SERPER_API_KEY, NETROWS_API_KEY, ...)
    load_env()
    parser = argparse.ArgumentParser(prog="placementwatch", description="Placement tracking from public evidence")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    run = subparsers.add_parser("run", help="Run one monitoring pass over all submissions")
    run.add_argument("--store", help="Path to JSON record store (default: $PLACEMENTWATCH_STORE)")
    run.add_argument("--db", help="Path to relationship ledger (default: $PLACEMENTWATCH_RELATIONSHIPS_DB)")
    run.add_argument("--no-pages", action="store_true", help="Do not scrape result pages")
    run.add_argument("--json", action="store_true", help="Print the run summary as JSON")
    run.set_defaults(func=cmd_run)

    var = subparsers.add_parser("variants", help="Show the search variants for a person name")
    var.add_argument("--name", required=True, help="Full name as received from the CRM")
    var.set_defaults(func=cmd_variants)

    reg = subparsers.add_parser("registry-search", help="Search the NPI registry by person name")
    reg.add_argument("--name", required=True, help="Provider name")
    reg.add_argument("--state", help="Two-letter state filter")
    reg.add_argument("--limit", type=int, default=5, help="Records to show (default 5)")
    reg.set_defaults(func=cmd_registry_search)

    rel = subparsers.add_parser("relationships", help="List known organization relationships")
    rel.add_argument("--db", help="Path to relationship ledger")
    rel.add_argument("--json", action="store_true", help="Print as JSON")
    rel.set_defaults(func=cmd_relationships)

    rla = subparsers.add_parser("relate", help="Declare an alias or subsidiary of a parent organization")
    rla.add_argument("--parent", required=True, help="Parent organization")
    rla.add_argument("--alias", required=True, help="Alias, brand or subsidiary")
    rla.add_argument("--db", help="Path to relationship ledger")
    rla.set_defaults(func=cmd_relate)

    alr = subparsers.add_parser("alerts", help="List alerts")
    alr.add_argument("--store", help="Path to JSON record store")
    alr.add_argument("--source", choices=[s.value for s in Source], help="Only alerts from this source")
    alr.add_argument("--status", choices=[s.value for s in AlertStatus], help="Only alerts in this status")
    alr.set_defaults(func=cmd_alerts)

    rev = subparsers.add_parser("review", help="Change an alert's review status")
    rev.add_argument("--id", required=True, help="Alert id")
    rev.add_argument("--status", required=True, choices=[s.value for s in AlertStatus], help="New status")
    rev.add_argument("--store", help="Path to JSON record store")
    rev.set_defaults(func=cmd_review)

    qry = subparsers.add_parser("queries", help="Build manual Google search URLs for a candidate")
    qry.add_argument("--name", required=True, help="Candidate name")
    qry.set_defaults(func=cmd_queries)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
