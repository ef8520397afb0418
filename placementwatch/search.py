from urllib.parse import quote_plus

from .normalize import unique_in_order


def quoted(phrase: str) -> str:
    return '"' + phrase.replace('"', "").strip() + '"'


def build_person_queries(
    variants: list[str],
    keywords: list[str],
    site: str | None = None,
    alternate_keywords: int = 1,
) -> list[str]:
    """
    Returns search queries for a person, primary name variant first.

    variants: output of normalize_person_name; the first is the full name.
    keywords: profession terms appended to each query (e.g. ["OD optometrist"]).
    site: optional domain/path for a site: filter.
    alternate_keywords: how many keywords to spend on each non-primary variant,
        since every query costs search credit.
    """
    site_part = f"site:{site}" if site else ""
    queries: list[str] = []
    for i, variant in enumerate(variants):
        terms = keywords if i == 0 else keywords[:alternate_keywords]
        for keyword in terms or [""]:
            queries.append(" ".join(t for t in [quoted(variant), site_part, keyword] if t))
    return unique_in_order(queries)


def build_query_urls(queries: list[str]) -> list[str]:
    base = "https://www.google.com/search?q="
    return [base + quote_plus(q) for q in queries]
