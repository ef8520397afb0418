"""
Runtime settings, read from the environment.

Credentials are optional: a missing key only disables the adapters that
need it. Delays are courtesy pauses for shared upstream rate limits and can
be set to zero in tests.
"""

import os
from dataclasses import dataclass
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


@dataclass
class Settings:
    serper_api_key: str = ""
    netrows_api_key: str = ""
    store_path: Path = Path("data/tracker-data.json")
    relationships_db: Path = Path("data/relationships.db")

    # Seconds between calls to the same upstream
    search_delay: float = 0.5
    registry_delay: float = 0.35
    directory_delay: float = 0.4
    profile_delay: float = 0.5

    search_timeout: float = 10.0
    registry_timeout: float = 10.0
    profile_timeout: float = 15.0
    page_timeout: float = 5.0

    page_byte_limit: int = 100_000
    page_text_limit: int = 5000
    max_pages: int = 5
    max_address_searches: int = 3
    max_relationship_checks: int = 3

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            serper_api_key=os.getenv("SERPER_API_KEY", "").strip(),
            netrows_api_key=os.getenv("NETROWS_API_KEY", "").strip(),
            store_path=Path(os.getenv("PLACEMENTWATCH_STORE", "data/tracker-data.json")),
            relationships_db=Path(os.getenv("PLACEMENTWATCH_RELATIONSHIPS_DB", "data/relationships.db")),
            search_delay=_env_float("PLACEMENTWATCH_SEARCH_DELAY", 0.5),
            registry_delay=_env_float("PLACEMENTWATCH_REGISTRY_DELAY", 0.35),
            directory_delay=_env_float("PLACEMENTWATCH_DIRECTORY_DELAY", 0.4),
            profile_delay=_env_float("PLACEMENTWATCH_PROFILE_DELAY", 0.5),
            search_timeout=_env_float("PLACEMENTWATCH_SEARCH_TIMEOUT", 10.0),
            registry_timeout=_env_float("PLACEMENTWATCH_REGISTRY_TIMEOUT", 10.0),
            profile_timeout=_env_float("PLACEMENTWATCH_PROFILE_TIMEOUT", 15.0),
            page_timeout=_env_float("PLACEMENTWATCH_PAGE_TIMEOUT", 5.0),
            page_byte_limit=_env_int("PLACEMENTWATCH_PAGE_BYTES", 100_000),
            page_text_limit=_env_int("PLACEMENTWATCH_PAGE_TEXT", 5000),
            max_pages=_env_int("PLACEMENTWATCH_MAX_PAGES", 5),
        )
