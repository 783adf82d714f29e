"""Load settings and env configuration."""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from nejobs.errors import ConfigurationError
from nejobs.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
SETTINGS_PATH: Path = CONFIG_DIR / "settings.yaml"
REPORTS_DIR: Path = ROOT_DIR / "reports"
DATA_DIR: Path = Path(os.environ.get("NEJOBS_DATA_DIR", str(ROOT_DIR / "data")))

API_KEY_ENV = "JSEARCH_API_KEY"
API_KEY_STORAGE_KEY = "api_key"


@dataclass(frozen=True)
class Region:
    code: str
    name: str
    cities: tuple[str, ...]

    @property
    def primary_city(self) -> str:
        return self.cities[0] if self.cities else self.name


DEFAULT_REGIONS: tuple[Region, ...] = (
    Region("CT", "Connecticut", ("Hartford", "New Haven", "Stamford", "Bridgeport", "Waterbury")),
    Region("MA", "Massachusetts", ("Boston", "Cambridge", "Worcester", "Springfield", "Lowell")),
    Region("ME", "Maine", ("Portland", "Lewiston", "Bangor", "South Portland", "Auburn")),
    Region("NH", "New Hampshire", ("Manchester", "Nashua", "Concord", "Dover", "Rochester")),
    Region("RI", "Rhode Island", ("Providence", "Warwick", "Cranston", "Pawtucket", "East Providence")),
    Region("VT", "Vermont", ("Burlington", "South Burlington", "Rutland", "Barre", "Montpelier")),
)

# Relevance bonuses for the niche this board targets: outdoor/winter sports
# employers and marketing roles.
DEFAULT_EMPHASIS_TOPICS: tuple[str, ...] = (
    "ski", "snowboard", "winter sports", "outdoor", "sports", "athletic",
    "recreation", "fitness", "mountain resort",
)
DEFAULT_EMPHASIS_ROLES: tuple[str, ...] = (
    "marketing", "brand", "social media", "content", "communications",
    "digital marketing", "growth",
)


@dataclass
class Settings:
    regions: tuple[Region, ...] = DEFAULT_REGIONS
    home_country: str = "US"

    api_base_url: str = "https://jsearch.p.rapidapi.com"
    api_host: str = "jsearch.p.rapidapi.com"
    request_timeout: float = 15.0

    rate_limit_max_requests: int = 10
    rate_limit_window_seconds: float = 60.0
    cache_ttl_seconds: float = 300.0
    concurrency_limit: int = 3

    # Plan-level retry: extra attempts after the first, linear backoff unit.
    retry_attempts: int = 2
    retry_base_delay: float = 1.0

    default_date_posted: str = "week"
    default_employment_types: tuple[str, ...] = ("FULLTIME",)
    results_per_page: int = 20
    seen_ledger_capacity: int = 1000
    strict_qualification: bool = False

    emphasis_topics: tuple[str, ...] = DEFAULT_EMPHASIS_TOPICS
    emphasis_roles: tuple[str, ...] = DEFAULT_EMPHASIS_ROLES

    data_dir: Path = field(default_factory=lambda: DATA_DIR)

    @property
    def region_codes(self) -> list[str]:
        return [r.code for r in self.regions]

    def region(self, code: str) -> Region | None:
        code = (code or "").strip().upper()
        for r in self.regions:
            if r.code == code:
                return r
        return None


def _parse_regions(raw: Any) -> tuple[Region, ...]:
    regions: list[Region] = []
    for code, info in (raw or {}).items():
        info = info or {}
        regions.append(
            Region(
                code=str(code).upper(),
                name=info.get("name", str(code)),
                cities=tuple(info.get("cities", [])),
            )
        )
    return tuple(regions)


def load_settings(path: Path | str | None = None) -> Settings:
    """Settings defaults, overridden by the YAML file when it exists."""
    settings_path = Path(path) if path else SETTINGS_PATH
    settings = Settings()
    if not settings_path.exists():
        log.debug("No settings file at %s, using defaults", settings_path)
        return settings

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid settings file {settings_path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Settings file {settings_path} must contain a mapping")

    known = {f.name for f in fields(Settings)}
    for key, value in raw.items():
        if key == "regions":
            regions = _parse_regions(value)
            if regions:
                settings.regions = regions
        elif key == "data_dir":
            settings.data_dir = Path(value)
        elif key in ("emphasis_topics", "emphasis_roles"):
            setattr(settings, key, tuple(str(v).lower() for v in value or []))
        elif key == "default_employment_types":
            settings.default_employment_types = tuple(str(v).upper() for v in value or [])
        elif key in known:
            setattr(settings, key, value)
        else:
            log.warning("Ignoring unknown setting %r in %s", key, settings_path.name)

    log.debug("Loaded settings from %s (%d regions)", settings_path, len(settings.regions))
    return settings


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def ensure_dirs(settings: Settings | None = None) -> None:
    data_dir = settings.data_dir if settings else DATA_DIR
    for d in (REPORTS_DIR, data_dir):
        d.mkdir(parents=True, exist_ok=True)


def resolve_api_key(explicit: str | None = None, store=None) -> str:
    """Explicit key, then the environment, then the locally stored key."""
    if explicit and explicit.strip():
        return explicit.strip()
    env_key = get_env(API_KEY_ENV)
    if env_key:
        return env_key
    if store is not None:
        stored = store.get(API_KEY_STORAGE_KEY, "")
        if isinstance(stored, str):
            return stored.strip()
    return ""
