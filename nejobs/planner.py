"""Expand one search into the remote + per-region JSearch queries.

JSearch accepts a single location per call, so a search across every home
region is approximated by one remote-only query plus one query anchored on
each selected region's primary city.
"""
from __future__ import annotations

from typing import Iterable

from nejobs.config import DEFAULT_REGIONS, Region
from nejobs.log import get_logger
from nejobs.models import QuerySpec, SearchOptions

log = get_logger(__name__)


def selected_regions(codes: Iterable[str] | None, regions: Iterable[Region]) -> list[Region]:
    """Configured regions matching *codes*, in configured order (all when empty)."""
    wanted = {c.strip().upper() for c in codes or [] if c and c.strip()}
    if not wanted:
        return list(regions)
    return [r for r in regions if r.code in wanted]


def plan(
    keywords: str,
    options: SearchOptions | None = None,
    regions: Iterable[Region] = DEFAULT_REGIONS,
) -> list[QuerySpec]:
    options = options or SearchOptions()
    keywords = keywords.strip()
    shared = dict(
        date_posted=options.date_posted or "week",
        page=options.page or 1,
        employment_types=tuple(options.employment_types or ()),
    )

    specs = [QuerySpec(query=f"{keywords} remote", remote_only=True, **shared)]
    for region in selected_regions(options.regions, regions):
        specs.append(
            QuerySpec(
                query=f"{keywords} in {region.primary_city}, {region.code}",
                region=region.code,
                **shared,
            )
        )

    log.debug("Planned %d queries for %r", len(specs), keywords)
    return specs
