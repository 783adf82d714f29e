"""Location / work-mode classification of listings."""
from __future__ import annotations

from typing import Iterable

from nejobs.config import DEFAULT_REGIONS, Region
from nejobs.models import Category, Listing, QualificationVerdict

HYBRID_TERM = "hybrid"


class Classifier:
    """Sort listings into one of the five categories.

    The cascade is evaluated top to bottom and the first match wins:

      remote + home region      → remote-regional-company
      remote + home country     → remote-us
      remote                    → remote
      home region + hybrid      → hybrid-regional
      home region               → onsite-regional
      hybrid                    → hybrid-regional
      anything else             → onsite-regional

    Every verdict qualifies. With ``strict=True`` the last branch is
    disqualified instead when the listing is also outside the home country.
    """

    def __init__(
        self,
        regions: Iterable[Region] = DEFAULT_REGIONS,
        home_country: str = "US",
        strict: bool = False,
    ) -> None:
        self.regions = tuple(regions)
        self.home_country = home_country.strip().upper()
        self.strict = strict
        self._codes = {r.code.upper() for r in self.regions}
        self._names = {r.name.lower(): r.code for r in self.regions}
        self._city_region: dict[str, str] = {}
        for r in self.regions:
            for city in r.cities:
                self._city_region.setdefault(city.lower(), r.code)

    def in_home_region(self, listing: Listing) -> bool:
        state = listing.state.strip()
        city = listing.city.strip().lower()
        description = listing.description.lower()

        if state.upper() in self._codes:
            return True
        for r in self.regions:
            name = r.name.lower()
            if state.lower() == name:
                return True
            if name in description and city in {c.lower() for c in r.cities}:
                return True
        return city in self._city_region

    def resolve_region(self, listing: Listing) -> str | None:
        """Home-region code by state code, state name, then city."""
        state = listing.state.strip()
        if state.upper() in self._codes:
            return state.upper()
        code = self._names.get(state.lower())
        if code:
            return code
        return self._city_region.get(listing.city.strip().lower())

    @staticmethod
    def is_hybrid(listing: Listing) -> bool:
        return HYBRID_TERM in listing.title.lower() or HYBRID_TERM in listing.description.lower()

    def classify(self, listing: Listing) -> QualificationVerdict:
        remote = listing.is_remote
        state = listing.state.strip().upper()
        country = listing.country.strip().upper()
        city = listing.city.strip()
        in_region = self.in_home_region(listing)
        hybrid = self.is_hybrid(listing)

        if remote and in_region:
            return QualificationVerdict(
                True, Category.REMOTE_REGIONAL_COMPANY,
                f"Remote position from {city}, {state} company",
            )
        if remote and country == self.home_country:
            return QualificationVerdict(True, Category.REMOTE_US, "Remote position available in the US")
        if remote:
            return QualificationVerdict(True, Category.REMOTE, "Fully remote position")
        if in_region and hybrid:
            return QualificationVerdict(True, Category.HYBRID_REGIONAL, f"Hybrid position in {city}, {state}")
        if in_region:
            return QualificationVerdict(True, Category.ONSITE_REGIONAL, f"On-site position in {city}, {state}")
        if hybrid:
            return QualificationVerdict(
                True, Category.HYBRID_REGIONAL, f"Hybrid position in {city}, {state or country}",
            )
        if self.strict and country != self.home_country:
            return QualificationVerdict(
                False, Category.ONSITE_REGIONAL, f"On-site position outside home regions ({country or 'unknown'})",
            )
        return QualificationVerdict(
            True, Category.ONSITE_REGIONAL, f"On-site position in {city}, {state or country}",
        )


_default = Classifier()


def classify(listing: Listing) -> QualificationVerdict:
    """Classify against the default New England regions."""
    return _default.classify(listing)
