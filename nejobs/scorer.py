"""Score listing relevance against search keywords and themes (0-10)."""
from __future__ import annotations

import math
import re
from typing import Iterable

from nejobs.config import DEFAULT_EMPHASIS_ROLES, DEFAULT_EMPHASIS_TOPICS
from nejobs.models import Listing

NEUTRAL_SCORE = 5
MAX_SCORE = 10

TITLE_WEIGHT, TITLE_CAP = 1.5, 3.0
BODY_CAP = 2.0
THEME_CAP = 1.0
TOPIC_TITLE_BONUS, TOPIC_ANYWHERE_BONUS, TOPIC_CAP = 1.5, 0.5, 2.0
ROLE_BONUS = 1.0
COMPANY_BONUS = 1.0

_SPLIT_RE = re.compile(r"[\s,]+")


def _normalize(s: str) -> str:
    return (s or "").lower().strip()


def tokenize_keywords(keywords: str | Iterable[str]) -> list[str]:
    """Lowercase, split on whitespace/commas, drop 1-char tokens, keep distinct."""
    if not isinstance(keywords, str):
        keywords = " ".join(keywords)
    tokens = [t for t in _SPLIT_RE.split(keywords.lower()) if len(t) > 1]
    return list(dict.fromkeys(tokens))


def _theme_terms(themes: Iterable[str] | None) -> list[str]:
    terms = [_normalize(t) for t in themes or []]
    return list(dict.fromkeys(t for t in terms if len(t) > 1))


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def score_listing(
    listing: Listing,
    keywords: str | Iterable[str] = "",
    themes: Iterable[str] | None = None,
    *,
    emphasis_topics: Iterable[str] = DEFAULT_EMPHASIS_TOPICS,
    emphasis_roles: Iterable[str] = DEFAULT_EMPHASIS_ROLES,
) -> int:
    """Weighted bucket score, each bucket capped before summing.

    Buckets:
      - keyword in title            → 1.5 each, max 3
      - keyword in description      → 1, in qualifications / responsibilities
                                      → 0.5 each, max 2 together
      - theme in title / description → 1 / 0.5, max 1
      - emphasis topic in title (1.5) and anywhere (0.5), max 2
      - emphasis role in title      → 1
      - keyword in employer name    → 1
    """
    if not isinstance(keywords, str):
        keywords = " ".join(keywords)
    terms = tokenize_keywords(keywords)
    theme_terms = _theme_terms(themes)
    if not keywords.strip() and not theme_terms:
        return NEUTRAL_SCORE

    title = _normalize(listing.title)
    description = _normalize(listing.description)
    company = _normalize(listing.employer_name)
    all_text = f"{title} {description} {company}"
    qualifications = " ".join(listing.qualifications).lower()
    responsibilities = " ".join(listing.responsibilities).lower()

    title_matches = sum(1 for t in terms if t in title)
    score = min(TITLE_CAP, title_matches * TITLE_WEIGHT)

    content = 0.0
    for t in terms:
        if t in description:
            content += 1
        if t in qualifications:
            content += 0.5
        if t in responsibilities:
            content += 0.5
    score += min(BODY_CAP, content)

    theme_score = 0.0
    for theme in theme_terms:
        if theme in title:
            theme_score += 1
        if theme in description:
            theme_score += 0.5
    score += min(THEME_CAP, theme_score)

    topics = [_normalize(t) for t in emphasis_topics if _normalize(t)]
    topic_score = 0.0
    if any(t in title for t in topics):
        topic_score += TOPIC_TITLE_BONUS
    if any(t in all_text for t in topics):
        topic_score += TOPIC_ANYWHERE_BONUS
    score += min(TOPIC_CAP, topic_score)

    if any(_normalize(r) and _normalize(r) in title for r in emphasis_roles):
        score += ROLE_BONUS

    if any(t in company for t in terms):
        score += COMPANY_BONUS

    return min(MAX_SCORE, _round_half_up(score))
