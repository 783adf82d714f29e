"""Tests for relevance scoring."""
from conftest import make_listing
from nejobs.scorer import NEUTRAL_SCORE, score_listing, tokenize_keywords


class TestTokenize:
    def test_split_lower_dedupe_drop_single_chars(self):
        assert tokenize_keywords("a Python, python  Go") == ["python", "go"]

    def test_accepts_list(self):
        assert tokenize_keywords(["Data", "analyst"]) == ["data", "analyst"]


class TestScore:
    def test_neutral_without_keywords_or_themes(self):
        assert score_listing(make_listing(), "") == NEUTRAL_SCORE
        assert score_listing(make_listing(), "   ", []) == NEUTRAL_SCORE

    def test_title_matches_capped(self):
        listing = make_listing(job_title="Senior Python Developer", job_description="")
        assert score_listing(listing, "python developer") == 3
        assert score_listing(listing, "senior python developer") == 3

    def test_single_title_match_rounds_half_up(self):
        listing = make_listing(job_title="Python Developer", job_description="")
        assert score_listing(listing, "python") == 2  # 1.5 → 2

    def test_qualifications_and_responsibilities(self):
        listing = make_listing(
            job_title="Analyst",
            job_description="",
            job_highlights={"Qualifications": ["SQL experience"], "Responsibilities": ["Write SQL"]},
        )
        assert score_listing(listing, "sql") == 1

    def test_company_bonus(self):
        listing = make_listing(job_title="Engineer", employer_name="Vermont Teddy Bear", job_description="")
        assert score_listing(listing, "teddy") == 1

    def test_themes_only_are_scored(self):
        listing = make_listing(job_title="Outdoor Guide", job_description="")
        # theme in title 1 + emphasis topic in title 1.5 and anywhere 0.5
        assert score_listing(listing, "", ["outdoor"]) == 3

    def test_emphasis_role_bonus(self):
        listing = make_listing(job_title="Brand Manager", job_description="")
        assert score_listing(listing, "manager") == 3  # 1.5 title + 1 role → 2.5 → 3

    def test_every_bucket_and_cap(self):
        listing = make_listing(
            job_title="Ski Marketing Manager",
            employer_name="Ski Co",
            job_description="Marketing manager at a ski resort.",
        )
        # title 3 + body 2 + topic 2 + role 1 + company 1 = 9
        assert score_listing(listing, "marketing manager ski") == 9
        # + theme in description 0.5 → 9.5 → 10
        assert score_listing(listing, "marketing manager ski", ["resort"]) == 10
        assert score_listing(listing, "marketing manager ski", ["resort", "ski"]) == 10

    def test_custom_emphasis_lists(self):
        listing = make_listing(job_title="Nurse", job_description="")
        assert score_listing(listing, "nurse", emphasis_topics=(), emphasis_roles=("nurse",)) == 3

    def test_keywords_as_list(self):
        listing = make_listing(job_title="Python Developer", job_description="")
        assert score_listing(listing, ["python", "developer"]) == 3
