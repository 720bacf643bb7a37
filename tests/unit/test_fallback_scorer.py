"""
Tests for matchengine.core.matching.fallback_scorer: the offline scorer.

Component math (default weights 70/20/10):
    skills     = matched / required * 70
    experience = min(100, candidate years / required years * 100) * 0.2, or 10 when
                 the job states no years
    keywords   = job tokens found in the resume / job tokens * 10
"""

import pytest

from matchengine.core.matching.fallback_scorer import (
    FallbackScorer,
    no_job_result,
    no_profile_result,
    no_resume_result,
)
from matchengine.data.models import MatchSource, Recommendation


@pytest.fixture
def scorer():
    return FallbackScorer()


SCENARIO_A_TEXT = "4 years building React.js apps with Node"


# ── end-to-end scoring ───────────────────────────────────────────────────────


class TestScore:
    def test_react_node_candidate_is_recommended(self, scorer, make_job, make_profile):
        result = scorer.score(make_job(), SCENARIO_A_TEXT, make_profile())

        assert {"react", "node"} <= set(result.matched_skills)
        assert result.missing_skills == []
        # 70 skills + 10 neutral experience + 5 keywords (react, node of 4 job tokens)
        assert result.score == 85
        assert result.score > 70
        assert result.recommendation == Recommendation.RECOMMEND.value
        assert result.source == MatchSource.FALLBACK.value

    def test_deterministic(self, scorer, make_job, make_profile):
        job, profile = make_job(), make_profile()
        first = scorer.score(job, SCENARIO_A_TEXT, profile)
        second = scorer.score(job, SCENARIO_A_TEXT, profile)
        assert first == second

    def test_skills_from_resume_sentences(self, scorer, make_job, make_profile):
        profile = make_profile(skills={})
        text = "Experienced engineer. Skills: React, Node.js and GraphQL."
        result = scorer.score(make_job(), text, profile)
        assert result.matched_skills == ["react", "node"]

    def test_sentence_without_marker_is_ignored(self, scorer, make_job, make_profile):
        profile = make_profile(skills={})
        result = scorer.score(make_job(), SCENARIO_A_TEXT, profile)
        assert result.matched_skills == []
        assert result.missing_skills == ["react", "node"]

    def test_only_first_three_skill_sentences(self, scorer, make_job, make_profile):
        profile = make_profile(skills={})
        text = (
            "Skills: java. Skills: go. Skills: rust. "
            "Skills: react and node."
        )
        result = scorer.score(make_job(), text, profile)
        assert result.matched_skills == []

    def test_recent_experience_technologies(self, scorer, make_job, make_profile):
        history = [
            {"company": "Old", "technologies": ["React"]},
            {"company": "A", "technologies": ["Java"]},
            {"company": "B", "technologies": ["Go"]},
            {"company": "C", "technologies": ["Node.js"]},
        ]
        profile = make_profile(skills={}, experienceHistory=history)
        result = scorer.score(make_job(), "", profile)
        # The oldest entry (React) is outside the three most recent
        assert result.matched_skills == ["node"]
        assert result.missing_skills == ["react"]

    def test_no_profile_no_resume(self, scorer, make_job):
        result = scorer.score(make_job(), "", None)
        # Only the neutral experience component remains
        assert result.score == 10
        assert result.recommendation == Recommendation.NOT_RECOMMENDED.value
        assert result.experience_match == "Not enough information to compare experience."

    def test_empty_resume_adds_upload_advice(self, scorer, make_job, make_profile):
        result = scorer.score(make_job(), "", make_profile())
        assert "Upload a detailed PDF resume for better analysis." in result.recommendations

    def test_evidence_keeps_original_case(self, scorer, make_job, make_profile):
        text = "Intro line. I ship React.js features weekly. Unrelated hobby. Node services too."
        result = scorer.score(make_job(), text, make_profile())
        assert result.evidence == ["I ship React.js features weekly.", "Node services too."]

    def test_evidence_is_capped(self, scorer, make_job, make_profile):
        text = " ".join(f"React project {i}." for i in range(10))
        result = scorer.score(make_job(), text, make_profile())
        assert len(result.evidence) == 3
        assert all(len(snippet) <= 160 for snippet in result.evidence)

    @pytest.mark.parametrize(
        "text",
        ["", "x" * 50_000, "Skills: " + ", ".join(f"tool{i}" for i in range(500))],
    )
    def test_score_bounds(self, scorer, make_job, make_profile, text):
        result = scorer.score(make_job(), text, make_profile())
        assert 0 <= result.score <= 100


# ── components ───────────────────────────────────────────────────────────────


class TestComponents:
    def test_required_skills_from_fields(self, scorer, make_job):
        job = make_job(skills="Python, Django", requirements="Docker\nAWS")
        required, inferred = scorer.required_skills(job)
        assert required == ["python", "django", "docker", "aws"]
        assert inferred is False

    def test_required_skills_inferred_from_keywords(self, scorer, make_job):
        job = make_job(
            skills="",
            requirements="",
            title="Backend Engineer",
            description="You will write Python services on AWS with Docker.",
        )
        required, inferred = scorer.required_skills(job)
        assert inferred is True
        assert set(required) == {"python", "docker", "aws"}

    def test_experience_ratio(self, scorer, make_job, make_profile):
        job = make_job(experienceLevel="5+ years")
        profile = make_profile(professionalBio={"experience": "3 years"})
        components = scorer.analyze(job, "", profile)
        assert components.experience_score == pytest.approx(60 * 0.2)

    def test_experience_capped(self, scorer, make_job, make_profile):
        job = make_job(experienceLevel="2 yrs")
        profile = make_profile(professionalBio={"experience": "10 years"})
        components = scorer.analyze(job, "", profile)
        assert components.experience_score == pytest.approx(100 * 0.2)

    def test_experience_falls_back_to_bio(self, scorer, make_job, make_profile):
        job = make_job(experienceLevel="4 years")
        profile = make_profile(professionalBio={"bio": "Engineer with 2 years in fintech"})
        components = scorer.analyze(job, "", profile)
        assert components.experience_score == pytest.approx(50 * 0.2)

    def test_experience_neutral_without_requirement(self, scorer, make_job, make_profile):
        components = scorer.analyze(make_job(experienceLevel="Senior"), "", make_profile())
        assert components.experience_score == pytest.approx(10.0)

    def test_keyword_overlap_zero_for_empty_resume(self, scorer, make_job):
        components = scorer.analyze(make_job(), "", None)
        assert components.keyword_score == 0.0

    def test_no_required_skills_scores_zero_skills(self, scorer, make_job):
        job = make_job(skills="", requirements="", description="Friendly team.")
        components = scorer.analyze(job, "Skills: React", None)
        assert components.required_skills == []
        assert components.skills_score == 0.0

    def test_custom_weights(self, make_job, make_profile):
        scorer = FallbackScorer(
            weights={"skills_match": 1.0, "experience_match": 0.0, "keyword_match": 0.0}
        )
        result = scorer.score(make_job(), SCENARIO_A_TEXT, make_profile())
        assert result.score == 100


# ── recommendation buckets ───────────────────────────────────────────────────


class TestRecommendation:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (100, Recommendation.RECOMMEND),
            (76, Recommendation.RECOMMEND),
            (75, Recommendation.CONSIDER),
            (45, Recommendation.CONSIDER),
            (44, Recommendation.NOT_RECOMMENDED),
            (0, Recommendation.NOT_RECOMMENDED),
        ],
    )
    def test_thresholds(self, score, expected):
        assert Recommendation.from_score(score) == expected


# ── informational results ────────────────────────────────────────────────────


class TestInformationalResults:
    def test_no_profile(self):
        result = no_profile_result()
        assert result.score == 0
        assert result.source == MatchSource.FALLBACK.value
        assert result.weaknesses == ["No profile data"]

    def test_no_job(self):
        result = no_job_result()
        assert result.score == 0
        assert result.summary == "Job not found. Please select a valid job."

    def test_no_resume_lists_required_skills(self, make_job, make_profile):
        result = no_resume_result(make_job(), make_profile())
        assert result.score == 0
        assert "Resume not uploaded" in result.weaknesses
        assert result.missing_skills == ["react", "node"]
        assert result.recommendation == Recommendation.NOT_RECOMMENDED.value
        assert result.experience_match.startswith("Profile experience reference:")
