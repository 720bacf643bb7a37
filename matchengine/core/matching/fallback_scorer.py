"""
Local fallback scorer.

Scores a resume against a job without any network call, so a usable
result exists even when the AI provider is slow, failing or not
configured. Three weighted components:

- Skills: required job skills found among the candidate's skills
- Experience: stated years in the profile against years asked by the job
- Keywords: share of the job's vocabulary that also appears in the resume

The scorer is deterministic: identical inputs give identical output.
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from matchengine.data.models import (
    CandidateProfile,
    JobPosting,
    MatchResult,
    MatchSource,
    Recommendation,
)
from matchengine.ml.nlp.preprocessor import TextNormalizer, get_text_normalizer, unique
from matchengine.utils.constants import (
    ADVICE_TEMPLATES,
    EMPTY_RESUME_ADVICE,
    EVIDENCE_SENTENCE_WINDOW,
    EVIDENCE_SNIPPET_CHARS,
    FALLBACK_SCORING_WEIGHTS,
    MAX_EVIDENCE_SNIPPETS,
    MAX_SKILL_SENTENCES,
    MAX_SKILLS_REPORTED,
    NEUTRAL_EXPERIENCE_SCORE,
    NO_JOB_RESULT,
    NO_PROFILE_RESULT,
    NO_RESUME_RESULT,
    RATIONALE_TEMPLATES,
    RECENT_EXPERIENCE_ENTRIES,
    SKILL_SENTENCE_MARKERS,
    TECH_KEYWORDS,
    YEARS_PATTERN,
)
from matchengine.utils.logger import get_logger

logger = get_logger(__name__)

_YEARS_RE = re.compile(YEARS_PATTERN)

# Strengths/weaknesses shown on a fallback result
_LIST_PREVIEW = 6


@dataclass
class ScoreComponents:
    """Intermediate values of one fallback scoring run."""

    required_skills: list[str] = field(default_factory=list)
    candidate_skills: list[str] = field(default_factory=list)
    matched_skills: list[str] = field(default_factory=list)
    missing_skills: list[str] = field(default_factory=list)
    inferred_requirements: bool = False

    # Weighted contributions, already multiplied by their weight
    skills_score: float = 0.0
    experience_score: float = 0.0
    keyword_score: float = 0.0

    @property
    def total(self) -> int:
        raw = self.skills_score + self.experience_score + self.keyword_score
        return int(round(max(0.0, min(100.0, raw))))


class FallbackScorer:
    """
    Deterministic, I/O-free scorer over (job, resume text, profile).

    ``score`` never raises; empty or missing inputs simply contribute
    nothing.
    """

    def __init__(
        self,
        weights: Optional[dict[str, float]] = None,
        normalizer: Optional[TextNormalizer] = None,
    ):
        """
        Initialize the scorer.

        Args:
            weights: Optional custom component weights
            normalizer: Text normalizer shared with keyword scoring
        """
        self.weights = weights or FALLBACK_SCORING_WEIGHTS
        self.normalizer = normalizer or get_text_normalizer()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def score(
        self,
        job: JobPosting,
        resume_text: Optional[str],
        profile: Optional[CandidateProfile],
    ) -> MatchResult:
        """
        Score a candidate against a job.

        Args:
            job: Job posting snapshot
            resume_text: Extracted resume text (may be empty)
            profile: Candidate profile (may be None)

        Returns:
            MatchResult with provenance ``fallback``
        """
        resume_text = resume_text or ""
        try:
            components = self.analyze(job, resume_text, profile)
        except Exception as e:
            logger.exception(f"Fallback scoring failed, using neutral result: {e}")
            return MatchResult(
                score=50,
                summary="Preliminary score generated.",
                recommendation=Recommendation.CONSIDER,
                source=MatchSource.FALLBACK,
                recommendations=["Upload a PDF resume", "Complete profile details"],
            )

        final_score = components.total
        bucket = Recommendation.from_score(final_score)
        matched = components.matched_skills[:MAX_SKILLS_REPORTED]
        missing = components.missing_skills[:MAX_SKILLS_REPORTED]

        recommendations = [ADVICE_TEMPLATES[bucket.value]]
        if not resume_text:
            recommendations.append(EMPTY_RESUME_ADVICE)

        return MatchResult(
            score=final_score,
            matched_skills=matched,
            missing_skills=missing,
            summary=self._summary(bucket),
            recommendation=bucket,
            source=MatchSource.FALLBACK,
            evidence=self._evidence(resume_text, components.matched_skills),
            strengths=matched[:_LIST_PREVIEW],
            weaknesses=missing[:_LIST_PREVIEW],
            recommendations=recommendations,
            experience_match=self._experience_note(profile),
        )

    def analyze(
        self,
        job: JobPosting,
        resume_text: str,
        profile: Optional[CandidateProfile],
    ) -> ScoreComponents:
        """Compute skill sets and weighted component scores."""
        components = ScoreComponents()

        components.required_skills, components.inferred_requirements = (
            self.required_skills(job)
        )
        components.candidate_skills = self._candidate_skills(resume_text, profile)

        candidate_set = set(components.candidate_skills)
        components.matched_skills = [
            s for s in components.required_skills if s in candidate_set
        ]
        components.missing_skills = [
            s for s in components.required_skills if s not in candidate_set
        ]

        if components.required_skills:
            ratio = len(components.matched_skills) / len(components.required_skills)
            components.skills_score = ratio * 100 * self.weights["skills_match"]

        components.experience_score = (
            self._experience_score(job.experience_level, profile)
            * self.weights["experience_match"]
        )
        components.keyword_score = (
            self._keyword_overlap(job.full_text, resume_text)
            * self.weights["keyword_match"]
        )

        logger.debug(
            f"Fallback components for job {job.id}: "
            f"skills={components.skills_score:.2f} "
            f"experience={components.experience_score:.2f} "
            f"keywords={components.keyword_score:.2f}"
        )
        return components

    # -------------------------------------------------------------------------
    # Skill Sets
    # -------------------------------------------------------------------------

    def required_skills(self, job: JobPosting) -> tuple[list[str], bool]:
        """
        Tokens of the job's skills and requirements fields.

        Falls back to known technology keywords in the title, description
        and requirements when both fields are empty.
        """
        explicit = ", ".join(part for part in (job.skills, job.requirements) if part)
        required = self.normalizer.unique_tokens(explicit)
        if required:
            return required, False

        text = " ".join(part for part in (job.title, job.description, job.requirements) if part)
        present = set(self.normalizer.tokenize(text))
        return [k for k in TECH_KEYWORDS if k in present], True

    def _candidate_skills(
        self, resume_text: str, profile: Optional[CandidateProfile]
    ) -> list[str]:
        tokens: list[str] = []

        sentences = self.normalizer.split_sentences(self.normalizer.normalize(resume_text))
        skill_lines = [
            s for s in sentences if any(marker in s for marker in SKILL_SENTENCE_MARKERS)
        ][:MAX_SKILL_SENTENCES]
        for line in skill_lines:
            tokens.extend(self.normalizer.tokenize(line))

        if profile is not None:
            skills = profile.skills
            tokens.extend(
                self.normalizer.tokenize(
                    ", ".join([skills.technical_skills, skills.soft_skills, *skills.languages])
                )
            )
            recent = profile.experience_history[-RECENT_EXPERIENCE_ENTRIES:]
            for entry in recent:
                tokens.extend(self.normalizer.tokenize(", ".join(entry.technologies)))

        return unique(tokens)

    # -------------------------------------------------------------------------
    # Component Scores
    # -------------------------------------------------------------------------

    def _extract_years(self, text: Optional[str]) -> int:
        match = _YEARS_RE.search(self.normalizer.normalize(text))
        return int(match.group(1)) if match else 0

    def _experience_score(
        self, experience_level: str, profile: Optional[CandidateProfile]
    ) -> float:
        """0-100; neutral when the job states no years."""
        required_years = self._extract_years(experience_level)
        if not required_years:
            return NEUTRAL_EXPERIENCE_SCORE

        candidate_years = self._extract_years(profile.experience_text if profile else "")
        return min(100.0, candidate_years / required_years * 100)

    def _keyword_overlap(self, job_text: str, resume_text: str) -> float:
        """0-100 share of unique job tokens present in the resume."""
        job_tokens = self.normalizer.unique_tokens(job_text)
        resume_tokens = set(self.normalizer.tokenize(resume_text))
        if not job_tokens or not resume_tokens:
            return 0.0
        matched = sum(1 for t in job_tokens if t in resume_tokens)
        return matched / len(job_tokens) * 100

    # -------------------------------------------------------------------------
    # Explanation
    # -------------------------------------------------------------------------

    def _evidence(self, resume_text: str, matched_skills: list[str]) -> list[str]:
        """Original-case resume sentences naming a matched skill, in order."""
        if not resume_text or not matched_skills:
            return []

        matched = set(matched_skills)
        snippets: list[str] = []
        sentences = self.normalizer.split_sentences(resume_text)[:EVIDENCE_SENTENCE_WINDOW]
        for sentence in sentences:
            if matched.intersection(self.normalizer.tokenize(sentence)):
                snippets.append(sentence.strip()[:EVIDENCE_SNIPPET_CHARS])
                if len(snippets) >= MAX_EVIDENCE_SNIPPETS:
                    break
        return snippets

    @staticmethod
    def _summary(bucket: Recommendation) -> str:
        label = bucket.value.replace("_", " ")
        return f"{RATIONALE_TEMPLATES[bucket.value]} Recommendation: {label}."

    @staticmethod
    def _experience_note(profile: Optional[CandidateProfile]) -> str:
        text = profile.experience_text if profile else ""
        if text:
            return f"Profile experience reference: {text[:120]}"
        return "Not enough information to compare experience."


# -----------------------------------------------------------------------------
# Informational results
# -----------------------------------------------------------------------------


def _informational(template: dict) -> MatchResult:
    return MatchResult(
        score=0,
        summary=template["summary"],
        recommendation=Recommendation.NOT_RECOMMENDED,
        source=MatchSource.FALLBACK,
        weaknesses=list(template["weaknesses"]),
        recommendations=list(template["recommendations"]),
    )


def no_profile_result() -> MatchResult:
    """Zero-score result for a subject without a profile."""
    return _informational(NO_PROFILE_RESULT)


def no_job_result() -> MatchResult:
    """Zero-score result for an unknown job."""
    return _informational(NO_JOB_RESULT)


def no_resume_result(job: JobPosting, profile: Optional[CandidateProfile]) -> MatchResult:
    """
    Zero-score result for a candidate who never supplied a resume.

    Required skills are still listed as missing so the candidate sees what
    the job asks for.
    """
    base = _informational(NO_RESUME_RESULT)
    required, _ = get_fallback_scorer().required_skills(job)
    missing = required[:MAX_SKILLS_REPORTED]
    return base.model_copy(
        update={
            "missing_skills": missing,
            "experience_match": FallbackScorer._experience_note(profile),
        }
    )


# Shared instance
_scorer: Optional[FallbackScorer] = None


def get_fallback_scorer() -> FallbackScorer:
    """Get the shared fallback scorer."""
    global _scorer
    if _scorer is None:
        _scorer = FallbackScorer()
    return _scorer
