"""
Application-wide constants for the matching engine.

This module contains all constant values used throughout the application.
Modify these values to customize behavior without changing code logic.
"""

from typing import Final


# =============================================================================
# Application Constants
# =============================================================================

APP_NAME: Final[str] = "matchengine"
APP_DISPLAY_NAME: Final[str] = "Resume-to-Job Matching Engine"
VERSION: Final[str] = "0.1.0"


# =============================================================================
# File Types
# =============================================================================

PDF_MAGIC: Final[bytes] = b"%PDF"

# Recognised but not parsed; these get an "unsupported" result.
KNOWN_UNSUPPORTED_FORMATS: Final[tuple[str, ...]] = (".doc", ".docx")

UNSUPPORTED_FORMAT_MESSAGE: Final[str] = "Unsupported file format. Please upload your resume as a PDF."


# =============================================================================
# NLP Constants
# =============================================================================

# Applied to lowercased text before tokenizing.
SKILL_SYNONYMS: Final[dict[str, str]] = {
    r"react\.?js": "react",
    r"node\.?js": "node",
    r"vue\.?js": "vue",
    r"next\.?js": "next",
    r"express\.?js": "express",
    r"nest\.?js": "nestjs",
    r"postgresql": "postgres",
    r"k8s": "kubernetes",
}

# Tokens are runs of these characters; everything else separates.
TOKEN_PATTERN: Final[str] = r"[a-z0-9+#.]+"

# Sentences mentioning these words are mined for candidate skills.
SKILL_SENTENCE_MARKERS: Final[tuple[str, ...]] = ("skills", "technologies", "stack")

# Used when a job lists no explicit skills or requirements.
TECH_KEYWORDS: Final[tuple[str, ...]] = (
    "javascript", "typescript", "react", "node", "express", "mongodb", "postgres",
    "sql", "python", "django", "flask", "java", "spring", "c++", "c#", ".net",
    "go", "golang", "kubernetes", "docker", "aws", "azure", "gcp", "html", "css",
    "tailwind", "vue", "angular", "next", "nestjs", "rest", "graphql",
    "microservices", "redis", "rabbitmq", "kafka", "ci", "cd", "git", "jest",
    "testing", "storybook", "pandas", "numpy", "ml", "machine", "learning",
    "tensorflow", "pytorch", "nlp", "webpack", "vite", "babel", "sass", "less",
)

YEARS_PATTERN: Final[str] = r"(\d+)\+?\s*(?:years|year|yrs|yr)\b"


# =============================================================================
# Scoring Constants
# =============================================================================

FALLBACK_SCORING_WEIGHTS: Final[dict[str, float]] = {
    "skills_match": 0.70,
    "experience_match": 0.20,
    "keyword_match": 0.10,
}

NEUTRAL_EXPERIENCE_SCORE: Final[float] = 50.0

# score > RECOMMEND_ABOVE -> recommend; score >= CONSIDER_FROM -> consider
RECOMMEND_ABOVE: Final[int] = 75
CONSIDER_FROM: Final[int] = 45

MAX_SKILLS_REPORTED: Final[int] = 20
MAX_SKILL_SENTENCES: Final[int] = 3
RECENT_EXPERIENCE_ENTRIES: Final[int] = 3
MAX_EVIDENCE_SNIPPETS: Final[int] = 3
EVIDENCE_SNIPPET_CHARS: Final[int] = 160
EVIDENCE_SENTENCE_WINDOW: Final[int] = 50

RATIONALE_TEMPLATES: Final[dict[str, str]] = {
    "recommend": "Strong overlap with job skills and experience.",
    "consider": "Partial match on skills and keywords.",
    "not_recommended": "Limited skills overlap for this role.",
}

ADVICE_TEMPLATES: Final[dict[str, str]] = {
    "recommend": "Strong fit - consider applying soon.",
    "consider": "Consider improving missing skills and reapplying.",
    "not_recommended": "Target roles that better match your skills.",
}


# =============================================================================
# AI Provider Constants
# =============================================================================

OPENROUTER_KEY_PREFIX: Final[str] = "sk-or-"
OPENROUTER_BASE_URL: Final[str] = "https://openrouter.ai/api/v1"
OPENROUTER_DEFAULT_MODEL: Final[str] = "deepseek/deepseek-r1-0528:free"
DEEPSEEK_BASE_URL: Final[str] = "https://api.deepseek.com/v1"
DEEPSEEK_DEFAULT_MODEL: Final[str] = "deepseek-chat"

AI_DEFAULT_SCORE: Final[int] = 50
AI_DEFAULTS: Final[dict[str, object]] = {
    "summary": "Analysis completed successfully.",
    "strengths": ["Profile reviewed"],
    "weaknesses": ["Areas for improvement identified"],
    "recommendations": ["Continue professional development"],
}
MAX_AI_EVIDENCE: Final[int] = 10


# =============================================================================
# Resume Access Constants
# =============================================================================

SIGNED_URL_MIN_SECONDS: Final[int] = 30
SIGNED_URL_MAX_SECONDS: Final[int] = 600
SIGNED_URL_DEFAULT_SECONDS: Final[int] = 120

RESUME_FETCH_HEADERS: Final[dict[str, str]] = {
    "User-Agent": "matchengine/0.1",
    "Accept": "application/pdf",
}


# =============================================================================
# Persistence Constants
# =============================================================================

RESULT_LIST_LIMIT: Final[int] = 50
SNAPSHOT_RESUME_CHARS: Final[int] = 2000


# =============================================================================
# Terminal Log Constants
# =============================================================================

# (base ms, spread ms) per pipeline step
STEP_DURATIONS_MS: Final[dict[str, tuple[int, int]]] = {
    "fetch_pdf": (80, 300),
    "extract_text": (300, 1200),
    "call_llm": (500, 2500),
    "score": (20, 80),
    "render": (10, 50),
}
DEFAULT_STEP_DURATION_MS: Final[tuple[int, int]] = (50, 200)
STEP_JITTER_MS: Final[int] = 30


# =============================================================================
# Informational Results
# =============================================================================

NO_PROFILE_RESULT: Final[dict[str, object]] = {
    "summary": "No user profile found. Please complete your profile and upload your resume.",
    "weaknesses": ["No profile data"],
    "recommendations": ["Complete your profile and upload your resume in PDF format."],
}

NO_JOB_RESULT: Final[dict[str, object]] = {
    "summary": "Job not found. Please select a valid job.",
    "weaknesses": ["No job data"],
    "recommendations": ["Select a valid job to analyze match."],
}

NO_RESUME_RESULT: Final[dict[str, object]] = {
    "summary": "Resume not uploaded. Upload your resume to get a match score.",
    "weaknesses": ["Resume not uploaded"],
    "recommendations": ["Upload a detailed PDF resume for better analysis."],
}

EMPTY_RESUME_ADVICE: Final[str] = "Upload a detailed PDF resume for better analysis."

# Used when the AI reply holds a score but no parseable JSON.
RECOVERED_SCORE_TEXTS: Final[dict[str, object]] = {
    "summary_with_resume": "resume content available",
    "summary_without_resume": "limited resume data",
    "strengths_with_resume": ["Resume uploaded", "Profile data available"],
    "strengths_without_resume": ["Profile partially complete"],
    "weaknesses_with_resume": ["Detailed analysis pending"],
    "weaknesses_without_resume": ["Resume not uploaded", "Profile incomplete"],
    "recommendations": [
        "Upload a detailed resume",
        "Complete profile sections",
        "Apply to relevant positions",
    ],
}

PIPELINE_STEPS: Final[tuple[str, ...]] = (
    "fetch_pdf",
    "extract_text",
    "call_llm",
    "score",
    "render",
)
