"""Resume-to-job matching pipeline."""

from .ai_response import ParsedReply, parse_ai_reply
from .fallback_scorer import (
    FallbackScorer,
    ScoreComponents,
    get_fallback_scorer,
    no_job_result,
    no_profile_result,
    no_resume_result,
)
from .orchestrator import CachedMatch, MatchOrchestrator, MatchOutcome
from .prompts import build_match_prompt
from .terminal_log import TerminalLogGenerator

__all__ = [
    "ParsedReply",
    "parse_ai_reply",
    "FallbackScorer",
    "ScoreComponents",
    "get_fallback_scorer",
    "no_job_result",
    "no_profile_result",
    "no_resume_result",
    "CachedMatch",
    "MatchOrchestrator",
    "MatchOutcome",
    "build_match_prompt",
    "TerminalLogGenerator",
]
