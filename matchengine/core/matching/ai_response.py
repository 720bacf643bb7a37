"""
Parsing of the AI provider's match analysis reply.

Replies are expected to hold one JSON object, but models wrap it in code
fences or prose, omit fields, or return strings where numbers belong.
``parse_ai_reply`` turns whatever came back into a ``MatchResult`` with
provenance ``ai``, or None when nothing usable was found.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from matchengine.data.models import MatchResult, MatchSource, Recommendation
from matchengine.utils.constants import (
    AI_DEFAULT_SCORE,
    AI_DEFAULTS,
    MAX_AI_EVIDENCE,
    RECOVERED_SCORE_TEXTS,
)
from matchengine.utils.logger import get_logger

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"```[a-zA-Z]*\n?")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_SCORE_RES = (
    re.compile(r"score[\"'\s:=]*(\d{1,3})", re.IGNORECASE),
    re.compile(r"(\d{1,3})\s*%"),
)


@dataclass
class ParsedReply:
    """A parsed reply and how it was obtained."""

    result: MatchResult
    payload: Optional[dict[str, Any]]
    recovered: bool = False


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").replace("```", "").strip()


def find_json_object(text: str) -> Optional[dict[str, Any]]:
    """
    First JSON object in ``text``.

    Decodes from the first brace so trailing prose is ignored; falls back
    to the widest brace-delimited span.
    """
    cleaned = strip_code_fences(text)
    start = cleaned.find("{")
    if start < 0:
        return None

    try:
        value, _ = json.JSONDecoder().raw_decode(cleaned[start:])
        if isinstance(value, dict):
            return value
    except json.JSONDecodeError:
        pass

    match = _OBJECT_RE.search(cleaned)
    if match:
        try:
            value = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None
        if isinstance(value, dict):
            return value
    return None


def _clamp_score(value: Any) -> int:
    if isinstance(value, bool):
        return AI_DEFAULT_SCORE
    if isinstance(value, (int, float)):
        return int(round(max(0.0, min(100.0, float(value)))))
    return AI_DEFAULT_SCORE


def _string_list(value: Any, default: list[str]) -> list[str]:
    if not isinstance(value, list):
        return list(default)
    return [str(item) for item in value if item is not None and str(item).strip()]


def result_from_payload(payload: dict[str, Any]) -> MatchResult:
    """Validate a decoded payload, filling defaults for missing fields."""
    score = _clamp_score(payload.get("fitScore"))
    summary = payload.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = AI_DEFAULTS["summary"]

    strengths = _string_list(payload.get("strengths"), AI_DEFAULTS["strengths"])
    weaknesses = _string_list(payload.get("weaknesses"), AI_DEFAULTS["weaknesses"])
    recommendations = _string_list(
        payload.get("recommendations"), AI_DEFAULTS["recommendations"]
    )
    evidence = _string_list(payload.get("evidence"), [])[:MAX_AI_EVIDENCE]

    experience_match = payload.get("experienceMatch")
    if not isinstance(experience_match, str):
        experience_match = ""

    return MatchResult(
        score=score,
        matched_skills=strengths,
        missing_skills=weaknesses,
        summary=summary,
        recommendation=Recommendation.from_score(score),
        source=MatchSource.AI,
        evidence=evidence,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendations=recommendations,
        experience_match=experience_match,
    )


def recover_score(text: str) -> Optional[int]:
    """A ``score: N`` or ``N%`` figure from free text, clamped to 0-100."""
    for pattern in _SCORE_RES:
        match = pattern.search(text or "")
        if match:
            return max(0, min(100, int(match.group(1))))
    return None


def recovered_result(score: int, job_title: str, has_resume: bool) -> MatchResult:
    """Generic result around a score salvaged from an unparseable reply."""
    key = "with_resume" if has_resume else "without_resume"
    texts = RECOVERED_SCORE_TEXTS
    summary = (
        f"Analysis completed. The candidate's profile shows "
        f"{texts['summary_' + key]} for {job_title or 'this'} position."
    )
    return MatchResult(
        score=score,
        summary=summary,
        recommendation=Recommendation.from_score(score),
        source=MatchSource.AI,
        strengths=list(texts["strengths_" + key]),
        weaknesses=list(texts["weaknesses_" + key]),
        recommendations=list(texts["recommendations"]),
    )


def parse_ai_reply(text: str, job_title: str = "", has_resume: bool = True) -> Optional[ParsedReply]:
    """
    Turn a raw completion into a result.

    Returns:
        ParsedReply, or None when the reply holds neither a JSON object nor
        a recognisable score
    """
    payload = find_json_object(text)
    if payload is not None:
        return ParsedReply(result=result_from_payload(payload), payload=payload)

    score = recover_score(text)
    if score is None:
        logger.warning(f"Unusable AI reply: {(text or '')[:200]!r}")
        return None

    logger.warning(f"AI reply held no JSON; recovered score {score}")
    return ParsedReply(
        result=recovered_result(score, job_title, has_resume),
        payload=None,
        recovered=True,
    )
