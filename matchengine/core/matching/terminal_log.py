"""
Synthetic terminal-style trace of a match run.

The trace is for display and audit: step durations are derived from a
hash of the seed, step name and position, not measured. The same input
always renders the same text.
"""

import hashlib
from typing import Any, Iterable, Optional

from matchengine.utils.constants import (
    DEFAULT_STEP_DURATION_MS,
    STEP_DURATIONS_MS,
    STEP_JITTER_MS,
)

# Provider-specific step names render with the generic timing profile.
_STEP_ALIASES = {
    "call_deepseek": "call_llm",
    "call_gemini": "call_llm",
}


def _format_seconds(ms: int) -> str:
    return f"{ms / 1000:.3f}"


def _first_list(results: dict[str, Any], *keys: str) -> list:
    for key in keys:
        value = results.get(key)
        if isinstance(value, (list, tuple)):
            return list(value)
    return []


class TerminalLogGenerator:
    """Renders the pipeline trace stored with each match record."""

    def __init__(
        self,
        durations: Optional[dict[str, tuple[int, int]]] = None,
        jitter_ms: int = STEP_JITTER_MS,
    ):
        self.durations = durations or STEP_DURATIONS_MS
        self.jitter_ms = jitter_ms

    def step_duration_ms(self, seed: str, step: str, index: int) -> int:
        """Deterministic duration for one step, within its profile's range."""
        base, spread = self.durations.get(
            _STEP_ALIASES.get(step, step), DEFAULT_STEP_DURATION_MS
        )
        digest = hashlib.sha256(f"{seed}:{step}:{index}".encode("utf-8")).digest()
        value = int.from_bytes(digest[:8], "big")
        jitter = (value >> 32) % self.jitter_ms if self.jitter_ms > 0 else 0
        return base + value % max(1, spread) + jitter

    def generate(
        self,
        resume_source: str,
        job_title: str,
        job_id: Any,
        steps: Iterable[str],
        results: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Render the trace.

        Args:
            resume_source: Shown on the ``FETCH:`` line of ``fetch_pdf``
            job_title: Seeds the timings when there is no job id
            job_id: Seeds the timings
            steps: Step names in pipeline order
            results: ``fitScore``/``matchedSkills``/``missingSkills`` (short
                keys ``score``/``matched``/``missing`` are also read)

        Returns:
            Newline-joined trace text
        """
        results = results or {}
        seed = str(job_id) if job_id not in (None, "") else str(job_title or "")

        lines = ["START: AI Resume Matching"]
        total_ms = 0
        for index, step in enumerate(steps):
            step = str(step)
            lines.append(f"STEP START: {step}")
            if step == "fetch_pdf":
                lines.append(f"FETCH: {resume_source}")

            ms = self.step_duration_ms(seed, step, index)
            total_ms += ms
            lines.append(f"STEP END: {step} - duration: {_format_seconds(ms)}s")

        fit = results.get("fitScore", results.get("score", results.get("matchScore", 0)))
        try:
            fit = int(fit or 0)
        except (TypeError, ValueError):
            fit = 0
        matched = _first_list(results, "matchedSkills", "matched")
        missing = _first_list(results, "missingSkills", "missing")

        lines.append(f"RESULT: fitScore={fit}")
        lines.append(f"RESULT: matchedSkills={','.join(map(str, matched)) if matched else 'NONE'}")
        lines.append(f"RESULT: missingSkills={','.join(map(str, missing)) if missing else 'NONE'}")
        lines.append(f"TOTAL: {_format_seconds(total_ms)}s")
        return "\n".join(lines)
