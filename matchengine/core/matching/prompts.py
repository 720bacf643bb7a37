"""
Prompt construction for the AI match analysis.
"""

import json
from typing import Optional

from matchengine.data.models import CandidateProfile, JobPosting


MATCH_PROMPT_TEMPLATE = """You are an AI job matching expert. Analyze the match between a candidate and a job position.

CANDIDATE PROFILE:
Professional Bio: {bio}
Skills: {skills}
Work Experience: {experience}
Resume Text: {resume_text}

JOB REQUIREMENTS:
Title: {title}
Company: {company}
Description: {description}
Requirements: {requirements}
Required Skills: {job_skills}
Experience Level: {experience_level}

Analyze the match and provide a JSON response with exactly this structure:
{{
  "fitScore": <number from 0 to 100>,
  "summary": "<2-3 sentence summary of the match>",
  "strengths": ["<matching skill 1>", "<matching skill 2>", "<matching experience>"],
  "weaknesses": ["<missing skill 1>", "<gap in experience>"],
  "recommendations": ["<specific advice 1>", "<specific advice 2>"],
  "evidence": ["<short resume quote supporting the score>"]
}}

Focus on technical skills match, experience level alignment, and job requirements coverage.
"""


def _dump(value) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def build_match_prompt(
    job: JobPosting,
    profile: Optional[CandidateProfile],
    resume_text: str,
    resume_chars: int = 2000,
) -> str:
    """
    Render the match analysis prompt.

    Args:
        job: Job posting snapshot
        profile: Candidate profile, if any
        resume_text: Extracted resume text; truncated to ``resume_chars``
        resume_chars: Maximum resume characters sent to the provider
    """
    if profile is not None:
        bio = profile.professional_bio.model_dump(by_alias=True)
        skills = profile.skills.model_dump(by_alias=True)
        experience = [e.model_dump(by_alias=True) for e in profile.experience_history]
    else:
        bio, skills, experience = {}, {}, []

    return MATCH_PROMPT_TEMPLATE.format(
        bio=_dump(bio),
        skills=_dump(skills),
        experience=_dump(experience),
        resume_text=(resume_text or "")[:resume_chars],
        title=job.title,
        company=job.company,
        description=job.description,
        requirements=job.requirements,
        job_skills=job.skills,
        experience_level=job.experience_level,
    )
