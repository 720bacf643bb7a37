"""
Resume-to-job matching engine.

Resolves a candidate's resume, extracts its text, scores it locally and
against a hosted language model under a fixed time budget, and returns a
single MatchResult with provenance.
"""

__app_name__ = "matchengine"
__version__ = "0.1.0"
