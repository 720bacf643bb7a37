"""
Core business logic for the matching engine.

Submodules:
- cache: TTL cache service
- retry: Retry policy and async retry combinator
- exceptions: Request-level error taxonomy
- matching: Fallback scorer, AI reply parsing and the match orchestrator
"""
