"""
HTTP boundary for the energy metrics API.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-009)
"""
