"""
Energy metrics services: timeframe resolution and energy aggregation.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-003)
"""
