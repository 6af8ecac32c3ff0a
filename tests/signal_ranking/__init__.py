"""
Tests for the Signal Ranking package.

This package contains tests for:
- Configuration and weight validation
- Signal providers and their heuristics
- Concurrent orchestration, timeouts and incidents
- Composite scoring, flags and breakdown text
- Paced batch evaluation and cancellation
- Fallback selection ladder
- End-to-end ranking and persistence
"""
