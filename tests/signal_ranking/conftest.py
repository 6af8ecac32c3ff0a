"""
Shared fixtures for signal ranking tests.
"""

import pytest

from signal_ranking.config import BatchConfig, OrchestratorConfig
from signal_ranking.models import Candidate, ScoringRequest

from .helpers import NOW


# ============================================================
# FIXTURES
# ============================================================

@pytest.fixture
def fixed_clock():
    """Clock returning a fixed aware UTC time."""
    return lambda: NOW


@pytest.fixture
def fast_orchestrator_config():
    """Short deadlines so timeout tests finish quickly."""
    return OrchestratorConfig(
        provider_timeout_seconds=0.05,
        collective_timeout_seconds=1.0,
    )


@pytest.fixture
def unpaced_batch_config():
    """Batch config without pauses."""
    return BatchConfig(chunk_size=2, inter_chunk_delay_seconds=0)


@pytest.fixture
def request_engineering():
    return ScoringRequest(required_skills=("Python", "SQL"), domain="engineering")


@pytest.fixture
def candidates():
    """Five candidates with distinct ids."""
    return [Candidate(id=f"cand-{i}", name=f"Company {i}", external_id=f"org-{i}") for i in range(1, 6)]
