"""Built-in signal providers."""

from .contact_quality import ContactQualityProvider
from .department_fit import DepartmentFitProvider
from .hiring import (
    ActiveHiringProvider,
    calculate_hiring_score,
    get_hiring_stats,
    has_active_jobs,
)
from .job_skills import JobSkillsMatchProvider
from .market_intel import MarketIntelligenceProvider

__all__ = [
    "JobSkillsMatchProvider",
    "MarketIntelligenceProvider",
    "DepartmentFitProvider",
    "ContactQualityProvider",
    "ActiveHiringProvider",
    "calculate_hiring_score",
    "has_active_jobs",
    "get_hiring_stats",
]
