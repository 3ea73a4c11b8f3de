from .models import (
    CollectionPolicy,
    LoanRequest,
    PolicyState,
    RiskAssessment,
    RiskPolicy,
    SimulatedOutcome,
    StatusSummary,
)
from .policy_store import (
    PolicyError,
    PolicyLoadError,
    PolicyParseError,
    PolicyStore,
    fallback_policy,
    parse_policy,
)
from .risk_assessor import RiskAssessor, duration_bucket
from .simulation import SimulationEngine
from .status import StatusReporter
from .underwriter import Underwriter

__all__ = [
    "CollectionPolicy",
    "LoanRequest",
    "PolicyError",
    "PolicyLoadError",
    "PolicyParseError",
    "PolicyState",
    "PolicyStore",
    "RiskAssessment",
    "RiskAssessor",
    "RiskPolicy",
    "SimulatedOutcome",
    "SimulationEngine",
    "StatusReporter",
    "StatusSummary",
    "Underwriter",
    "duration_bucket",
    "fallback_policy",
    "parse_policy",
]
