"""
Underwriter service — the in-process API consumed by the hosting layer.

Each instance owns its own policy store and random source; there is no shared
module-level instance, so independent policies can be assessed side by side.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import structlog

from .config import Settings
from .models import LoanRequest, PolicyState, RiskAssessment, StatusSummary
from .policy_store import PolicySource, PolicyStore
from .risk_assessor import RiskAssessor
from .simulation import SimulationEngine
from .status import StatusReporter

logger = structlog.get_logger(__name__)


class Underwriter:
    """Policy-driven loan risk assessment service."""

    def __init__(
        self,
        policy_source: Optional[PolicySource] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        market_regime: Optional[str] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or Settings()
        self.store = PolicyStore(policy_source if policy_source is not None else settings.policy_path)
        self.simulation = SimulationEngine(
            rng=rng,
            seed=seed if seed is not None else settings.simulation_seed,
        )
        self.assessor = RiskAssessor(
            self.store,
            self.simulation,
            market_regime=market_regime or settings.market_regime,
        )
        self.reporter = StatusReporter(self.store)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Underwriter":
        return cls(settings=settings)

    @property
    def policy_state(self) -> PolicyState:
        return self.store.state

    def assess_loan(
        self,
        request: LoanRequest,
        market_regime: Optional[str] = None,
    ) -> RiskAssessment:
        return self.assessor.assess_loan(request, market_regime=market_regime)

    def get_status(self) -> StatusSummary:
        return self.reporter.get_status()

    def set_dry_run(self, enabled: bool) -> None:
        """Toggle the policy-level dry-run flag.

        The global ``defaultDryRun`` still forces dry-run when set, and a
        reload restores the document's value.
        """
        self.store.set_dry_run(enabled)
        logger.info("dry_run_toggled", enabled=enabled)

    def reload_policy(self, source: Optional[PolicySource] = None) -> None:
        snapshot = self.store.reload(source)
        if snapshot.state is PolicyState.FALLBACK:
            logger.warning("policy_reload_fell_back", source=str(self.store.source))
