"""
Dry-run simulation — projects an advisory outcome for an assessed loan.

Nothing here moves funds. ``would_succeed`` is a single Bernoulli draw against
the policy's success rate discounted by the risk score, taken from an injected
numpy Generator so runs can be reproduced.
"""

from typing import Optional

import numpy as np

from .models import LoanRequest, SimulatedOutcome, SimulationOutcomes

# Success rate lost at a risk score of 100
MAX_RISK_DISCOUNT = 0.3


class SimulationEngine:
    """Advisory loan outcome projector."""

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def simulate(
        self,
        request: LoanRequest,
        apr: float,
        risk_score: int,
        outcomes: SimulationOutcomes,
    ) -> SimulatedOutcome:
        success_rate = outcomes.success_rate - (risk_score / 100) * MAX_RISK_DISCOUNT

        # Simple interest over the loan term
        projected_repayment = request.requested_amount * (1 + apr * (request.duration / 365))

        return SimulatedOutcome(
            would_succeed=bool(self.rng.random() < success_rate),
            projected_repayment=projected_repayment,
            risk_factors=[
                f"{risk_score}/100 risk score",
                f"{success_rate * 100:.1f}% projected success rate",
                f"{outcomes.avg_repayment_days:g} day average repayment period",
            ],
        )
