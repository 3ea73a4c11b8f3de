"""
Risk Assessor — underwrites NFT-collateralized loan requests against the
active risk policy.

Pipeline (always runs to completion, even for non-whitelisted collateral):
1. Collection whitelist lookup (case-insensitive contract address)
2. Duration bucket → APR bonus
3. Market regime → LTV / APR deltas
4. Hard bounds: LTV ceiling 85%, APR floor 10%
5. Amount and LTV checks → risk score penalties
6. Approval + optional dry-run simulation

Each factor is appended to ``reasoning`` in evaluation order; that list is the
audit trail for the decision.
"""

from typing import Optional

import structlog

from .models import DurationPolicy, LoanRequest, MarketConditionPolicy, RiskAssessment
from .policy_store import PolicyStore
from .simulation import SimulationEngine

logger = structlog.get_logger(__name__)

MAX_LTV_CEILING = 0.85
MIN_APR_FLOOR = 0.10
LOAN_AMOUNT_BUFFER = 1.1
APPROVAL_THRESHOLD = 75

# Terms used when the collateral is not whitelisted
UNKNOWN_TIER = "unknown"
DEFAULT_MAX_LTV = 0.50
DEFAULT_BASE_APR = 0.25
DEFAULT_MAX_LOAN_AMOUNT = 10.0

PENALTY_UNLISTED_COLLECTION = 50
PENALTY_AMOUNT_OVER_MAX = 25
PENALTY_LTV_OVER_RECOMMENDED = 30

THRESHOLD_NOTICE = "Risk score exceeds acceptable threshold per Medici banking principles"
DRY_RUN_NOTICE = "🔄 DRY RUN MODE: No real transaction will be executed"

_NEUTRAL_MARKET = MarketConditionPolicy()
_DEFAULT_DURATION = DurationPolicy()


def duration_bucket(days: int) -> str:
    if days <= 7:
        return "short_term"
    if days <= 30:
        return "medium_term"
    return "long_term"


def _eth(amount: float) -> str:
    # shortest round-trip form, whole amounts without a trailing ".0"
    return str(int(amount)) if amount.is_integer() else repr(amount)


class RiskAssessor:
    """Deterministic, policy-driven loan underwriter."""

    def __init__(
        self,
        store: PolicyStore,
        simulation: SimulationEngine,
        market_regime: str = "neutral",
    ) -> None:
        self.store = store
        self.simulation = simulation
        self.market_regime = market_regime

    def assess_loan(
        self,
        request: LoanRequest,
        market_regime: Optional[str] = None,
    ) -> RiskAssessment:
        """Assess a loan request against a single snapshot of the active policy."""
        policy = self.store.policy
        regime = market_regime or self.market_regime

        reasoning: list[str] = []
        risk_score = 0

        # 1. Collection whitelist
        collection = policy.find_collection(request.contract_address)
        if collection is None:
            tier = UNKNOWN_TIER
            risk_score += PENALTY_UNLISTED_COLLECTION
            reasoning.append(f"Collection {request.contract_address} not in approved whitelist")
            base_max_ltv = DEFAULT_MAX_LTV
            base_apr = DEFAULT_BASE_APR
            policy_max_loan = DEFAULT_MAX_LOAN_AMOUNT
        else:
            tier = collection.tier
            reasoning.append(f"Collection approved as {tier} tier")
            base_max_ltv = collection.max_ltv
            base_apr = collection.base_apr
            policy_max_loan = collection.max_loan_amount

        # 2. Duration adjustment
        duration_policy = policy.durations.get(duration_bucket(request.duration), _DEFAULT_DURATION)

        # 3. Market conditions
        market = policy.market_conditions.get(regime)
        if market is None:
            logger.warning("market_regime_not_in_policy", regime=regime)
            market = _NEUTRAL_MARKET

        # 4-6. Terms with hard bounds
        recommended_ltv = max(0.0, min(base_max_ltv + market.ltv_delta, MAX_LTV_CEILING))
        adjusted_apr = max(base_apr + duration_policy.apr_bonus + market.apr_delta, MIN_APR_FLOOR)
        max_loan_amount = min(policy_max_loan, request.requested_amount * LOAN_AMOUNT_BUFFER)

        # 7. Amount check
        if request.requested_amount > max_loan_amount:
            risk_score += PENALTY_AMOUNT_OVER_MAX
            reasoning.append(
                f"Requested amount ({_eth(request.requested_amount)} ETH) exceeds "
                f"policy maximum ({_eth(max_loan_amount)} ETH)"
            )

        # 8. LTV check, only when a floor price is known
        if request.floor_price is not None:
            requested_ltv = request.requested_amount / request.floor_price
            if requested_ltv > recommended_ltv:
                risk_score += PENALTY_LTV_OVER_RECOMMENDED
                reasoning.append(
                    f"Requested LTV ({requested_ltv * 100:.1f}%) exceeds "
                    f"recommended ({recommended_ltv * 100:.1f}%)"
                )

        # 9. Approval
        if risk_score > APPROVAL_THRESHOLD:
            reasoning.append(THRESHOLD_NOTICE)
        approved = collection is not None and risk_score < APPROVAL_THRESHOLD

        # 10. Dry run
        dry_run = policy.dry_run_active
        simulated_outcome = None
        if dry_run:
            reasoning.append(DRY_RUN_NOTICE)
            simulated_outcome = self.simulation.simulate(
                request, adjusted_apr, risk_score, policy.dry_run.simulation_outcomes
            )

        logger.info(
            "loan_assessed",
            contract=request.contract_address,
            token_id=request.token_id,
            tier=tier,
            risk_score=risk_score,
            approved=approved,
            dry_run=dry_run,
            policy_version=policy.metadata.version,
        )

        return RiskAssessment(
            approved=approved,
            recommended_ltv=recommended_ltv,
            adjusted_apr=adjusted_apr,
            max_loan_amount=max_loan_amount,
            risk_score=risk_score,
            tier=tier,
            reasoning=reasoning,
            dry_run=dry_run,
            simulated_outcome=simulated_outcome,
        )
