"""Domain models for the Collateral Underwriter.

The risk policy document mixes camelCase keys (``maxLTV``, ``lastUpdated``)
with snake_case sections (``market_conditions``, ``dry_run``). Attributes are
snake_case everywhere and the document keys are carried as aliases, so a
policy can be validated straight from ``yaml.safe_load`` output and an
assessment can be dumped back with ``model_dump(by_alias=True)``.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

# ── Shared types ───────────────────────────────────────────────────────────────

DurationBucket = Literal["short_term", "medium_term", "long_term"]


def _parse_eth_amount(value: Any) -> Any:
    """Accept ``12.5``, ``"12.5"`` or ``"12.5 ETH"`` for amount fields."""
    if isinstance(value, str):
        text = value.strip()
        if text.upper().endswith("ETH"):
            text = text[:-3].strip()
        try:
            return float(text)
        except ValueError:
            raise ValueError(f"expected an amount such as '50 ETH', got {value!r}") from None
    return value


EthAmount = Annotated[float, BeforeValidator(_parse_eth_amount), Field(ge=0)]


class _PolicyModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)


class PolicyState(str, Enum):
    LOADED = "loaded"
    FALLBACK = "fallback"


# ── Risk Policy ────────────────────────────────────────────────────────────────

class PolicyMetadata(_PolicyModel):
    name: str
    version: str
    last_updated: str = Field(alias="lastUpdated")
    description: str = ""

    @field_validator("last_updated", mode="before")
    @classmethod
    def _date_to_str(cls, value: Any) -> Any:
        # YAML turns an unquoted 2025-01-15 into a date
        if isinstance(value, date):
            return value.isoformat()
        return value


class GlobalPolicy(_PolicyModel):
    max_exposure_percentage: float = Field(alias="maxExposurePercentage", ge=0, le=100)
    max_daily_volume: EthAmount = Field(alias="maxDailyVolume")
    reserve_ratio: float = Field(alias="reserveRatio", ge=0, le=1)
    default_dry_run: bool = Field(alias="defaultDryRun")


class CollectionPolicy(_PolicyModel):
    address: str = Field(min_length=1, description="Collateral contract address")
    tier: str
    max_ltv: float = Field(alias="maxLTV", ge=0, le=1)
    base_apr: float = Field(alias="baseAPR", gt=0)
    max_loan_amount: EthAmount = Field(alias="maxLoanAmount")
    required_liquidity: EthAmount = Field(alias="requiredLiquidity")


class TierPolicy(_PolicyModel):
    """Risk classification metadata. Informational, not enforced by the assessor."""
    description: str = ""
    min_floor_price: EthAmount = Field(alias="minFloorPrice")
    max_default_rate: float = Field(alias="maxDefaultRate", ge=0, le=1)
    min_volume_24h: EthAmount = Field(alias="minVolume24h")


class DurationPolicy(_PolicyModel):
    risk_multiplier: float = Field(default=1.0, alias="riskMultiplier", gt=0)
    apr_bonus: float = Field(default=0.0, alias="aprBonus")


class MarketConditionPolicy(_PolicyModel):
    """Deltas applied to base terms while a market regime is active.

    Bonus/penalty and discount/premium are magnitudes; the plain
    ``*Adjustment`` keys are signed.
    """
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, allow_inf_nan=False, extra="forbid"
    )

    ltv_bonus: float = Field(default=0.0, alias="ltvBonus")
    ltv_penalty: float = Field(default=0.0, alias="ltvPenalty")
    ltv_adjustment: float = Field(default=0.0, alias="ltvAdjustment")
    apr_discount: float = Field(default=0.0, alias="aprDiscount")
    apr_premium: float = Field(default=0.0, alias="aprPremium")
    apr_adjustment: float = Field(default=0.0, alias="aprAdjustment")

    @property
    def ltv_delta(self) -> float:
        return self.ltv_bonus - self.ltv_penalty + self.ltv_adjustment

    @property
    def apr_delta(self) -> float:
        return self.apr_premium - self.apr_discount + self.apr_adjustment


class SimulationOutcomes(_PolicyModel):
    success_rate: float = Field(ge=0, le=1)
    default_rate: float = Field(ge=0, le=1)
    avg_repayment_days: float = Field(gt=0)


class DryRunConfig(_PolicyModel):
    enabled: bool
    mode: Literal["simulation", "validation", "disabled"] = "simulation"
    log_level: Literal["minimal", "detailed", "verbose"] = "minimal"
    simulation_outcomes: SimulationOutcomes


class BankingRule(_PolicyModel):
    """Qualitative heuristic annotation. Extra keys are kept as-is."""
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, allow_inf_nan=False, extra="allow"
    )

    rule: str
    threshold: Optional[float] = None
    max_concentration: Optional[float] = None
    min_cash_ratio: Optional[float] = None
    risk_premium_per_tier: Optional[dict[str, float]] = None


class RiskPolicy(_PolicyModel):
    metadata: PolicyMetadata
    global_: GlobalPolicy = Field(alias="global")
    collections: dict[str, CollectionPolicy]
    tiers: dict[str, TierPolicy]
    durations: dict[DurationBucket, DurationPolicy] = Field(default_factory=dict)
    market_conditions: dict[str, MarketConditionPolicy] = Field(default_factory=dict)
    dry_run: DryRunConfig
    banking_wisdom: list[BankingRule] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_tier_references(self) -> "RiskPolicy":
        for key, collection in self.collections.items():
            if collection.tier not in self.tiers:
                raise ValueError(
                    f"collections.{key}.tier references undefined tier {collection.tier!r}"
                )
        return self

    @property
    def dry_run_active(self) -> bool:
        return self.global_.default_dry_run or self.dry_run.enabled

    def find_collection(self, address: str) -> Optional[CollectionPolicy]:
        """Case-insensitive lookup of a whitelisted collection by contract address."""
        wanted = address.lower()
        for collection in self.collections.values():
            if collection.address.lower() == wanted:
                return collection
        return None

    def with_dry_run(self, enabled: bool) -> "RiskPolicy":
        """Return a copy of this policy with ``dry_run.enabled`` replaced."""
        return self.model_copy(
            update={"dry_run": self.dry_run.model_copy(update={"enabled": enabled})}
        )


# ── Loan Requests & Assessments ────────────────────────────────────────────────

class LoanRequest(BaseModel):
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, allow_inf_nan=False, coerce_numbers_to_str=True
    )

    contract_address: str = Field(alias="contractAddress", min_length=1)
    token_id: str = Field(alias="tokenId")
    requested_amount: float = Field(alias="requestedAmount", gt=0, description="Loan amount in ETH")
    duration: int = Field(gt=0, description="Loan duration in days")
    collection_name: Optional[str] = Field(default=None, alias="collectionName")
    floor_price: Optional[float] = Field(default=None, alias="floorPrice", gt=0)


class SimulatedOutcome(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    would_succeed: bool = Field(alias="wouldSucceed")
    projected_repayment: float = Field(alias="projectedRepayment")
    risk_factors: list[str] = Field(alias="riskFactors")


class RiskAssessment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    approved: bool
    recommended_ltv: float = Field(alias="recommendedLTV", ge=0, le=0.85)
    adjusted_apr: float = Field(alias="adjustedAPR", ge=0.10)
    max_loan_amount: float = Field(alias="maxLoanAmount")
    risk_score: int = Field(alias="riskScore", ge=0)
    tier: str
    reasoning: list[str] = Field(min_length=1)
    dry_run: bool = Field(alias="dryRun")
    simulated_outcome: Optional[SimulatedOutcome] = Field(default=None, alias="simulatedOutcome")


class StatusSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, allow_inf_nan=False)

    policy_name: str = Field(alias="policyName")
    policy_version: str = Field(alias="policyVersion")
    state: PolicyState
    dry_run_enabled: bool = Field(alias="dryRunEnabled")
    global_dry_run: bool = Field(alias="globalDryRun")
    supported_collections_count: int = Field(alias="supportedCollectionsCount")
    reserve_ratio: float = Field(alias="reserveRatio")
    max_daily_volume: float = Field(alias="maxDailyVolume")
