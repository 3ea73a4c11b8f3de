"""
Policy Store — loads, validates and publishes the active risk policy.

The active policy is an immutable snapshot. Reloads and dry-run toggles build a
new snapshot and publish it with a single reference assignment, so concurrent
readers always see either the old policy or the new one.

Any failure to read or validate the policy document degrades to an embedded
fallback policy that is simulation-only and more conservative than production
values. Failures are logged, never raised to callers.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import NamedTuple, Optional, Union

import structlog
import yaml
from pydantic import ValidationError

from .models import PolicyState, RiskPolicy, StatusSummary

logger = structlog.get_logger(__name__)

PolicySource = Union[str, os.PathLike]

FALLBACK_VERSION_MARKER = "fallback"


# ── Errors ─────────────────────────────────────────────────────────────────────

class PolicyError(Exception):
    """Base class for risk policy problems."""


class PolicyLoadError(PolicyError):
    """The policy source could not be read."""


class PolicyParseError(PolicyError):
    """The policy document is malformed or fails schema validation."""

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


# ── Parsing ────────────────────────────────────────────────────────────────────

def _format_validation_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    ]


def parse_policy(text: str) -> RiskPolicy:
    """Parse and validate a YAML policy document."""
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PolicyParseError(f"Invalid YAML: {e}") from e

    if not isinstance(document, dict):
        raise PolicyParseError(
            f"Policy root must be a mapping, got {type(document).__name__}"
        )

    try:
        return RiskPolicy.model_validate(document)
    except ValidationError as e:
        errors = _format_validation_errors(e)
        raise PolicyParseError(
            f"Policy failed validation with {len(errors)} error(s): " + "; ".join(errors),
            errors=errors,
        ) from e


def read_policy(source: PolicySource) -> RiskPolicy:
    """Read and validate a policy file, raising ``PolicyError`` on failure."""
    try:
        text = Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise PolicyLoadError(f"Cannot read policy {source}: {e}") from e
    return parse_policy(text)


def fallback_policy() -> RiskPolicy:
    """Embedded policy used whenever the configured document is unusable."""
    return RiskPolicy.model_validate({
        "metadata": {
            "name": "Fallback Risk Policy",
            "version": f"1.0.0-{FALLBACK_VERSION_MARKER}",
            "lastUpdated": date.today().isoformat(),
            "description": "Emergency fallback: conservative terms, simulation only",
        },
        "global": {
            "maxExposurePercentage": 10,
            "maxDailyVolume": "100 ETH",
            "reserveRatio": 0.25,
            "defaultDryRun": True,
        },
        "collections": {
            "fallback": {
                "address": "0x0000000000000000000000000000000000000000",
                "tier": "unknown",
                "maxLTV": 0.50,
                "baseAPR": 0.30,
                "maxLoanAmount": "10 ETH",
                "requiredLiquidity": "5 ETH",
            },
        },
        "tiers": {
            "unknown": {
                "description": "Unverified collections - high risk",
                "minFloorPrice": "0.1 ETH",
                "maxDefaultRate": 0.10,
                "minVolume24h": "1 ETH",
            },
        },
        "durations": {
            "short_term": {"riskMultiplier": 1.0, "aprBonus": 0.00},
            "medium_term": {"riskMultiplier": 1.2, "aprBonus": 0.05},
            "long_term": {"riskMultiplier": 1.5, "aprBonus": 0.10},
        },
        "market_conditions": {
            "neutral": {"ltvAdjustment": 0, "aprAdjustment": 0},
        },
        "dry_run": {
            "enabled": True,
            "mode": "simulation",
            "log_level": "minimal",
            "simulation_outcomes": {
                "success_rate": 0.85,
                "default_rate": 0.05,
                "avg_repayment_days": 30,
            },
        },
        "banking_wisdom": [
            {"rule": "always_dry_run_in_fallback_mode"},
        ],
    })


# ── Store ──────────────────────────────────────────────────────────────────────

class PolicySnapshot(NamedTuple):
    policy: RiskPolicy
    state: PolicyState


class PolicyStore:
    """Holds the active risk policy snapshot."""

    def __init__(self, source: PolicySource) -> None:
        self.source = source
        self._active = self.load(source)

    @property
    def snapshot(self) -> PolicySnapshot:
        return self._active

    @property
    def policy(self) -> RiskPolicy:
        return self._active.policy

    @property
    def state(self) -> PolicyState:
        return self._active.state

    def load(self, source: PolicySource) -> PolicySnapshot:
        """Load ``source``, substituting the fallback policy on any failure.

        The result is not published; ``reload`` does that.
        """
        try:
            policy = read_policy(source)
        except PolicyLoadError as e:
            logger.warning("policy_load_failed", source=str(source), error=str(e))
        except PolicyParseError as e:
            logger.warning(
                "policy_parse_failed",
                source=str(source),
                error=str(e),
                diagnostics=e.errors,
            )
        else:
            logger.info(
                "policy_loaded",
                name=policy.metadata.name,
                version=policy.metadata.version,
                collections=len(policy.collections),
            )
            return PolicySnapshot(policy, PolicyState.LOADED)

        logger.warning("using_fallback_policy", source=str(source))
        return PolicySnapshot(fallback_policy(), PolicyState.FALLBACK)

    def reload(self, source: Optional[PolicySource] = None) -> PolicySnapshot:
        """Re-read the policy and publish it as the active snapshot."""
        if source is not None:
            self.source = source
        snapshot = self.load(self.source)
        self._active = snapshot
        logger.info(
            "policy_reloaded",
            version=snapshot.policy.metadata.version,
            state=snapshot.state.value,
        )
        return snapshot

    def set_dry_run(self, enabled: bool) -> None:
        """Publish a copy of the active policy with ``dry_run.enabled`` replaced."""
        current = self._active
        self._active = PolicySnapshot(current.policy.with_dry_run(enabled), current.state)

    def status(self) -> StatusSummary:
        policy, state = self._active
        return StatusSummary(
            policy_name=policy.metadata.name,
            policy_version=policy.metadata.version,
            state=state,
            dry_run_enabled=policy.dry_run.enabled,
            global_dry_run=policy.global_.default_dry_run,
            supported_collections_count=len(policy.collections),
            reserve_ratio=policy.global_.reserve_ratio,
            max_daily_volume=policy.global_.max_daily_volume,
        )
