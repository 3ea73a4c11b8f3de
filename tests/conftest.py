import copy
from pathlib import Path

import pytest
import yaml

from collateral_underwriter import Underwriter

BLUE_CHIP_ADDRESS = "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D"
ESTABLISHED_ADDRESS = "0xED5AF388653567Af2F388E6224dC7C4b3241C544"
UNLISTED_ADDRESS = "0x1111111111111111111111111111111111111111"

BASE_POLICY = {
    "metadata": {
        "name": "Test Risk Policy",
        "version": "3.0.0",
        "lastUpdated": "2025-01-15",
        "description": "fixture",
    },
    "global": {
        "maxExposurePercentage": 20,
        "maxDailyVolume": "250 ETH",
        "reserveRatio": 0.2,
        "defaultDryRun": False,
    },
    "collections": {
        "apes": {
            "address": BLUE_CHIP_ADDRESS,
            "tier": "blue_chip",
            "maxLTV": 0.70,
            "baseAPR": 0.18,
            "maxLoanAmount": "50 ETH",
            "requiredLiquidity": "100 ETH",
        },
        "azuki": {
            "address": ESTABLISHED_ADDRESS,
            "tier": "established",
            "maxLTV": 0.60,
            "baseAPR": 0.22,
            "maxLoanAmount": 15,
            "requiredLiquidity": 30,
        },
    },
    "tiers": {
        "blue_chip": {
            "description": "Deep liquidity",
            "minFloorPrice": "10 ETH",
            "maxDefaultRate": 0.02,
            "minVolume24h": "50 ETH",
        },
        "established": {
            "description": "Moderate liquidity",
            "minFloorPrice": "2 ETH",
            "maxDefaultRate": 0.05,
            "minVolume24h": "10 ETH",
        },
    },
    "durations": {
        "short_term": {"riskMultiplier": 1.0, "aprBonus": 0.0},
        "medium_term": {"riskMultiplier": 1.2, "aprBonus": 0.05},
        "long_term": {"riskMultiplier": 1.5, "aprBonus": 0.10},
    },
    "market_conditions": {
        "bull": {"ltvBonus": 0.05, "aprDiscount": 0.02},
        "neutral": {"ltvAdjustment": 0, "aprAdjustment": 0},
        "bear": {"ltvPenalty": 0.10, "aprPremium": 0.05},
    },
    "dry_run": {
        "enabled": False,
        "mode": "simulation",
        "log_level": "minimal",
        "simulation_outcomes": {
            "success_rate": 0.85,
            "default_rate": 0.05,
            "avg_repayment_days": 30,
        },
    },
    "banking_wisdom": [
        {"rule": "diversify_collateral", "max_concentration": 0.3},
    ],
}


class FixedRng:
    """Stands in for a numpy Generator; ``random()`` always returns ``value``."""

    def __init__(self, value: float) -> None:
        self.value = value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        return self.value


@pytest.fixture()
def fixed_rng():
    return FixedRng


@pytest.fixture()
def policy_doc() -> dict:
    return copy.deepcopy(BASE_POLICY)


@pytest.fixture()
def write_policy(tmp_path):
    def _write(doc: dict, name: str = "policy.yaml") -> Path:
        path = tmp_path / name
        path.write_text(yaml.safe_dump(doc, sort_keys=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def policy_file(policy_doc, write_policy) -> Path:
    return write_policy(policy_doc)


@pytest.fixture()
def underwriter(policy_file) -> Underwriter:
    return Underwriter(policy_file, rng=FixedRng(0.0))
