import datetime

import pytest
from pydantic import ValidationError

from collateral_underwriter import LoanRequest, RiskPolicy
from collateral_underwriter.models import MarketConditionPolicy


def test_policy_parses_mixed_case_keys_and_eth_amounts(policy_doc):
    policy = RiskPolicy.model_validate(policy_doc)

    apes = policy.collections["apes"]
    assert apes.max_ltv == 0.70
    assert apes.base_apr == 0.18
    assert apes.max_loan_amount == 50.0
    assert policy.collections["azuki"].max_loan_amount == 15.0
    assert policy.global_.max_daily_volume == 250.0
    assert policy.tiers["blue_chip"].min_floor_price == 10.0
    assert policy.banking_wisdom[0].max_concentration == 0.3


def test_yaml_date_is_kept_as_iso_string(policy_doc):
    policy_doc["metadata"]["lastUpdated"] = datetime.date(2025, 3, 1)
    policy = RiskPolicy.model_validate(policy_doc)
    assert policy.metadata.last_updated == "2025-03-01"


def test_collection_tier_must_exist(policy_doc):
    policy_doc["collections"]["apes"]["tier"] = "legendary"
    with pytest.raises(ValidationError, match="undefined tier 'legendary'"):
        RiskPolicy.model_validate(policy_doc)


def test_max_ltv_out_of_range_rejected(policy_doc):
    policy_doc["collections"]["apes"]["maxLTV"] = 1.5
    with pytest.raises(ValidationError):
        RiskPolicy.model_validate(policy_doc)


def test_unparseable_amount_rejected(policy_doc):
    policy_doc["collections"]["apes"]["maxLoanAmount"] = "lots of ETH"
    with pytest.raises(ValidationError, match="50 ETH"):
        RiskPolicy.model_validate(policy_doc)


def test_unknown_duration_bucket_rejected(policy_doc):
    policy_doc["durations"]["forever"] = {"riskMultiplier": 3.0, "aprBonus": 0.5}
    with pytest.raises(ValidationError):
        RiskPolicy.model_validate(policy_doc)


def test_market_condition_typo_rejected():
    with pytest.raises(ValidationError):
        MarketConditionPolicy.model_validate({"ltvBonuss": 0.1})


def test_market_condition_net_deltas():
    bull = MarketConditionPolicy.model_validate({"ltvBonus": 0.05, "aprDiscount": 0.02})
    bear = MarketConditionPolicy.model_validate({"ltvPenalty": 0.10, "aprPremium": 0.05})

    assert bull.ltv_delta == pytest.approx(0.05)
    assert bull.apr_delta == pytest.approx(-0.02)
    assert bear.ltv_delta == pytest.approx(-0.10)
    assert bear.apr_delta == pytest.approx(0.05)


def test_find_collection_is_case_insensitive(policy_doc):
    policy = RiskPolicy.model_validate(policy_doc)
    address = policy_doc["collections"]["apes"]["address"]

    assert policy.find_collection(address.lower()).tier == "blue_chip"
    assert policy.find_collection(address.upper().replace("0X", "0x")).tier == "blue_chip"
    assert policy.find_collection("0xdeadbeef") is None


def test_with_dry_run_returns_copy(policy_doc):
    policy = RiskPolicy.model_validate(policy_doc)
    toggled = policy.with_dry_run(True)

    assert toggled.dry_run.enabled is True
    assert policy.dry_run.enabled is False
    assert toggled.collections == policy.collections


def test_policy_is_immutable(policy_doc):
    policy = RiskPolicy.model_validate(policy_doc)
    with pytest.raises(ValidationError):
        policy.dry_run.enabled = True


def test_loan_request_accepts_aliases_and_numeric_token_id():
    request = LoanRequest.model_validate({
        "contractAddress": "0xabc",
        "tokenId": 42,
        "requestedAmount": 5,
        "duration": 10,
    })
    assert request.token_id == "42"
    assert request.floor_price is None


@pytest.mark.parametrize("field,value", [
    ("requested_amount", 0),
    ("duration", 0),
    ("floor_price", 0),
])
def test_loan_request_rejects_non_positive_values(field, value):
    payload = {"contract_address": "0xabc", "token_id": "1", "requested_amount": 1.0, "duration": 5}
    payload[field] = value
    with pytest.raises(ValidationError):
        LoanRequest(**payload)
