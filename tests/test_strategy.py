from __future__ import annotations

from decimal import Decimal

import pytest

from chains import SUPPORTED_CHAINS
from models import Priority, RiskLevel, RiskTolerance, StakingStrategy
from portfolio import analyze_token_holdings, assess_liquidity_profile
from risk import assess_risk
from strategy import (
    MAINNET_THRESHOLDS,
    TESTNET_THRESHOLDS,
    generate_recommendations,
    generate_strategy,
    is_risk_compatible,
    suitable_options,
)
from conftest import chain_balances, holding

NATIVE_OPTIONS = {c.id: c.native_staking_options for c in SUPPORTED_CHAINS.values()}


def _strategy(tolerance: RiskTolerance, allocation: float = 60) -> StakingStrategy:
    return StakingStrategy(
        recommended_allocation=allocation,
        risk_tolerance=tolerance,
        liquidity_buffer=0,
        staking_horizon=365,
        diversification_goal=2,
    )


def _plan(native: str, testnet_only: bool = False):
    total = Decimal(native)
    risk = assess_risk(total, [], analyze_token_holdings([]))
    liquidity = assess_liquidity_profile([], total)
    return generate_strategy(risk, liquidity, total, testnet_only)


# ── Strategy ──────────────────────────────────────────────────────────────────


def test_two_eth_wallet_strategy():
    strategy = _plan("2")

    assert strategy.risk_tolerance == RiskTolerance.AGGRESSIVE
    assert strategy.recommended_allocation == 80
    assert "EigenLayer" in strategy.preferred_protocols
    assert strategy.staking_horizon == 730


def test_small_portfolio_allocation_is_reduced():
    strategy = _plan("0.5")
    # score 35 -> MODERATE: min(60, 70) - 20
    assert strategy.risk_tolerance == RiskTolerance.MODERATE
    assert strategy.recommended_allocation == 40


def test_testnet_strategy():
    strategy = _plan("0.5", testnet_only=True)

    assert strategy.recommended_allocation == 40
    assert strategy.preferred_protocols == []
    assert strategy.staking_horizon == 90


def test_testnet_strategy_without_meaningful_balance():
    assert _plan("0.005", testnet_only=True).recommended_allocation == 0


def test_allocation_stays_in_bounds():
    for native in ("0", "0.2", "3", "80", "5000"):
        allocation = _plan(native).recommended_allocation
        assert 0 <= allocation <= 100


# ── Option filtering ──────────────────────────────────────────────────────────


def test_risk_compatibility():
    options = NATIVE_OPTIONS["ethereum"]
    eigen = next(o for o in options if o.protocol == "EigenLayer")
    lido = next(o for o in options if o.protocol == "Lido")

    assert not is_risk_compatible(eigen, RiskTolerance.CONSERVATIVE)
    assert not is_risk_compatible(eigen, RiskTolerance.MODERATE)
    assert is_risk_compatible(eigen, RiskTolerance.AGGRESSIVE)
    assert is_risk_compatible(lido, RiskTolerance.CONSERVATIVE)


def test_suitable_options_keep_catalog_order():
    options = suitable_options(NATIVE_OPTIONS["ethereum"], RiskTolerance.DEGENERATE)
    assert [o.protocol for o in options] == [
        "Lido", "Rocket Pool", "Coinbase Wrapped Staked ETH", "EigenLayer",
    ]

    options = suitable_options(NATIVE_OPTIONS["ethereum"], RiskTolerance.MODERATE)
    assert [o.protocol for o in options] == ["Lido", "Rocket Pool", "Coinbase Wrapped Staked ETH"]


def test_options_are_not_filtered_by_minimum_stake():
    # EigenLayer needs 32 ETH but is still listed for an aggressive 2 ETH wallet
    (rec,) = generate_recommendations(
        [chain_balances("ethereum", "2")], NATIVE_OPTIONS, [], _strategy(RiskTolerance.AGGRESSIVE, 80)
    )
    assert "EigenLayer" in [o.protocol for o in rec.options]
    assert rec.options[0].protocol == "Lido"


# ── Recommendations ───────────────────────────────────────────────────────────


def test_two_eth_recommendation():
    strategy = _plan("2")
    recs = generate_recommendations([chain_balances("ethereum", "2")], NATIVE_OPTIONS, [], strategy)

    (rec,) = recs
    assert rec.token == "ETH"
    assert rec.chain == "ethereum"
    assert rec.recommended_amount == Decimal("2") * Decimal(str(strategy.recommended_allocation)) / 100
    assert rec.recommended_amount == Decimal("1.6")
    assert rec.priority == Priority.MEDIUM
    assert rec.options[0].protocol == "Lido"
    assert rec.expected_return == Decimal("0.0512")


def test_two_eth_recommendation_under_moderate_tolerance_has_no_high_risk_option():
    strategy = _strategy(RiskTolerance.MODERATE, 60)
    (rec,) = generate_recommendations([chain_balances("ethereum", "2")], NATIVE_OPTIONS, [], strategy)

    assert rec.recommended_amount == Decimal("1.2")
    assert rec.priority == Priority.MEDIUM
    assert all(o.risk_level != RiskLevel.HIGH for o in rec.options)


def test_small_native_balance_gets_nothing():
    strategy = _plan("0.05")
    assert generate_recommendations([chain_balances("ethereum", "0.05")], NATIVE_OPTIONS, [], strategy) == []


def test_native_balance_must_exceed_minimum():
    strategy = _strategy(RiskTolerance.MODERATE)
    recs = generate_recommendations([chain_balances("ethereum", "0.1")], NATIVE_OPTIONS, [], strategy)
    assert recs == []


def test_chain_without_native_options_gets_nothing():
    strategy = _strategy(RiskTolerance.DEGENERATE)
    recs = generate_recommendations([chain_balances("arbitrum", "10")], NATIVE_OPTIONS, [], strategy)
    assert recs == []


def test_stablecoin_recommendation():
    usdc = holding("ethereum", "USDC", "1500")
    recs = generate_recommendations([], NATIVE_OPTIONS, [usdc], _strategy(RiskTolerance.MODERATE))

    (rec,) = recs
    assert rec.recommended_amount == Decimal("1050")
    assert rec.priority == Priority.HIGH
    assert [o.protocol for o in rec.options] == ["Aave", "Compound"]
    assert rec.expected_return == Decimal("47.25")


def test_token_floor_is_strict():
    strategy = _strategy(RiskTolerance.MODERATE)
    at_floor = holding("ethereum", "DAI", MAINNET_THRESHOLDS.token_floor)
    above = holding("ethereum", "DAI", "51")

    assert generate_recommendations([], NATIVE_OPTIONS, [at_floor], strategy) == []
    (rec,) = generate_recommendations([], NATIVE_OPTIONS, [above], strategy)
    assert rec.recommended_amount == Decimal("35.7")
    assert [o.protocol for o in rec.options] == ["MakerDAO DSR", "Aave"]


def test_usdt_above_catalog_minimum_is_recommended():
    usdt = holding("ethereum", "USDT", "120")
    (rec,) = generate_recommendations([], NATIVE_OPTIONS, [usdt], _strategy(RiskTolerance.MODERATE))

    assert rec.token == "USDT"
    assert rec.recommended_amount == Decimal("84")
    assert [o.protocol for o in rec.options] == ["Aave"]
    assert rec.expected_return == Decimal("3.528")
    assert rec.priority == Priority.MEDIUM


def test_small_usdc_keeps_every_risk_compatible_option():
    usdc = holding("ethereum", "USDC", "120")
    (rec,) = generate_recommendations([], NATIVE_OPTIONS, [usdc], _strategy(RiskTolerance.MODERATE))

    assert [o.protocol for o in rec.options] == ["Aave", "Compound"]
    assert rec.expected_return == Decimal("3.78")


def test_token_must_exceed_catalog_minimum():
    strategy = _strategy(RiskTolerance.MODERATE)
    usdc = holding("ethereum", "USDC", "100")
    assert generate_recommendations([], NATIVE_OPTIONS, [usdc], strategy) == []


def test_conservative_wallet_skips_medium_risk_markets():
    usdc = holding("base", "USDC", "5000")
    strategy = _strategy(RiskTolerance.CONSERVATIVE)
    assert generate_recommendations([], NATIVE_OPTIONS, [usdc], strategy) == []


def test_non_stakeable_tokens_are_skipped():
    strategy = _strategy(RiskTolerance.DEGENERATE)
    tokens = [holding("ethereum", "UNI", "5000"), holding("ethereum", "stETH", "100")]
    assert generate_recommendations([], NATIVE_OPTIONS, tokens, strategy) == []


def test_sorted_by_priority_then_discovery_order():
    strategy = _strategy(RiskTolerance.MODERATE)
    chains = [chain_balances("ethereum", "2"), chain_balances("base", "0.5")]
    tokens = [holding("ethereum", "DAI", "60"), holding("ethereum", "USDC", "1500")]

    recs = generate_recommendations(chains, NATIVE_OPTIONS, tokens, strategy)

    assert [(r.chain, r.token, r.priority) for r in recs] == [
        ("ethereum", "USDC", Priority.HIGH),
        ("ethereum", "ETH", Priority.MEDIUM),
        ("base", "ETH", Priority.LOW),
        ("ethereum", "DAI", Priority.LOW),
    ]


def test_amounts_within_balance_and_above_floor():
    strategy = _strategy(RiskTolerance.AGGRESSIVE, allocation=33.3)
    chains = [chain_balances("ethereum", "0.333333333333333333"), chain_balances("base", "7.77")]
    tokens = [holding("ethereum", "USDC", "123.456789"), holding("arbitrum", "WETH", "0.9")]

    recs = generate_recommendations(chains, NATIVE_OPTIONS, tokens, strategy)

    assert recs
    for rec in recs:
        assert rec.recommended_amount <= rec.available_balance
        assert rec.recommended_amount >= MAINNET_THRESHOLDS.recommendation_floor


# ── Testnet ───────────────────────────────────────────────────────────────────


def test_testnet_native_recommendation_uses_forty_percent():
    strategy = _plan("0.5", testnet_only=True)
    recs = generate_recommendations(
        [chain_balances("sepolia", "0.5")], NATIVE_OPTIONS, [], strategy, testnet_only=True
    )

    (rec,) = recs
    assert rec.recommended_amount == Decimal("0.2")
    assert rec.options[0].protocol == "Testnet Lido"
    assert "test" in rec.reasoning


@pytest.mark.parametrize("native, expected", [("0.01", 0), ("0.02", 1)])
def test_testnet_native_threshold(native, expected):
    strategy = _strategy(RiskTolerance.MODERATE, allocation=40)
    recs = generate_recommendations(
        [chain_balances("sepolia", native)], NATIVE_OPTIONS, [], strategy, testnet_only=True
    )
    assert len(recs) == expected
    for rec in recs:
        assert rec.recommended_amount >= TESTNET_THRESHOLDS.recommendation_floor


def test_testnet_token_recommendation():
    usdc = holding("sepolia", "USDC", "10")
    strategy = _strategy(RiskTolerance.MODERATE, allocation=40)
    (rec,) = generate_recommendations([], NATIVE_OPTIONS, [usdc], strategy, testnet_only=True)

    assert rec.recommended_amount == Decimal("7")
    assert rec.options[0].protocol == "Aave V3 Testnet"
