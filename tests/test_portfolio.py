from __future__ import annotations

from decimal import Decimal

import pytest

from models import AssetType, RiskLevel
from portfolio import (
    analyze_asset_preferences,
    analyze_token_holdings,
    assess_liquidity_profile,
    concentration_risk,
    current_staking_positions,
    diversification_score,
    infer_behavior_patterns,
    liquidity_risk,
    token_category,
)
from conftest import holding


def test_token_categories():
    assert token_category("USDC") == "stablecoin"
    assert token_category("stETH") == "defi"
    assert token_category("WETH") == "other"


def test_concentration_single_asset_is_one():
    assert concentration_risk([holding("ethereum", "USDC", "500")]) == 1.0


def test_concentration_even_split_is_one_over_n():
    holdings = [
        holding("ethereum", "USDC", "100"),
        holding("ethereum", "DAI", "100"),
        holding("ethereum", "USDT", "100"),
        holding("ethereum", "UNI", "100"),
    ]
    assert concentration_risk(holdings) == pytest.approx(0.25)


def test_concentration_is_bounded():
    holdings = [holding("ethereum", "USDC", "1000"), holding("ethereum", "DAI", "1")]
    risk = concentration_risk(holdings)
    assert 0.5 <= risk <= 1.0


def test_concentration_of_nothing_is_zero():
    assert concentration_risk([]) == 0.0


def test_diversification_score_components():
    holdings = [
        holding("ethereum", "USDC", "100"),
        holding("ethereum", "UNI", "10"),
        holding("ethereum", "WETH", "1"),
    ]
    native = {"ethereum": Decimal("1"), "base": Decimal("0.2")}
    # 5 assets -> 25, 2 chains -> 20, 3 categories -> 15
    assert diversification_score(holdings, native) == 60


def test_diversification_score_caps():
    holdings = [holding("ethereum", s, "10") for s in ("USDC", "USDT", "DAI", "WETH", "UNI", "stETH")]
    holdings += [holding("base", s, "10") for s in ("USDC", "WETH", "cbETH")]
    holdings += [holding("arbitrum", s, "10") for s in ("USDC", "WETH")]
    native = {"ethereum": Decimal("1"), "base": Decimal("1"), "arbitrum": Decimal("1")}
    # 50 + 30 + 15
    assert diversification_score(holdings, native) == 95


def test_empty_wallet_scores_zero():
    assert diversification_score([], {}) == 0
    assert liquidity_risk([]) == 0.0


def test_liquidity_risk_counts_illiquid_share():
    holdings = [holding("ethereum", "USDC", "10"), holding("ethereum", "stETH", "1")]
    assert liquidity_risk(holdings) == 0.5


def test_token_analysis_buckets():
    holdings = [
        holding("ethereum", "USDC", "2000"),
        holding("ethereum", "UNI", "50"),
        holding("ethereum", "stETH", "3"),
    ]
    analysis = analyze_token_holdings(holdings)

    assert analysis.total_tokens == 3
    assert [t.symbol for t in analysis.major_holdings] == ["USDC", "UNI", "stETH"]
    assert [t.symbol for t in analysis.stablecoins] == ["USDC"]
    assert {t.symbol for t in analysis.defi_tokens} == {"UNI", "stETH"}
    assert [t.symbol for t in analysis.governance_tokens] == ["UNI"]
    assert [t.symbol for t in analysis.stakeable_assets] == ["USDC"]
    assert analysis.diversification_level == RiskLevel.LOW


def test_staking_receipts_are_current_positions():
    holdings = [holding("ethereum", "stETH", "2"), holding("base", "cbETH", "1"), holding("base", "USDC", "5")]
    assert [t.symbol for t in current_staking_positions(holdings)] == ["stETH", "cbETH"]


def test_behavior_patterns():
    holdings = [
        holding("ethereum", "USDC", "10"),
        holding("ethereum", "DAI", "10"),
        holding("ethereum", "UNI", "10"),
    ]
    patterns = {p.pattern for p in infer_behavior_patterns(holdings, chain_count=3)}
    assert patterns == {"Multi-Chain Power User", "Stablecoin Diversifier"}


def test_same_stablecoin_on_two_chains_is_not_diversification():
    holdings = [holding("ethereum", "USDC", "10"), holding("base", "USDC", "10")]
    assert infer_behavior_patterns(holdings, chain_count=2) == []


def test_liquidity_profile_keeps_a_reserve():
    holdings = [holding("ethereum", "USDC", "100"), holding("ethereum", "stETH", "100")]
    profile = assess_liquidity_profile(holdings, Decimal("10"))

    assert profile.liquidity_ratio == 0.5
    assert profile.emergency_buffer == Decimal("21")
    assert profile.staking_capacity == Decimal("105")
    assert profile.preferred_lock_periods == [0, 7, 30]
    assert [t.symbol for t in profile.staked_assets] == ["stETH"]


def test_liquidity_profile_for_native_only_wallet():
    profile = assess_liquidity_profile([], Decimal("2"))

    assert profile.liquidity_ratio == 0
    assert profile.staking_capacity == Decimal("1.6")
    assert profile.preferred_lock_periods == [30, 90, 365]


def test_asset_preferences_sorted_by_preference():
    prefs = analyze_asset_preferences(
        [holding("ethereum", "USDC", "500")],
        {"ethereum": Decimal("8"), "base": Decimal("0.005")},
    )

    assert [p.token for p in prefs] == ["ethereum:ETH", "USDC"]
    assert prefs[0].type == AssetType.NATIVE
    assert prefs[0].staking_potential == 0.9
    assert prefs[1].type == AssetType.STABLECOIN
    assert prefs[1].preference == 0.5
