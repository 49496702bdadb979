import logging
from dataclasses import dataclass
from decimal import Decimal

from models import (
    ChainBalances,
    LiquidityProfile,
    Priority,
    RiskLevel,
    RiskProfile,
    RiskTolerance,
    StakingOption,
    StakingRecommendation,
    StakingStrategy,
    TokenHolding,
)
from utils import format_amount, round_down

logger = logging.getLogger(__name__)


# ── Strategy ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class _TierPlan:
    allocation_cap: float
    allocation_scale: float
    protocols: tuple[str, ...]
    horizon_days: int
    diversification_goal: int


TIER_PLANS: dict[RiskTolerance, _TierPlan] = {
    RiskTolerance.CONSERVATIVE: _TierPlan(
        40, 60, ("Lido", "Coinbase Wrapped Staked ETH"), 180, 1
    ),
    RiskTolerance.MODERATE: _TierPlan(
        60, 70, ("Lido", "Rocket Pool", "Aave"), 365, 2
    ),
    RiskTolerance.AGGRESSIVE: _TierPlan(
        80, 85, ("Lido", "Rocket Pool", "EigenLayer", "Aave"), 730, 3
    ),
    RiskTolerance.DEGENERATE: _TierPlan(
        90, 95, ("EigenLayer", "Rocket Pool", "Radiant", "Moonwell"), 1095, 4
    ),
}

SMALL_PORTFOLIO = Decimal("1")
LARGE_PORTFOLIO = Decimal("50")

TESTNET_ALLOCATION = 40.0
TESTNET_HORIZON_DAYS = 90
TESTNET_MEANINGFUL_BALANCE = Decimal("0.01")


def generate_strategy(
    risk_profile: RiskProfile,
    liquidity: LiquidityProfile,
    total_balance: Decimal,
    testnet_only: bool = False,
) -> StakingStrategy:
    liquidity_buffer = liquidity.liquidity_ratio * 100

    if testnet_only:
        # Protocol choice is left to discovery on testnets
        allocation = TESTNET_ALLOCATION if total_balance >= TESTNET_MEANINGFUL_BALANCE else 0.0
        return StakingStrategy(
            recommended_allocation=allocation,
            preferred_protocols=[],
            risk_tolerance=risk_profile.risk_tolerance,
            liquidity_buffer=liquidity_buffer,
            staking_horizon=TESTNET_HORIZON_DAYS,
            diversification_goal=1,
        )

    plan = TIER_PLANS[risk_profile.risk_tolerance]
    allocation = min(plan.allocation_cap, (1 - liquidity.liquidity_ratio) * plan.allocation_scale)

    if total_balance < SMALL_PORTFOLIO:
        allocation = max(allocation - 20, 10)
    elif total_balance > LARGE_PORTFOLIO:
        allocation = min(allocation + 10, 90)

    return StakingStrategy(
        recommended_allocation=max(0.0, min(100.0, allocation)),
        preferred_protocols=list(plan.protocols),
        risk_tolerance=risk_profile.risk_tolerance,
        liquidity_buffer=liquidity_buffer,
        staking_horizon=plan.horizon_days,
        diversification_goal=plan.diversification_goal,
    )


# ── Recommendations ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Thresholds:
    native_minimum: Decimal
    recommendation_floor: Decimal
    token_floor: Decimal


MAINNET_THRESHOLDS = Thresholds(
    native_minimum=Decimal("0.1"),
    recommendation_floor=Decimal("0.05"),
    token_floor=Decimal("50"),
)
TESTNET_THRESHOLDS = Thresholds(
    native_minimum=Decimal("0.01"),
    recommendation_floor=Decimal("0.005"),
    token_floor=Decimal("1.0"),
)

# Testnet runs always keep 60% back as a testing buffer
TESTNET_NATIVE_FRACTION = Decimal("0.4")
TOKEN_STAKE_FRACTION = Decimal("0.7")

NATIVE_DECIMAL_PLACES = 9
TOKEN_DECIMAL_PLACES = 6

PRIORITY_ORDER = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


def thresholds_for(testnet_only: bool) -> Thresholds:
    return TESTNET_THRESHOLDS if testnet_only else MAINNET_THRESHOLDS


def is_risk_compatible(option: StakingOption, tolerance: RiskTolerance) -> bool:
    if tolerance == RiskTolerance.CONSERVATIVE:
        return option.risk_level == RiskLevel.LOW
    if tolerance == RiskTolerance.MODERATE:
        return option.risk_level != RiskLevel.HIGH
    return True


def suitable_options(
    options: list[StakingOption] | tuple[StakingOption, ...],
    tolerance: RiskTolerance,
) -> list[StakingOption]:
    """Risk-compatible options in catalog order. The first one is the best option."""
    return [o for o in options if is_risk_compatible(o, tolerance)]


def native_priority(balance: Decimal) -> Priority:
    if balance > 5:
        return Priority.HIGH
    if balance > 1:
        return Priority.MEDIUM
    return Priority.LOW


def token_priority(balance: Decimal) -> Priority:
    if balance > 1000:
        return Priority.HIGH
    if balance > 100:
        return Priority.MEDIUM
    return Priority.LOW


def expected_return(amount: Decimal, option: StakingOption) -> Decimal:
    return amount * Decimal(str(option.expected_apr)) / 100


def _native_recommendation(
    chain: ChainBalances,
    native_options: tuple[StakingOption, ...],
    strategy: StakingStrategy,
    thresholds: Thresholds,
    testnet_only: bool,
) -> StakingRecommendation | None:
    balance = chain.native_balance
    if balance <= thresholds.native_minimum:
        return None

    fraction = (
        TESTNET_NATIVE_FRACTION
        if testnet_only
        else Decimal(str(strategy.recommended_allocation)) / 100
    )
    amount = round_down(balance * fraction, NATIVE_DECIMAL_PLACES)
    if amount < thresholds.recommendation_floor:
        return None

    options = suitable_options(native_options, strategy.risk_tolerance)
    if not options:
        logger.debug("%s: no staking option fits %s tolerance", chain.chain, strategy.risk_tolerance.value)
        return None

    best = options[0]
    symbol = chain.native_symbol
    if testnet_only:
        reasoning = (
            f"You hold {format_amount(balance)} test {symbol} on {chain.chain_name}. "
            f"Staking {format_amount(amount)} {symbol} lets you practice the full staking flow "
            f"while keeping the rest as a testing buffer."
        )
    else:
        reasoning = (
            f"Based on your {strategy.risk_tolerance.value.lower()} risk profile and "
            f"{format_amount(balance, 2)} {symbol} balance on {chain.chain_name}, staking "
            f"{format_amount(amount)} {symbol} ({strategy.recommended_allocation:.0f}% allocation) "
            f"can generate steady yield."
        )

    return StakingRecommendation(
        token=symbol,
        chain=chain.chain,
        recommended_amount=amount,
        available_balance=balance,
        options=options,
        reasoning=reasoning,
        risk_assessment=(
            f"{strategy.risk_tolerance.value} risk tolerance suggests {best.protocol} "
            f"({best.risk_level.value.lower()} risk {best.type.value.lower()} staking)."
        ),
        expected_return=expected_return(amount, best),
        priority=native_priority(balance),
    )


def _token_recommendation(
    token: TokenHolding,
    strategy: StakingStrategy,
    thresholds: Thresholds,
) -> StakingRecommendation | None:
    if not token.is_stakeable or not token.staking_options:
        return None

    balance = token.balance
    catalog_minimum = token.staking_options[0].min_amount
    if balance <= catalog_minimum or balance <= thresholds.token_floor:
        return None

    amount = round_down(balance * TOKEN_STAKE_FRACTION, TOKEN_DECIMAL_PLACES)
    if amount < thresholds.recommendation_floor:
        return None

    options = suitable_options(token.staking_options, strategy.risk_tolerance)
    if not options:
        return None

    best = options[0]
    return StakingRecommendation(
        token=token.symbol,
        chain=token.chain,
        recommended_amount=amount,
        available_balance=balance,
        options=options,
        reasoning=(
            f"Your {format_amount(balance)} {token.symbol} on {token.chain} can earn yield "
            f"through {best.protocol}. Staking 70% maintains a liquidity buffer."
        ),
        risk_assessment=(
            f"{best.risk_level.value} risk {best.type.value.lower()} staking option."
        ),
        expected_return=expected_return(amount, best),
        priority=token_priority(balance),
    )


def generate_recommendations(
    chains: list[ChainBalances],
    native_options: dict[str, tuple[StakingOption, ...]],
    holdings: list[TokenHolding],
    strategy: StakingStrategy,
    testnet_only: bool = False,
) -> list[StakingRecommendation]:
    """
    Recommendations for native balances (chain order) then staking-capable
    tokens (holdings order), stably sorted by priority. Holdings under the
    minimum thresholds produce nothing.

    `native_options` maps chain id to that chain's native staking options.
    """
    thresholds = thresholds_for(testnet_only)
    recommendations: list[StakingRecommendation] = []

    for chain in chains:
        rec = _native_recommendation(
            chain, native_options.get(chain.chain, ()), strategy, thresholds, testnet_only
        )
        if rec:
            recommendations.append(rec)

    for token in holdings:
        rec = _token_recommendation(token, strategy, thresholds)
        if rec:
            recommendations.append(rec)

    # sorted() is stable: equal priorities keep discovery order
    return sorted(recommendations, key=lambda r: PRIORITY_ORDER[r.priority], reverse=True)
