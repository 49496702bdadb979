"""
Pure portfolio metrics over a holdings snapshot.

Nothing here performs I/O or reads the clock; every function is a
deterministic function of its arguments. Balances of different tokens are
summed in token units (no USD pricing), as a rough size measure only.
"""

from decimal import Decimal

from models import (
    AssetPreference,
    AssetType,
    BehaviorPattern,
    LiquidityProfile,
    RiskLevel,
    TokenAnalysis,
    TokenHolding,
)

STABLECOINS = {"USDC", "USDT", "DAI", "BUSD", "FRAX", "USDbC"}
DEFI_TOKENS = {"UNI", "SUSHI", "AAVE", "COMP", "CRV", "YFI", "stETH"}
GOVERNANCE_TOKENS = {"UNI", "COMP", "AAVE", "YFI", "MKR"}
LIQUID_TOKENS = {"USDC", "USDT", "DAI", "WETH", "UNI"}
LIQUID_STAKING_RECEIPTS = {"stETH", "rETH", "cbETH", "sfrxETH"}

MIN_STAKING_RESERVE = 0.2
EMERGENCY_BUFFER_RATIO = Decimal("0.1")


def token_category(symbol: str) -> str:
    """Semantic bucket used by the diversification bonus."""
    if symbol in STABLECOINS:
        return "stablecoin"
    if symbol in DEFI_TOKENS:
        return "defi"
    return "other"


def total_token_balance(holdings: list[TokenHolding]) -> Decimal:
    return sum((t.balance for t in holdings), Decimal("0"))


# ── Scores ────────────────────────────────────────────────────────────────────


def diversification_score(
    holdings: list[TokenHolding], native_balances: dict[str, Decimal]
) -> float:
    chain_count = len(native_balances)
    total_assets = len(holdings) + chain_count

    score = min(total_assets * 5, 50)
    score += min(chain_count * 10, 30)
    score += len({token_category(t.symbol) for t in holdings}) * 5
    return float(min(score, 100))


def concentration_risk(holdings: list[TokenHolding]) -> float:
    """Herfindahl index of token balances: 1/n for an even split, 1.0 for a single asset."""
    total = total_token_balance(holdings)
    if not holdings or total <= 0:
        return 0.0
    hhi = sum(((t.balance / total) ** 2 for t in holdings), Decimal("0"))
    return min(float(hhi), 1.0)


def liquidity_risk(holdings: list[TokenHolding]) -> float:
    if not holdings:
        return 0.0
    liquid = sum(1 for t in holdings if t.symbol in LIQUID_TOKENS)
    return 1 - liquid / len(holdings)


def diversification_level(concentration: float) -> RiskLevel:
    if concentration > 0.5:
        return RiskLevel.LOW
    if concentration > 0.25:
        return RiskLevel.MEDIUM
    return RiskLevel.HIGH


# ── Token analysis ────────────────────────────────────────────────────────────


def analyze_token_holdings(holdings: list[TokenHolding]) -> TokenAnalysis:
    concentration = concentration_risk(holdings)
    return TokenAnalysis(
        total_tokens=len(holdings),
        major_holdings=sorted(holdings, key=lambda t: t.balance, reverse=True)[:5],
        stablecoins=[t for t in holdings if t.symbol in STABLECOINS],
        defi_tokens=[t for t in holdings if t.symbol in DEFI_TOKENS],
        governance_tokens=[t for t in holdings if t.symbol in GOVERNANCE_TOKENS],
        stakeable_assets=[t for t in holdings if t.is_stakeable],
        concentration_risk=concentration,
        diversification_level=diversification_level(concentration),
    )


def current_staking_positions(holdings: list[TokenHolding]) -> list[TokenHolding]:
    return [t for t in holdings if t.symbol in LIQUID_STAKING_RECEIPTS]


# ── Behavior ──────────────────────────────────────────────────────────────────


def infer_behavior_patterns(
    holdings: list[TokenHolding], chain_count: int
) -> list[BehaviorPattern]:
    patterns: list[BehaviorPattern] = []

    if chain_count > 2:
        patterns.append(BehaviorPattern(
            pattern="Multi-Chain Power User",
            frequency=chain_count,
            confidence=0.9,
            description=f"Active across {chain_count} different chains",
            staking_implication="Consider multi-chain staking strategies for optimal yields",
        ))

    defi = [t for t in holdings if t.symbol in DEFI_TOKENS]
    if len(defi) > 2:
        patterns.append(BehaviorPattern(
            pattern="DeFi Enthusiast",
            frequency=len(defi),
            confidence=0.8,
            description=f"Holds {len(defi)} different DeFi protocol tokens",
            staking_implication="High comfort with DeFi protocols, suitable for advanced staking strategies",
        ))

    stable_symbols = {t.symbol for t in holdings if t.symbol in STABLECOINS}
    if len(stable_symbols) >= 2:
        patterns.append(BehaviorPattern(
            pattern="Stablecoin Diversifier",
            frequency=len(stable_symbols),
            confidence=0.7,
            description=f"Maintains {len(stable_symbols)} different stablecoin positions",
            staking_implication="Excellent candidate for stablecoin lending strategies (Aave, Compound)",
        ))

    governance = [t for t in holdings if t.symbol in GOVERNANCE_TOKENS]
    if len(governance) > 1:
        patterns.append(BehaviorPattern(
            pattern="Governance Participant",
            frequency=len(governance),
            confidence=0.6,
            description=f"Holds governance tokens for {len(governance)} protocols",
            staking_implication="Active in governance, may prefer protocols with voting rewards",
        ))

    return patterns


# ── Liquidity ─────────────────────────────────────────────────────────────────


def assess_liquidity_profile(
    holdings: list[TokenHolding], total_native: Decimal
) -> LiquidityProfile:
    liquid = [t for t in holdings if t.symbol in LIQUID_TOKENS]
    total_value = total_native + total_token_balance(holdings)
    ratio = len(liquid) / max(len(holdings), 1)

    # At least MIN_STAKING_RESERVE of the portfolio always stays liquid
    reserve = Decimal(str(max(ratio, MIN_STAKING_RESERVE)))
    capacity = max(Decimal("0"), total_value * (1 - reserve))

    return LiquidityProfile(
        liquidity_ratio=ratio,
        withdrawal_frequency=4 if ratio > 0.5 else 1,
        emergency_buffer=total_value * EMERGENCY_BUFFER_RATIO,
        preferred_lock_periods=[0, 7, 30] if ratio > 0.3 else [30, 90, 365],
        liquid_assets=liquid,
        staked_assets=current_staking_positions(holdings),
        staking_capacity=capacity,
    )


# ── Preferences ───────────────────────────────────────────────────────────────


def analyze_asset_preferences(
    holdings: list[TokenHolding], native_balances: dict[str, Decimal]
) -> list[AssetPreference]:
    preferences: list[AssetPreference] = []

    for chain, balance in native_balances.items():
        if balance > Decimal("0.01"):
            preferences.append(AssetPreference(
                token=f"{chain}:ETH",
                preference=min(float(balance) / 10, 1.0),
                volume=balance,
                type=AssetType.NATIVE,
                staking_potential=0.9 if balance > Decimal("0.1") else 0.5,
            ))

    for token in holdings:
        if token.symbol in STABLECOINS:
            asset_type = AssetType.STABLECOIN
            potential = 0.8 if token.is_stakeable else 0.2
        elif token.symbol in DEFI_TOKENS:
            asset_type = AssetType.DEFI
            potential = 0.7 if token.is_stakeable else 0.4
        else:
            asset_type = AssetType.ERC20
            potential = 0.3
        preferences.append(AssetPreference(
            token=token.symbol,
            preference=min(float(token.balance) / 1000, 1.0),
            volume=token.balance,
            type=asset_type,
            staking_potential=potential,
        ))

    return sorted(preferences, key=lambda p: p.preference, reverse=True)
