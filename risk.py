from decimal import Decimal

from models import RiskLevel, RiskProfile, RiskTolerance, TokenAnalysis, TokenHolding
from portfolio import liquidity_risk

BASE_RISK_SCORE = 50

# Score thresholds shared by tolerance tier, position ratio and lock tolerance
_TIER_THRESHOLDS = (25, 50, 75)
_TIERS = (
    RiskTolerance.CONSERVATIVE,
    RiskTolerance.MODERATE,
    RiskTolerance.AGGRESSIVE,
    RiskTolerance.DEGENERATE,
)
_MAX_POSITION_RATIOS = ("0.1", "0.2", "0.4", "0.6")
_LOCK_PERIOD_DAYS = (7, 30, 90, 365)


def _tier_index(score: float) -> int:
    for i, threshold in enumerate(_TIER_THRESHOLDS):
        if score < threshold:
            return i
    return len(_TIER_THRESHOLDS)


def tolerance_for_score(score: float) -> RiskTolerance:
    return _TIERS[_tier_index(score)]


def max_position_ratio(score: float) -> Decimal:
    return Decimal(_MAX_POSITION_RATIOS[_tier_index(score)])


def lock_period_tolerance(score: float) -> int:
    return _LOCK_PERIOD_DAYS[_tier_index(score)]


def staking_risk_tier(score: float) -> RiskLevel:
    if score < 30:
        return RiskLevel.LOW
    if score > 70:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def risk_score(
    total_native: Decimal, holdings: list[TokenHolding], token_analysis: TokenAnalysis
) -> float:
    """Additive model around a base of 50, clamped to [0, 100]."""
    score = BASE_RISK_SCORE
    token_count = len(holdings)

    size = total_native + token_count
    if size > 100:
        score += 15
    elif size > 10:
        score += 10
    elif size < 1:
        score -= 15

    score += min(token_count * 2, 20)

    # Stablecoin share only means something once tokens are held
    if token_count:
        stable_share = len(token_analysis.stablecoins) / token_count
        if stable_share > 0.5:
            score -= 10
        elif stable_share < 0.1:
            score += 10

    if token_analysis.concentration_risk > 0.5:
        score += 15

    return float(max(0, min(100, score)))


def assess_risk(
    total_native: Decimal, holdings: list[TokenHolding], token_analysis: TokenAnalysis
) -> RiskProfile:
    score = risk_score(total_native, holdings, token_analysis)
    return RiskProfile(
        risk_score=score,
        risk_tolerance=tolerance_for_score(score),
        max_single_position=total_native * max_position_ratio(score),
        diversification_level=token_analysis.diversification_level,
        lock_period_tolerance=lock_period_tolerance(score),
        concentration_risk=token_analysis.concentration_risk,
        liquidity_risk=liquidity_risk(holdings),
        staking_risk_tolerance=staking_risk_tier(score),
    )
