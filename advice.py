"""
Personalized ranking and plain-language guidance layered on top of a finished
WalletAnalysis. Used by the presentation surfaces (REST, MCP, A2A); the
analysis itself never depends on this module.
"""

from decimal import Decimal

from models import (
    PersonalizedRecommendation,
    Priority,
    RiskLevel,
    RiskTolerance,
    StakingAdvice,
    StakingRecommendation,
    WalletAnalysis,
)

BASE_SCORE = 50.0
RISK_WEIGHT = 20
ASSET_WEIGHT = 15
LOCK_WEIGHT = 15
MAX_RETURN_BONUS = 10.0

_ADJACENT_RISK = {
    (RiskLevel.LOW, RiskLevel.MEDIUM),
    (RiskLevel.MEDIUM, RiskLevel.HIGH),
    (RiskLevel.MEDIUM, RiskLevel.LOW),
}


def risk_alignment(rec: StakingRecommendation, analysis: WalletAnalysis) -> float:
    option_risk = rec.options[0].risk_level if rec.options else RiskLevel.MEDIUM
    user_risk = analysis.risk_profile.staking_risk_tolerance
    if option_risk == user_risk:
        return 1.0
    if (option_risk, user_risk) in _ADJACENT_RISK:
        return 0.7
    return 0.3


def _held_balance(rec: StakingRecommendation, analysis: WalletAnalysis) -> Decimal | None:
    for token in analysis.token_holdings:
        if token.symbol == rec.token and token.chain == rec.chain:
            return token.balance
    native = analysis.native_balances.get(rec.chain)
    if native is not None and rec.available_balance == native:
        return native
    return None


def asset_match(rec: StakingRecommendation, analysis: WalletAnalysis) -> float:
    held = _held_balance(rec, analysis)
    if held is None:
        return 0.0
    if held > rec.recommended_amount:
        return 1.0
    return 0.5


def lock_compatibility(rec: StakingRecommendation, analysis: WalletAnalysis) -> float:
    lock_period = (rec.options[0].lock_period if rec.options else None) or 0
    tolerance = analysis.risk_profile.lock_period_tolerance
    if lock_period == 0:
        return 1.0
    if lock_period <= tolerance:
        return 0.8
    if lock_period <= tolerance * 2:
        return 0.4
    return 0.1


def personalized_score(rec: StakingRecommendation, analysis: WalletAnalysis) -> float:
    score = BASE_SCORE
    score += risk_alignment(rec, analysis) * RISK_WEIGHT
    score += asset_match(rec, analysis) * ASSET_WEIGHT
    score += lock_compatibility(rec, analysis) * LOCK_WEIGHT
    score += min(float(rec.expected_return) * 2, MAX_RETURN_BONUS)
    return max(0.0, min(100.0, score))


def urgency_for(score: float) -> Priority:
    if score > 80:
        return Priority.HIGH
    if score > 60:
        return Priority.MEDIUM
    return Priority.LOW


def compatibility_reason(rec: StakingRecommendation, analysis: WalletAnalysis) -> str:
    reasons = []
    if _held_balance(rec, analysis) is not None:
        reasons.append(f"You already hold {rec.token}")
    if risk_alignment(rec, analysis) > 0.8:
        reasons.append(
            f"Matches your {analysis.risk_profile.staking_risk_tolerance.value.lower()} risk tolerance"
        )
    protocol = rec.options[0].protocol if rec.options else ""
    for pattern in analysis.behavior_patterns:
        if protocol and pattern.staking_implication and protocol in pattern.staking_implication:
            reasons.append(f"Aligns with your {pattern.pattern.lower()} behavior")
            break
    if rec.priority == Priority.HIGH:
        reasons.append("High potential returns for your portfolio size")
    return ", ".join(reasons) if reasons else "Good fit for your portfolio"


def personalize(analysis: WalletAnalysis) -> list[PersonalizedRecommendation]:
    personalized = []
    for rec in analysis.recommendations:
        score = personalized_score(rec, analysis)
        personalized.append(PersonalizedRecommendation(
            **rec.model_dump(),
            personalized_score=score,
            compatibility_reason=compatibility_reason(rec, analysis),
            urgency_level=urgency_for(score),
        ))
    return sorted(personalized, key=lambda r: r.personalized_score, reverse=True)


# ── Insights & warnings ───────────────────────────────────────────────────────


def actionable_insights(analysis: WalletAnalysis) -> list[str]:
    insights = []
    total = analysis.total_balance
    if total > 5:
        insights.append("Consider liquid staking for your large ETH holdings to earn passive yield")
    elif total > Decimal("0.1"):
        insights.append("Balance size is a good fit for starting with liquid staking protocols")

    if analysis.diversification_score < 30:
        insights.append("Low diversification detected - consider staking across multiple protocols")
    elif analysis.diversification_score > 70:
        insights.append("Excellent diversification - you can handle more sophisticated staking strategies")

    if analysis.token_analysis.stablecoins:
        insights.append("Your stablecoins can earn yield through lending protocols")

    tolerance = analysis.risk_profile.risk_tolerance
    if tolerance == RiskTolerance.CONSERVATIVE:
        insights.append("Focus on blue-chip liquid staking with established protocols")
    elif tolerance in (RiskTolerance.AGGRESSIVE, RiskTolerance.DEGENERATE):
        insights.append("You can explore restaking and higher-yield opportunities")

    if len(analysis.native_balances) > 2:
        insights.append("Multi-chain presence detected - optimize yields across different chains")
    if analysis.testnet_only:
        insights.append("Testnet analysis: amounts are for practice and carry no market value")
    return insights


def risk_warnings(analysis: WalletAnalysis) -> list[str]:
    warnings = []
    profile = analysis.risk_profile
    if profile.concentration_risk > 0.7:
        warnings.append("High concentration risk - avoid putting all funds in one protocol")
    if profile.liquidity_risk > 0.6:
        warnings.append("Limited liquid assets - maintain emergency buffer before staking")
    if profile.lock_period_tolerance < 30:
        warnings.append("Low lock period tolerance - stick to liquid staking options")

    total = analysis.total_balance
    if total < Decimal("0.1"):
        warnings.append("Small portfolio size - focus on building holdings before complex strategies")
    if total < 1 and len(analysis.token_holdings) > 5:
        warnings.append("High token count vs balance - consider gas costs for staking transactions")
    if analysis.chains_unavailable:
        warnings.append(
            "Some chains could not be reached and are missing from this analysis: "
            + ", ".join(analysis.chains_unavailable)
        )
    return warnings


def build_advice(analysis: WalletAnalysis) -> StakingAdvice:
    return StakingAdvice(
        recommendations=personalize(analysis),
        actionable_insights=actionable_insights(analysis),
        risk_warnings=risk_warnings(analysis),
    )
