from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ── Enums ─────────────────────────────────────────────────────────────────────


class StakingType(str, Enum):
    LIQUID = "LIQUID"
    LOCKED = "LOCKED"
    RESTAKING = "RESTAKING"
    YIELD_FARMING = "YIELD_FARMING"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RiskTolerance(str, Enum):
    CONSERVATIVE = "CONSERVATIVE"
    MODERATE = "MODERATE"
    AGGRESSIVE = "AGGRESSIVE"
    DEGENERATE = "DEGENERATE"


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class AssetType(str, Enum):
    NATIVE = "NATIVE"
    ERC20 = "ERC20"
    STABLECOIN = "STABLECOIN"
    DEFI = "DEFI"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Chain Registry ────────────────────────────────────────────────────────────


class StakingOption(_Frozen):
    protocol: str
    type: StakingType
    expected_apr: float
    min_amount: Decimal
    lock_period: Optional[int] = None
    risk_level: RiskLevel
    description: str
    chain: str


class TokenSpec(_Frozen):
    symbol: str
    name: str
    address: str
    decimals: int = 18
    is_stakeable: bool = False
    staking_options: tuple[StakingOption, ...] = ()


class ChainDescriptor(_Frozen):
    id: str
    name: str
    chain_id: int
    rpc_urls: tuple[str, ...]
    is_testnet: bool = False
    native_symbol: str = "ETH"
    native_decimals: int = 18
    tokens: tuple[TokenSpec, ...] = ()
    native_staking_options: tuple[StakingOption, ...] = ()


# ── Balances ──────────────────────────────────────────────────────────────────


class TokenHolding(_Frozen):
    symbol: str
    name: str
    address: str
    balance: Decimal
    decimals: int = 18
    chain: str
    is_stakeable: bool = False
    staking_options: list[StakingOption] = []
    is_testnet: bool = False


class ChainBalances(_Frozen):
    chain: str
    chain_name: str
    is_testnet: bool
    native_symbol: str
    native_balance: Decimal
    token_holdings: list[TokenHolding] = []


class BalanceSnapshot(_Frozen):
    chains: list[ChainBalances] = []
    reachable: list[str] = []
    unavailable: list[str] = []

    @property
    def holdings(self) -> list[TokenHolding]:
        return [t for c in self.chains for t in c.token_holdings]

    @property
    def native_balances(self) -> dict[str, Decimal]:
        return {c.chain: c.native_balance for c in self.chains}


# ── Analysis ──────────────────────────────────────────────────────────────────


class TokenAnalysis(_Frozen):
    total_tokens: int = 0
    major_holdings: list[TokenHolding] = []
    stablecoins: list[TokenHolding] = []
    defi_tokens: list[TokenHolding] = []
    governance_tokens: list[TokenHolding] = []
    stakeable_assets: list[TokenHolding] = []
    concentration_risk: float = 0.0
    diversification_level: RiskLevel = RiskLevel.LOW


class RiskProfile(_Frozen):
    risk_score: float = Field(..., ge=0, le=100)
    risk_tolerance: RiskTolerance
    max_single_position: Decimal
    diversification_level: RiskLevel
    lock_period_tolerance: int
    concentration_risk: float = Field(..., ge=0, le=1)
    liquidity_risk: float = Field(..., ge=0, le=1)
    staking_risk_tolerance: RiskLevel


class BehaviorPattern(_Frozen):
    pattern: str
    frequency: int
    confidence: float
    description: str
    staking_implication: Optional[str] = None


class AssetPreference(_Frozen):
    token: str
    preference: float
    volume: Decimal
    type: AssetType
    staking_potential: float


class LiquidityProfile(_Frozen):
    liquidity_ratio: float
    withdrawal_frequency: int
    emergency_buffer: Decimal
    preferred_lock_periods: list[int]
    liquid_assets: list[TokenHolding] = []
    staked_assets: list[TokenHolding] = []
    staking_capacity: Decimal


class StakingStrategy(_Frozen):
    recommended_allocation: float
    preferred_protocols: list[str] = []
    risk_tolerance: RiskTolerance
    liquidity_buffer: float
    staking_horizon: int
    diversification_goal: int


class StakingRecommendation(_Frozen):
    token: str
    chain: str
    recommended_amount: Decimal
    available_balance: Decimal
    options: list[StakingOption]
    reasoning: str
    risk_assessment: str
    expected_return: Decimal
    priority: Priority


class WalletAnalysis(_Frozen):
    address: str
    testnet_only: bool = False
    chains_analyzed: list[str] = []
    chains_unavailable: list[str] = []
    native_balances: dict[str, Decimal] = {}
    total_balance: Decimal = Decimal("0")
    token_holdings: list[TokenHolding] = []
    current_staking_positions: list[TokenHolding] = []
    token_analysis: TokenAnalysis
    diversification_score: float
    risk_profile: RiskProfile
    behavior_patterns: list[BehaviorPattern] = []
    asset_preferences: list[AssetPreference] = []
    liquidity_profile: LiquidityProfile
    strategy: StakingStrategy
    recommendations: list[StakingRecommendation] = []


class PersonalizedRecommendation(StakingRecommendation):
    personalized_score: float
    compatibility_reason: str
    urgency_level: Priority


class StakingAdvice(_Frozen):
    recommendations: list[PersonalizedRecommendation] = []
    actionable_insights: list[str] = []
    risk_warnings: list[str] = []


# ── API Models ────────────────────────────────────────────────────────────────


class HealthResponse(BaseModel):
    status: str
    version: str


class AnalyzeRequest(BaseModel):
    address: str = Field(..., description="Public EVM wallet address (0x + 40 hex chars)")
    testnet_only: bool = Field(
        False,
        description="Analyze testnet chains only. Mainnet and testnet are never mixed.",
    )


class AnalyzeResponse(BaseModel):
    success: bool
    address: str
    error: Optional[str] = None
    analysis: Optional[WalletAnalysis] = None
    advice: Optional[StakingAdvice] = None
    ai_insights: Optional[str] = None
    processing_time_ms: Optional[int] = None
