from decimal import Decimal
from typing import Optional

from models import ChainDescriptor, RiskLevel, StakingOption, StakingType, TokenSpec


def _option(
    protocol: str,
    type: StakingType,
    apr: float,
    min_amount: str,
    risk: RiskLevel,
    description: str,
    chain: str,
    lock_period: Optional[int] = None,
) -> StakingOption:
    return StakingOption(
        protocol=protocol,
        type=type,
        expected_apr=apr,
        min_amount=Decimal(min_amount),
        lock_period=lock_period,
        risk_level=risk,
        description=description,
        chain=chain,
    )


LIQUID = StakingType.LIQUID
LOW, MEDIUM, HIGH = RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH


# ── Ethereum ──────────────────────────────────────────────────────────────────

_ETHEREUM_NATIVE_OPTIONS = (
    _option("Lido", LIQUID, 3.2, "0.01", LOW,
            "Liquid staking with Lido - get stETH tokens", "ethereum"),
    _option("Rocket Pool", LIQUID, 3.1, "0.01", LOW,
            "Decentralized liquid staking with Rocket Pool", "ethereum"),
    _option("Coinbase Wrapped Staked ETH", LIQUID, 3.0, "0.001", LOW,
            "Coinbase institutional staking solution", "ethereum"),
    _option("EigenLayer", StakingType.RESTAKING, 4.5, "32", HIGH,
            "Restake ETH for additional AVS rewards (higher risk)", "ethereum",
            lock_period=21),
)

_ETHEREUM_TOKENS = (
    TokenSpec(
        symbol="USDC", name="USD Coin", decimals=6, is_stakeable=True,
        address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        staking_options=(
            _option("Aave", LIQUID, 4.5, "100", LOW,
                    "Lending USDC on Aave for stable yield", "ethereum"),
            _option("Compound", LIQUID, 3.8, "50", LOW,
                    "Supply USDC to Compound for lending yield", "ethereum"),
        ),
    ),
    TokenSpec(
        symbol="USDT", name="Tether USD", decimals=6, is_stakeable=True,
        address="0xdAC17F958D2ee523a2206206994597C13D831ec7",
        staking_options=(
            _option("Aave", LIQUID, 4.2, "100", LOW,
                    "Lend USDT on Aave for stable returns", "ethereum"),
        ),
    ),
    TokenSpec(
        symbol="DAI", name="Dai Stablecoin", decimals=18, is_stakeable=True,
        address="0x6B175474E89094C44Da98b954EedeAC495271d0F",
        staking_options=(
            _option("MakerDAO DSR", LIQUID, 5.0, "1", LOW,
                    "Earn DAI Savings Rate directly from MakerDAO", "ethereum"),
            _option("Aave", LIQUID, 4.3, "50", LOW,
                    "Supply DAI to Aave lending pool", "ethereum"),
        ),
    ),
    TokenSpec(
        symbol="WETH", name="Wrapped Ether", decimals=18, is_stakeable=True,
        address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
        staking_options=(
            _option("Aave", LIQUID, 2.0, "0.1", LOW,
                    "Supply WETH to Aave lending pool", "ethereum"),
        ),
    ),
    # Governance token, no direct staking
    TokenSpec(
        symbol="UNI", name="Uniswap", decimals=18,
        address="0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984",
    ),
    # Already staked ETH
    TokenSpec(
        symbol="stETH", name="Lido Staked Ether", decimals=18,
        address="0xae7ab96520DE3A18E5e111B5EaAb095312D7fE84",
    ),
)


# ── Base ──────────────────────────────────────────────────────────────────────

_BASE_NATIVE_OPTIONS = (
    _option("Coinbase Wrapped Staked ETH", LIQUID, 3.0, "0.001", LOW,
            "Stake ETH on Base through cbETH", "base"),
)

_BASE_TOKENS = (
    TokenSpec(
        symbol="USDC", name="USD Coin", decimals=6, is_stakeable=True,
        address="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        staking_options=(
            _option("Moonwell", LIQUID, 3.5, "50", MEDIUM,
                    "Supply USDC to Moonwell lending market on Base", "base"),
        ),
    ),
    TokenSpec(
        symbol="WETH", name="Wrapped Ether", decimals=18, is_stakeable=True,
        address="0x4200000000000000000000000000000000000006",
        staking_options=(
            _option("Moonwell", LIQUID, 2.8, "0.1", MEDIUM,
                    "Supply WETH to Moonwell for lending yield", "base"),
        ),
    ),
    TokenSpec(
        symbol="cbETH", name="Coinbase Wrapped Staked ETH", decimals=18,
        address="0x2Ae3F1Ec7F1F5012CFEab0185bfc7aa3cf0DEc22",
    ),
)


# ── Arbitrum ──────────────────────────────────────────────────────────────────

_ARBITRUM_TOKENS = (
    TokenSpec(
        symbol="USDC", name="USD Coin", decimals=6, is_stakeable=True,
        address="0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        staking_options=(
            _option("Radiant", LIQUID, 4.0, "50", MEDIUM,
                    "Lend USDC on Radiant Capital for yield", "arbitrum"),
        ),
    ),
    TokenSpec(
        symbol="WETH", name="Wrapped Ether", decimals=18, is_stakeable=True,
        address="0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
        staking_options=(
            _option("Radiant", LIQUID, 2.5, "0.1", MEDIUM,
                    "Supply WETH to Radiant lending pool", "arbitrum"),
        ),
    ),
)


# ── Testnets ──────────────────────────────────────────────────────────────────

_SEPOLIA_NATIVE_OPTIONS = (
    _option("Testnet Lido", LIQUID, 2.5, "0.001", LOW,
            "Test liquid staking with Lido on Sepolia - practice the full staking flow",
            "sepolia"),
)

_SEPOLIA_TOKENS = (
    TokenSpec(
        symbol="USDC", name="USD Coin (Sepolia)", decimals=6, is_stakeable=True,
        address="0x94a9D9AC8a22534E3FaCa9F4e7F2E2cf85d5E4C8",
        staking_options=(
            _option("Aave V3 Testnet", LIQUID, 4.0, "1", LOW,
                    "Supply test USDC to the Aave V3 Sepolia market", "sepolia"),
        ),
    ),
    TokenSpec(
        symbol="WETH", name="Wrapped Ether (Sepolia)", decimals=18, is_stakeable=True,
        address="0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14",
        staking_options=(
            _option("Aave V3 Testnet", LIQUID, 2.0, "0.01", LOW,
                    "Supply test WETH to the Aave V3 Sepolia market", "sepolia"),
        ),
    ),
)

_BASE_SEPOLIA_TOKENS = (
    TokenSpec(
        symbol="WETH", name="Wrapped Ether (Base Sepolia)", decimals=18,
        address="0x4200000000000000000000000000000000000006",
    ),
)


# ── Registry ──────────────────────────────────────────────────────────────────
# Insertion order is the registry order: aggregated results follow it.

SUPPORTED_CHAINS: dict[str, ChainDescriptor] = {
    "ethereum": ChainDescriptor(
        id="ethereum", name="Ethereum", chain_id=1,
        rpc_urls=("https://eth.llamarpc.com", "https://ethereum-rpc.publicnode.com"),
        tokens=_ETHEREUM_TOKENS,
        native_staking_options=_ETHEREUM_NATIVE_OPTIONS,
    ),
    "base": ChainDescriptor(
        id="base", name="Base", chain_id=8453,
        rpc_urls=("https://mainnet.base.org", "https://base-rpc.publicnode.com"),
        tokens=_BASE_TOKENS,
        native_staking_options=_BASE_NATIVE_OPTIONS,
    ),
    "arbitrum": ChainDescriptor(
        id="arbitrum", name="Arbitrum", chain_id=42161,
        rpc_urls=("https://arb1.arbitrum.io/rpc", "https://arbitrum-one-rpc.publicnode.com"),
        tokens=_ARBITRUM_TOKENS,
    ),
    "sepolia": ChainDescriptor(
        id="sepolia", name="Sepolia Testnet", chain_id=11155111,
        rpc_urls=("https://ethereum-sepolia-rpc.publicnode.com",),
        is_testnet=True,
        tokens=_SEPOLIA_TOKENS,
        native_staking_options=_SEPOLIA_NATIVE_OPTIONS,
    ),
    "base-sepolia": ChainDescriptor(
        id="base-sepolia", name="Base Sepolia Testnet", chain_id=84532,
        rpc_urls=("https://sepolia.base.org",),
        is_testnet=True,
        tokens=_BASE_SEPOLIA_TOKENS,
    ),
}


def with_rpc_override(chain: ChainDescriptor, url: Optional[str]) -> ChainDescriptor:
    """Put a configured RPC URL in front of the chain's defaults."""
    if not url:
        return chain
    fallbacks = tuple(u for u in chain.rpc_urls if u != url)
    return chain.model_copy(update={"rpc_urls": (url,) + fallbacks})


def chains_for_network(
    testnet_only: bool,
    rpc_overrides: Optional[dict[str, str]] = None,
    registry: Optional[dict[str, ChainDescriptor]] = None,
) -> list[ChainDescriptor]:
    """Mainnet chains or testnet chains, never both, in registry order."""
    registry = SUPPORTED_CHAINS if registry is None else registry
    overrides = rpc_overrides or {}
    return [
        with_rpc_override(chain, overrides.get(chain.id))
        for chain in registry.values()
        if chain.is_testnet == testnet_only
    ]
