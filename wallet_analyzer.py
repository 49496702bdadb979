import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from balances import BalanceAggregator, ProviderFactory
from cache import TTLCache
from chain_providers import get_provider
from chains import SUPPORTED_CHAINS, chains_for_network
from config import Settings
from models import ChainDescriptor, WalletAnalysis
from portfolio import (
    analyze_asset_preferences,
    analyze_token_holdings,
    assess_liquidity_profile,
    current_staking_positions,
    diversification_score,
    infer_behavior_patterns,
)
from risk import assess_risk
from strategy import generate_recommendations, generate_strategy
from utils import format_amount, short_address, validate_address

logger = logging.getLogger(__name__)


class WalletAnalyzer:
    """Orchestrates wallet analysis: balances -> portfolio -> risk -> strategy -> recommendations."""

    def __init__(
        self,
        settings: Settings,
        registry: Optional[dict[str, ChainDescriptor]] = None,
        provider_factory: ProviderFactory = get_provider,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.registry = SUPPORTED_CHAINS if registry is None else registry
        self.balances = BalanceAggregator(
            settings,
            provider_factory=provider_factory,
            cache=TTLCache(settings.balance_cache_ttl, clock=clock),
        )
        self.cache: TTLCache[WalletAnalysis] = TTLCache(settings.analysis_cache_ttl, clock=clock)

    async def analyze(self, address: str, testnet_only: bool = False) -> WalletAnalysis:
        address = validate_address(address)
        cache_key = (address, testnet_only)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Using cached analysis for %s", short_address(address))
            return cached

        started = time.perf_counter()
        targets = chains_for_network(testnet_only, self.settings.rpc_urls, self.registry)
        logger.info(
            "Analyzing %s on %s chains: %s",
            short_address(address),
            "testnet" if testnet_only else "mainnet",
            ", ".join(c.id for c in targets),
        )

        # ── Balances ──────────────────────────────────────────────────────
        snapshot = await self.balances.fetch_balances(address, targets)
        holdings = snapshot.holdings
        native_balances = snapshot.native_balances
        total_native = sum(native_balances.values(), Decimal("0"))

        # ── Portfolio & risk ──────────────────────────────────────────────
        token_analysis = analyze_token_holdings(holdings)
        risk_profile = assess_risk(total_native, holdings, token_analysis)
        liquidity = assess_liquidity_profile(holdings, total_native)

        # ── Strategy & recommendations ────────────────────────────────────
        strategy = generate_strategy(risk_profile, liquidity, total_native, testnet_only)
        recommendations = generate_recommendations(
            snapshot.chains,
            {c.id: c.native_staking_options for c in targets},
            holdings,
            strategy,
            testnet_only,
        )

        analysis = WalletAnalysis(
            address=address,
            testnet_only=testnet_only,
            chains_analyzed=snapshot.reachable,
            chains_unavailable=snapshot.unavailable,
            native_balances=native_balances,
            total_balance=total_native,
            token_holdings=holdings,
            current_staking_positions=current_staking_positions(holdings),
            token_analysis=token_analysis,
            diversification_score=diversification_score(holdings, native_balances),
            risk_profile=risk_profile,
            behavior_patterns=infer_behavior_patterns(holdings, len(snapshot.chains)),
            asset_preferences=analyze_asset_preferences(holdings, native_balances),
            liquidity_profile=liquidity,
            strategy=strategy,
            recommendations=recommendations,
        )

        # Partial results are served but not remembered
        if not snapshot.unavailable:
            self.cache.set(cache_key, analysis)

        logger.info(
            "Analysis of %s done in %.2fs: %s ETH, %d tokens, %s risk, %d recommendations",
            short_address(address),
            time.perf_counter() - started,
            format_amount(total_native),
            len(holdings),
            risk_profile.risk_tolerance.value,
            len(recommendations),
        )
        return analysis
