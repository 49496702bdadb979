import asyncio
import logging
from decimal import Decimal
from typing import Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from cache import TTLCache
from chain_providers import ChainProvider, get_provider
from config import Settings
from errors import ChainUnavailable, NoChainsReachable
from models import BalanceSnapshot, ChainBalances, ChainDescriptor, TokenHolding
from utils import short_address, to_units

logger = logging.getLogger(__name__)

MAINNET_DUST_THRESHOLD = Decimal("0.001")
# Lower on testnets so small intentional test amounts still show up
TESTNET_DUST_THRESHOLD = Decimal("0.00001")

ProviderFactory = Callable[[ChainDescriptor, httpx.AsyncClient], ChainProvider]


def dust_threshold(chain: ChainDescriptor) -> Decimal:
    return TESTNET_DUST_THRESHOLD if chain.is_testnet else MAINNET_DUST_THRESHOLD


def network_mode(chains: list[ChainDescriptor]) -> str:
    if chains and all(c.is_testnet for c in chains):
        return "testnet"
    if any(c.is_testnet for c in chains):
        return "mixed:" + ",".join(c.id for c in chains)
    return "mainnet"


def has_balance(chain_balances: ChainBalances) -> bool:
    return chain_balances.native_balance > 0 or bool(chain_balances.token_holdings)


class BalanceAggregator:
    """
    Fetches native and catalog-token balances for one address across a set of
    chains, one concurrent task per chain.

    Each chain is retried on its own with exponential backoff; a chain that
    exhausts its retries is dropped from the result instead of failing the call.
    Only when no chain answers at all does the call fail with NoChainsReachable.
    """

    def __init__(
        self,
        settings: Settings,
        provider_factory: ProviderFactory = get_provider,
        cache: Optional[TTLCache[BalanceSnapshot]] = None,
    ):
        self.settings = settings
        self.provider_factory = provider_factory
        self.cache: TTLCache[BalanceSnapshot] = (
            cache if cache is not None else TTLCache(settings.balance_cache_ttl)
        )

    async def fetch_balances(
        self, address: str, chains: list[ChainDescriptor]
    ) -> BalanceSnapshot:
        if not chains:
            raise NoChainsReachable([])

        cache_key = (address.lower(), network_mode(chains))
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info("Using cached balances for %s (%s)", short_address(address), cache_key[1])
            return cached

        async with httpx.AsyncClient(timeout=self.settings.rpc_request_timeout) as client:
            tasks = {
                chain.id: asyncio.create_task(
                    self._fetch_chain_with_retry(self.provider_factory(chain, client), address)
                )
                for chain in chains
            }
            _, pending = await asyncio.wait(
                tasks.values(), timeout=self.settings.aggregation_timeout
            )
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        # ── Assemble in registry order, whatever order tasks finished in ──
        collected: list[ChainBalances] = []
        reachable: list[str] = []
        unavailable: list[str] = []

        for chain in chains:
            task = tasks[chain.id]
            if task in pending:
                logger.warning(
                    "%s: still pending after %.0fs aggregation timeout, skipping",
                    chain.id, self.settings.aggregation_timeout,
                )
                unavailable.append(chain.id)
                continue

            exc = task.exception()
            if isinstance(exc, ChainUnavailable):
                logger.warning("%s", exc)
                unavailable.append(chain.id)
                continue
            if exc is not None:
                raise exc

            reachable.append(chain.id)
            chain_balances = task.result()
            if has_balance(chain_balances):
                collected.append(chain_balances)

        if not reachable:
            raise NoChainsReachable([c.id for c in chains])

        snapshot = BalanceSnapshot(
            chains=collected, reachable=reachable, unavailable=unavailable
        )
        if not unavailable:
            self.cache.set(cache_key, snapshot)
        return snapshot

    async def _fetch_chain_with_retry(
        self, provider: ChainProvider, address: str
    ) -> ChainBalances:
        chain = provider.chain
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.settings.retry_attempts),
                wait=wait_exponential(multiplier=self.settings.retry_base_delay, exp_base=2),
                retry=retry_if_exception_type(Exception),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    return await asyncio.wait_for(
                        self._fetch_chain(provider, address),
                        timeout=self.settings.chain_timeout,
                    )
        except Exception as e:
            raise ChainUnavailable(chain.id, e) from e
        raise ChainUnavailable(chain.id)

    async def _fetch_chain(self, provider: ChainProvider, address: str) -> ChainBalances:
        chain = provider.chain
        native_raw, *token_raws = await asyncio.gather(
            provider.get_native_balance(address),
            *(provider.get_token_balance(address, token.address) for token in chain.tokens),
        )

        dust = dust_threshold(chain)
        holdings: list[TokenHolding] = []
        for token, raw in zip(chain.tokens, token_raws):
            balance = to_units(raw, token.decimals)
            if balance <= dust:
                continue
            holdings.append(TokenHolding(
                symbol=token.symbol,
                name=token.name,
                address=token.address,
                balance=balance,
                decimals=token.decimals,
                chain=chain.id,
                is_stakeable=token.is_stakeable,
                staking_options=list(token.staking_options),
                is_testnet=chain.is_testnet,
            ))

        return ChainBalances(
            chain=chain.id,
            chain_name=chain.name,
            is_testnet=chain.is_testnet,
            native_symbol=chain.native_symbol,
            native_balance=to_units(native_raw, chain.native_decimals),
            token_holdings=holdings,
        )
