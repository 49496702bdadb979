"""
Shared fixtures: fake chain providers injected through the provider factory,
so no test touches a real RPC endpoint.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Optional, Union

import pytest

from chain_providers import ChainProvider
from chains import SUPPORTED_CHAINS
from config import Settings
from models import ChainBalances, ChainDescriptor, TokenHolding

ADDRESS = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"

TOKEN = {
    (chain_id, token.symbol): token.address
    for chain_id, chain in SUPPORTED_CHAINS.items()
    for token in chain.tokens
}


def wei(amount: Union[str, int], decimals: int = 18) -> int:
    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


class ChainState:
    """What one fake chain answers: a native balance, token balances, or a failure."""

    def __init__(
        self,
        native: int = 0,
        tokens: Optional[dict[str, int]] = None,
        error: Optional[Exception] = None,
        fail_times: int = 0,
        delay: float = 0.0,
    ):
        self.native = native
        self.tokens = {k.lower(): v for k, v in (tokens or {}).items()}
        self.error = error
        self.fail_times = fail_times
        self.delay = delay
        self.native_calls = 0


class FakeProvider(ChainProvider):
    def __init__(self, chain: ChainDescriptor, state: ChainState):
        super().__init__(chain)
        self.state = state

    async def get_native_balance(self, address: str) -> int:
        self.state.native_calls += 1
        if self.state.delay:
            await asyncio.sleep(self.state.delay)
        if self.state.error is not None:
            raise self.state.error
        if self.state.native_calls <= self.state.fail_times:
            raise ConnectionError(f"{self.chain.id}: transient failure")
        return self.state.native

    async def get_token_balance(self, address: str, token_contract: str) -> int:
        if self.state.error is not None:
            raise self.state.error
        return self.state.tokens.get(token_contract.lower(), 0)


class FakeNetwork:
    """Provider factory backed by per-chain ChainState; unknown chains hold nothing."""

    def __init__(self, states: Optional[dict[str, ChainState]] = None):
        self.states = states or {}

    def state(self, chain_id: str) -> ChainState:
        return self.states.setdefault(chain_id, ChainState())

    def __call__(self, chain: ChainDescriptor, client) -> FakeProvider:
        return FakeProvider(chain, self.state(chain.id))

    def total_native_calls(self) -> int:
        return sum(s.native_calls for s in self.states.values())


@pytest.fixture
def settings() -> Settings:
    return Settings(
        retry_attempts=2,
        retry_base_delay=0,
        chain_timeout=2,
        aggregation_timeout=5,
    )


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


def holding(chain_id: str, symbol: str, balance: Union[str, Decimal]) -> TokenHolding:
    """A TokenHolding for a registry token, as the aggregator would build it."""
    chain = SUPPORTED_CHAINS[chain_id]
    spec = next(t for t in chain.tokens if t.symbol == symbol)
    return TokenHolding(
        symbol=spec.symbol,
        name=spec.name,
        address=spec.address,
        balance=Decimal(str(balance)),
        decimals=spec.decimals,
        chain=chain_id,
        is_stakeable=spec.is_stakeable,
        staking_options=list(spec.staking_options),
        is_testnet=chain.is_testnet,
    )


def chain_balances(chain_id: str, native: Union[str, Decimal], *tokens: TokenHolding) -> ChainBalances:
    chain = SUPPORTED_CHAINS[chain_id]
    return ChainBalances(
        chain=chain_id,
        chain_name=chain.name,
        is_testnet=chain.is_testnet,
        native_symbol=chain.native_symbol,
        native_balance=Decimal(str(native)),
        token_holdings=list(tokens),
    )
