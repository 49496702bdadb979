import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from models import ChainDescriptor

logger = logging.getLogger(__name__)

# keccak256("balanceOf(address)")[:4]
BALANCE_OF_SELECTOR = "0x70a08231"


class ChainQueryError(Exception):
    """An RPC endpoint answered, but not with a usable result."""


# ── Base Provider ─────────────────────────────────────────────────────────────


class ChainProvider(ABC):
    """Read-only balance queries scoped to a single chain."""

    def __init__(self, chain: ChainDescriptor):
        self.chain = chain

    @abstractmethod
    async def get_native_balance(self, address: str) -> int:
        ...

    @abstractmethod
    async def get_token_balance(self, address: str, token_contract: str) -> int:
        ...


# ── JSON-RPC Provider ─────────────────────────────────────────────────────────


class RPCChainProvider(ChainProvider):
    def __init__(self, chain: ChainDescriptor, client: httpx.AsyncClient):
        super().__init__(chain)
        self.client = client

    async def _rpc(self, method: str, params: list) -> Any:
        # Endpoints are tried in order; the last failure is re-raised.
        last_error: Exception = ChainQueryError(f"{self.chain.id}: no RPC endpoints configured")
        for url in self.chain.rpc_urls:
            try:
                resp = await self.client.post(
                    url,
                    json={"jsonrpc": "2.0", "id": 1, "method": method, "params": params},
                )
                resp.raise_for_status()
                data = resp.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.debug("%s %s via %s failed: %s", self.chain.id, method, url, e)
                last_error = e
                continue

            if not isinstance(data, dict):
                last_error = ChainQueryError(f"{self.chain.id}: malformed RPC response")
                continue
            if data.get("error"):
                err = data["error"]
                message = err.get("message", err) if isinstance(err, dict) else err
                last_error = ChainQueryError(f"{self.chain.id} {method}: {message}")
                continue
            return data.get("result")
        raise last_error

    @staticmethod
    def _parse_quantity(value: Any, chain_id: str) -> int:
        if not isinstance(value, str) or not value.startswith("0x"):
            raise ChainQueryError(f"{chain_id}: expected hex quantity, got {value!r}")
        if value == "0x":
            return 0
        try:
            return int(value, 16)
        except ValueError as e:
            raise ChainQueryError(f"{chain_id}: bad hex quantity {value!r}") from e

    async def get_native_balance(self, address: str) -> int:
        result = await self._rpc("eth_getBalance", [address, "latest"])
        return self._parse_quantity(result, self.chain.id)

    async def get_token_balance(self, address: str, token_contract: str) -> int:
        data = BALANCE_OF_SELECTOR + address.lower().removeprefix("0x").rjust(64, "0")
        result = await self._rpc(
            "eth_call", [{"to": token_contract, "data": data}, "latest"]
        )
        return self._parse_quantity(result, self.chain.id)


# ── Factory ───────────────────────────────────────────────────────────────────


def get_provider(chain: ChainDescriptor, client: httpx.AsyncClient) -> ChainProvider:
    return RPCChainProvider(chain, client)
