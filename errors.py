from typing import Optional


class WalletAnalyzerError(Exception):
    """Base class for every failure the analysis engine raises."""


class InvalidAddress(WalletAnalyzerError, ValueError):
    def __init__(self, address: str):
        self.address = address
        super().__init__(
            f"Invalid wallet address: {address!r}. Expected 0x followed by 40 hex characters."
        )


class ConfigurationError(WalletAnalyzerError):
    pass


class ChainUnavailable(WalletAnalyzerError):
    """One chain's queries failed after all retries. Never reaches callers of analyze()."""

    def __init__(self, chain: str, cause: Optional[BaseException] = None):
        self.chain = chain
        self.cause = cause
        reason = f": {cause}" if cause else ""
        super().__init__(f"Chain '{chain}' unavailable{reason}")


class NoChainsReachable(WalletAnalyzerError):
    def __init__(self, chains: list[str]):
        self.chains = list(chains)
        super().__init__(
            f"None of the targeted chains could be reached: {', '.join(self.chains) or 'none'}"
        )
