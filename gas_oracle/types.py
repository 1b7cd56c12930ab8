from typing import List, Mapping, NamedTuple, Optional, Tuple

from eth_typing import HexStr

# the exchange rate is stored on chain as a fixed point number with 10 decimals
TOKEN_EXCHANGE_RATE_SCALE = 10**10

UINT32_MAX = 2**32 - 1
UINT128_MAX = 2**128 - 1


class RemoteGasData(NamedTuple):
    token_exchange_rate: int
    gas_price: int


class RemoteGasDataConfig(NamedTuple):
    remote_domain: int
    token_exchange_rate: int
    gas_price: int

    @classmethod
    def from_gas_data(
        cls, remote_domain: int, gas_data: RemoteGasData
    ) -> "RemoteGasDataConfig":
        return cls(
            remote_domain=remote_domain,
            token_exchange_rate=gas_data.token_exchange_rate,
            gas_price=gas_data.gas_price,
        )

    def to_contract_args(self) -> Tuple[int, int, int]:
        """Matches the `RemoteGasDataConfig` struct of the contract."""
        return self.remote_domain, self.token_exchange_rate, self.gas_price


class RemoteGasDataReport(NamedTuple):
    remote: str
    remote_domain: int
    existing: RemoteGasData
    desired: RemoteGasData
    updated: bool


class ChainReport(NamedTuple):
    chain: str
    skipped: bool
    remotes: List[RemoteGasDataReport]
    configs: List[RemoteGasDataConfig]
    tx_hash: Optional[HexStr] = None


# local chain name -> remote chain name -> desired gas data
DesiredConfiguration = Mapping[str, Mapping[str, RemoteGasData]]
