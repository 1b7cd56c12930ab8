import logging
from decimal import Decimal

from eth_typing import ChecksumAddress
from web3 import Web3
from web3.contract import Contract

from gas_oracle.eth1 import get_oracle_owner
from gas_oracle.networks import ChainDirectory
from gas_oracle.types import (
    TOKEN_EXCHANGE_RATE_SCALE,
    RemoteGasData,
    RemoteGasDataConfig,
)

logger = logging.getLogger(__name__)


def pretty_remote_gas_data(data: RemoteGasData) -> str:
    exchange_rate = Decimal(data.token_exchange_rate) / TOKEN_EXCHANGE_RATE_SCALE
    gas_price = Web3.from_wei(data.gas_price, "gwei")
    return (
        f"\ttoken exchange rate: {data.token_exchange_rate} ({exchange_rate:f})\n"
        f"\tgas price: {data.gas_price} ({gas_price:f} gwei)"
    )


def get_chain_name_by_domain(chain_directory: ChainDirectory, domain: int) -> str:
    return chain_directory.try_get_chain_name(domain) or str(domain)


def pretty_remote_gas_data_config(
    chain_directory: ChainDirectory, config: RemoteGasDataConfig
) -> str:
    remote = get_chain_name_by_domain(chain_directory, config.remote_domain)
    gas_data = RemoteGasData(
        token_exchange_rate=config.token_exchange_rate, gas_price=config.gas_price
    )
    return (
        f"\tremote: {remote} (domain {config.remote_domain})\n"
        f"{pretty_remote_gas_data(gas_data)}"
    )


def check_oracle_owner(
    chain: str, contract: Contract, account: ChecksumAddress
) -> bool:
    """Checks whether account can update the gas data of the contract."""
    owner = get_oracle_owner(contract)
    if owner == account:
        logger.info(
            f"[{chain}] Account {account} owns StorageGasOracle {contract.address}"
        )
        return True

    logger.warning(
        f"NB! [{chain}] Account {account} is not the owner of StorageGasOracle"
        f" {contract.address}, the owner is {owner}. Update transactions will revert."
    )
    return False
