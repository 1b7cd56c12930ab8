import logging
from typing import List

import backoff
import requests
from eth_typing import ChecksumAddress
from web3.contract import Contract
from web3.contract.contract import ContractFunction

from gas_oracle.exceptions import ReadFailure
from gas_oracle.settings import RPC_RETRY_MAX_TIME
from gas_oracle.types import RemoteGasData, RemoteGasDataConfig

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
    ConnectionError,
    TimeoutError,
)


@backoff.on_exception(backoff.expo, TRANSIENT_ERRORS, max_time=RPC_RETRY_MAX_TIME)
def _call_remote_gas_data(contract: Contract, remote_domain: int) -> List[int]:
    return contract.functions.remoteGasData(remote_domain).call()


def get_remote_gas_data(contract: Contract, remote_domain: int) -> RemoteGasData:
    """Fetches gas data stored for the remote domain."""
    try:
        token_exchange_rate, gas_price = _call_remote_gas_data(contract, remote_domain)
    except Exception as e:
        raise ReadFailure(
            f"Failed to read remote gas data for domain {remote_domain}"
            f" from {contract.address}: {e}"
        ) from e

    return RemoteGasData(token_exchange_rate=token_exchange_rate, gas_price=gas_price)


def get_set_remote_gas_data_configs_call(
    contract: Contract, configs: List[RemoteGasDataConfig]
) -> ContractFunction:
    """Builds a single call updating all the configs, does not touch the network."""
    if not configs:
        raise ValueError("At least one remote gas data config is required")

    return contract.functions.setRemoteGasDataConfigs(
        [config.to_contract_args() for config in configs]
    )


@backoff.on_exception(backoff.expo, TRANSIENT_ERRORS, max_time=RPC_RETRY_MAX_TIME)
def _call_owner(contract: Contract) -> ChecksumAddress:
    return contract.functions.owner().call()


def get_oracle_owner(contract: Contract) -> ChecksumAddress:
    try:
        return _call_owner(contract)
    except Exception as e:
        raise ReadFailure(f"Failed to read owner of {contract.address}: {e}") from e
