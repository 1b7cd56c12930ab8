import logging
from typing import Callable, List, Mapping, NamedTuple, Sequence, Tuple

from web3 import Web3
from web3.contract import Contract
from web3.contract.contract import ContractFunction
from web3.types import TxReceipt

from gas_oracle.eth1 import get_remote_gas_data, get_set_remote_gas_data_configs_call
from gas_oracle.exceptions import PreconditionError, UnsupportedChain
from gas_oracle.networks import ChainDirectory
from gas_oracle.types import (
    ChainReport,
    DesiredConfiguration,
    RemoteGasData,
    RemoteGasDataConfig,
    RemoteGasDataReport,
)
from gas_oracle.utils import pretty_remote_gas_data, pretty_remote_gas_data_config

logger = logging.getLogger(__name__)

SubmitTransaction = Callable[[str, ContractFunction], TxReceipt]


class FetchedGasData(NamedTuple):
    remote: str
    remote_domain: int
    existing: RemoteGasData
    desired: RemoteGasData


def fetch_gas_data(
    local: str,
    contract: Contract,
    chain_directory: ChainDirectory,
    desired_remotes: Mapping[str, RemoteGasData],
) -> List[FetchedGasData]:
    """Reads the stored gas data of every remote in the desired table, in order."""
    fetched: List[FetchedGasData] = []
    for remote, desired in desired_remotes.items():
        remote_domain = chain_directory.get_domain_id(remote)
        existing = get_remote_gas_data(contract, remote_domain)

        logger.info(
            f"{local} -> {remote} existing gas data:\n{pretty_remote_gas_data(existing)}"
        )
        logger.info(
            f"{local} -> {remote} desired gas data:\n{pretty_remote_gas_data(desired)}"
        )
        fetched.append(
            FetchedGasData(
                remote=remote,
                remote_domain=remote_domain,
                existing=existing,
                desired=desired,
            )
        )

    return fetched


def diff_gas_data(
    fetched: Sequence[FetchedGasData],
) -> Tuple[List[RemoteGasDataReport], List[RemoteGasDataConfig]]:
    """Selects the remotes which stored gas data differs from the desired one."""
    reports: List[RemoteGasDataReport] = []
    configs: List[RemoteGasDataConfig] = []
    for item in fetched:
        # exact match, both values are integers on chain
        updated = item.existing != item.desired
        if updated:
            logger.info(
                f"{item.remote}: existing and desired gas data differ, will update"
            )
            configs.append(
                RemoteGasDataConfig.from_gas_data(item.remote_domain, item.desired)
            )
        else:
            logger.info(
                f"{item.remote}: existing and desired gas data are the same,"
                f" doing nothing"
            )

        reports.append(
            RemoteGasDataReport(
                remote=item.remote,
                remote_domain=item.remote_domain,
                existing=item.existing,
                desired=item.desired,
                updated=updated,
            )
        )

    return reports, configs


class GasDataReconciler:
    """
    Updates the gas data stored on `StorageGasOracle` contracts
    if the desired data differs from the on-chain data.
    Idempotent, running it again without external changes submits nothing.
    """

    def __init__(
        self,
        chain_directory: ChainDirectory,
        oracle_contracts: Mapping[str, Contract],
        submit_transaction: SubmitTransaction,
    ) -> None:
        self.chain_directory = chain_directory
        self.oracle_contracts = oracle_contracts
        self.submit_transaction = submit_transaction

    def check_preconditions(
        self, local_chains: Sequence[str], desired_configuration: DesiredConfiguration
    ) -> None:
        if not local_chains:
            raise PreconditionError("No local chains to process")

        for chain in local_chains:
            # raises UnknownChain
            if not self.chain_directory.is_supported(chain):
                continue

            if chain not in desired_configuration:
                raise PreconditionError(f"No storage gas oracle config for {chain}")
            if chain not in self.oracle_contracts:
                raise PreconditionError(f"No StorageGasOracle contract for {chain}")

    def reconcile(
        self,
        local_chains: Sequence[str],
        desired_configuration: DesiredConfiguration,
        dry_run: bool,
    ) -> List[ChainReport]:
        self.check_preconditions(local_chains, desired_configuration)

        reports: List[ChainReport] = []
        for chain in local_chains:
            if not self.chain_directory.is_supported(chain):
                reason = UnsupportedChain(
                    chain, self.chain_directory.get_protocol(chain).value
                )
                logger.warning(
                    f"Skipping {chain} because it is not an Ethereum chain: {reason}"
                )
                reports.append(
                    ChainReport(chain=chain, skipped=True, remotes=[], configs=[])
                )
                continue

            reports.append(
                self.process_chain(chain, desired_configuration[chain], dry_run)
            )
            logger.info("===========")

        return reports

    def process_chain(
        self,
        chain: str,
        desired_remotes: Mapping[str, RemoteGasData],
        dry_run: bool,
    ) -> ChainReport:
        logger.info(f"Setting remote gas data on local chain {chain}...")
        contract = self.oracle_contracts[chain]

        fetched = fetch_gas_data(chain, contract, self.chain_directory, desired_remotes)
        remotes, configs = diff_gas_data(fetched)
        if not configs:
            logger.info(f"[{chain}] All remote gas data is up to date")
            return ChainReport(chain=chain, skipped=False, remotes=remotes, configs=[])

        logger.info(f"Updating {len(configs)} configs on local {chain}:")
        logger.info(
            "\n\t--\n".join(
                pretty_remote_gas_data_config(self.chain_directory, config)
                for config in configs
            )
        )

        if dry_run:
            logger.info("Running in dry run mode, not sending tx")
            return ChainReport(
                chain=chain, skipped=False, remotes=remotes, configs=configs
            )

        function_call = get_set_remote_gas_data_configs_call(contract, configs)
        receipt = self.submit_transaction(chain, function_call)
        tx_hash = Web3.to_hex(receipt["transactionHash"])
        logger.info(
            f"[{chain}] Remote gas data has been successfully updated: {tx_hash}"
        )

        return ChainReport(
            chain=chain,
            skipped=False,
            remotes=remotes,
            configs=configs,
            tx_hash=tx_hash,
        )
